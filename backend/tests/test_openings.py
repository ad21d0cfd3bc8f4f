import random

import pytest
import requests

from opquiz.errors import NotFoundError, OpeningSourceError
from opquiz.models import Opening
from opquiz.services.openings import (
    FallbackOpeningSource,
    MockOpeningSource,
    YouTubeOpeningSource,
    build_opening_source,
    generate_round,
)
from opquiz.services.openings.cache import derive_anime_title, read_cache
from opquiz.services.openings.mock_data import MOCK_OPENINGS


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f'{self.status_code} error')

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, pages=None, error=None):
        self.pages = list(pages or [])
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({'url': url, 'params': dict(params or {}), 'timeout': timeout})
        if self.error:
            raise self.error
        return self.pages.pop(0)


def snippet(title, video_id, channel='Some Channel'):
    return {'snippet': {'title': title, 'videoOwnerChannelTitle': channel, 'resourceId': {'videoId': video_id}}}


PAGES = [
    FakeResponse({
        'items': [snippet('Naruto Shippuden - Blue Bird', 'vid1'), snippet('Deleted video', 'vid2')],
        'nextPageToken': 'page-2',
    }),
    FakeResponse({
        'items': [snippet('Gurenge', 'vid3', channel='Demon Slayer Official'), {'snippet': {'title': 'No id'}}],
    }),
]


def youtube(tmp_path, session):
    return YouTubeOpeningSource('PL123', 'key', str(tmp_path / 'openings.csv'), timeout=3, session=session)


def test_generate_round_uses_every_opening():
    source = MockOpeningSource()
    payload = generate_round(source, random.Random(4))
    titles = sorted(o['title'] for o in payload.options)
    assert titles == sorted(o.opening_title for o in MOCK_OPENINGS)
    chosen = next(o for o in MOCK_OPENINGS if o.id == payload.opening_id)
    assert payload.correct_title == chosen.opening_title
    assert payload.audio_url == chosen.audio_url


def test_generate_round_is_reproducible_with_seed():
    first = generate_round(MockOpeningSource(), random.Random(99))
    second = generate_round(MockOpeningSource(), random.Random(99))
    assert first == second


def test_generate_round_prefers_unlistened():
    source = MockOpeningSource()
    for opening in MOCK_OPENINGS[1:]:
        source.mark_as_listened(opening.id)
    for seed in range(10):
        assert generate_round(source, random.Random(seed)).opening_id == MOCK_OPENINGS[0].id

    source.mark_as_listened(MOCK_OPENINGS[0].id)
    payload = generate_round(source, random.Random(1))
    assert payload.opening_id in {o.id for o in MOCK_OPENINGS}


def test_generate_round_without_openings():
    with pytest.raises(NotFoundError):
        generate_round(MockOpeningSource([]), random.Random(0))


def test_mock_source_tracks_listened_per_instance():
    source = MockOpeningSource()
    source.mark_as_listened('fmab-again')
    assert {o.id for o in source.get_all_openings() if o.listened} == {'fmab-again'}
    assert not any(o.listened for o in MOCK_OPENINGS)
    source.reset_all_as_unlistened()
    assert not any(o.listened for o in source.get_all_openings())


@pytest.mark.parametrize('title, expected', [
    ('Naruto Shippuden - Blue Bird', 'Naruto Shippuden'),
    ('Attack on Titan | Guren no Yumiya', 'Attack on Titan'),
    ('Death Note OP 1', 'Death Note'),
    ('Bleach Opening', 'Bleach'),
    ('Gurenge', 'Fallback Channel'),
])
def test_derive_anime_title(title, expected):
    assert derive_anime_title(title, 'Fallback Channel') == expected


def test_youtube_fetches_pages_and_writes_cache(tmp_path):
    session = FakeSession(PAGES)
    source = youtube(tmp_path, session)
    openings = source.get_all_openings()

    assert [o.id for o in openings] == ['vid1', 'vid3']
    assert openings[0].anime_title == 'Naruto Shippuden'
    assert openings[1].anime_title == 'Demon Slayer Official'
    assert openings[0].audio_url == 'https://www.youtube.com/embed/vid1'
    assert session.calls[1]['params']['pageToken'] == 'page-2'
    assert all(call['timeout'] == 3 for call in session.calls)

    cached = read_cache(str(tmp_path / 'openings.csv'))
    assert [(o.id, o.opening_title) for o in cached] == [('vid1', 'Naruto Shippuden - Blue Bird'), ('vid3', 'Gurenge')]

    # memory cache: no further requests
    source.get_all_openings()
    assert len(session.calls) == 2


def test_youtube_reads_existing_cache_and_persists_listened(tmp_path):
    youtube(tmp_path, FakeSession(PAGES)).get_all_openings()

    offline = youtube(tmp_path, FakeSession(error=requests.ConnectionError('offline')))
    assert [o.id for o in offline.get_all_openings()] == ['vid1', 'vid3']
    offline.mark_as_listened('vid3')
    assert {o.id for o in read_cache(str(tmp_path / 'openings.csv')) if o.listened} == {'vid3'}
    offline.reset_all_as_unlistened()
    assert not any(o.listened for o in read_cache(str(tmp_path / 'openings.csv')))


def test_youtube_failures_raise_source_error(tmp_path):
    with pytest.raises(OpeningSourceError):
        youtube(tmp_path, FakeSession(error=requests.Timeout('slow'))).get_all_openings()
    with pytest.raises(OpeningSourceError):
        youtube(tmp_path, FakeSession([FakeResponse({}, status=403)])).get_all_openings()
    with pytest.raises(OpeningSourceError):
        youtube(tmp_path, FakeSession([FakeResponse({'items': [snippet('Private video', 'x')]})])).get_all_openings()
    with pytest.raises(OpeningSourceError):
        YouTubeOpeningSource('PL123', None, str(tmp_path / 'o.csv'), session=FakeSession()).get_all_openings()


def test_fallback_serves_mock_openings(tmp_path):
    broken = youtube(tmp_path, FakeSession(error=requests.ConnectionError('down')))
    fallback = MockOpeningSource()
    source = FallbackOpeningSource(broken, fallback)
    assert [o.id for o in source.get_all_openings()] == [o.id for o in MOCK_OPENINGS]
    source.mark_as_listened('fmab-again')
    assert any(o.listened for o in fallback.get_all_openings())
    source.reset_all_as_unlistened()
    assert not any(o.listened for o in fallback.get_all_openings())


def test_fallback_prefers_primary():
    primary = MockOpeningSource([Opening(id='x', anime_title='X', opening_title='Ex', audio_url='u')])
    source = FallbackOpeningSource(primary, MockOpeningSource())
    assert [o.id for o in source.get_all_openings()] == ['x']


def test_build_opening_source(tmp_path):
    plain = build_opening_source({})
    assert isinstance(plain.primary, MockOpeningSource)
    configured = build_opening_source({
        'YOUTUBE_PLAYLIST_ID': 'PL1',
        'YOUTUBE_API_KEY': 'key',
        'OPENINGS_CACHE_CSV': str(tmp_path / 'o.csv'),
        'OPENING_FETCH_TIMEOUT_SEC': 2,
    })
    assert isinstance(configured.primary, YouTubeOpeningSource)
    assert configured.primary.timeout == 2


def test_undecodable_cache_is_refetched(tmp_path):
    (tmp_path / 'openings.csv').write_bytes(b'\xff\xfe\xfa garbage')
    source = youtube(tmp_path, FakeSession(PAGES))
    assert [o.id for o in source.get_all_openings()] == ['vid1', 'vid3']
    assert [o.id for o in read_cache(str(tmp_path / 'openings.csv'))] == ['vid1', 'vid3']


def test_undecodable_cache_offline_falls_back(tmp_path):
    (tmp_path / 'openings.csv').write_bytes(b'\xff\xfe\xfa garbage')
    with pytest.raises(OpeningSourceError):
        read_cache(str(tmp_path / 'openings.csv'))
    broken = youtube(tmp_path, FakeSession(error=requests.ConnectionError('down')))
    source = FallbackOpeningSource(broken, MockOpeningSource())
    assert [o.id for o in source.get_all_openings()] == [o.id for o in MOCK_OPENINGS]


@pytest.mark.parametrize('payload', [
    ['not', 'a', 'dict'],
    {'items': 'nope'},
    {'kind': 'youtube#playlistItemListResponse'},
])
def test_malformed_playlist_response(tmp_path, payload):
    with pytest.raises(OpeningSourceError):
        youtube(tmp_path, FakeSession([FakeResponse(payload)])).get_all_openings()
    source = FallbackOpeningSource(youtube(tmp_path, FakeSession([FakeResponse(payload)])), MockOpeningSource())
    assert [o.id for o in source.get_all_openings()] == [o.id for o in MOCK_OPENINGS]


def test_malformed_items_are_skipped(tmp_path):
    page = FakeResponse({'items': [
        'junk',
        {'snippet': 'junk'},
        {'snippet': {'title': 'Odd', 'resourceId': 'vidX'}},
        snippet('Gurenge', 'vid3'),
    ]})
    assert [o.id for o in youtube(tmp_path, FakeSession([page])).get_all_openings()] == ['vid3']


def test_cache_accepts_misspelled_title_header(tmp_path):
    path = tmp_path / 'openings.csv'
    path.write_text(
        'id,tittle,videoId,animeTitle,listened\n'
        'vid1,Naruto Shippuden - Blue Bird,vid1,,true\n'
        'vid3,Gurenge,vid3,Demon Slayer,false\n',
        encoding='utf-8',
    )
    cached = read_cache(str(path))
    assert [(o.id, o.opening_title, o.anime_title, o.listened) for o in cached] == [
        ('vid1', 'Naruto Shippuden - Blue Bird', 'Naruto Shippuden', True),
        ('vid3', 'Gurenge', 'Demon Slayer', False),
    ]
