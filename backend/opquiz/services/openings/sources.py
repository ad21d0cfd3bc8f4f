import logging
from dataclasses import replace
from typing import List, Optional

import requests

from opquiz.errors import OpeningSourceError
from opquiz.models import Opening
from .cache import EMBED_URL, derive_anime_title, read_cache, write_cache
from .mock_data import MOCK_OPENINGS

log = logging.getLogger(__name__)

PLAYLIST_ITEMS_URL = 'https://www.googleapis.com/youtube/v3/playlistItems'
UNPLAYABLE_TITLES = {'Deleted video', 'Private video'}


class OpeningSource:
    """Collaborator the room uses to get playable openings."""

    def get_all_openings(self) -> List[Opening]:
        raise NotImplementedError

    def mark_as_listened(self, opening_id: str) -> None:
        raise NotImplementedError

    def reset_all_as_unlistened(self) -> None:
        raise NotImplementedError


class MockOpeningSource(OpeningSource):
    """Static catalogue; listened flags live in memory only."""

    def __init__(self, openings: Optional[List[Opening]] = None):
        self._openings = [replace(o) for o in (openings if openings is not None else MOCK_OPENINGS)]

    def get_all_openings(self) -> List[Opening]:
        return list(self._openings)

    def mark_as_listened(self, opening_id: str) -> None:
        for opening in self._openings:
            if opening.id == opening_id:
                opening.listened = True

    def reset_all_as_unlistened(self) -> None:
        for opening in self._openings:
            opening.listened = False


class YouTubeOpeningSource(OpeningSource):
    """Openings from a YouTube playlist, cached in a CSV file.

    The first call reads the cache file; if there is none it pages through the
    playlist API and writes one. Listened flags are persisted in the cache.
    """

    def __init__(self, playlist_id: str, api_key: str, cache_path: str,
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.playlist_id = playlist_id
        self.api_key = api_key
        self.cache_path = cache_path
        self.timeout = timeout
        self.session = session or requests.Session()
        self._memory: Optional[List[Opening]] = None

    def get_all_openings(self) -> List[Opening]:
        if self._memory is not None:
            return list(self._memory)
        try:
            cached = read_cache(self.cache_path)
        except FileNotFoundError:
            cached = []
        except (OpeningSourceError, OSError) as exc:
            log.warning(f"[openings-cache] ignoring cache: {exc}")
            cached = []
        if cached:
            self._memory = cached
            return list(cached)

        fetched = self._fetch_playlist()
        write_cache(self.cache_path, fetched)
        self._memory = fetched
        log.info(f"[openings-fetch] playlist={self.playlist_id} openings={len(fetched)}")
        return list(fetched)

    def mark_as_listened(self, opening_id: str) -> None:
        openings = self.get_all_openings()
        for opening in openings:
            if opening.id == opening_id:
                opening.listened = True
        write_cache(self.cache_path, openings)

    def reset_all_as_unlistened(self) -> None:
        openings = self.get_all_openings()
        for opening in openings:
            opening.listened = False
        write_cache(self.cache_path, openings)

    def _fetch_playlist(self) -> List[Opening]:
        if not self.playlist_id:
            raise OpeningSourceError('Missing YOUTUBE_PLAYLIST_ID')
        if not self.api_key:
            raise OpeningSourceError('Missing YOUTUBE_API_KEY')

        openings: List[Opening] = []
        page_token = None
        while True:
            params = {
                'part': 'snippet',
                'maxResults': '50',
                'playlistId': self.playlist_id,
                'key': self.api_key,
            }
            if page_token:
                params['pageToken'] = page_token
            try:
                response = self.session.get(PLAYLIST_ITEMS_URL, params=params, timeout=self.timeout)
                response.raise_for_status()
                payload = response.json()
            except (requests.RequestException, ValueError) as exc:
                raise OpeningSourceError(f"YouTube playlist request failed: {exc}") from exc

            items = payload.get('items') if isinstance(payload, dict) else None
            if not isinstance(items, list):
                raise OpeningSourceError('YouTube playlist response has no item list')
            for item in items:
                snippet = item.get('snippet') if isinstance(item, dict) else None
                opening = self._to_opening(snippet) if isinstance(snippet, dict) else None
                if opening is not None:
                    openings.append(opening)
            page_token = payload.get('nextPageToken')
            if not page_token:
                break

        if not openings:
            raise OpeningSourceError('YouTube playlist has no playable items')
        return openings

    @staticmethod
    def _to_opening(snippet: dict) -> Optional[Opening]:
        title = snippet.get('title') or ''
        resource = snippet.get('resourceId')
        video_id = resource.get('videoId') if isinstance(resource, dict) else None
        if not video_id or title in UNPLAYABLE_TITLES:
            return None
        channel = snippet.get('videoOwnerChannelTitle') or 'Unknown Channel'
        return Opening(
            id=video_id,
            anime_title=derive_anime_title(title, channel),
            opening_title=title,
            audio_url=EMBED_URL.format(video_id=video_id),
        )


class FallbackOpeningSource(OpeningSource):
    """Tries the primary source and degrades to the fallback on any failure."""

    def __init__(self, primary: OpeningSource, fallback: OpeningSource):
        self.primary = primary
        self.fallback = fallback

    def get_all_openings(self) -> List[Opening]:
        try:
            return self.primary.get_all_openings()
        except Exception as exc:
            log.warning(f"[opening-fallback] get_all_openings: {exc}")
            return self.fallback.get_all_openings()

    def mark_as_listened(self, opening_id: str) -> None:
        try:
            self.primary.mark_as_listened(opening_id)
        except Exception as exc:
            log.warning(f"[opening-fallback] mark_as_listened {opening_id}: {exc}")
            self.fallback.mark_as_listened(opening_id)

    def reset_all_as_unlistened(self) -> None:
        try:
            self.primary.reset_all_as_unlistened()
        except Exception as exc:
            log.warning(f"[opening-fallback] reset_all_as_unlistened: {exc}")
            self.fallback.reset_all_as_unlistened()


def build_opening_source(config) -> OpeningSource:
    playlist_id = config.get('YOUTUBE_PLAYLIST_ID')
    if playlist_id:
        primary = YouTubeOpeningSource(
            playlist_id=playlist_id,
            api_key=config.get('YOUTUBE_API_KEY'),
            cache_path=config.get('OPENINGS_CACHE_CSV'),
            timeout=float(config.get('OPENING_FETCH_TIMEOUT_SEC', 10)),
        )
    else:
        primary = MockOpeningSource()
    return FallbackOpeningSource(primary, MockOpeningSource())
