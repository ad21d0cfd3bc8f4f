import csv
import os
import re
from typing import List

from opquiz.errors import OpeningSourceError
from opquiz.models import Opening

CACHE_FIELDS = ['id', 'title', 'videoId', 'animeTitle', 'listened']
TITLE_FIELDS = ('title', 'tittle')
EMBED_URL = 'https://www.youtube.com/embed/{video_id}'
TITLE_SEPARATORS = (' - ', ' | ', ' / ', ' — ')
OP_SUFFIX = re.compile(r'^(.+?)\s+(?:OP|Opening)\s*\d*$', re.IGNORECASE)


def derive_anime_title(video_title: str, fallback: str) -> str:
    """Best-effort anime name from a playlist video title."""
    for separator in TITLE_SEPARATORS:
        if separator in video_title:
            return video_title.split(separator)[0].strip()
    match = OP_SUFFIX.match(video_title)
    if match:
        return match.group(1).strip()
    return fallback


def read_cache(path: str) -> List[Opening]:
    """Load cached openings.

    Raises FileNotFoundError when there is no cache yet and OpeningSourceError
    when the file cannot be decoded or parsed.
    """
    try:
        return _read_rows(path)
    except (UnicodeDecodeError, csv.Error) as exc:
        raise OpeningSourceError(f"Unreadable openings cache {path}: {exc}") from exc


def _read_rows(path: str) -> List[Opening]:
    with open(path, newline='', encoding='utf-8') as fh:
        reader = csv.DictReader(fh)
        fields = reader.fieldnames or []
        # older cache files spell the title column "tittle"
        title_field = next((f for f in TITLE_FIELDS if f in fields), None)
        if title_field is None or not all(f in fields for f in ('id', 'videoId')):
            raise OpeningSourceError(f"Invalid openings cache header in {path}; expected id,title,videoId")
        openings = []
        for row in reader:
            if not row.get('id') or not row.get('videoId'):
                continue
            title = row.get(title_field) or ''
            openings.append(Opening(
                id=row['id'],
                anime_title=row.get('animeTitle') or derive_anime_title(title, 'Unknown Channel'),
                opening_title=title,
                audio_url=EMBED_URL.format(video_id=row['videoId']),
                listened=(row.get('listened') or '').strip().lower() in ('1', 'true', 'yes'),
            ))
        return openings


def write_cache(path: str, openings: List[Opening]) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, 'w', newline='', encoding='utf-8') as fh:
        writer = csv.writer(fh, quoting=csv.QUOTE_ALL, lineterminator='\n')
        writer.writerow(CACHE_FIELDS)
        for o in openings:
            writer.writerow([
                o.id,
                o.opening_title,
                o.id,
                o.anime_title,
                'true' if o.listened else 'false',
            ])
