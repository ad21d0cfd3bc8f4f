"""Opening sources: where playable openings come from and which were heard."""

from .generator import RoundPayload, generate_round
from .sources import (
    FallbackOpeningSource,
    MockOpeningSource,
    OpeningSource,
    YouTubeOpeningSource,
    build_opening_source,
)

__all__ = [
    'RoundPayload',
    'generate_round',
    'OpeningSource',
    'MockOpeningSource',
    'YouTubeOpeningSource',
    'FallbackOpeningSource',
    'build_opening_source',
]
