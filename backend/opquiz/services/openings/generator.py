import random
from dataclasses import dataclass
from typing import List

from opquiz.errors import NotFoundError


@dataclass
class RoundPayload:
    opening_id: str
    audio_url: str
    options: List[dict]
    correct_title: str


def generate_round(source, rng: random.Random) -> RoundPayload:
    """Pick the opening to play and shuffle every known title into the options.

    Unheard openings are preferred; once every opening was heard the whole
    catalogue is eligible again.
    """
    openings = source.get_all_openings()
    if not openings:
        raise NotFoundError('No openings available')

    candidates = [o for o in openings if not o.listened] or openings
    chosen = rng.choice(candidates)
    options = [{'id': o.id, 'title': o.opening_title} for o in openings]
    rng.shuffle(options)
    return RoundPayload(
        opening_id=chosen.id,
        audio_url=chosen.audio_url,
        options=options,
        correct_title=chosen.opening_title,
    )
