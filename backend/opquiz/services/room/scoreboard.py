from typing import List, Optional

from .storage import PlayerRepository


def build_scoreboard(repository: PlayerRepository) -> List[dict]:
    """Rank stored players: score desc, correct desc, then name."""
    entries = [player.to_score_entry() for player in repository.read_all()]
    entries.sort(key=lambda e: (-e['score'], -e['correct'], e['name'].casefold(), e['name']))
    return entries


def name_for(scoreboard: List[dict], player_id: Optional[str]) -> Optional[str]:
    if not player_id:
        return None
    return next((entry['name'] for entry in scoreboard if entry['playerId'] == player_id), None)
