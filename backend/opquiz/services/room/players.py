import logging
import uuid
from dataclasses import replace
from typing import Optional

from opquiz.errors import AuthError, ValidationError
from opquiz.models import Player
from .state import RoomState
from .storage import PlayerRepository

log = logging.getLogger(__name__)


class PlayerDirectory:
    """Live players of the room, written through to the repository."""

    def __init__(self, state: RoomState, repository: PlayerRepository, password: Optional[str] = None):
        self.state = state
        self.repository = repository
        self.password = password

    def join(self, name, password=None) -> Player:
        if self.password and (password or '').strip() != self.password:
            raise AuthError('Invalid room password')
        clean_name = (name or '').strip()
        if not clean_name:
            raise ValidationError('Name is required')

        player = Player(id=uuid.uuid4().hex, name=clean_name)
        while player.id in self.state.players:
            player.id = uuid.uuid4().hex
        self.repository.upsert(player)
        self.state.players[player.id] = player
        if not self.state.next_round_owner_id:
            self.state.next_round_owner_id = player.id
        log.info(f"[join] player={player.id} name={player.name!r} present={len(self.state.players)}")
        return player

    def resolve(self, player_id) -> Optional[Player]:
        if not player_id:
            return None
        active = self.state.players.get(player_id)
        if active:
            return active
        persisted = self.repository.find(player_id)
        if persisted is None:
            return None
        self.state.players[player_id] = persisted
        log.info(f"[hydrate] player={player_id} restored from storage")
        return persisted

    def update_after_answer(self, player_id: str, correct: bool) -> Player:
        current = self.state.players[player_id]
        updated = replace(
            current,
            attempted=current.attempted + 1,
            correct=current.correct + (1 if correct else 0),
            score=current.score + (1 if correct else 0),
        )
        self.repository.upsert(updated)
        self.state.players[player_id] = updated
        return updated

    def reset_all(self) -> None:
        self.repository.write_all([p.zeroed() for p in self.repository.read_all()])
        for player_id, player in list(self.state.players.items()):
            self.state.players[player_id] = player.zeroed()
        log.info(f"[reset-scores] players={len(self.state.players)}")

    def remove(self, player_id: str) -> None:
        self.repository.delete(player_id)
        self.state.players.pop(player_id, None)
        if self.state.current_round is not None:
            self.state.current_round.forget(player_id)
        if self.state.next_round_owner_id == player_id:
            self.state.next_round_owner_id = None
            self.ensure_next_round_owner()

    def wipe(self) -> None:
        self.repository.write_all([])
        self.state.players.clear()
        self.state.next_round_owner_id = None

    def ensure_next_round_owner(self) -> Optional[str]:
        owner_id = self.state.next_round_owner_id
        if owner_id and owner_id in self.state.players:
            return owner_id
        present = list(self.state.players)
        if not present:
            self.state.next_round_owner_id = None
            return None
        self.state.next_round_owner_id = self.state.rng.choice(present)
        log.info(f"[owner] picked player={self.state.next_round_owner_id}")
        return self.state.next_round_owner_id
