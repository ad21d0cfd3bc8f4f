import logging
from typing import Optional

from opquiz.errors import ConflictError, NotFoundError
from opquiz.services.openings import generate_round
from .players import PlayerDirectory
from .rounds import RoundLifecycle, resolve_duration
from .scoreboard import build_scoreboard, name_for
from .state import RoomState
from .storage import PlayerRepository

log = logging.getLogger(__name__)

ROOM_ID = 'main-room'


class RoomController:
    """Entry point for every room operation.

    Each public method runs under the room lock, validates everything first and
    only then mutates, so a rejected call leaves the room untouched.
    """

    def __init__(self, state: RoomState, repository: PlayerRepository, opening_source,
                 password: Optional[str] = None):
        self.state = state
        self.repository = repository
        self.opening_source = opening_source
        self.directory = PlayerDirectory(state, repository, password=password)
        self.rounds = RoundLifecycle(state, self.directory)
        self._last_activity = state.now()

    # Idle clock

    def touch(self) -> None:
        with self.state.lock:
            self._last_activity = self.state.now()

    def idle_for(self) -> float:
        with self.state.lock:
            return self.state.now() - self._last_activity

    # Operations

    def join(self, name, password=None) -> dict:
        with self.state.lock:
            player = self.directory.join(name, password)
        return {'roomId': ROOM_ID, 'playerId': player.id, 'name': player.name}

    def get_state(self, player_id: Optional[str] = None) -> dict:
        with self.state.lock:
            if player_id and self.directory.resolve(player_id) is None:
                raise NotFoundError('Player not found')

            owner_id = self.directory.ensure_next_round_owner()
            scoreboard = build_scoreboard(self.repository)
            current = self.rounds.current
            resolved = self.rounds.is_resolved()
            return {
                'roomId': ROOM_ID,
                'roundNumber': self.state.round_number,
                'round': self.rounds.snapshot(),
                'hasAnswered': bool(player_id) and current is not None and player_id in current.answered_ids,
                'roundResolved': resolved,
                'roundWinnerName': name_for(scoreboard, current.winner_id if current else None),
                'canStartNextRound': bool(player_id) and player_id == owner_id and resolved,
                'nextRoundOwnerName': name_for(scoreboard, owner_id),
                'scoreboard': scoreboard,
            }

    def next_round(self, player_id, requested_duration=None) -> dict:
        with self.state.lock:
            if self.directory.resolve(player_id) is None:
                raise NotFoundError('Player not found')
            owner_id = self.directory.ensure_next_round_owner()
            if not owner_id:
                raise ConflictError('No players available to choose the next opening')
            if owner_id != player_id:
                raise ConflictError('Only the selected player can start the next opening')
            if not self.rounds.is_resolved():
                raise ConflictError('Current opening is still active')
            duration = resolve_duration(requested_duration)

            payload = generate_round(self.opening_source, self.state.rng)
            self.rounds.start(payload, duration)
            return {
                'roundNumber': self.state.round_number,
                'round': self.rounds.public_round(),
            }

    def answer(self, player_id, answer_title) -> dict:
        if not player_id:
            raise NotFoundError('Player not found')
        with self.state.lock:
            if self.directory.resolve(player_id) is None:
                raise NotFoundError('Player not found')
            correct = self.rounds.submit_answer(player_id, answer_title)
            current = self.rounds.current
            result = {
                'correct': correct,
                'correctOpeningTitle': current.correct_title,
                'openingId': current.opening_id,
                'scoreboard': build_scoreboard(self.repository),
            }
            if correct:
                self.opening_source.mark_as_listened(current.opening_id)
        return result

    def reset_scores(self, player_id) -> list:
        with self.state.lock:
            if self.directory.resolve(player_id) is None:
                raise NotFoundError('Player not found')
            self.directory.reset_all()
            return build_scoreboard(self.repository)

    def leave(self, player_id) -> None:
        if not player_id:
            raise NotFoundError('Player not found')
        with self.state.lock:
            self.directory.remove(player_id)
        log.info(f"[leave] player={player_id} present={len(self.state.players)}")

    def wipe(self) -> None:
        """Forget every player and every listened flag."""
        with self.state.lock:
            self.directory.wipe()
            self.rounds.clear_players()
            self.opening_source.reset_all_as_unlistened()
            self.touch()
        log.info('[wipe] room cleared')

    def wipe_if_idle(self, idle_seconds: float) -> bool:
        """Wipe the room when it has been idle for ``idle_seconds``.

        The idle check and the wipe happen under one lock hold, so a request
        that lands while the reaper waits for the lock keeps the room alive.
        """
        with self.state.lock:
            idle = self.idle_for()
            if idle < idle_seconds:
                return False
            log.info(f"[reap] idle for {int(idle)}s, clearing room")
            self.wipe()
            return True
