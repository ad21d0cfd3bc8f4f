import logging
from typing import Optional

from opquiz.errors import ConflictError, ValidationError
from .players import PlayerDirectory
from .state import RoomState, Round

log = logging.getLogger(__name__)

ALLOWED_DURATIONS = (5, 10, 20)
DEFAULT_DURATION = 10


def resolve_duration(value=None) -> int:
    if value is None:
        return DEFAULT_DURATION
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, bool) or value not in ALLOWED_DURATIONS:
        raise ValidationError('Round duration must be one of: 5, 10, 20 seconds')
    return int(value)


class RoundLifecycle:
    """Owns the room's single round: Pending -> Active -> Resolved.

    A resolved round stays in place (so clients can still render its reveal)
    until the next ``start`` replaces it.
    """

    def __init__(self, state: RoomState, directory: PlayerDirectory):
        self.state = state
        self.directory = directory

    @property
    def current(self) -> Optional[Round]:
        return self.state.current_round

    def is_expired(self) -> bool:
        return self.current is not None and self.current.is_expired(self.state.now())

    def is_resolved(self) -> bool:
        if self.current is None:
            return True
        return self.current.is_resolved(self.state.now())

    def start(self, payload, requested_duration=None) -> Round:
        duration = resolve_duration(requested_duration)
        if not self.is_resolved():
            raise ConflictError('Current opening is still active')
        participants = set(self.state.players)
        if not participants:
            raise ConflictError('No players available to start a round')

        new_round = Round(
            opening_id=payload.opening_id,
            audio_url=payload.audio_url,
            options=list(payload.options),
            correct_title=payload.correct_title,
            duration_seconds=duration,
            started_at=self.state.now(),
            participant_ids=participants,
        )
        self.state.current_round = new_round
        self.state.round_number += 1
        log.info(
            f"[round-start] round={self.state.round_number} opening={new_round.opening_id} "
            f"duration={duration}s participants={len(participants)}"
        )
        return new_round

    def submit_answer(self, player_id: str, answer_title) -> bool:
        current = self.current
        if current is None:
            raise ValidationError('No active round')
        if player_id not in current.participant_ids:
            raise ConflictError('You joined after this opening started. Wait for the next one')
        now = self.state.now()
        if current.is_expired(now):
            raise ConflictError('Time is up for this opening')
        if current.is_resolved(now):
            raise ConflictError('Opening already solved. Wait for the next one')
        answer = answer_title.strip() if isinstance(answer_title, str) else ''
        if not answer:
            raise ValidationError('Answer title is required')
        if player_id in current.answered_ids:
            raise ConflictError('Player already answered this round')

        is_correct = answer == current.correct_title
        self.directory.update_after_answer(player_id, is_correct)
        current.answered_ids.add(player_id)
        if is_correct and not current.winner_id:
            current.winner_id = player_id
            current.solved = True
            self.state.next_round_owner_id = player_id
            log.info(f"[round-won] round={self.state.round_number} winner={player_id}")
        return is_correct

    def drop_player(self, player_id: str) -> None:
        if self.current is not None:
            self.current.forget(player_id)

    def clear_players(self) -> None:
        if self.current is None:
            return
        self.current.participant_ids.clear()
        self.current.answered_ids.clear()
        self.current.winner_id = None

    def public_round(self) -> Optional[dict]:
        if self.current is None:
            return None
        return {
            'openingId': self.current.opening_id,
            'audioUrl': self.current.audio_url,
            'options': [dict(option) for option in self.current.options],
        }

    def snapshot(self) -> Optional[dict]:
        payload = self.public_round()
        if payload is None:
            return None
        payload['roundDurationSeconds'] = self.current.duration_seconds
        payload['roundEndsAt'] = int(round(self.current.ends_at * 1000))
        return payload
