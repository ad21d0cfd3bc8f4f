import random
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from opquiz.models import Player


@dataclass
class Round:
    opening_id: str
    audio_url: str
    options: List[dict]
    correct_title: str
    duration_seconds: int
    started_at: float
    participant_ids: Set[str] = field(default_factory=set)
    answered_ids: Set[str] = field(default_factory=set)
    winner_id: Optional[str] = None
    # Set once a winner is picked; stays set if the winner later leaves
    solved: bool = False

    @property
    def ends_at(self) -> float:
        return self.started_at + self.duration_seconds

    def is_expired(self, now: float) -> bool:
        return now >= self.ends_at

    def is_resolved(self, now: float) -> bool:
        return (
            self.solved
            or bool(self.winner_id)
            or len(self.answered_ids) >= len(self.participant_ids)
            or self.is_expired(now)
        )

    def forget(self, player_id: str) -> None:
        self.participant_ids.discard(player_id)
        self.answered_ids.discard(player_id)
        if self.winner_id == player_id:
            self.winner_id = None


@dataclass
class RoomState:
    """The single shared room.

    Created once by the application factory and torn down with the process.
    Every read-then-mutate sequence on it must hold ``lock``.
    """
    rng: random.Random = field(default_factory=random.Random)
    clock: Callable[[], float] = time.time
    players: Dict[str, Player] = field(default_factory=dict)
    current_round: Optional[Round] = None
    round_number: int = 0
    next_round_owner_id: Optional[str] = None
    lock: threading.RLock = field(default_factory=threading.RLock)

    def now(self) -> float:
        return self.clock()
