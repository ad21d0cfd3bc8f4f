from dataclasses import dataclass, replace

from opquiz import db


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    correct: int = 0
    attempted: int = 0

    def zeroed(self) -> 'Player':
        return replace(self, score=0, correct=0, attempted=0)

    def to_score_entry(self):
        return {
            'playerId': self.id,
            'name': self.name,
            'score': self.score,
            'correct': self.correct,
            'attempted': self.attempted,
        }


@dataclass
class Opening:
    id: str
    anime_title: str
    opening_title: str
    audio_url: str
    listened: bool = False

    def to_dict(self):
        return {
            'id': self.id,
            'animeTitle': self.anime_title,
            'openingTitle': self.opening_title,
            'audioUrl': self.audio_url,
            'listened': self.listened,
        }


class PlayerRecord(db.Model):
    """Durable player row used when PLAYER_STORE is 'sql'."""
    __tablename__ = 'player'
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    correct = db.Column(db.Integer, nullable=False, default=0)
    attempted = db.Column(db.Integer, nullable=False, default=0)

    def to_player(self) -> Player:
        return Player(
            id=self.id,
            name=self.name,
            score=self.score or 0,
            correct=self.correct or 0,
            attempted=self.attempted or 0,
        )

    @classmethod
    def from_player(cls, player: Player) -> 'PlayerRecord':
        return cls(
            id=player.id,
            name=player.name,
            score=player.score,
            correct=player.correct,
            attempted=player.attempted,
        )
