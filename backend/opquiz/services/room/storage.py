import csv
import logging
import os
from typing import List, Optional

from opquiz import db
from opquiz.models import Player, PlayerRecord

log = logging.getLogger(__name__)

PLAYER_FIELDS = ['id', 'name', 'score', 'correct', 'attempted']


def _to_int(value) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class PlayerRepository:
    """Durable mirror of the player directory.

    Implementations only provide ``read_all`` and ``write_all``; the helpers
    are read-modify-write over the whole set and must be called while the
    room lock is held.
    """

    def read_all(self) -> List[Player]:
        raise NotImplementedError

    def write_all(self, players: List[Player]) -> None:
        raise NotImplementedError

    def find(self, player_id: str) -> Optional[Player]:
        return next((p for p in self.read_all() if p.id == player_id), None)

    def upsert(self, player: Player) -> None:
        players = self.read_all()
        for idx, row in enumerate(players):
            if row.id == player.id:
                players[idx] = player
                break
        else:
            players.append(player)
        self.write_all(players)

    def delete(self, player_id: str) -> None:
        self.write_all([p for p in self.read_all() if p.id != player_id])


class CsvPlayerRepository(PlayerRepository):
    """Flat-file store, one quoted row per player, overwritten on every write."""

    def __init__(self, path: str):
        self.path = os.path.abspath(path)

    def read_all(self) -> List[Player]:
        try:
            with open(self.path, newline='', encoding='utf-8') as fh:
                reader = csv.DictReader(fh)
                if not reader.fieldnames or any(f not in reader.fieldnames for f in PLAYER_FIELDS):
                    return []
                return [
                    Player(
                        id=row['id'] or '',
                        name=row['name'] or '',
                        score=_to_int(row['score']),
                        correct=_to_int(row['correct']),
                        attempted=_to_int(row['attempted']),
                    )
                    for row in reader
                    if row.get('id')
                ]
        except FileNotFoundError:
            return []
        except (OSError, csv.Error) as exc:
            log.warning(f"[players-csv] unreadable {self.path}: {exc}")
            return []

    def write_all(self, players: List[Player]) -> None:
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        with open(self.path, 'w', newline='', encoding='utf-8') as fh:
            writer = csv.writer(fh, quoting=csv.QUOTE_ALL, lineterminator='\n')
            writer.writerow(PLAYER_FIELDS)
            for p in players:
                writer.writerow([p.id, p.name, p.score, p.correct, p.attempted])


class SqlPlayerRepository(PlayerRepository):
    """Player rows in the Flask-SQLAlchemy ``player`` table.

    Needs an application context.
    """

    def read_all(self) -> List[Player]:
        return [record.to_player() for record in PlayerRecord.query.order_by(PlayerRecord.name).all()]

    def write_all(self, players: List[Player]) -> None:
        try:
            PlayerRecord.query.delete()
            for p in players:
                db.session.add(PlayerRecord.from_player(p))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def find(self, player_id: str) -> Optional[Player]:
        record = db.session.get(PlayerRecord, player_id)
        return record.to_player() if record else None

    def upsert(self, player: Player) -> None:
        try:
            db.session.merge(PlayerRecord.from_player(player))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def delete(self, player_id: str) -> None:
        try:
            PlayerRecord.query.filter_by(id=player_id).delete()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise


def build_player_repository(config) -> PlayerRepository:
    store = (config.get('PLAYER_STORE') or 'csv').lower()
    if store == 'sql':
        return SqlPlayerRepository()
    if store != 'csv':
        raise ValueError(f"Unknown PLAYER_STORE {store!r}; expected 'csv' or 'sql'")
    return CsvPlayerRepository(config.get('PLAYERS_SCORE_CSV') or os.path.join('data', 'players-score.csv'))
