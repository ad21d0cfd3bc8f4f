import os
import random
import sys
import pytest

# Ensure the backend root (containing the `opquiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from opquiz import create_app
from opquiz.models import Player
from opquiz.services.room.storage import PlayerRepository


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class MemoryPlayerRepository(PlayerRepository):
    def __init__(self):
        self.rows = []
        self.writes = 0

    def read_all(self):
        return [Player(**vars(p)) for p in self.rows]

    def write_all(self, players):
        self.writes += 1
        self.rows = [Player(**vars(p)) for p in players]


def make_config(tmp_path, **overrides):
    attrs = {
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'PLAYER_STORE': 'csv',
        'PLAYERS_SCORE_CSV': str(tmp_path / 'players-score.csv'),
        'OPENINGS_CACHE_CSV': str(tmp_path / 'openings.csv'),
        'YOUTUBE_PLAYLIST_ID': None,
        'YOUTUBE_API_KEY': None,
        'ROOM_PASSWORD': None,
        'ROOM_IDLE_MINUTES': 20,
        'REAPER_TICK_SEC': 60,
        'CORS_ORIGINS': ['*'],
    }
    attrs.update(overrides)
    return type('TestConfig', (), attrs)


def build_app(config_class, clock):
    application = create_app(config_class)
    controller = application.extensions['quiz_room']
    controller.state.clock = clock
    controller.state.rng = random.Random(7)
    controller.touch()
    return application


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def flask_app(tmp_path, clock):
    application = build_app(make_config(tmp_path), clock)
    with application.app_context():
        yield application


@pytest.fixture()
def sql_app(tmp_path, clock):
    application = build_app(make_config(tmp_path, PLAYER_STORE='sql'), clock)
    with application.app_context():
        yield application
        from opquiz import db
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def room(flask_app):
    return flask_app.extensions['quiz_room']


@pytest.fixture()
def memory_repo():
    return MemoryPlayerRepository()


def join(client, name, **extra):
    res = client.post('/api/room/join', json={'name': name, **extra})
    assert res.status_code == 200, res.get_json()
    return res.get_json()
