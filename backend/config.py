import os


def _origins(raw):
    return [origin.strip() for origin in raw.split(',') if origin.strip()]


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///quiz.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Shared room password; empty disables the check
    ROOM_PASSWORD = (os.environ.get('ROOM_PASSWORD') or '').strip() or None
    # Idle reaper (minutes of inactivity before wiping the room, tick in seconds)
    ROOM_IDLE_MINUTES = float(os.environ.get('ROOM_IDLE_MINUTES', '20'))
    REAPER_TICK_SEC = int(os.environ.get('REAPER_TICK_SEC', '60'))
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '8787'))
    # Player score storage: 'csv' (flat file) or 'sql' (SQLALCHEMY_DATABASE_URI)
    PLAYER_STORE = os.environ.get('PLAYER_STORE', 'csv').lower()
    PLAYERS_SCORE_CSV = os.environ.get('PLAYERS_SCORE_CSV') or os.path.join('data', 'players-score.csv')
    # Opening source
    OPENINGS_CACHE_CSV = os.environ.get('YOUTUBE_CACHE_CSV') or os.path.join('data', 'openings.csv')
    YOUTUBE_PLAYLIST_ID = (os.environ.get('YOUTUBE_PLAYLIST_ID') or '').strip() or None
    YOUTUBE_API_KEY = (os.environ.get('YOUTUBE_API_KEY') or '').strip() or None
    OPENING_FETCH_TIMEOUT_SEC = float(os.environ.get('OPENING_FETCH_TIMEOUT_SEC', '10'))
    CORS_ORIGINS = _origins(os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:5173,http://127.0.0.1:5173',
    ))
