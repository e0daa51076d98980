import os


def _env_flag(name, default):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of origins allowed for HTTP and Socket.IO
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get('CORS_ORIGINS', 'http://localhost:3000').split(',') if o.strip()
    ]
    # Players needed before a waiting room turns into a game
    QUORUM = int(os.environ.get('QUORUM', '5'))
    # Round allowances (seconds)
    LONG_ROUND_SEC = int(os.environ.get('LONG_ROUND_SEC', '300'))
    SHORT_ROUND_SEC = int(os.environ.get('SHORT_ROUND_SEC', '60'))
    # Pause between a round's results and the next round
    NEXT_ROUND_DELAY_SEC = int(os.environ.get('NEXT_ROUND_DELAY_SEC', '10'))
    # Force-resolve a round once its allowance (plus grace) has elapsed
    ENFORCE_ROUND_TIME_LIMIT = _env_flag('ENFORCE_ROUND_TIME_LIMIT', 'true')
    ROUND_GRACE_SEC = float(os.environ.get('ROUND_GRACE_SEC', '2'))
    ELIMINATION_THRESHOLD = int(os.environ.get('ELIMINATION_THRESHOLD', '-10'))
    MIN_NUMBER = int(os.environ.get('MIN_NUMBER', '0'))
    MAX_NUMBER = int(os.environ.get('MAX_NUMBER', '100'))
    # What happens to a player who drops mid-game: 'forfeit' or 'ignore'
    DISCONNECT_POLICY = os.environ.get('DISCONNECT_POLICY', 'forfeit')
