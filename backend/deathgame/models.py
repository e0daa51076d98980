import random
import string

ROOM_CODE_LENGTH = 6
MAX_NAME_LENGTH = 32

# Game phases
WAITING = 'waiting'
PLAYING = 'playing'
ROUND_END = 'round_end'
FINISHED = 'finished'


class Player:
    """A participant, keyed by its Socket.IO session id."""

    def __init__(self, player_id, name):
        self.id = player_id
        self.name = name
        self.points = 0
        self.is_alive = True
        # Last submitted value; the round's submission map is authoritative
        self.number = None

    def eliminate(self):
        self.is_alive = False

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'points': self.points,
            'isAlive': self.is_alive,
            'number': self.number,
        }

    def __repr__(self):
        return f'<Player {self.id} {self.name!r} points={self.points} alive={self.is_alive}>'


class WaitingRoom:
    def __init__(self, code, host_id):
        self.code = code
        self.host_id = host_id
        self.players = {}

    def to_dict(self):
        return {
            'room_code': self.code,
            'host': self.host_id,
            'status': WAITING,
            'players': [p.to_dict() for p in self.players.values()],
        }


def clean_player_name(name):
    if not isinstance(name, str):
        return None
    name = name.strip()[:MAX_NAME_LENGTH]
    return name or None


def generate_room_code(length=ROOM_CODE_LENGTH):
    """Generate a short uppercase alphanumeric room code."""
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
