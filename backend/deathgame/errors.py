"""Game errors surfaced to the requesting client as ``error {message}``."""


class DeathGameError(Exception):
    """Base class for every error a client can cause."""

    message = 'Request failed'

    def __init__(self, message=None):
        super().__init__(message or self.message)

    @property
    def client_message(self):
        return str(self)


class RoomNotFound(DeathGameError):
    message = 'Room not found'

    def __init__(self, room_code=None):
        self.room_code = room_code
        super().__init__()


class RoomFull(DeathGameError):
    message = 'Room is full'

    def __init__(self, room_code=None):
        self.room_code = room_code
        super().__init__()


class AlreadyInRoom(DeathGameError):
    """The connection already sits in a waiting room or a running game."""

    message = 'Already in a room'

    def __init__(self, room_code=None):
        self.room_code = room_code
        super().__init__()


class InvalidSubmission(DeathGameError):
    """Submitted number is missing, not numeric or out of range."""

    message = 'Invalid number'
