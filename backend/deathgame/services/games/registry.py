import logging
import threading
from typing import Dict, Optional, Tuple

from deathgame.errors import AlreadyInRoom, RoomFull, RoomNotFound
from deathgame.models import Player, WaitingRoom, generate_room_code
from .session import GameSession

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Process-wide waiting rooms and active games.

    A player lives in exactly one container: its waiting room until quorum,
    then the game session built from that room. ``_player_rooms`` only maps
    connection ids to room codes.

    Socket.IO handlers and timer callbacks may run on different threads, so
    callers hold ``lock`` around any read-modify-write of rooms or sessions.
    """

    def __init__(self, quorum=5):
        self.quorum = quorum
        self.lock = threading.RLock()
        self.waiting_rooms: Dict[str, WaitingRoom] = {}
        self.games: Dict[str, GameSession] = {}
        self._player_rooms: Dict[str, str] = {}

    def configure(self, config) -> None:
        self.quorum = int(config.get('QUORUM', self.quorum))

    def reset(self) -> None:
        with self.lock:
            self.waiting_rooms.clear()
            self.games.clear()
            self._player_rooms.clear()

    def _new_code(self) -> str:
        code = generate_room_code()
        while code in self.waiting_rooms or code in self.games:
            logger.warning(f"Room code collision detected, regenerating: {code}")
            code = generate_room_code()
        return code

    def _ensure_unplaced(self, player_id) -> None:
        current = self._player_rooms.get(player_id)
        if current is not None:
            raise AlreadyInRoom(current)

    def create_room(self, player_id, name) -> Tuple[str, Player]:
        with self.lock:
            self._ensure_unplaced(player_id)
            code = self._new_code()
            room = WaitingRoom(code, host_id=player_id)
            player = Player(player_id, name)
            room.players[player_id] = player
            self.waiting_rooms[code] = room
            self._player_rooms[player_id] = code
            logger.info(f"[room-created] room={code} host={player_id}")
            return code, player

    def join_room(self, room_code, player_id, name, session_factory=None):
        """Add a player to a waiting room.

        Returns ``(room, player, session)``; ``session`` is the new
        GameSession when this join filled the room, else None.
        """
        with self.lock:
            code = (room_code or '').upper()
            room = self.waiting_rooms.get(code)
            if room is None:
                raise RoomNotFound(room_code)
            if len(room.players) >= self.quorum:
                raise RoomFull(code)
            self._ensure_unplaced(player_id)

            player = Player(player_id, name)
            room.players[player_id] = player
            self._player_rooms[player_id] = code
            logger.info(f"[room-joined] room={code} player={player_id} count={len(room.players)}/{self.quorum}")

            session = None
            if len(room.players) == self.quorum:
                factory = session_factory or GameSession
                session = factory(code, room.players)
                self.games[code] = session
                del self.waiting_rooms[code]
                logger.info(f"[game-created] room={code} players={list(room.players)}")
            return room, player, session

    def get_room(self, room_code) -> Optional[WaitingRoom]:
        return self.waiting_rooms.get((room_code or '').upper())

    def get_game(self, room_code) -> Optional[GameSession]:
        return self.games.get((room_code or '').upper())

    def room_code_for(self, player_id) -> Optional[str]:
        return self._player_rooms.get(player_id)

    def discard_game(self, room_code) -> Optional[GameSession]:
        with self.lock:
            session = self.games.pop(room_code, None)
            if session is not None:
                for pid in session.players:
                    if self._player_rooms.get(pid) == room_code:
                        del self._player_rooms[pid]
                logger.info(f"[game-discarded] room={room_code}")
            return session

    def leave_room(self, player_id) -> Optional[WaitingRoom]:
        """Drop a player from its waiting room; empty rooms are removed.

        Returns the room when the player was waiting in one.
        """
        with self.lock:
            code = self._player_rooms.get(player_id)
            room = self.waiting_rooms.get(code) if code else None
            if room is None:
                return None
            room.players.pop(player_id, None)
            del self._player_rooms[player_id]
            if not room.players:
                del self.waiting_rooms[code]
                logger.info(f"[room-closed] room={code}")
            elif room.host_id == player_id:
                room.host_id = next(iter(room.players))
            return room
