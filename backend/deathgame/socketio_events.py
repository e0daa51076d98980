from flask import current_app, request
from flask_socketio import emit, join_room

from deathgame import registry
from deathgame.errors import DeathGameError
from deathgame.models import clean_player_name
from deathgame.services.games.lifecycle import (
    NAMESPACE,
    begin_game,
    broadcast,
    handle_departure,
    resolve_and_advance,
    room_channel,
)
from deathgame.services.games.session import GameSession


def _get_sid() -> str:
    # request.sid exists in a Socket.IO context
    return request.sid  # type: ignore


def _payload(data) -> dict:
    return data if isinstance(data, dict) else {}


def _emit_error(exc: DeathGameError) -> None:
    emit('error', {'message': exc.client_message})


def handle_connect(auth=None):
    current_app.logger.debug(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    sid = _get_sid()
    current_app.logger.info(f"[disconnect] sid={sid} reason={reason}")
    handle_departure(current_app._get_current_object(), sid)


def handle_create_room(data):
    name = clean_player_name(_payload(data).get('playerName'))
    if not name:
        emit('error', {'message': 'playerName is required'})
        return
    sid = _get_sid()
    try:
        room_code, _player = registry.create_room(sid, name)
    except DeathGameError as exc:
        _emit_error(exc)
        return
    join_room(room_channel(room_code))
    emit('roomCreated', {'roomCode': room_code, 'playerId': sid})


def handle_join_room(data):
    data = _payload(data)
    name = clean_player_name(data.get('playerName'))
    if not name:
        emit('error', {'message': 'playerName is required'})
        return
    app = current_app._get_current_object()
    sid = _get_sid()

    def _new_session(code, players):
        return GameSession.from_config(code, players, app.config)

    with registry.lock:
        try:
            room, _player, session = registry.join_room(
                data.get('roomCode'), sid, name, session_factory=_new_session
            )
        except DeathGameError as exc:
            _emit_error(exc)
            return

        join_room(room_channel(room.code))
        emit('joinedRoom', {'roomCode': room.code, 'playerId': sid})
        broadcast('playerJoined', {'players': [p.to_dict() for p in room.players.values()]}, room.code)

        if session is not None:
            begin_game(app, session)


def handle_submit_number(data):
    data = _payload(data)
    app = current_app._get_current_object()
    sid = _get_sid()
    with registry.lock:
        session = registry.get_game(data.get('roomCode'))
        if session is None:
            app.logger.debug(f"[submit-ignored] sid={sid} room={data.get('roomCode')} no active game")
            return
        try:
            ready = session.submit_number(sid, data.get('number'))
        except DeathGameError as exc:
            _emit_error(exc)
            return
        if ready:
            resolve_and_advance(app, session)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on the game namespace."""
    from deathgame import socketio

    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('createRoom', handle_create_room, namespace=NAMESPACE)
    socketio.on_event('joinRoom', handle_join_room, namespace=NAMESPACE)
    socketio.on_event('submitNumber', handle_submit_number, namespace=NAMESPACE)
