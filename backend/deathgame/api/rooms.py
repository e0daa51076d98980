from flask import Blueprint, current_app, jsonify

from deathgame import registry

rooms = Blueprint('rooms', __name__)


@rooms.route('', methods=['GET'])
def list_waiting_rooms():
    """Rooms still gathering players."""
    quorum = int(current_app.config.get('QUORUM', 5))
    with registry.lock:
        payload = [
            {'room_code': room.code, 'players': len(room.players), 'quorum': quorum}
            for room in registry.waiting_rooms.values()
        ]
    return jsonify(payload)


@rooms.route('/<string:room_code>/state', methods=['GET'])
def get_room_state(room_code):
    """State of a waiting room or a running game."""
    with registry.lock:
        session = registry.get_game(room_code)
        if session is not None:
            payload = session.to_dict()
        else:
            room = registry.get_room(room_code)
            if room is None:
                return jsonify({'error': 'Room not found'}), 404
            payload = room.to_dict()
    payload['quorum'] = int(current_app.config.get('QUORUM', 5))
    return jsonify(payload)
