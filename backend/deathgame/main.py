from flask import Blueprint, jsonify

from deathgame import registry

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Death Game server!'})


@main.route('/health')
def health():
    return jsonify({
        'status': 'healthy',
        'waiting_rooms': len(registry.waiting_rooms),
        'active_games': len(registry.games),
    })
