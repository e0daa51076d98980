from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config

from deathgame.services.games.registry import RoomRegistry
from deathgame.services.games.scheduler import SessionScheduler

socketio = SocketIO(async_mode=None)
registry = RoomRegistry()
scheduler = SessionScheduler(socketio)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    CORS(flask_app, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Fresh registries per app so test apps don't share rooms
    registry.reset()
    registry.configure(flask_app.config)
    scheduler.clear()

    from deathgame.main import main
    flask_app.register_blueprint(main)

    from deathgame.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    from deathgame.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('resolve-round')
    @click.argument('numbers', nargs=-1, type=float, required=True)
    @click.option('--points', multiple=True, type=int,
                  help='Current points per player, in the same order as NUMBERS.')
    def resolve_round_command(numbers, points):
        """Resolve one round offline, e.g. `flask resolve-round 50 50 30 70 90`."""
        from deathgame.services.games.scoring import resolve_round
        if points and len(points) != len(numbers):
            raise click.BadParameter('give one --points value per number', param_hint='--points')
        ids = [f'p{i + 1}' for i in range(len(numbers))]
        submissions = dict(zip(ids, numbers))
        alive_points = dict(zip(ids, points or [0] * len(ids)))
        outcome = resolve_round(
            submissions,
            alive_points,
            elimination_threshold=flask_app.config['ELIMINATION_THRESHOLD'],
        )
        click.echo(f'average={outcome.average} target={outcome.target}')
        click.echo(f'duplicates={outcome.duplicates}')
        click.echo(f'winner={outcome.winner_id} special_rule={outcome.special_rule}')
        for pid in ids:
            delta = outcome.penalties.get(pid, 0)
            mark = ' eliminated' if pid in outcome.eliminated_ids else ''
            click.echo(f'{pid}: number={submissions[pid]} delta={delta} points={alive_points[pid] + delta}{mark}')
        click.echo(f'game_over={outcome.game_over}')

    flask_app.cli.add_command(resolve_round_command)

    return flask_app
