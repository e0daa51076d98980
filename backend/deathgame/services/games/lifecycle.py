"""Round lifecycle: resolve, broadcast, then schedule or finalize.

Shared by the Socket.IO handlers and the scheduler callbacks. Callers that
enter from outside a handler (timers) take ``registry.lock`` themselves.
"""

from deathgame import registry, scheduler, socketio
from deathgame.models import PLAYING, ROUND_END
from .scheduler import NEXT_ROUND, ROUND_DEADLINE

NAMESPACE = '/'


def room_channel(room_code: str) -> str:
    return f"room:{room_code}"


def broadcast(event: str, payload, room_code: str) -> None:
    socketio.emit(event, payload, to=room_channel(room_code), namespace=NAMESPACE)


def begin_game(app, session) -> None:
    """Start round 1 of a freshly created session and tell the room."""
    info = session.start_round()
    broadcast('gameStart', info, session.room_code)
    arm_round_deadline(app, session)


def arm_round_deadline(app, session) -> None:
    if not app.config.get('ENFORCE_ROUND_TIME_LIMIT'):
        return
    delay = session.time_limit + float(app.config.get('ROUND_GRACE_SEC', 0))
    scheduler.schedule(
        app, session.room_code, ROUND_DEADLINE, delay,
        _on_round_deadline, app, session, session.round,
    )


def _is_current(session, expected_round, expected_phase) -> bool:
    return (
        registry.get_game(session.room_code) is session
        and session.round == expected_round
        and session.phase == expected_phase
    )


def _on_round_deadline(app, session, expected_round) -> None:
    with registry.lock:
        if not _is_current(session, expected_round, PLAYING):
            app.logger.info(f"[timer-abort] room={session.room_code} round={expected_round} stale deadline")
            return
        app.logger.info(
            f"[round-timeout] room={session.room_code} round={expected_round} "
            f"submitted={len(session.round_submissions)}/{len(session.get_alive_players())}"
        )
        resolve_and_advance(app, session, force=True)


def resolve_and_advance(app, session, force=False):
    """Resolve the current round, broadcast it and move the game along."""
    scheduler.cancel(session.room_code, ROUND_DEADLINE)
    outcome = session.calculate_round_results(force=force)
    broadcast('roundResults', outcome.to_dict(session.players), session.room_code)

    if outcome.game_over:
        finalize_game(app, session, outcome.winner_id)
    else:
        delay = int(app.config.get('NEXT_ROUND_DELAY_SEC', 10))
        scheduler.schedule(
            app, session.room_code, NEXT_ROUND, delay,
            _on_next_round, app, session, session.round,
        )
    return outcome


def _on_next_round(app, session, expected_round) -> None:
    with registry.lock:
        if not _is_current(session, expected_round, ROUND_END):
            app.logger.info(f"[timer-abort] room={session.room_code} round={expected_round} stale next round")
            return
        info = session.advance_round()
        broadcast('roundStart', info, session.room_code)
        arm_round_deadline(app, session)


def finalize_game(app, session, winner_id=None) -> None:
    """Announce the final standings and drop the session."""
    winner = session.players.get(winner_id) if winner_id is not None else None
    if winner is None:
        alive = session.get_alive_players()
        winner = alive[0] if len(alive) == 1 else None
    broadcast('gameOver', {
        'winner': winner.to_dict() if winner else None,
        'finalScores': session.final_scores(),
    }, session.room_code)
    app.logger.info(f"[game-over] room={session.room_code} round={session.round} winner={winner.id if winner else None}")
    scheduler.cancel_all(session.room_code)
    registry.discard_game(session.room_code)
    socketio.close_room(room_channel(session.room_code), namespace=NAMESPACE)


def handle_departure(app, player_id) -> None:
    """Apply the disconnect policy to a player that dropped."""
    with registry.lock:
        room_code = registry.room_code_for(player_id)
        if room_code is None:
            return

        room = registry.leave_room(player_id)
        if room is not None:
            if room.players:
                broadcast('playerLeft', {
                    'playerId': player_id,
                    'players': [p.to_dict() for p in room.players.values()],
                }, room_code)
            return

        session = registry.get_game(room_code)
        if session is None:
            return
        if app.config.get('DISCONNECT_POLICY', 'forfeit') != 'forfeit':
            app.logger.info(f"[disconnect-ignored] room={room_code} player={player_id}")
            return
        if not session.forfeit(player_id):
            return
        broadcast('playerForfeited', {
            'player': session.players[player_id].to_dict(),
            'reason': 'disconnect',
        }, room_code)

        if session.is_finished:
            finalize_game(app, session)
        elif session.phase == PLAYING and session.all_submitted():
            resolve_and_advance(app, session)
