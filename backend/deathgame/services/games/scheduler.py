import logging
import threading
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

NEXT_ROUND = 'next_round'
ROUND_DEADLINE = 'round_deadline'


class SessionScheduler:
    """One-shot, cancellable timers keyed by ``(room_code, kind)``.

    Arming a key replaces whatever was armed under it. A timer whose key was
    cancelled or re-armed before it fires does nothing.
    """

    def __init__(self, socketio):
        self._socketio = socketio
        self._pending: Dict[Tuple[str, str], object] = {}
        self._lock = threading.Lock()

    def schedule(self, app, room_code: str, kind: str, delay: float, callback, *args) -> None:
        """Run ``callback(*args)`` inside an app context after ``delay`` seconds.

        In TESTING mode the next-round timer runs inline and other timers are
        skipped, unless ENABLE_SCHEDULER_IN_TESTS is set.
        """
        testing = app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS')
        if testing and kind != NEXT_ROUND:
            return

        key = (room_code, kind)
        token = object()
        with self._lock:
            self._pending[key] = token
        app.logger.info(f"[timer-set] room={room_code} kind={kind} delay={delay}s")

        def _worker():
            if delay:
                self._socketio.sleep(delay)
            with self._lock:
                if self._pending.get(key) is not token:
                    armed = False
                else:
                    armed = True
                    del self._pending[key]
            with app.app_context():
                if not armed:
                    app.logger.info(f"[timer-abort] room={room_code} kind={kind} cancelled or replaced")
                    return
                app.logger.info(f"[timer-fire] room={room_code} kind={kind}")
                callback(*args)

        if testing:
            _worker()
        else:
            self._socketio.start_background_task(_worker)

    def cancel(self, room_code: str, kind: str) -> bool:
        with self._lock:
            return self._pending.pop((room_code, kind), None) is not None

    def cancel_all(self, room_code: str) -> None:
        with self._lock:
            for key in [k for k in self._pending if k[0] == room_code]:
                del self._pending[key]

    def is_pending(self, room_code: str, kind: str) -> bool:
        with self._lock:
            return (room_code, kind) in self._pending

    def clear(self) -> None:
        with self._lock:
            self._pending.clear()
