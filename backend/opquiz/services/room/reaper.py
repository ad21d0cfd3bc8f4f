import logging

from opquiz import socketio
from .controller import RoomController

log = logging.getLogger(__name__)


class IdleReaper:
    """Wipes the room once nobody has touched it for ``idle_seconds``."""

    def __init__(self, app, controller: RoomController, idle_seconds: float, tick_seconds: float = 60):
        self.app = app
        self.controller = controller
        self.idle_seconds = idle_seconds
        self.tick_seconds = tick_seconds
        self._running = False

    def tick(self) -> bool:
        return self.controller.wipe_if_idle(self.idle_seconds)

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        socketio.start_background_task(self._loop)
        log.info(f"[reaper-start] idle={int(self.idle_seconds)}s tick={self.tick_seconds}s")

    def stop(self) -> None:
        self._running = False

    def _loop(self) -> None:
        while self._running:
            socketio.sleep(self.tick_seconds)
            if not self._running:
                break
            with self.app.app_context():
                try:
                    self.tick()
                except Exception:
                    log.exception('[reap] failed; will retry on next tick')
