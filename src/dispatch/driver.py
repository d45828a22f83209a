from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover - import cycle safe typing
    from .controller import Controller

logger = logging.getLogger(__name__)


class TickDriver:
    """Background clock that calls ``controller.tick()`` every ``interval`` seconds."""

    def __init__(self, controller: "Controller", interval: float = 0.25) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.controller = controller
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._run, name="tick-driver", daemon=True)
            self._thread.start()
        logger.info("Tick driver started with a %ss interval", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            thread, self._thread = self._thread, None
            self._stop_event.set()
        if thread is not None:
            thread.join(timeout)
            logger.info("Tick driver stopped at time %s", self.controller.current_time)

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval):
            try:
                self.controller.tick()
            except Exception:
                logger.exception("Tick failed; stopping driver")
                raise
