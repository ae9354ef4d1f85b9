"""Win celebration handle owned by a session.

The presentation layer plays confetti and sound while ``active`` is set.
The handle turns itself off after a fixed duration and is released when
the session resets or closes.
"""

from collections.abc import Callable

from loguru import logger

from loto_client.scanner.scheduler import TimerHandle, TimerService


class Celebration:
    def __init__(self, timers: TimerService, duration: float, on_end: Callable[[], None]):
        self._timers = timers
        self.duration = duration
        self._on_end = on_end
        self._handle: TimerHandle | None = None
        self.active = False

    def start(self) -> None:
        """(Re)start; a running celebration restarts its countdown."""
        if self._handle is not None:
            self._handle.cancel()
        self.active = True
        self._handle = self._timers.call_later(self.duration, self._finish, name="celebration")
        logger.debug("Celebration started for {}s", self.duration)

    def _finish(self) -> None:
        self._handle = None
        self.active = False
        self._on_end()

    def release(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.active = False
