"""Scan orchestrator — drives one image from selection to a scan outcome.

    IDLE -> IMAGE_SELECTED -> SCANNING(stage 0..2) -> COMPLETED | REJECTED | FAILED

Entering SCANNING acquires three timers (two cosmetic stage advances and
the request deadline). Every exit from SCANNING releases all of them, and a
response belonging to an earlier scan episode is dropped.
"""

import asyncio
from collections.abc import Callable
from enum import Enum
from functools import partial

from loguru import logger

from loto_client.config import settings
from loto_client.scanner.base import RecognitionTransport
from loto_client.scanner.errors import (
    IncompleteResult,
    ScanError,
    ScanRejected,
    ScanStateError,
    ScanTimeout,
    TransportFailure,
)
from loto_client.scanner.scheduler import TimerHandle, TimerService
from loto_client.schemas.scan import ScanResult
from loto_client.ticket.model import Ticket

STAGE_LABELS = (
    "Analyzing image (OCR)...",
    "Verifying with AI...",
    "Cross-checking results...",
)


class ScanState(str, Enum):
    IDLE = "idle"
    IMAGE_SELECTED = "image_selected"
    SCANNING = "scanning"
    COMPLETED = "completed"
    REJECTED = "rejected"
    FAILED = "failed"


# States holding an image that may be (re)submitted
_SCANNABLE = {ScanState.IMAGE_SELECTED, ScanState.REJECTED, ScanState.FAILED}

Listener = Callable[["ScanOrchestrator"], None]


class ScanOrchestrator:
    """State machine for a single scan session.

    Must be driven from inside a running event loop; ``request_scan`` spawns
    the upload as a task on it.
    """

    def __init__(
        self,
        transport: RecognitionTransport,
        timers: TimerService,
        *,
        stage_offsets_ms: list[int] | None = None,
        timeout_seconds: float | None = None,
    ):
        self.transport = transport
        self.timers = timers
        self.stage_offsets_ms = list(
            stage_offsets_ms if stage_offsets_ms is not None else settings.SCAN_STAGE_OFFSETS_MS
        )
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.SCAN_TIMEOUT_SECONDS
        )

        self.state = ScanState.IDLE
        self.stage = 0
        self.image: str | None = None
        self.ticket: Ticket | None = None
        self.error: ScanError | None = None

        self._episode = 0
        self._task: asyncio.Task | None = None
        self._timers: list[TimerHandle] = []
        self._listeners: list[Listener] = []

    # --- observers ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return partial(self._unsubscribe, listener)

    def _unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # --- queries ---

    @property
    def stage_label(self) -> str | None:
        if self.state is not ScanState.SCANNING:
            return None
        return STAGE_LABELS[min(self.stage, len(STAGE_LABELS) - 1)]

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error else None

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    # --- transitions ---

    def select_image(self, handle: str) -> None:
        """Take a new image; drops any previous ticket or outcome.

        Raises PermissionDenied, with no state change, when the transport
        cannot use the image.
        """
        self.transport.check_access(handle)
        if self.state is ScanState.SCANNING:
            self._abort("new image selected")

        self.image = handle
        self.ticket = None
        self.error = None
        self._set_state(ScanState.IMAGE_SELECTED)

    def request_scan(self) -> None:
        if self.state not in _SCANNABLE or self.image is None:
            raise ScanStateError(f"Cannot start a scan while {self.state.value}")
        loop = asyncio.get_running_loop()

        self._episode += 1
        episode = self._episode
        self.ticket = None
        self.error = None
        self.stage = 0
        self._acquire_timers(episode)
        self._task = loop.create_task(
            self._run(episode, self.image), name=f"scan-{episode}"
        )
        logger.info("Scan #{} started for {}", episode, self.image)
        self._set_state(ScanState.SCANNING)

    def cancel(self) -> bool:
        """Abandon the in-flight scan, keeping the image."""
        if self.state is not ScanState.SCANNING:
            return False
        self._abort("cancelled")
        self._set_state(ScanState.IMAGE_SELECTED)
        return True

    def reset(self) -> None:
        """Back to IDLE, dropping image, ticket and outcome."""
        if self.state is ScanState.SCANNING:
            self._abort("reset")
        self.image = None
        self.ticket = None
        self.error = None
        self._set_state(ScanState.IDLE)

    def close(self) -> None:
        """Teardown: nothing scheduled by this orchestrator may fire afterwards."""
        self.reset()
        self._listeners.clear()
        logger.debug("Orchestrator closed")

    async def wait(self) -> None:
        """Wait for the current upload task, however it ends."""
        if self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    # --- internals ---

    def _set_state(self, state: ScanState) -> None:
        previous = self.state
        self.state = state
        if state is not ScanState.SCANNING:
            self.stage = 0
        if previous is not state:
            logger.info("Scan state {} -> {}", previous.value, state.value)
        self._notify()

    def _acquire_timers(self, episode: int) -> None:
        for stage, offset_ms in enumerate(self.stage_offsets_ms, start=1):
            self._timers.append(
                self.timers.call_later(
                    offset_ms / 1000,
                    partial(self._advance_stage, episode, stage),
                    name=f"scan-stage-{stage}",
                )
            )
        self._timers.append(
            self.timers.call_later(
                self.timeout_seconds,
                partial(self._on_timeout, episode),
                name="scan-timeout",
            )
        )

    def _release_timers(self) -> None:
        for handle in self._timers:
            handle.cancel()
        self._timers = []

    def _is_current(self, episode: int) -> bool:
        return episode == self._episode and self.state is ScanState.SCANNING

    def _abort(self, reason: str) -> None:
        logger.info("Scan #{} aborted: {}", self._episode, reason)
        self._release_timers()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _advance_stage(self, episode: int, stage: int) -> None:
        if not self._is_current(episode):
            return
        self.stage = stage
        logger.debug("Scan #{} stage {}", episode, stage)
        self._notify()

    def _on_timeout(self, episode: int) -> None:
        if not self._is_current(episode):
            return
        logger.warning("Scan #{} timed out after {}s", episode, self.timeout_seconds)
        self._abort("timeout")
        self.error = ScanTimeout(self.timeout_seconds)
        self._set_state(ScanState.FAILED)

    async def _run(self, episode: int, image: str) -> None:
        try:
            result = await self.transport.scan(image)
        except asyncio.CancelledError:
            logger.debug("Scan #{} request cancelled", episode)
            raise
        except ScanError as e:
            self._settle(episode, error=e)
        except Exception as e:
            logger.exception("Scan #{} crashed", episode)
            self._settle(episode, error=TransportFailure(str(e)))
        else:
            self._settle(episode, result=result)

    def _settle(
        self,
        episode: int,
        result: ScanResult | None = None,
        error: ScanError | None = None,
    ) -> None:
        if not self._is_current(episode):
            logger.debug("Ignoring stale response for scan #{}", episode)
            return

        self._release_timers()

        if error is not None:
            logger.warning("Scan #{} failed: {}", episode, error)
            self.error = error
            self._set_state(ScanState.FAILED)
            return

        try:
            ticket = Ticket.from_result(result)
        except ScanRejected as e:
            logger.warning("Scan #{} rejected: {}", episode, e)
            self.error = e
            self._set_state(ScanState.REJECTED)
            return
        except IncompleteResult as e:
            # Stays un-scanned, no error surfaced
            logger.info("Scan #{}: {}", episode, e)
            self._set_state(ScanState.IMAGE_SELECTED)
            return

        self.ticket = ticket
        logger.info(
            "Scan #{} completed: {} blocks, confidence {:.2f}",
            episode, len(ticket.blocks), ticket.confidence,
        )
        self._set_state(ScanState.COMPLETED)
