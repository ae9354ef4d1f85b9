"""Scan session service — ticket, marked numbers and win notifications.

The session owns the orchestrator and the match state. Every toggle runs
win detection before any observer hears about the new match state.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial

from loguru import logger

from loto_client.config import settings
from loto_client.scanner.base import RecognitionTransport
from loto_client.scanner.errors import ConfirmationRequired, ScanStateError
from loto_client.scanner.scheduler import TimerService
from loto_client.schemas.session import CellSchema, SessionSnapshot, TicketSchema
from loto_client.services.celebration import Celebration
from loto_client.services.orchestrator import ScanOrchestrator, ScanState
from loto_client.ticket import Ticket, WinDetector, toggle

EVENT_STATE_CHANGED = "state_changed"
EVENT_WIN = "win"
EVENT_CELEBRATION_ENDED = "celebration_ended"


@dataclass
class SessionEvent:
    kind: str
    session: "ScanSession"
    payload: dict = field(default_factory=dict)


Listener = Callable[[SessionEvent], None]


class ScanSession:
    def __init__(
        self,
        transport: RecognitionTransport,
        timers: TimerService,
        *,
        stage_offsets_ms: list[int] | None = None,
        timeout_seconds: float | None = None,
        celebration_seconds: float | None = None,
    ):
        self.timers = timers
        self.orchestrator = ScanOrchestrator(
            transport, timers,
            stage_offsets_ms=stage_offsets_ms,
            timeout_seconds=timeout_seconds,
        )
        self.celebration_seconds = (
            celebration_seconds if celebration_seconds is not None else settings.CELEBRATION_SECONDS
        )
        self.matched: frozenset[int] = frozenset()
        self.win_count = 0

        self._detector: WinDetector | None = None
        self._celebration: Celebration | None = None
        self._listeners: list[Listener] = []
        self.orchestrator.subscribe(self._on_scan_changed)

    # --- observers ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register for session events. Returns an unsubscribe callable."""
        self._listeners.append(listener)
        return partial(self._unsubscribe, listener)

    def _unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: str, **payload) -> None:
        event = SessionEvent(kind=kind, session=self, payload=payload)
        for listener in list(self._listeners):
            listener(event)

    # --- queries ---

    @property
    def state(self) -> ScanState:
        return self.orchestrator.state

    @property
    def stage(self) -> int:
        return self.orchestrator.stage

    @property
    def selected_image(self) -> str | None:
        return self.orchestrator.image

    @property
    def ticket(self) -> Ticket | None:
        return self.orchestrator.ticket

    @property
    def is_destructive(self) -> bool:
        """Clearing or rescanning would throw away marked numbers."""
        return bool(self.matched)

    @property
    def celebrating(self) -> bool:
        return self._celebration is not None and self._celebration.active

    def winning_rows(self) -> list[tuple[int, int]]:
        if self._detector is None:
            return []
        return self._detector.winning_rows(self.matched)

    # --- presentation events ---

    def select_image(self, handle: str) -> None:
        self.orchestrator.select_image(handle)

    def request_scan(self) -> None:
        self.orchestrator.request_scan()

    def cancel_scan(self) -> bool:
        return self.orchestrator.cancel()

    def toggle(self, n: int) -> bool:
        """Mark or unmark ``n``. Returns True when this toggle fired a win."""
        if self._detector is None:
            raise ScanStateError("No scanned ticket to mark")

        before = self.matched
        after = toggle(before, n)
        won = self._detector.evaluate(before, after)
        self.matched = after
        if won:
            self.win_count += 1
            self._celebrate()
            logger.info("Row completed after marking {} (win #{})", n, self.win_count)

        self._emit(EVENT_STATE_CHANGED)
        if won:
            self._emit(EVENT_WIN, number=n, rows=self.winning_rows())
        return won

    def require_confirmation(self, action: str, confirmed: bool) -> None:
        """Raise ConfirmationRequired when ``action`` would drop marks unconfirmed."""
        if self.is_destructive and not confirmed:
            raise ConfirmationRequired(action, len(self.matched))

    def clear_matches(self) -> None:
        """Commit: drop every mark. Confirmation is the caller's job."""
        if not self.matched:
            return
        logger.info("Clearing {} marked numbers", len(self.matched))
        self._reset_matches()
        self._emit(EVENT_STATE_CHANGED)

    def rescan(self) -> None:
        """Commit: discard the whole session and return to IDLE."""
        logger.info("Rescan: discarding session ({} marked)", len(self.matched))
        self.orchestrator.reset()

    def close(self) -> None:
        self.orchestrator.close()
        self._reset_matches()
        self._listeners.clear()
        logger.debug("Session closed")

    # --- internals ---

    def _reset_matches(self) -> None:
        self.matched = frozenset()
        if self._celebration is not None:
            self._celebration.release()
            self._celebration = None

    def _celebrate(self) -> None:
        if self._celebration is None:
            self._celebration = Celebration(
                self.timers, self.celebration_seconds, self._on_celebration_end
            )
        self._celebration.start()

    def _on_celebration_end(self) -> None:
        self._emit(EVENT_CELEBRATION_ENDED)

    def _on_scan_changed(self, orchestrator: ScanOrchestrator) -> None:
        if orchestrator.state is ScanState.COMPLETED and orchestrator.ticket is not None:
            self._reset_matches()
            self.win_count = 0
            self._detector = WinDetector(orchestrator.ticket.blocks)
        elif orchestrator.ticket is None:
            self._reset_matches()
            self.win_count = 0
            self._detector = None
        self._emit(EVENT_STATE_CHANGED)

    def snapshot(self) -> SessionSnapshot:
        ticket = self.ticket
        grid = []
        ticket_schema = None
        if ticket is not None:
            grid = [
                [
                    [CellSchema(number=n, matched=n is not None and n in self.matched) for n in row]
                    for row in block_grid
                ]
                for block_grid in ticket.grid()
            ]
            ticket_schema = TicketSchema(
                ticket_id=ticket.ticket_id,
                scan_id=ticket.scan_id,
                lottery_type=ticket.lottery_type,
                confidence=ticket.confidence,
                status=ticket.status,
                notes=ticket.notes,
                all_numbers=list(ticket.all_numbers),
                block_count=len(ticket.blocks),
            )

        return SessionSnapshot(
            state=self.state.value,
            stage=self.stage,
            stage_label=self.orchestrator.stage_label,
            image=self.selected_image,
            ticket=ticket_schema,
            grid=grid,
            matched=sorted(self.matched),
            matched_count=len(self.matched),
            winning_rows=self.winning_rows(),
            win_count=self.win_count,
            celebrating=self.celebrating,
            error=self.orchestrator.error_message,
            is_destructive=self.is_destructive,
        )
