"""Dependency injection for FastAPI."""

from loto_client.scanner.scheduler import get_timer_service
from loto_client.scanner.transports import create_transport
from loto_client.services.session_service import ScanSession

_session: ScanSession | None = None


async def get_session() -> ScanSession:
    """The single active scan session, created on first use.

    Async so the timer scheduler is started on the running event loop.
    """
    global _session
    if _session is None:
        _session = ScanSession(create_transport(), get_timer_service())
    return _session


def close_session() -> None:
    global _session
    if _session is not None:
        _session.close()
        _session = None
