"""Aggregate API v1 router."""

from fastapi import APIRouter, Depends

from loto_client.api.deps import get_session
from loto_client.api.v1.endpoints import session, ticket
from loto_client.config import settings
from loto_client.scanner.scheduler import get_scheduler_status
from loto_client.services.session_service import ScanSession

api_router = APIRouter()

api_router.include_router(session.router, prefix="/session", tags=["Session"])
api_router.include_router(ticket.router, prefix="/ticket", tags=["Ticket"])


@api_router.get("/health", tags=["Health"])
async def health(scan_session: ScanSession = Depends(get_session)):
    """App status plus recognition service reachability."""
    transport = scan_session.orchestrator.transport
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "transport": transport.name,
        "recognition_service": await transport.ping(),
        "timers": get_scheduler_status(),
    }
