"""Scan session API endpoints."""

from fastapi import APIRouter, Depends, HTTPException

from loto_client.api.deps import get_session
from loto_client.scanner.errors import ConfirmationRequired, PermissionDenied, ScanStateError
from loto_client.schemas.session import (
    ConfirmRequest,
    SelectImageRequest,
    SessionSnapshot,
    ToggleResponse,
)
from loto_client.services.session_service import ScanSession

router = APIRouter()


@router.get("", response_model=SessionSnapshot)
async def get_state(session: ScanSession = Depends(get_session)):
    """Current scan state, ticket grid and marked numbers."""
    return session.snapshot()


@router.post("/image", response_model=SessionSnapshot)
async def select_image(
    request: SelectImageRequest,
    session: ScanSession = Depends(get_session),
):
    """Select the ticket image to scan."""
    try:
        session.select_image(request.image)
    except PermissionDenied as e:
        raise HTTPException(status_code=403, detail=e.message)
    return session.snapshot()


@router.post("/scan", response_model=SessionSnapshot, status_code=202)
async def request_scan(session: ScanSession = Depends(get_session)):
    """Start scanning the selected image; poll GET /session for progress."""
    try:
        session.request_scan()
    except ScanStateError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return session.snapshot()


@router.post("/cancel", response_model=SessionSnapshot)
async def cancel_scan(session: ScanSession = Depends(get_session)):
    session.cancel_scan()
    return session.snapshot()


@router.post("/toggle/{number}", response_model=ToggleResponse)
async def toggle_number(number: int, session: ScanSession = Depends(get_session)):
    """Mark or unmark a called number."""
    try:
        won = session.toggle(number)
    except ScanStateError as e:
        raise HTTPException(status_code=409, detail=e.message)
    return ToggleResponse(
        number=number,
        matched=number in session.matched,
        win=won,
        session=session.snapshot(),
    )


@router.post("/clear", response_model=SessionSnapshot)
async def clear_matches(
    request: ConfirmRequest | None = None,
    session: ScanSession = Depends(get_session),
):
    """Clear every mark; needs ``confirmed`` while numbers are marked."""
    confirmed = request.confirmed if request else False
    try:
        session.require_confirmation("clear all marks", confirmed)
    except ConfirmationRequired as e:
        raise HTTPException(status_code=409, detail=e.message)
    session.clear_matches()
    return session.snapshot()


@router.post("/rescan", response_model=SessionSnapshot)
async def rescan(
    request: ConfirmRequest | None = None,
    session: ScanSession = Depends(get_session),
):
    """Discard the ticket and start over; needs ``confirmed`` while numbers are marked."""
    confirmed = request.confirmed if request else False
    try:
        session.require_confirmation("scan another ticket", confirmed)
    except ConfirmationRequired as e:
        raise HTTPException(status_code=409, detail=e.message)
    session.rescan()
    return session.snapshot()
