"""Ticket layout API endpoints."""

from fastapi import APIRouter, Query

from loto_client.schemas.session import GridResponse
from loto_client.ticket.grid import build_grid

router = APIRouter()


@router.get("/grid", response_model=GridResponse)
async def get_grid(numbers: list[int] = Query([])):
    """Lay out one row of numbers into its 9 decade columns."""
    return GridResponse(numbers=numbers, cells=build_grid(numbers))
