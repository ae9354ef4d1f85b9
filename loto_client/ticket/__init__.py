"""Ticket model, grid layout and win detection."""

from loto_client.ticket.grid import build_block_grid, build_grid, column_for
from loto_client.ticket.matching import (
    WinDetector,
    any_row_satisfied,
    row_satisfied,
    toggle,
)
from loto_client.ticket.model import Ticket

__all__ = [
    "build_grid",
    "build_block_grid",
    "column_for",
    "toggle",
    "row_satisfied",
    "any_row_satisfied",
    "WinDetector",
    "Ticket",
]
