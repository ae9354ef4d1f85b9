"""Pydantic schemas for the session presentation API."""

from pydantic import BaseModel


class CellSchema(BaseModel):
    number: int | None
    matched: bool = False


class TicketSchema(BaseModel):
    ticket_id: str | None
    scan_id: str | None
    lottery_type: str
    confidence: float
    status: str
    notes: str | None
    all_numbers: list[int]
    block_count: int


class SessionSnapshot(BaseModel):
    state: str
    stage: int
    stage_label: str | None
    image: str | None
    ticket: TicketSchema | None
    grid: list[list[list[CellSchema]]]  # [block][row][col]
    matched: list[int]
    matched_count: int
    winning_rows: list[tuple[int, int]]
    win_count: int
    celebrating: bool
    error: str | None
    is_destructive: bool


class ToggleResponse(BaseModel):
    number: int
    matched: bool
    win: bool
    session: SessionSnapshot


# --- Requests ---

class SelectImageRequest(BaseModel):
    image: str  # local path or http(s) URL, depending on transport


class ConfirmRequest(BaseModel):
    confirmed: bool = False


class GridResponse(BaseModel):
    numbers: list[int]
    cells: list[int | None]
