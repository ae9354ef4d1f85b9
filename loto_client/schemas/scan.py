"""Pydantic schemas for the recognition service wire contract."""

from pydantic import BaseModel, Field


# --- Scan status values ---

STATUS_OK = "ok"
STATUS_CONFIRMED = "confirmed"
STATUS_NEEDS_CONFIRMATION = "needs_confirmation"
STATUS_REJECTED = "rejected"

SUCCESS_STATUSES = (STATUS_OK, STATUS_CONFIRMED, STATUS_NEEDS_CONFIRMATION)


class Block(BaseModel):
    """One physical ticket sheet: three printed rows."""

    row1: list[int] = Field(default_factory=list)
    row2: list[int] = Field(default_factory=list)
    row3: list[int] = Field(default_factory=list)

    @property
    def rows(self) -> tuple[list[int], list[int], list[int]]:
        return self.row1, self.row2, self.row3


class ScanResult(BaseModel):
    """Response body of ``POST /scan-ticket``.

    ``all_numbers`` is informational only; grid layout and win detection
    read ``blocks``.
    """

    scan_id: str | None = None
    lottery_type: str = ""
    blocks: list[Block] | None = None
    all_numbers: list[int] = Field(default_factory=list)
    ticket_id: str | None = None
    confidence: float = 0.0
    status: str
    notes: str | None = None

    @property
    def is_rejected(self) -> bool:
        return self.status == STATUS_REJECTED

    @property
    def has_blocks(self) -> bool:
        return bool(self.blocks)


class ErrorBody(BaseModel):
    """Error body returned by the recognition service on non-2xx."""

    error: str | None = None


class HealthBody(BaseModel):
    status: str = ""
