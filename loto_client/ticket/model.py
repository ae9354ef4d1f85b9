"""Ticket model built from a recognition result."""

from dataclasses import dataclass, field

from loguru import logger

from loto_client.scanner.errors import IncompleteResult, ScanRejected
from loto_client.schemas.scan import SUCCESS_STATUSES, Block, ScanResult
from loto_client.ticket.grid import build_block_grid


@dataclass(frozen=True)
class Ticket:
    """A recognized ticket: ordered blocks plus display metadata."""

    blocks: tuple[Block, ...]
    ticket_id: str | None = None
    scan_id: str | None = None
    lottery_type: str = ""
    confidence: float = 0.0
    status: str = ""
    notes: str | None = None
    all_numbers: tuple[int, ...] = field(default_factory=tuple)

    @classmethod
    def from_result(cls, result: ScanResult) -> "Ticket":
        """Build a ticket from a recognition result.

        Raises:
            ScanRejected: status is "rejected", whatever the blocks say
            IncompleteResult: success status but no blocks
        """
        if result.is_rejected:
            raise ScanRejected(result.notes or None)
        if not result.has_blocks:
            raise IncompleteResult()
        if result.status not in SUCCESS_STATUSES:
            logger.debug("Unrecognized scan status {!r}, treating as success", result.status)
        return cls(
            blocks=tuple(result.blocks),
            ticket_id=result.ticket_id,
            scan_id=result.scan_id,
            lottery_type=result.lottery_type,
            confidence=result.confidence,
            status=result.status,
            notes=result.notes,
            all_numbers=tuple(result.all_numbers),
        )

    @property
    def numbers(self) -> frozenset[int]:
        """Every number printed in any row."""
        return frozenset(n for block in self.blocks for row in block.rows for n in row)

    def grid(self) -> list[list[list[int | None]]]:
        """Grid per block; recomputed on each call."""
        return [build_block_grid(block) for block in self.blocks]
