"""Positional grid layout for ticket rows.

A printed Lô Tô row has 9 columns laid out by decade: 1-9 in column 0,
10-19 in column 1, ... and 80-90 in column 8.
"""

from collections.abc import Sequence

from loguru import logger

from loto_client.schemas.scan import Block

COLS = 9


def column_for(n: int) -> int:
    """Column index for a number; 90 shares the last column with the 80s."""
    if n == 90:
        return COLS - 1
    return n // 10


def build_grid(row: Sequence[int]) -> list[int | None]:
    """Lay a row out into 9 cells, ``None`` where nothing is printed.

    Two numbers landing in the same column: the later one wins.
    Numbers with no column (negative, or 100 and up) are skipped.
    """
    cells: list[int | None] = [None] * COLS
    for n in row:
        col = column_for(n)
        if not 0 <= col < COLS:
            logger.debug("Number {} has no grid column, skipped", n)
            continue
        cells[col] = n
    return cells


def build_block_grid(block: Block) -> list[list[int | None]]:
    """Grid for all three rows of a block."""
    return [build_grid(row) for row in block.rows]
