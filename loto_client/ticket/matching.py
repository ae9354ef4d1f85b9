"""Match state and row-completion (win) detection."""

from collections.abc import Iterable, Iterator, Sequence

from loto_client.schemas.scan import Block

ROW_SIZE = 5


def toggle(state: frozenset[int], n: int) -> frozenset[int]:
    """Return ``state`` with ``n`` flipped. The input is left untouched."""
    if n in state:
        return state - {n}
    return state | {n}


def iter_rows(blocks: Iterable[Block]) -> Iterator[list[int]]:
    for block in blocks:
        yield from block.rows


def row_satisfied(row: Sequence[int], state: frozenset[int]) -> bool:
    """A full 5-number row with every number marked.

    Partial or over-long rows never count.
    """
    return len(row) == ROW_SIZE and all(n in state for n in row)


def any_row_satisfied(blocks: Iterable[Block], state: frozenset[int]) -> bool:
    return any(row_satisfied(row, state) for row in iter_rows(blocks))


class WinDetector:
    """Edge-triggered win detection over a fixed set of blocks.

    A win fires only when the ticket goes from "no satisfied row" to
    "some satisfied row". If one satisfied row is broken while another
    stays satisfied, nothing fires.
    """

    def __init__(self, blocks: Sequence[Block]):
        self._blocks = tuple(blocks)

    def has_win(self, state: frozenset[int]) -> bool:
        return any_row_satisfied(self._blocks, state)

    def evaluate(self, before: frozenset[int], after: frozenset[int]) -> bool:
        """True when moving from ``before`` to ``after`` completes a win."""
        return self.has_win(after) and not self.has_win(before)

    def winning_rows(self, state: frozenset[int]) -> list[tuple[int, int]]:
        """(block index, row index) of every satisfied row."""
        return [
            (b, r)
            for b, block in enumerate(self._blocks)
            for r, row in enumerate(block.rows)
            if row_satisfied(row, state)
        ]
