"""Card model for the 5x5 draw game.

The card is a flat list of 25 :class:`Cell` objects where ``card[i].number``
is always ``i + 1``. Grid coordinates follow the layout of :data:`LINES`:
index ``i`` sits at ``row = i % 5`` and ``column = i // 5``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

GRID_SIZE = 5
CARD_SIZE = GRID_SIZE * GRID_SIZE
FREE_CELL_INDEX = 12
FREE_CELL_NUMBER = FREE_CELL_INDEX + 1

Line = tuple[int, int, int, int, int]

LINES: tuple[Line, ...] = (
    # columns
    (0, 1, 2, 3, 4),
    (5, 6, 7, 8, 9),
    (10, 11, 12, 13, 14),
    (15, 16, 17, 18, 19),
    (20, 21, 22, 23, 24),
    # rows
    (0, 5, 10, 15, 20),
    (1, 6, 11, 16, 21),
    (2, 7, 12, 17, 22),
    (3, 8, 13, 18, 23),
    (4, 9, 14, 19, 24),
    # diagonals
    (0, 6, 12, 18, 24),
    (4, 8, 12, 16, 20),
)


@dataclass
class Cell:
    """Single numbered cell on the card.

    Attributes
    ----------
    number : int
        Cell number in ``1..25``.
    is_active : bool
        Whether the cell has been opened.
    is_free : bool
        ``True`` only for the free cell (number 13), which never closes.
    is_reach : bool
        Member of a line with exactly one inactive cell left.
    is_line : bool
        Member of a line completed by the most recent draw.
    """

    number: int
    is_active: bool = False
    is_free: bool = False
    is_reach: bool = False
    is_line: bool = False


@dataclass(frozen=True)
class LineCheck:
    """Outcome of :func:`check_lines`."""

    lines_completed: int
    line_numbers: tuple[int, ...]


def create_card() -> list[Cell]:
    """Return a fresh card with only the free cell active."""
    return [
        Cell(
            number=idx + 1,
            is_active=idx == FREE_CELL_INDEX,
            is_free=idx == FREE_CELL_INDEX,
        )
        for idx in range(CARD_SIZE)
    ]


def copy_card(card: Iterable[Cell]) -> list[Cell]:
    """Return a snapshot of ``card`` whose cells are independent copies."""
    return [replace(cell) for cell in card]


def index_for_number(number: Optional[int]) -> Optional[int]:
    """Map a cell number to its index, or ``None`` when out of range."""
    if number is None or isinstance(number, bool) or not isinstance(number, int):
        return None
    if not 1 <= number <= CARD_SIZE:
        return None
    return number - 1


def position_of(index: int) -> tuple[int, int]:
    """Return ``(row, column)`` for ``index``."""
    return index % GRID_SIZE, index // GRID_SIZE


def index_at(row: int, column: int) -> Optional[int]:
    """Return the index at ``(row, column)``, or ``None`` if off the grid."""
    if not (0 <= row < GRID_SIZE and 0 <= column < GRID_SIZE):
        return None
    return column * GRID_SIZE + row


def column_indices(column: int) -> Line:
    start = column * GRID_SIZE
    return tuple(range(start, start + GRID_SIZE))  # type: ignore[return-value]


def row_indices(row: int) -> Line:
    return tuple(row + GRID_SIZE * k for k in range(GRID_SIZE))  # type: ignore[return-value]


def active_count(card: Iterable[Cell]) -> int:
    return sum(1 for cell in card if cell.is_active)


def line_active_count(card: list[Cell], line: Line) -> int:
    return sum(1 for idx in line if card[idx].is_active)


def would_complete_line(card: list[Cell], index: int) -> bool:
    """Return ``True`` if opening ``index`` would finish any line through it."""
    for line in LINES:
        if index in line and line_active_count(card, line) == GRID_SIZE - 1:
            return True
    return False


def check_lines(card: list[Cell]) -> LineCheck:
    """Mark every fully active line and report what was completed.

    Cells of completed lines get ``is_line = True``. Existing ``is_line``
    marks are left untouched; clearing them is part of the pre-draw phase.
    """
    numbers: set[int] = set()
    completed = 0
    for line in LINES:
        if all(card[idx].is_active for idx in line):
            completed += 1
            for idx in line:
                card[idx].is_line = True
                numbers.add(card[idx].number)
    return LineCheck(lines_completed=completed, line_numbers=tuple(sorted(numbers)))


def reach_lines(card: list[Cell]) -> list[Line]:
    """Lines with exactly four active cells and one inactive cell."""
    return [line for line in LINES if line_active_count(card, line) == GRID_SIZE - 1]


def update_reach_status(card: list[Cell]) -> None:
    """Recompute ``is_reach`` from scratch for every cell."""
    for cell in card:
        cell.is_reach = False
    for line in reach_lines(card):
        for idx in line:
            card[idx].is_reach = True


def has_reach(card: list[Cell]) -> bool:
    """``True`` when some reach-marked cell is still waiting to be opened."""
    return any(cell.is_reach and not cell.is_active for cell in card)


__all__ = [
    "CARD_SIZE",
    "Cell",
    "FREE_CELL_INDEX",
    "FREE_CELL_NUMBER",
    "GRID_SIZE",
    "LINES",
    "Line",
    "LineCheck",
    "active_count",
    "check_lines",
    "column_indices",
    "copy_card",
    "create_card",
    "has_reach",
    "index_at",
    "index_for_number",
    "line_active_count",
    "position_of",
    "reach_lines",
    "row_indices",
    "update_reach_status",
    "would_complete_line",
]
