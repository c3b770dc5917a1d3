"""Bonus handlers and the registry the engine resolves them from."""

from __future__ import annotations

from dataclasses import dataclass, field
import random
from typing import Callable, Dict, Optional, Sequence

from .card import (
    Cell,
    column_indices,
    index_at,
    index_for_number,
    position_of,
    row_indices,
)


class BonusKind:
    """Identifiers of the bonus kinds shipped in the default registry."""

    RANDOM_ONE = "activate-random-one"
    RANDOM_TWO = "activate-random-two"
    RANDOM_THREE_WITH_MISS = "activate-random-three-with-miss"
    RANDOM_FOUR = "activate-random-four"
    RANDOM_EIGHT = "activate-random-eight"
    VERTICAL = "activate-vertical"
    HORIZONTAL = "activate-horizontal"
    CROSS = "activate-cross"
    X = "activate-x"
    BOX = "activate-box"
    COLUMN_LINE = "activate-column-line"
    ROW_LINE = "activate-row-line"


@dataclass(frozen=True)
class BonusContext:
    """Per-call inputs handed to a bonus handler.

    Attributes
    ----------
    base_number : Optional[int]
        Number drawn on the triggering draw. Directional and line bonuses are
        positioned relative to this cell.
    rng : random.Random
        Random source used by the random-selection bonuses.
    """

    base_number: Optional[int] = None
    rng: random.Random = field(default_factory=random.Random)


Activator = Callable[[list[Cell], BonusContext], list[int]]


@dataclass(frozen=True)
class BonusHandler:
    """Definition of a bonus kind.

    Attributes
    ----------
    kind : str
        Registry key, also reported on draw results and statistics.
    activator : Callable[[list[Cell], BonusContext], list[int]]
        Callable that opens cells on the card in place and returns the numbers
        it activated.
    label : Optional[str]
        Short display name.
    description : Optional[str]
        Human-readable summary of the bonus.
    """

    kind: str
    activator: Activator
    label: Optional[str] = None
    description: Optional[str] = None

    def execute(
        self, card: list[Cell], context: Optional[BonusContext] = None
    ) -> list[int]:
        """Run the bonus against ``card`` and return the activated numbers."""
        return list(self.activator(card, context or BonusContext()))


class BonusRegistry:
    """Mutable registry mapping bonus kinds to handlers."""

    def __init__(self, handlers: Optional[Sequence[BonusHandler]] = None) -> None:
        self._handlers: Dict[str, BonusHandler] = {}
        for handler in handlers or ():
            self.register(handler)

    def register(self, handler: BonusHandler, *, replace: bool = False) -> None:
        """Register ``handler`` under its kind.

        Parameters
        ----------
        handler : BonusHandler
            Handler to add to the registry.
        replace : bool, default: False
            When ``True`` an existing registration with the same kind is
            overwritten. Otherwise a duplicate raises :class:`ValueError`.
        """
        if not replace and handler.kind in self._handlers:
            raise ValueError(f"Bonus '{handler.kind}' is already registered")
        self._handlers[handler.kind] = handler

    def get(self, kind: Optional[str]) -> Optional[BonusHandler]:
        """Return the handler for ``kind`` or ``None`` when it is unknown."""
        if kind is None:
            return None
        return self._handlers.get(kind)

    def get_all(self) -> list[BonusHandler]:
        """Return every handler in registration order."""
        return list(self._handlers.values())

    def kinds(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, kind: object) -> bool:
        return kind in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)


def _activate(card: list[Cell], indices: Sequence[int]) -> list[int]:
    """Open the inactive non-free cells among ``indices``."""
    activated: list[int] = []
    for idx in indices:
        cell = card[idx]
        if cell.is_active or cell.is_free:
            continue
        cell.is_active = True
        activated.append(cell.number)
    return activated


def random_activator(count: int, *, allow_miss: bool = False) -> Activator:
    """Build an activator that opens up to ``count`` random cells.

    Without ``allow_miss`` the picks are drawn from inactive cells only, so the
    bonus opens ``min(count, available)`` cells. With ``allow_miss`` the picks
    come from every non-free cell and picks that are already open are wasted.
    """

    def activate(card: list[Cell], context: BonusContext) -> list[int]:
        if allow_miss:
            pool = [idx for idx, cell in enumerate(card) if not cell.is_free]
        else:
            pool = [
                idx
                for idx, cell in enumerate(card)
                if not cell.is_active and not cell.is_free
            ]
        if not pool:
            return []
        picks = context.rng.sample(pool, min(count, len(pool)))
        return _activate(card, picks)

    return activate


def offset_activator(offsets: Sequence[tuple[int, int]]) -> Activator:
    """Build an activator opening the ``(d_row, d_col)`` neighbours of the base cell."""

    def activate(card: list[Cell], context: BonusContext) -> list[int]:
        base_index = index_for_number(context.base_number)
        if base_index is None:
            return []
        row, column = position_of(base_index)
        targets = []
        for d_row, d_col in offsets:
            idx = index_at(row + d_row, column + d_col)
            if idx is not None:
                targets.append(idx)
        return _activate(card, targets)

    return activate


def line_activator(axis: str) -> Activator:
    """Build an activator that opens the full column or row of the base cell.

    All five members are reported, including those that were already open.
    """
    if axis not in ("column", "row"):
        raise ValueError(f"axis must be 'column' or 'row', got {axis!r}")

    def activate(card: list[Cell], context: BonusContext) -> list[int]:
        base_index = index_for_number(context.base_number)
        if base_index is None:
            return []
        row, column = position_of(base_index)
        indices = column_indices(column) if axis == "column" else row_indices(row)
        numbers: list[int] = []
        for idx in indices:
            card[idx].is_active = True
            numbers.append(card[idx].number)
        return numbers

    return activate


VERTICAL_OFFSETS = ((-1, 0), (1, 0))
HORIZONTAL_OFFSETS = ((0, -1), (0, 1))
CROSS_OFFSETS = VERTICAL_OFFSETS + HORIZONTAL_OFFSETS
X_OFFSETS = ((-1, -1), (-1, 1), (1, -1), (1, 1))
BOX_OFFSETS = CROSS_OFFSETS + X_OFFSETS


def create_default_bonus_registry() -> BonusRegistry:
    """Return a new registry populated with every built-in bonus kind."""
    return BonusRegistry(
        [
            BonusHandler(
                kind=BonusKind.RANDOM_ONE,
                activator=random_activator(1),
                label="Random 1",
                description="Open one random closed cell.",
            ),
            BonusHandler(
                kind=BonusKind.RANDOM_TWO,
                activator=random_activator(2),
                label="Random 2",
                description="Open two random closed cells.",
            ),
            BonusHandler(
                kind=BonusKind.RANDOM_THREE_WITH_MISS,
                activator=random_activator(3, allow_miss=True),
                label="Random 3",
                description=(
                    "Pick three random cells; picks that are already open are "
                    "misses."
                ),
            ),
            BonusHandler(
                kind=BonusKind.RANDOM_FOUR,
                activator=random_activator(4),
                label="Random 4",
                description="Open four random closed cells.",
            ),
            BonusHandler(
                kind=BonusKind.RANDOM_EIGHT,
                activator=random_activator(8),
                label="Random 8",
                description="Open eight random closed cells.",
            ),
            BonusHandler(
                kind=BonusKind.VERTICAL,
                activator=offset_activator(VERTICAL_OFFSETS),
                label="Up/Down",
                description="Open the cells above and below the drawn number.",
            ),
            BonusHandler(
                kind=BonusKind.HORIZONTAL,
                activator=offset_activator(HORIZONTAL_OFFSETS),
                label="Left/Right",
                description="Open the cells left and right of the drawn number.",
            ),
            BonusHandler(
                kind=BonusKind.CROSS,
                activator=offset_activator(CROSS_OFFSETS),
                label="Cross",
                description="Open the four orthogonal neighbours of the drawn number.",
            ),
            BonusHandler(
                kind=BonusKind.X,
                activator=offset_activator(X_OFFSETS),
                label="X",
                description="Open the four diagonal neighbours of the drawn number.",
            ),
            BonusHandler(
                kind=BonusKind.BOX,
                activator=offset_activator(BOX_OFFSETS),
                label="Box",
                description="Open all eight neighbours of the drawn number.",
            ),
            BonusHandler(
                kind=BonusKind.COLUMN_LINE,
                activator=line_activator("column"),
                label="Column",
                description="Open the whole column containing the drawn number.",
            ),
            BonusHandler(
                kind=BonusKind.ROW_LINE,
                activator=line_activator("row"),
                label="Row",
                description="Open the whole row containing the drawn number.",
            ),
        ]
    )


DEFAULT_BONUS_REGISTRY = create_default_bonus_registry()
DEFAULT_BONUS_KINDS: tuple[str, ...] = tuple(DEFAULT_BONUS_REGISTRY.kinds())

__all__ = [
    "Activator",
    "BonusContext",
    "BonusHandler",
    "BonusKind",
    "BonusRegistry",
    "DEFAULT_BONUS_KINDS",
    "DEFAULT_BONUS_REGISTRY",
    "create_default_bonus_registry",
    "line_activator",
    "offset_activator",
    "random_activator",
]
