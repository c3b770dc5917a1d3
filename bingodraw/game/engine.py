"""Draw engine for the 5x5 bingo card."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import random
from typing import TYPE_CHECKING, Iterable, Optional, Union

from .bonus import BonusContext, BonusHandler, BonusRegistry, DEFAULT_BONUS_REGISTRY
from .card import (
    CARD_SIZE,
    FREE_CELL_INDEX,
    FREE_CELL_NUMBER,
    GRID_SIZE,
    LINES,
    Cell,
    LineCheck,
    active_count,
    check_lines,
    copy_card,
    create_card,
    has_reach,
    line_active_count,
    update_reach_status,
    would_complete_line,
)
from .scoring import (
    DEFAULT_SCORING_KEY,
    DEFAULT_SCORING_REGISTRY,
    ScoringPolicy,
    ScoringRegistry,
)
from .statistics import DrawStatistics, StatisticsManager

if TYPE_CHECKING:
    from ..config import GameSettings

logger = logging.getLogger(__name__)


class AlwaysBonusMode:
    """How bonuses are applied.

    ``DISABLED`` is the regular game: drawing 13 queues a random enabled bonus
    for the next draw. ``OFF`` never applies a bonus. ``FIXED`` applies one
    configured kind on every draw and ``RANDOM`` a fresh random enabled kind on
    every draw.
    """

    DISABLED = "disabled"
    OFF = "off"
    FIXED = "fixed"
    RANDOM = "random"

    ALL = (DISABLED, OFF, FIXED, RANDOM)


class ActiveTarget:
    """Open-cell target used when the board is randomized before each draw."""

    FIXED = "fixed"
    RANDOM = "random"

    ALL = (FIXED, RANDOM)


FIXED_ACTIVE_TARGET = 13
MAX_REACH_ATTEMPTS = CARD_SIZE


@dataclass(frozen=True)
class DrawResult:
    """Outcome of a single :meth:`GameEngine.draw` call.

    Attributes
    ----------
    drawn_number : int
        Number drawn, in ``1..25``.
    is_hit : bool
        ``True`` when at least one closed cell was opened by the drawn number
        or by the bonus applied on this draw. Cells opened by the pre-draw
        reach phase do not count.
    activated_numbers : tuple[int, ...]
        Numbers opened by the draw and its bonus, in activation order and
        without duplicates. Full-line bonuses report every member of the line,
        including members that were already open.
    bonus_queued : bool
        A bonus was queued for the next draw.
    bonus_applied : bool
        A bonus handler ran on this draw.
    bonus_kind : Optional[str]
        Kind applied on this draw.
    bonus_queued_kind : Optional[str]
        Kind queued for the next draw.
    lines_completed : int
        Complete lines on the card after this draw.
    line_numbers : tuple[int, ...]
        Sorted numbers of the cells in those lines.
    score : int
        Points awarded by the active scoring policy.
    active_count : int
        Open cells after this draw.
    """

    drawn_number: int
    is_hit: bool
    activated_numbers: tuple[int, ...]
    bonus_queued: bool
    bonus_applied: bool
    bonus_kind: Optional[str]
    bonus_queued_kind: Optional[str]
    lines_completed: int
    line_numbers: tuple[int, ...]
    score: int
    active_count: int


class GameEngine:
    """Engine that owns the card and runs the draw state machine.

    A draw runs in this order: pre-draw phase (line reset and reach top-up, or
    full board randomization), number draw, bonus queueing or direct hit,
    bonus application, line check, scoring, reach update and finally
    statistics recording.

    The engine is not thread-safe; callers sharing one instance must
    serialize access to it.
    """

    def __init__(
        self,
        *,
        registry: Optional[BonusRegistry] = None,
        scoring: Union[str, ScoringPolicy, None] = None,
        scoring_registry: Optional[ScoringRegistry] = None,
        rng: Optional[random.Random] = None,
        settings: Optional["GameSettings"] = None,
    ) -> None:
        """Create a game engine.

        Parameters
        ----------
        registry : Optional[BonusRegistry], default: None
            Registry the bonus kinds are resolved from. Typically omitted, in
            which case :data:`DEFAULT_BONUS_REGISTRY` is used.
        scoring : Union[str, ScoringPolicy, None], default: None
            Scoring policy or its key in ``scoring_registry``. Defaults to
            ``"lines"`` (one point per line).
        scoring_registry : Optional[ScoringRegistry], default: None
            Registry used to resolve scoring keys.
        rng : Optional[random.Random], default: None
            Random generator to use; useful for deterministic tests. If not
            provided, a new non-deterministic generator is used.
        settings : Optional[GameSettings], default: None
            Configuration applied through the public setters.
        """
        self._registry = registry if registry is not None else DEFAULT_BONUS_REGISTRY
        self._scoring_registry = scoring_registry or DEFAULT_SCORING_REGISTRY
        self._rng = rng or random.Random()

        self._enabled_bonus_kinds: frozenset[str] = frozenset(self._registry.kinds())
        self._always_bonus_mode = AlwaysBonusMode.DISABLED
        self._always_bonus_kind: Optional[str] = None
        self._randomize_board = False
        self._active_target = ActiveTarget.FIXED
        self._scoring = self._resolve_scoring(scoring or DEFAULT_SCORING_KEY)

        self._card: list[Cell] = create_card()
        self._statistics = StatisticsManager()
        self._last_result: Optional[DrawResult] = None
        self._pending_bonus_kind: Optional[str] = None

        if settings is not None:
            self.apply_settings(settings)
        update_reach_status(self._card)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    @property
    def registry(self) -> BonusRegistry:
        return self._registry

    @property
    def enabled_bonus_kinds(self) -> frozenset[str]:
        return self._enabled_bonus_kinds

    @property
    def always_bonus_mode(self) -> str:
        return self._always_bonus_mode

    @property
    def always_bonus_kind(self) -> Optional[str]:
        return self._always_bonus_kind

    @property
    def randomize_board(self) -> bool:
        return self._randomize_board

    @property
    def active_target(self) -> str:
        return self._active_target

    @property
    def scoring_policy(self) -> ScoringPolicy:
        return self._scoring

    def set_enabled_bonus_kinds(self, kinds: Iterable[str]) -> None:
        """Restrict the kinds that may be picked at random.

        Kinds missing from the registry are accepted; they are never resolved
        to a handler.
        """
        self._enabled_bonus_kinds = frozenset(kinds)

    def set_always_bonus(self, mode: str, kind: Optional[str] = None) -> None:
        """Select the always-bonus mode.

        Parameters
        ----------
        mode : str
            One of :attr:`AlwaysBonusMode.ALL`.
        kind : Optional[str], default: None
            Bonus kind applied on every draw. Required for
            :attr:`AlwaysBonusMode.FIXED`, ignored otherwise.

        Raises
        ------
        ValueError
            If ``mode`` is unknown or ``FIXED`` is requested without a kind.
        """
        if mode not in AlwaysBonusMode.ALL:
            raise ValueError(f"Unknown always-bonus mode '{mode}'")
        if mode == AlwaysBonusMode.FIXED and not kind:
            raise ValueError("A bonus kind is required for the fixed always-bonus mode")

        self._always_bonus_mode = mode
        self._always_bonus_kind = kind if mode == AlwaysBonusMode.FIXED else None
        if mode != AlwaysBonusMode.DISABLED:
            self._pending_bonus_kind = None

    def set_randomize_board(
        self, enabled: bool, *, active_target: Optional[str] = None
    ) -> None:
        """Toggle board randomization before every draw.

        Raises
        ------
        ValueError
            If ``active_target`` is not one of :attr:`ActiveTarget.ALL`.
        """
        if active_target is not None:
            if active_target not in ActiveTarget.ALL:
                raise ValueError(f"Unknown active target policy '{active_target}'")
            self._active_target = active_target
        self._randomize_board = bool(enabled)

    def set_scoring_policy(self, policy: Union[str, ScoringPolicy]) -> None:
        """Switch the scoring policy by key or by definition.

        Raises
        ------
        ValueError
            If ``policy`` is a key that the scoring registry does not know.
        """
        self._scoring = self._resolve_scoring(policy)

    def apply_settings(self, settings: "GameSettings") -> None:
        """Apply a :class:`~bingodraw.config.GameSettings` through the setters."""
        if settings.enabled_bonus_kinds is not None:
            self.set_enabled_bonus_kinds(settings.enabled_bonus_kinds)
        self.set_always_bonus(settings.always_bonus_mode, settings.always_bonus_kind)
        self.set_randomize_board(
            settings.randomize_board, active_target=settings.active_target
        )
        self.set_scoring_policy(settings.scoring)

    def _resolve_scoring(self, policy: Union[str, ScoringPolicy]) -> ScoringPolicy:
        if isinstance(policy, ScoringPolicy):
            return policy
        try:
            return self._scoring_registry.get(policy)
        except KeyError as exc:
            raise ValueError(f"Unknown scoring policy '{policy}'") from exc

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def get_card(self) -> list[Cell]:
        """Return a snapshot of the card; changes to it do not reach the engine."""
        return copy_card(self._card)

    def get_last_result(self) -> Optional[DrawResult]:
        return self._last_result

    def get_statistics(self) -> StatisticsManager:
        """Return the live statistics manager."""
        return self._statistics

    def get_pending_bonus(self) -> Optional[str]:
        """Return the kind queued for the next draw, if any."""
        return self._pending_bonus_kind

    def reset(self) -> None:
        """Reinitialize the card, the pending bonus and the statistics."""
        self._card = create_card()
        self._statistics.reset()
        self._last_result = None
        self._pending_bonus_kind = None
        update_reach_status(self._card)

    def update_reach_status(self) -> None:
        update_reach_status(self._card)

    def check_lines(self) -> LineCheck:
        return check_lines(self._card)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------
    def draw(self) -> DrawResult:
        """Run one draw and return its result.

        Notes
        -----
        Bonus queueing is stateful across draws: a bonus queued by drawing
        the free number is applied on the following draw, with that draw's
        number as its base.
        """
        if self._randomize_board:
            self._randomize_card()
        else:
            self._reset_line_cells()
            self._ensure_reach()

        opened_before = {cell.number for cell in self._card if cell.is_active}
        drawn_number = self._draw_number()
        activated: list[int] = []

        queued_kind = self._pending_bonus_kind
        self._pending_bonus_kind = None

        bonus_queued_kind: Optional[str] = None
        if drawn_number == FREE_CELL_NUMBER:
            if self._always_bonus_mode == AlwaysBonusMode.DISABLED:
                bonus_queued_kind = self._pick_enabled_kind()
                self._pending_bonus_kind = bonus_queued_kind
                if bonus_queued_kind is not None:
                    logger.debug("Queued bonus %s for the next draw", bonus_queued_kind)
        else:
            cell = self._card[drawn_number - 1]
            if not cell.is_active:
                cell.is_active = True
                activated.append(drawn_number)

        handler = self._resolve_bonus(queued_kind)
        bonus_activated: list[int] = []
        if handler is not None:
            bonus_activated = handler.execute(
                self._card, BonusContext(base_number=drawn_number, rng=self._rng)
            )
            logger.debug(
                "Applied bonus %s on %d: %s", handler.kind, drawn_number, bonus_activated
            )
        for number in bonus_activated:
            if number not in activated:
                activated.append(number)

        opened_after = {cell.number for cell in self._card if cell.is_active}
        is_hit = bool(opened_after - opened_before)

        line_check = check_lines(self._card)
        score = self._scoring.score(line_check.lines_completed)
        count = active_count(self._card)
        update_reach_status(self._card)

        result = DrawResult(
            drawn_number=drawn_number,
            is_hit=is_hit,
            activated_numbers=tuple(activated),
            bonus_queued=bonus_queued_kind is not None,
            bonus_applied=handler is not None,
            bonus_kind=handler.kind if handler is not None else None,
            bonus_queued_kind=bonus_queued_kind,
            lines_completed=line_check.lines_completed,
            line_numbers=line_check.line_numbers,
            score=score,
            active_count=count,
        )
        self._last_result = result
        self._statistics.record(
            DrawStatistics(
                is_hit=is_hit,
                is_win=score > 0,
                lines_completed=line_check.lines_completed,
                score=score,
                active_count=count,
                bonus_kind=result.bonus_kind,
                bonus_activated_count=len(bonus_activated),
            )
        )
        return result

    def draw_multiple(self, count: int) -> list[DrawResult]:
        """Run ``count`` sequential draws and return their results in order.

        Raises
        ------
        TypeError
            If ``count`` is not an integer.
        ValueError
            If ``count`` is negative.
        """
        if isinstance(count, bool) or not isinstance(count, int):
            raise TypeError("count must be an integer")
        if count < 0:
            raise ValueError("count must not be negative")
        return [self.draw() for _ in range(count)]

    def _draw_number(self) -> int:
        return self._rng.randint(1, CARD_SIZE)

    def _enabled_handlers(self) -> list[BonusHandler]:
        return [
            handler
            for handler in self._registry.get_all()
            if handler.kind in self._enabled_bonus_kinds
        ]

    def _pick_enabled_kind(self) -> Optional[str]:
        handlers = self._enabled_handlers()
        if not handlers:
            return None
        return self._rng.choice(handlers).kind

    def _resolve_bonus(self, queued_kind: Optional[str]) -> Optional[BonusHandler]:
        """Return the handler to apply on this draw, or ``None``."""
        mode = self._always_bonus_mode
        if mode == AlwaysBonusMode.FIXED:
            return self._registry.get(self._always_bonus_kind)
        if mode == AlwaysBonusMode.RANDOM:
            return self._registry.get(self._pick_enabled_kind())
        if mode == AlwaysBonusMode.OFF or queued_kind is None:
            return None
        if queued_kind in self._enabled_bonus_kinds:
            return self._registry.get(queued_kind)
        logger.debug("Queued bonus %s is disabled; picking another", queued_kind)
        return self._registry.get(self._pick_enabled_kind())

    # ------------------------------------------------------------------
    # Pre-draw phase
    # ------------------------------------------------------------------
    def _reset_line_cells(self) -> None:
        """Close the cells of last draw's lines; the free cell stays open."""
        for cell in self._card:
            if cell.is_line and not cell.is_free:
                cell.is_active = False
            cell.is_line = False

    def _ensure_reach(self) -> None:
        """Open random safe cells until some line is one cell short."""
        update_reach_status(self._card)
        attempts = 0
        while not has_reach(self._card) and attempts < MAX_REACH_ATTEMPTS:
            candidates = [
                idx
                for idx, cell in enumerate(self._card)
                if not cell.is_active and not would_complete_line(self._card, idx)
            ]
            if not candidates:
                logger.debug("No safe cell left to create a reach")
                break
            self._card[self._rng.choice(candidates)].is_active = True
            update_reach_status(self._card)
            attempts += 1

    def _randomize_card(self) -> None:
        """Rebuild the open cells from scratch, making sure a reach exists."""
        for _ in range(MAX_REACH_ATTEMPTS):
            self._fill_random_cells(self._target_active_count())
            update_reach_status(self._card)
            if has_reach(self._card):
                return
        if self._force_reach():
            update_reach_status(self._card)
        else:
            logger.debug("Board randomization ended without a reach")

    def _target_active_count(self) -> int:
        if self._active_target == ActiveTarget.RANDOM:
            return self._rng.randint(1, FIXED_ACTIVE_TARGET)
        return FIXED_ACTIVE_TARGET

    def _fill_random_cells(self, target: int) -> None:
        for cell in self._card:
            cell.is_active = cell.is_free
            cell.is_line = False
        candidates = [idx for idx in range(CARD_SIZE) if idx != FREE_CELL_INDEX]
        self._rng.shuffle(candidates)
        opened = 1
        for idx in candidates:
            if opened >= target:
                break
            if would_complete_line(self._card, idx):
                continue
            self._card[idx].is_active = True
            opened += 1

    def _force_reach(self) -> bool:
        """Turn a line with three open cells into a reach.

        One closed cell of the line is opened and an open cell outside the
        line is closed, so the open-cell count is unchanged.
        """
        for line in self._rng.sample(LINES, len(LINES)):
            if line_active_count(self._card, line) != GRID_SIZE - 2:
                continue
            openable = [
                idx
                for idx in line
                if not self._card[idx].is_active
                and not would_complete_line(self._card, idx)
            ]
            closable = [
                idx
                for idx, cell in enumerate(self._card)
                if cell.is_active and not cell.is_free and idx not in line
            ]
            if not openable or not closable:
                continue
            self._card[self._rng.choice(openable)].is_active = True
            self._card[self._rng.choice(closable)].is_active = False
            return True
        return False


__all__ = [
    "ActiveTarget",
    "AlwaysBonusMode",
    "DrawResult",
    "GameEngine",
]
