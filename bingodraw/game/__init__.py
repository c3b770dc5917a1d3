"""Core of the draw game: card, bonuses, scoring, statistics and engine."""

from .bonus import (
    BonusContext,
    BonusHandler,
    BonusKind,
    BonusRegistry,
    DEFAULT_BONUS_KINDS,
    DEFAULT_BONUS_REGISTRY,
    create_default_bonus_registry,
)
from .card import FREE_CELL_NUMBER, LINES, Cell, LineCheck, create_card
from .engine import ActiveTarget, AlwaysBonusMode, DrawResult, GameEngine
from .scoring import (
    DEFAULT_SCORING_REGISTRY,
    ScoringPolicy,
    ScoringRegistry,
)
from .statistics import (
    BonusStatistics,
    DrawStatistics,
    StatisticsManager,
    TotalStatistics,
)

__all__ = [
    "ActiveTarget",
    "AlwaysBonusMode",
    "BonusContext",
    "BonusHandler",
    "BonusKind",
    "BonusRegistry",
    "BonusStatistics",
    "Cell",
    "DEFAULT_BONUS_KINDS",
    "DEFAULT_BONUS_REGISTRY",
    "DEFAULT_SCORING_REGISTRY",
    "DrawResult",
    "DrawStatistics",
    "FREE_CELL_NUMBER",
    "GameEngine",
    "LINES",
    "LineCheck",
    "ScoringPolicy",
    "ScoringRegistry",
    "StatisticsManager",
    "TotalStatistics",
    "create_card",
    "create_default_bonus_registry",
]
