"""Running statistics over draws."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Dict, Optional

LINE_BUCKETS = (0, 1, 2, 3, 4)
"""Exact line counts broken out in the bonus CSV; larger counts share a bucket."""


@dataclass(frozen=True)
class DrawStatistics:
    """Per-draw summary handed to :meth:`StatisticsManager.record`.

    Attributes
    ----------
    is_hit : bool
        At least one closed cell was opened by the draw.
    is_win : bool
        The draw scored.
    lines_completed : int
        Lines completed on the draw.
    score : int
        Points awarded for the draw.
    active_count : int
        Open cells after the draw.
    bonus_kind : Optional[str]
        Kind of the bonus applied on this draw, if any.
    bonus_activated_count : int
        Numbers reported by the applied bonus.
    """

    is_hit: bool
    is_win: bool
    lines_completed: int
    score: int
    active_count: int
    bonus_kind: Optional[str] = None
    bonus_activated_count: int = 0


@dataclass
class BonusStatistics:
    """Aggregate for draws on which one bonus kind was applied."""

    applied_count: int = 0
    total_activated: int = 0
    total_lines: int = 0
    total_score: int = 0
    lines_distribution: Dict[int, int] = field(default_factory=dict)

    def average_activated(self) -> float:
        return _ratio(self.total_activated, self.applied_count)

    def average_lines(self) -> float:
        return _ratio(self.total_lines, self.applied_count)

    def average_score(self) -> float:
        return _ratio(self.total_score, self.applied_count)


@dataclass
class TotalStatistics:
    """Aggregate over every recorded draw."""

    total_draws: int = 0
    hit_count: int = 0
    win_count: int = 0
    total_lines: int = 0
    total_score: int = 0
    total_active_count: int = 0
    lines_distribution: Dict[int, int] = field(default_factory=dict)
    score_distribution: Dict[int, int] = field(default_factory=dict)
    bonus_statistics: Dict[str, BonusStatistics] = field(default_factory=dict)


def _ratio(numerator: float, denominator: int) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def _bump(distribution: Dict[int, int], key: int) -> None:
    distribution[key] = distribution.get(key, 0) + 1


def _distribution_csv(header: str, rows: list[tuple[int, int]]) -> str:
    return "\n".join([header, *(f"{key},{count}" for key, count in rows)])


class StatisticsManager:
    """Accumulates :class:`DrawStatistics` into a :class:`TotalStatistics`.

    Every accessor is a pure function of the aggregate. Rates and averages
    are ``0.0`` while no draw has been recorded.
    """

    def __init__(self) -> None:
        self._stats = TotalStatistics()

    @classmethod
    def from_stats(cls, stats: TotalStatistics) -> "StatisticsManager":
        """Return a manager that continues from a copy of ``stats``."""
        manager = cls()
        manager._stats = deepcopy(stats)
        return manager

    def reset(self) -> None:
        """Replace the aggregate with an empty one."""
        self._stats = TotalStatistics()

    def record(self, draw: DrawStatistics) -> None:
        """Fold one draw into the aggregate."""
        stats = self._stats
        stats.total_draws += 1
        if draw.is_hit:
            stats.hit_count += 1
        if draw.is_win:
            stats.win_count += 1
        stats.total_lines += draw.lines_completed
        stats.total_score += draw.score
        stats.total_active_count += draw.active_count
        _bump(stats.lines_distribution, draw.lines_completed)
        _bump(stats.score_distribution, draw.score)

        if draw.bonus_kind is not None:
            bonus = stats.bonus_statistics.setdefault(
                draw.bonus_kind, BonusStatistics()
            )
            bonus.applied_count += 1
            bonus.total_activated += draw.bonus_activated_count
            bonus.total_lines += draw.lines_completed
            bonus.total_score += draw.score
            _bump(bonus.lines_distribution, draw.lines_completed)

    # Counters
    def get_total_draws(self) -> int:
        return self._stats.total_draws

    def get_hit_count(self) -> int:
        return self._stats.hit_count

    def get_win_count(self) -> int:
        return self._stats.win_count

    def get_total_lines(self) -> int:
        return self._stats.total_lines

    def get_total_score(self) -> int:
        return self._stats.total_score

    # Derived values
    def get_hit_rate(self) -> float:
        return _ratio(self._stats.hit_count, self._stats.total_draws)

    def get_win_rate(self) -> float:
        return _ratio(self._stats.win_count, self._stats.total_draws)

    def get_average_lines(self) -> float:
        return _ratio(self._stats.total_lines, self._stats.total_draws)

    def get_average_score(self) -> float:
        return _ratio(self._stats.total_score, self._stats.total_draws)

    def get_average_active_count(self) -> float:
        return _ratio(self._stats.total_active_count, self._stats.total_draws)

    def get_lines_distribution(self) -> list[tuple[int, int]]:
        """Return ``(lines, count)`` pairs in ascending order of lines."""
        return sorted(self._stats.lines_distribution.items())

    def get_score_distribution(self) -> list[tuple[int, int]]:
        """Return ``(score, count)`` pairs in ascending order of score."""
        return sorted(self._stats.score_distribution.items())

    def get_bonus_statistics(self) -> list[tuple[str, BonusStatistics]]:
        """Return per-kind aggregates sorted by kind."""
        return [
            (kind, deepcopy(bonus))
            for kind, bonus in sorted(self._stats.bonus_statistics.items())
        ]

    def get_stats(self) -> TotalStatistics:
        """Return a detached copy of the aggregate."""
        return deepcopy(self._stats)

    # CSV projections
    def get_lines_distribution_csv(self) -> str:
        return _distribution_csv("lines,count", self.get_lines_distribution())

    def get_score_distribution_csv(self) -> str:
        return _distribution_csv("score,count", self.get_score_distribution())

    def get_bonus_statistics_csv(self) -> str:
        """Return the per-kind breakdown as CSV.

        Averages are per application of the kind. The ``lines_5_plus`` column
        counts every draw on which five or more lines were completed.
        """
        header = ",".join(
            [
                "kind",
                "applied_count",
                "average_activated",
                "average_lines",
                "average_score",
                *(f"lines_{bucket}" for bucket in LINE_BUCKETS),
                "lines_5_plus",
            ]
        )
        rows = [header]
        for kind, bonus in self.get_bonus_statistics():
            buckets = [bonus.lines_distribution.get(b, 0) for b in LINE_BUCKETS]
            overflow = sum(
                count
                for lines, count in bonus.lines_distribution.items()
                if lines > LINE_BUCKETS[-1]
            )
            rows.append(
                ",".join(
                    [
                        kind,
                        str(bonus.applied_count),
                        f"{bonus.average_activated():.4f}",
                        f"{bonus.average_lines():.4f}",
                        f"{bonus.average_score():.4f}",
                        *(str(count) for count in buckets),
                        str(overflow),
                    ]
                )
            )
        return "\n".join(rows)


__all__ = [
    "BonusStatistics",
    "DrawStatistics",
    "StatisticsManager",
    "TotalStatistics",
]
