"""Scoring policies that turn completed lines into points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional


@dataclass(frozen=True)
class ScoringPolicy:
    """Definition of a scoring policy.

    Attributes
    ----------
    key : str
        Registry key used to identify the policy. This is used by
        :class:`ScoringRegistry` to map to the policy definition.
    scorer : Callable[[int], int]
        Callable that takes the number of lines completed on a draw and
        returns the points awarded.
    description : Optional[str]
        Human-readable summary of the policy's behaviour.
    """

    key: str
    scorer: Callable[[int], int]
    description: Optional[str] = None

    def score(self, lines_completed: int) -> int:
        """Return the points for ``lines_completed`` lines."""
        if lines_completed <= 0:
            return 0
        return int(self.scorer(lines_completed))


class ScoringRegistry:
    """Mutable registry mapping policy keys to definitions."""

    def __init__(self) -> None:
        self._policies: Dict[str, ScoringPolicy] = {}

    def register(self, policy: ScoringPolicy, *, replace: bool = False) -> None:
        """Register a scoring policy under its key.

        Parameters
        ----------
        policy : ScoringPolicy
            Policy to add to the registry.
        replace : bool, default: False
            When ``True`` an existing registration with the same key is
            overwritten. Otherwise a duplicate raises :class:`ValueError`.
        """
        if not replace and policy.key in self._policies:
            raise ValueError(f"Scoring policy '{policy.key}' is already registered")
        self._policies[policy.key] = policy

    def get(self, key: str) -> ScoringPolicy:
        """Return the policy registered under ``key``."""
        try:
            return self._policies[key]
        except KeyError as exc:
            raise KeyError(f"Unknown scoring policy '{key}'") from exc

    def score(self, key: str, lines_completed: int) -> int:
        """Score ``lines_completed`` with the policy referenced by ``key``."""
        return self.get(key).score(lines_completed)

    def available_policies(self) -> Dict[str, ScoringPolicy]:
        """Return a copy of the registered policies keyed by identifier."""
        return dict(self._policies)


def table_scorer(table: Mapping[int, int]) -> Callable[[int], int]:
    """Build a scorer from a ``lines -> points`` table.

    Line counts above the largest key score the same as the largest key.
    """
    if not table:
        raise ValueError("score table must not be empty")
    ceiling = max(table)
    points = dict(table)

    def scorer(lines_completed: int) -> int:
        return points.get(min(lines_completed, ceiling), 0)

    return scorer


TIERED_SCORE_TABLE: Mapping[int, int] = {0: 0, 1: 1, 2: 3, 3: 10, 4: 50, 5: 200}

DEFAULT_SCORING_KEY = "lines"

DEFAULT_SCORING_REGISTRY = ScoringRegistry()
DEFAULT_SCORING_REGISTRY.register(
    ScoringPolicy(
        key="lines",
        scorer=lambda lines_completed: lines_completed,
        description="One point per completed line.",
    )
)
DEFAULT_SCORING_REGISTRY.register(
    ScoringPolicy(
        key="tiered",
        scorer=table_scorer(TIERED_SCORE_TABLE),
        description=(
            "Escalating payout: 1 line scores 1, 2 lines 3, 3 lines 10, "
            "4 lines 50 and 5 or more lines 200."
        ),
    )
)

__all__ = [
    "DEFAULT_SCORING_KEY",
    "DEFAULT_SCORING_REGISTRY",
    "ScoringPolicy",
    "ScoringRegistry",
    "TIERED_SCORE_TABLE",
    "table_scorer",
]
