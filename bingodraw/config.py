"""Environment-driven settings for simulations."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from typing import Mapping, Optional

from dotenv import load_dotenv

from .game.engine import ActiveTarget, AlwaysBonusMode
from .game.scoring import DEFAULT_SCORING_KEY

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class GameSettings:
    """Configuration applied to a :class:`~bingodraw.game.engine.GameEngine`.

    Attributes
    ----------
    enabled_bonus_kinds : Optional[tuple[str, ...]]
        Kinds that may be picked at random. ``None`` keeps every registered
        kind enabled.
    always_bonus_mode : str
        One of :attr:`AlwaysBonusMode.ALL`.
    always_bonus_kind : Optional[str]
        Kind used by the fixed always-bonus mode.
    randomize_board : bool
        Rebuild the open cells before every draw.
    active_target : str
        One of :attr:`ActiveTarget.ALL`.
    scoring : str
        Scoring policy key.
    seed : Optional[int]
        Seed for the engine's random generator.
    log_level : str
        Logging level name used by the scripts.
    """

    enabled_bonus_kinds: Optional[tuple[str, ...]] = None
    always_bonus_mode: str = AlwaysBonusMode.DISABLED
    always_bonus_kind: Optional[str] = None
    randomize_board: bool = False
    active_target: str = ActiveTarget.FIXED
    scoring: str = DEFAULT_SCORING_KEY
    seed: Optional[int] = None
    log_level: str = "WARNING"


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Environment variable '{name}' must be a boolean, got {value!r}")


def _parse_choice(name: str, value: str, choices: tuple[str, ...]) -> str:
    normalized = value.strip().lower()
    if normalized not in choices:
        raise ValueError(
            f"Environment variable '{name}' must be one of {', '.join(choices)}, "
            f"got {value!r}"
        )
    return normalized


def load_settings(env: Optional[Mapping[str, str]] = None) -> GameSettings:
    """Read :class:`GameSettings` from ``env``.

    When ``env`` is omitted, variables from a ``.env`` file are loaded into the
    process environment first and ``os.environ`` is used.

    Raises
    ------
    ValueError
        If any variable holds a value that cannot be parsed.
    """
    if env is None:
        load_dotenv()
        env = os.environ

    enabled: Optional[tuple[str, ...]] = None
    raw_enabled = env.get("BINGO_ENABLED_BONUSES")
    if raw_enabled is not None:
        enabled = tuple(kind.strip() for kind in raw_enabled.split(",") if kind.strip())

    mode = _parse_choice(
        "BINGO_ALWAYS_BONUS_MODE",
        env.get("BINGO_ALWAYS_BONUS_MODE", AlwaysBonusMode.DISABLED),
        AlwaysBonusMode.ALL,
    )
    kind = (env.get("BINGO_ALWAYS_BONUS_KIND") or "").strip() or None
    if mode == AlwaysBonusMode.FIXED and kind is None:
        raise ValueError(
            "Environment variable 'BINGO_ALWAYS_BONUS_KIND' is required when "
            "BINGO_ALWAYS_BONUS_MODE is 'fixed'"
        )

    seed: Optional[int] = None
    raw_seed = (env.get("BINGO_SEED") or "").strip()
    if raw_seed:
        try:
            seed = int(raw_seed)
        except ValueError as exc:
            raise ValueError(
                f"Environment variable 'BINGO_SEED' must be an integer, got {raw_seed!r}"
            ) from exc

    log_level = env.get("BINGO_LOG_LEVEL", "WARNING").strip().upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"Unknown log level {log_level!r} in 'BINGO_LOG_LEVEL'")

    return GameSettings(
        enabled_bonus_kinds=enabled,
        always_bonus_mode=mode,
        always_bonus_kind=kind,
        randomize_board=_parse_bool(
            "BINGO_RANDOMIZE_BOARD", env.get("BINGO_RANDOMIZE_BOARD", "false")
        ),
        active_target=_parse_choice(
            "BINGO_ACTIVE_TARGET",
            env.get("BINGO_ACTIVE_TARGET", ActiveTarget.FIXED),
            ActiveTarget.ALL,
        ),
        scoring=(env.get("BINGO_SCORING") or DEFAULT_SCORING_KEY).strip(),
        seed=seed,
        log_level=log_level,
    )


__all__ = ["GameSettings", "load_settings"]
