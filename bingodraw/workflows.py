import logging
import random
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import GameSettings, load_settings
from .game.bonus import BonusRegistry
from .game.engine import GameEngine
from .game.statistics import StatisticsManager
from .models import DrawRecord, SimulationRun

logger = logging.getLogger(__name__)


def build_game_engine(
    settings: Optional[GameSettings] = None,
    *,
    registry: Optional[BonusRegistry] = None,
) -> GameEngine:
    """Create a :class:`GameEngine` configured from ``settings``.

    Parameters
    ----------
    settings : Optional[GameSettings], default: None
        Configuration to apply. When omitted, settings are read from the
        environment with :func:`~bingodraw.config.load_settings`.
    registry : Optional[BonusRegistry], default: None
        Optional bonus registry override.

    Returns
    -------
    GameEngine
        Engine seeded with ``settings.seed`` when one is configured.

    Raises
    ------
    ValueError
        If the settings reference an unknown mode or scoring policy.
    """
    settings = settings or load_settings()
    rng = random.Random(settings.seed) if settings.seed is not None else None
    return GameEngine(registry=registry, rng=rng, settings=settings)


def run_simulation(
    session: Session,
    count: int,
    *,
    engine: Optional[GameEngine] = None,
    settings: Optional[GameSettings] = None,
    name: Optional[str] = None,
    record_draws: bool = True,
) -> SimulationRun:
    """Run ``count`` draws and persist the run.

    The workflow performs the following steps:

    1. Build an engine from ``settings`` unless one is supplied.
    2. Run :meth:`GameEngine.draw_multiple` with ``count``.
    3. Store a :class:`SimulationRun` holding the engine configuration and
       its statistics, plus one :class:`DrawRecord` per draw when
       ``record_draws`` is set.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    count : int
        Number of draws to run. Must not be negative.
    engine : Optional[GameEngine], default: None
        Engine to draw with. Its statistics keep accumulating, so the stored
        aggregate covers every draw the engine has made, not only this run.
    settings : Optional[GameSettings], default: None
        Settings used to build an engine when ``engine`` is omitted. The seed
        recorded on the run is taken from here.
    name : Optional[str], default: None
        Optional label for the run.
    record_draws : bool, default: True
        Persist one row per draw. Disable for very large runs.

    Returns
    -------
    SimulationRun
        The flushed run with populated ``id``.

    Raises
    ------
    ValueError
        If ``count`` is negative.
    """
    if count < 0:
        raise ValueError("count must not be negative")

    if engine is None:
        settings = settings or load_settings()
        engine = build_game_engine(settings)

    results = engine.draw_multiple(count)

    run = SimulationRun(
        name=name,
        scoring_key=engine.scoring_policy.key,
        always_bonus_mode=engine.always_bonus_mode,
        always_bonus_kind=engine.always_bonus_kind,
        randomize_board=engine.randomize_board,
        active_target=engine.active_target,
        enabled_bonus_kinds=sorted(engine.enabled_bonus_kinds),
        seed=settings.seed if settings is not None else None,
    )
    run.apply_statistics(engine.get_statistics().get_stats())
    if record_draws:
        run.draws.extend(
            DrawRecord.from_result(result, sequence)
            for sequence, result in enumerate(results)
        )

    session.add(run)
    session.flush()
    logger.info(
        "Stored simulation run %s (%d draws, %d recorded)",
        run.id,
        run.total_draws,
        len(results) if record_draws else 0,
    )
    return run


def load_run_statistics(run: SimulationRun) -> StatisticsManager:
    """Return a :class:`StatisticsManager` holding the statistics of ``run``."""
    return StatisticsManager.from_stats(run.to_statistics())


def latest_runs(session: Session, *, limit: int) -> list[SimulationRun]:
    """Return up to ``limit`` runs, newest first.

    Raises
    ------
    ValueError
        If ``limit`` is not positive.
    """
    if limit <= 0:
        raise ValueError("limit must be a positive integer")

    stmt = (
        select(SimulationRun)
        .order_by(SimulationRun.created_at.desc(), SimulationRun.id.desc())
        .limit(limit)
    )
    return list(session.scalars(stmt).all())
