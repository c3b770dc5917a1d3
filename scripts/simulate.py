"""Run a simulation from the command line.

Settings come from the environment (see ``bingodraw.config``); the flags
below override the draw count, the label and the seed.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import logging
import sys
from typing import Optional, Sequence

from bingodraw.config import load_settings
from bingodraw.db.engine import get_sessionmaker, make_engine
from bingodraw.game.statistics import StatisticsManager
from bingodraw.models import Base
from bingodraw.workflows import build_game_engine, run_simulation

CSV_EXPORTS = {
    "lines": StatisticsManager.get_lines_distribution_csv,
    "score": StatisticsManager.get_score_distribution_csv,
    "bonus": StatisticsManager.get_bonus_statistics_csv,
}


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--draws", type=int, default=1000, help="number of draws")
    parser.add_argument("--name", default=None, help="label stored with the run")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="do not write the run to the database",
    )
    parser.add_argument(
        "--csv",
        choices=sorted(CSV_EXPORTS),
        default=None,
        help="print a CSV export instead of the summary",
    )
    return parser.parse_args(argv)


def _print_summary(stats: StatisticsManager) -> None:
    print(f"Draws:          {stats.get_total_draws()}")
    print(f"Hit rate:       {stats.get_hit_rate():.4f}")
    print(f"Win rate:       {stats.get_win_rate():.4f}")
    print(f"Average lines:  {stats.get_average_lines():.4f}")
    print(f"Average score:  {stats.get_average_score():.4f}")
    print(f"Average active: {stats.get_average_active_count():.4f}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        settings = load_settings()
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2
    if args.seed is not None:
        settings = replace(settings, seed=args.seed)
    logging.basicConfig(level=settings.log_level)

    if args.draws < 0:
        print("--draws must not be negative", file=sys.stderr)
        return 2

    engine = build_game_engine(settings)
    if args.no_persist:
        engine.draw_multiple(args.draws)
    else:
        db_engine = make_engine()
        Base.metadata.create_all(db_engine)
        Session = get_sessionmaker(db_engine)
        with Session.begin() as session:
            run = run_simulation(
                session,
                args.draws,
                engine=engine,
                settings=settings,
                name=args.name,
            )
            print(f"Stored run {run.id}", file=sys.stderr)

    stats = engine.get_statistics()
    if args.csv is not None:
        print(CSV_EXPORTS[args.csv](stats))
    else:
        _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
