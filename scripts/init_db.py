from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import inspect

from bingodraw.db.engine import make_engine

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def report_schema() -> None:
    """Print the migration revision and the tables of the configured database."""
    engine = make_engine()
    with engine.connect() as connection:
        revision = MigrationContext.configure(connection).get_current_revision()
        tables = sorted(inspect(connection).get_table_names())
    print("Schema revision:", revision or "<none>")
    print("Simulation tables:", ", ".join(t for t in tables if t != "alembic_version"))


def main() -> None:
    """Bring the simulation database to the latest revision."""
    upgrade_db()
    report_schema()


if __name__ == "__main__":
    main()
