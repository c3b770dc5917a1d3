from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .simulation import DrawRecord, SimulationRun  # noqa: F401

__all__ = [
    "Base",
    "DrawRecord",
    "SimulationRun",
]
