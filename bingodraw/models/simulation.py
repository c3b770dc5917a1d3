"""Database models for persisted simulation runs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from .base import Base
from .id_type import ID_TYPE
from ..game.statistics import BonusStatistics, TotalStatistics

if TYPE_CHECKING:
    from ..game.engine import DrawResult


def _int_keyed(data: Optional[dict[str, Any]]) -> dict[int, int]:
    """JSON objects come back with string keys; restore the integer buckets."""
    return {int(key): int(value) for key, value in (data or {}).items()}


def _str_keyed(data: dict[int, int]) -> dict[str, int]:
    return {str(key): value for key, value in sorted(data.items())}


class SimulationRun(Base):
    """A batch of draws run with one engine configuration.

    Holds a snapshot of the configuration, the aggregate statistics at the end
    of the run and, optionally, one :class:`DrawRecord` per draw.
    """

    __tablename__ = "simulation_runs"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    """Primary key."""

    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    """Optional label chosen by the caller."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    """Timestamp when the run was stored."""

    scoring_key: Mapped[str] = mapped_column(String(50), nullable=False)
    always_bonus_mode: Mapped[str] = mapped_column(String(20), nullable=False)
    always_bonus_kind: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    randomize_board: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    active_target: Mapped[str] = mapped_column(String(20), nullable=False)
    enabled_bonus_kinds: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    seed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    total_draws: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    win_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_lines: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_active_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lines_distribution: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False)
    """``{"lines": count}``; keys are strings because JSON objects require them."""

    score_distribution: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False)
    bonus_statistics: Mapped[dict[str, dict[str, Any]]] = mapped_column(
        JSON, nullable=False
    )
    """Per-kind aggregates keyed by bonus kind."""

    draws: Mapped[list["DrawRecord"]] = relationship(
        back_populates="run",
        cascade="all, delete-orphan",
        order_by="DrawRecord.sequence",
    )

    __table_args__ = (
        CheckConstraint(
            "always_bonus_mode IN ('disabled','off','fixed','random')",
            name="always_bonus_mode_enum",
        ),
        CheckConstraint("active_target IN ('fixed','random')", name="active_target_enum"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<SimulationRun(id={self.id}, name={self.name!r}, "
            f"total_draws={self.total_draws}, scoring_key='{self.scoring_key}')>"
        )

    def apply_statistics(self, stats: TotalStatistics) -> None:
        """Copy ``stats`` into the aggregate columns."""
        self.total_draws = stats.total_draws
        self.hit_count = stats.hit_count
        self.win_count = stats.win_count
        self.total_lines = stats.total_lines
        self.total_score = stats.total_score
        self.total_active_count = stats.total_active_count
        self.lines_distribution = _str_keyed(stats.lines_distribution)
        self.score_distribution = _str_keyed(stats.score_distribution)
        self.bonus_statistics = {
            kind: {
                "applied_count": bonus.applied_count,
                "total_activated": bonus.total_activated,
                "total_lines": bonus.total_lines,
                "total_score": bonus.total_score,
                "lines_distribution": _str_keyed(bonus.lines_distribution),
            }
            for kind, bonus in sorted(stats.bonus_statistics.items())
        }

    def to_statistics(self) -> TotalStatistics:
        """Rebuild the :class:`TotalStatistics` stored on this run."""
        return TotalStatistics(
            total_draws=self.total_draws,
            hit_count=self.hit_count,
            win_count=self.win_count,
            total_lines=self.total_lines,
            total_score=self.total_score,
            total_active_count=self.total_active_count,
            lines_distribution=_int_keyed(self.lines_distribution),
            score_distribution=_int_keyed(self.score_distribution),
            bonus_statistics={
                kind: BonusStatistics(
                    applied_count=data["applied_count"],
                    total_activated=data["total_activated"],
                    total_lines=data["total_lines"],
                    total_score=data["total_score"],
                    lines_distribution=_int_keyed(data.get("lines_distribution")),
                )
                for kind, data in (self.bonus_statistics or {}).items()
            },
        )

    @classmethod
    def get_by_name(cls, session: Session, name: str) -> Optional["SimulationRun"]:
        """Return the most recent run labelled ``name`` if it exists."""
        stmt = (
            select(cls)
            .where(cls.name == name)
            .order_by(cls.created_at.desc(), cls.id.desc())
        )
        return session.scalars(stmt).first()


class DrawRecord(Base):
    """One stored :class:`~bingodraw.game.engine.DrawResult`."""

    __tablename__ = "draw_records"

    id: Mapped[int] = mapped_column(ID_TYPE, primary_key=True, autoincrement=True)
    run_id: Mapped[int] = mapped_column(
        ID_TYPE,
        ForeignKey("simulation_runs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    """Zero-based position of the draw within its run."""

    drawn_number: Mapped[int] = mapped_column(Integer, nullable=False)
    is_hit: Mapped[bool] = mapped_column(Boolean, nullable=False)
    activated_numbers: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    bonus_queued: Mapped[bool] = mapped_column(Boolean, nullable=False)
    bonus_applied: Mapped[bool] = mapped_column(Boolean, nullable=False)
    bonus_kind: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    bonus_queued_kind: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    lines_completed: Mapped[int] = mapped_column(Integer, nullable=False)
    line_numbers: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    active_count: Mapped[int] = mapped_column(Integer, nullable=False)

    run: Mapped["SimulationRun"] = relationship(back_populates="draws")

    __table_args__ = (
        UniqueConstraint("run_id", "sequence", name="uq_run_sequence"),
        CheckConstraint("drawn_number >= 1 AND drawn_number <= 25", name="drawn_number_range"),
    )

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return (
            f"<DrawRecord(id={self.id}, run_id={self.run_id}, sequence={self.sequence}, "
            f"drawn_number={self.drawn_number}, lines_completed={self.lines_completed})>"
        )

    @classmethod
    def from_result(cls, result: "DrawResult", sequence: int) -> "DrawRecord":
        """Build an unsaved record for ``result`` at position ``sequence``."""
        return cls(
            sequence=sequence,
            drawn_number=result.drawn_number,
            is_hit=result.is_hit,
            activated_numbers=list(result.activated_numbers),
            bonus_queued=result.bonus_queued,
            bonus_applied=result.bonus_applied,
            bonus_kind=result.bonus_kind,
            bonus_queued_kind=result.bonus_queued_kind,
            lines_completed=result.lines_completed,
            line_numbers=list(result.line_numbers),
            score=result.score,
            active_count=result.active_count,
        )
