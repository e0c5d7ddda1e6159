"""match_results table model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Enum, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class MatchResultRecord(Base):
    """Append-only history of recorded match outcomes.

    ``sequence`` preserves ledger insertion order; ``result_id`` is the
    domain-level UUID.
    """

    __tablename__ = "match_results"
    __table_args__ = (
        Index("idx_match_results_event_time", "event_time"),
        Index("idx_match_results_deck", "deck_id"),
    )

    sequence: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    result_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    outcome: Mapped[str] = mapped_column(
        Enum(
            "unknown",
            "win",
            "loss",
            "tied",
            name="match_outcome",
            native_enum=False,
        ),
        nullable=False,
    )
    event_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    tags: Mapped[list[Any]] = mapped_column(JSON, nullable=False, default=list)
    deck_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    game_mode: Mapped[str | None] = mapped_column(String(32), nullable=True)
    rank: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
