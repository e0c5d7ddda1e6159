"""Append-only persistence for recorded match results."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from domain.results import MatchResult, Outcome
from domain.results.ledger import utc_now
from models import Base, MatchResultRecord


def _result_to_row(result: MatchResult) -> dict[str, Any]:
    return result.as_payload()


def _row_to_result(row: MatchResultRecord) -> MatchResult:
    tags = row.tags or []
    if not isinstance(tags, list):
        raise ValueError(f"result_id={row.result_id} has non-list tags payload: {tags!r}")
    return MatchResult(
        id=UUID(row.result_id),
        outcome=Outcome(row.outcome),
        timestamp=row.event_time,
        tags=frozenset(str(tag) for tag in tags),
        deck_id=row.deck_id,
        game_mode=row.game_mode,
        rank=row.rank,
    )


class MatchResultRepository:
    """Storage adapter that serialises the ledger sequence; no updates or deletes."""

    model = MatchResultRecord

    def ensure_schema(self, engine: Engine) -> None:
        """Create the results table and indexes when missing."""
        with engine.begin() as connection:
            Base.metadata.create_all(bind=connection, tables=[self.model.__table__], checkfirst=True)

    def insert_results(self, session: Session, results: Sequence[MatchResult]) -> None:
        """Append results in the given order."""
        if not results:
            return
        payload = [_result_to_row(result) for result in results]
        session.execute(insert(self.model), payload)

    def fetch_results(
        self,
        session: Session,
        *,
        lookback_days: int | None = None,
        as_of_time: datetime | None = None,
    ) -> list[MatchResult]:
        """Load stored results in insertion order, optionally limited to a recent window."""
        statement = select(self.model).order_by(self.model.sequence)
        if lookback_days is not None and lookback_days > 0:
            reference_time = as_of_time or utc_now()
            cutoff = reference_time - timedelta(days=lookback_days)
            statement = statement.where(self.model.event_time >= cutoff)

        rows = session.execute(statement).scalars().all()
        return [_row_to_result(row) for row in rows]

    def count_results(self, session: Session) -> int:
        result = session.scalar(select(func.count()).select_from(self.model))
        return int(result or 0)


MATCH_RESULT_REPOSITORY = MatchResultRepository()


__all__ = ["MATCH_RESULT_REPOSITORY", "MatchResultRepository"]
