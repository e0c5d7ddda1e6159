"""Shared value types for recorded match results."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from fractions import Fraction
from typing import Any, NamedTuple
from uuid import UUID

from domain.results.outcome import Outcome


def normalize_tags(tags: Iterable[str]) -> frozenset[str]:
    """Coerce a tag collection to a frozenset; a bare string is rejected."""
    if isinstance(tags, (str, bytes)):
        raise TypeError(f"tags must be an iterable of strings, not a single string: {tags!r}")
    return frozenset(str(tag) for tag in tags)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


@dataclass(frozen=True)
class MatchResult:
    """One concluded match, as appended to the ledger."""

    id: UUID
    outcome: Outcome
    timestamp: datetime
    tags: frozenset[str] = field(default_factory=frozenset)
    deck_id: str | None = None
    game_mode: str | None = None
    rank: int | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.tags, frozenset):
            object.__setattr__(self, "tags", normalize_tags(self.tags))
        object.__setattr__(self, "timestamp", to_naive_utc(self.timestamp))

    def as_payload(self) -> dict[str, Any]:
        """Plain-value view for storage adapters."""
        return {
            "result_id": str(self.id),
            "outcome": self.outcome.value,
            "event_time": self.timestamp,
            "tags": sorted(self.tags),
            "deck_id": self.deck_id,
            "game_mode": self.game_mode,
            "rank": self.rank,
        }


class Streak(NamedTuple):
    """Trailing run of identical outcomes ending at the most recent entry."""

    outcome: Outcome
    length: int


@dataclass(frozen=True)
class LedgerSummary:
    """Aggregate view of one ledger snapshot, as rendered by an overlay."""

    total: int
    wins: int
    losses: int
    ties: int
    unknown: int
    win_rate: Fraction | None
    streak: Streak

    def counts(self) -> dict[Outcome, int]:
        return {
            Outcome.UNKNOWN: self.unknown,
            Outcome.WIN: self.wins,
            Outcome.LOSS: self.losses,
            Outcome.TIED: self.ties,
        }


__all__ = ["LedgerSummary", "MatchResult", "Streak"]
