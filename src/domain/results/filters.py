"""Query predicates over recorded match results."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from domain.results.common import MatchResult, normalize_tags, to_naive_utc
from domain.results.errors import InvalidFilterError
from domain.results.outcome import Outcome


@dataclass(frozen=True)
class ResultFilter:
    """Conjunction of optional criteria; unset fields match everything.

    ``since`` is inclusive and ``until`` is exclusive. ``tags`` matches results
    carrying every requested tag.
    """

    outcome: Outcome | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    since: datetime | None = None
    until: datetime | None = None
    deck_id: str | None = None
    game_mode: str | None = None

    def __post_init__(self) -> None:
        if self.outcome is not None and not isinstance(self.outcome, Outcome):
            try:
                object.__setattr__(self, "outcome", Outcome.parse(self.outcome))
            except ValueError as exc:
                raise InvalidFilterError(str(exc)) from exc
        if not isinstance(self.tags, frozenset):
            try:
                object.__setattr__(self, "tags", normalize_tags(self.tags))
            except TypeError as exc:
                raise InvalidFilterError(str(exc)) from exc
        # Bounds compare against naive-UTC result timestamps.
        for bound in ("since", "until"):
            value = getattr(self, bound)
            if value is None:
                continue
            if not isinstance(value, datetime):
                raise InvalidFilterError(f"{bound} must be a datetime, got {type(value).__name__}")
            object.__setattr__(self, bound, to_naive_utc(value))
        self.validate()

    def validate(self) -> None:
        """Fail fast on criteria that can never describe a real range."""
        if self.since is not None and self.until is not None and self.since > self.until:
            raise InvalidFilterError(
                f"since={self.since.isoformat()} is later than until={self.until.isoformat()}"
            )

    def matches(self, result: MatchResult) -> bool:
        if self.outcome is not None and result.outcome is not self.outcome:
            return False
        if self.tags and not self.tags <= result.tags:
            return False
        if self.since is not None and result.timestamp < self.since:
            return False
        if self.until is not None and result.timestamp >= self.until:
            return False
        if self.deck_id is not None and result.deck_id != self.deck_id:
            return False
        if self.game_mode is not None and result.game_mode != self.game_mode:
            return False
        return True

    def apply(self, results: Iterable[MatchResult]) -> list[MatchResult]:
        return [result for result in results if self.matches(result)]


def build_filter(
    *,
    outcome: Outcome | str | None = None,
    tags: Iterable[str] = (),
    since: datetime | None = None,
    until: datetime | None = None,
    deck_id: str | None = None,
    game_mode: str | None = None,
) -> ResultFilter | None:
    """Return a filter for the given criteria, or ``None`` when nothing is set."""
    try:
        tag_set = normalize_tags(tags)
    except TypeError as exc:
        raise InvalidFilterError(str(exc)) from exc
    if (
        outcome is None
        and not tag_set
        and since is None
        and until is None
        and deck_id is None
        and game_mode is None
    ):
        return None
    return ResultFilter(
        outcome=outcome,  # type: ignore[arg-type]
        tags=tag_set,
        since=since,
        until=until,
        deck_id=deck_id,
        game_mode=game_mode,
    )


__all__ = ["ResultFilter", "build_filter"]
