"""Append-only ledger of match results with aggregate queries."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from datetime import UTC, datetime
from fractions import Fraction
from uuid import UUID, uuid4

from domain.results.common import LedgerSummary, MatchResult, Streak, normalize_tags
from domain.results.errors import IdentityGenerationError
from domain.results.filters import ResultFilter
from domain.results.outcome import Outcome

logger = logging.getLogger(__name__)

IdFactory = Callable[[], UUID]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class ResultLedger:
    """In-memory, append-only record of outcomes in chronological order.

    Writes are serialised by a lock. Reads are lock-free: each one captures the
    published length once and works on the immutable prefix ``[0:length)``, so
    an append racing with a read is either fully visible or not at all.
    """

    def __init__(
        self,
        *,
        id_factory: IdFactory = uuid4,
        clock: Clock = utc_now,
        default_tags: Iterable[str] = (),
    ) -> None:
        self._id_factory = id_factory
        self._clock = clock
        self.default_tags = normalize_tags(default_tags)
        self._results: list[MatchResult] = []
        self._ids: set[UUID] = set()
        self._length = 0
        self._write_lock = threading.Lock()

    @classmethod
    def from_results(
        cls,
        results: Iterable[MatchResult],
        *,
        id_factory: IdFactory = uuid4,
        clock: Clock = utc_now,
        default_tags: Iterable[str] = (),
    ) -> ResultLedger:
        """Rebuild a ledger by replaying stored results in order."""
        ledger = cls(id_factory=id_factory, clock=clock, default_tags=default_tags)
        for result in results:
            ledger.append(result)
        return ledger

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[MatchResult]:
        return iter(self._snapshot())

    def record(
        self,
        outcome: Outcome | str,
        tags: Iterable[str] = (),
        *,
        deck_id: str | None = None,
        game_mode: str | None = None,
        rank: int | None = None,
    ) -> MatchResult:
        """Append a new result stamped with the current time and a fresh id."""
        with self._write_lock:
            result = self._prepare_locked(
                outcome, tags, deck_id=deck_id, game_mode=game_mode, rank=rank
            )
            self._append_locked(result)

        logger.debug(
            "Recorded result id=%s outcome=%s entries=%d",
            result.id,
            result.outcome.value,
            len(self),
        )
        return result

    def prepare(
        self,
        outcome: Outcome | str,
        tags: Iterable[str] = (),
        *,
        deck_id: str | None = None,
        game_mode: str | None = None,
        rank: int | None = None,
    ) -> MatchResult:
        """Build the entry ``record`` would append, without appending it.

        Used when the entry must be stored elsewhere first; pass the result to
        ``append`` once that succeeds.
        """
        with self._write_lock:
            return self._prepare_locked(
                outcome, tags, deck_id=deck_id, game_mode=game_mode, rank=rank
            )

    def append(self, result: MatchResult) -> MatchResult:
        """Append an already-built result; its id must be new to this ledger."""
        with self._write_lock:
            self._append_locked(result)
        return result

    def results(self, result_filter: ResultFilter | None = None) -> tuple[MatchResult, ...]:
        """Snapshot of matching entries in insertion order."""
        snapshot = self._snapshot()
        if result_filter is None:
            return snapshot
        result_filter.validate()
        return tuple(result_filter.apply(snapshot))

    def count(self, result_filter: ResultFilter | None = None) -> int:
        if result_filter is None:
            return self._length
        return len(self.results(result_filter))

    def win_rate(self, result_filter: ResultFilter | None = None) -> Fraction | None:
        """Share of wins among matching entries; ``None`` when nothing matches."""
        return _win_rate(self.results(result_filter))

    def streak(self, result_filter: ResultFilter | None = None) -> Streak:
        """Trailing run of identical outcomes, scanning from the latest entry.

        ``UNKNOWN`` is neutral: it never extends a run, and a trailing unknown
        entry yields ``(UNKNOWN, 0)``.
        """
        return _trailing_streak(self.results(result_filter))

    def summary(self, result_filter: ResultFilter | None = None) -> LedgerSummary:
        """Counts, win rate and streak computed from a single snapshot."""
        results = self.results(result_filter)
        counts = dict.fromkeys(Outcome, 0)
        for result in results:
            counts[result.outcome] += 1

        return LedgerSummary(
            total=len(results),
            wins=counts[Outcome.WIN],
            losses=counts[Outcome.LOSS],
            ties=counts[Outcome.TIED],
            unknown=counts[Outcome.UNKNOWN],
            win_rate=_win_rate(results),
            streak=_trailing_streak(results),
        )

    def _snapshot(self) -> tuple[MatchResult, ...]:
        length = self._length
        return tuple(self._results[:length])

    def _prepare_locked(
        self,
        outcome: Outcome | str,
        tags: Iterable[str],
        *,
        deck_id: str | None,
        game_mode: str | None,
        rank: int | None,
    ) -> MatchResult:
        resolved = Outcome.parse(outcome)
        result_tags = self.default_tags | normalize_tags(tags)
        try:
            result_id = self._id_factory()
        except Exception as exc:
            logger.warning("Result id generation failed: %s", exc)
            raise IdentityGenerationError(f"Could not generate result id: {exc}") from exc
        if result_id in self._ids:
            logger.warning("Result id generator returned a duplicate id=%s", result_id)
            raise IdentityGenerationError(f"Generated result id {result_id} is already recorded")

        return MatchResult(
            id=result_id,
            outcome=resolved,
            timestamp=self._clock(),
            tags=result_tags,
            deck_id=deck_id,
            game_mode=game_mode,
            rank=rank,
        )

    def _append_locked(self, result: MatchResult) -> None:
        if result.id in self._ids:
            raise IdentityGenerationError(f"Duplicate result id {result.id}")
        self._results.append(result)
        self._ids.add(result.id)
        # Publish only after the entry is in place.
        self._length = len(self._results)


def _win_rate(results: tuple[MatchResult, ...]) -> Fraction | None:
    if not results:
        return None
    wins = sum(1 for result in results if result.outcome is Outcome.WIN)
    return Fraction(wins, len(results))


def _trailing_streak(results: tuple[MatchResult, ...]) -> Streak:
    if not results:
        return Streak(Outcome.UNKNOWN, 0)

    latest = results[-1].outcome
    if latest is Outcome.UNKNOWN:
        return Streak(Outcome.UNKNOWN, 0)

    length = 0
    for result in reversed(results):
        if result.outcome is not latest:
            break
        length += 1
    return Streak(latest, length)


__all__ = ["ResultLedger", "utc_now"]
