"""Unit tests for the append-only result ledger."""

from __future__ import annotations

import itertools
import threading
from datetime import datetime, timedelta, timezone
from fractions import Fraction
from uuid import UUID

import pytest

from domain.results import (
    IdentityGenerationError,
    InvalidFilterError,
    MatchResult,
    Outcome,
    ResultFilter,
    ResultLedger,
    Streak,
)

START = datetime(2026, 1, 1, 12, 0, 0)


def _sequential_ids():
    counter = itertools.count(1)
    return lambda: UUID(int=next(counter))


def _stepping_clock(step: timedelta = timedelta(minutes=10)):
    ticks = itertools.count()
    return lambda: START + step * next(ticks)


def _ledger(*outcomes: Outcome, **kwargs) -> ResultLedger:
    ledger = ResultLedger(id_factory=_sequential_ids(), clock=_stepping_clock(), **kwargs)
    for outcome in outcomes:
        ledger.record(outcome)
    return ledger


def test_record_returns_stamped_result() -> None:
    ledger = _ledger()
    result = ledger.record(Outcome.WIN, {"ranked"}, deck_id="deck-1", game_mode="ranked", rank=12)

    assert result.id == UUID(int=1)
    assert result.outcome is Outcome.WIN
    assert result.timestamp == START
    assert result.tags == frozenset({"ranked"})
    assert result.deck_id == "deck-1"
    assert result.game_mode == "ranked"
    assert result.rank == 12
    assert ledger.results() == (result,)


def test_record_accepts_outcome_strings() -> None:
    ledger = _ledger()
    assert ledger.record("WIN").outcome is Outcome.WIN
    assert ledger.record("tied").outcome is Outcome.TIED


def test_record_rejects_unknown_outcome_string() -> None:
    ledger = _ledger()
    with pytest.raises(ValueError, match="Unsupported outcome"):
        ledger.record("draw")
    assert ledger.count() == 0


def test_record_merges_default_tags() -> None:
    ledger = _ledger(default_tags=("season-1",))
    result = ledger.record(Outcome.LOSS, ["arena"])
    assert result.tags == frozenset({"season-1", "arena"})


def test_results_are_immutable() -> None:
    ledger = _ledger(Outcome.WIN)
    with pytest.raises(AttributeError):
        ledger.results()[0].outcome = Outcome.LOSS  # type: ignore[misc]


def test_count_matches_number_of_records() -> None:
    outcomes = [Outcome.WIN, Outcome.LOSS, Outcome.TIED, Outcome.UNKNOWN, Outcome.WIN] * 3
    ledger = _ledger(*outcomes)
    assert ledger.count() == len(outcomes)
    assert len(ledger) == len(outcomes)


def test_outcome_counts_partition_total() -> None:
    ledger = _ledger(
        Outcome.WIN, Outcome.WIN, Outcome.LOSS, Outcome.TIED, Outcome.UNKNOWN, Outcome.LOSS
    )
    per_outcome = [ledger.count(ResultFilter(outcome=outcome)) for outcome in Outcome]
    assert per_outcome == [1, 2, 2, 1]
    assert sum(per_outcome) == ledger.count()


def test_win_rate_is_none_only_without_data() -> None:
    ledger = _ledger()
    assert ledger.win_rate() is None

    ledger.record(Outcome.LOSS)
    assert ledger.win_rate() == Fraction(0)
    assert ledger.win_rate() is not None


def test_win_rate_is_none_when_filter_matches_nothing() -> None:
    ledger = _ledger(Outcome.WIN, Outcome.LOSS)
    assert ledger.win_rate(ResultFilter(deck_id="missing")) is None


def test_win_win_loss_win_scenario() -> None:
    ledger = _ledger(Outcome.WIN, Outcome.WIN, Outcome.LOSS, Outcome.WIN)
    assert ledger.streak() == (Outcome.WIN, 1)
    assert ledger.count() == 4
    assert ledger.win_rate() == Fraction(3, 4)


def test_unknown_breaks_streak() -> None:
    ledger = _ledger(Outcome.WIN, Outcome.WIN, Outcome.UNKNOWN, Outcome.WIN)
    assert ledger.streak() == (Outcome.WIN, 1)


def test_trailing_unknown_resets_streak() -> None:
    ledger = _ledger(Outcome.LOSS, Outcome.LOSS, Outcome.UNKNOWN)
    assert ledger.streak() == Streak(Outcome.UNKNOWN, 0)


def test_streak_counts_full_trailing_run() -> None:
    ledger = _ledger(Outcome.WIN, Outcome.LOSS, Outcome.LOSS, Outcome.LOSS)
    outcome, length = ledger.streak()
    assert outcome is Outcome.LOSS
    assert length == 3


def test_tied_streaks_are_tracked() -> None:
    ledger = _ledger(Outcome.WIN, Outcome.TIED, Outcome.TIED)
    assert ledger.streak() == (Outcome.TIED, 2)


def test_empty_ledger_streak_is_unknown_zero() -> None:
    assert _ledger().streak() == (Outcome.UNKNOWN, 0)


def test_streak_honours_filter() -> None:
    ledger = _ledger()
    ledger.record(Outcome.WIN, deck_id="a")
    ledger.record(Outcome.WIN, deck_id="a")
    ledger.record(Outcome.LOSS, deck_id="b")

    assert ledger.streak() == (Outcome.LOSS, 1)
    assert ledger.streak(ResultFilter(deck_id="a")) == (Outcome.WIN, 2)


def test_repeated_queries_are_idempotent() -> None:
    ledger = _ledger(Outcome.WIN, Outcome.TIED, Outcome.LOSS)
    result_filter = ResultFilter(outcome=Outcome.WIN)

    assert ledger.count() == ledger.count()
    assert ledger.count(result_filter) == ledger.count(result_filter)
    assert ledger.win_rate() == ledger.win_rate() == Fraction(1, 3)
    assert ledger.streak() == ledger.streak()


def test_summary_reports_counts_rate_and_streak() -> None:
    ledger = _ledger(Outcome.WIN, Outcome.LOSS, Outcome.TIED, Outcome.UNKNOWN, Outcome.WIN)
    summary = ledger.summary()

    assert summary.total == 5
    assert summary.wins == 2
    assert summary.losses == 1
    assert summary.ties == 1
    assert summary.unknown == 1
    assert summary.win_rate == Fraction(2, 5)
    assert summary.streak == (Outcome.WIN, 1)
    assert sum(summary.counts().values()) == summary.total


def test_summary_of_empty_ledger() -> None:
    summary = _ledger().summary()
    assert summary.total == 0
    assert summary.win_rate is None
    assert summary.streak == (Outcome.UNKNOWN, 0)


def test_invalid_filter_fails_at_call_time() -> None:
    ledger = _ledger(Outcome.WIN)
    with pytest.raises(InvalidFilterError):
        ledger.count(ResultFilter(since=START + timedelta(days=1), until=START))


def test_id_factory_failure_appends_nothing() -> None:
    def failing_ids() -> UUID:
        raise RuntimeError("entropy source unavailable")

    ledger = ResultLedger(id_factory=failing_ids, clock=_stepping_clock())
    with pytest.raises(IdentityGenerationError, match="entropy source unavailable"):
        ledger.record(Outcome.WIN)
    assert ledger.count() == 0
    assert ledger.results() == ()


def test_duplicate_generated_id_is_rejected() -> None:
    fixed_id = UUID(int=7)
    ledger = ResultLedger(id_factory=lambda: fixed_id, clock=_stepping_clock())
    ledger.record(Outcome.WIN)

    with pytest.raises(IdentityGenerationError, match="already recorded"):
        ledger.record(Outcome.LOSS)
    assert ledger.count() == 1
    assert ledger.streak() == (Outcome.WIN, 1)


def test_prepare_does_not_append_until_append() -> None:
    ledger = _ledger(Outcome.WIN)
    prepared = ledger.prepare(Outcome.LOSS, ["ranked"])

    assert ledger.count() == 1
    ledger.append(prepared)
    assert ledger.count() == 2
    assert ledger.results()[-1] == prepared


def test_append_rejects_known_id() -> None:
    ledger = _ledger(Outcome.WIN)
    existing = ledger.results()[0]
    with pytest.raises(IdentityGenerationError):
        ledger.append(existing)
    assert ledger.count() == 1


def test_from_results_replays_in_order() -> None:
    results = [
        MatchResult(id=UUID(int=index), outcome=outcome, timestamp=START + timedelta(hours=index))
        for index, outcome in enumerate([Outcome.LOSS, Outcome.WIN, Outcome.WIN], start=1)
    ]
    ledger = ResultLedger.from_results(results)

    assert list(ledger) == results
    assert ledger.streak() == (Outcome.WIN, 2)


def test_from_results_rejects_duplicate_ids() -> None:
    result = MatchResult(id=UUID(int=1), outcome=Outcome.WIN, timestamp=START)
    with pytest.raises(IdentityGenerationError):
        ResultLedger.from_results([result, result])


def test_snapshot_is_not_affected_by_later_records() -> None:
    ledger = _ledger(Outcome.WIN, Outcome.WIN)
    snapshot = ledger.results()
    ledger.record(Outcome.LOSS)

    assert len(snapshot) == 2
    assert all(result.outcome is Outcome.WIN for result in snapshot)
    assert ledger.count() == 3


def test_concurrent_reads_see_growing_prefixes() -> None:
    ledger = ResultLedger()
    total_records = 2_000
    observed_errors: list[str] = []
    snapshots: list[tuple[MatchResult, ...]] = []
    done = threading.Event()

    def reader() -> None:
        previous_length = 0
        while not done.is_set():
            snapshot = ledger.results()
            if len(snapshot) < previous_length:
                observed_errors.append(f"snapshot shrank from {previous_length} to {len(snapshot)}")
            previous_length = len(snapshot)
            if len(snapshots) < 300:
                snapshots.append(snapshot)

    readers = [threading.Thread(target=reader) for _ in range(3)]
    for thread in readers:
        thread.start()
    try:
        for index in range(total_records):
            ledger.record(Outcome.WIN if index % 2 else Outcome.LOSS)
    finally:
        done.set()
        for thread in readers:
            thread.join()

    final = ledger.results()
    assert observed_errors == []
    assert len(final) == total_records
    for snapshot in snapshots:
        assert snapshot == final[: len(snapshot)]


def test_single_string_tags_are_rejected() -> None:
    ledger = _ledger()
    with pytest.raises(TypeError, match="not a single string"):
        ledger.record(Outcome.WIN, "ranked")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        ledger.prepare(Outcome.WIN, "ranked")  # type: ignore[arg-type]
    assert ledger.count() == 0

    # No id was consumed by the rejected calls.
    assert ledger.record(Outcome.WIN, ["ranked"]).id == UUID(int=1)


def test_match_result_coerces_tags_to_frozenset() -> None:
    result = MatchResult(id=UUID(int=1), outcome=Outcome.WIN, timestamp=START, tags=["ranked", "wild"])  # type: ignore[arg-type]

    assert result.tags == frozenset({"ranked", "wild"})
    assert isinstance(result.tags, frozenset)
    assert hash(result) == hash(
        MatchResult(id=UUID(int=1), outcome=Outcome.WIN, timestamp=START, tags=frozenset({"ranked", "wild"}))
    )


def test_match_result_rejects_single_string_tags() -> None:
    with pytest.raises(TypeError):
        MatchResult(id=UUID(int=1), outcome=Outcome.WIN, timestamp=START, tags="ranked")  # type: ignore[arg-type]


def test_match_result_stores_aware_timestamps_as_naive_utc() -> None:
    aware = datetime(2026, 1, 1, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    result = MatchResult(id=UUID(int=1), outcome=Outcome.WIN, timestamp=aware)
    assert result.timestamp == START
    assert result.timestamp.tzinfo is None


def test_replayed_list_tags_support_filtered_queries() -> None:
    ledger = ResultLedger.from_results(
        [
            MatchResult(id=UUID(int=1), outcome=Outcome.WIN, timestamp=START, tags=["ranked"]),  # type: ignore[arg-type]
            MatchResult(id=UUID(int=2), outcome=Outcome.LOSS, timestamp=START, tags={"casual"}),  # type: ignore[arg-type]
        ]
    )
    assert ledger.count(ResultFilter(tags=frozenset({"ranked"}))) == 1
    assert ledger.win_rate(ResultFilter(tags=frozenset({"casual"}))) == Fraction(0)
