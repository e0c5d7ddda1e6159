"""Replay stored results into a ledger and record new ones durably."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from domain.results import MatchResult, Outcome, ResultLedger
from repositories import MATCH_RESULT_REPOSITORY, MatchResultRepository


@dataclass(frozen=True)
class ReplaySummary:
    """Outcome of rebuilding one ledger from storage."""

    stored_results: int
    replayed_results: int
    lookback_days: int | None


def load_ledger(
    *,
    session_factory: sessionmaker[Session],
    lookback_days: int | None = None,
    default_tags: Iterable[str] = (),
    repository: MatchResultRepository = MATCH_RESULT_REPOSITORY,
    echo: Callable[[str], None] | None = None,
) -> tuple[ResultLedger, ReplaySummary]:
    """Rebuild an in-memory ledger by replaying stored results in insertion order."""
    if lookback_days is not None and lookback_days < 0:
        raise ValueError("lookback_days must be >= 0")
    effective_lookback = None if not lookback_days else lookback_days

    with session_factory() as session:
        stored_results = repository.count_results(session)
        results = repository.fetch_results(session, lookback_days=effective_lookback)

    ledger = ResultLedger.from_results(results, default_tags=default_tags)
    summary = ReplaySummary(
        stored_results=stored_results,
        replayed_results=len(ledger),
        lookback_days=effective_lookback,
    )
    if echo is not None:
        echo(
            "replayed "
            f"stored_results={summary.stored_results} "
            f"replayed_results={summary.replayed_results} "
            f"lookback_days={summary.lookback_days or 0}"
        )
    return ledger, summary


def record_result(
    *,
    session_factory: sessionmaker[Session],
    ledger: ResultLedger,
    outcome: Outcome | str,
    tags: Iterable[str] = (),
    deck_id: str | None = None,
    game_mode: str | None = None,
    rank: int | None = None,
    repository: MatchResultRepository = MATCH_RESULT_REPOSITORY,
    echo: Callable[[str], None] | None = None,
) -> MatchResult:
    """Persist one new result, then append it to the ledger.

    The ledger is only touched after the insert commits, so a storage failure
    leaves both sides unchanged.
    """
    result = ledger.prepare(outcome, tags, deck_id=deck_id, game_mode=game_mode, rank=rank)

    with session_factory() as session:
        try:
            repository.insert_results(session, [result])
            session.commit()
        except Exception:
            session.rollback()
            raise

    ledger.append(result)
    if echo is not None:
        echo(
            "recorded "
            f"result_id={result.id} "
            f"outcome={result.outcome.value} "
            f"tags={','.join(sorted(result.tags)) or '-'} "
            f"entries={len(ledger)}"
        )
    return result


__all__ = ["ReplaySummary", "load_ledger", "record_result"]
