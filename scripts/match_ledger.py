#!/usr/bin/env python3
"""Record match outcomes and print ledger summaries."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from sqlalchemy.orm import Session, sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import create_db_engine, create_session_factory
from domain.config import DEFAULT_DB_URL, load_tracker_config
from domain.pipeline import load_ledger, record_result
from domain.results import InvalidFilterError, LedgerSummary, Outcome, ResultFilter, ResultLedger, build_filter
from repositories import MATCH_RESULT_REPOSITORY

DEFAULT_CONFIG_PATH = ROOT_DIR / "configs" / "tracker" / "default.toml"

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Match result ledger commands.",
)

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        help="Tracker TOML file. Ignored when --db-url is given.",
    ),
]
DbUrlOption = Annotated[
    str | None,
    typer.Option("--db-url", help="Database URL override."),
]
DeckOption = Annotated[str | None, typer.Option("--deck-id", help="Only results for this deck.")]
GameModeOption = Annotated[
    str | None,
    typer.Option("--game-mode", help="Only results for this game mode."),
]
TagOption = Annotated[
    list[str] | None,
    typer.Option("--tag", help="Tag to attach or require (repeatable)."),
]


@dataclass(frozen=True)
class TrackerContext:
    ledger: ResultLedger
    session_factory: sessionmaker[Session]


def open_tracker(*, config_path: Path | None, db_url: str | None) -> TrackerContext:
    """Resolve settings, ensure the schema and replay stored results."""
    lookback_days = 0
    default_tags: frozenset[str] = frozenset()
    if db_url is None:
        target = config_path or DEFAULT_CONFIG_PATH
        if target.exists():
            config = load_tracker_config(target)
            db_url = config.db_url
            lookback_days = config.lookback_days
            default_tags = config.default_tags
        elif config_path is not None:
            raise typer.BadParameter(f"Config file not found: {config_path}", param_hint="--config")
        else:
            db_url = DEFAULT_DB_URL

    engine = create_db_engine(db_url)
    MATCH_RESULT_REPOSITORY.ensure_schema(engine)
    session_factory = create_session_factory(engine)
    ledger, _ = load_ledger(
        session_factory=session_factory,
        lookback_days=lookback_days,
        default_tags=default_tags,
    )
    return TrackerContext(ledger=ledger, session_factory=session_factory)


def _build_filter(
    *,
    outcome: Outcome | None = None,
    tags: list[str] | None = None,
    since: datetime | None = None,
    until: datetime | None = None,
    deck_id: str | None = None,
    game_mode: str | None = None,
) -> ResultFilter | None:
    try:
        return build_filter(
            outcome=outcome,
            tags=tags or (),
            since=since,
            until=until,
            deck_id=deck_id,
            game_mode=game_mode,
        )
    except InvalidFilterError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _format_win_rate(summary: LedgerSummary) -> str:
    if summary.win_rate is None:
        return "n/a"
    return f"{float(summary.win_rate) * 100:.1f}%"


@app.command()
def record(
    outcome: Annotated[Outcome, typer.Argument(help="Match outcome.")],
    tag: TagOption = None,
    deck_id: DeckOption = None,
    game_mode: GameModeOption = None,
    rank: Annotated[int | None, typer.Option("--rank", help="Ladder rank at match end.")] = None,
    config: ConfigOption = None,
    db_url: DbUrlOption = None,
) -> None:
    """Record one concluded match."""
    tracker = open_tracker(config_path=config, db_url=db_url)
    record_result(
        session_factory=tracker.session_factory,
        ledger=tracker.ledger,
        outcome=outcome,
        tags=tag or (),
        deck_id=deck_id,
        game_mode=game_mode,
        rank=rank,
        echo=typer.echo,
    )


@app.command()
def summary(
    outcome: Annotated[
        Outcome | None,
        typer.Option("--outcome", help="Only results with this outcome."),
    ] = None,
    tag: TagOption = None,
    since: Annotated[
        datetime | None,
        typer.Option("--since", help="Inclusive lower bound (UTC)."),
    ] = None,
    until: Annotated[
        datetime | None,
        typer.Option("--until", help="Exclusive upper bound (UTC)."),
    ] = None,
    deck_id: DeckOption = None,
    game_mode: GameModeOption = None,
    config: ConfigOption = None,
    db_url: DbUrlOption = None,
) -> None:
    """Print counts, win rate and current streak."""
    result_filter = _build_filter(
        outcome=outcome,
        tags=tag,
        since=since,
        until=until,
        deck_id=deck_id,
        game_mode=game_mode,
    )
    tracker = open_tracker(config_path=config, db_url=db_url)
    ledger_summary = tracker.ledger.summary(result_filter)
    typer.echo(
        f"total={ledger_summary.total} "
        f"wins={ledger_summary.wins} "
        f"losses={ledger_summary.losses} "
        f"ties={ledger_summary.ties} "
        f"unknown={ledger_summary.unknown} "
        f"win_rate={_format_win_rate(ledger_summary)} "
        f"streak={ledger_summary.streak.outcome.value}x{ledger_summary.streak.length}"
    )


@app.command()
def streak(
    deck_id: DeckOption = None,
    game_mode: GameModeOption = None,
    config: ConfigOption = None,
    db_url: DbUrlOption = None,
) -> None:
    """Print the current trailing streak."""
    result_filter = _build_filter(deck_id=deck_id, game_mode=game_mode)
    tracker = open_tracker(config_path=config, db_url=db_url)
    current = tracker.ledger.streak(result_filter)
    typer.echo(f"outcome={current.outcome.value} length={current.length}")


if __name__ == "__main__":
    app()
