"""Closed set of match outcomes."""

from __future__ import annotations

from enum import Enum


class Outcome(str, Enum):
    """Result of a single concluded match, from the tracked player's side."""

    UNKNOWN = "unknown"
    WIN = "win"
    LOSS = "loss"
    TIED = "tied"

    @classmethod
    def parse(cls, value: str | Outcome) -> Outcome:
        """Resolve a case-insensitive name or value into an outcome."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            available = ", ".join(outcome.value for outcome in cls)
            raise ValueError(f"Unsupported outcome '{value}'. Choose one of: {available}.") from exc


__all__ = ["Outcome"]
