"""Match-result tracking domain modules."""

from domain.results import MatchResult, Outcome, ResultFilter, ResultLedger, Streak

__all__ = ["MatchResult", "Outcome", "ResultFilter", "ResultLedger", "Streak"]
