"""Match-result ledger domain modules."""

from domain.results.common import LedgerSummary, MatchResult, Streak
from domain.results.errors import IdentityGenerationError, InvalidFilterError, LedgerError
from domain.results.filters import ResultFilter, build_filter
from domain.results.ledger import ResultLedger
from domain.results.outcome import Outcome

__all__ = [
    "IdentityGenerationError",
    "InvalidFilterError",
    "LedgerError",
    "LedgerSummary",
    "MatchResult",
    "Outcome",
    "ResultFilter",
    "ResultLedger",
    "Streak",
    "build_filter",
]
