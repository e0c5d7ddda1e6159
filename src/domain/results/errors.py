"""Ledger error types."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for result-ledger failures."""


class IdentityGenerationError(LedgerError):
    """Raised when a fresh result id cannot be produced; nothing is appended."""


class InvalidFilterError(LedgerError, ValueError):
    """Raised for malformed query filters, e.g. a reversed timestamp range."""


__all__ = ["IdentityGenerationError", "InvalidFilterError", "LedgerError"]
