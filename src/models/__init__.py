"""ORM models."""

from models.base import Base
from models.match_result import MatchResultRecord

__all__ = ["Base", "MatchResultRecord"]
