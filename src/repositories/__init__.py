"""Database repository helpers."""

from repositories.match_result_repository import MATCH_RESULT_REPOSITORY, MatchResultRepository

__all__ = ["MATCH_RESULT_REPOSITORY", "MatchResultRepository"]
