"""
Repository Pattern for MongoDB Operations

Public API:
- ApiLogRepositoryInterface: Abstract interface for the api_logs collection
- AtlasApiLogRepository: MongoDB implementation
- get_api_log_repository(): Factory building a repository from Settings

Usage:
    from catalyst.common.repositories import get_api_log_repository

    repo = get_api_log_repository(settings)
    if repo:
        repo.find_recent(service="gemini", limit=20)
"""

from typing import Optional

from catalyst.common.config import Settings

from .api_log_repository import ApiLogRepositoryInterface, AtlasApiLogRepository


def get_api_log_repository(settings: Settings) -> Optional[ApiLogRepositoryInterface]:
    """
    Build the api_logs repository, or None when no MongoDB is configured.
    """
    if not settings.mongodb_uri:
        return None
    return AtlasApiLogRepository(
        mongodb_uri=settings.mongodb_uri,
        database=settings.mongo_db_name,
        server_selection_timeout_ms=settings.mongo_timeout_ms,
    )


__all__ = [
    "ApiLogRepositoryInterface",
    "AtlasApiLogRepository",
    "get_api_log_repository",
]
