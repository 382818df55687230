"""
API Log Repository

Repository interface for the api_logs collection.
Stores one document per provider attempt and answers the debug queries
(recent attempts, fallback rate per service).
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pymongo import DESCENDING, MongoClient

logger = logging.getLogger(__name__)


class ApiLogRepositoryInterface(ABC):
    """Abstract interface for provider attempt persistence."""

    @abstractmethod
    def insert_attempt(self, document: Dict[str, Any]) -> bool:
        """
        Insert one attempt document.

        Args:
            document: Serialised ProviderAttempt

        Returns:
            True if the write was acknowledged
        """
        pass

    @abstractmethod
    def find_recent(
        self,
        service: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Most recent attempts first, optionally for a single service."""
        pass

    @abstractmethod
    def fallback_stats(self) -> List[Dict[str, Any]]:
        """Per service: total calls, calls served by a fallback, fallback rate."""
        pass


class AtlasApiLogRepository(ApiLogRepositoryInterface):
    """
    MongoDB implementation of ApiLogRepository.
    """

    _client: Optional[MongoClient] = None

    def __init__(
        self,
        mongodb_uri: str,
        database: str = "catalyst",
        collection: str = "api_logs",
        server_selection_timeout_ms: int = 2000,
    ):
        """
        Initialize the repository.

        Args:
            mongodb_uri: MongoDB connection string
            database: Database name
            collection: Collection name
            server_selection_timeout_ms: How long an operation waits for a
                reachable server before failing
        """
        if not mongodb_uri:
            raise ValueError("MongoDB URI is required")
        self._mongodb_uri = mongodb_uri
        self._database = database
        self._collection_name = collection
        self._timeout_ms = server_selection_timeout_ms

    def _get_client(self) -> MongoClient:
        """Get or create the MongoDB client (shared per process)."""
        if AtlasApiLogRepository._client is None:
            AtlasApiLogRepository._client = MongoClient(
                self._mongodb_uri, serverSelectionTimeoutMS=self._timeout_ms
            )
            logger.info("Created new MongoDB client for api_logs repository")
        return AtlasApiLogRepository._client

    def _get_collection(self):
        client = self._get_client()
        return client[self._database][self._collection_name]

    @classmethod
    def reset_connection(cls) -> None:
        """Reset the MongoDB client connection."""
        if cls._client is not None:
            cls._client.close()
            cls._client = None
            logger.info("api_logs repository connection reset")

    def insert_attempt(self, document: Dict[str, Any]) -> bool:
        result = self._get_collection().insert_one(dict(document))
        return bool(result.acknowledged)

    def find_recent(
        self,
        service: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if service:
            query["provider"] = service

        cursor = (
            self._get_collection()
            .find(query, {"_id": 0})
            .sort("timestamp", DESCENDING)
            .skip(offset)
            .limit(limit)
        )
        return list(cursor)

    def fallback_stats(self) -> List[Dict[str, Any]]:
        pipeline = [
            {
                "$group": {
                    "_id": "$provider",
                    "total_calls": {"$sum": 1},
                    "fallback_calls": {"$sum": {"$cond": ["$is_fallback", 1, 0]}},
                }
            },
            {"$sort": {"_id": 1}},
        ]
        stats = []
        for row in self._get_collection().aggregate(pipeline):
            total = row.get("total_calls", 0)
            fallback = row.get("fallback_calls", 0)
            stats.append({
                "service": row["_id"],
                "total_calls": total,
                "fallback_calls": fallback,
                "fallback_rate": round(fallback / total, 4) if total else 0.0,
            })
        return stats
