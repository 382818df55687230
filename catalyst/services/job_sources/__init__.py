"""
Job Sources Module

Provides a unified interface for searching jobs across job boards:
- NCS (National Career Service, India)
- Jooble
- Adzuna

Each source implements the JobSource abstract base class and normalises its
payload into JobPosting.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

import httpx

from catalyst.common.errors import InvalidRequestError


@dataclass
class JobPosting:
    """Unified job posting across all sources."""
    id: str
    title: str
    company: str
    location: str
    description: str
    url: str
    source: str
    salary: Optional[str] = None
    posted_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class JobSearchParams:
    """Search query shared by every source."""
    query: str
    location: Optional[str] = None
    page: int = 1
    limit: int = 10

    def validate(self) -> None:
        """
        Raises:
            InvalidRequestError: If the query is empty or paging is invalid
        """
        if not self.query or not self.query.strip():
            raise InvalidRequestError("jobs", "Query parameter q is required")
        if self.page < 1:
            raise InvalidRequestError("jobs", f"page must be >= 1, got {self.page}")
        if self.limit < 1:
            raise InvalidRequestError("jobs", f"limit must be >= 1, got {self.limit}")

    def __str__(self) -> str:
        return f"q={self.query!r} location={self.location or ''!r} page={self.page}"


class JobSource(ABC):
    """Abstract base class for job boards."""

    name: str = ""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = 30.0):
        """
        Args:
            client: Shared httpx client (tests pass one with a MockTransport)
            timeout: Per-request timeout in seconds
        """
        self._client = client
        self.timeout = timeout

    @abstractmethod
    async def search(self, params: JobSearchParams) -> List[JobPosting]:
        """
        Search the job board.

        Args:
            params: Search query

        Returns:
            Normalised postings (may be empty)

        Raises:
            CatalystError: On any transport or provider failure
        """
        pass

    def get_source_name(self) -> str:
        return self.name


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


# Import concrete implementations for convenience
from .ncs_source import NCSSource  # noqa: E402
from .jooble_source import JoobleSource  # noqa: E402
from .adzuna_source import AdzunaSource  # noqa: E402

__all__ = ["JobSource", "JobPosting", "JobSearchParams", "NCSSource", "JoobleSource", "AdzunaSource"]
