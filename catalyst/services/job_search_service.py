"""
Job search across job boards.

Two modes:
- search_jobs(): sequential failover in the configured order
  (JOB_FALLBACK_ORDER, default ncs -> jooble -> adzuna); the first board
  that answers wins, even with zero results
- search_jobs_aggregated(): every configured board at once, each with its
  own timeout; failures contribute nothing, results are merged in board
  order and de-duplicated by normalised (title, company)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from catalyst.common.attempt_log import AttemptSink, ProviderAttempt
from catalyst.common.config import Settings, load_settings
from catalyst.common.dedupe import dedupe_postings
from catalyst.common.errors import CatalystError, ConfigurationError, ProviderUnavailableError
from catalyst.common.structured_logger import StructuredLogger
from catalyst.fallback import Candidate, FallbackChain, classify_any_error, translate_exception
from catalyst.services.job_sources import JobPosting, JobSearchParams, JobSource
from catalyst.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)


@dataclass
class JobSearchResult:
    """Postings from the first job board that answered."""
    jobs: List[JobPosting]
    source: str
    used_fallback: bool = False
    attempts: List[ProviderAttempt] = field(default_factory=list)

    def __iter__(self) -> Iterator[JobPosting]:
        return iter(self.jobs)

    def __len__(self) -> int:
        return len(self.jobs)


@dataclass
class AggregatedResult:
    """
    Merged postings from every configured job board.

    Attributes:
        jobs: De-duplicated postings, in board order
        sources: Postings contributed per board before de-duplication
        failures: Error text per board that failed or timed out
    """

    jobs: List[JobPosting]
    sources: Dict[str, int] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    def __iter__(self) -> Iterator[JobPosting]:
        return iter(self.jobs)

    def __len__(self) -> int:
        return len(self.jobs)


async def _unconfigured(params: JobSearchParams) -> List[JobPosting]:
    raise ConfigurationError("jobs", "job board not configured")


class JobSearchService:
    """Job search for one request."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[ProviderRegistry] = None,
        sink: Optional[AttemptSink] = None,
        struct_logger: Optional[StructuredLogger] = None,
        request_id: Optional[str] = None,
    ):
        self.settings = settings or load_settings()
        self.registry = registry or ProviderRegistry.from_settings(self.settings)
        self.sink = sink
        self.struct_logger = struct_logger
        self.request_id = request_id

    def ordered_sources(self) -> List[Tuple[str, Optional[JobSource]]]:
        """(name, source) in fallback order; source is None when not configured."""
        available = self.registry.job_sources()
        ordered = []
        for name in self.settings.job_sources_order:
            if name not in ("ncs", "jooble", "adzuna"):
                logger.warning(f"[Jobs] Ignoring unknown job board in fallback order: {name}")
                continue
            ordered.append((name, available.get(name)))
        return ordered

    async def search(self, params: JobSearchParams) -> JobSearchResult:
        """
        Search with sequential failover.

        Raises:
            InvalidRequestError: Empty query or invalid paging
            ConfigurationError: No job board configured
            AllProvidersFailedError: Every configured board failed
        """
        params.validate()
        candidates = [
            Candidate(
                provider=name,
                call=source.search if source else _unconfigured,
                configured=source is not None,
                timeout=self.settings.provider_timeout_seconds,
            )
            for name, source in self.ordered_sources()
        ]
        chain = FallbackChain(
            "jobs",
            candidates,
            classify=classify_any_error,
            sink=self.sink,
            struct_logger=self.struct_logger,
            request_id=self.request_id,
        )
        result = await chain.run(params)
        logger.info(f"[Jobs] {len(result.value)} jobs from {result.provider} for {params}")
        return JobSearchResult(
            jobs=result.value,
            source=result.provider,
            used_fallback=result.used_fallback,
            attempts=result.attempts,
        )

    async def search_aggregated(
        self,
        params: JobSearchParams,
        timeout: Optional[float] = None,
    ) -> AggregatedResult:
        """
        Query every configured board concurrently and merge the results.

        Args:
            params: Search query
            timeout: Per-board timeout (defaults to aggregation_timeout_seconds)

        Raises:
            InvalidRequestError: Empty query or invalid paging
            ConfigurationError: No job board configured
        """
        params.validate()
        sources = [(name, source) for name, source in self.ordered_sources() if source is not None]
        if not sources:
            error = ConfigurationError("jobs")
            if self.struct_logger:
                self.struct_logger.chain_misconfigured(str(error))
            raise error

        timeout = timeout if timeout is not None else self.settings.aggregation_timeout_seconds
        started = time.monotonic()
        outcomes = await asyncio.gather(
            *(self._search_one(name, source, params, timeout) for name, source in sources)
        )

        merged: List[JobPosting] = []
        counts: Dict[str, int] = {}
        failures: Dict[str, str] = {}
        for (name, _), (jobs, error) in zip(sources, outcomes):
            if error is not None:
                failures[name] = error
                continue
            counts[name] = len(jobs)
            merged.extend(jobs)

        unique = dedupe_postings(merged)
        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"[Jobs] Aggregated {len(unique)} unique jobs ({len(merged)} total) from "
            f"{len(counts)}/{len(sources)} boards in {duration_ms}ms"
        )
        if self.struct_logger:
            self.struct_logger.aggregation_complete(
                total=len(unique), sources=counts, failures=failures, duration_ms=duration_ms
            )
        return AggregatedResult(jobs=unique, sources=counts, failures=failures)

    async def _search_one(
        self,
        name: str,
        source: JobSource,
        params: JobSearchParams,
        timeout: float,
    ) -> Tuple[List[JobPosting], Optional[str]]:
        """One board for aggregation: never raises, returns (jobs, error)."""
        started = time.monotonic()
        jobs: Optional[List[JobPosting]] = None
        error: Optional[CatalystError] = None
        try:
            jobs = await asyncio.wait_for(source.search(params), timeout=timeout)
        except asyncio.TimeoutError:
            error = ProviderUnavailableError(name, f"no response within {timeout:g}s")
        except Exception as e:
            error = translate_exception(name, e)
        latency_ms = int((time.monotonic() - started) * 1000)

        attempt = ProviderAttempt(
            chain="jobs_aggregate",
            provider=name,
            request_summary=str(params),
            success=jobs is not None,
            latency_ms=latency_ms,
            error=None if jobs is not None else str(error),
            status_code=None if jobs is not None else getattr(error, "status_code", None),
        )
        self._record(attempt)

        if jobs is None:
            logger.warning(f"[Jobs] {name} failed during aggregation: {error}")
            return [], str(error)
        return jobs, None

    def _record(self, attempt: ProviderAttempt) -> None:
        if self.sink is None:
            return
        try:
            self.sink.record(attempt)
        except Exception as e:
            logger.warning(f"[Jobs] Failed to record attempt: {e}")


async def search_jobs(
    params: JobSearchParams,
    settings: Optional[Settings] = None,
    sink: Optional[AttemptSink] = None,
) -> JobSearchResult:
    """Sequential failover search with a per-call registry."""
    settings = settings or load_settings()
    async with ProviderRegistry.from_settings(settings) as registry:
        return await JobSearchService(settings, registry=registry, sink=sink).search(params)


async def search_jobs_aggregated(
    params: JobSearchParams,
    settings: Optional[Settings] = None,
    timeout: Optional[float] = None,
    sink: Optional[AttemptSink] = None,
) -> AggregatedResult:
    """Concurrent search across all boards with a per-call registry."""
    settings = settings or load_settings()
    async with ProviderRegistry.from_settings(settings) as registry:
        return await JobSearchService(settings, registry=registry, sink=sink).search_aggregated(
            params, timeout=timeout
        )
