"""
Provider attempt records and the sinks that collect them.

Every provider call made by a chain produces exactly one ProviderAttempt,
whatever its outcome. Sinks must tolerate concurrent appends because the
aggregation mode runs several providers at once.
"""

import logging
import threading
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional, Protocol, Sequence, Set

from catalyst.common.config import Settings
from catalyst.common.repositories import ApiLogRepositoryInterface, get_api_log_repository
from catalyst.common.structured_logger import StructuredLogger

logger = logging.getLogger(__name__)

# Keeps api_logs inserts off the event loop running the chains
_db_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="api_logs_")


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ProviderAttempt:
    """
    One provider call made on behalf of a logical request.

    Attributes:
        chain: Chain name ("ai", "jobs", "jobs_aggregate", "email")
        provider: Provider family ("gemini", "jooble", "resend", ...)
        model: Model identifier, for AI providers
        credential: Credential label ("primary", "secondary", ...)
        request_summary: Short human-readable description of the request
        success: Whether the call returned a usable response
        latency_ms: Wall time of this call
        error: Error text for failed calls
        status_code: HTTP status reported by the provider, if any
        is_fallback: True when this was not the preferred provider
        timestamp: UTC ISO timestamp of when the attempt finished
    """

    chain: str
    provider: str
    success: bool
    latency_ms: int
    model: Optional[str] = None
    credential: Optional[str] = None
    request_summary: str = ""
    error: Optional[str] = None
    status_code: Optional[int] = None
    is_fallback: bool = False
    timestamp: str = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


class AttemptSink(Protocol):
    """Anything that accepts attempt records."""

    def record(self, attempt: ProviderAttempt) -> None:
        ...


class InMemoryAttemptSink:
    """
    Bounded, thread-safe in-process attempt log.

    Backs the debug endpoints when no database is configured, and is the
    sink used by tests.
    """

    def __init__(self, maxlen: int = 1000):
        self._attempts: Deque[ProviderAttempt] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def record(self, attempt: ProviderAttempt) -> None:
        with self._lock:
            self._attempts.append(attempt)

    @property
    def attempts(self) -> List[ProviderAttempt]:
        """Snapshot of recorded attempts, oldest first."""
        with self._lock:
            return list(self._attempts)

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()

    def recent(
        self,
        service: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Most recent attempts first, optionally filtered by provider."""
        rows = [a for a in reversed(self.attempts) if not service or a.provider == service]
        return [a.to_dict() for a in rows[offset:offset + limit]]

    def fallback_stats(self) -> List[Dict[str, Any]]:
        """Per provider: total calls, calls made as fallback, fallback rate."""
        totals: Dict[str, List[int]] = {}
        for attempt in self.attempts:
            counts = totals.setdefault(attempt.provider, [0, 0])
            counts[0] += 1
            if attempt.is_fallback:
                counts[1] += 1
        return [
            {
                "service": service,
                "total_calls": total,
                "fallback_calls": fallback,
                "fallback_rate": round(fallback / total, 4) if total else 0.0,
            }
            for service, (total, fallback) in sorted(totals.items())
        ]


class StructuredAttemptSink:
    """Writes each attempt as a JSON line through StructuredLogger."""

    def __init__(self, struct_logger: Optional[StructuredLogger] = None):
        self._struct_logger = struct_logger or StructuredLogger(chain="providers")

    def record(self, attempt: ProviderAttempt) -> None:
        metadata = {"request": attempt.request_summary} if attempt.request_summary else None
        if attempt.success:
            self._struct_logger.attempt_success(
                provider=attempt.provider,
                model=attempt.model,
                credential=attempt.credential,
                duration_ms=attempt.latency_ms,
                is_fallback=attempt.is_fallback,
                metadata=metadata,
                chain=attempt.chain,
            )
        else:
            self._struct_logger.attempt_failure(
                provider=attempt.provider,
                error=attempt.error or "unknown error",
                model=attempt.model,
                credential=attempt.credential,
                duration_ms=attempt.latency_ms,
                is_fallback=attempt.is_fallback,
                metadata=metadata,
                chain=attempt.chain,
            )


class MongoAttemptSink:
    """
    Persists attempts to the api_logs collection.

    record() only queues the insert on a worker thread and returns at once;
    insert failures are logged from that thread.
    """

    def __init__(self, repository: ApiLogRepositoryInterface, executor: Optional[ThreadPoolExecutor] = None):
        self._repository = repository
        self._executor = executor or _db_executor
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()

    def record(self, attempt: ProviderAttempt) -> None:
        future = self._executor.submit(self._repository.insert_attempt, attempt.to_dict())
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._finished)

    def _finished(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning(f"Failed to persist provider attempt: {error}")

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait for queued inserts to finish."""
        with self._lock:
            pending = list(self._pending)
        wait(pending, timeout=timeout)


class CompositeAttemptSink:
    """
    Fans one attempt out to several sinks.

    A failing sink is logged and skipped; attempt logging never breaks the
    provider call it describes.
    """

    def __init__(self, sinks: Sequence[AttemptSink]):
        self.sinks = list(sinks)

    def record(self, attempt: ProviderAttempt) -> None:
        for sink in self.sinks:
            try:
                sink.record(attempt)
            except Exception as e:
                logger.warning(f"Failed to record provider attempt in {type(sink).__name__}: {e}")


def build_attempt_sink(
    settings: Settings,
    memory: Optional[InMemoryAttemptSink] = None,
) -> CompositeAttemptSink:
    """
    Assemble the attempt sinks configured for this process.

    Args:
        settings: Settings deciding which sinks are active
        memory: Shared in-memory sink to include (debug endpoints read it)

    Returns:
        CompositeAttemptSink wrapping every active sink
    """
    sinks: List[AttemptSink] = []
    if memory is not None:
        sinks.append(memory)
    if settings.enable_structured_events:
        sinks.append(StructuredAttemptSink())
    if settings.persist_attempts:
        repository = get_api_log_repository(settings)
        if repository is not None:
            sinks.append(MongoAttemptSink(repository))
    return CompositeAttemptSink(sinks)
