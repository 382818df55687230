"""
Structured JSON logger for provider chain events.

Emits one JSON line per event:
- Provider attempt success/failure
- Fallback hand-over between providers
- Chain exhaustion and misconfiguration
- Aggregation summaries

Usage:
    logger = StructuredLogger(chain="ai")
    logger.attempt_failure(provider="gemini", model="gemini-2.5-flash", error="429 quota")
    logger.chain_fallback(from_provider="gemini", to_provider="openrouter", reason="capacity")
"""

import json
import sys
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, TextIO


class EventType(str, Enum):
    """Standard chain event types."""
    ATTEMPT_SUCCESS = "attempt_success"
    ATTEMPT_FAILURE = "attempt_failure"
    CHAIN_FALLBACK = "chain_fallback"
    CHAIN_EXHAUSTED = "chain_exhausted"
    CHAIN_MISCONFIGURED = "chain_misconfigured"
    AGGREGATION_COMPLETE = "aggregation_complete"


@dataclass
class LogEvent:
    """Structured log event with all optional fields."""
    timestamp: str
    event: str
    chain: str
    provider: Optional[str] = None
    model: Optional[str] = None
    credential: Optional[str] = None
    status: Optional[str] = None
    duration_ms: Optional[int] = None
    is_fallback: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_json(self) -> str:
        """Convert to JSON string, excluding None values."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(data, default=str)


class StructuredLogger:
    """
    Structured JSON logger for chain events.

    Writes JSON lines to a stream (stdout by default). Writes are serialised
    with a lock because aggregation runs several providers concurrently.
    """

    def __init__(self, chain: str, enabled: bool = True, stream: Optional[TextIO] = None):
        """
        Initialize structured logger.

        Args:
            chain: Chain name for correlation ("ai", "jobs", "email")
            enabled: Whether to emit events (can disable for testing)
            stream: Output stream, defaults to sys.stdout
        """
        self.chain = chain
        self.enabled = enabled
        self._stream = stream
        self._lock = threading.Lock()

    def _emit(self, event: LogEvent) -> None:
        if not self.enabled:
            return
        line = event.to_json()
        with self._lock:
            print(line, file=self._stream or sys.stdout, flush=True)

    def _now(self) -> str:
        """Get current UTC timestamp in ISO format."""
        return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def emit(self, event: str, chain: Optional[str] = None, **fields: Any) -> None:
        """
        Emit a custom log event.

        Args:
            event: Event type name
            chain: Override the logger's chain name for this event
            **fields: Any LogEvent field (provider, model, status, ...)
        """
        self._emit(LogEvent(timestamp=self._now(), event=event, chain=chain or self.chain, **fields))

    # ===== Convenience Methods =====

    def attempt_success(
        self,
        provider: str,
        model: Optional[str] = None,
        credential: Optional[str] = None,
        duration_ms: Optional[int] = None,
        is_fallback: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
        chain: Optional[str] = None,
    ) -> None:
        self.emit(
            EventType.ATTEMPT_SUCCESS.value,
            chain=chain,
            provider=provider,
            model=model,
            credential=credential,
            status="success",
            duration_ms=duration_ms,
            is_fallback=is_fallback,
            metadata=metadata,
        )

    def attempt_failure(
        self,
        provider: str,
        error: str,
        model: Optional[str] = None,
        credential: Optional[str] = None,
        duration_ms: Optional[int] = None,
        is_fallback: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
        chain: Optional[str] = None,
    ) -> None:
        self.emit(
            EventType.ATTEMPT_FAILURE.value,
            chain=chain,
            provider=provider,
            model=model,
            credential=credential,
            status="error",
            duration_ms=duration_ms,
            is_fallback=is_fallback,
            metadata=metadata,
            error=error,
        )

    def chain_fallback(self, from_provider: str, to_provider: str, reason: str) -> None:
        """Log a hand-over from one provider family to the next."""
        self.emit(
            EventType.CHAIN_FALLBACK.value,
            provider=to_provider,
            metadata={"from_provider": from_provider, "reason": reason},
        )

    def chain_exhausted(self, errors: Dict[str, str]) -> None:
        self.emit(EventType.CHAIN_EXHAUSTED.value, status="error", metadata={"errors": errors})

    def chain_misconfigured(self, message: str) -> None:
        self.emit(EventType.CHAIN_MISCONFIGURED.value, status="error", error=message)

    def aggregation_complete(
        self,
        total: int,
        sources: Dict[str, int],
        failures: Dict[str, str],
        duration_ms: int,
    ) -> None:
        self.emit(
            EventType.AGGREGATION_COMPLETE.value,
            status="partial" if failures else "success",
            duration_ms=duration_ms,
            metadata={"total": total, "sources": sources, "failures": failures},
        )


def get_structured_logger(chain: str, enabled: bool = True) -> StructuredLogger:
    """
    Get a structured logger instance.

    Args:
        chain: Chain name for event correlation
        enabled: Whether to emit events

    Returns:
        StructuredLogger instance
    """
    return StructuredLogger(chain, enabled)
