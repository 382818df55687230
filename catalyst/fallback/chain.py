"""
Generic ordered fallback engine.

A FallbackChain tries an ordered list of candidates (provider, model,
credential) one at a time until one succeeds:

    NotStarted -> Trying(0) -> Success
                             -> Trying(1) -> ... -> AllFailed

- Unconfigured candidates are dropped up front; an empty chain raises
  ConfigurationError before any call is made.
- Every attempt is recorded as a ProviderAttempt in the attempt sink.
- The classifier decides which candidates a failure rules out; a FATAL
  decision re-raises the error without falling back.
- Crossing into another provider family asks `escalate(last_error)`.

Usage:
    chain = FallbackChain(
        "email",
        [Candidate("mailgun", mailgun.send), Candidate("resend", resend.send)],
        classify=classify_any_error,
    )
    result = await chain.run(message)
    result.value, result.candidate.provider, result.used_fallback
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, Set, Tuple, TypeVar

from catalyst.common.attempt_log import AttemptSink, ProviderAttempt
from catalyst.common.errors import (
    AllProvidersFailedError,
    CatalystError,
    ConfigurationError,
    ProviderUnavailableError,
)
from catalyst.common.logger import get_logger
from catalyst.common.structured_logger import StructuredLogger
from catalyst.fallback.classification import RetryDecision, translate_exception

T = TypeVar("T")


@dataclass(frozen=True)
class Candidate(Generic[T]):
    """
    One way of serving a request: a provider, optionally a model and a
    credential, and the coroutine function that performs the call.
    """

    provider: str
    call: Callable[[Any], Awaitable[T]]
    model: Optional[str] = None
    credential: Optional[str] = None
    configured: bool = True
    timeout: Optional[float] = None

    @property
    def label(self) -> str:
        """Human-readable identity, e.g. "gemini/gemini-2.5-flash/primary"."""
        return "/".join(part for part in (self.provider, self.model, self.credential) if part)

    @property
    def group(self) -> Tuple[str, Optional[str]]:
        return (self.provider, self.model)


@dataclass
class ChainResult(Generic[T]):
    """Successful chain outcome."""
    value: T
    candidate: Candidate
    used_fallback: bool
    attempts: List[ProviderAttempt] = field(default_factory=list)

    @property
    def provider(self) -> str:
        return self.candidate.provider


def _summarize(request: Any) -> str:
    text = str(request)
    return text[:120] + "..." if len(text) > 120 else text


class FallbackChain(Generic[T]):
    """
    Ordered, sequential provider fallback.

    Args:
        name: Chain name used in logs, attempts and errors
        candidates: Candidates in preference order
        classify: Maps a typed error to a RetryDecision
        escalate: Called with the last error before moving to a different
            provider; returning False stops the chain (default: always allow)
        sink: Attempt sink receiving one ProviderAttempt per call
        summarize: Renders the request for attempt records
        struct_logger: Optional structured event logger
        translate: Turns raw exceptions into typed errors; receives the
            candidate and the exception
        request_id: Correlation id prefixed to every log line
    """

    def __init__(
        self,
        name: str,
        candidates: Sequence[Candidate[T]],
        classify: Callable[[CatalystError], RetryDecision],
        escalate: Optional[Callable[[Optional[CatalystError]], bool]] = None,
        sink: Optional[AttemptSink] = None,
        summarize: Optional[Callable[[Any], str]] = None,
        struct_logger: Optional[StructuredLogger] = None,
        translate: Optional[Callable[[Candidate, BaseException], CatalystError]] = None,
        request_id: Optional[str] = None,
    ):
        self.name = name
        self.candidates = list(candidates)
        self.classify = classify
        self.escalate = escalate
        self.sink = sink
        self.summarize = summarize or _summarize
        self.struct_logger = struct_logger
        self.translate = translate or (lambda candidate, exc: translate_exception(candidate.provider, exc))
        self.log = get_logger(__name__, request_id=request_id, chain=f"Chain:{name}")

    @property
    def usable(self) -> List[Candidate[T]]:
        """Configured candidates in order."""
        return [c for c in self.candidates if c.configured]

    async def run(self, request: Any) -> ChainResult[T]:
        """
        Serve `request` with the first candidate that succeeds.

        Raises:
            ConfigurationError: No candidate is configured
            InvalidRequestError: A provider rejected the request itself
            AllProvidersFailedError: Every tried candidate failed
        """
        usable = self.usable
        if not usable:
            error = ConfigurationError(self.name)
            self.log.error(str(error))
            if self.struct_logger:
                self.struct_logger.chain_misconfigured(str(error))
            raise error

        summary = self.summarize(request)
        first = usable[0]
        attempts: List[ProviderAttempt] = []
        errors: List[Tuple[str, str]] = []
        skipped_groups: Set[Tuple[str, Optional[str]]] = set()
        skipped_providers: Set[str] = set()
        last_error: Optional[CatalystError] = None
        previous: Optional[Candidate] = None

        for candidate in usable:
            if candidate.provider in skipped_providers or candidate.group in skipped_groups:
                continue

            if previous is not None and candidate.provider != previous.provider:
                if self.escalate is not None and not self.escalate(last_error):
                    self.log.warning(
                        f"Not falling back from {previous.provider} "
                        f"to {candidate.provider}: {last_error}"
                    )
                    break
                self.log.info(f"Falling back from {previous.provider} to {candidate.provider}")
                if self.struct_logger:
                    self.struct_logger.chain_fallback(
                        from_provider=previous.provider,
                        to_provider=candidate.provider,
                        reason=str(last_error),
                    )

            previous = candidate
            is_fallback = candidate is not first
            started = time.monotonic()
            try:
                value = await self._call(candidate, request)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                error = self.translate(candidate, exc)
                latency_ms = int((time.monotonic() - started) * 1000)
                attempt = ProviderAttempt(
                    chain=self.name,
                    provider=candidate.provider,
                    model=candidate.model,
                    credential=candidate.credential,
                    request_summary=summary,
                    success=False,
                    latency_ms=latency_ms,
                    error=str(error),
                    status_code=getattr(error, "status_code", None),
                    is_fallback=is_fallback,
                )
                self._record(attempt)
                attempts.append(attempt)
                errors.append((candidate.label, str(error)))
                last_error = error
                self.log.warning(f"{candidate.label} failed after {latency_ms}ms: {error}")

                decision = self.classify(error)
                if decision == RetryDecision.FATAL:
                    if error is exc:
                        raise
                    raise error from exc
                if decision == RetryDecision.NEXT_MODEL:
                    skipped_groups.add(candidate.group)
                elif decision == RetryDecision.NEXT_PROVIDER:
                    skipped_providers.add(candidate.provider)
                continue

            latency_ms = int((time.monotonic() - started) * 1000)
            attempt = ProviderAttempt(
                chain=self.name,
                provider=candidate.provider,
                model=candidate.model,
                credential=candidate.credential,
                request_summary=summary,
                success=True,
                latency_ms=latency_ms,
                is_fallback=is_fallback,
            )
            self._record(attempt)
            attempts.append(attempt)
            if is_fallback:
                self.log.info(f"Served by fallback {candidate.label} in {latency_ms}ms")
            else:
                self.log.debug(f"Served by {candidate.label} in {latency_ms}ms")
            return ChainResult(value=value, candidate=candidate, used_fallback=is_fallback, attempts=attempts)

        exhausted = AllProvidersFailedError(self.name, errors)
        self.log.error(str(exhausted))
        if self.struct_logger:
            self.struct_logger.chain_exhausted(dict(errors))
        raise exhausted

    async def _call(self, candidate: Candidate[T], request: Any) -> T:
        if candidate.timeout is None:
            return await candidate.call(request)
        try:
            return await asyncio.wait_for(candidate.call(request), timeout=candidate.timeout)
        except asyncio.TimeoutError as e:
            raise ProviderUnavailableError(
                candidate.provider, f"no response within {candidate.timeout:g}s"
            ) from e

    def _record(self, attempt: ProviderAttempt) -> None:
        if self.sink is None:
            return
        try:
            self.sink.record(attempt)
        except Exception as e:
            self.log.warning(f"Failed to record attempt: {e}")
