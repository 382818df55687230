"""
Retry classification for provider failures.

Two layers:
- translation: vendor exceptions and HTTP statuses become the typed errors in
  catalyst.common.errors (translate_exception, error_from_status)
- classification: a typed error becomes a RetryDecision telling the chain
  which candidates to skip next (classify_ai_error, classify_any_error)
"""

import asyncio
from enum import Enum
from typing import Iterable, Optional

import httpx
import openai
from google.genai import errors as genai_errors

from catalyst.common.errors import (
    CapacityError,
    CatalystError,
    InvalidRequestError,
    ProviderError,
    ProviderUnavailableError,
)

# Markers seen in rate-limit and quota messages across providers
CAPACITY_MARKERS = ("429", "too many requests", "quota", "resource_exhausted", "rate limit")

# OpenRouter answers 402 when free credits run out
CAPACITY_STATUSES = frozenset({402, 429})

# Statuses that mean the caller's input is wrong for OpenAI-compatible APIs.
# Not applied to Gemini: it reports an invalid API key as 400.
OPENAI_INVALID_STATUSES = frozenset({400, 422})


class RetryDecision(str, Enum):
    """What the chain does after a failed attempt."""
    NEXT_KEY = "next_key"            # next candidate in order
    NEXT_MODEL = "next_model"        # skip remaining credentials for this model
    NEXT_PROVIDER = "next_provider"  # skip remaining candidates of this provider
    FATAL = "fatal"                  # stop and surface the error


def is_capacity_error(error: BaseException) -> bool:
    """
    Check whether an error reports rate limiting or quota exhaustion.

    Typed CapacityErrors are recognised directly; anything else falls back to
    the message markers.
    """
    if isinstance(error, CapacityError):
        return True
    if isinstance(error, ProviderError) and error.status_code in CAPACITY_STATUSES:
        return True
    message = str(error).lower()
    return any(marker in message for marker in CAPACITY_MARKERS)


def error_from_status(
    provider: str,
    status: Optional[int],
    detail: str,
    invalid_statuses: Iterable[int] = (),
) -> ProviderError:
    """
    Map an HTTP status to the error taxonomy.

    Args:
        provider: Provider name for the error
        status: HTTP status code (None when the transport never got one)
        detail: Provider error text
        invalid_statuses: Statuses that mean the request itself is invalid

    Returns:
        CapacityError, ProviderUnavailableError, InvalidRequestError or a
        plain ProviderError
    """
    if status in CAPACITY_STATUSES:
        return CapacityError(provider, detail, status)
    if status is not None and status >= 500:
        return ProviderUnavailableError(provider, detail, status)
    if status is not None and status in set(invalid_statuses):
        return InvalidRequestError(provider, detail, status)
    if status is None and any(marker in detail.lower() for marker in CAPACITY_MARKERS):
        return CapacityError(provider, detail)
    return ProviderError(provider, detail, status)


def translate_exception(
    provider: str,
    exc: BaseException,
    invalid_statuses: Iterable[int] = (),
) -> CatalystError:
    """
    Translate any exception raised by a provider call into the taxonomy.

    Errors already in the taxonomy pass through unchanged.
    """
    if isinstance(exc, CatalystError):
        return exc

    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException, openai.APITimeoutError)):
        return ProviderUnavailableError(provider, f"timed out: {exc}")

    # APITimeoutError subclasses APIConnectionError, so order matters
    if isinstance(exc, (httpx.TransportError, openai.APIConnectionError)):
        return ProviderUnavailableError(provider, f"connection failed: {exc}")

    if isinstance(exc, httpx.HTTPStatusError):
        return error_from_status(
            provider, exc.response.status_code, _response_detail(exc.response), invalid_statuses
        )

    if isinstance(exc, openai.APIStatusError):
        return error_from_status(provider, exc.status_code, exc.message, invalid_statuses)

    if isinstance(exc, genai_errors.APIError):
        detail = exc.message or str(exc)
        if exc.status:
            detail = f"{exc.status}: {detail}"
        return error_from_status(provider, exc.code, detail, invalid_statuses)

    return error_from_status(provider, None, str(exc) or type(exc).__name__, invalid_statuses)


def _response_detail(response: httpx.Response) -> str:
    """Best-effort error text from an HTTP error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:500] or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, dict):
                value = value.get("message")
            if value:
                return str(value)
    return str(body)[:500]


# ===== Classifiers =====

def classify_ai_error(error: CatalystError) -> RetryDecision:
    """
    Retry policy for the AI chain.

    Quota is tracked per model, so a capacity error skips the remaining
    credentials for that model. Other failures (invalid key, timeout,
    server error) try the next credential.
    """
    if isinstance(error, InvalidRequestError):
        return RetryDecision.FATAL
    if is_capacity_error(error):
        return RetryDecision.NEXT_MODEL
    return RetryDecision.NEXT_KEY


def classify_key_only(error: CatalystError) -> RetryDecision:
    """Retry policy for single-model chains (embeddings, streaming): next key."""
    if isinstance(error, InvalidRequestError):
        return RetryDecision.FATAL
    return RetryDecision.NEXT_KEY


def classify_any_error(error: CatalystError) -> RetryDecision:
    """Retry policy for job search and email: every failure moves on."""
    if isinstance(error, InvalidRequestError):
        return RetryDecision.FATAL
    return RetryDecision.NEXT_PROVIDER


def allows_provider_switch(error: Optional[CatalystError]) -> bool:
    """
    Whether the AI chain may hand over to the next provider family.

    Only capacity and availability failures justify paying for another
    vendor; an unexplained Gemini error surfaces instead.
    """
    if error is None:
        return False
    return is_capacity_error(error) or isinstance(error, ProviderUnavailableError)
