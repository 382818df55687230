"""
Error taxonomy for provider chains.

Every provider failure is expressed as one of these types before the
fallback engine sees it, so retry decisions never depend on vendor SDK
exception classes.

    CatalystError
    ├── ConfigurationError          no usable provider at all
    ├── ProviderError               provider-side failure (plain fallback)
    │   ├── CapacityError           rate limit / quota exhausted
    │   ├── ProviderUnavailableError timeout, connection failure, 5xx
    │   └── InvalidRequestError     caller input rejected (never retried)
    ├── MalformedOutputError        transport ok, content unparseable
    └── AllProvidersFailedError     every attempted provider failed
"""

from typing import List, Optional, Tuple


class CatalystError(Exception):
    """Base class for all errors raised by the fallback subsystem."""


class ConfigurationError(CatalystError):
    """Raised when a chain has no configured provider (missing credentials)."""

    def __init__(self, chain: str, message: Optional[str] = None):
        self.chain = chain
        super().__init__(
            message
            or f"No providers configured for '{chain}' chain. "
            f"Check the credentials in your environment."
        )


class ProviderError(CatalystError):
    """A single provider call failed."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: Optional[int] = None,
    ):
        self.provider = provider
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.provider} error ({self.status_code}): {self.message}"
        return f"{self.provider} error: {self.message}"


class CapacityError(ProviderError):
    """Provider reported rate limiting or quota exhaustion (HTTP 429/402)."""


class ProviderUnavailableError(ProviderError):
    """Provider could not be reached in time or answered with a 5xx."""


class InvalidRequestError(ProviderError):
    """The request itself is invalid; another provider would reject it too."""


class MalformedOutputError(CatalystError):
    """
    Provider answered but the content could not be parsed.

    Distinct from ProviderError so callers can retry the same provider with a
    stricter prompt instead of falling back.
    """

    def __init__(self, reason: str, raw_text: str = "", provider: Optional[str] = None):
        self.reason = reason
        self.raw_text = raw_text
        self.provider = provider
        preview = raw_text[:200] + "..." if len(raw_text) > 200 else raw_text
        super().__init__(f"Malformed provider output: {reason}. Output preview: {preview!r}")


class AllProvidersFailedError(CatalystError):
    """
    Every attempted provider failed.

    Carries each attempt's (label, message) pair in the order the providers
    were tried.
    """

    def __init__(self, chain: str, errors: List[Tuple[str, str]]):
        self.chain = chain
        self.errors = list(errors)
        lines = "\n".join(f"  {label}: {message}" for label, message in self.errors)
        super().__init__(f"All providers failed for '{chain}' chain:\n{lines}")

    @property
    def messages(self) -> List[str]:
        """Individual error messages in provider order."""
        return [message for _, message in self.errors]

    @property
    def last_error(self) -> Optional[str]:
        return self.errors[-1][1] if self.errors else None
