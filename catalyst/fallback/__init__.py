"""
Provider fallback engine.

Public API:
- FallbackChain, Candidate, ChainResult: the ordered fallback engine
- RetryDecision and the classifiers deciding what a failure rules out
"""

from .chain import Candidate, ChainResult, FallbackChain
from .classification import (
    RetryDecision,
    allows_provider_switch,
    classify_ai_error,
    classify_any_error,
    classify_key_only,
    error_from_status,
    is_capacity_error,
    translate_exception,
)

__all__ = [
    "Candidate",
    "ChainResult",
    "FallbackChain",
    "RetryDecision",
    "allows_provider_switch",
    "classify_ai_error",
    "classify_any_error",
    "classify_key_only",
    "error_from_status",
    "is_capacity_error",
    "translate_exception",
]
