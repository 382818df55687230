"""
Global fixtures for all unit tests.

This conftest provides autouse fixtures that prevent real external service calls:
- MongoDB connection attempts (would cause 5-30s timeout per test)
- Environment variable isolation (provider credentials from the developer's
  shell or .env must never reach a test)

These fixtures apply automatically to ALL tests in tests/unit/.
"""

import os
from unittest.mock import MagicMock, patch

import pytest

os.environ["ENVIRONMENT"] = "test"

PROVIDER_ENV_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_API_KEY_SECONDARY",
    "GEMINI_API_KEY_TERTIARY",
    "GEMINI_DEFAULT_MODEL",
    "OPENROUTER_API_KEY",
    "DEEPSEEK_API_KEY",
    "NCS_API_KEY",
    "JOOBLE_API_KEY",
    "ADZUNA_APP_ID",
    "ADZUNA_API_KEY",
    "JOB_FALLBACK_ORDER",
    "MAILGUN_API_KEY",
    "MAILGUN_DOMAIN",
    "RESEND_API_KEY",
    "EMAIL_FALLBACK_ORDER",
    "MONGODB_URI",
    "API_SECRET",
    "ENABLE_API_LOGGING",
    "ENABLE_DEBUG_DASHBOARD",
    "ENABLE_STRUCTURED_EVENTS",
]


@pytest.fixture(autouse=True)
def mock_mongodb():
    """
    Prevent MongoDB connection attempts in all unit tests.

    MongoClient("") defaults to localhost:27017, causing 5-30s timeout per test.
    """
    with patch("catalyst.common.repositories.api_log_repository.MongoClient") as mock_client:
        mock_instance = MagicMock()
        mock_db = MagicMock()
        mock_collection = MagicMock()

        # Setup chain: client["db"]["collection"]
        mock_instance.__getitem__ = MagicMock(return_value=mock_db)
        mock_db.__getitem__ = MagicMock(return_value=mock_collection)
        mock_collection.find = MagicMock(return_value=[])

        mock_client.return_value = mock_instance
        yield mock_client

    from catalyst.common.repositories import AtlasApiLogRepository

    AtlasApiLogRepository._client = None


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate test environment from real credentials and configurations.

    Removes every provider variable so tests see exactly the settings they
    build, and disables the .env file.
    """
    for name in PROVIDER_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("AI_MODEL_") or name.startswith("AI_TEMPERATURE_") or name.startswith("AI_MAX_TOKENS_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "test")
    yield


@pytest.fixture
def make_settings():
    """
    Factory for Settings that ignores any .env file.

    Usage:
        settings = make_settings(gemini_api_key="k1", resend_api_key="r1")
    """
    from catalyst.common.config import Settings

    def _make(**overrides):
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def memory_sink():
    """In-memory attempt sink for asserting recorded attempts."""
    from catalyst.common.attempt_log import InMemoryAttemptSink

    return InMemoryAttemptSink(maxlen=100)
