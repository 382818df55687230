"""
Fixtures for the HTTP surface tests.

Routes run against real services; only the provider registry is replaced,
so every chain is exercised without network access. Settings are injected
through FastAPI dependency overrides.
"""

import os

import pytest

os.environ["ENVIRONMENT"] = "test"

API_SECRET = "test-secret"

PROVIDER_ENV_VARS = [
    "GEMINI_API_KEY",
    "GEMINI_API_KEY_SECONDARY",
    "GEMINI_API_KEY_TERTIARY",
    "OPENROUTER_API_KEY",
    "DEEPSEEK_API_KEY",
    "NCS_API_KEY",
    "JOOBLE_API_KEY",
    "ADZUNA_APP_ID",
    "ADZUNA_API_KEY",
    "MAILGUN_API_KEY",
    "MAILGUN_DOMAIN",
    "RESEND_API_KEY",
    "MONGODB_URI",
    "API_SECRET",
    "CORS_ORIGINS",
]
for _name in PROVIDER_ENV_VARS:
    os.environ.pop(_name, None)


class StubRegistry:
    """
    Registry double holding whatever providers a test assigns.

    Attributes mirror ProviderRegistry's accessors: `gemini` is a list,
    `openrouter`/`deepseek` single providers, `sources`/`mailers` dicts.
    """

    def __init__(self):
        self.gemini = []
        self.openrouter_provider = None
        self.deepseek_provider = None
        self.sources = {}
        self.mailer_map = {}

    def gemini_providers(self):
        return list(self.gemini)

    def openrouter(self):
        return self.openrouter_provider

    def deepseek(self):
        return self.deepseek_provider

    def job_sources(self):
        return dict(self.sources)

    def mailers(self):
        return dict(self.mailer_map)


@pytest.fixture
def settings_overrides():
    """Mutable Settings overrides applied to every request of a test."""
    return {"api_secret": API_SECRET, "enable_debug_dashboard": True}


@pytest.fixture
def registry():
    return StubRegistry()


@pytest.fixture
def client(settings_overrides, registry):
    """TestClient with settings and registry overridden."""
    from fastapi.testclient import TestClient

    from api_service.app import app
    from api_service.dependencies import get_registry, get_settings, reset_attempt_log
    from catalyst.common.config import Settings

    async def override_registry():
        yield registry

    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, **settings_overrides)
    app.dependency_overrides[get_registry] = override_registry
    reset_attempt_log()

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    reset_attempt_log()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {API_SECRET}"}
