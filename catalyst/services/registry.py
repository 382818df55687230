"""
Per-request provider registry.

Builds provider clients from a Settings instance on first use and caches
them for the lifetime of the registry only. Create one registry per request
or invocation; never share it across requests, since credentials may be
rotated between invocations.

Usage:
    registry = ProviderRegistry.from_settings(load_settings())
    for provider in registry.gemini_providers():
        ...
    async with registry:
        sources = registry.job_sources()
"""

import logging
from typing import Dict, List, Optional

import httpx

from catalyst.common.config import Settings
from catalyst.services.ai.providers import GeminiProvider, OpenAICompatibleProvider
from catalyst.services.job_sources import AdzunaSource, JobSource, JoobleSource, NCSSource
from catalyst.services.mailers import MailgunMailer, Mailer, ResendMailer

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Lazily constructed provider clients for one request."""

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        """
        Args:
            settings: Configuration for this request
            http_client: Shared httpx client for job boards and mailers
                (tests inject one backed by httpx.MockTransport)
        """
        self.settings = settings
        self._http_client = http_client
        self._owns_http_client = False
        self._gemini: Optional[List[GeminiProvider]] = None
        self._openrouter: Optional[OpenAICompatibleProvider] = None
        self._deepseek: Optional[OpenAICompatibleProvider] = None
        self._job_sources: Optional[Dict[str, JobSource]] = None
        self._mailers: Optional[Dict[str, Mailer]] = None

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> "ProviderRegistry":
        return cls(settings, http_client=http_client)

    async def __aenter__(self) -> "ProviderRegistry":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the httpx client if this registry created it."""
        if self._owns_http_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            self._owns_http_client = False

    @property
    def http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.settings.provider_timeout_seconds)
            self._owns_http_client = True
        return self._http_client

    # ===== AI =====

    def gemini_providers(self) -> List[GeminiProvider]:
        """One Gemini provider per configured key, in key order."""
        if self._gemini is None:
            self._gemini = [
                GeminiProvider(api_key=key, credential=label)
                for label, key in self.settings.gemini_keys
            ]
        return self._gemini

    def openrouter(self) -> Optional[OpenAICompatibleProvider]:
        if self._openrouter is None and self.settings.openrouter_api_key:
            self._openrouter = OpenAICompatibleProvider(
                name="openrouter",
                api_key=self.settings.openrouter_api_key,
                base_url=self.settings.openrouter_base_url,
                model=self.settings.openrouter_default_model,
                timeout=self.settings.provider_timeout_seconds,
                default_headers={"HTTP-Referer": self.settings.app_url, "X-Title": self.settings.app_name},
            )
        return self._openrouter

    def deepseek(self) -> Optional[OpenAICompatibleProvider]:
        if self._deepseek is None and self.settings.deepseek_api_key:
            self._deepseek = OpenAICompatibleProvider(
                name="deepseek",
                api_key=self.settings.deepseek_api_key,
                base_url=self.settings.deepseek_base_url,
                model=self.settings.deepseek_default_model,
                timeout=self.settings.provider_timeout_seconds,
            )
        return self._deepseek

    # ===== Job boards =====

    def job_sources(self) -> Dict[str, JobSource]:
        """Configured job boards keyed by name (unconfigured ones are absent)."""
        if self._job_sources is None:
            s = self.settings
            timeout = s.provider_timeout_seconds
            sources: Dict[str, JobSource] = {}
            if s.ncs_api_key:
                sources["ncs"] = NCSSource(s.ncs_api_key, s.ncs_api_url, client=self.http_client, timeout=timeout)
            if s.jooble_api_key:
                sources["jooble"] = JoobleSource(
                    s.jooble_api_key, s.jooble_api_url, client=self.http_client, timeout=timeout
                )
            if s.adzuna_app_id and s.adzuna_api_key:
                sources["adzuna"] = AdzunaSource(
                    s.adzuna_app_id,
                    s.adzuna_api_key,
                    s.adzuna_api_url,
                    country=s.adzuna_country,
                    client=self.http_client,
                    timeout=timeout,
                )
            self._job_sources = sources
        return self._job_sources

    # ===== Email =====

    def mailers(self) -> Dict[str, Mailer]:
        """Configured mailers keyed by name (unconfigured ones are absent)."""
        if self._mailers is None:
            s = self.settings
            timeout = s.provider_timeout_seconds
            mailers: Dict[str, Mailer] = {}
            if s.mailgun_api_key and s.mailgun_domain:
                mailers["mailgun"] = MailgunMailer(
                    s.mailgun_api_key, s.mailgun_domain, s.mailgun_from_email,
                    client=self.http_client, timeout=timeout,
                )
            if s.resend_api_key:
                mailers["resend"] = ResendMailer(
                    s.resend_api_key, s.resend_from_email, client=self.http_client, timeout=timeout
                )
            self._mailers = mailers
        return self._mailers
