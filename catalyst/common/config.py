"""
Configuration for the Catalyst provider chains.

All values come from environment variables (or a local .env file) and are
validated by Pydantic. A Settings instance is an explicit configuration
struct: build one with load_settings() per request or invocation and pass it
down. Missing credentials are not errors, they simply drop the provider from
its chain.
"""

import logging
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

GEMINI_KEY_ORDER = ("primary", "secondary", "tertiary")


def _split_csv(value: str) -> List[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Provider credentials, fallback orders and service settings.

    Field names map to upper-case environment variables of the same name
    (GEMINI_API_KEY -> gemini_api_key).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== App =====
    app_url: str = "http://localhost:3000"
    app_name: str = "Catalyst"
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )

    # ===== Gemini =====
    gemini_api_key: Optional[str] = None
    gemini_api_key_secondary: Optional[str] = None
    gemini_api_key_tertiary: Optional[str] = None
    gemini_default_model: str = "gemini-2.0-flash"
    gemini_embedding_model: str = "text-embedding-004"

    # ===== Alternate AI providers (OpenAI-compatible APIs) =====
    openrouter_api_key: Optional[str] = None
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_default_model: str = "deepseek/deepseek-r1:free"
    deepseek_api_key: Optional[str] = None
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_default_model: str = "deepseek-chat"

    # ===== Job boards =====
    ncs_api_key: Optional[str] = None
    ncs_api_url: str = "https://api.ncs.gov.in"
    jooble_api_key: Optional[str] = None
    jooble_api_url: str = "https://jooble.org/api"
    adzuna_app_id: Optional[str] = None
    adzuna_api_key: Optional[str] = None
    adzuna_api_url: str = "https://api.adzuna.com/v1/api"
    adzuna_country: str = "in"
    job_fallback_order: str = "ncs,jooble,adzuna"

    # ===== Email =====
    mailgun_api_key: Optional[str] = None
    mailgun_domain: Optional[str] = None
    mailgun_from_email: str = "noreply@catalyst.app"
    resend_api_key: Optional[str] = None
    resend_from_email: str = "onboarding@resend.dev"
    email_fallback_order: str = "mailgun,resend"

    # ===== Timeouts =====
    provider_timeout_seconds: float = Field(default=60.0, gt=0, le=600)
    aggregation_timeout_seconds: float = Field(default=15.0, gt=0, le=120)

    # ===== Logging =====
    log_level: str = "INFO"
    log_format: str = "simple"
    enable_api_logging: bool = False
    enable_structured_events: bool = False
    attempt_log_buffer: int = Field(default=1000, ge=10, le=100000)

    # ===== Persistence (attempt log) =====
    mongodb_uri: Optional[str] = None
    mongo_db_name: str = "catalyst"
    mongo_timeout_ms: int = 2000

    # ===== HTTP surface =====
    api_secret: Optional[str] = None
    enable_debug_dashboard: bool = False
    cors_origins: str = ""

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is a known value."""
        allowed = {"development", "staging", "production", "test"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of: {', '.join(sorted(allowed))}")
        return v_lower

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v.lower() not in ("simple", "json"):
            raise ValueError("log_format must be 'simple' or 'json'")
        return v.lower()

    # ===== Derived views =====

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def gemini_keys(self) -> List[tuple]:
        """Configured Gemini keys as (label, key) pairs in fallback order."""
        keys = {
            "primary": self.gemini_api_key,
            "secondary": self.gemini_api_key_secondary,
            "tertiary": self.gemini_api_key_tertiary,
        }
        return [(label, keys[label]) for label in GEMINI_KEY_ORDER if keys[label]]

    @property
    def job_sources_order(self) -> List[str]:
        return _split_csv(self.job_fallback_order)

    @property
    def email_providers_order(self) -> List[str]:
        return _split_csv(self.email_fallback_order)

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list."""
        if not self.cors_origins:
            return []
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def auth_required(self) -> bool:
        return self.api_secret is not None

    @property
    def persist_attempts(self) -> bool:
        """Attempt persistence is on outside production, or when explicitly enabled."""
        if not self.mongodb_uri:
            return False
        return self.enable_api_logging or not self.is_production

    def validate_providers(self) -> List[str]:
        """
        Report chains that have no configured provider.

        Never raises: an empty chain only fails when it is used.

        Returns:
            List of warning messages (empty when every chain is usable)
        """
        warnings = []
        if not self.gemini_keys and not self.openrouter_api_key and not self.deepseek_api_key:
            warnings.append(
                "No AI provider configured (GEMINI_API_KEY, OPENROUTER_API_KEY or DEEPSEEK_API_KEY)"
            )
        has_job_api = self.ncs_api_key or self.jooble_api_key or (
            self.adzuna_app_id and self.adzuna_api_key
        )
        if not has_job_api:
            warnings.append(
                "No job API configured (NCS_API_KEY, JOOBLE_API_KEY, or ADZUNA_APP_ID/ADZUNA_API_KEY)"
            )
        has_mailer = (self.mailgun_api_key and self.mailgun_domain) or self.resend_api_key
        if not has_mailer:
            warnings.append("No email service configured (MAILGUN_API_KEY/MAILGUN_DOMAIN or RESEND_API_KEY)")
        return warnings

    def summary(self) -> str:
        """Return a summary of the current configuration (safe for logging)."""
        def mark(value) -> str:
            return "✓" if value else "✗"

        return f"""
Configuration Summary:
  Environment: {self.environment}
  Gemini keys: {', '.join(label for label, _ in self.gemini_keys) or 'none'} (default model {self.gemini_default_model})
  OpenRouter: {mark(self.openrouter_api_key)}  DeepSeek: {mark(self.deepseek_api_key)}
  Job APIs: NCS {mark(self.ncs_api_key)}  Jooble {mark(self.jooble_api_key)}  Adzuna {mark(self.adzuna_app_id and self.adzuna_api_key)}
  Job order: {' -> '.join(self.job_sources_order)}
  Email: Mailgun {mark(self.mailgun_api_key and self.mailgun_domain)}  Resend {mark(self.resend_api_key)}
  Email order: {' -> '.join(self.email_providers_order)}
  Attempt persistence: {'enabled' if self.persist_attempts else 'disabled'}
        """.strip()


def load_settings(**overrides) -> Settings:
    """
    Build a fresh Settings instance from the current environment.

    Not cached: each call re-reads the environment so credentials rotated
    between invocations are picked up.

    Args:
        **overrides: Explicit field values that take precedence over env vars

    Returns:
        Validated Settings
    """
    return Settings(**overrides)
