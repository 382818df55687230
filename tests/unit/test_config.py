"""
Unit tests for catalyst/common/config.py
"""

import pytest
from pydantic import ValidationError

from catalyst.common.config import load_settings


class TestSettings:

    def test_defaults(self, make_settings):
        settings = make_settings()

        assert settings.gemini_default_model == "gemini-2.0-flash"
        assert settings.job_sources_order == ["ncs", "jooble", "adzuna"]
        assert settings.email_providers_order == ["mailgun", "resend"]
        assert settings.provider_timeout_seconds == 60.0
        assert settings.auth_required is False

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k1")
        monkeypatch.setenv("GEMINI_API_KEY_TERTIARY", "k3")
        monkeypatch.setenv("JOB_FALLBACK_ORDER", "Jooble, adzuna")

        settings = load_settings(_env_file=None)

        assert settings.gemini_keys == [("primary", "k1"), ("tertiary", "k3")]
        assert settings.job_sources_order == ["jooble", "adzuna"]

    def test_rotated_credentials_picked_up(self, monkeypatch):
        monkeypatch.setenv("RESEND_API_KEY", "old")
        first = load_settings(_env_file=None)
        monkeypatch.setenv("RESEND_API_KEY", "new")
        second = load_settings(_env_file=None)

        assert first.resend_api_key == "old"
        assert second.resend_api_key == "new"

    def test_invalid_environment(self, make_settings):
        with pytest.raises(ValidationError):
            make_settings(environment="qa")

    def test_invalid_log_format(self, make_settings):
        with pytest.raises(ValidationError):
            make_settings(log_format="xml")

    def test_cors_origins_list(self, make_settings):
        settings = make_settings(cors_origins="https://a.app, https://b.app,")
        assert settings.cors_origins_list == ["https://a.app", "https://b.app"]


class TestValidateProviders:

    def test_everything_missing(self, make_settings):
        warnings = make_settings().validate_providers()

        assert len(warnings) == 3
        assert warnings[0].startswith("No AI provider configured")

    def test_adzuna_needs_both_credentials(self, make_settings):
        warnings = make_settings(adzuna_app_id="id").validate_providers()
        assert any(w.startswith("No job API configured") for w in warnings)

    def test_mailgun_needs_domain(self, make_settings):
        warnings = make_settings(mailgun_api_key="key").validate_providers()
        assert any(w.startswith("No email service configured") for w in warnings)

    def test_fully_configured(self, make_settings):
        settings = make_settings(deepseek_api_key="d", jooble_api_key="j", resend_api_key="r")
        assert settings.validate_providers() == []

    def test_summary_hides_secrets(self, make_settings):
        summary = make_settings(gemini_api_key="super-secret", resend_api_key="re-secret").summary()

        assert "super-secret" not in summary
        assert "re-secret" not in summary
        assert "Gemini keys: primary" in summary
