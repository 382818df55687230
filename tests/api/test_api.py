"""
Tests for the FastAPI surface: auth, routes and error mapping.
"""

import base64

import pytest

from catalyst.common.errors import CapacityError, ProviderError, ProviderUnavailableError
from catalyst.services.ai.providers import ProviderResponse
from catalyst.services.job_sources import JobPosting


class FakeGemini:
    name = "gemini"

    def __init__(self, credential="primary", text="Hello from Gemini", error=None):
        self.credential = credential
        self.text = text
        self.error = error
        self.models = []

    async def generate(self, request, model):
        self.models.append(model)
        if self.error is not None:
            raise self.error
        return ProviderResponse(text=self.text, model=model, tokens_used=5)


class FakeAlternate:
    def __init__(self, name, text="alt", error=None):
        self.name = name
        self.model = "default"
        self.text = text
        self.error = error

    async def generate(self, request):
        if self.error is not None:
            raise self.error
        return ProviderResponse(text=self.text, model=f"{self.name}/{self.model}")


class FakeSource:
    def __init__(self, name, titles=(), error=None):
        self.name = name
        self.titles = titles
        self.error = error

    async def search(self, params):
        if self.error is not None:
            raise self.error
        return [
            JobPosting(id=f"{self.name}-{i}", title=title, company="Acme", location="Pune",
                       description="", url="https://example.com", source=self.name)
            for i, title in enumerate(self.titles)
        ]


class FakeMailer:
    def __init__(self, name, error=None):
        self.name = name
        self.error = error
        self.sent = []

    async def send(self, message):
        if self.error is not None:
            raise self.error
        self.sent.append(message)
        return f"{self.name}-id"


# ===== Health and auth =====

class TestHealthAndAuth:

    def test_health_needs_no_token(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_missing_token(self, client, registry):
        registry.gemini = [FakeGemini()]

        response = client.post("/api/ai/generate", json={"prompt": "Hi"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Missing authentication token"

    def test_invalid_token(self, client, registry):
        registry.gemini = [FakeGemini()]

        response = client.post(
            "/api/ai/generate", json={"prompt": "Hi"}, headers={"Authorization": "Bearer wrong"}
        )

        assert response.status_code == 401

    def test_no_secret_configured_allows_requests(self, client, registry, settings_overrides):
        settings_overrides["api_secret"] = None
        registry.gemini = [FakeGemini()]

        response = client.post("/api/ai/generate", json={"prompt": "Hi"})

        assert response.status_code == 200


# ===== AI =====

class TestAIRoutes:

    def test_generate(self, client, registry, auth_headers):
        registry.gemini = [FakeGemini("primary")]

        response = client.post("/api/ai/generate", json={"prompt": "Hi"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["text"] == "Hello from Gemini"
        assert data["provider_used"] == "gemini/primary"
        assert data["used_fallback"] is False

    def test_generate_with_fallback(self, client, registry, auth_headers):
        registry.gemini = [
            FakeGemini("primary", error=ProviderError("gemini", "API key not valid", 400)),
            FakeGemini("secondary", text="second key"),
        ]

        data = client.post("/api/ai/generate", json={"prompt": "Hi"}, headers=auth_headers).json()

        assert data["provider_used"] == "gemini/secondary"
        assert data["used_fallback"] is True

    def test_no_provider_is_503(self, client, auth_headers):
        response = client.post("/api/ai/generate", json={"prompt": "Hi"}, headers=auth_headers)

        assert response.status_code == 503
        assert response.json()["type"] == "ConfigurationError"

    def test_all_failed_is_502_with_errors(self, client, registry, auth_headers):
        registry.gemini = [FakeGemini(error=CapacityError("gemini", "quota", 429))]
        registry.deepseek_provider = FakeAlternate("deepseek", error=ProviderUnavailableError("deepseek", "down", 503))

        response = client.post("/api/ai/generate", json={"prompt": "Hi"}, headers=auth_headers)

        assert response.status_code == 502
        body = response.json()
        assert body["type"] == "AllProvidersFailedError"
        assert [e["provider"] for e in body["errors"]][-1] == "deepseek/default"

    def test_empty_prompt_rejected(self, client, registry, auth_headers):
        registry.gemini = [FakeGemini()]

        response = client.post("/api/ai/generate", json={"prompt": ""}, headers=auth_headers)

        assert response.status_code == 422

    def test_generate_json(self, client, registry, auth_headers):
        registry.gemini = [FakeGemini(text='```json\n{"questions": ["Why?"]}\n```')]

        response = client.post("/api/ai/generate-json", json={"prompt": "JSON please"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"data": {"questions": ["Why?"]}}

    def test_generate_json_malformed_is_502(self, client, registry, auth_headers):
        registry.gemini = [FakeGemini(text="I cannot do that")]

        response = client.post(
            "/api/ai/generate-json", json={"prompt": "JSON please", "attempts": 2}, headers=auth_headers
        )

        assert response.status_code == 502
        assert response.json()["type"] == "MalformedOutputError"

    def test_task_uses_task_model(self, client, registry, auth_headers):
        gemini = FakeGemini()
        registry.gemini = [gemini]

        response = client.post("/api/ai/tasks/resume-analysis", json={"prompt": "My CV"}, headers=auth_headers)

        assert response.status_code == 200
        assert gemini.models == ["gemini-2.5-pro"]
        assert response.json()["model"] == "gemini-2.5-pro"


# ===== Jobs =====

class TestJobRoutes:

    def test_search(self, client, registry, auth_headers):
        registry.sources = {"ncs": FakeSource("ncs", ["Backend Dev"])}

        response = client.get("/api/jobs/search", params={"q": "python"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 1
        assert data["source"] == "ncs"
        assert data["jobs"][0]["title"] == "Backend Dev"

    def test_search_fallback(self, client, registry, auth_headers):
        registry.sources = {
            "ncs": FakeSource("ncs", error=ProviderUnavailableError("ncs", "down", 503)),
            "adzuna": FakeSource("adzuna", ["ML Engineer"]),
        }

        data = client.get("/api/jobs/search", params={"q": "ml"}, headers=auth_headers).json()

        assert data["source"] == "adzuna"
        assert data["used_fallback"] is True

    def test_total_failure_answers_200(self, client, registry, auth_headers):
        registry.sources = {"jooble": FakeSource("jooble", error=ProviderError("jooble", "forbidden", 403))}

        response = client.get("/api/jobs/search", params={"q": "python"}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["jobs"] == []
        assert "forbidden" in data["error"]

    def test_missing_query_is_400(self, client, registry, auth_headers):
        registry.sources = {"ncs": FakeSource("ncs", ["x"])}

        response = client.get("/api/jobs/search", headers=auth_headers)

        assert response.status_code == 400
        assert "Query parameter q is required" in response.json()["error"]

    def test_no_board_is_503(self, client, auth_headers):
        response = client.get("/api/jobs/search", params={"q": "python"}, headers=auth_headers)

        assert response.status_code == 503

    def test_aggregate(self, client, registry, auth_headers):
        registry.sources = {
            "ncs": FakeSource("ncs", ["Backend Dev"]),
            "jooble": FakeSource("jooble", ["backend dev", "Data Analyst"]),
            "adzuna": FakeSource("adzuna", error=ProviderUnavailableError("adzuna", "timeout")),
        }

        response = client.get(
            "/api/jobs/search", params={"q": "dev", "aggregate": "true"}, headers=auth_headers
        )

        data = response.json()
        assert data["source"] == "aggregated"
        assert data["count"] == 2
        assert data["sources"] == {"ncs": 1, "jooble": 2}
        assert "adzuna" in data["failures"]


# ===== Email =====

class TestEmailRoutes:

    def test_send(self, client, registry, auth_headers):
        resend = FakeMailer("resend")
        registry.mailer_map = {"resend": resend}
        attachment = {"filename": "cv.txt", "content_base64": base64.b64encode(b"hello").decode()}

        response = client.post("/api/email/send", json={
            "to": "asha@example.com", "subject": "CV", "text": "attached", "attachments": [attachment],
        }, headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {
            "success": True, "provider": "resend", "used_fallback": False, "message_id": "resend-id",
        }
        assert resend.sent[0].attachments[0].content == b"hello"

    def test_send_fallback(self, client, registry, auth_headers):
        registry.mailer_map = {
            "mailgun": FakeMailer("mailgun", error=ProviderError("mailgun", "Forbidden", 401)),
            "resend": FakeMailer("resend"),
        }

        data = client.post("/api/email/send", json={
            "to": ["asha@example.com"], "subject": "Hi", "html": "<p>Hi</p>",
        }, headers=auth_headers).json()

        assert data["provider"] == "resend"
        assert data["used_fallback"] is True

    def test_invalid_base64(self, client, registry, auth_headers):
        registry.mailer_map = {"resend": FakeMailer("resend")}

        response = client.post("/api/email/send", json={
            "to": "asha@example.com", "subject": "CV", "text": "x",
            "attachments": [{"filename": "cv.pdf", "content_base64": "not base64!"}],
        }, headers=auth_headers)

        assert response.status_code == 400

    def test_invalid_recipient_is_400(self, client, registry, auth_headers):
        mailer = FakeMailer("resend")
        registry.mailer_map = {"resend": mailer}

        response = client.post("/api/email/send", json={
            "to": "not-an-email", "subject": "Hi", "text": "x",
        }, headers=auth_headers)

        assert response.status_code == 400
        assert mailer.sent == []

    def test_report(self, client, registry, auth_headers):
        resend = FakeMailer("resend")
        registry.mailer_map = {"resend": resend}

        response = client.post("/api/email/report", json={
            "to": "asha@example.com", "reportType": "Weekly", "data": {"applications": 3},
        }, headers=auth_headers)

        assert response.status_code == 200
        assert resend.sent[0].subject == "Catalyst - Your Weekly Report"


# ===== Debug dashboard =====

class TestDebugRoutes:

    def test_disabled_is_403(self, client, auth_headers, settings_overrides):
        settings_overrides["enable_debug_dashboard"] = False

        response = client.get("/api/debug/logs", headers=auth_headers)

        assert response.status_code == 403

    def test_logs_and_stats_from_memory(self, client, registry, auth_headers):
        registry.gemini = [
            FakeGemini("primary", error=ProviderError("gemini", "API key not valid", 400)),
            FakeGemini("secondary"),
        ]
        client.post("/api/ai/generate", json={"prompt": "Hi"}, headers=auth_headers)

        logs = client.get("/api/debug/logs", params={"service": "gemini"}, headers=auth_headers).json()
        stats = client.get("/api/debug/stats", headers=auth_headers).json()

        assert logs["count"] == 2
        assert logs["logs"][0]["credential"] == "secondary"
        assert logs["logs"][0]["success"] is True
        assert stats["stats"] == [
            {"service": "gemini", "total_calls": 2, "fallback_calls": 1, "fallback_rate": 0.5}
        ]

    @pytest.mark.parametrize("path", ["/api/debug/health", "/api/debug/logs", "/api/debug/stats"])
    def test_requires_token(self, client, path):
        assert client.get(path).status_code == 401

    def test_health(self, client, registry, auth_headers):
        registry.gemini = [FakeGemini("primary")]

        data = client.get("/api/debug/health", headers=auth_headers).json()

        assert data["gemini"]["available"] is True
        assert [k["status"] for k in data["gemini"]["keys"]] == ["ok", "missing", "missing"]
        assert any(w.startswith("No job API configured") for w in data["warnings"])
