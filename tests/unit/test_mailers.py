"""
Unit tests for catalyst/services/mailers/ and catalyst/services/email_templates.py
"""

import base64
import json
from urllib.parse import parse_qs

import httpx
import pytest

from catalyst.common.errors import InvalidRequestError, ProviderError, ProviderUnavailableError
from catalyst.services.email_templates import interview_report_email, report_email, welcome_email
from catalyst.services.mailers import Attachment, EmailMessage, MailgunMailer, ResendMailer, is_valid_address


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ===== TESTS: EmailMessage =====

class TestEmailMessage:

    def test_recipients_from_string_and_list(self):
        assert EmailMessage(to=" a@x.com ", subject="s", text="t").recipients == ["a@x.com"]
        assert EmailMessage(to=["a@x.com", "", "b@y.org"], subject="s", text="t").recipients == [
            "a@x.com", "b@y.org"
        ]

    @pytest.mark.parametrize("kwargs, message", [
        ({"to": [], "subject": "s", "text": "t"}, "recipient is required"),
        ({"to": "not-an-email", "subject": "s", "text": "t"}, "Invalid recipient"),
        ({"to": "a@x.com", "subject": " ", "text": "t"}, "Subject is required"),
        ({"to": "a@x.com", "subject": "s"}, "html or text"),
    ])
    def test_validation(self, kwargs, message):
        with pytest.raises(InvalidRequestError) as exc_info:
            EmailMessage(**kwargs).validate()
        assert message in str(exc_info.value)

    def test_valid_message(self):
        EmailMessage(to="a@x.com", subject="Hi", html="<p>Hi</p>").validate()

    @pytest.mark.parametrize("address", ["a@b..com", "a..b@x.io", "a@-x.io", "\"a@x.io", "a@x", "a b@x.io"])
    def test_malformed_addresses_rejected(self, address):
        assert not is_valid_address(address)
        with pytest.raises(InvalidRequestError):
            EmailMessage(to=address, subject="s", text="t").validate()

    @pytest.mark.parametrize("address", ["asha@example.com", "first.last+jobs@mail.co.in", "ravi@sub.domain.org"])
    def test_well_formed_addresses_accepted(self, address):
        assert is_valid_address(address)


# ===== TESTS: Mailgun =====

class TestMailgunMailer:

    @pytest.mark.asyncio
    async def test_form_request(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["form"] = parse_qs(request.read().decode())
            return httpx.Response(200, json={"id": "<20240601.mg@mg.example.com>", "message": "Queued"})

        async with mock_client(handler) as client:
            mailer = MailgunMailer("mg-key", "mg.example.com", "noreply@catalyst.app", client=client)
            message_id = await mailer.send(
                EmailMessage(to=["a@x.com", "b@y.org"], subject="Hello", html="<b>Hi</b>", text="Hi")
            )

        assert message_id == "<20240601.mg@mg.example.com>"
        assert seen["url"] == "https://api.mailgun.net/v3/mg.example.com/messages"
        assert seen["auth"] == "Basic " + base64.b64encode(b"api:mg-key").decode()
        assert seen["form"]["to"] == ["a@x.com", "b@y.org"]
        assert seen["form"]["from"] == ["noreply@catalyst.app"]
        assert seen["form"]["html"] == ["<b>Hi</b>"]

    @pytest.mark.asyncio
    async def test_attachments_sent_as_files(self):
        seen = {}

        def handler(request):
            seen["content_type"] = request.headers["Content-Type"]
            seen["body"] = request.read()
            return httpx.Response(200, json={"id": "m1"})

        async with mock_client(handler) as client:
            mailer = MailgunMailer("k", "mg.example.com", "from@x.com", client=client)
            await mailer.send(EmailMessage(
                to="a@x.com", subject="CV", text="attached",
                attachments=[Attachment("cv.pdf", b"%PDF-1.4", "application/pdf")],
            ))

        assert seen["content_type"].startswith("multipart/form-data")
        assert b'name="attachment"; filename="cv.pdf"' in seen["body"]
        assert b"%PDF-1.4" in seen["body"]

    @pytest.mark.asyncio
    async def test_unauthorized_is_provider_error(self):
        async with mock_client(lambda request: httpx.Response(401, text="Forbidden")) as client:
            mailer = MailgunMailer("bad", "mg.example.com", "from@x.com", client=client)
            with pytest.raises(ProviderError) as exc_info:
                await mailer.send(EmailMessage(to="a@x.com", subject="s", text="t"))
        assert exc_info.value.status_code == 401
        assert not isinstance(exc_info.value, InvalidRequestError)

    @pytest.mark.asyncio
    async def test_plain_text_acceptance_has_no_id(self):
        async with mock_client(lambda request: httpx.Response(200, text="Queued. Thank you.")) as client:
            mailer = MailgunMailer("k", "mg.example.com", "from@x.com", client=client)
            message_id = await mailer.send(EmailMessage(to="a@x.com", subject="s", text="t"))

        assert message_id is None


# ===== TESTS: Resend =====

class TestResendMailer:

    @pytest.mark.asyncio
    async def test_json_request_with_attachment(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.read())
            return httpx.Response(200, json={"id": "re_123"})

        async with mock_client(handler) as client:
            mailer = ResendMailer("re-key", "onboarding@resend.dev", client=client)
            message_id = await mailer.send(EmailMessage(
                to="a@x.com", subject="Report", text="see attached",
                attachments=[Attachment("report.txt", b"hello")],
            ))

        assert message_id == "re_123"
        assert seen["url"] == "https://api.resend.com/emails"
        assert seen["auth"] == "Bearer re-key"
        assert seen["body"]["to"] == ["a@x.com"]
        assert "html" not in seen["body"]
        assert seen["body"]["attachments"] == [{"filename": "report.txt", "content": "aGVsbG8="}]

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        async with mock_client(lambda request: httpx.Response(502, json={"message": "bad gateway"})) as client:
            with pytest.raises(ProviderUnavailableError):
                await ResendMailer("k", "f@x.com", client=client).send(
                    EmailMessage(to="a@x.com", subject="s", text="t")
                )

    @pytest.mark.asyncio
    async def test_list_body_has_no_id(self):
        async with mock_client(lambda request: httpx.Response(200, json=["re_1"])) as client:
            message_id = await ResendMailer("k", "f@x.com", client=client).send(
                EmailMessage(to="a@x.com", subject="s", text="t")
            )

        assert message_id is None


# ===== TESTS: Templates =====

class TestTemplates:

    def test_interview_report_escapes_html(self):
        message = interview_report_email(
            "a@x.com", "Asha <script>", "2024-06-01", "Q: Why?\nA: Because", "Good & clear"
        )

        assert message.subject == "Interview Report - Asha <script>"
        assert "Asha &lt;script&gt;" in message.html
        assert "<script>" not in message.html
        assert "Good &amp; clear" in message.html
        assert "Candidate: Asha <script>" in message.text
        message.validate()

    def test_welcome_links_dashboard(self):
        message = welcome_email("a@x.com", "Ravi", "https://catalyst.app/")

        assert message.subject == "Welcome to Catalyst!"
        assert 'href="https://catalyst.app/dashboard"' in message.html
        assert "Hi Ravi," in message.text

    def test_report_renders_data(self):
        message = report_email("a@x.com", "Weekly", {"applications": 4, "city": "Pune"})

        assert message.subject == "Catalyst - Your Weekly Report"
        assert '&quot;applications&quot;: 4' in message.html
        assert '"city": "Pune"' in message.text
