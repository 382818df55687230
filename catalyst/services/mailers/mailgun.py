"""
Mailgun mailer.

POST https://api.mailgun.net/v3/{domain}/messages as multipart form data,
HTTP basic auth with user "api". Attachments are sent as "attachment" files.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from catalyst.services.http import send_request

from . import EmailMessage, Mailer

logger = logging.getLogger(__name__)


class MailgunMailer(Mailer):
    """Mailgun HTTP API."""

    name = "mailgun"
    API_URL = "https://api.mailgun.net/v3"

    def __init__(
        self,
        api_key: str,
        domain: str,
        from_email: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 30.0,
    ):
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key
        self.domain = domain
        self.from_email = from_email

    async def send(self, message: EmailMessage) -> Optional[str]:
        data: Dict[str, Any] = {
            "from": self.from_email,
            "to": message.recipients,
            "subject": message.subject,
        }
        if message.html:
            data["html"] = message.html
        if message.text:
            data["text"] = message.text

        files: List[Tuple[str, Tuple[str, bytes, str]]] = [
            ("attachment", (a.filename, a.content, a.content_type)) for a in message.attachments
        ]

        response = await send_request(
            self.name,
            "POST",
            f"{self.API_URL}/{self.domain}/messages",
            client=self._client,
            timeout=self.timeout,
            auth=("api", self._api_key),
            data=data,
            files=files or None,
        )
        message_id = self._message_id(response)
        logger.info(f"[Mailgun] Sent {message} (id={message_id})")
        return message_id
