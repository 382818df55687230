"""
Resend mailer.

POST https://api.resend.com/emails with a bearer key and a JSON body;
attachments travel base64-encoded.
"""

import base64
import logging
from typing import Any, Dict, Optional

import httpx

from catalyst.services.http import send_request

from . import EmailMessage, Mailer

logger = logging.getLogger(__name__)


class ResendMailer(Mailer):
    """Resend HTTP API."""

    name = "resend"
    API_URL = "https://api.resend.com/emails"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 30.0,
    ):
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key
        self.from_email = from_email

    async def send(self, message: EmailMessage) -> Optional[str]:
        payload: Dict[str, Any] = {
            "from": self.from_email,
            "to": message.recipients,
            "subject": message.subject,
        }
        if message.html:
            payload["html"] = message.html
        if message.text:
            payload["text"] = message.text
        if message.attachments:
            payload["attachments"] = [
                {"filename": a.filename, "content": base64.b64encode(a.content).decode("ascii")}
                for a in message.attachments
            ]

        response = await send_request(
            self.name,
            "POST",
            self.API_URL,
            client=self._client,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json=payload,
        )
        message_id = self._message_id(response)
        logger.info(f"[Resend] Sent {message} (id={message_id})")
        return message_id
