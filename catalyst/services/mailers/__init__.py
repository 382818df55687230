"""
Mailers Module

Transactional email delivery through:
- Mailgun (multipart form API)
- Resend (JSON API)

Each mailer implements the Mailer abstract base class and sends one
EmailMessage with one credential.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Union

import httpx
from pydantic import EmailStr, TypeAdapter, ValidationError

from catalyst.common.errors import InvalidRequestError

logger = logging.getLogger(__name__)

_EMAIL_ADDRESS = TypeAdapter(EmailStr)


def is_valid_address(address: str) -> bool:
    """Syntax check through pydantic's EmailStr (email-validator, no DNS lookup)."""
    try:
        _EMAIL_ADDRESS.validate_python(address)
    except ValidationError:
        return False
    return True


@dataclass(frozen=True)
class Attachment:
    """File attached to an email."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class EmailMessage:
    """
    A transactional email.

    Attributes:
        to: One recipient or a list of recipients
        subject: Subject line
        html: HTML body
        text: Plain-text body
        attachments: Files to attach
    """

    to: Union[str, List[str]]
    subject: str
    html: Optional[str] = None
    text: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)

    @property
    def recipients(self) -> List[str]:
        recipients = [self.to] if isinstance(self.to, str) else list(self.to)
        return [r.strip() for r in recipients if r and r.strip()]

    def validate(self) -> None:
        """
        Raises:
            InvalidRequestError: Missing recipient, subject or body, or a
                malformed address
        """
        recipients = self.recipients
        if not recipients:
            raise InvalidRequestError("email", "At least one recipient is required")
        invalid = [r for r in recipients if not is_valid_address(r)]
        if invalid:
            raise InvalidRequestError("email", f"Invalid recipient address: {', '.join(invalid)}")
        if not self.subject or not self.subject.strip():
            raise InvalidRequestError("email", "Subject is required")
        if not self.html and not self.text:
            raise InvalidRequestError("email", "Either html or text body is required")

    def __str__(self) -> str:
        return f"to={','.join(self.recipients)} subject={self.subject!r}"


class Mailer(ABC):
    """Abstract base class for email providers."""

    name: str = ""

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: Optional[float] = 30.0):
        self._client = client
        self.timeout = timeout

    @abstractmethod
    async def send(self, message: EmailMessage) -> Optional[str]:
        """
        Deliver `message`.

        Returns:
            Provider message id, when the provider returns one

        Raises:
            CatalystError: On any transport or provider failure
        """
        pass

    def _message_id(self, response: httpx.Response) -> Optional[str]:
        """
        Message id from an accepted response.

        The provider has already accepted the message; a body without an id
        yields None.
        """
        try:
            body = response.json()
        except ValueError:
            logger.warning(f"[{self.name}] Accepted response without a JSON body")
            return None
        return body.get("id") if isinstance(body, dict) else None


from .mailgun import MailgunMailer  # noqa: E402
from .resend import ResendMailer  # noqa: E402

__all__ = ["Attachment", "EmailMessage", "Mailer", "MailgunMailer", "ResendMailer", "is_valid_address"]
