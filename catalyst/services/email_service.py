"""
Transactional email with provider failover.

Mailers are tried in the configured order (EMAIL_FALLBACK_ORDER, default
mailgun -> resend); any provider error moves on to the next one. Invalid
messages are rejected before any provider is contacted.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from catalyst.common.attempt_log import AttemptSink, ProviderAttempt
from catalyst.common.config import Settings, load_settings
from catalyst.common.errors import ConfigurationError
from catalyst.common.structured_logger import StructuredLogger
from catalyst.fallback import Candidate, FallbackChain, classify_any_error
from catalyst.services.email_templates import interview_report_email, report_email, welcome_email
from catalyst.services.mailers import EmailMessage
from catalyst.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)

KNOWN_MAILERS = ("mailgun", "resend")


@dataclass
class EmailReceipt:
    """Delivery confirmation."""
    provider: str
    used_fallback: bool = False
    message_id: Optional[str] = None
    attempts: List[ProviderAttempt] = field(default_factory=list)


async def _unconfigured(message: EmailMessage) -> Optional[str]:
    raise ConfigurationError("email", "mailer not configured")


class EmailService:
    """Email delivery for one request."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[ProviderRegistry] = None,
        sink: Optional[AttemptSink] = None,
        struct_logger: Optional[StructuredLogger] = None,
        request_id: Optional[str] = None,
    ):
        self.settings = settings or load_settings()
        self.registry = registry or ProviderRegistry.from_settings(self.settings)
        self.sink = sink
        self.struct_logger = struct_logger
        self.request_id = request_id

    def candidates(self) -> List[Candidate]:
        mailers = self.registry.mailers()
        candidates = []
        for name in self.settings.email_providers_order:
            if name not in KNOWN_MAILERS:
                logger.warning(f"[Email] Ignoring unknown mailer in fallback order: {name}")
                continue
            mailer = mailers.get(name)
            candidates.append(Candidate(
                provider=name,
                call=mailer.send if mailer else _unconfigured,
                configured=mailer is not None,
                timeout=self.settings.provider_timeout_seconds,
            ))
        return candidates

    async def send(self, message: EmailMessage) -> EmailReceipt:
        """
        Send `message` through the first mailer that accepts it.

        Raises:
            InvalidRequestError: Missing recipient, subject or body
            ConfigurationError: No mailer configured
            AllProvidersFailedError: Every configured mailer failed
        """
        message.validate()
        chain = FallbackChain(
            "email",
            self.candidates(),
            classify=classify_any_error,
            sink=self.sink,
            struct_logger=self.struct_logger,
            request_id=self.request_id,
        )
        result = await chain.run(message)
        logger.info(f"[Email] Sent via {result.provider}{' (fallback)' if result.used_fallback else ''}")
        return EmailReceipt(
            provider=result.provider,
            used_fallback=result.used_fallback,
            message_id=result.value,
            attempts=result.attempts,
        )

    # ===== Templated messages =====

    async def send_interview_report(
        self, to: str, candidate_name: str, date: str, transcript: str, feedback: str
    ) -> EmailReceipt:
        return await self.send(interview_report_email(to, candidate_name, date, transcript, feedback))

    async def send_welcome_email(self, to: str, name: str) -> EmailReceipt:
        return await self.send(welcome_email(to, name, self.settings.app_url))

    async def send_report(self, to: str, report_type: str, data: Dict[str, Any]) -> EmailReceipt:
        return await self.send(report_email(to, report_type, data))


async def send_email(
    message: EmailMessage,
    settings: Optional[Settings] = None,
    sink: Optional[AttemptSink] = None,
) -> EmailReceipt:
    """Send with a per-call registry."""
    settings = settings or load_settings()
    async with ProviderRegistry.from_settings(settings) as registry:
        return await EmailService(settings, registry=registry, sink=sink).send(message)
