"""
FastAPI dependencies.

Settings, the provider registry and the services are built per request so
credentials rotated between requests take effect immediately. Only the
in-memory attempt log is process-wide (the debug endpoints read it).
"""

import logging
import uuid
from typing import AsyncIterator, Optional

from fastapi import Depends

from catalyst.common.attempt_log import CompositeAttemptSink, InMemoryAttemptSink, build_attempt_sink
from catalyst.common.config import Settings, load_settings
from catalyst.common.structured_logger import StructuredLogger
from catalyst.services.ai import AIService
from catalyst.services.email_service import EmailService
from catalyst.services.job_search_service import JobSearchService
from catalyst.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)

_attempt_log: Optional[InMemoryAttemptSink] = None


def get_settings() -> Settings:
    """Fresh settings for every request (not cached)."""
    return load_settings()


def get_attempt_log() -> InMemoryAttemptSink:
    """Process-wide in-memory attempt log."""
    global _attempt_log
    if _attempt_log is None:
        _attempt_log = InMemoryAttemptSink(maxlen=load_settings().attempt_log_buffer)
    return _attempt_log


def reset_attempt_log() -> None:
    """Drop the in-memory attempt log (used by tests)."""
    global _attempt_log
    _attempt_log = None


def get_attempt_sink(
    settings: Settings = Depends(get_settings),
    memory: InMemoryAttemptSink = Depends(get_attempt_log),
) -> CompositeAttemptSink:
    return build_attempt_sink(settings, memory=memory)


def get_request_id() -> str:
    """Correlation id for the chain logs of one request."""
    return uuid.uuid4().hex


def get_struct_logger(settings: Settings = Depends(get_settings)) -> StructuredLogger:
    return StructuredLogger(chain="api", enabled=settings.enable_structured_events)


async def get_registry(settings: Settings = Depends(get_settings)) -> AsyncIterator[ProviderRegistry]:
    """Per-request registry, closed when the response is done."""
    async with ProviderRegistry.from_settings(settings) as registry:
        yield registry


def get_ai_service(
    settings: Settings = Depends(get_settings),
    registry: ProviderRegistry = Depends(get_registry),
    sink: CompositeAttemptSink = Depends(get_attempt_sink),
    struct_logger: StructuredLogger = Depends(get_struct_logger),
    request_id: str = Depends(get_request_id),
) -> AIService:
    return AIService(
        settings, registry=registry, sink=sink, struct_logger=struct_logger, request_id=request_id
    )


def get_job_search_service(
    settings: Settings = Depends(get_settings),
    registry: ProviderRegistry = Depends(get_registry),
    sink: CompositeAttemptSink = Depends(get_attempt_sink),
    struct_logger: StructuredLogger = Depends(get_struct_logger),
    request_id: str = Depends(get_request_id),
) -> JobSearchService:
    return JobSearchService(
        settings, registry=registry, sink=sink, struct_logger=struct_logger, request_id=request_id
    )


def get_email_service(
    settings: Settings = Depends(get_settings),
    registry: ProviderRegistry = Depends(get_registry),
    sink: CompositeAttemptSink = Depends(get_attempt_sink),
    struct_logger: StructuredLogger = Depends(get_struct_logger),
    request_id: str = Depends(get_request_id),
) -> EmailService:
    return EmailService(
        settings, registry=registry, sink=sink, struct_logger=struct_logger, request_id=request_id
    )
