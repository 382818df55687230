"""
Debug dashboard routes.

- GET /api/debug/health - probe every Gemini key
- GET /api/debug/logs - recent provider attempts
- GET /api/debug/stats - fallback rate per provider

All answer 403 unless ENABLE_DEBUG_DASHBOARD is true. Attempts come from
MongoDB when MONGODB_URI is set, otherwise from the in-memory log.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from catalyst.common.attempt_log import InMemoryAttemptSink
from catalyst.common.config import Settings
from catalyst.common.repositories import get_api_log_repository
from catalyst.services.ai import AIService

from ..auth import verify_token
from ..dependencies import get_ai_service, get_attempt_log, get_settings
from ..models import ApiLogsResponse, FallbackStatsResponse

logger = logging.getLogger(__name__)


def require_debug_dashboard(settings: Settings = Depends(get_settings)) -> None:
    if not settings.enable_debug_dashboard:
        raise HTTPException(status_code=403, detail="Debug dashboard is not enabled")


router = APIRouter(
    prefix="/api/debug",
    tags=["debug"],
    dependencies=[Depends(verify_token), Depends(require_debug_dashboard)],
)


@router.get("/health")
async def health(service: AIService = Depends(get_ai_service)) -> Dict[str, Any]:
    return {"gemini": await service.check_health(), "warnings": service.settings.validate_providers()}


@router.get("/logs", response_model=ApiLogsResponse)
async def logs(
    service: Optional[str] = Query(None, description="Filter by provider name"),
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    settings: Settings = Depends(get_settings),
    memory: InMemoryAttemptSink = Depends(get_attempt_log),
) -> ApiLogsResponse:
    repository = get_api_log_repository(settings)
    if repository is not None:
        rows = repository.find_recent(service=service, limit=limit, offset=offset)
    else:
        rows = memory.recent(service=service, limit=limit, offset=offset)
    return ApiLogsResponse(logs=rows, count=len(rows))


@router.get("/stats", response_model=FallbackStatsResponse)
async def stats(
    settings: Settings = Depends(get_settings),
    memory: InMemoryAttemptSink = Depends(get_attempt_log),
) -> FallbackStatsResponse:
    repository = get_api_log_repository(settings)
    rows = repository.fallback_stats() if repository is not None else memory.fallback_stats()
    return FallbackStatsResponse(stats=rows)
