"""
Job search route.

GET /api/jobs/search?q=&location=&page=&aggregate=

A search where every board fails still answers 200 with an empty list and
the error text, so the UI can render "no results" instead of an error page.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from catalyst.common.errors import AllProvidersFailedError
from catalyst.services.job_search_service import JobSearchService
from catalyst.services.job_sources import JobSearchParams

from ..auth import verify_token
from ..dependencies import get_job_search_service
from ..models import JobSearchResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/jobs", tags=["jobs"], dependencies=[Depends(verify_token)])


@router.get("/search", response_model=JobSearchResponse)
async def search_jobs(
    q: str = Query("", description="Search keywords (required)"),
    location: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    aggregate: bool = Query(False, description="Query every board concurrently and merge"),
    service: JobSearchService = Depends(get_job_search_service),
) -> JobSearchResponse:
    params = JobSearchParams(query=q, location=location or None, page=page, limit=limit)
    logger.info(f"[Jobs] Searching for {params} aggregate={aggregate}")

    if aggregate:
        aggregated = await service.search_aggregated(params)
        return JobSearchResponse(
            jobs=[job.to_dict() for job in aggregated.jobs],
            count=len(aggregated),
            source="aggregated",
            sources=aggregated.sources,
            failures=aggregated.failures or None,
        )

    try:
        result = await service.search(params)
    except AllProvidersFailedError as e:
        logger.error(f"[Jobs] Search failed: {e}")
        return JobSearchResponse(error=str(e))

    return JobSearchResponse(
        jobs=[job.to_dict() for job in result.jobs],
        count=len(result),
        source=result.source,
        used_fallback=result.used_fallback,
    )
