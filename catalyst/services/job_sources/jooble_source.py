"""
Jooble Job Source

API: POST {JOOBLE_API_URL}/{api_key} with a JSON body
{"keywords": ..., "location": ..., "page": "<n>"}. The key travels in the
path, so URLs from this source must never be logged.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

import httpx

from catalyst.services.http import send_request

from . import JobPosting, JobSearchParams, JobSource, _text

logger = logging.getLogger(__name__)


class JoobleSource(JobSource):
    """Jooble job aggregator."""

    name = "jooble"

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://jooble.org/api",
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 30.0,
    ):
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key
        self._api_url = api_url.rstrip("/")

    async def search(self, params: JobSearchParams) -> List[JobPosting]:
        response = await send_request(
            self.name,
            "POST",
            f"{self._api_url}/{self._api_key}",
            client=self._client,
            timeout=self.timeout,
            json={
                "keywords": params.query,
                "location": params.location or "",
                "page": str(params.page),
            },
        )
        data = response.json()
        jobs = [self._convert(job) for job in (data.get("jobs") or [])]
        logger.info(f"[Jooble] Fetched {len(jobs)} jobs for {params}")
        return jobs

    def _convert(self, job: Dict[str, Any]) -> JobPosting:
        job_id = _text(job.get("id")) or f"jooble-{uuid.uuid4().hex[:12]}"
        return JobPosting(
            id=job_id,
            title=_text(job.get("title")),
            company=_text(job.get("company")),
            location=_text(job.get("location")),
            description=_text(job.get("snippet") or job.get("description")),
            url=_text(job.get("link")),
            source=self.name,
            salary=job.get("salary") or None,
            posted_date=job.get("updated"),
        )
