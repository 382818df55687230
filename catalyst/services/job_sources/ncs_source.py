"""
NCS Job Source

Searches India's National Career Service portal.

API: GET {NCS_API_URL}/jobs/search?q=&location=&page= with a bearer key.
Field names vary between NCS payload versions (id/jobId, title/jobTitle,
company/companyName, url/applyUrl); both spellings are accepted.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from catalyst.services.http import send_request

from . import JobPosting, JobSearchParams, JobSource, _text

logger = logging.getLogger(__name__)


class NCSSource(JobSource):
    """National Career Service job board."""

    name = "ncs"

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.ncs.gov.in",
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 30.0,
    ):
        super().__init__(client=client, timeout=timeout)
        self._api_key = api_key
        self._api_url = api_url.rstrip("/")

    async def search(self, params: JobSearchParams) -> List[JobPosting]:
        response = await send_request(
            self.name,
            "GET",
            f"{self._api_url}/jobs/search",
            client=self._client,
            timeout=self.timeout,
            params={"q": params.query, "location": params.location or "", "page": params.page},
            headers={"Authorization": f"Bearer {self._api_key}", "Content-Type": "application/json"},
        )
        data = response.json()
        jobs = [self._convert(job) for job in (data.get("jobs") or [])]
        logger.info(f"[NCS] Fetched {len(jobs)} jobs for {params}")
        return jobs

    def _convert(self, job: Dict[str, Any]) -> JobPosting:
        return JobPosting(
            id=_text(job.get("id") or job.get("jobId")),
            title=_text(job.get("title") or job.get("jobTitle")),
            company=_text(job.get("company") or job.get("companyName")),
            location=_text(job.get("location")),
            description=_text(job.get("description")),
            url=_text(job.get("url") or job.get("applyUrl")),
            source=self.name,
            salary=job.get("salary"),
            posted_date=job.get("postedDate"),
        )
