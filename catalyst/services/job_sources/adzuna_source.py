"""
Adzuna Job Source

API: GET {ADZUNA_API_URL}/jobs/{country}/search/{page} with app_id, app_key,
what, where and results_per_page query parameters.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from catalyst.services.http import send_request

from . import JobPosting, JobSearchParams, JobSource, _text

logger = logging.getLogger(__name__)


class AdzunaSource(JobSource):
    """Adzuna job search API."""

    name = "adzuna"

    def __init__(
        self,
        app_id: str,
        api_key: str,
        api_url: str = "https://api.adzuna.com/v1/api",
        country: str = "in",
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = 30.0,
    ):
        super().__init__(client=client, timeout=timeout)
        self._app_id = app_id
        self._api_key = api_key
        self._api_url = api_url.rstrip("/")
        self.country = country

    async def search(self, params: JobSearchParams) -> List[JobPosting]:
        query: Dict[str, Any] = {
            "app_id": self._app_id,
            "app_key": self._api_key,
            "what": params.query,
            "results_per_page": params.limit,
        }
        if params.location:
            query["where"] = params.location

        response = await send_request(
            self.name,
            "GET",
            f"{self._api_url}/jobs/{self.country}/search/{params.page}",
            client=self._client,
            timeout=self.timeout,
            params=query,
        )
        data = response.json()
        jobs = [self._convert(job) for job in (data.get("results") or [])]
        logger.info(f"[Adzuna] Fetched {len(jobs)} jobs for {params}")
        return jobs

    def _convert(self, job: Dict[str, Any]) -> JobPosting:
        return JobPosting(
            id=_text(job.get("id")),
            title=_text(job.get("title")),
            company=_text((job.get("company") or {}).get("display_name")),
            location=_text((job.get("location") or {}).get("display_name")),
            description=_text(job.get("description")),
            url=_text(job.get("redirect_url")),
            source=self.name,
            salary=self._format_salary(job),
            posted_date=job.get("created"),
        )

    @staticmethod
    def _format_salary(job: Dict[str, Any]) -> Optional[str]:
        """Adzuna India reports salaries in rupees."""
        salary_min = job.get("salary_min")
        salary_max = job.get("salary_max")
        if salary_min and salary_max:
            return f"₹{int(salary_min)} - ₹{int(salary_max)}"
        return None
