"""Remotive.com remote jobs connector."""
import logging
from typing import Optional

import aiohttp

from opportunity_radar.exceptions import ConnectorParseError
from opportunity_radar.models import Profile

from .base import RawListing
from .utils import http_get_json, matches_queries, parse_date_iso, strip_html

logger = logging.getLogger(__name__)


class RemotiveConnector:
    """Connector for the Remotive.com remote jobs API.

    API docs: https://remotive.com/api/remote-jobs
    No authentication required. Jobs are delayed by 24 hours.
    """

    name = "remotive"
    API_URL = "https://remotive.com/api/remote-jobs"

    def __init__(self, limit: int = 50, max_queries: int = 3):
        """
        Initialize Remotive connector.

        Args:
            limit: Maximum number of jobs to fetch per request
            max_queries: Maximum number of profile queries sent per fetch
        """
        self.limit = limit
        self.max_queries = max_queries

    async def fetch(self, profile: Profile, budget: float) -> list[RawListing]:
        """Fetch listings for the profile's top queries.

        One request per query; results are de-duplicated by Remotive id and
        filtered against every query term.
        """
        queries = profile.search_queries()[: self.max_queries] or ["intern"]
        query_terms = [q.lower() for q in queries]
        listings: list[RawListing] = []
        seen_ids: set = set()

        timeout = aiohttp.ClientTimeout(total=budget)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            for query in queries:
                data = await http_get_json(
                    session,
                    self.API_URL,
                    source=self.name,
                    params={"search": query, "limit": self.limit},
                    headers={"User-Agent": "OpportunityRadar/1.0"},
                )
                for listing in self._parse_response(data):
                    remotive_id = listing.extra_data.get("remotive_id")
                    if remotive_id is not None:
                        if remotive_id in seen_ids:
                            continue
                        seen_ids.add(remotive_id)
                    if matches_queries(
                        [listing.title, listing.description or "", " ".join(listing.tags)],
                        query_terms,
                    ):
                        listings.append(listing)

        logger.info("Remotive returned %d listings for %d queries", len(listings), len(queries))
        return listings

    def _parse_response(self, data) -> list[RawListing]:
        # API returns {"0-legal-notice": "...", "job-count": N, "jobs": [...]}
        if not isinstance(data, dict) or not isinstance(data.get("jobs"), list):
            raise ConnectorParseError(self.name, "response has no 'jobs' list")
        parsed = []
        for item in data["jobs"]:
            listing = self._parse_job(item)
            if listing:
                parsed.append(listing)
        return parsed

    def _parse_job(self, data: dict) -> Optional[RawListing]:
        """Parse a Remotive job into a RawListing, or None if incomplete."""
        if not isinstance(data, dict):
            return None
        title = data.get("title") or ""
        company = data.get("company_name") or ""
        if not title or not company:
            return None

        tags = list(data.get("tags") or [])
        if data.get("category"):
            tags.append(data["category"])

        job_type = (data.get("job_type") or "").lower()
        return RawListing(
            title=title,
            company=company,
            url=data.get("url") or "",
            source=self.name,
            type="internship" if job_type == "internship" else "job",
            tags=tags,
            location=data.get("candidate_required_location") or "Remote",
            description=strip_html(data.get("description")),
            posted_at=parse_date_iso(data.get("publication_date")),
            extra_data={"remotive_id": data.get("id")},
        )
