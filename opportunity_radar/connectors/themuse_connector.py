"""The Muse job board connector."""
import logging
from typing import Optional

import aiohttp

from opportunity_radar.exceptions import ConnectorParseError
from opportunity_radar.models import Profile

from .base import RawListing
from .utils import http_get_json, matches_queries, parse_date_iso, strip_html

logger = logging.getLogger(__name__)


class TheMuseConnector:
    """Connector for The Muse public jobs API, restricted to early-career levels."""

    name = "themuse"
    API_URL = "https://www.themuse.com/api/public/jobs"
    LEVELS = ("Internship", "Entry Level")

    def __init__(self, max_pages: int = 2):
        """
        Initialize The Muse connector.

        Args:
            max_pages: Maximum pages to fetch (20 results/page).
        """
        self.max_pages = max_pages

    async def fetch(self, profile: Profile, budget: float) -> list[RawListing]:
        query_terms = [q.lower() for q in profile.search_queries()]
        listings: list[RawListing] = []
        seen_urls: set[str] = set()

        timeout = aiohttp.ClientTimeout(total=budget)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            for page in range(self.max_pages):
                params = [("page", page)] + [("level", level) for level in self.LEVELS]
                data = await http_get_json(session, self.API_URL, source=self.name, params=params)
                if not isinstance(data, dict):
                    raise ConnectorParseError(self.name, "response is not an object")

                results = data.get("results") or []
                for item in results:
                    listing = self._parse_job(item)
                    if listing is None:
                        continue
                    if listing.url:
                        if listing.url in seen_urls:
                            continue
                        seen_urls.add(listing.url)
                    if matches_queries(
                        [listing.title, listing.description or "", " ".join(listing.tags)], query_terms
                    ):
                        listings.append(listing)

                # Stop if we've reached the last page
                if not results or page + 1 >= data.get("page_count", 0):
                    break

        logger.info("The Muse returned %d listings", len(listings))
        return listings

    def _parse_job(self, data: dict) -> Optional[RawListing]:
        """Parse a Muse job result into a RawListing."""
        if not isinstance(data, dict):
            return None
        title = data.get("name") or ""
        company = (data.get("company") or {}).get("name") or ""
        if not title or not company:
            return None

        refs = data.get("refs") or {}
        locations = [loc.get("name") for loc in data.get("locations") or [] if loc.get("name")]
        levels = [lvl.get("name") for lvl in data.get("levels") or [] if lvl.get("name")]
        categories = [c.get("name") for c in data.get("categories") or [] if c.get("name")]

        return RawListing(
            title=title,
            company=company,
            url=refs.get("landing_page") or "",
            source=self.name,
            type="internship" if "Internship" in levels else "job",
            tags=categories,
            location="; ".join(locations) if locations else None,
            description=strip_html(data.get("contents")),
            posted_at=parse_date_iso(data.get("publication_date")),
            extra_data={"levels": levels},
        )
