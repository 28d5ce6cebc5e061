"""Greenhouse job board connector."""
import asyncio
import logging
from typing import Optional

import aiohttp

from opportunity_radar.exceptions import ConnectorError, ConnectorParseError
from opportunity_radar.models import Profile

from .base import RawListing
from .utils import http_get_json, matches_queries, parse_date_iso

logger = logging.getLogger(__name__)


class GreenhouseConnector:
    """Connector for public Greenhouse job boards.

    Boards are fetched concurrently. A board that fails is skipped as long
    as at least one board answers; if every board fails, the first error
    is raised.
    """

    name = "greenhouse"
    BOARD_URL = "https://boards-api.greenhouse.io/v1/boards/{board}/jobs"
    EARLY_CAREER_TERMS = ("intern", "new grad", "graduate", "apprentice", "co-op", "entry")

    def __init__(self, boards: list[str]):
        """
        Initialize Greenhouse connector.

        Args:
            boards: Greenhouse board slugs (e.g. "stripe")
        """
        self.boards = list(boards)

    async def fetch(self, profile: Profile, budget: float) -> list[RawListing]:
        if not self.boards:
            return []

        query_terms = [q.lower() for q in profile.search_queries()]
        timeout = aiohttp.ClientTimeout(total=budget)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            results = await asyncio.gather(
                *(self._fetch_board(session, board) for board in self.boards),
                return_exceptions=True,
            )

        listings: list[RawListing] = []
        errors: list[ConnectorError] = []
        for board, result in zip(self.boards, results):
            if isinstance(result, ConnectorError):
                logger.warning("Greenhouse board %s failed: %s", board, result)
                errors.append(result)
                continue
            if isinstance(result, BaseException):
                raise result
            for listing in result:
                if self._is_early_career(listing.title) and matches_queries(
                    [listing.title, " ".join(listing.tags)], query_terms
                ):
                    listings.append(listing)

        if errors and len(errors) == len(self.boards):
            raise errors[0]

        logger.info("Greenhouse returned %d listings from %d boards", len(listings), len(self.boards))
        return listings

    async def _fetch_board(self, session: aiohttp.ClientSession, board: str) -> list[RawListing]:
        data = await http_get_json(session, self.BOARD_URL.format(board=board), source=self.name)
        if not isinstance(data, dict) or not isinstance(data.get("jobs"), list):
            raise ConnectorParseError(self.name, f"board {board} has no 'jobs' list")
        return [job for job in (self._parse_job(item, board) for item in data["jobs"]) if job]

    def _is_early_career(self, title: str) -> bool:
        title_lower = title.lower()
        return any(term in title_lower for term in self.EARLY_CAREER_TERMS)

    def _parse_job(self, data: dict, board: str) -> Optional[RawListing]:
        """Parse Greenhouse job data to RawListing."""
        if not isinstance(data, dict) or not data.get("title"):
            return None

        location = (data.get("location") or {}).get("name")
        departments = [d.get("name") for d in data.get("departments") or [] if d.get("name")]
        title = data["title"]

        return RawListing(
            title=title,
            company=board.replace("-", " ").title(),
            url=data.get("absolute_url") or "",
            source=self.name,
            type="internship" if "intern" in title.lower() else "job",
            tags=departments,
            location=location,
            posted_at=parse_date_iso(data.get("updated_at")),
            extra_data={"job_id": str(data.get("id", "")), "board": board},
        )
