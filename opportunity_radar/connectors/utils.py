"""Shared utilities for source connectors."""
import asyncio
import logging
import random
from datetime import datetime
from typing import Optional

import aiohttp
from bs4 import BeautifulSoup

from opportunity_radar.exceptions import (
    ConnectorParseError,
    ConnectorRateLimited,
    ConnectorTimeout,
    ConnectorUnreachable,
)

logger = logging.getLogger(__name__)


async def http_get_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    source: str,
    retries: int = 2,
    **kwargs,
) -> dict | list:
    """GET request returning parsed JSON, raising typed connector errors.

    Retries 5xx responses and connection errors with exponential backoff
    + jitter. A 429 is not retried: connector budgets are too short to
    wait out a rate limit.

    Raises:
        ConnectorRateLimited: on HTTP 429
        ConnectorUnreachable: on other non-200 statuses or exhausted retries
        ConnectorTimeout: when the request times out on every attempt
        ConnectorParseError: when the body is not valid JSON
    """
    last_error: Exception | None = None
    for attempt in range(retries):
        try:
            async with session.get(url, **kwargs) as resp:
                if resp.status == 429:
                    raise ConnectorRateLimited(source, f"HTTP 429 from {url}")
                if resp.status >= 500:
                    last_error = ConnectorUnreachable(source, f"HTTP {resp.status} from {url}")
                elif resp.status != 200:
                    raise ConnectorUnreachable(source, f"HTTP {resp.status} from {url}")
                else:
                    try:
                        return await resp.json(content_type=None)
                    except ValueError as e:
                        raise ConnectorParseError(source, f"invalid JSON from {url}: {e}") from e
        except asyncio.TimeoutError:
            last_error = ConnectorTimeout(source, f"request to {url} timed out")
        except aiohttp.ClientError as e:
            last_error = ConnectorUnreachable(source, f"request to {url} failed: {e}")

        if attempt < retries - 1:
            wait = (2 ** attempt) * 0.5 + random.uniform(0, 0.5)
            logger.warning(
                "Request to %s failed: %s, retrying in %.1fs (attempt %d/%d)",
                url, last_error, wait, attempt + 1, retries,
            )
            await asyncio.sleep(wait)

    logger.error("All %d attempts failed for %s: %s", retries, url, last_error)
    if last_error is None:
        last_error = ConnectorUnreachable(source, f"no response from {url}")
    raise last_error


def strip_html(text: Optional[str]) -> Optional[str]:
    """Return the visible text of an HTML fragment."""
    if not text:
        return text
    if "<" not in text:
        return text.strip()
    soup = BeautifulSoup(text, "html.parser")
    return soup.get_text(separator=" ", strip=True)


def parse_date_iso(date_string) -> Optional[datetime]:
    """
    Parse ISO format date string to datetime.

    Handles common variations like trailing 'Z' or timezone offsets.
    """
    if not date_string:
        return None
    try:
        if isinstance(date_string, str):
            return datetime.fromisoformat(date_string.replace("Z", "+00:00"))
        if isinstance(date_string, datetime):
            return date_string
    except (ValueError, TypeError):
        pass
    return None


def matches_queries(
    job_fields: list[str],
    query_terms: list[str],
) -> bool:
    """
    Check if listing fields match any of the search query terms.

    Args:
        job_fields: Field values to search (title, company, tags...)
        query_terms: Lowercase search terms

    Returns:
        True if any query term is found in any field, or no terms were given
    """
    if not query_terms:
        return True
    searchable = " ".join(str(f) for f in job_fields if f).lower()
    return any(term in searchable for term in query_terms)
