"""Client for the optional remote AI re-scoring service.

Request (POST, JSON)::

    {"profile": {"role": ..., "department": ..., "skills": [...], "interests": [...]},
     "opportunities": [{"id": ..., "title": ..., "company": ..., "type": ..., "tags": [...]}]}

Response::

    {"scores": [{"id": "...", "score": 0-100}, ...]}

Any failure degrades to "no scores"; this client never raises to its caller.
"""
import asyncio
import logging
import math
import time
from collections.abc import Callable
from typing import Optional

import aiohttp

from opportunity_radar.exceptions import ScoringServiceUnavailable
from opportunity_radar.models import Opportunity, Profile

logger = logging.getLogger(__name__)


class AIScorer:
    """Remote scorer with its own timeout and a consecutive-failure budget.

    After ``max_failures`` consecutive failed calls the scorer stops
    calling the service until ``cooldown_seconds`` have passed.
    """

    def __init__(
        self,
        url: Optional[str],
        api_key: Optional[str] = None,
        timeout: float = 8.0,
        batch_size: int = 50,
        max_failures: int = 3,
        cooldown_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.batch_size = batch_size
        self.max_failures = max_failures
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._consecutive_failures = 0
        self._open_until: Optional[float] = None

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    @property
    def available(self) -> bool:
        """False while the failure budget is exhausted and the cooldown runs."""
        if not self.enabled:
            return False
        if self._open_until is None:
            return True
        if self._clock() >= self._open_until:
            self._open_until = None
            self._consecutive_failures = 0
            logger.info("AI scorer cooldown over, resuming remote scoring")
            return True
        return False

    async def score(self, profile: Profile, opportunities: list[Opportunity]) -> dict[str, float]:
        """Return remote scores keyed by opportunity id.

        Ids missing from the result keep their rule score. Returns an empty
        dict when the scorer is disabled, backing off, or failing.
        """
        if not opportunities or not self.available:
            return {}

        scores: dict[str, float] = {}
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=headers,
            ) as session:
                for start in range(0, len(opportunities), self.batch_size):
                    if not self.available:
                        break
                    batch = opportunities[start : start + self.batch_size]
                    scores.update(await self._score_batch(session, profile, batch))
        except aiohttp.ClientError as e:
            self._record_failure(ScoringServiceUnavailable(str(e)))

        return scores

    async def _score_batch(
        self,
        session: aiohttp.ClientSession,
        profile: Profile,
        batch: list[Opportunity],
    ) -> dict[str, float]:
        payload = {
            "profile": {
                "role": profile.role,
                "department": profile.department,
                "skills": list(profile.skills),
                "interests": list(profile.interests),
            },
            "opportunities": [
                {
                    "id": o.id,
                    "title": o.title,
                    "company": o.company,
                    "type": o.type,
                    "tags": sorted(o.tags),
                }
                for o in batch
            ],
        }

        try:
            async with session.post(self.url, json=payload) as resp:
                if resp.status != 200:
                    raise ScoringServiceUnavailable(f"HTTP {resp.status}")
                try:
                    data = await resp.json(content_type=None)
                except ValueError as e:
                    raise ScoringServiceUnavailable(f"invalid JSON: {e}") from e
            scores = self._parse_scores(data, {o.id for o in batch})
        except ScoringServiceUnavailable as e:
            self._record_failure(e)
            return {}
        except asyncio.TimeoutError:
            self._record_failure(ScoringServiceUnavailable(f"timed out after {self.timeout}s"))
            return {}
        except aiohttp.ClientError as e:
            self._record_failure(ScoringServiceUnavailable(str(e) or type(e).__name__))
            return {}

        self._consecutive_failures = 0
        logger.debug("AI scorer returned %d/%d scores", len(scores), len(batch))
        return scores

    def _parse_scores(self, data, requested_ids: set[str]) -> dict[str, float]:
        if not isinstance(data, dict) or not isinstance(data.get("scores"), list):
            raise ScoringServiceUnavailable("response has no 'scores' list")

        scores: dict[str, float] = {}
        for item in data["scores"]:
            if not isinstance(item, dict):
                continue
            opp_id = item.get("id")
            value = item.get("score")
            if not isinstance(opp_id, str) or opp_id not in requested_ids or isinstance(value, bool):
                continue
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                logger.debug("Ignoring malformed AI score for %s: %r", opp_id, value)
                continue
            scores[opp_id] = round(min(100.0, max(0.0, float(value))), 2)
        return scores

    def _record_failure(self, error: ScoringServiceUnavailable) -> None:
        self._consecutive_failures += 1
        logger.warning(
            "%s; keeping rule scores (failure %d/%d)",
            error, self._consecutive_failures, self.max_failures,
        )
        if self._consecutive_failures >= self.max_failures:
            self._open_until = self._clock() + self.cooldown_seconds
            logger.warning("AI scorer disabled for %.0fs after repeated failures", self.cooldown_seconds)
