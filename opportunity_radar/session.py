"""Per-session discovery context.

A ``DiscoverySession`` is created when a requester's session starts and
ended when it ends. It carries the only state the engine keeps between
calls: the automatic-trigger throttle, the crawl in flight and the last
completed result. Ending the session cancels any crawl and clears it all.
"""
import asyncio
import logging
from typing import Optional

from opportunity_radar.exceptions import SessionEndedError
from opportunity_radar.models import CrawlState, CrawlStatus, DiscoveryResult
from opportunity_radar.throttle import ThrottleController

logger = logging.getLogger(__name__)


class DiscoverySession:
    """Discovery state scoped to one authenticated session."""

    def __init__(self, email: str, throttle: Optional[ThrottleController] = None):
        self.email = email
        self.throttle = throttle or ThrottleController()
        self.state = CrawlState.IDLE
        self.last_result: Optional[DiscoveryResult] = None
        self._current: Optional[asyncio.Task] = None
        self._closed = False

    def __repr__(self) -> str:
        return f"<DiscoverySession {self.email} state={self.state.value}>"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def current_task(self) -> Optional[asyncio.Task]:
        return self._current

    @property
    def running(self) -> bool:
        return self._current is not None and not self._current.done()

    def begin(self, task: asyncio.Task) -> Optional[asyncio.Task]:
        """Make ``task`` the crawl in flight and return the one it replaces."""
        if self._closed:
            raise SessionEndedError(self.email)
        previous = self._current
        self._current = task
        self.state = CrawlState.RUNNING
        task.add_done_callback(self._on_done)
        return previous

    def _on_done(self, task: asyncio.Task) -> None:
        if task is not self._current or task.cancelled():
            return
        if task.exception() is not None:
            self.state = CrawlState.FAILED
            return
        self.last_result = task.result()
        if self.last_result.meta.status is CrawlStatus.FAILURE:
            self.state = CrawlState.FAILED
        else:
            self.state = CrawlState.COMPLETED

    async def close(self) -> None:
        """End the session: cancel the crawl in flight and clear all state."""
        self._closed = True
        task, self._current = self._current, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self.throttle.reset()
        self.last_result = None
        self.state = CrawlState.IDLE
        logger.debug("Session for %s ended", self.email)

    async def __aenter__(self) -> "DiscoverySession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class SessionRegistry:
    """Sessions keyed by authenticated email."""

    def __init__(self, auto_min_interval_ms: int = 60_000):
        self.auto_min_interval_ms = auto_min_interval_ms
        self._sessions: dict[str, DiscoverySession] = {}

    def open(self, email: str) -> DiscoverySession:
        """Return the live session for ``email``, starting one if needed."""
        key = email.strip().lower()
        session = self._sessions.get(key)
        if session is None or session.closed:
            session = DiscoverySession(
                email=key,
                throttle=ThrottleController(min_interval_ms=self.auto_min_interval_ms),
            )
            self._sessions[key] = session
            logger.debug("Session for %s started", key)
        return session

    def get(self, email: str) -> Optional[DiscoverySession]:
        return self._sessions.get(email.strip().lower())

    async def end(self, email: str) -> None:
        session = self._sessions.pop(email.strip().lower(), None)
        if session is not None:
            await session.close()

    async def end_all(self) -> None:
        for email in list(self._sessions):
            await self.end(email)
