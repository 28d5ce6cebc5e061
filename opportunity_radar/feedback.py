"""Fire-and-forget delivery of interaction feedback events."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import aiohttp

from opportunity_radar.exceptions import FeedbackDeliveryFailure
from opportunity_radar.models import FeedbackAction, FeedbackEvent

logger = logging.getLogger(__name__)


@dataclass
class FeedbackStats:
    delivered: int = 0
    failed: int = 0
    dropped: int = 0


class FeedbackCollector:
    """Queue feedback events and POST them from a background worker.

    ``record`` never awaits and never raises for delivery problems: events
    that do not fit in the bounded queue are dropped, and events that fail
    to deliver are logged and forgotten (at-most-once).
    """

    def __init__(
        self,
        url: str,
        queue_size: int = 256,
        timeout: float = 5.0,
    ):
        """
        Initialize the collector.

        Args:
            url: Endpoint receiving events as JSON
            queue_size: Maximum events waiting for delivery
            timeout: Per-request timeout in seconds
        """
        self.url = url
        self.queue_size = queue_size
        self.timeout = timeout
        self.stats = FeedbackStats()
        self._queue: Optional[asyncio.Queue] = None
        self._worker: Optional[asyncio.Task] = None
        self._http: Optional[aiohttp.ClientSession] = None
        self._closing = False

    def start(self) -> None:
        """Start the background worker on the running event loop."""
        if self._worker is not None and not self._worker.done():
            return
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._closing = False
        self._worker = loop.create_task(self._run(), name="feedback-worker")

    def record(self, email: str, opportunity_id: str, action: FeedbackAction | str) -> None:
        """Queue one event and return immediately.

        Raises:
            ValueError: if ``action`` is not a known FeedbackAction
        """
        action = FeedbackAction(action)
        event = FeedbackEvent(email=email, opportunity_id=opportunity_id, action=action)

        if self._closing:
            self._drop(event, "collector is closing")
            return
        if self._worker is None or self._worker.done():
            try:
                self.start()
            except RuntimeError:
                self._drop(event, "no running event loop")
                return

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._drop(event, "queue full")

    def _drop(self, event: FeedbackEvent, reason: str) -> None:
        self.stats.dropped += 1
        logger.warning(
            "Dropped %s feedback for %s: %s", event.action.value, event.opportunity_id, reason,
        )

    async def _run(self) -> None:
        self._http = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout))
        try:
            while True:
                event = await self._queue.get()
                try:
                    await self._deliver(event)
                    self.stats.delivered += 1
                except FeedbackDeliveryFailure as e:
                    self.stats.failed += 1
                    logger.warning("%s", e)
                except Exception:
                    self.stats.failed += 1
                    logger.exception("Unexpected error delivering feedback for %s", event.opportunity_id)
                finally:
                    self._queue.task_done()
        finally:
            await self._http.close()
            self._http = None

    async def _deliver(self, event: FeedbackEvent) -> None:
        try:
            async with self._http.post(self.url, json=event.to_payload()) as resp:
                if resp.status >= 300:
                    raise FeedbackDeliveryFailure(event.opportunity_id, f"HTTP {resp.status}")
        except asyncio.TimeoutError as e:
            raise FeedbackDeliveryFailure(event.opportunity_id, f"timed out after {self.timeout}s") from e
        except (aiohttp.ClientError, OSError) as e:
            raise FeedbackDeliveryFailure(event.opportunity_id, str(e) or type(e).__name__) from e
        logger.debug("Delivered %s feedback for %s", event.action.value, event.opportunity_id)

    async def aclose(self, timeout: float = 5.0) -> None:
        """Stop accepting events, deliver what is queued within ``timeout``, then stop."""
        self._closing = True
        worker = self._worker
        if worker is None:
            return
        if not worker.done():
            try:
                await asyncio.wait_for(self._queue.join(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("Feedback queue not drained; %d event(s) discarded", self._queue.qsize())
            worker.cancel()
            await asyncio.gather(worker, return_exceptions=True)
        self._worker = None
