"""Concurrent fan-out to all registered connectors."""
import asyncio
import logging
import time
from dataclasses import dataclass, field

import aiohttp

from opportunity_radar.connectors.base import Connector, RawListing
from opportunity_radar.exceptions import ConnectorError, ConnectorParseError
from opportunity_radar.models import CrawlError, CrawlMeta, CrawlStatus, ErrorKind, Profile, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ConnectorBatch:
    """Listings returned by one connector that succeeded."""

    source: str
    listings: list[RawListing] = field(default_factory=list)


@dataclass
class CrawlOutcome:
    """Successful batches in registration order, plus run diagnostics."""

    batches: list[ConnectorBatch]
    meta: CrawlMeta


def classify_error(source: str, exc: BaseException) -> CrawlError:
    """Map a connector exception onto a CrawlError."""
    if isinstance(exc, ConnectorError):
        return CrawlError(source=source, kind=ErrorKind(exc.kind), message=exc.message)
    if isinstance(exc, asyncio.TimeoutError):
        return CrawlError(source=source, kind=ErrorKind.TIMEOUT, message="connector timed out")
    if isinstance(exc, (aiohttp.ClientError, OSError)):
        return CrawlError(source=source, kind=ErrorKind.UNREACHABLE, message=str(exc) or type(exc).__name__)
    if isinstance(exc, (ValueError, KeyError, TypeError)):
        return CrawlError(source=source, kind=ErrorKind.PARSE_ERROR, message=str(exc) or type(exc).__name__)
    return CrawlError(source=source, kind=ErrorKind.UNREACHABLE, message=f"{type(exc).__name__}: {exc}")


def crawl_status(succeeded: int, failed: int) -> CrawlStatus:
    if failed == 0:
        return CrawlStatus.SUCCESS
    if succeeded == 0:
        return CrawlStatus.FAILURE
    return CrawlStatus.PARTIAL_SUCCESS


class CrawlOrchestrator:
    """Run every connector concurrently under a parallelism bound and deadlines."""

    def __init__(
        self,
        connectors: list[Connector],
        max_parallel: int = 4,
        connector_timeout: float = 10.0,
        crawl_deadline: float = 25.0,
    ):
        """
        Initialize the orchestrator.

        Args:
            connectors: Registered connectors; their order decides dedup priority
            max_parallel: Maximum connectors fetching at once
            connector_timeout: Budget in seconds for each connector call
            crawl_deadline: Overall deadline in seconds for the whole run
        """
        names = [c.name for c in connectors]
        if len(set(names)) != len(names):
            raise ValueError(f"Connector names must be unique: {names}")
        self.connectors = list(connectors)
        self.max_parallel = max_parallel
        self.connector_timeout = connector_timeout
        self.crawl_deadline = crawl_deadline

    async def crawl(self, profile: Profile) -> CrawlOutcome:
        """Fetch from all connectors and wait until every task has settled.

        Connector failures are recorded, never raised. If this coroutine is
        cancelled, all connector tasks are cancelled and their results dropped.
        """
        started_at = utcnow()
        t0 = time.monotonic()
        semaphore = asyncio.Semaphore(self.max_parallel)

        tasks = [
            asyncio.create_task(self._run_connector(connector, profile, semaphore), name=f"connector:{connector.name}")
            for connector in self.connectors
        ]

        try:
            if tasks:
                _, pending = await asyncio.wait(tasks, timeout=self.crawl_deadline)
                if pending:
                    logger.warning(
                        "Crawl deadline of %.1fs reached with %d connector(s) still running",
                        self.crawl_deadline, len(pending),
                    )
                    for task in pending:
                        task.cancel()
                    await asyncio.gather(*pending, return_exceptions=True)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Crawl cancelled; discarded results from %d connector(s)", len(tasks))
            raise

        batches: list[ConnectorBatch] = []
        errors: list[CrawlError] = []
        for connector, task in zip(self.connectors, tasks):
            if task.cancelled():
                errors.append(
                    CrawlError(source=connector.name, kind=ErrorKind.TIMEOUT, message="crawl deadline exceeded")
                )
                continue
            exc = task.exception()
            if exc is not None:
                errors.append(classify_error(connector.name, exc))
                continue
            batches.append(ConnectorBatch(source=connector.name, listings=task.result()))

        for error in errors:
            logger.warning("Connector %s failed (%s): %s", error.source, error.kind.value, error.message)

        meta = CrawlMeta(
            started_at=started_at,
            duration_ms=int((time.monotonic() - t0) * 1000),
            sources_attempted=len(self.connectors),
            sources_succeeded=len(batches),
            sources_failed=len(errors),
            errors=errors,
            status=crawl_status(len(batches), len(errors)),
        )
        logger.info(
            "Crawl finished in %dms: %d/%d sources succeeded (%s)",
            meta.duration_ms, meta.sources_succeeded, meta.sources_attempted, meta.status.value,
        )
        return CrawlOutcome(batches=batches, meta=meta)

    async def _run_connector(
        self,
        connector: Connector,
        profile: Profile,
        semaphore: asyncio.Semaphore,
    ) -> list[RawListing]:
        async with semaphore:
            logger.debug("Fetching from %s...", connector.name)
            listings = await asyncio.wait_for(
                connector.fetch(profile, self.connector_timeout),
                timeout=self.connector_timeout,
            )
        if listings is None:
            return []
        listings = list(listings)
        for item in listings:
            if not isinstance(item, RawListing):
                raise ConnectorParseError(
                    connector.name, f"returned {type(item).__name__} instead of RawListing"
                )
        logger.info("  Found %d listings from %s", len(listings), connector.name)
        return listings
