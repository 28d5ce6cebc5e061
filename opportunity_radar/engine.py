"""Opportunity discovery engine: the entry point consumed by the UI layer."""
import asyncio
import logging
from dataclasses import replace
from typing import Optional

from opportunity_radar.catalog import CatalogSource, read_catalog
from opportunity_radar.connectors import Connector, default_connectors
from opportunity_radar.crawl.orchestrator import CrawlOrchestrator
from opportunity_radar.dedup.deduplicator import Deduplicator
from opportunity_radar.exceptions import SessionEndedError
from opportunity_radar.feedback import FeedbackCollector
from opportunity_radar.matching.ai_scorer import AIScorer
from opportunity_radar.matching.rule_scorer import ScoringWeights
from opportunity_radar.matching.scorer import OpportunityScorer
from opportunity_radar.models import (
    CrawlMeta,
    CrawlStatus,
    DiscoveryResult,
    FeedbackAction,
    MatchMethod,
    Profile,
    Trigger,
    utcnow,
)
from opportunity_radar.session import DiscoverySession, SessionRegistry
from opportunity_radar.settings import Settings

logger = logging.getLogger(__name__)


class DiscoveryEngine:
    """Crawl, merge, score and rank opportunities for one profile at a time.

    Pipeline per run: curated catalog read -> crawl fan-out -> dedup merge
    -> scoring -> ranking. Runs are coordinated per ``DiscoverySession``:
    automatic triggers are throttled and coalesced onto the crawl in flight,
    manual refreshes cancel it and start over.
    """

    def __init__(
        self,
        orchestrator: CrawlOrchestrator,
        scorer: OpportunityScorer,
        feedback: FeedbackCollector,
        sessions: Optional[SessionRegistry] = None,
    ):
        self.orchestrator = orchestrator
        self.scorer = scorer
        self.feedback = feedback
        self.sessions = sessions or SessionRegistry()

    async def discover(
        self,
        profile: Profile,
        session: DiscoverySession,
        catalog: CatalogSource,
        trigger: Trigger = Trigger.AUTO,
    ) -> DiscoveryResult:
        """
        Return ranked opportunities and the CrawlMeta describing how they were found.

        Args:
            profile: Requester profile (read only)
            session: Session context holding throttle and in-flight state
            catalog: Curated entries, or a callable returning them
            trigger: AUTO (throttled, coalesced) or MANUAL (always runs, supersedes)

        Raises:
            CatalogUnavailableError: only when the curated catalog cannot be read
            SessionEndedError: when ``session`` has been closed
        """
        if session.closed:
            raise SessionEndedError(session.email)

        if trigger is Trigger.MANUAL:
            logger.info("Manual refresh for %s", session.email)
            task = self._start_run(profile, session, catalog)
            return await self._await_run(session, task)

        if session.running:
            logger.info("Automatic trigger for %s coalesced onto crawl in flight", session.email)
            return self._as_coalesced(await self._await_run(session, session.current_task))

        if not session.throttle.try_admit_auto():
            logger.info(
                "Automatic trigger for %s throttled (%.0fms left)",
                session.email, session.throttle.remaining_ms(),
            )
            if session.last_result is not None:
                return self._as_coalesced(session.last_result)
            return await self._curated_only(profile, catalog)

        logger.info("Automatic discovery for %s admitted", session.email)
        task = self._start_run(profile, session, catalog)
        return await self._await_run(session, task)

    def record_feedback(self, email: str, opportunity_id: str, action: FeedbackAction | str) -> None:
        """Queue an interaction signal for best-effort delivery and return immediately."""
        self.feedback.record(email, opportunity_id, action)

    async def aclose(self) -> None:
        await self.sessions.end_all()
        await self.feedback.aclose()

    def _start_run(self, profile: Profile, session: DiscoverySession, catalog: CatalogSource) -> asyncio.Task:
        task = asyncio.create_task(self._run(profile, catalog), name=f"discover:{session.email}")
        previous = session.begin(task)
        if previous is not None and not previous.done():
            logger.info("Superseding crawl in flight for %s", session.email)
            previous.cancel()
        return task

    async def _await_run(self, session: DiscoverySession, task: asyncio.Task) -> DiscoveryResult:
        """Wait for ``task``; if it is superseded, follow its replacement."""
        while True:
            try:
                return await asyncio.shield(task)
            except asyncio.CancelledError:
                replacement = session.current_task
                if task.cancelled() and replacement is not None and replacement is not task:
                    task = replacement
                    continue
                raise

    async def _run(self, profile: Profile, catalog: CatalogSource) -> DiscoveryResult:
        curated = read_catalog(catalog, utcnow())
        outcome = await self.orchestrator.crawl(profile)

        merged = Deduplicator().merge(curated, outcome.batches, utcnow())
        ranked = await self.scorer.score(profile, merged)

        meta = outcome.meta
        meta.ai_boosted_count = sum(1 for o in ranked if o.match_method is MatchMethod.AI_BOOSTED)
        if meta.status is CrawlStatus.FAILURE:
            logger.warning("All sources failed; returning %d curated opportunities", len(ranked))
        return DiscoveryResult(opportunities=ranked, meta=meta)

    async def _curated_only(self, profile: Profile, catalog: CatalogSource) -> DiscoveryResult:
        """Result for a throttled trigger with nothing cached: curated entries, no crawl."""
        started_at = utcnow()
        curated = read_catalog(catalog, started_at)
        merged = Deduplicator().merge(curated, [], started_at)
        ranked = await self.scorer.score(profile, merged)
        meta = CrawlMeta(started_at=started_at, status=CrawlStatus.SUCCESS, coalesced=True)
        return DiscoveryResult(opportunities=ranked, meta=meta)

    @staticmethod
    def _as_coalesced(result: DiscoveryResult) -> DiscoveryResult:
        return DiscoveryResult(
            opportunities=[replace(o, tags=set(o.tags)) for o in result.opportunities],
            meta=replace(result.meta, errors=list(result.meta.errors), coalesced=True),
        )


def build_engine(
    settings: Settings,
    connectors: Optional[list[Connector]] = None,
) -> DiscoveryEngine:
    """Assemble an engine from settings, using the default connectors unless given."""
    if connectors is None:
        connectors = default_connectors(settings.greenhouse_boards)

    orchestrator = CrawlOrchestrator(
        connectors,
        max_parallel=settings.max_parallel_connectors,
        connector_timeout=settings.connector_timeout_seconds,
        crawl_deadline=settings.crawl_deadline_seconds,
    )

    booster = None
    if settings.ai_scoring_url:
        booster = AIScorer(
            url=settings.ai_scoring_url,
            api_key=settings.ai_scoring_api_key,
            timeout=settings.ai_scoring_timeout_seconds,
            batch_size=settings.ai_scoring_batch_size,
            max_failures=settings.ai_scoring_max_failures,
            cooldown_seconds=settings.ai_scoring_cooldown_seconds,
        )
    else:
        logger.info("AI scoring URL not configured, using rule-based scoring only")

    weights = ScoringWeights(
        skill_overlap=settings.rule_weight_skill_overlap,
        interest_overlap=settings.rule_weight_interest_overlap,
        role_match=settings.rule_weight_role_match,
        tag_coverage=settings.rule_weight_tag_coverage,
    )
    scorer = OpportunityScorer(booster=booster, curated_floor=settings.curated_score_floor, weights=weights)
    feedback = FeedbackCollector(
        url=settings.feedback_url,
        queue_size=settings.feedback_queue_size,
        timeout=settings.feedback_timeout_seconds,
    )
    sessions = SessionRegistry(auto_min_interval_ms=settings.auto_crawl_min_interval_ms)
    logger.info("Engine ready with connectors: %s", ", ".join(c.name for c in connectors))
    return DiscoveryEngine(orchestrator, scorer, feedback, sessions)
