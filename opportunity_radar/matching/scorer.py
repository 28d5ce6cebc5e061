"""Opportunity scoring and ranking."""
import logging
from typing import Optional

from opportunity_radar.matching.rule_scorer import RuleScorer, ScoringWeights
from opportunity_radar.matching.scorer_protocol import BoostScorer
from opportunity_radar.models import MatchMethod, Opportunity, Profile

logger = logging.getLogger(__name__)


def rank_key(opportunity: Opportunity) -> tuple:
    """Sort key: score descending, newer first, then title A-Z ignoring case."""
    return (
        -opportunity.match_score,
        -opportunity.discovered_at.timestamp(),
        opportunity.title.casefold(),
    )


def rank(opportunities: list[Opportunity]) -> list[Opportunity]:
    return sorted(opportunities, key=rank_key)


class OpportunityScorer:
    """Two-tier scorer: rule score for everything, optional AI boost for crawled entries."""

    def __init__(
        self,
        booster: Optional[BoostScorer] = None,
        curated_floor: float = 40.0,
        weights: ScoringWeights | None = None,
    ):
        """
        Initialize the scorer.

        Args:
            booster: Remote re-scorer; None disables the boost tier
            curated_floor: Minimum score assigned to curated entries
            weights: Rule score weights
        """
        self.booster = booster
        self.curated_floor = curated_floor
        self.weights = weights or ScoringWeights()

    async def score(self, profile: Profile, opportunities: list[Opportunity]) -> list[Opportunity]:
        """
        Score opportunities in place and return them ranked.

        Curated entries are never dropped: they get ``max(rule, floor)`` and
        ``MatchMethod.CURATED``. Crawled entries get the rule score, then the
        boost replaces it wherever the booster returned a valid score.

        Args:
            profile: Requester profile
            opportunities: Merged, de-duplicated opportunities

        Returns:
            The same opportunities sorted by rank_key
        """
        rules = RuleScorer(profile, self.weights)

        crawled: list[Opportunity] = []
        for opp in opportunities:
            rule_score = rules.score(opp)
            if opp.is_curated:
                opp.match_score = max(rule_score, self.curated_floor)
                opp.match_method = MatchMethod.CURATED
            else:
                opp.match_score = rule_score
                opp.match_method = MatchMethod.RULE
                crawled.append(opp)

        boosted = await self._boost(profile, crawled)
        for opp in crawled:
            if opp.id in boosted:
                opp.match_score = boosted[opp.id]
                opp.match_method = MatchMethod.AI_BOOSTED

        logger.info(
            "Scored %d opportunities (%d ai-boosted, %d rule, %d curated)",
            len(opportunities),
            len(boosted),
            len(crawled) - len(boosted),
            len(opportunities) - len(crawled),
        )
        return rank(opportunities)

    async def _boost(self, profile: Profile, crawled: list[Opportunity]) -> dict[str, float]:
        if self.booster is None or not crawled:
            return {}
        try:
            scores = await self.booster.score(profile, crawled)
        except Exception as e:
            logger.warning("AI boost failed, keeping rule scores: %s", e, exc_info=True)
            return {}
        crawled_ids = {o.id for o in crawled}
        return {k: v for k, v in (scores or {}).items() if k in crawled_ids}
