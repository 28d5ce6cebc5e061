"""Scorer protocols for pluggable scoring engines.

RuleScorer is the deterministic base implementation; AIScorer is the
remote booster. Tests and alternative deployments can substitute any
object satisfying the same shape.
"""
from typing import Protocol, runtime_checkable

from opportunity_radar.models import Opportunity, Profile


@runtime_checkable
class Scorer(Protocol):
    """Synchronous, side-effect free base scorer."""

    def score(self, opportunity: Opportunity) -> float:
        """Return a 0-100 relevance score."""
        ...


@runtime_checkable
class BoostScorer(Protocol):
    """Optional asynchronous re-scorer whose scores replace base scores."""

    async def score(self, profile: Profile, opportunities: list[Opportunity]) -> dict[str, float]:
        """Return replacement scores keyed by opportunity id."""
        ...
