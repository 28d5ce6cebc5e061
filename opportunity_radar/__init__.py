"""Opportunity discovery and matching engine."""
from opportunity_radar.engine import DiscoveryEngine, build_engine
from opportunity_radar.models import (
    CrawlMeta,
    CrawlStatus,
    DiscoveryResult,
    FeedbackAction,
    MatchMethod,
    Opportunity,
    Profile,
    Trigger,
)
from opportunity_radar.session import DiscoverySession, SessionRegistry

__all__ = [
    "DiscoveryEngine",
    "build_engine",
    "DiscoverySession",
    "SessionRegistry",
    "CrawlMeta",
    "CrawlStatus",
    "DiscoveryResult",
    "FeedbackAction",
    "MatchMethod",
    "Opportunity",
    "Profile",
    "Trigger",
]
