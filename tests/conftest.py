"""Pytest fixtures for Opportunity Radar tests."""
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from opportunity_radar.connectors.base import RawListing
from opportunity_radar.models import CURATED_PORTAL_URL, Opportunity, Profile


# =============================================================================
# FAKES
# =============================================================================


class FakeConnector:
    """Connector returning canned listings, optionally slow or failing."""

    def __init__(
        self,
        name: str,
        listings: Optional[list[RawListing]] = None,
        delay: float = 0.0,
        error: Optional[BaseException] = None,
    ):
        self.name = name
        self.listings = listings or []
        self.delay = delay
        self.error = error
        self.calls = 0
        self.cancelled = False

    async def fetch(self, profile: Profile, budget: float) -> list[RawListing]:
        self.calls += 1
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return list(self.listings)


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FailingBooster:
    """Boost scorer that always blows up."""

    def __init__(self):
        self.calls = 0

    async def score(self, profile, opportunities):
        self.calls += 1
        raise RuntimeError("scoring backend exploded")


class FixedBooster:
    """Boost scorer returning a fixed score for every opportunity it sees."""

    def __init__(self, value: float = 99.0):
        self.value = value

    async def score(self, profile, opportunities):
        return {o.id: self.value for o in opportunities}


class SlowBooster:
    """Boost scorer that takes a while; each call returns a different score."""

    def __init__(self, delay: float = 0.2, values=(11.0, 77.0)):
        self.delay = delay
        self.values = list(values)
        self.calls = 0
        self.cancelled = 0

    async def score(self, profile, opportunities):
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        try:
            await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return {o.id: value for o in opportunities}


# =============================================================================
# DATA FIXTURES
# =============================================================================


def listing(title: str, company: str, source: str, tags=(), url: str = "") -> RawListing:
    return RawListing(title=title, company=company, url=url, source=source, tags=list(tags))


def curated(opp_id: str, title: str, company: str, tags=(), discovered_at=None) -> Opportunity:
    return Opportunity(
        id=opp_id,
        title=title,
        company=company,
        tags=set(tags),
        source_url=CURATED_PORTAL_URL,
        discovered_at=discovered_at or datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def backend_profile():
    """Profile with tags ["backend", "go"]."""
    return Profile(email="student@college.edu", skills=["backend", "go"])


@pytest.fixture
def student_profile():
    return Profile(
        email="student@college.edu",
        role="Intern",
        department="Computer Science",
        skills=["Python", "Machine Learning", "", "python"],
        interests=["data", "AI"],
    )


@pytest.fixture
def frontend_catalog():
    """Curated catalog with a single frontend entry."""
    return [curated("cur-1", "Frontend Intern", "Campus Corp", tags=["frontend"])]


@pytest.fixture
def fake_clock():
    return FakeClock()
