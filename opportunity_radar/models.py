"""Data model for discovered opportunities and crawl diagnostics."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Sentinel source URL meaning "apply via the curated portal"
CURATED_PORTAL_URL = "#"


def utcnow() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class MatchMethod(Enum):
    """Which scorer produced an opportunity's match score."""

    CURATED = "curated"
    RULE = "rule"
    AI_BOOSTED = "ai-boosted"


class CrawlStatus(Enum):
    """Overall outcome of one crawl run."""

    SUCCESS = "Success"
    PARTIAL_SUCCESS = "PartialSuccess"
    FAILURE = "Failure"


class ErrorKind(Enum):
    """Per-connector failure kinds recorded in CrawlMeta."""

    TIMEOUT = "Timeout"
    UNREACHABLE = "Unreachable"
    PARSE_ERROR = "ParseError"
    RATE_LIMITED = "RateLimited"


class CrawlState(Enum):
    """Per-session crawl state machine."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class Trigger(Enum):
    """What caused a discovery request."""

    AUTO = "auto"
    MANUAL = "manual"


class FeedbackAction(Enum):
    """Interaction signals accepted by the feedback channel."""

    APPLIED = "applied"
    LIKED = "liked"
    CLICKED = "clicked"
    VIEWED = "viewed"


class Profile(BaseModel):
    """Read-only subset of a requester's profile used for matching."""

    model_config = ConfigDict(frozen=True)

    email: Optional[str] = None
    role: str = Field(default="", description="e.g. 'student', 'software engineer'")
    department: str = Field(default="", description="e.g. 'computer science'")
    skills: tuple[str, ...] = Field(default=(), description="Skill tags")
    interests: tuple[str, ...] = Field(default=(), description="Stated interests")

    @field_validator("skills", "interests", mode="before")
    @classmethod
    def normalize_tags(cls, v):
        """Lowercase, strip and drop empty strings, keeping first occurrence order."""
        if isinstance(v, str):
            v = [v]
        if isinstance(v, (list, tuple, set, frozenset)):
            seen: list[str] = []
            for item in v:
                if item is None:
                    continue
                tag = str(item).strip().lower()
                if tag and tag not in seen:
                    seen.append(tag)
            return tuple(seen)
        return v

    @field_validator("role", "department", mode="before")
    @classmethod
    def strip_text(cls, v):
        return (v or "").strip()

    def search_queries(self) -> list[str]:
        """Query terms handed to connectors: skills, interests, then role."""
        queries = list(self.skills) + [i for i in self.interests if i not in self.skills]
        if self.role and self.role.lower() not in queries:
            queries.append(self.role.lower())
        return queries


@dataclass
class Opportunity:
    """A discovered or curated posting in a merged result set."""

    id: str
    title: str
    company: str
    type: str = "internship"
    tags: set[str] = field(default_factory=set)
    source_url: str = CURATED_PORTAL_URL
    match_score: float = 0.0
    match_method: MatchMethod = MatchMethod.RULE
    discovered_at: datetime = field(default_factory=utcnow)
    source: str = "curated"
    location: Optional[str] = None
    description: Optional[str] = None
    posted_at: Optional[datetime] = None

    @property
    def is_curated(self) -> bool:
        return self.source == "curated"

    def to_dict(self) -> dict:
        """Render the output contract consumed by UI collaborators."""
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "type": self.type,
            "tags": sorted(self.tags),
            "sourceUrl": self.source_url,
            "matchScore": self.match_score,
            "matchMethod": self.match_method.value,
            "discoveredAt": self.discovered_at.isoformat(),
            "source": self.source,
            "location": self.location,
        }


@dataclass(frozen=True)
class CrawlError:
    """One connector failure within a crawl."""

    source: str
    kind: ErrorKind
    message: str

    def to_dict(self) -> dict:
        return {"source": self.source, "kind": self.kind.value, "message": self.message}


@dataclass
class CrawlMeta:
    """Provenance and diagnostics for one crawl run."""

    started_at: datetime
    duration_ms: int = 0
    sources_attempted: int = 0
    sources_succeeded: int = 0
    sources_failed: int = 0
    errors: list[CrawlError] = field(default_factory=list)
    status: CrawlStatus = CrawlStatus.SUCCESS
    ai_boosted_count: int = 0
    coalesced: bool = False

    def to_dict(self) -> dict:
        return {
            "startedAt": self.started_at.isoformat(),
            "durationMs": self.duration_ms,
            "sourcesAttempted": self.sources_attempted,
            "sourcesSucceeded": self.sources_succeeded,
            "sourcesFailed": self.sources_failed,
            "errors": [e.to_dict() for e in self.errors],
            "status": self.status.value,
            "aiBoostedCount": self.ai_boosted_count,
            "coalesced": self.coalesced,
        }


@dataclass(frozen=True)
class FeedbackEvent:
    """A single interaction signal, dispatched once and then forgotten."""

    email: str
    opportunity_id: str
    action: FeedbackAction
    timestamp: datetime = field(default_factory=utcnow)

    def to_payload(self) -> dict:
        return {
            "email": self.email,
            "opportunity_id": self.opportunity_id,
            "action": self.action.value,
            "timestamp": self.timestamp.isoformat(),
        }


class DiscoveryResult(NamedTuple):
    """Ranked opportunities plus the CrawlMeta of the run that produced them."""

    opportunities: list[Opportunity]
    meta: CrawlMeta
