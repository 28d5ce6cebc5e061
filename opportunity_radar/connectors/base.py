"""Connector interface and raw listing structure."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from opportunity_radar.models import Profile


@dataclass
class RawListing:
    """Posting as returned by a connector, before canonicalization."""

    title: str
    company: str
    url: str
    source: str
    type: str = "internship"
    tags: list[str] = field(default_factory=list)
    location: Optional[str] = None
    description: Optional[str] = None
    posted_at: Optional[datetime] = None
    extra_data: dict = field(default_factory=dict)

    @staticmethod
    def _clean_nan(value: Optional[str]) -> Optional[str]:
        """Convert 'nan'/'NaN'/'NAN' strings to None."""
        if value is not None and value.strip().lower() == "nan":
            return None
        return value

    def __post_init__(self):
        self.description = self._clean_nan(self.description)
        cleaned_title = self._clean_nan(self.title)
        self.title = cleaned_title.strip() if cleaned_title is not None else ""
        cleaned_company = self._clean_nan(self.company)
        self.company = cleaned_company.strip() if cleaned_company is not None else ""
        self.url = (self.url or "").strip()

        tags: list[str] = []
        for tag in self.tags:
            if not tag:
                continue
            tag = str(tag).strip().lower()
            if tag and tag not in tags:
                tags.append(tag)
        self.tags = tags


@runtime_checkable
class Connector(Protocol):
    """A source of raw postings.

    Implementations are registered as plain values; any object with a
    ``name`` and an async ``fetch`` qualifies. Failures are signalled by
    raising a ``ConnectorError`` subclass.
    """

    name: str

    async def fetch(self, profile: Profile, budget: float) -> list[RawListing]:
        """Return zero or more raw postings within ``budget`` seconds."""
        ...
