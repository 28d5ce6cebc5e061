"""Canonicalization and deduplication of curated and crawled postings."""
import hashlib
import logging
import re
import unicodedata
from dataclasses import replace
from datetime import datetime
from typing import Optional
from urllib.parse import urlsplit

from opportunity_radar.connectors.base import RawListing
from opportunity_radar.crawl.orchestrator import ConnectorBatch
from opportunity_radar.models import CURATED_PORTAL_URL, MatchMethod, Opportunity

logger = logging.getLogger(__name__)

_PUNCTUATION = re.compile(r"[^\w\s]+")
_COMPANY_SUFFIXES = ("inc", "llc", "ltd", "corp", "corporation", "co", "company", "pvt", "private limited")


def normalize_text(value: Optional[str]) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    if not value:
        return ""
    text = unicodedata.normalize("NFKC", value).lower()
    text = _PUNCTUATION.sub(" ", text)
    return " ".join(text.split())


def normalize_company(name: Optional[str]) -> str:
    """Normalize a company name so "Acme, Inc." and "acme" match."""
    key = normalize_text(name)
    for suffix in _COMPANY_SUFFIXES:
        if key.endswith(" " + suffix):
            key = key[: -len(suffix) - 1].rstrip()
    return key


def normalize_url(url: Optional[str]) -> Optional[str]:
    """Return "host/path" for an absolute http(s) URL, else None.

    The portal sentinel, relative links and empty values carry no identity.
    """
    if not url or url.strip() == CURATED_PORTAL_URL:
        return None
    parts = urlsplit(url.strip())
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        return None
    host = parts.hostname.lower()
    if host.startswith("www."):
        host = host[4:]
    path = parts.path.rstrip("/")
    return f"{host}{path.lower()}"


def canonical_keys(title: str, company: str, url: Optional[str] = None) -> tuple[str, ...]:
    """All identity keys of a posting; sharing any one of them makes two postings duplicates.

    The URL key (when present) comes first, then the title/company key.
    """
    keys = []
    url_key = normalize_url(url)
    if url_key:
        keys.append(f"url:{url_key}")
    keys.append(f"tc:{normalize_text(title)}|{normalize_company(company)}")
    return tuple(keys)


def canonical_key(title: str, company: str, url: Optional[str] = None) -> str:
    """Primary canonical key: the URL host+path when present, else title/company."""
    return canonical_keys(title, company, url)[0]


def opportunity_keys(opportunity: Opportunity) -> tuple[str, ...]:
    return canonical_keys(opportunity.title, opportunity.company, opportunity.source_url)


class Deduplicator:
    """Merge the curated catalog and crawled batches into one duplicate-free list.

    Curated entries claim their keys first and always keep their identity.
    Crawled listings are visited in connector registration order; the first
    one seen for a key is kept and absorbs the tags of later duplicates.
    """

    def __init__(self):
        self._owners: dict[str, Opportunity] = {}
        self._ids: set[str] = set()
        self._merged: list[Opportunity] = []

    def merge(
        self,
        curated: list[Opportunity],
        batches: list[ConnectorBatch],
        now: datetime,
    ) -> list[Opportunity]:
        """
        Build the merged result.

        Args:
            curated: Curated catalog entries (not modified)
            batches: Successful connector batches in registration order
            now: Timestamp stamped on crawled records as they enter the set

        Returns:
            Merged opportunities: curated first, then crawled in first-seen order
        """
        self._owners.clear()
        self._ids.clear()
        self._merged = []

        for entry in curated:
            self._add_curated(entry)

        dropped = 0
        for batch in batches:
            for listing in batch.listings:
                if not self._add_crawled(listing, now):
                    dropped += 1

        logger.info(
            "Merged %d curated + crawled postings into %d opportunities (%d duplicates folded)",
            len(curated), len(self._merged), dropped,
        )
        return self._merged

    def _find_owner(self, keys: tuple[str, ...]) -> Optional[Opportunity]:
        for key in keys:
            owner = self._owners.get(key)
            if owner is not None:
                return owner
        return None

    def _claim(self, keys: tuple[str, ...], opportunity: Opportunity) -> None:
        for key in keys:
            self._owners.setdefault(key, opportunity)

    def _add_curated(self, entry: Opportunity) -> None:
        keys = opportunity_keys(entry)
        owner = self._find_owner(keys)
        if owner is not None or entry.id in self._ids:
            if owner is not None:
                owner.tags |= entry.tags
            logger.warning("Duplicate curated entry %s (%s @ %s) skipped", entry.id, entry.title, entry.company)
            return

        opportunity = replace(
            entry,
            tags=set(entry.tags),
            source="curated",
            match_method=MatchMethod.CURATED,
        )
        self._claim(keys, opportunity)
        self._ids.add(opportunity.id)
        self._merged.append(opportunity)

    def _add_crawled(self, listing: RawListing, now: datetime) -> bool:
        if not listing.title or not listing.company:
            return False

        keys = canonical_keys(listing.title, listing.company, listing.url)
        owner = self._find_owner(keys)
        if owner is not None:
            if not owner.is_curated:
                owner.tags.update(listing.tags)
                # Later duplicates may carry keys the owner lacked
                self._claim(keys, owner)
            return False

        opportunity = Opportunity(
            id=self._new_id(listing.source, keys[0]),
            title=listing.title,
            company=listing.company,
            type=listing.type,
            tags=set(listing.tags),
            source_url=listing.url,
            match_method=MatchMethod.RULE,
            discovered_at=now,
            source=listing.source,
            location=listing.location,
            description=listing.description,
            posted_at=listing.posted_at,
        )
        self._claim(keys, opportunity)
        self._ids.add(opportunity.id)
        self._merged.append(opportunity)
        return True

    def _new_id(self, source: str, key: str) -> str:
        base = f"{source}-{hashlib.sha1(key.encode('utf-8')).hexdigest()[:12]}"
        candidate = base
        suffix = 2
        while candidate in self._ids:
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate
