"""Curated catalog intake.

The catalog is owned by an external content-management collaborator and
handed to ``discover`` at call time, either as an iterable of entries or as
a zero-argument callable producing one. Entries may be ``Opportunity``
objects or plain mappings (as loaded from YAML/JSON).
"""
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

import yaml

from opportunity_radar.connectors.utils import parse_date_iso
from opportunity_radar.exceptions import CatalogUnavailableError
from opportunity_radar.models import CURATED_PORTAL_URL, MatchMethod, Opportunity

logger = logging.getLogger(__name__)

CatalogEntry = Union[Opportunity, Mapping]
CatalogSource = Union[Iterable[CatalogEntry], Callable[[], Iterable[CatalogEntry]]]


def _as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken as UTC; aware ones are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_mapping(entry: Mapping, now: datetime) -> Opportunity:
    tags = entry.get("tags") or []
    if isinstance(tags, str):
        tags = [tags]
    return Opportunity(
        id=str(entry["id"]),
        title=str(entry["title"]),
        company=str(entry.get("company") or ""),
        type=str(entry.get("type") or "internship"),
        tags={str(t).strip().lower() for t in tags if t and str(t).strip()},
        source_url=entry.get("sourceUrl") or entry.get("source_url") or CURATED_PORTAL_URL,
        match_method=MatchMethod.CURATED,
        discovered_at=_as_utc(parse_date_iso(entry.get("discoveredAt") or entry.get("discovered_at")) or now),
        source="curated",
        location=entry.get("location"),
        description=entry.get("description"),
    )


def read_catalog(catalog: CatalogSource, now: datetime) -> list[Opportunity]:
    """Materialize the catalog into curated Opportunity records.

    Raises:
        CatalogUnavailableError: if the catalog cannot be read at all
    """
    if catalog is None:
        raise CatalogUnavailableError("no catalog supplied")

    try:
        entries = catalog() if callable(catalog) else catalog
        entries = list(entries)
    except CatalogUnavailableError:
        raise
    except Exception as e:
        raise CatalogUnavailableError(str(e) or type(e).__name__) from e

    curated: list[Opportunity] = []
    for entry in entries:
        try:
            if isinstance(entry, Opportunity):
                curated.append(
                    replace(
                        entry,
                        tags=set(entry.tags),
                        source="curated",
                        match_method=MatchMethod.CURATED,
                        discovered_at=_as_utc(entry.discovered_at),
                    )
                )
            elif isinstance(entry, Mapping):
                curated.append(_from_mapping(entry, now))
            else:
                raise TypeError(f"unsupported entry type {type(entry).__name__}")
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            # One malformed entry does not make the catalog unreadable
            logger.error("Skipping malformed curated entry %r: %s", entry, e)

    logger.debug("Read %d curated entries", len(curated))
    return curated


def load_catalog(path: str | Path) -> list[dict]:
    """Load a curated catalog from a YAML file holding a list of entries.

    Accepts either a top-level list or a mapping with an ``opportunities`` list.
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise CatalogUnavailableError(f"cannot load {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("opportunities")
    if data is None:
        return []
    if not isinstance(data, list):
        raise CatalogUnavailableError(f"{path} does not contain a list of opportunities")
    return data
