"""Tests for curated catalog intake."""
from datetime import datetime, timedelta, timezone

import pytest

from opportunity_radar.catalog import load_catalog, read_catalog
from opportunity_radar.exceptions import CatalogUnavailableError
from opportunity_radar.models import CURATED_PORTAL_URL, MatchMethod

from conftest import curated

NOW = datetime(2026, 3, 1, tzinfo=timezone.utc)


class TestReadCatalog:
    def test_mappings_become_curated_opportunities(self):
        entries = [
            {
                "id": "cur-7",
                "title": "Research Intern",
                "company": "Campus Lab",
                "tags": ["Research", " AI "],
                "discoveredAt": "2026-02-01T00:00:00Z",
            },
        ]

        [opp] = read_catalog(entries, NOW)

        assert opp.id == "cur-7"
        assert opp.tags == {"research", "ai"}
        assert opp.source_url == CURATED_PORTAL_URL
        assert opp.match_method is MatchMethod.CURATED
        assert opp.is_curated
        assert opp.discovered_at.year == 2026 and opp.discovered_at.month == 2

    def test_missing_timestamp_uses_now(self):
        [opp] = read_catalog([{"id": "c", "title": "T", "company": "C"}], NOW)
        assert opp.discovered_at == NOW

    def test_callable_catalog(self):
        entries = read_catalog(lambda: [curated("cur-1", "Frontend Intern", "Campus Corp")], NOW)
        assert [o.id for o in entries] == ["cur-1"]

    def test_entries_are_copied(self):
        original = curated("cur-1", "Frontend Intern", "Campus Corp", tags=["frontend"])
        [copy] = read_catalog([original], NOW)
        copy.tags.add("mutated")
        assert original.tags == {"frontend"}

    def test_malformed_entries_skipped(self):
        entries = [{"title": "No id"}, 42, {"id": "ok", "title": "Fine", "company": "C"}]
        assert [o.id for o in read_catalog(entries, NOW)] == ["ok"]

    def test_missing_catalog_raises(self):
        with pytest.raises(CatalogUnavailableError):
            read_catalog(None, NOW)

    def test_failing_reader_raises(self):
        def reader():
            raise ConnectionError("cms down")

        with pytest.raises(CatalogUnavailableError, match="cms down"):
            read_catalog(reader, NOW)


class TestLoadCatalog:
    def test_list_document(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("- id: cur-1\n  title: Frontend Intern\n  company: Campus Corp\n  tags: [frontend]\n")

        entries = load_catalog(path)

        assert [o.id for o in read_catalog(entries, NOW)] == ["cur-1"]

    def test_wrapped_document(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("opportunities:\n  - id: cur-2\n    title: Data Intern\n    company: Campus Corp\n")

        assert [o.id for o in read_catalog(load_catalog(path), NOW)] == ["cur-2"]


class TestCatalogTimestamps:
    def test_naive_iso_string_is_utc(self):
        [opp] = read_catalog(
            [{"id": "c1", "title": "T", "company": "C", "discoveredAt": "2026-01-01T10:00:00"}], NOW,
        )
        assert opp.discovered_at == datetime(2026, 1, 1, 10, tzinfo=timezone.utc)

    def test_naive_datetime_from_yaml_is_utc(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("- id: c1\n  title: T\n  company: C\n  discoveredAt: 2026-01-01 10:00:00\n")

        [opp] = read_catalog(load_catalog(path), NOW)

        assert opp.discovered_at.tzinfo is not None
        assert opp.discovered_at == datetime(2026, 1, 1, 10, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        [opp] = read_catalog(
            [{"id": "c1", "title": "T", "company": "C", "discoveredAt": "2026-01-01T12:00:00+02:00"}], NOW,
        )
        assert opp.discovered_at.utcoffset() == timedelta(0)
        assert opp.discovered_at.hour == 10

    def test_naive_opportunity_entry_is_utc(self):
        entry = curated("cur-1", "Frontend Intern", "Campus Corp", discovered_at=datetime(2026, 1, 1, 10))

        [opp] = read_catalog([entry], NOW)

        assert opp.discovered_at == datetime(2026, 1, 1, 10, tzinfo=timezone.utc)
        assert opp.to_dict()["discoveredAt"].endswith("+00:00")
