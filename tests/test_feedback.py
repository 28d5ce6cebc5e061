"""Tests for the fire-and-forget feedback collector."""
import asyncio
import logging
from unittest.mock import patch

import pytest

from opportunity_radar.feedback import FeedbackCollector
from opportunity_radar.models import FeedbackAction


class TestFeedbackCollector:
    def test_unreachable_endpoint_never_raises(self, caplog):
        collector = FeedbackCollector(url="http://127.0.0.1:1/ml/feedback", timeout=2)

        async def run():
            collector.record("student@college.edu", "cur-1", "applied")
            await collector.aclose(timeout=5)

        with caplog.at_level(logging.WARNING):
            asyncio.run(run())

        assert collector.stats.failed == 1
        assert collector.stats.delivered == 0
        assert "not delivered" in caplog.text

    def test_record_returns_immediately(self):
        collector = FeedbackCollector(url="http://feedback.test")
        delivered = asyncio.Event()

        async def slow_deliver(event):
            await asyncio.sleep(0.05)
            delivered.set()

        async def run():
            with patch.object(collector, "_deliver", side_effect=slow_deliver):
                collector.record("a@b.edu", "x-1", FeedbackAction.LIKED)
                assert not delivered.is_set()
                await collector.aclose(timeout=2)

        asyncio.run(run())
        assert delivered.is_set()
        assert collector.stats.delivered == 1

    def test_overflow_drops_events(self):
        collector = FeedbackCollector(url="http://feedback.test", queue_size=2)
        gate = asyncio.Event()

        async def blocked_deliver(event):
            await gate.wait()

        async def run():
            with patch.object(collector, "_deliver", side_effect=blocked_deliver):
                for i in range(5):
                    collector.record("a@b.edu", f"x-{i}", "viewed")
                await asyncio.sleep(0)
                gate.set()
                await collector.aclose(timeout=2)

        asyncio.run(run())
        assert collector.stats.dropped >= 2
        assert collector.stats.delivered + collector.stats.dropped == 5

    def test_unknown_action_rejected(self):
        collector = FeedbackCollector(url="http://feedback.test")
        with pytest.raises(ValueError):
            collector.record("a@b.edu", "x-1", "shared")

    def test_record_without_event_loop_drops(self):
        collector = FeedbackCollector(url="http://feedback.test")
        collector.record("a@b.edu", "x-1", "clicked")
        assert collector.stats.dropped == 1

    def test_record_after_close_drops(self):
        collector = FeedbackCollector(url="http://feedback.test")

        async def run():
            collector.start()
            await collector.aclose()
            collector.record("a@b.edu", "x-1", "clicked")

        asyncio.run(run())
        assert collector.stats.dropped == 1

    def test_worker_survives_unexpected_delivery_error(self):
        collector = FeedbackCollector(url="http://feedback.test")
        attempts = []

        async def flaky_deliver(event):
            attempts.append(event.opportunity_id)
            if event.opportunity_id == "x-1":
                raise RuntimeError("serializer bug")

        async def run():
            with patch.object(collector, "_deliver", side_effect=flaky_deliver):
                collector.record("a@b.edu", "x-1", "applied")
                collector.record("a@b.edu", "x-2", "applied")
                await asyncio.sleep(0.01)
                worker = collector._worker
                collector.record("a@b.edu", "x-3", "applied")
                assert collector._worker is worker
                await collector.aclose(timeout=2)

        asyncio.run(run())
        assert attempts == ["x-1", "x-2", "x-3"]
        assert collector.stats.failed == 1
        assert collector.stats.delivered == 2
        assert collector.stats.dropped == 0
