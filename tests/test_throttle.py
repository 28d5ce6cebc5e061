"""Tests for the automatic-trigger throttle."""
import threading

from opportunity_radar.throttle import ThrottleController


class TestThrottleController:
    def test_first_trigger_admitted(self, fake_clock):
        throttle = ThrottleController(clock=fake_clock)
        assert throttle.last_auto_trigger_at is None
        assert throttle.try_admit_auto() is True
        assert throttle.last_auto_trigger_at == fake_clock.now

    def test_second_trigger_within_window_rejected(self, fake_clock):
        throttle = ThrottleController(min_interval_ms=60_000, clock=fake_clock)
        throttle.try_admit_auto()
        fake_clock.advance(59_999)
        assert throttle.try_admit_auto() is False
        assert throttle.remaining_ms() == 1

    def test_rejection_does_not_move_window(self, fake_clock):
        throttle = ThrottleController(min_interval_ms=60_000, clock=fake_clock)
        throttle.try_admit_auto()
        start = throttle.last_auto_trigger_at
        fake_clock.advance(30_000)
        throttle.try_admit_auto()
        assert throttle.last_auto_trigger_at == start

    def test_admitted_exactly_at_interval(self, fake_clock):
        throttle = ThrottleController(min_interval_ms=60_000, clock=fake_clock)
        throttle.try_admit_auto()
        fake_clock.advance(60_000)
        assert throttle.try_admit_auto() is True

    def test_reset_clears_state(self, fake_clock):
        throttle = ThrottleController(clock=fake_clock)
        throttle.try_admit_auto()
        throttle.reset()
        assert throttle.last_auto_trigger_at is None
        assert throttle.try_admit_auto() is True

    def test_concurrent_admission_admits_once(self, fake_clock):
        throttle = ThrottleController(clock=fake_clock)
        admitted = []
        barrier = threading.Barrier(8)

        def trigger():
            barrier.wait()
            admitted.append(throttle.try_admit_auto())

        threads = [threading.Thread(target=trigger) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert admitted.count(True) == 1
