import pytest

from unlockwall.scheduler import ManualClock, Scheduler


def test_call_later_fires_only_when_due(clock, scheduler):
    fired = []
    scheduler.call_later(0.5, lambda: fired.append("x"))
    clock.advance(0.4)
    assert scheduler.run_pending() == 0
    clock.advance(0.1)
    assert scheduler.run_pending() == 1
    assert fired == ["x"]
    clock.advance(10)
    assert scheduler.run_pending() == 0


def test_call_every_catches_up_in_order(clock, scheduler):
    ticks = []
    scheduler.call_every(1.0, lambda: ticks.append(clock()))
    clock.advance(3.0)
    scheduler.run_pending()
    assert len(ticks) == 3


def test_priority_breaks_ties(clock, scheduler):
    order = []
    scheduler.call_later(1.0, lambda: order.append("low"), priority=1)
    scheduler.call_later(1.0, lambda: order.append("high"), priority=0)
    clock.advance(1.0)
    scheduler.run_pending()
    assert order == ["high", "low"]


def test_cancel_is_idempotent(clock, scheduler):
    fired = []
    handle = scheduler.call_every(1.0, lambda: fired.append(1))
    handle.cancel()
    handle.cancel()
    assert handle.cancelled
    clock.advance(5)
    assert scheduler.run_pending() == 0
    assert fired == []


def test_callback_can_cancel_sibling(clock, scheduler):
    fired = []
    later = scheduler.call_later(1.0, lambda: fired.append("later"), priority=1)
    scheduler.call_later(1.0, later.cancel, priority=0)
    clock.advance(1.0)
    scheduler.run_pending()
    assert fired == []


def test_bad_arguments(scheduler):
    with pytest.raises(ValueError):
        scheduler.call_later(-1, lambda: None)
    with pytest.raises(ValueError):
        scheduler.call_every(0, lambda: None)
    with pytest.raises(ValueError):
        ManualClock().advance(-1)
