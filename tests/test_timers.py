"""Tests for tattva.timers."""

from tattva.timers import TimerQueue


def test_timers_fire_in_due_order():
    timers = TimerQueue()
    fired = []
    timers.call_later(2, lambda: fired.append("b"))
    timers.call_later(1, lambda: fired.append("a"))
    timers.call_later(5, lambda: fired.append("c"))

    assert timers.advance(3) == 2
    assert fired == ["a", "b"]
    assert timers.pending() == 1


def test_cancelled_timer_never_fires():
    timers = TimerQueue()
    fired = []
    handle = timers.call_later(1, lambda: fired.append("x"))
    handle.cancel()
    assert timers.advance(10) == 0
    assert fired == []


def test_chained_timers_measure_from_their_own_due_time():
    timers = TimerQueue()
    fired = []

    def first():
        fired.append(("first", timers.now))
        timers.call_later(1, lambda: fired.append(("second", timers.now)))

    timers.call_later(1, first)
    timers.advance(2)
    assert fired == [("first", 1), ("second", 2)]


def test_clock_never_goes_backwards():
    timers = TimerQueue(start=100)
    timers.run_due(50)
    assert timers.now == 100
    timers.call_later(-5, lambda: None)
    assert timers.run_due(100) == 1
