import pytest

from pid_clock import ManualClock, MonotonicClock


def test_monotonic_clock_is_integer_and_non_decreasing():
    clock = MonotonicClock()
    first = clock.now()
    second = clock.now()
    assert isinstance(first, int)
    assert second >= first


def test_manual_clock_advance_and_set():
    clock = ManualClock(start=1000)
    assert clock.now() == 1000
    assert clock.advance(250) == 1250
    assert clock.set(2000) == 2000
    assert clock.now() == 2000
    clock.set(2000)
    clock.advance(0)
    assert clock.now() == 2000


def test_manual_clock_refuses_to_go_backwards():
    clock = ManualClock(start=500)
    with pytest.raises(ValueError):
        clock.advance(-1)
    with pytest.raises(ValueError):
        clock.set(499)
    assert clock.now() == 500
