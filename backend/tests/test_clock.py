"""Tests for the injectable clock."""

from datetime import datetime, timedelta, timezone

import pytest

from lms_quiz.core.clock import Clock, FrozenClock, SystemClock, get_clock, to_naive_utc


def test_clock_is_abstract():
    with pytest.raises(TypeError):
        Clock()


def test_clock_subclass_must_implement_now():
    class Broken(Clock):
        pass

    with pytest.raises(TypeError):
        Broken()


def test_system_clock_is_naive_utc():
    now = SystemClock().now()

    assert now.tzinfo is None
    assert isinstance(get_clock(), SystemClock)


def test_frozen_clock_moves_only_when_told():
    clock = FrozenClock(datetime(2026, 3, 2, 9, 0))

    assert clock.now() == clock.now()
    assert clock.advance(minutes=29, seconds=59.5) == datetime(2026, 3, 2, 9, 29, 59, 500000)

    clock.set(datetime(2026, 3, 2, 12, 0, tzinfo=timezone(timedelta(hours=2))))
    assert clock.now() == datetime(2026, 3, 2, 10, 0)


def test_to_naive_utc_keeps_naive_values():
    value = datetime(2026, 3, 2, 9, 0)

    assert to_naive_utc(value) is value
