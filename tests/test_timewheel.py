import queue
import threading
import time
from datetime import datetime, timedelta

import pytest

from godis.timewheel import TimeWheel, at, cancel, delay


@pytest.fixture
def wheel():
    tw = TimeWheel(0.02, 10)
    tw.start()
    yield tw
    tw.stop()


def test_delay():
    results = queue.Queue()
    begin = time.monotonic()
    delay(1.0, "", lambda: results.put(time.monotonic()))
    executed = results.get(timeout=5)
    elapsed = executed - begin
    assert 1.0 <= elapsed <= 3.0


def test_at_and_cancel():
    kept = threading.Event()
    dropped = threading.Event()
    at(datetime.now() + timedelta(seconds=1), "keep", kept.set)
    delay(1.0, "gone", dropped.set)
    cancel("gone")
    assert kept.wait(5)
    time.sleep(0.2)
    assert not dropped.is_set()


@pytest.mark.parametrize("interval, slots", [(0, 10), (-1, 10), (1, 0)])
def test_invalid_wheel(interval, slots):
    with pytest.raises(ValueError):
        TimeWheel(interval, slots)


def test_job_runs(wheel):
    fired = threading.Event()
    wheel.add_job(0.05, "k", fired.set)
    assert fired.wait(2)


def test_timedelta_delay(wheel):
    fired = threading.Event()
    wheel.add_job(timedelta(milliseconds=50), "", fired.set)
    assert fired.wait(2)


def test_remove_job(wheel):
    fired = threading.Event()
    wheel.add_job(0.1, "k", fired.set)
    wheel.remove_job("k")
    time.sleep(0.4)
    assert not fired.is_set()


def test_same_key_replaces_job(wheel):
    first = threading.Event()
    second = threading.Event()
    wheel.add_job(0.05, "k", first.set)
    wheel.add_job(0.1, "k", second.set)
    assert second.wait(2)
    time.sleep(0.1)
    assert not first.is_set()


def test_negative_delay_is_ignored(wheel):
    fired = threading.Event()
    wheel.add_job(-1, "k", fired.set)
    time.sleep(0.2)
    assert not fired.is_set()


def test_delay_longer_than_a_round():
    tw = TimeWheel(0.01, 4)
    tw.start()
    try:
        results = queue.Queue()
        begin = time.monotonic()
        tw.add_job(0.1, "", lambda: results.put(time.monotonic()))
        executed = results.get(timeout=5)
        assert executed - begin >= 0.09
    finally:
        tw.stop()


def test_failing_job_does_not_stop_wheel(wheel):
    def boom():
        raise RuntimeError("boom")

    fired = threading.Event()
    wheel.add_job(0.02, "", boom)
    wheel.add_job(0.1, "", fired.set)
    assert fired.wait(2)


def test_stopped_wheel_runs_nothing():
    tw = TimeWheel(0.02, 10)
    tw.start()
    tw.stop()
    fired = threading.Event()
    tw.add_job(0.02, "", fired.set)
    time.sleep(0.2)
    assert not fired.is_set()