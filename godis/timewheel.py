"""Time wheel that runs jobs after a delay, with cancellation by key."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Union

from godis import logger

__all__ = ["TimeWheel", "delay", "at", "cancel"]

Duration = Union[float, int, timedelta]
Job = Callable[[], object]


def _seconds(duration: Duration) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


@dataclass(eq=False)
class _Task:
    key: str
    job: Job
    circle: int = 0


class TimeWheel:
    """A ring of slots visited once per interval; each slot holds pending jobs."""

    def __init__(self, interval: Duration, slot_num: int) -> None:
        seconds = _seconds(interval)
        if seconds <= 0 or slot_num <= 0:
            raise ValueError("interval and slot_num must be positive")
        self.interval = seconds
        self.slot_num = slot_num
        self._slots: list[list[_Task]] = [[] for _ in range(slot_num)]
        self._timer: dict[str, tuple[int, _Task]] = {}
        self._current_pos = 0
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def start(self) -> None:
        """Start ticking in a background thread."""
        with self._lock:
            if self._thread is not None:
                return
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run, args=(self._stop_event,), name="timewheel", daemon=True
            )
            thread = self._thread
        thread.start()

    def stop(self) -> None:
        """Stop ticking; pending jobs stay queued."""
        with self._lock:
            thread, self._thread = self._thread, None
            stop_event = self._stop_event
        if thread is None:
            return
        stop_event.set()
        if thread is not threading.current_thread():
            thread.join()

    def add_job(self, delay: Duration, key: str, job: Job) -> None:
        """Schedule job after delay; a job with the same non-empty key is replaced."""
        seconds = _seconds(delay)
        if seconds < 0:
            return
        with self._lock:
            ticks = int(seconds / self.interval + 1e-9)
            pos = (self._current_pos + ticks) % self.slot_num
            task = _Task(key=key, job=job, circle=ticks // self.slot_num)
            if key:
                self._remove_task(key)
            self._slots[pos].append(task)
            if key:
                self._timer[key] = (pos, task)

    def remove_job(self, key: str) -> None:
        """Cancel the pending job with this key; nothing happens if there is none."""
        if not key:
            return
        with self._lock:
            self._remove_task(key)

    def _remove_task(self, key: str) -> None:
        location = self._timer.pop(key, None)
        if location is None:
            return
        pos, task = location
        slot = self._slots[pos]
        if task in slot:
            slot.remove(task)

    def _run(self, stop_event: threading.Event) -> None:
        next_tick = time.monotonic() + self.interval
        while not stop_event.wait(max(0.0, next_tick - time.monotonic())):
            self._tick()
            next_tick += self.interval
            now = time.monotonic()
            if next_tick < now:
                next_tick = now + self.interval

    def _tick(self) -> None:
        due: list[_Task] = []
        with self._lock:
            slot = self._slots[self._current_pos]
            self._current_pos = (self._current_pos + 1) % self.slot_num
            remaining: list[_Task] = []
            for task in slot:
                if task.circle > 0:
                    task.circle -= 1
                    remaining.append(task)
                    continue
                due.append(task)
                if task.key:
                    location = self._timer.get(task.key)
                    if location is not None and location[1] is task:
                        del self._timer[task.key]
            slot[:] = remaining
        for task in due:
            threading.Thread(target=self._run_job, args=(task.job,), daemon=True).start()

    @staticmethod
    def _run_job(job: Job) -> None:
        try:
            job()
        except Exception as exc:  # a failing job must not stop the wheel
            logger.error(exc)


_default_wheel: Optional[TimeWheel] = None
_default_lock = threading.Lock()


def _wheel() -> TimeWheel:
    global _default_wheel
    with _default_lock:
        if _default_wheel is None:
            _default_wheel = TimeWheel(1.0, 3600)
            _default_wheel.start()
        return _default_wheel


def delay(duration: Duration, key: str, job: Job) -> None:
    """Run job after waiting the given duration."""
    _wheel().add_job(duration, key, job)


def at(when: datetime, key: str, job: Job) -> None:
    """Run job at the given time."""
    now = datetime.now(when.tzinfo)
    _wheel().add_job(when - now, key, job)


def cancel(key: str) -> None:
    """Cancel a pending job."""
    _wheel().remove_job(key)