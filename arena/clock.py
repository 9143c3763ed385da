"""Clocks — frame scheduling and interval timers on one execution context.

Architecture
------------
The simulation is driven by two external clocks: a display-refresh
callback (one simulation tick per frame) and a periodic timer (the enemy
spawner).  Both are provided here behind one object so that ordering is
total: frames and timers are dispatched in timestamp order from a single
thread, so simulation state never needs a lock.

  ManualClock    time only moves when the caller says so (``advance``,
                 ``step_frame``).  Tests and headless runs use it.
  RealtimeClock  same dispatch rules, driven by one daemon thread
                 ("arena-clock") against the monotonic clock.  Other
                 threads hand work to it through ``call_soon``.

Scheduling API (mirrors the browser primitives the game was designed
around):

  request_frame(cb) -> handle     cb(timestamp_ms) on the next frame
  cancel_frame(handle)
  set_interval(cb, ms) -> handle  cb() every *ms* milliseconds
  clear_interval(handle)
  call_soon(fn, *args) -> Future  fn(*args) on the clock, result in the Future

A callback whose handle is cancelled before dispatch is never invoked,
even when it was already due in the current batch.
"""

from __future__ import annotations

import itertools
import math
import queue
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable

from loguru import logger

DEFAULT_FRAME_RATE = 60.0

# Longest the realtime thread sleeps before re-checking its queue
_MAX_SLEEP_MS = 50.0

# If the realtime thread falls further behind than this, drop the backlog
# instead of replaying every missed frame
_MAX_CATCH_UP_MS = 250.0

FrameCallback = Callable[[float], None]
TimerCallback = Callable[[], None]


class ClockStopped(RuntimeError):
    """A command was handed to a clock that is not running."""


@dataclass
class _Interval:
    callback: TimerCallback
    interval_ms: float
    next_due: float


class ManualClock:
    """Deterministic frame/timer scheduler advanced explicitly by the caller."""

    def __init__(self, frame_rate: float = DEFAULT_FRAME_RATE) -> None:
        if frame_rate <= 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")
        self.frame_interval_ms = 1000.0 / frame_rate
        self.now_ms = 0.0
        self._next_frame_ms = self.frame_interval_ms
        self._handles = itertools.count(1)
        self._frames: dict[int, FrameCallback] = {}
        self._dispatching: set[int] = set()
        self._intervals: dict[int, _Interval] = {}
        self._lock = threading.RLock()

    # -- Frames ---------------------------------------------------------------

    def request_frame(self, callback: FrameCallback) -> int:
        with self._lock:
            handle = next(self._handles)
            self._frames[handle] = callback
            return handle

    def cancel_frame(self, handle: int | None) -> None:
        if handle is None:
            return
        with self._lock:
            self._frames.pop(handle, None)
            self._dispatching.discard(handle)

    @property
    def pending_frames(self) -> int:
        with self._lock:
            return len(self._frames)

    # -- Intervals ------------------------------------------------------------

    def set_interval(self, callback: TimerCallback, interval_ms: float) -> int:
        if interval_ms <= 0:
            raise ValueError(f"interval must be positive, got {interval_ms}")
        with self._lock:
            handle = next(self._handles)
            self._intervals[handle] = _Interval(
                callback, interval_ms, self.now_ms + interval_ms
            )
            return handle

    def clear_interval(self, handle: int | None) -> None:
        if handle is None:
            return
        with self._lock:
            self._intervals.pop(handle, None)

    @property
    def active_intervals(self) -> int:
        with self._lock:
            return len(self._intervals)

    # -- Driving --------------------------------------------------------------

    def call_soon(self, fn: Callable[..., object], *args) -> Future:
        """Run *fn* on the clock's execution context (immediately, here).

        Returns an already-completed Future holding the result, or the
        exception *fn* raised.
        """
        future: Future = Future()
        self._run_command(future, fn, args)
        return future

    def advance(self, ms: float) -> None:
        """Move time forward by *ms*, dispatching everything that falls due."""
        if ms < 0:
            raise ValueError("cannot advance backwards")
        self._run_until(self.now_ms + ms)

    def step_frame(self) -> None:
        """Advance exactly to the next frame boundary (timers due first)."""
        self._run_until(self._next_frame_ms)

    def step_frames(self, count: int) -> None:
        for _ in range(count):
            self.step_frame()

    # -- Internals ------------------------------------------------------------

    def _earliest_interval(self) -> tuple[int, _Interval] | None:
        if not self._intervals:
            return None
        return min(self._intervals.items(), key=lambda item: item[1].next_due)

    def _next_event_ms(self) -> float:
        earliest = self._earliest_interval()
        timer_at = earliest[1].next_due if earliest is not None else math.inf
        return min(timer_at, self._next_frame_ms)

    def _run_until(self, target_ms: float) -> None:
        while True:
            with self._lock:
                earliest = self._earliest_interval()
                event_at = self._next_event_ms()
                if event_at > target_ms:
                    break
                self.now_ms = event_at
                timer_first = (
                    earliest is not None
                    and earliest[1].next_due <= self._next_frame_ms
                )
            if timer_first:
                self._fire_interval(earliest[0])
            else:
                self._fire_frames()
        with self._lock:
            self.now_ms = max(self.now_ms, target_ms)

    def _fire_interval(self, handle: int) -> None:
        with self._lock:
            interval = self._intervals.get(handle)
            if interval is None:
                return
            interval.next_due += interval.interval_ms
        self._invoke(interval.callback)

    def _fire_frames(self) -> None:
        with self._lock:
            timestamp = self._next_frame_ms
            self._next_frame_ms += self.frame_interval_ms
            batch = list(self._frames.items())
            self._frames.clear()
            self._dispatching = {handle for handle, _ in batch}
        for handle, callback in batch:
            with self._lock:
                if handle not in self._dispatching:
                    continue
                self._dispatching.discard(handle)
            self._invoke(callback, timestamp)

    def _invoke(self, fn: Callable[..., None], *args) -> None:
        fn(*args)

    def _run_command(self, future: Future, fn: Callable[..., object], args: tuple) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            result = fn(*args)
        except Exception as exc:
            logger.exception(f"Arena clock command {getattr(fn, '__name__', fn)} failed")
            future.set_exception(exc)
        else:
            future.set_result(result)


class RealtimeClock(ManualClock):
    """ManualClock driven by a daemon thread against wall time."""

    def __init__(self, frame_rate: float = DEFAULT_FRAME_RATE) -> None:
        super().__init__(frame_rate)
        self._commands: queue.Queue = queue.Queue()
        self._running = False
        self._thread: threading.Thread | None = None
        self._origin_ms = 0.0

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._origin_ms = time.monotonic() * 1000.0 - self.now_ms
        self._thread = threading.Thread(
            target=self._run, name="arena-clock", daemon=True
        )
        self._thread.start()
        logger.info(f"Arena clock started ({1000.0 / self.frame_interval_ms:.0f} fps)")

    def stop(self) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
            logger.info("Arena clock stopped")
        self._fail_pending()

    def call_soon(self, fn: Callable[..., object], *args) -> Future:
        """Queue *fn* for the clock thread.  Safe from any thread.

        The returned Future resolves once *fn* has run between ticks.  A
        clock that is not running fails it with ClockStopped.
        """
        future: Future = Future()
        if not self._running:
            future.set_exception(ClockStopped("arena clock is not running"))
            return future
        self._commands.put((future, fn, args))
        return future

    def _drain_commands(self) -> None:
        while True:
            try:
                future, fn, args = self._commands.get_nowait()
            except queue.Empty:
                return
            self._run_command(future, fn, args)

    def _fail_pending(self) -> None:
        while True:
            try:
                future, _, _ = self._commands.get_nowait()
            except queue.Empty:
                return
            if future.set_running_or_notify_cancel():
                future.set_exception(ClockStopped("arena clock stopped"))

    def _run(self) -> None:
        while self._running:
            self._drain_commands()
            now = time.monotonic() * 1000.0 - self._origin_ms
            lag = now - self.now_ms
            if lag > _MAX_CATCH_UP_MS:
                logger.warning(f"Arena clock {lag:.0f}ms behind, skipping backlog")
                self._origin_ms += lag - self.frame_interval_ms
                now = self.now_ms + self.frame_interval_ms
            self._run_until(now)
            with self._lock:
                wait_ms = self._next_event_ms() - self.now_ms
            time.sleep(min(max(wait_ms, 1.0), _MAX_SLEEP_MS) / 1000.0)

    def _invoke(self, fn: Callable[..., None], *args) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception(f"Arena clock callback {getattr(fn, '__name__', fn)} failed")
