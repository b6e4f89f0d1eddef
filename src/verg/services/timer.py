"""Restart-safe countdown timer.

Remaining time is always derived from a fixed target instant, so a sampling
loop that is suspended for any length of time catches up on the next sample
instead of drifting.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

from verg.domain.timer import TimerPhase, TimerState
from verg.services.clock import Clock

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 0.1


class PeriodicHandle(Protocol):
    """Handle to a scheduled periodic callback."""

    def cancel(self) -> None:
        """Stop further invocations. Safe to call more than once."""


class PeriodicScheduler(Protocol):
    """Runs a callback at a fixed interval until cancelled."""

    def schedule(
        self, interval: float, callback: Callable[[], None]
    ) -> PeriodicHandle:
        """Start invoking ``callback`` every ``interval`` seconds."""


class KeepAwakeLease(Protocol):
    """Host lease that keeps the process running while a countdown is active."""

    def acquire(self) -> None:
        """Take the lease."""

    def release(self) -> None:
        """Give the lease back."""


@dataclass
class NoopKeepAwake(KeepAwakeLease):
    """Lease for hosts without a keep-awake facility."""

    def acquire(self) -> None:
        return None

    def release(self) -> None:
        return None


@dataclass
class _AsyncioHandle(PeriodicHandle):
    task: asyncio.Task[None]

    def cancel(self) -> None:
        if not self.task.done():
            self.task.cancel()


@dataclass
class AsyncioPeriodicScheduler(PeriodicScheduler):
    """Sleep-loop scheduler on the running event loop."""

    def schedule(
        self, interval: float, callback: Callable[[], None]
    ) -> PeriodicHandle:
        """Create a task that calls ``callback`` after every sleep.

        Must be called from within a running event loop.
        """

        async def _loop() -> None:
            while True:
                await asyncio.sleep(interval)
                callback()

        task = asyncio.get_running_loop().create_task(_loop())
        return _AsyncioHandle(task)


@dataclass
class CountdownTimer:
    """Countdown state machine: idle, running, paused, complete."""

    clock: Clock
    scheduler: PeriodicScheduler = field(default_factory=AsyncioPeriodicScheduler)
    keep_awake: KeepAwakeLease = field(default_factory=NoopKeepAwake)
    tick_interval: float = DEFAULT_TICK_INTERVAL
    on_change: Callable[[TimerState], None] | None = None
    _phase: TimerPhase = field(default=TimerPhase.IDLE, init=False)
    _total_duration: float = field(default=0.0, init=False)
    _remaining: float = field(default=0.0, init=False)
    _target_end: datetime | None = field(default=None, init=False)
    _handle: PeriodicHandle | None = field(default=None, init=False)
    _lease_held: bool = field(default=False, init=False)

    @property
    def phase(self) -> TimerPhase:
        return self._phase

    @property
    def remaining(self) -> float:
        return self._remaining

    @property
    def total_duration(self) -> float:
        return self._total_duration

    @property
    def progress(self) -> float:
        """Fraction of time left, from 1.0 (full) down to 0.0."""
        if self._total_duration <= 0:
            return 1.0
        return min(1.0, max(0.0, self._remaining / self._total_duration))

    @property
    def state(self) -> TimerState:
        return TimerState(
            phase=self._phase,
            total_duration=self._total_duration,
            remaining=self._remaining,
            target_end=self._target_end,
            progress=self.progress,
        )

    def start(self, duration: float) -> TimerState:
        """Begin a countdown of ``duration`` seconds from any phase."""
        self._halt()
        self._total_duration = duration
        now = self.clock.now()
        if duration <= 0:
            self._remaining = 0.0
            self._target_end = now
            self._phase = TimerPhase.COMPLETE
            logger.debug("Timer started with non-positive duration; complete")
            return self._notify()
        self._remaining = duration
        self._target_end = now + timedelta(seconds=duration)
        self._phase = TimerPhase.RUNNING
        self._begin_sampling()
        logger.debug("Timer started for %.1fs", duration)
        return self._notify()

    def tick(self) -> TimerState:
        """Recompute remaining time from the target instant."""
        if self._phase is not TimerPhase.RUNNING or self._target_end is None:
            return self.state
        remaining = (self._target_end - self.clock.now()).total_seconds()
        if remaining <= 0:
            self._remaining = 0.0
            self._halt()
            self._phase = TimerPhase.COMPLETE
            logger.debug("Timer complete")
        else:
            self._remaining = remaining
        return self._notify()

    def resynchronize(self) -> TimerState:
        """Catch up after the host regains the foreground."""
        return self.tick()

    def pause(self) -> TimerState:
        """Freeze the countdown at the last sampled remaining time."""
        if self._phase is not TimerPhase.RUNNING:
            return self.state
        self._halt()
        self._phase = TimerPhase.PAUSED
        logger.debug("Timer paused with %.1fs remaining", self._remaining)
        return self._notify()

    def resume(self) -> TimerState:
        """Continue a paused countdown from where it stopped."""
        if self._phase is not TimerPhase.PAUSED or self._remaining <= 0:
            return self.state
        self._target_end = self.clock.now() + timedelta(seconds=self._remaining)
        self._phase = TimerPhase.RUNNING
        self._begin_sampling()
        logger.debug("Timer resumed with %.1fs remaining", self._remaining)
        return self._notify()

    def stop(self) -> TimerState:
        """Abandon a running or paused countdown, keeping its remaining time."""
        if self._phase not in (TimerPhase.RUNNING, TimerPhase.PAUSED):
            return self.state
        self._halt()
        self._target_end = None
        self._phase = TimerPhase.IDLE
        logger.debug("Timer stopped")
        return self._notify()

    def reset(self) -> TimerState:
        """Return to idle with the full duration restored."""
        self._halt()
        self._remaining = self._total_duration
        self._target_end = None
        self._phase = TimerPhase.IDLE
        return self._notify()

    def _begin_sampling(self) -> None:
        if not self._lease_held:
            self.keep_awake.acquire()
            self._lease_held = True
        self._handle = self.scheduler.schedule(self.tick_interval, self.tick)

    def _halt(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self._lease_held:
            self.keep_awake.release()
            self._lease_held = False

    def _notify(self) -> TimerState:
        state = self.state
        if self.on_change is not None:
            self.on_change(state)
        return state
