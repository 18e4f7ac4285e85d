"""Elapsed-time bookkeeping for study activities."""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Callable, Dict, Optional


class TimerState(str, Enum):
    STOPPED = 'stopped'
    RUNNING = 'running'
    PAUSED = 'paused'


class PauseReason(str, Enum):
    MANUAL = 'manual'
    COMPLETED = 'completed'


class ActivityTimer:
    """
    Stopwatch with an explicit STOPPED / RUNNING / PAUSED state.

    Elapsed seconds are derived from ``clock`` rather than counted by a tick,
    so a timer saved to the store and restored on the next request keeps
    running across the gap. The pause reason separates a user pause from the
    automatic pause when an activity is completed.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self.state = TimerState.STOPPED
        self.pause_reason: Optional[PauseReason] = None
        self._accumulated = 0.0
        self._started_at: Optional[float] = None

    @property
    def is_running(self) -> bool:
        return self.state is TimerState.RUNNING

    @property
    def is_paused(self) -> bool:
        return self.state is TimerState.PAUSED

    def paused_for(self, reason: PauseReason) -> bool:
        return self.is_paused and self.pause_reason is reason

    @property
    def elapsed(self) -> int:
        """Whole seconds measured so far."""
        total = self._accumulated
        if self.is_running and self._started_at is not None:
            total += max(0.0, self.clock() - self._started_at)
        return int(total)

    def start(self) -> None:
        if self.is_running:
            return
        self._started_at = self.clock()
        self.state = TimerState.RUNNING
        self.pause_reason = None

    def pause(self, reason: PauseReason = PauseReason.MANUAL) -> None:
        if not self.is_running:
            return
        self._accumulated += max(0.0, self.clock() - (self._started_at or self.clock()))
        self._started_at = None
        self.state = TimerState.PAUSED
        self.pause_reason = reason

    def resume(self) -> None:
        if self.is_paused:
            self.start()

    def stop(self) -> None:
        """Freeze the timer; elapsed time is kept until ``reset``."""
        if self.is_running:
            self._accumulated += max(0.0, self.clock() - (self._started_at or self.clock()))
        self._started_at = None
        self.state = TimerState.STOPPED
        self.pause_reason = None

    def reset(self) -> None:
        self._accumulated = 0.0
        self._started_at = None
        self.state = TimerState.STOPPED
        self.pause_reason = None

    def restart(self) -> None:
        self.reset()
        self.start()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'pause_reason': self.pause_reason.value if self.pause_reason else None,
            'accumulated': self._accumulated,
            'started_at': self._started_at,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], clock: Callable[[], float] = time.time) -> 'ActivityTimer':
        timer = cls(clock=clock)
        if not data:
            return timer
        timer.state = TimerState(data.get('state') or TimerState.STOPPED.value)
        reason = data.get('pause_reason')
        timer.pause_reason = PauseReason(reason) if reason else None
        timer._accumulated = float(data.get('accumulated') or 0.0)
        timer._started_at = data.get('started_at')
        if timer.is_running and timer._started_at is None:
            timer._started_at = clock()
        return timer
