"""Poll-until-terminal loop shared by the document and search-job pollers.

The loop is framework-free: the status fetcher, the stop flag, the sleep
function and the clock are all injected so the loop can run inside a worker
thread or be driven step by step from a test.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Optional

from .error_handlers import BackendError, PollTimeoutError

logger = logging.getLogger(__name__)

STOP_CHECK_SECONDS = 0.5


@dataclass
class PollOutcome:
    """Final result of a polling run."""

    status: str
    payload: Dict[str, Any] = field(default_factory=dict)
    attempts: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == 'completed'


class StatusPoller:
    """
    Fetch a job status on a fixed interval until it reaches a terminal state.

    Lifecycle::

        poller = StatusPoller(fetch, interval=2, timeout=300)
        outcome = poller.run()        # blocks, raises PollTimeoutError
        status, payload = poller.poll_once()   # manual "Check Status"

    Transport and HTTP errors while polling are logged and the loop keeps
    going; only the timeout ends a run that never reaches a terminal status.
    """

    terminal_statuses: FrozenSet[str] = frozenset({'completed', 'failed'})

    def __init__(
        self,
        fetch_status: Callable[[], Dict[str, Any]],
        interval: float,
        timeout: float,
        *,
        should_stop: Optional[Callable[[], bool]] = None,
        on_status: Optional[Callable[[str, Dict[str, Any]], None]] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        terminal_statuses: Optional[FrozenSet[str]] = None,
        timeout_message: Optional[str] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.fetch_status = fetch_status
        self.interval = interval
        self.timeout = timeout
        self.should_stop = should_stop or (lambda: False)
        self.on_status = on_status
        self.sleep = sleep
        self.clock = clock
        self.timeout_message = timeout_message
        if terminal_statuses is not None:
            self.terminal_statuses = frozenset(terminal_statuses)

    @staticmethod
    def status_of(payload: Dict[str, Any]) -> str:
        """Read the job status from a ``{"data": {"status": ...}}`` envelope."""
        data = payload.get('data') if isinstance(payload, dict) else None
        if isinstance(data, dict) and data.get('status'):
            return str(data['status'])
        return 'unknown'

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal_statuses

    def poll_once(self) -> tuple:
        """Fetch the status a single time and report it to ``on_status``."""
        payload = self.fetch_status()
        status = self.status_of(payload)
        if self.on_status is not None:
            self.on_status(status, payload)
        return status, payload

    def run(self) -> PollOutcome:
        """Poll until a terminal status, a stop request, or the timeout."""
        deadline = self.clock() + self.timeout
        attempts = 0

        while True:
            if self.should_stop():
                logger.info("Polling stopped on request after %d attempt(s)", attempts)
                return PollOutcome('cancelled', attempts=attempts)

            attempts += 1
            try:
                status, payload = self.poll_once()
            except BackendError as exc:
                logger.warning("Status poll attempt %d failed: %s", attempts, exc.message)
            else:
                if self.is_terminal(status):
                    return PollOutcome(status, payload, attempts)

            remaining = deadline - self.clock()
            if remaining <= 0:
                if self.timeout_message:
                    raise PollTimeoutError(self.timeout_message)
                raise PollTimeoutError()
            if not self._sleep_until_next(min(self.interval, remaining)):
                return PollOutcome('cancelled', attempts=attempts)

    def _sleep_until_next(self, seconds: float) -> bool:
        """Sleep in short chunks, returning False as soon as a stop is requested."""
        waited = 0.0
        while waited < seconds:
            chunk = min(STOP_CHECK_SECONDS, seconds - waited)
            self.sleep(chunk)
            waited += chunk
            if self.should_stop():
                return False
        return True
