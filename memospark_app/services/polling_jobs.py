"""Background execution of status pollers, tracked in ``polling_jobs``.

A route creates a :class:`PollingJob` row and calls
:func:`start_polling_thread`; the worker thread runs a
:class:`PollingJobRunner` inside its own application context and keeps the
row current so the browser can read progress with a plain GET.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..core.error_handlers import MemoSparkError, PollTimeoutError
from ..core.polling import StatusPoller
from ..db_instance import db
from ..models import PollingJob

CompletionHandler = Callable[[PollingJob, Dict[str, Any]], Optional[Dict[str, Any]]]


def _data(payload: Dict[str, Any]) -> Dict[str, Any]:
    data = payload.get('data') if isinstance(payload, dict) else None
    return data if isinstance(data, dict) else {}


class PollingJobRunner:
    """Drive a :class:`StatusPoller` for one job row."""

    def __init__(
        self,
        job: PollingJob,
        fetch_status: Callable[[], Dict[str, Any]],
        on_completed: CompletionHandler,
        *,
        interval: float,
        timeout: float,
        terminal_statuses=None,
        timeout_message: Optional[str] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.job = job
        self.on_completed = on_completed
        self.poller = StatusPoller(
            fetch_status,
            interval=interval,
            timeout=timeout,
            should_stop=self.should_stop,
            on_status=self.record_status,
            sleep=sleep,
            clock=clock,
            terminal_statuses=terminal_statuses,
            timeout_message=timeout_message,
        )

    def should_stop(self) -> bool:
        db.session.refresh(self.job)
        return bool(self.job.stop_requested)

    def _commit(self) -> None:
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise

    def record_status(self, status: str, payload: Dict[str, Any]) -> None:
        data = _data(payload)
        if not self.job.is_finished and status not in self.poller.terminal_statuses:
            self.job.status = PollingJob.STATUS_PROCESSING
        if isinstance(data.get('progress'), (int, float)):
            self.job.progress = int(data['progress'])
        if data.get('message'):
            self.job.message = str(data['message'])
        self._commit()

    def _finish(self, status: str, message: Optional[str] = None, result: Any = None) -> PollingJob:
        self.job.status = status
        if message is not None:
            self.job.message = message
        if result is not None:
            self.job.result = result
        if status == PollingJob.STATUS_COMPLETED:
            self.job.progress = 100
        self._commit()
        return self.job

    def _handle_terminal(self, status: str, payload: Dict[str, Any]) -> PollingJob:
        if status == 'completed':
            try:
                result = self.on_completed(self.job, payload)
            except MemoSparkError as exc:
                current_app.logger.warning(f"Job {self.job.job_id} finished but could not be staged: {exc.message}")
                return self._finish(PollingJob.STATUS_FAILED, exc.message)
            return self._finish(PollingJob.STATUS_COMPLETED, _data(payload).get('message') or 'Completed', result)
        message = _data(payload).get('message') or 'Processing failed'
        return self._finish(PollingJob.STATUS_FAILED, message)

    def run(self) -> PollingJob:
        """Poll until the job ends; the outcome is written to the row."""
        self.job.status = PollingJob.STATUS_PROCESSING
        self._commit()
        try:
            outcome = self.poller.run()
        except PollTimeoutError as exc:
            current_app.logger.warning(f"Job {self.job.job_id} ({self.job.kind}) timed out")
            return self._finish(PollingJob.STATUS_TIMED_OUT, exc.message)

        if outcome.status == 'cancelled':
            return self._finish(PollingJob.STATUS_CANCELLED, 'Cancelled by user')
        return self._handle_terminal(outcome.status, outcome.payload)

    def check_once(self) -> PollingJob:
        """One manual status check ("Check Status")."""
        status, payload = self.poller.poll_once()
        if self.poller.is_terminal(status) and not self.job.is_finished:
            return self._handle_terminal(status, payload)
        return self.job


def create_job(client_id: str, kind: str, remote_id: Any, message: str = None) -> PollingJob:
    job = PollingJob(
        client_id=client_id,
        kind=kind,
        remote_id=str(remote_id),
        status=PollingJob.STATUS_PENDING,
        progress=0,
        message=message,
        stop_requested=False,
    )
    db.session.add(job)
    db.session.commit()
    return job


def latest_job(client_id: str, kind: str) -> Optional[PollingJob]:
    return (
        PollingJob.query.filter_by(client_id=client_id, kind=kind)
        .order_by(PollingJob.job_id.desc())
        .first()
    )


def request_stop(job: PollingJob) -> PollingJob:
    """Ask the worker to stop; a job nobody is polling is cancelled right away."""
    if job.is_finished:
        return job
    job.stop_requested = True
    if not _thread_alive(job):
        job.status = PollingJob.STATUS_CANCELLED
        job.message = 'Cancelled by user'
    db.session.commit()
    return job


def _thread_name(job_id: int) -> str:
    return f'polling_job_{job_id}'


def _thread_alive(job: PollingJob) -> bool:
    name = _thread_name(job.job_id)
    return any(thread.name == name for thread in threading.enumerate())


def _run_in_app_context(app, job_id: int, build_runner: Callable[[PollingJob], PollingJobRunner]) -> None:
    """Thread body: run the job with its own application context."""
    with app.app_context():
        job = db.session.get(PollingJob, job_id)
        if job is None:
            app.logger.error(f"Polling job {job_id} disappeared before it started")
            return
        try:
            build_runner(job).run()
        except Exception as exc:
            db.session.rollback()
            app.logger.exception(f"Polling job {job_id} crashed")
            job.status = PollingJob.STATUS_FAILED
            job.message = f"Error: {exc}"
            db.session.commit()
        finally:
            db.session.remove()


def start_polling_thread(job: PollingJob, build_runner: Callable[[PollingJob], PollingJobRunner]) -> bool:
    """
    Start a daemon thread polling ``job``.

    Returns False when background polling is disabled; the browser then
    drives the job with manual status checks.
    """
    app = current_app._get_current_object()
    if not app.config.get('BACKGROUND_POLLING_ENABLED', True):
        app.logger.debug(f"Background polling disabled, job {job.job_id} waits for manual checks")
        return False

    thread = threading.Thread(
        target=_run_in_app_context,
        args=(app, job.job_id, build_runner),
        name=_thread_name(job.job_id),
    )
    thread.daemon = True
    thread.start()
    return True
