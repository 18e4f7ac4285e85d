"""
Search-flashcards service and job poller.

Generation is asynchronous on the backend: ``generate`` returns a job id,
the job is polled every ``SEARCH_POLL_INTERVAL`` seconds until it completes,
fails or the timeout is reached, and the finished search is staged in the
store for the study page.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from flask import current_app

from ...core.error_handlers import BackendError, NotFoundError, ValidationError
from ...core.signals import safe_send, search_job_completed
from ...models import PollingJob
from ...services import get_backend_client
from ...services.backend_client import BackendClient
from ...services.endpoints import SEARCH_FLASHCARDS
from ...services.polling_jobs import (
    PollingJobRunner,
    create_job,
    latest_job,
    request_stop,
    start_polling_thread,
)
from ..session_store import SessionStore, get_session_store
from ..study.services import stage_search_details, stage_search_flashcards

JOB_TERMINAL_STATUSES = frozenset({'completed', 'failed', 'not_found'})
GENERATION_TIMEOUT_MESSAGE = 'Flashcard generation is taking longer than expected. Please try again later.'


class SearchFlashcardsService:
    """Thin wrapper over the ``/api/search-flashcards`` endpoints."""

    def __init__(self, client: BackendClient):
        self.client = client

    def generate(self, request_body: Dict[str, Any]) -> Dict[str, Any]:
        payload = self.client.post(SEARCH_FLASHCARDS['GENERATE'], json=request_body)
        data = payload.get('data') if isinstance(payload, dict) else None
        if not isinstance(data, dict) or not data.get('job_id'):
            message = payload.get('message') if isinstance(payload, dict) else None
            raise ValidationError(message or 'The backend did not return a job id')
        return data

    def job_status(self, job_id: str) -> Dict[str, Any]:
        return self.client.get(SEARCH_FLASHCARDS['JOB_STATUS'](job_id))

    def topics(self):
        return self.client.get(SEARCH_FLASHCARDS['TOPICS']).get('data') or []

    def health(self):
        return self.client.get(SEARCH_FLASHCARDS['HEALTH']).get('data')

    def history(self, page: int = 1, per_page: int = 10, status: str = None, topic: str = None):
        params = {'page': page, 'per_page': per_page}
        if status:
            params['status'] = status
        if topic:
            params['topic'] = topic
        return self.client.get(SEARCH_FLASHCARDS['HISTORY'], params=params).get('data')

    def details(self, search_id: Any):
        return self.client.get(SEARCH_FLASHCARDS['SEARCH_DETAILS'](search_id)).get('data')

    def recent(self, limit: int = 5, days: int = 30):
        params = {'limit': limit, 'days': days}
        return self.client.get(SEARCH_FLASHCARDS['RECENT'], params=params).get('data') or []

    def stats(self, days: int = 30):
        return self.client.get(SEARCH_FLASHCARDS['STATS'], params={'days': days}).get('data')


def stage_finished_job(client: BackendClient, store: SessionStore, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Stage the flashcards of a completed job.

    The search details carry the durable card ids, so they are preferred;
    the job result is used when the job has no search id or the details
    cannot be fetched.
    """
    data = payload.get('data') or {}
    search_id = data.get('search_id')
    topic = data.get('topic')
    result = data.get('result') or {}

    if search_id:
        try:
            staged = stage_search_details(client, store, search_id)
            return {'search_id': staged['search_id'], 'topic': staged['topic'], 'count': len(staged['flashcards'])}
        except (BackendError, NotFoundError) as exc:
            current_app.logger.warning(f"Search details for {search_id} unavailable, using job result: {exc.message}")

    flashcards = result.get('flashcards') or []
    if not flashcards:
        raise NotFoundError('The search finished without flashcards', resource='flashcards')
    staged = stage_search_flashcards(store, flashcards, topic or result.get('topic'), search_id)
    return {'search_id': search_id, 'topic': staged['topic'], 'count': len(staged['flashcards'])}


class SearchJobPoller:
    """Poll a generation job and stage the finished search for study."""

    def __init__(
        self,
        job: PollingJob,
        client: BackendClient,
        store: SessionStore,
        interval: float,
        timeout: float,
        **poller_options,
    ):
        self.job = job
        self.client = client
        self.store = store
        self.service = SearchFlashcardsService(client)
        self.runner = PollingJobRunner(
            job,
            self.fetch_status,
            self.on_completed,
            interval=interval,
            timeout=timeout,
            terminal_statuses=JOB_TERMINAL_STATUSES,
            timeout_message=GENERATION_TIMEOUT_MESSAGE,
            **poller_options,
        )

    @classmethod
    def from_config(cls, job: PollingJob, client: BackendClient, store: SessionStore, **poller_options):
        config = current_app.config
        return cls(
            job,
            client,
            store,
            interval=config.get('SEARCH_POLL_INTERVAL', 2),
            timeout=config.get('SEARCH_POLL_TIMEOUT', 300),
            **poller_options,
        )

    def fetch_status(self) -> Dict[str, Any]:
        return self.service.job_status(self.job.remote_id)

    def on_completed(self, job: PollingJob, payload: Dict[str, Any]) -> Dict[str, Any]:
        result = stage_finished_job(self.client, self.store, payload)
        current_app.logger.info(f"Search job {job.remote_id} staged {result['count']} flashcards")
        safe_send(
            search_job_completed, self, current_app.logger,
            client_id=job.client_id, job_id=job.remote_id, search_id=result.get('search_id'),
        )
        return result

    def poll(self) -> PollingJob:
        return self.runner.run()

    def check_once(self) -> PollingJob:
        return self.runner.check_once()


class SearchJobService:
    """Start, inspect and cancel generation jobs of one client."""

    def __init__(self, client: BackendClient, store: SessionStore, client_id: str):
        self.client = client
        self.store = store
        self.client_id = client_id
        self.service = SearchFlashcardsService(client)

    @classmethod
    def for_request(cls, client_id: str) -> 'SearchJobService':
        return cls(get_backend_client(), get_session_store(client_id), client_id)

    def start(self, request_body: Dict[str, Any]) -> PollingJob:
        data = self.service.generate(request_body)
        job = create_job(
            self.client_id,
            PollingJob.KIND_SEARCH,
            data['job_id'],
            data.get('message') or f"Generating flashcards about {request_body.get('topic')}",
        )
        current_app.logger.info(f"Search job {data['job_id']} queued for '{request_body.get('topic')}'")

        token = self.client.access_token
        client_id = self.client_id
        start_polling_thread(job, lambda row: _build_runner(row, token, client_id))
        return job

    def get_job(self, job_id: Any) -> PollingJob:
        job = PollingJob.query.filter_by(
            job_id=job_id, client_id=self.client_id, kind=PollingJob.KIND_SEARCH
        ).first()
        if job is None:
            raise NotFoundError('Search job not found', resource='search_job')
        return job

    def check_status(self, job_id: Any) -> PollingJob:
        job = self.get_job(job_id)
        if job.is_finished:
            return job
        return SearchJobPoller.from_config(job, self.client, self.store).check_once()

    def cancel(self, job_id: Any) -> PollingJob:
        return request_stop(self.get_job(job_id))

    def current_job(self) -> Optional[PollingJob]:
        return latest_job(self.client_id, PollingJob.KIND_SEARCH)

    def stage_for_study(self, search_id: Any) -> Dict[str, Any]:
        """Stage a previous search so the study page can load it."""
        staged = stage_search_details(self.client, self.store, search_id)
        return {'search_id': staged['search_id'], 'topic': staged['topic'], 'count': len(staged['flashcards'])}


def _build_runner(job: PollingJob, access_token: Optional[str], client_id: str) -> PollingJobRunner:
    client = get_backend_client(access_token=access_token or '')
    store = get_session_store(client_id)
    return SearchJobPoller.from_config(job, client, store).runner
