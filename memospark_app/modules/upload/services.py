"""
Document upload and processing poller.

Signed-in users upload to ``documents/upload``; guests use the guest
endpoints and their results only ever live in this client's store. When the
backend reports ``completed`` the generated content is staged under
``generatedContent`` for the study page.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from flask import current_app

from ...core.error_handlers import NotFoundError, ValidationError
from ...core.signals import document_processed, safe_send
from ...models import PollingJob
from ...services import get_backend_client
from ...services.backend_client import BackendClient
from ...services.endpoints import DOCUMENTS
from ...services.polling_jobs import (
    PollingJobRunner,
    create_job,
    latest_job,
    request_stop,
    start_polling_thread,
)
from ..session_store import SessionStore, StorageKeys, get_session_store
from ..study.schemas import content_from_status, dump_content

PROCESSING_TIMEOUT_MESSAGE = 'Document processing is taking longer than expected. Please try again later.'


def status_endpoint(document_id: str, authenticated: bool) -> str:
    if authenticated:
        return DOCUMENTS['STATUS'](document_id)
    return DOCUMENTS['GUEST_STATUS'](document_id)


def stage_processed_document(store: SessionStore, document_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Write the generated content of a finished document to the store."""
    content = content_from_status(payload)
    if content is None or content.is_empty:
        raise NotFoundError('The document was processed but no study content was generated', resource='content')

    data = payload.get('data') or {}
    staged = dump_content(content)
    staged['document_id'] = str(document_id)
    if data.get('deck_id'):
        staged['deck_id'] = str(data['deck_id'])
    store.set(StorageKeys.GENERATED_CONTENT, staged)

    deck_name = data.get('deck_name')
    if deck_name:
        store.set(StorageKeys.CURRENT_DECK_NAME, deck_name)
    # new material replaces whatever session was in progress
    store.clear_study_session()
    return {
        'document_id': str(document_id),
        'deck_id': staged.get('deck_id'),
        'deck_name': deck_name,
        'counts': content.counts(),
    }


class DocumentStatusPoller:
    """Poll one document until processing finishes, then stage its content."""

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
        self.runner = PollingJobRunner(
            job,
            self.fetch_status,
            self.on_completed,
            interval=interval,
            timeout=timeout,
            timeout_message=PROCESSING_TIMEOUT_MESSAGE,
            **poller_options,
        )

    @classmethod
    def from_config(cls, job: PollingJob, client: BackendClient, store: SessionStore, **poller_options):
        config = current_app.config
        return cls(
            job,
            client,
            store,
            interval=config.get('UPLOAD_POLL_INTERVAL', 3),
            timeout=config.get('UPLOAD_POLL_TIMEOUT', 300),
            **poller_options,
        )

    def fetch_status(self) -> Dict[str, Any]:
        return self.client.get(status_endpoint(self.job.remote_id, self.client.is_authenticated))

    def on_completed(self, job: PollingJob, payload: Dict[str, Any]) -> Dict[str, Any]:
        result = stage_processed_document(self.store, job.remote_id, payload)
        current_app.logger.info(f"Document {job.remote_id} processed: {result['counts']}")
        safe_send(
            document_processed, self, current_app.logger,
            client_id=job.client_id, document_id=job.remote_id, counts=result['counts'],
        )
        return result

    def poll(self) -> PollingJob:
        return self.runner.run()

    def check_once(self) -> PollingJob:
        return self.runner.check_once()


class UploadService:

    def __init__(self, client: BackendClient, store: SessionStore, client_id: str):
        self.client = client
        self.store = store
        self.client_id = client_id

    @classmethod
    def for_request(cls, client_id: str) -> 'UploadService':
        return cls(get_backend_client(), get_session_store(client_id), client_id)

    def upload(self, file_storage, deck_name: Optional[str], language: str, card_types, difficulty: str) -> PollingJob:
        """Send the document to the backend and start polling its status."""
        endpoint = DOCUMENTS['UPLOAD'] if self.client.is_authenticated else DOCUMENTS['GUEST_UPLOAD']
        form_data = {
            'language': language,
            'difficulty': difficulty,
            'card_types[]': list(card_types or ['flashcard']),
        }
        if deck_name:
            form_data['deck_name'] = deck_name
        files = {'file': (file_storage.filename, file_storage.stream, file_storage.mimetype)}

        payload = self.client.post(endpoint, files=files, data=form_data)
        data = payload.get('data') if isinstance(payload, dict) else None
        document_id = data.get('document_id') if isinstance(data, dict) else None
        if not document_id:
            raise ValidationError('The backend did not return a document id')

        if deck_name:
            self.store.set(StorageKeys.CURRENT_DECK_NAME, deck_name)
        self.store.remove(StorageKeys.GENERATED_CONTENT)

        job = create_job(self.client_id, PollingJob.KIND_DOCUMENT, document_id, 'Document uploaded, processing...')
        current_app.logger.info(f"Uploaded {file_storage.filename} as document {document_id} (job {job.job_id})")

        token = self.client.access_token
        client_id = self.client_id
        start_polling_thread(job, lambda row: _build_runner(row, token, client_id))
        return job

    def get_job(self, job_id: Any) -> PollingJob:
        job = PollingJob.query.filter_by(
            job_id=job_id, client_id=self.client_id, kind=PollingJob.KIND_DOCUMENT
        ).first()
        if job is None:
            raise NotFoundError('Upload job not found', resource='upload_job')
        return job

    def check_status(self, job_id: Any) -> PollingJob:
        job = self.get_job(job_id)
        if job.is_finished:
            return job
        return DocumentStatusPoller.from_config(job, self.client, self.store).check_once()

    def cancel(self, job_id: Any) -> PollingJob:
        return request_stop(self.get_job(job_id))

    def current_job(self) -> Optional[PollingJob]:
        return latest_job(self.client_id, PollingJob.KIND_DOCUMENT)


def _build_runner(job: PollingJob, access_token: Optional[str], client_id: str) -> PollingJobRunner:
    """Runner for the worker thread, which has no request (and no signed-in user)."""
    client = get_backend_client(access_token=access_token or '')
    store = get_session_store(client_id)
    return DocumentStatusPoller.from_config(job, client, store).runner
