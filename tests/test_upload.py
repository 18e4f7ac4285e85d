import io

import pytest

from memospark_app.models import PollingJob
from memospark_app.modules.session_store import StorageKeys, get_session_store


def _upload(client, filename='notes.pdf', **fields):
    data = {
        'file': (io.BytesIO(b'%PDF-1.4 lecture notes'), filename),
        'language': 'en',
        'difficulty': 'beginner',
        'card_types': ['flashcard', 'quiz'],
    }
    data.update(fields)
    return client.post('/upload', data=data, content_type='multipart/form-data')


def _client_id(client):
    with client.session_transaction() as session:
        return session['memo_client_id']


@pytest.fixture
def processed(backend, materials):
    """Guest upload endpoints answering 'processing' once, then 'completed'."""
    backend.on('POST', '/api/guest/documents/upload', {'success': True, 'data': {'document_id': 55}})
    backend.on('GET', '/api/guest/documents/55/status', [
        {'success': True, 'data': {'status': 'processing', 'progress': 40, 'message': 'Extracting text'}},
        {'success': True, 'data': {
            'status': 'completed',
            'progress': 100,
            'deck_name': 'Biology 101',
            'generated_content': materials(flashcards=3, quizzes=1),
        }},
    ])
    return backend


def test_guest_upload_creates_a_polling_job(client, processed):
    response = _upload(client, deck_name='  Biology 101  ')
    assert response.status_code == 202
    job = response.get_json()['data']
    assert job['status'] == PollingJob.STATUS_PENDING
    assert job['remote_id'] == '55'

    call = processed.calls_to('POST', '/api/guest/documents/upload')[0]
    assert call['data']['deck_name'] == 'Biology 101'
    assert call['data']['card_types[]'] == ['flashcard', 'quiz']
    assert call['files']['file'][0] == 'notes.pdf'


def test_status_checks_stage_the_generated_content(app, client, processed):
    job_id = _upload(client).get_json()['data']['job_id']

    first = client.get(f'/upload/{job_id}/status').get_json()['data']
    assert first['status'] == PollingJob.STATUS_PROCESSING
    assert first['progress'] == 40

    second = client.get(f'/upload/{job_id}/status').get_json()['data']
    assert second['status'] == PollingJob.STATUS_COMPLETED
    assert second['result']['counts'] == {'flashcards': 3, 'quizzes': 1, 'exercises': 0}

    with app.app_context():
        store = get_session_store(_client_id(client))
        assert store.get(StorageKeys.CURRENT_DECK_NAME) == 'Biology 101'
        assert store.get(StorageKeys.GENERATED_CONTENT)['document_id'] == '55'

    state = client.post('/study/load', json={}).get_json()['data']
    assert state['deck_identifier'] == 'document:55'
    assert state['counts']['flashcards'] == 3
    assert state['active_tab'] == 'flashcards'
    # guests never open a remote session
    assert processed.calls_to('POST', '/api/study/start-session') == []


def test_unsupported_file_type_is_rejected(client, processed):
    response = _upload(client, filename='setup.exe')
    assert response.status_code == 400
    assert response.get_json()['code'] == 'VALIDATION_ERROR'
    assert processed.calls_to('POST', '/api/guest/documents/upload') == []


def test_cancel_stops_an_unpolled_job(client, processed):
    job_id = _upload(client).get_json()['data']['job_id']
    response = client.post(f'/upload/{job_id}/cancel')
    assert response.get_json()['data']['status'] == PollingJob.STATUS_CANCELLED

    current = client.get('/upload/job').get_json()['data']
    assert current['active'] is False


def test_jobs_of_other_browsers_are_not_visible(app, client, processed):
    job_id = _upload(client).get_json()['data']['job_id']
    other = app.test_client()
    response = other.get(f'/upload/{job_id}/status')
    assert response.status_code == 404


def test_completed_document_without_content_fails_the_job(client, backend):
    backend.on('POST', '/api/guest/documents/upload', {'success': True, 'data': {'document_id': 60}})
    backend.on('GET', '/api/guest/documents/60/status', {
        'success': True, 'data': {'status': 'completed', 'generated_content': None},
    })
    job_id = _upload(client).get_json()['data']['job_id']
    job = client.get(f'/upload/{job_id}/status').get_json()['data']
    assert job['status'] == PollingJob.STATUS_FAILED

    response = client.post('/study/load', json={})
    assert response.status_code == 404
    assert response.get_json()['code'] == 'MATERIALS_NOT_FOUND'
