import json
from unittest import mock

import pytest
import requests

from memospark_app.core.error_handlers import BackendError, BackendUnavailable
from memospark_app.services.backend_client import BackendClient


def _response(status=200, body=None, content_type='application/json', text=None):
    response = requests.Response()
    response.status_code = status
    response.headers['content-type'] = content_type
    if text is not None:
        response._content = text.encode('utf-8')
    elif body is not None:
        response._content = json.dumps(body).encode('utf-8')
    else:
        response._content = b''
    return response


def _client(response=None, error=None, token='token-123'):
    http = mock.Mock(spec=requests.Session)
    if error is not None:
        http.request.side_effect = error
    else:
        http.request.return_value = response
    return BackendClient('http://backend.test/', access_token=token, timeout=5, http=http), http


def test_requests_carry_the_bearer_token():
    client, http = _client(_response(body={'success': True, 'data': []}))
    assert client.get('/api/decks', params={'page': 2}) == {'success': True, 'data': []}

    method, url = http.request.call_args.args
    kwargs = http.request.call_args.kwargs
    assert (method, url) == ('GET', 'http://backend.test/api/decks')
    assert kwargs['headers']['Authorization'] == 'Bearer token-123'
    assert kwargs['params'] == {'page': 2}
    assert kwargs['timeout'] == 5


def test_guests_send_no_authorization_header():
    client, http = _client(_response(body={}), token=None)
    client.post('/api/guest/documents/upload', files={'file': ('a.txt', b'x', 'text/plain')})
    headers = http.request.call_args.kwargs['headers']
    assert 'Authorization' not in headers
    assert 'Content-Type' not in headers
    assert not client.is_authenticated


def test_error_text_comes_from_the_backend():
    client, _ = _client(_response(status=422, body={'error': 'Deck name taken'}))
    with pytest.raises(BackendError) as excinfo:
        client.put('/api/decks/1', json={'name': 'x'})
    assert excinfo.value.message == 'Deck name taken'
    assert excinfo.value.backend_status == 422


def test_html_error_pages_are_reported_by_status():
    client, _ = _client(_response(status=500, text='<html>boom</html>', content_type='text/html'))
    with pytest.raises(BackendError) as excinfo:
        client.get('/api/dashboard')
    assert excinfo.value.message == 'Server returned HTML error page (500)'


def test_connection_errors_become_backend_unavailable():
    client, _ = _client(error=requests.ConnectionError('refused'))
    with pytest.raises(BackendUnavailable) as excinfo:
        client.get('/api/dashboard')
    assert excinfo.value.status_code == 503


def test_empty_body_decodes_to_empty_dict():
    client, _ = _client(_response(status=204))
    assert client.delete('/api/student-goals/3') == {}
