from memospark_app.core.error_handlers import BackendError
from memospark_app.modules.session_store import StorageKeys, get_session_store


def _store(app, client):
    with client.session_transaction() as session:
        client_id = session['memo_client_id']
    with app.app_context():
        return get_session_store(client_id)


def test_login_returns_the_public_profile(client, sign_in, backend):
    user = sign_in()
    assert user == {'id': '7', 'name': 'Lan', 'email': 'lan@example.com', 'role': 'student', 'is_admin': False}
    assert backend.calls_to('POST', '/api/login')[0]['json'] == {'email': 'lan@example.com', 'password': 'secret'}

    me = client.get('/auth/me').get_json()['data']
    assert me['authenticated'] is True
    assert 'access_token' not in me


def test_requests_after_login_carry_the_token(client, sign_in, backend):
    sign_in()
    backend.on('GET', '/api/decks', {'success': True, 'data': []})
    client.get('/decks')
    assert backend.access_token == 'token-123'


def test_admin_role_comes_from_user_type(sign_in):
    assert sign_in(role='admin')['is_admin'] is True


def test_rejected_login(client, backend):
    backend.on('POST', '/api/login', BackendError('Invalid credentials', backend_status=401))
    response = client.post('/auth/login', json={'email': 'lan@example.com', 'password': 'wrong'})
    assert response.status_code == 401
    body = response.get_json()
    assert body['code'] == 'AUTH_REQUIRED'
    assert body['message'] == 'Invalid credentials'
    assert client.get('/auth/me').get_json()['data'] == {'authenticated': False}


def test_login_form_is_validated(client, backend):
    response = client.post('/auth/login', json={'email': 'lan', 'password': ''})
    assert response.status_code == 400
    assert backend.calls == []


def test_unexpected_login_response(client, backend):
    backend.on('POST', '/api/login', {'user': {}})
    response = client.post('/auth/login', json={'email': 'lan@example.com', 'password': 'secret'})
    assert response.status_code == 502


def test_logout_clears_user_data(app, client, sign_in, backend):
    sign_in()
    store = _store(app, client)
    with app.app_context():
        store.set(StorageKeys.DASHBOARD_CACHE, {'user_id': '7', 'sections': {}})
        store.set(StorageKeys.GENERATED_CONTENT, {'flashcards': []})

    # the backend logout failing does not keep the user signed in
    response = client.post('/auth/logout')
    assert response.status_code == 200

    with app.app_context():
        assert not store.has(StorageKeys.DASHBOARD_CACHE)
        assert not store.has(StorageKeys.GENERATED_CONTENT)
    assert client.get('/auth/me').get_json()['data'] == {'authenticated': False}


def test_guests_cannot_bookmark(client, backend, materials):
    backend.on('GET', '/api/decks/12/materials', materials(flashcards=2))
    client.post('/study/load', json={'deck': '12'})
    response = client.post('/study/bookmark/0')
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Please sign in to bookmark flashcards'


def test_csrf_token_endpoint(client):
    assert client.get('/auth/csrf-token').get_json()['data']['csrf_token']
