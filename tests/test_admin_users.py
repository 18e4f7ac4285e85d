import pytest

from memospark_app.modules.admin.services import normalize_page


@pytest.fixture
def admin(sign_in, backend):
    sign_in(role='admin', user_id=1)
    return backend


def test_list_users_passes_page_and_trimmed_search(client, admin):
    admin.on('GET', '/api/admin/users', {
        'data': [{'id': 2, 'name': 'Minh'}],
        'current_page': 2,
        'last_page': 3,
        'per_page': 15,
        'total': 31,
        'from': 16,
        'to': 30,
    })
    data = client.get('/admin/users?page=2&search=%20minh%20').get_json()['data']

    assert admin.calls_to('GET', '/api/admin/users')[0]['params'] == {'page': 2, 'per_page': 15, 'search': 'minh'}
    assert data['users'] == [{'id': 2, 'name': 'Minh'}]
    assert (data['current_page'], data['last_page'], data['total']) == (2, 3, 31)


def test_blank_search_and_bad_page_are_ignored(client, admin):
    admin.on('GET', '/api/admin/users', {'data': []})
    client.get('/admin/users?page=-4&search=%20%20')
    assert admin.calls_to('GET', '/api/admin/users')[0]['params'] == {'page': 1, 'per_page': 15}


def test_normalize_page_of_a_plain_list():
    page = normalize_page([{'id': i} for i in range(16)], page=1, per_page=15)
    assert page['total'] == 16
    assert page['last_page'] == 2
    assert page['current_page'] == 1


def test_admins_cannot_deactivate_themselves(client, admin):
    response = client.post('/admin/users/1/deactivate')
    assert response.status_code == 400
    assert admin.calls_to('POST', '/api/admin/users/1/deactivate') == []


def test_deactivate_and_activate_another_user(client, admin):
    admin.on('POST', '/api/admin/users/2/deactivate', {'success': True, 'data': {'id': 2, 'is_active': False}})
    admin.on('POST', '/api/admin/users/2/activate', {'success': True, 'data': {'id': 2, 'is_active': True}})

    response = client.post('/admin/users/2/deactivate').get_json()
    assert response['data'] == {'id': 2, 'is_active': False}
    assert response['message'] == 'User deactivated'
    assert client.post('/admin/users/2/activate').get_json()['data']['is_active'] is True


def test_update_user_validates_the_form(client, admin):
    admin.on('PUT', '/api/admin/users/2', {'success': True, 'data': {'id': 2}})

    bad = client.put('/admin/users/2', json={'name': 'Minh', 'email': 'not-an-email', 'user_type': 'student'})
    assert bad.status_code == 400

    ok = client.put('/admin/users/2', json={
        'name': ' Minh ', 'email': 'minh@example.com', 'user_type': 'admin', 'points': 0,
    })
    assert ok.status_code == 200
    assert admin.calls_to('PUT', '/api/admin/users/2')[0]['json'] == {
        'name': 'Minh', 'email': 'minh@example.com', 'user_type': 'admin', 'points': 0,
    }


def test_students_are_refused(client, sign_in, backend):
    sign_in()
    assert client.get('/admin/users').status_code == 403


def test_guests_are_asked_to_sign_in(client, backend):
    assert client.get('/admin/users').status_code == 401
