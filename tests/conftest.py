import copy

import pytest

from memospark_app import create_app, db
from memospark_app.config import Config
from memospark_app.core.error_handlers import BackendError


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'check_same_thread': False}
    }
    WTF_CSRF_ENABLED = False
    BACKGROUND_POLLING_ENABLED = False
    MEMOSPARK_API_BASE_URL = 'http://backend.test'


class FakeBackend:
    """Stands in for BackendClient: canned responses per (method, path), every call recorded."""

    def __init__(self):
        self.access_token = None
        self.responses = {}
        self.calls = []

    @property
    def is_authenticated(self):
        return bool(self.access_token)

    def on(self, method, path, response):
        """A list answers in order and keeps repeating its last item."""
        self.responses[(method, path)] = response

    def request(self, method, path, **kwargs):
        self.calls.append((method, path, kwargs))
        if (method, path) not in self.responses:
            raise BackendError(f'No fake response for {method} {path}', backend_status=404)
        response = self.responses[(method, path)]
        if isinstance(response, list):
            response = response.pop(0) if len(response) > 1 else response[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(**kwargs)
        return copy.deepcopy(response)

    def get(self, path, **kwargs):
        return self.request('GET', path, **kwargs)

    def post(self, path, **kwargs):
        return self.request('POST', path, **kwargs)

    def put(self, path, **kwargs):
        return self.request('PUT', path, **kwargs)

    def delete(self, path, **kwargs):
        return self.request('DELETE', path, **kwargs)

    def calls_to(self, method, path):
        return [kwargs for m, p, kwargs in self.calls if m == method and p == path]


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def backend(app):
    fake = FakeBackend()

    def factory(token):
        fake.access_token = token
        return fake

    app.extensions['memospark_backend_factory'] = factory
    return fake


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sign_in(client, backend):
    def _sign_in(role='student', user_id=7):
        backend.on('POST', '/api/login', {
            'user': {'id': user_id, 'name': 'Lan', 'email': 'lan@example.com', 'user_type': role},
            'access_token': 'token-123',
        })
        response = client.post('/auth/login', json={'email': 'lan@example.com', 'password': 'secret'})
        assert response.status_code == 200
        return response.get_json()['data']

    return _sign_in


def _flashcards(count, start_id=101):
    return [
        {'id': start_id + i if start_id else None, 'question': f'Question {i + 1}', 'answer': f'Answer {i + 1}'}
        for i in range(count)
    ]


def _quizzes(count):
    return [
        {
            'question': f'Quiz {i + 1}',
            'options': ['A', 'B', 'C', 'D'],
            'correct_answer_option': 'B',
        }
        for i in range(count)
    ]


def _exercises(count):
    return [
        {'type': 'fill_blank', 'instruction': 'Fill the blank', 'exercise_text': f'Item {i + 1} is ___',
         'answer': f'word{i + 1}'}
        for i in range(count)
    ]


@pytest.fixture
def materials():
    """Build a content DTO: ``materials(flashcards=3, quizzes=1, exercises=1)``."""

    def _materials(flashcards=0, quizzes=0, exercises=0, start_id=101, **extra):
        payload = {
            'flashcards': _flashcards(flashcards, start_id),
            'quizzes': _quizzes(quizzes),
            'exercises': _exercises(exercises),
        }
        payload.update(extra)
        return payload

    return _materials
