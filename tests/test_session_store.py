from sqlalchemy import text

from memospark_app.db_instance import db
from memospark_app.modules.session_store import DatabaseSessionStore, MemorySessionStore, StorageKeys
from memospark_app.modules.study.services import stage_search_flashcards


def test_values_are_scoped_to_one_client(app_ctx):
    first = DatabaseSessionStore('client-a')
    second = DatabaseSessionStore('client-b')
    first.set(StorageKeys.CURRENT_DECK_NAME, 'Biology')

    assert first.get(StorageKeys.CURRENT_DECK_NAME) == 'Biology'
    assert second.get(StorageKeys.CURRENT_DECK_NAME) is None
    assert second.get(StorageKeys.CURRENT_DECK_NAME, 'none') == 'none'


def test_set_overwrites_and_remove_deletes(app_ctx):
    store = DatabaseSessionStore('client-a')
    store.set(StorageKeys.GENERATED_CONTENT, {'flashcards': []})
    store.set(StorageKeys.GENERATED_CONTENT, {'flashcards': [{'question': 'Q', 'answer': 'A'}]})
    assert len(store.get(StorageKeys.GENERATED_CONTENT)['flashcards']) == 1

    store.remove(StorageKeys.GENERATED_CONTENT)
    assert not store.has(StorageKeys.GENERATED_CONTENT)


def test_changes_to_a_read_value_need_an_explicit_set(app_ctx):
    store = DatabaseSessionStore('client-a')
    store.set(StorageKeys.DASHBOARD_CACHE, {'sections': {}})

    cache = store.get(StorageKeys.DASHBOARD_CACHE)
    cache['sections']['main'] = {'data': 1}
    assert store.get(StorageKeys.DASHBOARD_CACHE) == {'sections': {}}

    store.set(StorageKeys.DASHBOARD_CACHE, cache)
    assert store.get(StorageKeys.DASHBOARD_CACHE) == {'sections': {'main': {'data': 1}}}


def test_clear_study_session_keeps_staged_content(app_ctx):
    store = DatabaseSessionStore('client-a')
    store.set(StorageKeys.GENERATED_CONTENT, {'flashcards': []})
    store.set(StorageKeys.CURRENT_STUDY_SESSION, {'session_id': 'abc'})
    store.set(StorageKeys.STUDY_STATE, {'phase': 'active'})

    store.clear_study_session()
    assert sorted(store.keys()) == [StorageKeys.GENERATED_CONTENT]


def test_guest_content_and_user_caches_are_cleared_separately():
    store = MemorySessionStore({
        StorageKeys.GENERATED_CONTENT: {},
        StorageKeys.CURRENT_DECK_NAME: 'Notes',
        StorageKeys.DASHBOARD_CACHE: {},
        StorageKeys.STUDY_FLASHCARDS: {},
    })
    store.clear_guest_content()
    assert sorted(store.keys()) == sorted([StorageKeys.DASHBOARD_CACHE, StorageKeys.STUDY_FLASHCARDS])

    store.clear_user_caches()
    assert store.keys() == [StorageKeys.STUDY_FLASHCARDS]


def test_staging_a_search_drops_the_previous_search_session():
    store = MemorySessionStore({
        StorageKeys.CURRENT_SEARCH_STUDY_SESSION: {'session_id': 'S1', 'search_id': '8'},
        StorageKeys.GENERATED_CONTENT: {},
    })
    stage_search_flashcards(store, [{'id': 1, 'question': 'Q', 'answer': 'A'}], 'Cells', 9)

    assert not store.has(StorageKeys.CURRENT_SEARCH_STUDY_SESSION)
    assert store.get(StorageKeys.SEARCH_SESSION_INFO)['search_id'] == 9
    assert store.get(StorageKeys.STUDY_FLASHCARDS)['flashcards'][0]['subject'] == 'Cells'
    assert store.has(StorageKeys.GENERATED_CONTENT)


def test_memory_store_copies_values():
    store = MemorySessionStore()
    value = {'cards': [1]}
    store.set('key', value)
    value['cards'].append(2)
    assert store.get('key') == {'cards': [1]}


def test_sqlite_connections_wait_for_locks(app_ctx):
    busy_timeout = db.session.execute(text('PRAGMA busy_timeout')).scalar()
    assert busy_timeout == 30000
