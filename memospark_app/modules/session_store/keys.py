"""Storage key names.

The names match the keys the MemoSpark single-page app writes to
``localStorage`` so a stored session can move between both clients.
"""


class StorageKeys:
    GENERATED_CONTENT = 'generatedContent'
    STUDY_FLASHCARDS = 'memo-spark-study-flashcards'
    CURRENT_STUDY_SESSION = 'memo-spark-current-study-session'
    SEARCH_SESSION_INFO = 'memo-spark-search-session-info'
    CURRENT_SEARCH_STUDY_SESSION = 'memo-spark-current-search-study-session'
    CURRENT_DECK_NAME = 'currentDeckName'
    DASHBOARD_CACHE = 'memo-spark-dashboard-cache'
    STUDY_STATE = 'memo-spark-study-state'
    ADMIN_GOALS_SNAPSHOT = 'memo-spark-admin-goals-snapshot'

    # Everything that belongs to one study session.
    STUDY_SESSION_SCOPED = (
        CURRENT_STUDY_SESSION,
        CURRENT_SEARCH_STUDY_SESSION,
        STUDY_STATE,
    )

    SEARCH_SCOPED = (
        STUDY_FLASHCARDS,
        SEARCH_SESSION_INFO,
        CURRENT_SEARCH_STUDY_SESSION,
    )
