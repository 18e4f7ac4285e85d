"""Paths of the MemoSpark backend API, relative to ``MEMOSPARK_API_BASE_URL``."""

from __future__ import annotations

AUTH = {
    'LOGIN': '/api/login',
    'LOGOUT': '/api/logout',
    'USER': '/api/user',
}

DOCUMENTS = {
    'UPLOAD': '/api/documents/upload',
    'STATUS': lambda document_id: f'/api/documents/{document_id}/status',
    'GUEST_UPLOAD': '/api/guest/documents/upload',
    'GUEST_STATUS': lambda document_id: f'/api/guest/documents/{document_id}/status',
}

DASHBOARD = {
    'MAIN': '/api/dashboard',
    'USER_INFO': '/api/dashboard/user-info',
    'OVERVIEW': '/api/dashboard/overview',
    'RECENT_DECKS': '/api/dashboard/recent-decks',
    'TODAYS_GOAL': '/api/dashboard/todays-goal',
    'ACHIEVEMENTS': '/api/dashboard/achievements',
}

STUDY = {
    'START_SESSION': '/api/study/start-session',
    'RECORD_REVIEW': '/api/study/record-review',
    'STATS': '/api/study/stats',
    'RECENT_ACTIVITY': '/api/study/recent-activity',
    'DECK_MATERIALS': lambda deck_id: f'/api/decks/{deck_id}/materials',
    'ENRICH_MATERIALS': '/api/study/enrich-materials',
    'TIMING_START': '/api/study/timing/start',
    'TIMING_END': '/api/study/timing/end',
    'TIMING_RECORD': '/api/study/timing/record',
    'TIMING_SUMMARY': lambda session_id: f'/api/study/timing/summary/{session_id}',
}

DECKS = {
    'LIST': '/api/decks',
    'DETAILS': lambda deck_id: f'/api/decks/{deck_id}',
    'GENERATE_MATERIALS': lambda deck_id: f'/api/decks/{deck_id}/generate-materials',
}

STUDY_MATERIALS = {
    'FLASHCARDS': lambda material_id: f'/api/study-materials/{material_id}/flashcards',
    'FLASHCARD': lambda material_id, index: f'/api/study-materials/{material_id}/flashcards/{index}',
}

SEARCH_FLASHCARDS = {
    'GENERATE': '/api/search-flashcards/generate',
    'JOB_STATUS': lambda job_id: f'/api/search-flashcards/job/{job_id}/status',
    'TOPICS': '/api/search-flashcards/topics',
    'HEALTH': '/api/search-flashcards/health',
    'HISTORY': '/api/search-flashcards/history',
    'SEARCH_DETAILS': lambda search_id: f'/api/search-flashcards/search/{search_id}',
    'RECENT': '/api/search-flashcards/recent',
    'STATS': '/api/search-flashcards/stats',
    'STUDY_START_SESSION': '/api/search-flashcards/study/start-session',
    'STUDY_RECORD_INTERACTION': '/api/search-flashcards/study/record-interaction',
    'STUDY_COMPLETE_SESSION': '/api/search-flashcards/study/complete-session',
    'STUDY_SESSION_DETAILS': lambda session_id: f'/api/search-flashcards/study/session/{session_id}',
    'STUDY_STATS': '/api/search-flashcards/study/stats',
    'DIFFICULT_MARK': '/api/search-flashcards/difficult/mark',
    'DIFFICULT_MARK_REVIEWED': '/api/search-flashcards/difficult/reviewed',
    'DIFFICULT_MARK_RE_RATED': '/api/search-flashcards/difficult/re-rated',
    'DIFFICULT_COUNT': '/api/search-flashcards/difficult/count',
    'RECORD_REVIEW': '/api/search-flashcards/record-review',
    'DIFFICULT_COUNT_FROM_REVIEWS': '/api/search-flashcards/difficult/count-from-reviews',
}

STUDENT_GOALS = {
    'LIST': '/api/student-goals',
    'TYPES': '/api/student-goals/types',
    'SET': '/api/student-goals/set',
    'CUSTOM': '/api/student-goals/custom',
    'TOGGLE': lambda goal_id: f'/api/student-goals/{goal_id}/toggle',
    'DETAIL': lambda goal_id: f'/api/student-goals/{goal_id}',
}

ADMIN_GOALS = {
    'OVERVIEW': '/api/admin/goals/overview',
    'STATISTICS': '/api/admin/goals/statistics',
    'DEFAULTS': '/api/admin/goals/defaults',
    'GOAL_TYPES': '/api/admin/goal-types',
    'GOAL_TYPE': lambda goal_type_id: f'/api/admin/goal-types/{goal_type_id}',
    'USER_GOALS': '/api/admin/user-goals',
    'USER_GOAL': lambda user_goal_id: f'/api/admin/user-goals/{user_goal_id}',
}

ADMIN_USERS = {
    'LIST': '/api/admin/users',
    'DETAIL': lambda user_id: f'/api/admin/users/{user_id}',
    'ACTIVATE': lambda user_id: f'/api/admin/users/{user_id}/activate',
    'DEACTIVATE': lambda user_id: f'/api/admin/users/{user_id}/deactivate',
}
