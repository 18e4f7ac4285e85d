"""
Dashboard data with an offline fallback.

Every successful response is cached per section in the client's store.
When the backend cannot be reached (or fails with a 5xx) the cached copy is
returned with ``stale: True``; client errors such as 401 are never masked.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict

from flask import current_app

from ...core.error_handlers import BackendError, BackendUnavailable, NotFoundError
from ...services.backend_client import BackendClient
from ...services.endpoints import DASHBOARD
from ..session_store import SessionStore, StorageKeys

SECTIONS = {
    'main': DASHBOARD['MAIN'],
    'user-info': DASHBOARD['USER_INFO'],
    'overview': DASHBOARD['OVERVIEW'],
    'recent-decks': DASHBOARD['RECENT_DECKS'],
    'todays-goal': DASHBOARD['TODAYS_GOAL'],
    'achievements': DASHBOARD['ACHIEVEMENTS'],
}


def is_transient(error: BackendError) -> bool:
    if isinstance(error, BackendUnavailable):
        return True
    return error.backend_status is None or error.backend_status >= 500


class DashboardService:

    def __init__(self, client: BackendClient, store: SessionStore, user_id: str,
                 clock: Callable[[], float] = time.time):
        self.client = client
        self.store = store
        self.user_id = str(user_id)
        self.clock = clock

    def _cache(self) -> Dict[str, Any]:
        cache = self.store.get(StorageKeys.DASHBOARD_CACHE) or {}
        if cache.get('user_id') != self.user_id:
            return {'user_id': self.user_id, 'sections': {}}
        return cache

    def fetch(self, section: str = 'main') -> Dict[str, Any]:
        path = SECTIONS.get(section)
        if path is None:
            raise NotFoundError(f'Unknown dashboard section: {section}', resource='dashboard_section')

        cache = self._cache()
        try:
            payload = self.client.get(path)
        except BackendError as exc:
            cached = cache['sections'].get(section)
            if cached is None or not is_transient(exc):
                raise
            current_app.logger.warning(f"Dashboard {section} unavailable, serving cached copy: {exc.message}")
            return {'data': cached['data'], 'cached_at': cached['cached_at'], 'stale': True}

        data = payload.get('data', payload) if isinstance(payload, dict) else payload
        now = self.clock()
        cache['sections'][section] = {'data': data, 'cached_at': now}
        self.store.set(StorageKeys.DASHBOARD_CACHE, cache)
        return {'data': data, 'cached_at': now, 'stale': False}
