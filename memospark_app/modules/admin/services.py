"""Admin user management over ``/api/admin/users``."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ...services.backend_client import BackendClient
from ...services.endpoints import ADMIN_USERS


def normalize_page(payload: Any, page: int, per_page: int) -> Dict[str, Any]:
    """Shape a Laravel-style paginator (``data`` plus page counters) for the client."""
    if isinstance(payload, list):
        payload = {'data': payload}
    payload = payload or {}
    users = payload.get('data') or []
    total = payload.get('total', len(users))
    return {
        'users': users,
        'current_page': payload.get('current_page', page),
        'last_page': payload.get('last_page', max(1, -(-total // per_page))),
        'per_page': payload.get('per_page', per_page),
        'total': total,
        'from': payload.get('from'),
        'to': payload.get('to'),
    }


class AdminUserService:

    def __init__(self, client: BackendClient, per_page: int = 15):
        self.client = client
        self.per_page = per_page

    def list_users(self, page: int = 1, search: Optional[str] = None) -> Dict[str, Any]:
        params = {'page': page, 'per_page': self.per_page}
        search = (search or '').strip()
        if search:
            params['search'] = search
        payload = self.client.get(ADMIN_USERS['LIST'], params=params)
        return normalize_page(payload, page, self.per_page)

    @staticmethod
    def _record(payload: Any) -> Any:
        if isinstance(payload, dict) and isinstance(payload.get('data'), dict):
            return payload['data']
        return payload

    def get_user(self, user_id: Any) -> Any:
        return self._record(self.client.get(ADMIN_USERS['DETAIL'](user_id)))

    def update_user(self, user_id: Any, payload: Dict[str, Any]) -> Any:
        return self._record(self.client.put(ADMIN_USERS['DETAIL'](user_id), json=payload))

    def activate(self, user_id: Any) -> Any:
        return self._record(self.client.post(ADMIN_USERS['ACTIVATE'](user_id)))

    def deactivate(self, user_id: Any) -> Any:
        return self._record(self.client.post(ADMIN_USERS['DEACTIVATE'](user_id)))
