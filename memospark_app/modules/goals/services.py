"""
Student and admin goal services.

The goal endpoints answer with bare JSON (lists and objects) rather than
the ``{success, data}`` envelope, so every response goes through
``unwrap`` before it reaches a route.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional

from flask import current_app

from ...core.error_handlers import BackendError, NotFoundError, ValidationError
from ...services import get_backend_client
from ...services.backend_client import BackendClient
from ...services.endpoints import ADMIN_GOALS, ADMIN_USERS, STUDENT_GOALS
from ..session_store import SessionStore, StorageKeys, get_session_store


def unwrap(payload: Any) -> Any:
    if isinstance(payload, dict) and 'data' in payload and ('success' in payload or len(payload) == 1):
        return payload['data']
    return payload


def find_goal_type(goal_types: List[Dict[str, Any]], goal_type_id: Any) -> Dict[str, Any]:
    for goal_type in goal_types or []:
        if str(goal_type.get('id')) == str(goal_type_id):
            return goal_type
    raise NotFoundError('Goal type not found', resource='goal_type')


def check_target_bounds(goal_type: Dict[str, Any], target_value: int) -> None:
    """Reject a target outside ``[min_value, max_value]`` of its goal type."""
    low = goal_type.get('min_value')
    high = goal_type.get('max_value')
    if isinstance(low, (int, float)) and target_value < low:
        raise ValidationError(
            f"Target must be at least {low} {goal_type.get('unit', '')}".strip(),
            errors={'target_value': [f'Minimum is {low}']},
        )
    if isinstance(high, (int, float)) and target_value > high:
        raise ValidationError(
            f"Target must be at most {high} {goal_type.get('unit', '')}".strip(),
            errors={'target_value': [f'Maximum is {high}']},
        )


class StudentGoalService:
    """Self-service goals of the signed-in student."""

    def __init__(self, client: BackendClient):
        self.client = client

    def goal_types(self) -> List[Dict[str, Any]]:
        return unwrap(self.client.get(STUDENT_GOALS['TYPES'])) or []

    def my_goals(self) -> List[Dict[str, Any]]:
        return unwrap(self.client.get(STUDENT_GOALS['LIST'])) or []

    def set_goal(self, goal_type_id: str, target_value: int) -> Any:
        goal_type = find_goal_type(self.goal_types(), goal_type_id)
        if goal_type.get('is_active') is False:
            raise ValidationError('This goal type is not available', errors={'goal_type_id': ['Inactive goal type']})
        check_target_bounds(goal_type, target_value)
        return unwrap(self.client.post(STUDENT_GOALS['SET'], json={
            'goal_type_id': goal_type_id,
            'target_value': target_value,
        }))

    def create_custom_goal(self, goal: Dict[str, Any]) -> Any:
        return unwrap(self.client.post(STUDENT_GOALS['CUSTOM'], json=goal))

    def toggle_goal(self, goal_id: str) -> Any:
        return unwrap(self.client.put(STUDENT_GOALS['TOGGLE'](goal_id)))

    def delete_goal(self, goal_id: str) -> None:
        self.client.delete(STUDENT_GOALS['DETAIL'](goal_id))


class AdminGoalService:
    """Goal administration, including the throttled dashboard refresh."""

    def __init__(self, client: BackendClient, store: SessionStore, clock: Callable[[], float] = time.time):
        self.client = client
        self.store = store
        self.clock = clock

    @classmethod
    def for_request(cls) -> 'AdminGoalService':
        return cls(get_backend_client(), get_session_store())

    def _optional(self, path: str, default: Any) -> Any:
        """Endpoints the screen can live without: a failure yields ``default``."""
        try:
            return unwrap(self.client.get(path))
        except BackendError as exc:
            current_app.logger.warning(f"Optional goal data {path} unavailable: {exc.message}")
            return default

    def fetch_snapshot(self) -> Dict[str, Any]:
        return {
            'overview': unwrap(self.client.get(ADMIN_GOALS['OVERVIEW'])),
            'statistics': unwrap(self.client.get(ADMIN_GOALS['STATISTICS'])),
            'goal_types': self._optional(ADMIN_GOALS['GOAL_TYPES'], []),
            'user_goals': self._optional(ADMIN_GOALS['USER_GOALS'], []),
            'users': self._optional(ADMIN_USERS['LIST'], []),
            'defaults': self._optional(ADMIN_GOALS['DEFAULTS'], []),
        }

    def refresh(self, initial: bool = False) -> Dict[str, Any]:
        """
        Return the goal dashboard data.

        A non-initial refresh within ``ADMIN_REFRESH_THROTTLE_SECONDS`` of the
        previous one returns the previous data unchanged, flagged
        ``throttled``.
        """
        now = self.clock()
        throttle = current_app.config.get('ADMIN_REFRESH_THROTTLE_SECONDS', 2)
        previous = self.store.get(StorageKeys.ADMIN_GOALS_SNAPSHOT)
        if not initial and previous and now - previous.get('fetched_at', 0) < throttle:
            data = dict(previous['data'])
            data['throttled'] = True
            return data

        data = self.fetch_snapshot()
        self.store.set(StorageKeys.ADMIN_GOALS_SNAPSHOT, {'fetched_at': now, 'data': data})
        result = dict(data)
        result['throttled'] = False
        return result

    def statistics(self) -> Any:
        return unwrap(self.client.get(ADMIN_GOALS['STATISTICS']))

    def goal_types(self) -> List[Dict[str, Any]]:
        return unwrap(self.client.get(ADMIN_GOALS['GOAL_TYPES'])) or []

    def create_goal_type(self, payload: Dict[str, Any]) -> Any:
        return unwrap(self.client.post(ADMIN_GOALS['GOAL_TYPES'], json=payload))

    def update_goal_type(self, goal_type_id: str, payload: Dict[str, Any]) -> Any:
        return unwrap(self.client.put(ADMIN_GOALS['GOAL_TYPE'](goal_type_id), json=payload))

    def delete_goal_type(self, goal_type_id: str) -> None:
        self.client.delete(ADMIN_GOALS['GOAL_TYPE'](goal_type_id))

    def user_goals(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        goals = unwrap(self.client.get(ADMIN_GOALS['USER_GOALS'])) or []
        if user_id and user_id != 'all':
            goals = [goal for goal in goals if str(goal.get('user_id')) == str(user_id)]
        return goals

    def create_user_goal(self, user_id: str, goal_type_id: str, target_value: int) -> Any:
        check_target_bounds(find_goal_type(self.goal_types(), goal_type_id), target_value)
        return unwrap(self.client.post(ADMIN_GOALS['USER_GOALS'], json={
            'user_id': user_id,
            'goal_type_id': goal_type_id,
            'target_value': target_value,
        }))

    def update_user_goal(self, user_goal_id: str, target_value: int) -> Any:
        goal = next(
            (item for item in self.user_goals() if str(item.get('id')) == str(user_goal_id)),
            None,
        )
        if goal is None:
            raise NotFoundError('User goal not found', resource='user_goal')
        check_target_bounds(find_goal_type(self.goal_types(), goal.get('goal_type_id')), target_value)
        return unwrap(self.client.put(ADMIN_GOALS['USER_GOAL'](user_goal_id), json={'target_value': target_value}))

    def delete_user_goal(self, user_goal_id: str) -> None:
        self.client.delete(ADMIN_GOALS['USER_GOAL'](user_goal_id))

    def default_goals(self) -> Any:
        return unwrap(self.client.get(ADMIN_GOALS['DEFAULTS'])) or []

    def update_default_goals(self, defaults: List[Dict[str, Any]]) -> Any:
        goal_types = self.goal_types()
        cleaned = []
        for entry in defaults:
            goal_type = find_goal_type(goal_types, entry.get('goal_type_id'))
            try:
                value = int(entry.get('default_value'))
            except (TypeError, ValueError):
                raise ValidationError('Default values must be whole numbers',
                                      errors={'default_value': [str(entry.get('default_value'))]})
            check_target_bounds(goal_type, value)
            cleaned.append({'goal_type_id': entry.get('goal_type_id'), 'default_value': value})
        return unwrap(self.client.post(ADMIN_GOALS['DEFAULTS'], json=cleaned))
