"""The signed-in user, as reported by the MemoSpark backend.

Users live in the backend; the web client only keeps the profile and the
access token in the signed Flask session.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from flask import session
from flask_login import UserMixin

SESSION_USER_KEY = 'backend_user'


class BackendUser(UserMixin):
    """Profile and Bearer token of the signed-in user."""

    ROLE_ADMIN = 'admin'
    ROLE_STUDENT = 'student'

    def __init__(self, user_id, name: str, email: str, role: str, access_token: str):
        self.id = str(user_id)
        self.name = name
        self.email = email
        self.role = role or self.ROLE_STUDENT
        self.access_token = access_token

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    @classmethod
    def from_login_response(cls, payload: Dict[str, Any]) -> 'BackendUser':
        """Build a user from ``{"user": {...}, "access_token": ...}``."""
        data = payload.get('data') if isinstance(payload.get('data'), dict) else payload
        user = data.get('user') or {}
        token = data.get('access_token') or data.get('token')
        if not token or not user.get('id'):
            raise ValueError('Login response has no user or access token')
        return cls(
            user_id=user['id'],
            name=user.get('name', ''),
            email=user.get('email', ''),
            role=user.get('user_type') or user.get('role') or cls.ROLE_STUDENT,
            access_token=token,
        )

    def to_session(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'access_token': self.access_token,
        }

    def to_public_dict(self) -> Dict[str, Any]:
        data = self.to_session()
        data.pop('access_token')
        data['is_admin'] = self.is_admin
        return data


def load_backend_user(user_id: str) -> Optional[BackendUser]:
    """flask_login user loader: rebuild the user from the Flask session."""
    stored = session.get(SESSION_USER_KEY)
    if not stored or str(stored.get('id')) != str(user_id):
        return None
    return BackendUser(
        user_id=stored['id'],
        name=stored.get('name', ''),
        email=stored.get('email', ''),
        role=stored.get('role'),
        access_token=stored.get('access_token'),
    )
