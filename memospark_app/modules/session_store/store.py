"""Session store implementations.

All reads and writes of browser-side state go through :class:`SessionStore`
so key names and invalidation rules live in one place.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from flask import current_app, g, has_request_context
from sqlalchemy.exc import SQLAlchemyError

from ...db_instance import db
from ...models import StoredValue
from .keys import StorageKeys

_MISSING = object()


class SessionStore(ABC):
    """Per-client JSON key/value storage with last-write-wins semantics."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def remove_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.remove(key)

    def clear(self) -> None:
        self.remove_many(self.keys())

    # -- invalidation rules -------------------------------------------

    def clear_study_session(self) -> None:
        """Forget the remote session record and the controller snapshot."""
        self.remove_many(StorageKeys.STUDY_SESSION_SCOPED)

    def clear_search_session(self) -> None:
        self.remove_many(StorageKeys.SEARCH_SCOPED)

    def clear_user_caches(self) -> None:
        """Drop cached copies of data that belongs to the signed-in user."""
        self.remove_many((StorageKeys.DASHBOARD_CACHE, StorageKeys.ADMIN_GOALS_SNAPSHOT))

    def clear_guest_content(self) -> None:
        """Drop uploaded content that only ever lived on this client."""
        self.remove_many((StorageKeys.GENERATED_CONTENT, StorageKeys.CURRENT_DECK_NAME))
        self.clear_study_session()


class MemorySessionStore(SessionStore):
    """Dictionary-backed store; values are deep-copied like a JSON round trip."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._values:
            return default
        return copy.deepcopy(self._values[key])

    def set(self, key: str, value: Any) -> None:
        self._values[key] = copy.deepcopy(value)

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._values)


class DatabaseSessionStore(SessionStore):
    """Store rows in ``stored_values`` for one client id."""

    def __init__(self, client_id: str):
        if not client_id:
            raise ValueError("client_id is required")
        self.client_id = client_id

    def _row(self, key: str) -> Optional[StoredValue]:
        return StoredValue.query.filter_by(client_id=self.client_id, key=key).first()

    def get(self, key: str, default: Any = None) -> Any:
        row = self._row(key)
        if row is None:
            return default
        # JSON columns only persist reassignment, so callers never get the row's own object
        return copy.deepcopy(row.value)

    def set(self, key: str, value: Any) -> None:
        row = self._row(key)
        if row is None:
            row = StoredValue(client_id=self.client_id, key=key)
            db.session.add(row)
        row.value = value
        self._commit()

    def remove(self, key: str) -> None:
        row = self._row(key)
        if row is not None:
            db.session.delete(row)
            self._commit()

    def keys(self) -> List[str]:
        rows = StoredValue.query.with_entities(StoredValue.key).filter_by(client_id=self.client_id).all()
        return [row.key for row in rows]

    def clear(self) -> None:
        StoredValue.query.filter_by(client_id=self.client_id).delete()
        self._commit()

    @staticmethod
    def _commit() -> None:
        try:
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            raise


def get_session_store(client_id: Optional[str] = None) -> SessionStore:
    """Return the store of the given client, or of the browser behind the request."""
    if client_id is None and has_request_context():
        client_id = getattr(g, 'client_id', None)
    if client_id:
        return DatabaseSessionStore(client_id)
    current_app.logger.debug("No client id available, using a throwaway memory store.")
    return MemorySessionStore()
