"""Per-client key/value storage replacing browser ``localStorage``."""

from .keys import StorageKeys
from .store import (
    DatabaseSessionStore,
    MemorySessionStore,
    SessionStore,
    get_session_store,
)

__all__ = [
    'StorageKeys',
    'SessionStore',
    'DatabaseSessionStore',
    'MemorySessionStore',
    'get_session_store',
]
