"""Database models package for MemoSpark."""

from ..db_instance import db

from .stored_value import StoredValue
from .polling_job import PollingJob

__all__ = [
    'db',
    'StoredValue',
    'PollingJob',
]
