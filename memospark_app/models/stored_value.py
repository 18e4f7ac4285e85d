"""Key/value rows backing the per-client session store."""

from __future__ import annotations

from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from ..db_instance import db


class StoredValue(db.Model):
    """One browser-storage entry, scoped to a client id."""

    __tablename__ = 'stored_values'
    __table_args__ = (
        db.UniqueConstraint('client_id', 'key', name='uq_stored_values_client_key'),
    )

    value_id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.String(64), nullable=False, index=True)
    key = db.Column(db.String(120), nullable=False)
    value = db.Column(JSON)
    updated_at = db.Column(
        db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<StoredValue {self.client_id}:{self.key}>"
