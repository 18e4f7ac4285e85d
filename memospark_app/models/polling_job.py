"""State of background pollers (document processing, search generation)."""

from __future__ import annotations

from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from ..db_instance import db


class PollingJob(db.Model):
    """Track one remote job that a worker thread is polling."""

    __tablename__ = 'polling_jobs'

    KIND_DOCUMENT = 'document'
    KIND_SEARCH = 'search'

    STATUS_PENDING = 'pending'
    STATUS_PROCESSING = 'processing'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_TIMED_OUT = 'timed_out'

    FINISHED_STATUSES = (STATUS_COMPLETED, STATUS_FAILED, STATUS_CANCELLED, STATUS_TIMED_OUT)

    job_id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.String(64), nullable=False, index=True)
    kind = db.Column(db.String(20), nullable=False)
    remote_id = db.Column(db.String(100), nullable=False)
    status = db.Column(db.String(20), default=STATUS_PENDING, nullable=False)
    progress = db.Column(db.Integer, default=0)
    message = db.Column(db.Text)
    result = db.Column(JSON)
    stop_requested = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime(timezone=True), server_default=func.now())
    last_updated = db.Column(
        db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def is_finished(self) -> bool:
        return self.status in self.FINISHED_STATUSES

    def to_dict(self) -> dict:
        return {
            'job_id': self.job_id,
            'kind': self.kind,
            'remote_id': self.remote_id,
            'status': self.status,
            'progress': self.progress or 0,
            'message': self.message,
            'result': self.result,
            'stop_requested': bool(self.stop_requested),
            'last_updated': self.last_updated.isoformat() if self.last_updated else None,
        }
