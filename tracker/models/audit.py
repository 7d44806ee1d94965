"""Audit log model.

Append-only record of state changes on projects, phases and bugs. Rows are
never updated or deleted. Neither `entity_id` nor `user_id` has a foreign
key, so entries outlive the entity they describe and keep the id of an
author whose account was later deleted.
"""

import uuid

from tracker.extensions import db
from tracker.utils import utcnow


class AuditLogEntry(db.Model):
    __tablename__ = "audit_logs"

    # -- Entity types --
    PROJECT = "PROJECT"
    PHASE = "PHASE"
    BUG = "BUG"
    ENTITY_TYPES = [PROJECT, PHASE, BUG]

    # -- Actions --
    ACTIONS = ["CREATE", "UPDATE", "DELETE"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    # Null means the change was system-originated.
    user_id = db.Column(db.String(36), nullable=True)
    action = db.Column(db.String(20), nullable=False)  # CREATE | UPDATE | DELETE
    entity_type = db.Column(db.String(20), nullable=False)  # PROJECT | PHASE | BUG
    entity_id = db.Column(db.String(36), nullable=False)
    details = db.Column(db.Text, nullable=True)
    # Client-side default keeps sub-second ordering on SQLite.
    created_at = db.Column(
        db.DateTime(timezone=True), default=utcnow, nullable=False
    )

    __table_args__ = (
        db.Index("ix_audit_logs_created_at", "created_at"),
        db.Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        db.Index("ix_audit_logs_user_id", "user_id"),
    )

    # --- Relationships ---
    # Read-only join; the author may no longer exist.
    user = db.relationship(
        "User",
        primaryjoin="foreign(AuditLogEntry.user_id) == User.id",
        viewonly=True,
    )

    def __repr__(self):
        return f"<AuditLogEntry {self.action} {self.entity_type}:{self.entity_id}>"
