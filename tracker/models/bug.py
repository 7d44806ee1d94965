"""Bug model.

A bug's code ("<PROJECT_CODE>-<n>" or "BUGS-<n>") is assigned once at
creation by code_service and never changes afterwards. The unique
constraint on `code` is what turns a lost count-then-insert race into a
retry instead of a silent duplicate.
"""

import uuid

from tracker.extensions import db
from tracker.utils import utcnow


class Bug(db.Model):
    __tablename__ = "bugs"

    # -- Valid statuses --
    STATUSES = ["OPEN", "IN_PROGRESS", "RESOLVED", "NOT_OK", "CLOSED", "UNDER_REVIEW"]

    # -- Valid priorities --
    PRIORITIES = ["Fatal", "Major", "Medium", "Minor", "Kosmetik"]

    # -- Valid issue types --
    TYPES = ["Bug", "New Feature"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    code = db.Column(db.String(100), unique=True, nullable=False)
    summary = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(50), default="OPEN", nullable=False)
    priority = db.Column(db.String(50), default="Medium", nullable=False)
    type = db.Column(db.String(50), default="Bug", nullable=False)
    project_id = db.Column(
        db.String(36), db.ForeignKey("projects.id"), nullable=True
    )
    parent_id = db.Column(
        db.String(36), db.ForeignKey("bugs.id"), nullable=True
    )
    reporter_id = db.Column(
        db.String(36), db.ForeignKey("users.id"), nullable=False
    )
    components = db.Column(db.JSON, default=list)
    labels = db.Column(db.JSON, default=list)
    attachments = db.Column(db.JSON, default=list)
    # Client-side defaults keep sub-second ordering on SQLite.
    created_at = db.Column(
        db.DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (
        db.Index("ix_bugs_project_id", "project_id"),
    )

    # --- Relationships ---
    project = db.relationship("Project", back_populates="bugs")
    reporter = db.relationship("User", back_populates="reported_bugs")
    parent = db.relationship("Bug", remote_side=[id])

    def __repr__(self):
        return f"<Bug {self.code} ({self.status})>"
