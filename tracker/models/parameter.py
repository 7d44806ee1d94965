"""Parameter model.

Server-owned settings taxonomy (roles, phase names, project statuses,
priorities) that the dashboard used to keep in browser storage. Rows are
soft-deleted via `is_active`. ParameterVersion is a single-row counter
bumped on every change so clients know when their cached copy is stale.
"""

import uuid

from tracker.extensions import db


class Parameter(db.Model):
    __tablename__ = "parameters"

    CATEGORIES = ["role", "phase", "status", "priority"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    category = db.Column(db.String(50), nullable=False)  # role | phase | status | priority
    label = db.Column(db.String(255), nullable=False)
    value = db.Column(db.String(255), nullable=False)
    color = db.Column(db.String(20), nullable=True)
    position = db.Column(db.Integer, default=0, nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    __table_args__ = (
        db.UniqueConstraint("category", "value", name="uq_parameter_category_value"),
    )

    def __repr__(self):
        return f"<Parameter {self.category}:{self.value}>"


class ParameterVersion(db.Model):
    __tablename__ = "parameter_versions"

    id = db.Column(db.Integer, primary_key=True)
    version = db.Column(db.Integer, default=0, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self):
        return f"<ParameterVersion {self.version}>"
