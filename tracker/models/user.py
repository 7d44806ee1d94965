"""User model.

Stores credentials, role and approval status. Flask-Login integration via
UserMixin; identity is resolved per request from a Bearer token.
"""

import uuid

from flask_login import UserMixin

from tracker.extensions import db


class User(UserMixin, db.Model):
    __tablename__ = "users"

    # -- The distinguished administrative role --
    ADMIN_ROLE = "admin"
    DEFAULT_ROLE = "user"

    # -- Account statuses; only "approved" accounts may sign in --
    STATUSES = ["pending", "approved", "rejected", "inactive"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    username = db.Column(db.String(100), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(50), default=DEFAULT_ROLE, nullable=False)
    status = db.Column(
        db.String(20), default="pending", nullable=False
    )  # pending | approved | rejected | inactive
    avatar = db.Column(db.String(500), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    created_projects = db.relationship(
        "Project", back_populates="creator", lazy="dynamic"
    )
    project_assignments = db.relationship(
        "ProjectPic",
        back_populates="user",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )
    reported_bugs = db.relationship(
        "Bug", back_populates="reporter", lazy="dynamic"
    )
    messages = db.relationship(
        "Message",
        back_populates="user",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    @property
    def is_admin(self):
        return self.role == self.ADMIN_ROLE

    @property
    def is_active(self):
        return self.status == "approved"

    def __repr__(self):
        return f"<User {self.username}>"
