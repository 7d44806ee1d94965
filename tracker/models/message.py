"""Inbox message model — notifications addressed to a single user."""

import uuid

from tracker.extensions import db


class Message(db.Model):
    __tablename__ = "messages"

    TYPES = ["info", "warning", "success", "error"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    sender = db.Column(db.String(255), nullable=False)
    type = db.Column(db.String(20), default="info", nullable=False)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    # --- Relationships ---
    user = db.relationship("User", back_populates="messages")

    def __repr__(self):
        return f"<Message {self.title[:30]} read={self.is_read}>"
