"""Message service — per-user inbox notifications.

Functions flush but do NOT commit — the caller commits.
"""

from tracker.errors import NotFoundError
from tracker.extensions import db
from tracker.models.message import Message
from tracker.models.user import User
from tracker.utils import sanitize


def list_for_user(user_id):
    return (
        Message.query
        .filter_by(user_id=user_id)
        .order_by(Message.created_at.desc())
        .all()
    )


def send_message(user_id, title, content, sender, type="info"):
    """Drop a message into a user's inbox.

    Raises:
        NotFoundError: If the recipient doesn't exist.
    """
    if db.session.get(User, user_id) is None:
        raise NotFoundError("Recipient not found.")

    msg = Message(
        user_id=user_id,
        title=sanitize(title),
        content=sanitize(content),
        sender=sender,
        type=type,
    )
    db.session.add(msg)
    db.session.flush()
    return msg


def mark_read(message_id, user_id):
    """Mark one of the caller's own messages read.

    Someone else's message is reported as not found.
    """
    msg = Message.query.filter_by(id=message_id, user_id=user_id).first()
    if msg is None:
        raise NotFoundError("Message not found.")
    msg.is_read = True
    db.session.flush()
    return msg
