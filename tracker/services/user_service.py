"""User service — registration, sign-in, approval and account admin.

Functions flush but do NOT commit — the caller commits.
"""

import logging

from werkzeug.security import check_password_hash, generate_password_hash

from tracker.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDenied,
    ValidationError,
)
from tracker.extensions import db
from tracker.models.user import User

logger = logging.getLogger(__name__)

# Sign-in refusals for accounts that exist but aren't approved.
_STATUS_ERRORS = {
    "pending": "Account is awaiting admin approval.",
    "rejected": "Account was rejected. Contact an admin.",
    "inactive": "Account is deactivated. Contact an admin.",
}


def _default_avatar(username):
    return f"https://i.pravatar.cc/100?u={username}"


def _ensure_unique(username, email):
    if User.query.filter_by(email=email).first():
        raise ConflictError("An account with this email already exists.")
    if User.query.filter_by(username=username).first():
        raise ConflictError("Username is already taken.")


def register_user(username, email, password):
    """Create a self-registered account. It stays pending until approved.

    Raises:
        ConflictError: If the email or username is already used.
    """
    email = email.lower().strip()
    username = username.strip()
    _ensure_unique(username, email)

    user = User(
        username=username,
        email=email,
        password_hash=generate_password_hash(password),
        role=User.DEFAULT_ROLE,
        status="pending",
        avatar=_default_avatar(username),
    )
    db.session.add(user)
    db.session.flush()
    logger.info(f"Registered user {user.username} (pending approval)")
    return user


def create_user(username, email, password, role=User.DEFAULT_ROLE):
    """Admin-created account, approved immediately."""
    email = email.lower().strip()
    username = username.strip()
    _ensure_unique(username, email)

    user = User(
        username=username,
        email=email,
        password_hash=generate_password_hash(password),
        role=role,
        status="approved",
        avatar=_default_avatar(username),
    )
    db.session.add(user)
    db.session.flush()
    return user


def authenticate(email, password):
    """Check credentials and approval status.

    Returns:
        The approved User.

    Raises:
        AuthenticationError: Unknown email or wrong password.
        PermissionDenied: Account exists but is not approved.
    """
    user = User.query.filter_by(email=email.lower().strip()).first()
    if user is None or not check_password_hash(user.password_hash, password):
        raise AuthenticationError("Invalid email or password.")

    if user.status in _STATUS_ERRORS:
        raise PermissionDenied(_STATUS_ERRORS[user.status])
    return user


def get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


def list_users():
    return User.query.order_by(User.created_at.asc(), User.username.asc()).all()


def update_status(user_id, status):
    """Approve, reject, deactivate or reset a user to pending."""
    if status not in User.STATUSES:
        raise ValidationError(
            f"Invalid status '{status}'. Must be one of: {', '.join(User.STATUSES)}"
        )
    user = get_user(user_id)
    old_status = user.status
    user.status = status
    db.session.flush()
    logger.info(f"User {user.username} status {old_status} -> {status}")
    return user


def change_password(user, current_password, new_password):
    if not check_password_hash(user.password_hash, current_password):
        raise AuthenticationError("Current password is incorrect.")
    user.password_hash = generate_password_hash(new_password)
    db.session.flush()
    return user


def delete_user(user_id, actor_user_id):
    """Delete an account.

    Projects they created are kept (creator cleared). Audit entries keep
    their user_id untouched. Users who reported
    bugs can't be removed because bug codes and history point at them;
    deactivate those instead.
    """
    if user_id == actor_user_id:
        raise ValidationError("You cannot delete your own account.")

    user = get_user(user_id)
    if user.reported_bugs.first() is not None:
        raise ConflictError(
            "User has reported bugs and cannot be deleted. Deactivate the account instead."
        )

    db.session.delete(user)
    db.session.flush()
    logger.info(f"Deleted user {user.username}")
