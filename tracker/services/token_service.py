"""Bearer token issuance and resolution (HS256 JWT via python-jose)."""

import logging
from datetime import datetime, timedelta, timezone

from flask import current_app
from jose import JWTError, jwt

from tracker.extensions import db
from tracker.models.user import User

logger = logging.getLogger(__name__)


def create_access_token(user):
    """Sign a token carrying the user's id, email and role."""
    expire = datetime.now(timezone.utc) + timedelta(
        days=current_app.config["JWT_EXPIRY_DAYS"]
    )
    payload = {
        "sub": user.id,
        "email": user.email,
        "role": user.role,
        "exp": expire,
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token):
    """Return the token's claims, or None if it is invalid or expired."""
    try:
        return jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        return None


def load_user_from_token(token):
    """Resolve a token to an approved User, or None."""
    claims = decode_token(token)
    if not claims or not claims.get("sub"):
        return None

    user = db.session.get(User, claims["sub"])
    if user is None or not user.is_active:
        return None
    return user
