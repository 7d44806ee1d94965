"""
Deferred extension instances.

Created here, bound to the app in create_app() via init_app().
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_cors import CORS

db = SQLAlchemy()
migrate = Migrate()
login_manager = LoginManager()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # No global limit — we apply per-route
    storage_uri="memory://",
)
cors = CORS()


@login_manager.request_loader
def load_user_from_request(request):
    """Resolve the caller from an `Authorization: Bearer <token>` header.

    Imports lazily to avoid circular deps. Returns None (anonymous) for a
    missing, malformed, expired or revoked token.
    """
    from tracker.services import token_service

    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    return token_service.load_user_from_token(auth_header[7:])
