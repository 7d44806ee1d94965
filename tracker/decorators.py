"""
Custom route decorators for access control.

- api_login_required: a Bearer token resolved to an approved user.
- admin_required: as above, AND the user's role is the admin role.

Both answer with JSON instead of redirecting to a login page.
"""

from functools import wraps

from flask import jsonify
from flask_login import current_user


def api_login_required(f):
    """Require a resolved identity (401 otherwise)."""

    @wraps(f)
    def decorated(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({"success": False, "error": "Unauthorized"}), 401
        return f(*args, **kwargs)

    return decorated


def admin_required(f):
    """Require a resolved identity with the admin role (403 otherwise)."""

    @wraps(f)
    @api_login_required
    def decorated(*args, **kwargs):
        if not current_user.is_admin:
            return jsonify({"success": False, "error": "Admin access required"}), 403
        return f(*args, **kwargs)

    return decorated
