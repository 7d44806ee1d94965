"""Audit blueprint — /api/audit

Returns the newest audit entries the caller is allowed to see.
"""

from flask import Blueprint, jsonify
from flask_login import current_user

from tracker.decorators import api_login_required
from tracker.serializers import audit_entry_dict
from tracker.services import audit_service

audit_bp = Blueprint("audit", __name__, url_prefix="/api/audit")


@audit_bp.route("", methods=["GET"])
@api_login_required
def list_logs():
    entries = audit_service.get_visible_logs(current_user)
    return jsonify({"success": True, "data": [audit_entry_dict(e) for e in entries]})
