"""Auth blueprint — /api/auth/*

Self-registration (pending until an admin approves) and token sign-in.
"""

from flask import Blueprint, jsonify, request

from tracker import schemas
from tracker.extensions import db, limiter
from tracker.serializers import user_dict
from tracker.services import token_service, user_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


# ──────────────────────────────────────────────
# POST /api/auth/register
# ──────────────────────────────────────────────

@auth_bp.route("/register", methods=["POST"])
@limiter.limit("10 per minute")
def register():
    body = schemas.parse(schemas.RegisterRequest, request.get_json(silent=True))
    user = user_service.register_user(body.username, body.email, body.password)
    db.session.commit()
    return jsonify({
        "success": True,
        "message": "Registration successful. Waiting for admin approval.",
        "data": user_dict(user),
    }), 201


# ──────────────────────────────────────────────
# POST /api/auth/login
# ──────────────────────────────────────────────

@auth_bp.route("/login", methods=["POST"])
@limiter.limit("10 per minute")
def login():
    body = schemas.parse(schemas.LoginRequest, request.get_json(silent=True))
    user = user_service.authenticate(body.email, body.password)
    return jsonify({
        "success": True,
        "token": token_service.create_access_token(user),
        "data": user_dict(user),
    })
