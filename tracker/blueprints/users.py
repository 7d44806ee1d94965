"""Users blueprint — /api/users/*

Route Map:
  GET    /api/users/me                  — Current user
  PUT    /api/users/me/password         — Change own password
  GET    /api/users/list                — Picker list (any signed-in user)
  POST   /api/users/admin/create        — Create approved user (admin)
  GET    /api/users/admin/list          — Full user list (admin)
  PUT    /api/users/admin/<id>/status   — Approve / reject / deactivate (admin)
  DELETE /api/users/admin/<id>          — Delete user (admin)
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user

from tracker import schemas
from tracker.decorators import admin_required, api_login_required
from tracker.extensions import db
from tracker.serializers import user_dict
from tracker.services import user_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.route("/me")
@api_login_required
def me():
    return jsonify({"success": True, "data": user_dict(current_user)})


@users_bp.route("/me/password", methods=["PUT"])
@api_login_required
def change_password():
    body = schemas.parse(schemas.PasswordChangeRequest, request.get_json(silent=True))
    user_service.change_password(current_user, body.current_password, body.new_password)
    db.session.commit()
    return jsonify({"success": True, "message": "Password updated."})


@users_bp.route("/list")
@api_login_required
def picker_list():
    users = user_service.list_users()
    return jsonify({
        "success": True,
        "data": [
            {
                "id": u.id,
                "username": u.username,
                "email": u.email,
                "role": u.role,
                "avatar": u.avatar,
            }
            for u in users
        ],
    })


# ─── Admin ─────────────────────────────────────────────────

@users_bp.route("/admin/create", methods=["POST"])
@admin_required
def admin_create():
    body = schemas.parse(schemas.AdminCreateUserRequest, request.get_json(silent=True))
    user = user_service.create_user(body.username, body.email, body.password, body.role)
    db.session.commit()
    return jsonify({"success": True, "message": "User created.", "data": user_dict(user)}), 201


@users_bp.route("/admin/list")
@admin_required
def admin_list():
    return jsonify({
        "success": True,
        "data": [user_dict(u) for u in user_service.list_users()],
    })


@users_bp.route("/admin/<user_id>/status", methods=["PUT"])
@admin_required
def admin_update_status(user_id):
    body = schemas.parse(schemas.UserStatusRequest, request.get_json(silent=True))
    user = user_service.update_status(user_id, body.status)
    db.session.commit()
    return jsonify({"success": True, "data": user_dict(user)})


@users_bp.route("/admin/<user_id>", methods=["DELETE"])
@admin_required
def admin_delete(user_id):
    user_service.delete_user(user_id, actor_user_id=current_user.id)
    db.session.commit()
    return jsonify({"success": True, "message": "User deleted."})
