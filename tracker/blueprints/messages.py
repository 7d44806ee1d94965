"""Messages blueprint — /api/messages/*

Route Map:
  GET  /api/messages            — Caller's inbox, newest first
  PUT  /api/messages/<id>/read  — Mark own message read
  POST /api/messages            — Send a message to a user (admin)
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user

from tracker import schemas
from tracker.decorators import admin_required, api_login_required
from tracker.extensions import db
from tracker.serializers import message_dict
from tracker.services import message_service

messages_bp = Blueprint("messages", __name__, url_prefix="/api/messages")


@messages_bp.route("", methods=["GET"])
@api_login_required
def inbox():
    messages = message_service.list_for_user(current_user.id)
    return jsonify({"success": True, "data": [message_dict(m) for m in messages]})


@messages_bp.route("/<message_id>/read", methods=["PUT"])
@api_login_required
def mark_read(message_id):
    msg = message_service.mark_read(message_id, current_user.id)
    db.session.commit()
    return jsonify({"success": True, "data": message_dict(msg)})


@messages_bp.route("", methods=["POST"])
@admin_required
def send():
    body = schemas.parse(schemas.MessageCreate, request.get_json(silent=True))
    msg = message_service.send_message(
        body.user_id, body.title, body.content,
        sender=current_user.username, type=body.type,
    )
    db.session.commit()
    return jsonify({"success": True, "data": message_dict(msg)}), 201
