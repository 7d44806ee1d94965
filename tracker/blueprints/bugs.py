"""Bugs blueprint — /api/bugs/*

Route Map:
  GET  /api/bugs         — All bugs, newest first (?project_id= to filter)
  GET  /api/bugs/<id>    — One bug
  POST /api/bugs         — File a bug; code assigned from project or fallback
  PUT  /api/bugs/<id>    — Partial update; always audited
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user

from tracker import events, schemas
from tracker.decorators import api_login_required
from tracker.serializers import bug_dict
from tracker.services import bug_service

bugs_bp = Blueprint("bugs", __name__, url_prefix="/api/bugs")


@bugs_bp.route("", methods=["GET"])
@api_login_required
def list_bugs():
    bugs = bug_service.list_bugs(project_id=request.args.get("project_id"))
    return jsonify({"success": True, "data": [bug_dict(b) for b in bugs]})


@bugs_bp.route("/<bug_id>", methods=["GET"])
@api_login_required
def get_bug(bug_id):
    return jsonify({"success": True, "data": bug_dict(bug_service.get_bug(bug_id))})


@bugs_bp.route("", methods=["POST"])
@api_login_required
def create_bug():
    body = schemas.parse(schemas.BugCreate, request.get_json(silent=True))
    bug = bug_service.create_bug(reporter_id=current_user.id, **body.model_dump())
    events.commit_and_publish()
    return jsonify({"success": True, "data": bug_dict(bug)}), 201


@bugs_bp.route("/<bug_id>", methods=["PUT"])
@api_login_required
def update_bug(bug_id):
    body = schemas.parse(schemas.BugUpdate, request.get_json(silent=True))
    bug = bug_service.update_bug(bug_id, current_user.id, schemas.provided(body))
    events.commit_and_publish()
    return jsonify({"success": True, "data": bug_dict(bug)})
