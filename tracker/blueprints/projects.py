"""Projects blueprint — /api/projects/*

Route Map:
  GET    /api/projects                           — All projects with phases + PICs
  POST   /api/projects                           — Create project
  PUT    /api/projects/<id>                      — Update project (syncs PICs/phases)
  PUT    /api/projects/<project_id>/phases/<id>  — Update one phase
  DELETE /api/projects/<id>                      — Delete project

Every mutation is audited once its transaction commits.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user

from tracker import events, schemas
from tracker.decorators import api_login_required
from tracker.serializers import phase_dict, project_dict
from tracker.services import project_service

projects_bp = Blueprint("projects", __name__, url_prefix="/api/projects")


@projects_bp.route("", methods=["GET"])
@api_login_required
def list_projects():
    include_archived = request.args.get("archived", "true").lower() != "false"
    projects = project_service.list_projects(include_archived=include_archived)
    return jsonify({"success": True, "data": [project_dict(p) for p in projects]})


@projects_bp.route("", methods=["POST"])
@api_login_required
def create_project():
    body = schemas.parse(schemas.ProjectCreate, request.get_json(silent=True))
    project = project_service.create_project(current_user.id, body)
    events.commit_and_publish()
    return jsonify({"success": True, "data": project_dict(project)}), 201


@projects_bp.route("/<project_id>", methods=["PUT"])
@api_login_required
def update_project(project_id):
    body = schemas.parse(schemas.ProjectUpdate, request.get_json(silent=True))
    project = project_service.update_project(project_id, current_user.id, body)
    events.commit_and_publish()
    return jsonify({"success": True, "data": project_dict(project)})


@projects_bp.route("/<project_id>/phases/<phase_id>", methods=["PUT"])
@api_login_required
def update_phase(project_id, phase_id):
    body = schemas.parse(schemas.PhaseUpdate, request.get_json(silent=True))
    phase = project_service.update_phase(
        project_id, phase_id, current_user.id, schemas.provided(body)
    )
    events.commit_and_publish()
    return jsonify({"success": True, "data": phase_dict(phase)})


@projects_bp.route("/<project_id>", methods=["DELETE"])
@api_login_required
def delete_project(project_id):
    project_service.delete_project(project_id, current_user.id)
    events.commit_and_publish()
    return jsonify({"success": True, "message": "Project deleted."})
