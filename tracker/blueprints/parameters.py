"""Parameters blueprint — /api/parameters/*

Server-owned taxonomy for roles, phases, statuses and priorities. Every
response carries `version`; clients cache the taxonomy and refetch when
the version they hold is older.

Route Map:
  GET    /api/parameters           — Active parameters (?category=)
  GET    /api/parameters/version   — Current taxonomy version only
  POST   /api/parameters           — Create (admin)
  PUT    /api/parameters/<id>      — Update (admin)
  DELETE /api/parameters/<id>      — Soft delete (admin)
"""

from flask import Blueprint, jsonify, request

from tracker import schemas
from tracker.decorators import admin_required, api_login_required
from tracker.errors import ValidationError
from tracker.extensions import db
from tracker.models.parameter import Parameter
from tracker.serializers import parameter_dict
from tracker.services import parameter_service

parameters_bp = Blueprint("parameters", __name__, url_prefix="/api/parameters")


@parameters_bp.route("", methods=["GET"])
@api_login_required
def list_parameters():
    category = request.args.get("category")
    if category and category not in Parameter.CATEGORIES:
        raise ValidationError(
            f"Invalid category '{category}'. Must be one of: {', '.join(Parameter.CATEGORIES)}"
        )
    parameters = parameter_service.list_parameters(category)
    return jsonify({
        "success": True,
        "version": parameter_service.current_version(),
        "data": [parameter_dict(p) for p in parameters],
    })


@parameters_bp.route("/version", methods=["GET"])
@api_login_required
def version():
    return jsonify({"success": True, "version": parameter_service.current_version()})


@parameters_bp.route("", methods=["POST"])
@admin_required
def create_parameter():
    body = schemas.parse(schemas.ParameterCreate, request.get_json(silent=True))
    parameter = parameter_service.create_parameter(
        body.category, body.label, body.value, body.color, body.position
    )
    db.session.commit()
    return jsonify({
        "success": True,
        "version": parameter_service.current_version(),
        "data": parameter_dict(parameter),
    }), 201


@parameters_bp.route("/<parameter_id>", methods=["PUT"])
@admin_required
def update_parameter(parameter_id):
    body = schemas.parse(schemas.ParameterUpdate, request.get_json(silent=True))
    parameter = parameter_service.update_parameter(parameter_id, schemas.provided(body))
    db.session.commit()
    return jsonify({
        "success": True,
        "version": parameter_service.current_version(),
        "data": parameter_dict(parameter),
    })


@parameters_bp.route("/<parameter_id>", methods=["DELETE"])
@admin_required
def delete_parameter(parameter_id):
    parameter_service.deactivate_parameter(parameter_id)
    db.session.commit()
    return jsonify({
        "success": True,
        "version": parameter_service.current_version(),
        "message": "Parameter deleted.",
    })
