"""Parameter service — server-owned settings taxonomy.

Every change bumps the single ParameterVersion row so the dashboard can
fetch the taxonomy once per session and refetch only when the version it
holds is stale.

Functions flush but do NOT commit — the caller commits.
"""

import logging

from tracker.errors import ConflictError, NotFoundError
from tracker.extensions import db
from tracker.models.parameter import Parameter, ParameterVersion
from tracker.utils import sanitize

logger = logging.getLogger(__name__)

# Loaded by `flask seed-parameters`.
DEFAULT_PARAMETERS = {
    "role": [
        ("Admin", "admin", None),
        ("Project Manager", "pm", None),
        ("Developer", "developer", None),
        ("User", "user", None),
    ],
    "phase": [
        ("Requirement", "requirement", "#6366f1"),
        ("Design", "design", "#8b5cf6"),
        ("Development", "development", "#0ea5e9"),
        ("Testing", "testing", "#f59e0b"),
        ("Deployment", "deployment", "#10b981"),
    ],
    "status": [
        ("Active", "Active", "#10b981"),
        ("On Hold", "On Hold", "#f59e0b"),
        ("Completed", "Completed", "#6366f1"),
        ("Cancelled", "Cancelled", "#ef4444"),
    ],
    "priority": [
        ("Low", "Low", "#94a3b8"),
        ("Medium", "Medium", "#0ea5e9"),
        ("High", "High", "#f59e0b"),
        ("Critical", "Critical", "#ef4444"),
    ],
}


def current_version():
    row = db.session.get(ParameterVersion, 1)
    return row.version if row else 0


def _bump_version():
    row = db.session.get(ParameterVersion, 1)
    if row is None:
        row = ParameterVersion(id=1, version=0)
        db.session.add(row)
    row.version += 1
    db.session.flush()
    return row.version


def _ensure_value_free(category, value, parameter_id=None):
    existing = Parameter.query.filter_by(category=category, value=value).first()
    if existing is not None and existing.id != parameter_id:
        raise ConflictError(f"'{value}' already exists in category '{category}'.")


def list_parameters(category=None):
    """Active parameters, optionally for one category, in display order."""
    query = Parameter.query.filter_by(is_active=True)
    if category:
        query = query.filter_by(category=category)
    return query.order_by(
        Parameter.category, Parameter.position, Parameter.label
    ).all()


def get_parameter(parameter_id):
    parameter = db.session.get(Parameter, parameter_id)
    if parameter is None:
        raise NotFoundError("Parameter not found.")
    return parameter


def create_parameter(category, label, value, color=None, position=0):
    label = sanitize(label)
    _ensure_value_free(category, value)
    parameter = Parameter(
        category=category,
        label=label,
        value=value,
        color=color,
        position=position,
        is_active=True,
    )
    db.session.add(parameter)
    db.session.flush()
    _bump_version()
    return parameter


def update_parameter(parameter_id, changes):
    parameter = get_parameter(parameter_id)

    if changes.get("value") and changes["value"] != parameter.value:
        _ensure_value_free(parameter.category, changes["value"], parameter.id)
        parameter.value = changes["value"]
    if changes.get("label"):
        parameter.label = sanitize(changes["label"])
    if "color" in changes:
        parameter.color = changes["color"]
    if changes.get("position") is not None:
        parameter.position = changes["position"]
    if changes.get("is_active") is not None:
        parameter.is_active = changes["is_active"]

    db.session.flush()
    _bump_version()
    return parameter


def deactivate_parameter(parameter_id):
    """Soft delete."""
    parameter = get_parameter(parameter_id)
    parameter.is_active = False
    db.session.flush()
    _bump_version()
    return parameter


def seed_defaults():
    """Insert the default taxonomy, skipping values that already exist.

    Returns:
        Number of parameters created.
    """
    created = 0
    for category, rows in DEFAULT_PARAMETERS.items():
        for position, (label, value, color) in enumerate(rows):
            if Parameter.query.filter_by(category=category, value=value).first():
                continue
            db.session.add(Parameter(
                category=category,
                label=label,
                value=value,
                color=color,
                position=position,
            ))
            created += 1
    if created:
        db.session.flush()
        _bump_version()
    logger.info(f"Seeded {created} default parameters")
    return created
