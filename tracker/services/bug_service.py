"""Bug service — create with generated code, update with audit emission.

Summary and description are sanitized with bleach. Bug codes are
"<PROJECT_CODE>-<n>" for bugs filed against a project and
"<FALLBACK>-<n>" otherwise; see code_service for how <n> is chosen.

Functions flush but do NOT commit — the caller commits (via
events.commit_and_publish so staged audit events go out afterwards).
"""

import logging
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import joinedload

from tracker import events
from tracker.errors import CodeConflictError, NotFoundError, ValidationError
from tracker.events import EntityChanged
from tracker.extensions import db
from tracker.models.audit import AuditLogEntry
from tracker.models.bug import Bug
from tracker.models.project import Project
from tracker.services import code_service
from tracker.utils import sanitize, sanitize_list

logger = logging.getLogger(__name__)

# Fields that may be sent as null on update.
_NULLABLE_FIELDS = {"description", "components", "labels", "attachments"}


def _check_choice(name, value, choices):
    if value not in choices:
        raise ValidationError(
            f"Invalid {name} '{value}'. Must be one of: {', '.join(choices)}"
        )


def list_bugs(project_id=None):
    """All bugs, newest first, with reporter and project eagerly loaded."""
    query = Bug.query.options(joinedload(Bug.reporter), joinedload(Bug.project))
    if project_id:
        query = query.filter(Bug.project_id == project_id)
    return query.order_by(Bug.created_at.desc()).all()


def get_bug(bug_id):
    bug = db.session.get(Bug, bug_id)
    if bug is None:
        raise NotFoundError("Bug not found.")
    return bug


def create_bug(
    reporter_id,
    summary,
    description=None,
    priority=None,
    type=None,
    project_id=None,
    parent_id=None,
    components=None,
    labels=None,
    attachments=None,
):
    """File a new bug and assign its code.

    The count-then-insert is retried up to CODE_ASSIGN_ATTEMPTS times when
    another request took the same code first. Each retry rolls back the
    session, so this must be the only write in its unit of work.

    Returns:
        The created Bug, status OPEN.

    Raises:
        ValidationError: Summary empty, or bad priority/type.
        NotFoundError: project_id or parent_id doesn't exist.
        CodeConflictError: No free code after all attempts.
    """
    summary = sanitize(summary)
    if not summary:
        raise ValidationError("Summary is required.")
    description = sanitize(description)

    priority = priority or "Medium"
    type = type or "Bug"
    _check_choice("priority", priority, Bug.PRIORITIES)
    _check_choice("type", type, Bug.TYPES)

    project = None
    if project_id:
        project = db.session.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project not found.")
    if parent_id and db.session.get(Bug, parent_id) is None:
        raise NotFoundError("Parent bug not found.")

    prefix = code_service.resolve_prefix(project)
    attempts = current_app.config["CODE_ASSIGN_ATTEMPTS"]

    for attempt in range(1, attempts + 1):
        code = code_service.generate_code(prefix)
        bug = Bug(
            code=code,
            summary=summary,
            description=description,
            status="OPEN",
            priority=priority,
            type=type,
            project_id=project_id or None,
            parent_id=parent_id or None,
            reporter_id=reporter_id,
            components=sanitize_list(components) or [],
            labels=sanitize_list(labels) or [],
            attachments=attachments or [],
        )
        db.session.add(bug)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            logger.warning(
                f"Bug code {code} already taken (attempt {attempt}/{attempts})"
            )
            continue
        break
    else:
        raise CodeConflictError(
            f"Could not assign a unique code under prefix '{prefix}'. Please retry."
        )

    # Only bugs filed against a project are announced on the audit trail.
    if project is not None:
        events.stage(EntityChanged(
            action="CREATE",
            entity_type=AuditLogEntry.BUG,
            entity_id=bug.id,
            details=f'Bug "{code}" created in Project {prefix}',
            user_id=reporter_id,
        ))

    return bug


def update_bug(bug_id, actor_user_id, changes):
    """Apply a partial update.

    Args:
        bug_id: Bug UUID string.
        actor_user_id: User performing the change.
        changes: Dict of only the fields the client sent.

    Returns:
        The updated Bug.

    Raises:
        NotFoundError: Unknown bug id.
        ValidationError: Bad status/priority/type, or a required field
            sent as null/empty.
    """
    bug = get_bug(bug_id)

    # Snapshot before the write; decides which audit message to emit.
    old_status = bug.status

    for name, value in changes.items():
        if value is None and name not in _NULLABLE_FIELDS:
            raise ValidationError(f"{name} cannot be null.")

    if "summary" in changes:
        summary = sanitize(changes["summary"])
        if not summary:
            raise ValidationError("Summary is required.")
        bug.summary = summary
    if "description" in changes:
        bug.description = sanitize(changes["description"])
    if "status" in changes:
        _check_choice("status", changes["status"], Bug.STATUSES)
        bug.status = changes["status"]
    if "priority" in changes:
        _check_choice("priority", changes["priority"], Bug.PRIORITIES)
        bug.priority = changes["priority"]
    if "type" in changes:
        _check_choice("type", changes["type"], Bug.TYPES)
        bug.type = changes["type"]
    if "components" in changes:
        bug.components = sanitize_list(changes["components"]) or []
    if "labels" in changes:
        bug.labels = sanitize_list(changes["labels"]) or []
    if "attachments" in changes:
        bug.attachments = changes["attachments"] or []

    bug.updated_at = datetime.now(timezone.utc)
    db.session.flush()

    if bug.status != old_status:
        details = f'Bug "{bug.code}": Status changed from {old_status} to {bug.status}'
    else:
        details = f'Bug "{bug.code}" details updated'

    events.stage(EntityChanged(
        action="UPDATE",
        entity_type=AuditLogEntry.BUG,
        entity_id=bug.id,
        details=details,
        user_id=actor_user_id,
    ))

    return bug
