"""Project service — timeline projects, their PICs and phases.

Every create/update/delete stages an audit event (PROJECT or PHASE) for
publication once the caller commits.

Functions flush but do NOT commit — the caller commits.
"""

import logging

from sqlalchemy.orm import selectinload

from tracker import events
from tracker.errors import ConflictError, NotFoundError, ValidationError
from tracker.events import EntityChanged
from tracker.extensions import db
from tracker.models.audit import AuditLogEntry
from tracker.models.project import Phase, Project, ProjectPic
from tracker.models.user import User
from tracker.utils import sanitize

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("name", "description", "notes")


def _status_details(label, old_status, new_status, fallback):
    if old_status != new_status:
        return f"{label}: Status changed from {old_status} to {new_status}"
    return fallback


def _build_pic(pic_in):
    # Only link ids that belong to a registered user; the rest are free text.
    user_id = None
    if pic_in.id and db.session.get(User, pic_in.id) is not None:
        user_id = pic_in.id
    return ProjectPic(
        user_id=user_id,
        name=sanitize(pic_in.name),
        avatar=pic_in.avatar,
    )


def _apply_phase(phase, phase_in, position):
    phase.name = sanitize(phase_in.name) or "Phase"
    phase.start_date = phase_in.start_date
    phase.end_date = phase_in.end_date
    phase.status = phase_in.status or "pending"
    phase.progress = phase_in.progress or 0
    phase.position = position
    return phase


def _phase_label(phase, code):
    return f'Phase "{phase.name}" in Project {code}'


def _phase_state(phase):
    return (
        phase.name,
        phase.start_date,
        phase.end_date,
        phase.status,
        phase.progress,
        phase.position,
    )


def _stage_phase(action, phase_id, details, user_id):
    events.stage(EntityChanged(
        action=action,
        entity_type=AuditLogEntry.PHASE,
        entity_id=phase_id,
        details=details,
        user_id=user_id,
    ))


def _ensure_code_free(code, project_id=None):
    existing = Project.query.filter_by(code=code).first()
    if existing is not None and existing.id != project_id:
        raise ConflictError(f"Project code '{code}' is already in use.")


def list_projects(include_archived=True):
    query = Project.query.options(
        selectinload(Project.phases),
        selectinload(Project.pics).joinedload(ProjectPic.user),
    )
    if not include_archived:
        query = query.filter(Project.archived.is_(False))
    return query.order_by(Project.created_at.asc(), Project.code.asc()).all()


def get_project(project_id):
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found.")
    return project


def create_project(creator_id, body):
    """Create a project with its PICs and phases.

    Args:
        creator_id: Owning user; gets audit visibility over the project.
        body: schemas.ProjectCreate

    Raises:
        ConflictError: If the project code is taken.
    """
    code = body.code.strip()
    _ensure_code_free(code)

    project = Project(
        code=code,
        name=sanitize(body.name),
        priority=body.priority,
        status=body.status,
        description=sanitize(body.description),
        icon=body.icon,
        notes=sanitize(body.notes),
        documents=body.documents,
        created_by=creator_id,
    )
    project.pics = [_build_pic(p) for p in body.pics]
    project.phases = [
        _apply_phase(Phase(), phase_in, index)
        for index, phase_in in enumerate(body.phases)
    ]
    db.session.add(project)
    db.session.flush()

    events.stage(EntityChanged(
        action="CREATE",
        entity_type=AuditLogEntry.PROJECT,
        entity_id=project.id,
        details=f'Project "{project.code}" created',
        user_id=creator_id,
    ))
    for phase in project.phases:
        _stage_phase(
            "CREATE", phase.id, f"{_phase_label(phase, code)} created", creator_id
        )
    return project


def update_project(project_id, actor_user_id, body):
    """Update project details; replace PICs and sync phases if sent.

    Phases carrying an `id` of an existing phase are updated in place (so
    their audit trail stays attached); phases without one are created;
    phases missing from the list are removed. Every phase the sync touches gets its
    own PHASE entry, staged after the PROJECT one.

    Raises:
        ValidationError: The same phase id is sent twice.
        ConflictError: The new code is taken.
    """
    project = get_project(project_id)
    old_status = project.status
    sent = body.model_fields_set
    sync_phases = "phases" in sent and body.phases is not None

    if sync_phases:
        sent_ids = [p.id for p in body.phases if p.id]
        if len(sent_ids) != len(set(sent_ids)):
            raise ValidationError("Each phase can only appear once.")

    if "code" in sent and body.code is not None:
        code = body.code.strip()
        _ensure_code_free(code, project.id)
        # Existing bug codes keep the old prefix.
        project.code = code

    for name in ("priority", "status", "icon", "archived", "documents"):
        if name in sent and getattr(body, name) is not None:
            setattr(project, name, getattr(body, name))
    for name in _TEXT_FIELDS:
        if name in sent:
            value = sanitize(getattr(body, name))
            if name == "name" and not value:
                continue
            setattr(project, name, value)

    if "pics" in sent and body.pics is not None:
        project.pics = [_build_pic(p) for p in body.pics]

    synced, before, removed = [], {}, []
    if sync_phases:
        existing = {phase.id: phase for phase in project.phases}
        before = {
            phase.id: (_phase_state(phase), phase.status)
            for phase in project.phases
        }
        for index, phase_in in enumerate(body.phases):
            phase = existing.get(phase_in.id) if phase_in.id else None
            synced.append(_apply_phase(phase or Phase(), phase_in, index))
        kept = {phase.id for phase in synced if phase.id}
        removed = [
            (phase.id, phase.name)
            for phase in project.phases
            if phase.id not in kept
        ]
        project.phases = synced

    db.session.flush()

    events.stage(EntityChanged(
        action="UPDATE",
        entity_type=AuditLogEntry.PROJECT,
        entity_id=project.id,
        details=_status_details(
            f'Project "{project.code}"',
            old_status,
            project.status,
            f'Project "{project.code}" details updated',
        ),
        user_id=actor_user_id,
    ))

    for phase in synced:
        label = _phase_label(phase, project.code)
        if phase.id not in before:
            _stage_phase("CREATE", phase.id, f"{label} created", actor_user_id)
            continue
        old_state, old_phase_status = before[phase.id]
        if _phase_state(phase) != old_state:
            details = _status_details(
                label, old_phase_status, phase.status, f"{label} updated"
            )
            _stage_phase("UPDATE", phase.id, details, actor_user_id)
    for phase_id, name in removed:
        _stage_phase(
            "DELETE",
            phase_id,
            f'Phase "{name}" in Project {project.code} deleted',
            actor_user_id,
        )
    return project


def update_phase(project_id, phase_id, actor_user_id, changes):
    """Update a single phase of a project.

    Args:
        changes: Dict of only the fields the client sent.

    Raises:
        NotFoundError: Phase unknown or not part of this project.
    """
    phase = db.session.get(Phase, phase_id)
    if phase is None or phase.project_id != project_id:
        raise NotFoundError("Phase not found.")

    old_status = phase.status

    if changes.get("name"):
        phase.name = sanitize(changes["name"]) or phase.name
    if "start_date" in changes:
        phase.start_date = changes["start_date"]
    if "end_date" in changes:
        phase.end_date = changes["end_date"]
    if changes.get("status"):
        phase.status = changes["status"]
    if changes.get("progress") is not None:
        phase.progress = changes["progress"]

    db.session.flush()

    label = _phase_label(phase, phase.project.code)
    _stage_phase(
        "UPDATE",
        phase.id,
        _status_details(label, old_status, phase.status, f"{label} updated"),
        actor_user_id,
    )
    return phase


def delete_project(project_id, actor_user_id):
    """Delete a project with its PICs and phases.

    Raises:
        ConflictError: Bugs are still filed against the project; archive
            it instead.
    """
    project = get_project(project_id)
    if project.bugs.first() is not None:
        raise ConflictError(
            "Project has bugs filed against it. Archive it instead."
        )

    code = project.code
    entity_id = project.id
    phases = [(phase.id, phase.name) for phase in project.phases]
    db.session.delete(project)
    db.session.flush()
    logger.info(f"Deleted project {code}")

    for phase_id, name in phases:
        _stage_phase(
            "DELETE",
            phase_id,
            f'Phase "{name}" in Project {code} deleted',
            actor_user_id,
        )
    events.stage(EntityChanged(
        action="DELETE",
        entity_type=AuditLogEntry.PROJECT,
        entity_id=entity_id,
        details=f'Project "{code}" deleted',
        user_id=actor_user_id,
    ))
