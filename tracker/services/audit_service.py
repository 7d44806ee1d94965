"""Audit service — append-only audit trail and its visibility rules.

Writing: handle_entity_changed() is connected to the `entity_changed`
signal and appends one AuditLogEntry per committed change. Audit writes
are best-effort: a failure is rolled back and logged, never raised, so
the mutation that triggered it still reports success.

Reading: get_visible_logs() returns the newest entries a caller may see.
Admins see everything. Everyone else sees

  - entries they authored, of any entity type,
  - PROJECT entries for projects they created or are PIC on,
  - PHASE entries for phases of those projects.

BUG entries authored by someone else are never in a non-admin's scope,
even on a project they are PIC on.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

from flask import current_app
from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from tracker.errors import UpstreamStoreError
from tracker.events import EntityChanged, entity_changed
from tracker.extensions import db
from tracker.models.audit import AuditLogEntry
from tracker.models.project import Phase, Project, ProjectPic
from tracker.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisibilityScope:
    """Project and phase ids a non-admin may read audit entries for."""

    project_ids: FrozenSet[str] = field(default_factory=frozenset)
    phase_ids: FrozenSet[str] = field(default_factory=frozenset)


# ─── Writing ───────────────────────────────────────────────

def record(action, entity_type, entity_id, details, user_id=None) -> AuditLogEntry:
    """Append a single entry and commit it.

    Args:
        action: CREATE | UPDATE | DELETE
        entity_type: PROJECT | PHASE | BUG
        entity_id: Id of the entity as it was at write time.
        details: Human-readable summary of the change.
        user_id: Acting user, or None for system-originated changes.
    """
    entry = AuditLogEntry(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details,
    )
    db.session.add(entry)
    db.session.commit()
    return entry


def handle_entity_changed(sender, event: EntityChanged, **extra) -> None:
    """Signal receiver: persist one audit entry, swallowing any failure."""
    try:
        record(
            action=event.action,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            details=event.details,
            user_id=event.user_id,
        )
    except Exception:
        db.session.rollback()
        logger.exception(
            f"Failed to write audit log for {event.action} "
            f"{event.entity_type} {event.entity_id}"
        )


def init_audit_trail(app) -> None:
    """Subscribe the audit writer to committed entity changes."""
    entity_changed.connect(handle_entity_changed)


# ─── Reading ───────────────────────────────────────────────

def is_admin(identity) -> bool:
    return identity.role == User.ADMIN_ROLE


def compute_scope(user_id) -> VisibilityScope:
    """Projects the user created or is PIC on, plus all their phases."""
    owned = db.session.query(Project.id).filter(Project.created_by == user_id)
    assigned = db.session.query(ProjectPic.project_id).filter(
        ProjectPic.user_id == user_id
    )
    project_ids = {row[0] for row in owned} | {row[0] for row in assigned}

    phase_ids = set()
    if project_ids:
        phases = db.session.query(Phase.id).filter(Phase.project_id.in_(project_ids))
        phase_ids = {row[0] for row in phases}

    return VisibilityScope(frozenset(project_ids), frozenset(phase_ids))


def build_visibility_filter(user_id, scope: VisibilityScope):
    """OR of own-actions and in-scope PROJECT/PHASE entries.

    Clauses for an empty id set are left out rather than rendered as an
    empty IN list.
    """
    clauses = [AuditLogEntry.user_id == user_id]
    if scope.project_ids:
        clauses.append(
            and_(
                AuditLogEntry.entity_type == AuditLogEntry.PROJECT,
                AuditLogEntry.entity_id.in_(sorted(scope.project_ids)),
            )
        )
    if scope.phase_ids:
        clauses.append(
            and_(
                AuditLogEntry.entity_type == AuditLogEntry.PHASE,
                AuditLogEntry.entity_id.in_(sorted(scope.phase_ids)),
            )
        )
    return or_(*clauses)


def get_visible_logs(identity, limit: Optional[int] = None) -> List[AuditLogEntry]:
    """Newest-first audit entries visible to `identity`, capped at `limit`.

    Args:
        identity: Anything with `id` and `role` (normally current_user).
        limit: Page size; defaults to AUDIT_PAGE_SIZE.

    Raises:
        UpstreamStoreError: If any of the underlying queries fail. No
            partial result is returned.
    """
    if limit is None:
        limit = current_app.config["AUDIT_PAGE_SIZE"]

    try:
        query = AuditLogEntry.query.options(joinedload(AuditLogEntry.user))
        if not is_admin(identity):
            scope = compute_scope(identity.id)
            query = query.filter(build_visibility_filter(identity.id, scope))
        return query.order_by(AuditLogEntry.created_at.desc()).limit(limit).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Audit log query failed for user {identity.id}: {e}", exc_info=True)
        raise UpstreamStoreError("Failed to fetch logs") from e
