"""Model → JSON dicts for API responses. Password hashes never leave here."""


def _iso(value):
    return value.isoformat() if value is not None else None


def user_summary(user):
    if user is None:
        return None
    return {"id": user.id, "username": user.username, "avatar": user.avatar}


def user_dict(user):
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "status": user.status,
        "avatar": user.avatar,
        "created_at": _iso(user.created_at),
    }


def pic_dict(pic):
    return {
        "id": pic.id,
        "project_id": pic.project_id,
        "user_id": pic.user_id,
        "name": pic.name,
        "avatar": pic.avatar,
        "role": pic.user.role if pic.user is not None else None,
    }


def phase_dict(phase):
    return {
        "id": phase.id,
        "project_id": phase.project_id,
        "name": phase.name,
        "start_date": _iso(phase.start_date),
        "end_date": _iso(phase.end_date),
        "status": phase.status,
        "progress": phase.progress,
        "position": phase.position,
    }


def project_dict(project):
    return {
        "id": project.id,
        "code": project.code,
        "name": project.name,
        "priority": project.priority,
        "status": project.status,
        "description": project.description,
        "icon": project.icon,
        "notes": project.notes,
        "documents": project.documents or [],
        "archived": project.archived,
        "created_by": project.created_by,
        "created_at": _iso(project.created_at),
        "phases": [phase_dict(p) for p in project.phases],
        "pics": [pic_dict(p) for p in project.pics],
    }


def bug_dict(bug):
    project = bug.project
    return {
        "id": bug.id,
        "code": bug.code,
        "summary": bug.summary,
        "description": bug.description,
        "status": bug.status,
        "priority": bug.priority,
        "type": bug.type,
        "project_id": bug.project_id,
        "parent_id": bug.parent_id,
        "components": bug.components or [],
        "labels": bug.labels or [],
        "attachments": bug.attachments or [],
        "created_at": _iso(bug.created_at),
        "updated_at": _iso(bug.updated_at),
        "reporter": user_summary(bug.reporter),
        "project": (
            {"id": project.id, "name": project.name, "code": project.code}
            if project is not None else None
        ),
    }


def audit_entry_dict(entry):
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "action": entry.action,
        "entity_type": entry.entity_type,
        "entity_id": entry.entity_id,
        "details": entry.details,
        "created_at": _iso(entry.created_at),
        "user": user_summary(entry.user),
    }


def parameter_dict(parameter):
    return {
        "id": parameter.id,
        "category": parameter.category,
        "label": parameter.label,
        "value": parameter.value,
        "color": parameter.color,
        "position": parameter.position,
        "is_active": parameter.is_active,
    }


def message_dict(msg):
    return {
        "id": msg.id,
        "user_id": msg.user_id,
        "title": msg.title,
        "content": msg.content,
        "sender": msg.sender,
        "type": msg.type,
        "is_read": msg.is_read,
        "created_at": _iso(msg.created_at),
    }
