"""Entity code generation — human-readable "<PREFIX>-<N>" codes.

The next number is the count of existing rows whose code starts with
"<PREFIX>-", plus one. Counting is NOT atomic: two requests that count
before either inserts get the same code. generate_code() keeps that
behaviour on purpose; callers rely on the unique constraint on the code
column and recount on IntegrityError (see bug_service.create_bug).

Because the match is a plain prefix, codes of a project whose code
extends another's (e.g. "P-7-1" under prefix "P") count towards the
shorter prefix as well.
"""

from flask import current_app
from sqlalchemy import func

from tracker.extensions import db
from tracker.models.bug import Bug


def resolve_prefix(project=None):
    """Prefix for a new entity: the project's code, else the fallback."""
    if project is not None and project.code:
        return project.code
    return current_app.config["BUG_CODE_FALLBACK_PREFIX"]


def count_with_prefix(prefix, model=Bug):
    """Count rows of `model` whose code matches "<prefix>-%"."""
    return (
        db.session.query(func.count(model.id))
        .filter(model.code.startswith(f"{prefix}-", autoescape=True))
        .scalar()
    )


def generate_code(prefix, model=Bug):
    """Return the next sequential code for `prefix`, e.g. "ACME-3"."""
    return f"{prefix}-{count_with_prefix(prefix, model) + 1}"
