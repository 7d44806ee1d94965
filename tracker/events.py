"""Domain events — decouple audit persistence from primary mutations.

Services stage an EntityChanged on the session right after their write.
Route handlers finish the unit of work with commit_and_publish(): staged
events are taken off the session, the transaction commits, and only then
is each event sent on the `entity_changed` signal. If the commit raises,
the events are gone with it, so a failed write never produces an audit
entry.

Receivers run after the primary commit; whatever they do cannot change
the outcome the caller sees.
"""

from dataclasses import dataclass
from typing import Optional

from blinker import Namespace
from flask import current_app

from tracker.extensions import db

_signals = Namespace()

#: Sent once per committed state change. Receivers get `event=EntityChanged`.
entity_changed = _signals.signal("entity-changed")

_STAGED_KEY = "tracker.staged_events"


@dataclass(frozen=True)
class EntityChanged:
    action: str  # CREATE | UPDATE | DELETE
    entity_type: str  # PROJECT | PHASE | BUG
    entity_id: str
    details: str
    user_id: Optional[str] = None


def stage(event: EntityChanged, session=None) -> None:
    """Queue an event to be published after the session commits."""
    session = session or db.session
    session.info.setdefault(_STAGED_KEY, []).append(event)


def staged(session=None) -> list:
    session = session or db.session
    return list(session.info.get(_STAGED_KEY, []))


def discard(session=None) -> None:
    """Drop staged events, e.g. after a rollback."""
    session = session or db.session
    session.info.pop(_STAGED_KEY, None)


def commit_and_publish(session=None) -> None:
    """Commit the current unit of work, then publish its staged events."""
    session = session or db.session
    events = session.info.pop(_STAGED_KEY, [])
    session.commit()

    app = current_app._get_current_object()
    for event in events:
        entity_changed.send(app, event=event)
