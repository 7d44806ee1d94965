"""Shared test fixtures for the tracker test suite.

Provides:
- app: Flask app configured for testing (in-memory SQLite, rate limits off)
- client: Flask test client
- db_session: clean database per test (tables created/dropped)
- seed_data: users of every kind, two projects with phases, bearer headers
"""

from datetime import date

import pytest
from flask import g, request_finished
from werkzeug.security import generate_password_hash

from tracker import create_app
from tracker.extensions import db as _db
from tracker.models.project import Phase, Project, ProjectPic
from tracker.models.user import User
from tracker.services import token_service


@pytest.fixture(scope="session")
def app():
    """Create the Flask application configured for testing."""
    app = create_app("testing")
    yield app


@pytest.fixture(autouse=True)
def db_session(app):
    """Create all tables before each test, drop after."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture
def client(app):
    """Flask test client.

    Requests run inside the test's app context and so share its `g`;
    the identity Flask-Login caches there is dropped after each request
    so every call is resolved from its own Authorization header.
    """

    def forget_identity(sender, **extra):
        g.pop("_login_user", None)

    with request_finished.connected_to(forget_identity, app):
        yield app.test_client()


def make_user(session, username, role=User.DEFAULT_ROLE, status="approved"):
    """Insert a user whose password is "<username>-pass"."""
    user = User(
        username=username,
        email=f"{username}@tracker.test",
        password_hash=generate_password_hash(f"{username}-pass"),
        role=role,
        status=status,
    )
    session.add(user)
    session.flush()
    return user


def bearer(user):
    return {"Authorization": f"Bearer {token_service.create_access_token(user)}"}


@pytest.fixture
def seed_data(app, db_session):
    """Seed users, projects, PIC assignments and phases.

    - ACME: created by `owner`, `pic` assigned as person in charge,
      phases "Design" and "Build".
    - ZEN: created by `admin`, nobody else involved, phase "Launch".
    - `outsider` has no relation to either project.
    - `pending` has registered but is not approved.

    Returns a dict with the created objects, their ids, and ready-made
    Authorization headers for every approved user.
    """
    admin = make_user(db_session, "admin", role=User.ADMIN_ROLE)
    owner = make_user(db_session, "owner")
    pic = make_user(db_session, "pic")
    outsider = make_user(db_session, "outsider")
    pending = make_user(db_session, "pending", status="pending")

    # --- ACME: owner's project, pic assigned ---
    acme = Project(code="ACME", name="Acme Portal", created_by=owner.id)
    acme.pics = [ProjectPic(user_id=pic.id, name="pic")]
    acme.phases = [
        Phase(name="Design", position=0,
              start_date=date(2026, 1, 5), end_date=date(2026, 2, 1)),
        Phase(name="Build", position=1,
              start_date=date(2026, 2, 2), end_date=date(2026, 4, 30)),
    ]
    db_session.add(acme)

    # --- ZEN: admin's project ---
    zen = Project(code="ZEN", name="Zen Rollout", created_by=admin.id)
    zen.phases = [Phase(name="Launch", position=0)]
    db_session.add(zen)

    db_session.commit()

    return {
        "admin": admin,
        "owner": owner,
        "pic": pic,
        "outsider": outsider,
        "pending": pending,
        "acme": acme,
        "acme_id": acme.id,
        "acme_phase_ids": [p.id for p in acme.phases],
        "zen": zen,
        "zen_id": zen.id,
        "zen_phase_id": zen.phases[0].id,
        "headers": {
            "admin": bearer(admin),
            "owner": bearer(owner),
            "pic": bearer(pic),
            "outsider": bearer(outsider),
        },
    }
