"""
Shared pytest fixtures for the project tracker test suite.

Provides:
    - app: Flask application (session-scoped, in-memory SQLite)
    - _setup_db: table creation/teardown (session-scoped)
    - session: per-test app context with tables recreated afterwards (autouse)
    - client: Flask test client
    - settings: TrackerSettings for the testing config
    - alice / bob / platform_team / project: pre-created entities
"""

import pytest

from tracker import create_app
from tracker.config import settings_from_config
from tracker.models import db as _db
from tracker.services import person_service, project_service, team_service


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def settings(app):
    return settings_from_config(app.config)


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def platform_team():
    return team_service.create_team({"name": "Platform", "description": "Core platform"})


@pytest.fixture()
def alice(platform_team):
    return person_service.create_person(
        {"email": "alice@x.com", "name": "Alice Example", "team": "Platform"}
    )


@pytest.fixture()
def bob():
    return person_service.create_person({"email": "bob@x.com", "name": "Bob Example"})


@pytest.fixture()
def project(alice):
    return project_service.create_project(
        {"name": "Apollo", "technical_lead": "alice@x.com", "team": "Platform"}
    )
