"""
Shared fixtures: an in-memory SQLite store and an API client whose
application runs on its own in-memory store.
"""

import pytest
from fastapi.testclient import TestClient

from warehouse_booking.config import Settings
from warehouse_booking.database import build_engine, build_session_factory, create_tables
from warehouse_booking.main import create_app
from warehouse_booking.utils.security import create_access_token

from tests.factories import make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def engine(settings):
    engine = build_engine(settings)
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    """Session bound to the in-memory store"""
    session = build_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def app():
    """Application on its own in-memory store; tables created by the lifespan"""
    return create_app(make_settings())


@pytest.fixture
def api(app):
    """
    (client, seed_session_factory) with the lifespan running.

    Seed data through a short-lived session and close it before calling
    the API: SQLite in memory shares one connection between sessions.
    """
    with TestClient(app) as client:
        yield client, app.state.session_factory


@pytest.fixture
def auth_headers_for(app):
    def _headers(user_id: str) -> dict:
        token = create_access_token({"sub": user_id}, app.state.settings)
        return {"Authorization": f"Bearer {token}"}
    return _headers
