"""Shared fixtures: a throwaway SQLite database per test."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before app.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"

import pytest
from datetime import datetime
from sqlalchemy.orm import sessionmaker
from app.database import build_engine, create_tables, get_db
from app.services.settings_service import update_settings

T0 = datetime(2026, 3, 2, 9, 0)


@pytest.fixture
def engine(tmp_path):
    eng = build_engine(f"sqlite:///{tmp_path / 'parking.db'}")
    create_tables(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def two_slot_lot(db):
    """Lot with 2 slots at 10/hour."""
    update_settings(db, 2, "10")
    return db


@pytest.fixture
def client(session_factory):
    from fastapi.testclient import TestClient
    from app.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
