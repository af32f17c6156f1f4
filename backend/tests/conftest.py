"""
Pytest fixtures for PPE Logs backend tests.

Provides a throwaway SQLite database per test, roster builders and an API
client wired to that database.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ppe_logs.database import Base
from ppe_logs.models import EquipmentItem, Person


@pytest.fixture()
def engine(tmp_path):
    """SQLite engine backed by a file in the test's tmp dir."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'ppe_logs_test.sqlite3'}",
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture()
def make_person(db_session):
    """Create a person owning the given (barcode, category, description) items."""

    def _make(name: str, employee_ref: str, items: list[tuple[str, str, str]] = ()) -> Person:
        person = Person(id=uuid.uuid4(), name=name, employee_ref=employee_ref)
        db_session.add(person)
        db_session.flush()
        for barcode, category, description in items:
            db_session.add(
                EquipmentItem(
                    barcode=barcode,
                    category=category,
                    description=description,
                    owner_id=person.id,
                )
            )
        db_session.commit()
        return person

    return _make


@pytest.fixture()
def fixed_clock():
    moment = datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)
    return lambda: moment
