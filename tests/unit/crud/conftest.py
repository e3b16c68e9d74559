"""Shared fixtures for crud unit tests"""

import pytest
from sqlalchemy import create_engine
from sqlmodel import SQLModel, Session

from contentpipe.crud.models import ContentArtifact


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Fresh session per test; changes are not committed."""
    with Session(engine) as s:
        yield s


@pytest.fixture(name="artifact")
def artifact_fixture(session):
    """A minimal package artifact persisted to the session."""
    a = ContentArtifact(id="pkg-1", content_type="package", subtype="html", content_url="/content/pkg-1/index.html")
    session.add(a)
    session.flush()
    return a
