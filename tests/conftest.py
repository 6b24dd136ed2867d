import os
import tempfile

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="lesson-uploads-"))
os.environ.setdefault("OLLAMA_BASE_URL", "http://ollama.test")
os.environ.setdefault("DEFAULT_LOCALE", "vi")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import lesson_approval.models  # noqa: F401
from lesson_approval.core.db import get_db
from lesson_approval.core.security import create_token
from lesson_approval.models.base import Base
from lesson_approval.services.helpers.seed_demo import seed_demo
from lesson_approval.services.lesson_plans import LessonPlanService
from lesson_approval.services.storage import FileRef
from lesson_approval.workflow.actors import ActorSnapshot


@pytest.fixture
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}",
        connect_args={"check_same_thread": False},
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def demo(db):
    data = seed_demo(db)
    db.commit()
    return data


@pytest.fixture
def actor(demo):
    """actor("cuong") -> ActorSnapshot read fresh from the user row."""
    def _actor(key: str) -> ActorSnapshot:
        return ActorSnapshot.from_user(demo.users[key])
    return _actor


@pytest.fixture
def plans(db):
    return LessonPlanService(db)


@pytest.fixture
def pdf():
    return FileRef(name="bai-day.pdf", url="/uploads/1-bai-day.pdf")


@pytest.fixture
def client(session_factory):
    from lesson_approval.main import app

    def _get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def auth(demo):
    def _auth(key: str, **headers) -> dict:
        return {"Authorization": f"Bearer {create_token(demo.users[key].id)}", **headers}
    return _auth
