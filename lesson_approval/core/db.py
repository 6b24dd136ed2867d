# lesson_approval/core/db.py
from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from lesson_approval.core.config import settings
from lesson_approval.models.base import Base


def _connect_args(url: str) -> dict:
    # TestClient and uvicorn workers hand the connection across threads
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    future=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

@contextmanager
def db_session():
    """One transaction per unit of work; committed before the caller is answered."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

# FastAPI dependency
def get_db():
    with db_session() as db:
        yield db

def create_tables():
    """Create all tables in the database"""
    # registers every mapped class on Base.metadata
    import lesson_approval.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
