"""
Database wiring: one engine per process, one session per request.

Time entries are written with naive company-local timestamps, so no
timezone handling happens at this layer.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from app.core.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # TestClient and uvicorn workers touch the connection from other threads
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True, "pool_size": 5, "max_overflow": 10}


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency yielding a session; services decide when to commit."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create the users, time_entries, company_settings and audit_logs tables if missing."""
    from app.models import user, time_entry, company_settings, audit_log  # noqa: F401
    Base.metadata.create_all(bind=engine)
