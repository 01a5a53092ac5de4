# assettrack/db/session.py
"""
Database session management.
Builds engines and session factories for the app factory, and provides
the FastAPI dependency that hands a session to each request.
"""
import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

log = logging.getLogger("assettrack.database")


# ────────────────────────────────────────────
# SQLAlchemy Engine
# ────────────────────────────────────────────
def create_db_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite (tests, local tooling) shares a single connection so an
    in-memory database survives across sessions.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False
        )
    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=20,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before using
        echo=False  # Set to True for SQL debugging
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


# ────────────────────────────────────────────
# FastAPI Dependency
# ────────────────────────────────────────────
def get_db(request: Request) -> Iterator[Session]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.query(Item).all()
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


# ────────────────────────────────────────────
# Context Manager
# ────────────────────────────────────────────
@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """
    Context manager for database sessions outside of a request.

    Usage:
        with session_scope(factory) as db:
            asset = db.query(Asset).first()
    """
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ────────────────────────────────────────────
# Database Utilities
# ────────────────────────────────────────────
def test_db_connection(engine: Engine) -> bool:
    """Test database connection"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        log.info("✅ Database connection successful")
        return True
    except Exception as e:
        log.error(f"❌ Database connection failed: {e}")
        return False


def init_db(engine: Engine):
    """
    Initialize database tables.
    This will create all tables defined in models.
    """
    from assettrack.db.base import Base
    try:
        Base.metadata.create_all(bind=engine)
        log.info("✅ Database tables initialized")
    except Exception as e:
        log.error(f"❌ Failed to initialize database: {e}")
        raise
