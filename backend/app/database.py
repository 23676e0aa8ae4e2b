"""
Database Engine & Session Management
SQLAlchemy setup with dependency injection for FastAPI.
"""
import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from app.config import get_settings

settings = get_settings()

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite:///"):
    # Ensure data directory exists
    os.makedirs(os.path.dirname(settings.DATABASE_URL.replace("sqlite:///", "")), exist_ok=True)
    connect_args = {"check_same_thread": False}  # Required for SQLite

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a database session, auto-closes on finish."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """FastAPI dependency: the session factory used by background work."""
    return SessionLocal


def init_db(bind=None):
    """Create all tables. Called once at application startup."""
    from app.models import payment as _payment_model        # noqa: F401
    from app.models import order as _order_model            # noqa: F401
    from app.models import audit as _audit_model            # noqa: F401
    from app.models import notification as _notification   # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
