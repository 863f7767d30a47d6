"""
Database connection and session management module.

Uses SQLAlchemy for ORM operations. Supports PostgreSQL (production)
and SQLite (local development and tests).
Schema changes on PostgreSQL go through the Alembic revisions in
``backend/migrations``; SQLite databases are created straight from the models.
"""

import os
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

# Read database URL from environment
# Fallback to SQLite for local development when PostgreSQL is not available
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "sqlite:///./students.db"
)

BACKEND_DIR = Path(__file__).resolve().parents[1]

# SQLite does not support pool_size, max_overflow, or pool_pre_ping
engine_kwargs = {"echo": False}

if DATABASE_URL.startswith("postgresql"):
    engine_kwargs.update({
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
    })
elif DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync routes in a threadpool
    engine_kwargs["connect_args"] = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, **engine_kwargs)

if DATABASE_URL.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def get_db():
    """
    FastAPI dependency that provides a database session.

    The session is closed once the request finishes, returning its
    connection to the pool even if the handler raised.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """
    Create all database tables directly (used for SQLite local dev).
    For PostgreSQL, use run_migrations() instead.
    """
    Base.metadata.create_all(bind=engine)


def migrations_dir() -> Path:
    """
    Directory holding the Alembic env.py and versions/.

    Defaults to backend/migrations next to the app package; set
    MIGRATIONS_DIR when the package is installed away from the source tree.
    """
    return Path(os.getenv("MIGRATIONS_DIR", str(BACKEND_DIR / "migrations")))


def run_migrations(database_url: str = None, revision: str = "head"):
    """Upgrade the database at ``database_url`` to ``revision`` with Alembic."""
    from alembic import command
    from alembic.config import Config

    script_location = migrations_dir()
    if not (script_location / "env.py").is_file():
        raise FileNotFoundError(
            "No Alembic environment at {}; set MIGRATIONS_DIR".format(script_location))

    # backend/alembic.ini serves the alembic CLI; here everything is set in code
    cfg = Config()
    cfg.set_main_option("script_location", str(script_location))
    # configparser interpolation treats '%' specially (url-encoded passwords)
    cfg.set_main_option("sqlalchemy.url", (database_url or DATABASE_URL).replace("%", "%%"))
    command.upgrade(cfg, revision)
