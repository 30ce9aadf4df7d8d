"""Database engine and session management."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command as alembic_command
from alembic.config import Config as AlembicConfig
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from prompthero.config import DB_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _db_url(db_path: Path) -> str:
    return f"sqlite:///{db_path}"


def _alembic_cfg(db_url: str) -> AlembicConfig:
    """Build an Alembic Config pointing at the bundled migrations."""
    # alembic.ini lives at the project root; find it relative to this file
    pkg_dir = Path(__file__).resolve().parent  # src/prompthero
    project_root = pkg_dir.parent.parent  # repo root
    ini_path = project_root / "alembic.ini"
    cfg = AlembicConfig(str(ini_path))
    cfg.set_main_option("sqlalchemy.url", db_url)
    cfg.set_main_option("script_location", str(project_root / "alembic"))
    cfg.attributes["configure_logger"] = False
    return cfg


def _lower(value: object) -> object:
    return value.lower() if isinstance(value, str) else value


def install_sql_functions(engine: Engine) -> None:
    """Replace SQLite's ASCII-only ``lower()`` with Python's ``str.lower``.

    Search terms are lower-cased in Python, so stored text must be folded the
    same way for non-ASCII matches.
    """

    @event.listens_for(engine, "connect")
    def _register(dbapi_connection, connection_record) -> None:
        dbapi_connection.create_function("lower", 1, _lower, deterministic=True)


def get_engine(db_path: str | Path) -> Engine:
    """Create or return a cached SQLAlchemy engine."""
    global _engine
    if _engine is not None:
        return _engine
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    _engine = create_engine(
        _db_url(db_path),
        echo=False,
        connect_args={"timeout": DB_TIMEOUT_SECONDS},
    )
    install_sql_functions(_engine)
    logger.debug("Created engine for %s", db_path)
    return _engine


def get_session_factory(db_path: str | Path) -> sessionmaker[Session]:
    """Return a session factory, creating the engine if needed."""
    global _session_factory
    if _session_factory is not None:
        return _session_factory
    engine = get_engine(db_path)
    _session_factory = sessionmaker(bind=engine)
    return _session_factory


def init_db(db_path: str | Path) -> None:
    """Initialise the database by running Alembic migrations to head.

    This is idempotent - safe to call multiple times.  It creates parent
    directories and the SQLite file as needed, then applies any pending
    Alembic migrations so that ``alembic_version`` is always present.
    """
    db_path = Path(db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path)
    cfg = _alembic_cfg(_db_url(db_path))
    # Silence Alembic's INFO logging so it doesn't pollute CLI output.
    alembic_logger = logging.getLogger("alembic")
    prev_level = alembic_logger.level
    alembic_logger.setLevel(logging.WARNING)
    try:
        with engine.begin() as connection:
            cfg.attributes["connection"] = connection
            alembic_command.upgrade(cfg, "head")
    finally:
        alembic_logger.setLevel(prev_level)
    logger.debug("Database at %s is at head revision", db_path)


def reset_engine() -> None:
    """Reset the cached engine and session factory. Used in tests."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
