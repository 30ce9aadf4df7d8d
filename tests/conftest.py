"""Shared test fixtures."""

from __future__ import annotations

import datetime
import itertools
from collections.abc import Callable
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from prompthero.database import install_sql_functions
from prompthero.models.base import Base
from prompthero.models.prompt import Prompt
from prompthero.query.builder import FilterQueryBuilder
from prompthero.services.catalog_service import CatalogService
from prompthero.services.search_service import SearchService

# Reference "now" for anything time-dependent (trending window).
NOW = datetime.datetime(2026, 6, 1, 12, 0, 0)


@pytest.fixture()
def tmp_db(tmp_path: Path) -> Path:
    """Return a temporary database file path."""
    return tmp_path / "test.db"


@pytest.fixture()
def session(tmp_db: Path) -> Session:
    """Create a SQLite session with all tables."""
    engine = create_engine(f"sqlite:///{tmp_db}", echo=False)
    install_sql_functions(engine)
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)
    sess = factory()
    yield sess  # type: ignore[misc]
    sess.close()
    engine.dispose()


@pytest.fixture()
def catalog(session: Session) -> CatalogService:
    """Return a CatalogService bound to the test session."""
    return CatalogService(session)


@pytest.fixture()
def search_service(session: Session) -> SearchService:
    """Return a SearchService whose trending window is anchored at NOW."""
    return SearchService(session, FilterQueryBuilder(now=lambda: NOW))


@pytest.fixture()
def make_prompt(session: Session) -> Callable[..., Prompt]:
    """Insert a prompt directly, including counters the write side would derive.

    Each call gets a creation time one minute later than the previous one
    unless ``created_at`` is given.
    """
    minutes = itertools.count()
    start = NOW - datetime.timedelta(days=10)

    def _make(title: str = "Untitled prompt", content: str = "Prompt body.", **fields) -> Prompt:
        tags = fields.pop("tags", [])
        fields.setdefault("category", "general")
        fields.setdefault("created_at", start + datetime.timedelta(minutes=next(minutes)))
        fields.setdefault("updated_at", fields["created_at"])
        prompt = Prompt(title=title, content=content, **fields)
        prompt.tags = tags
        session.add(prompt)
        session.flush()
        return prompt

    return _make
