"""Compile predicate objects into parameterized SQLAlchemy clauses."""

from __future__ import annotations

import functools
import operator
from collections.abc import Iterable
from typing import Any

from sqlalchemy import ColumnElement, Integer, and_, case, false, func, literal, or_, select, true
from sqlalchemy.dialects import sqlite
from sqlalchemy.sql import Executable

from prompthero.config import CONTENT_WEIGHT, DESCRIPTION_WEIGHT, TAG_WEIGHT, TITLE_WEIGHT
from prompthero.models.prompt import Prompt, PromptTag
from prompthero.query.predicates import (
    BooleanFlag,
    DateRange,
    Equals,
    Predicate,
    SetContains,
    TextMatch,
    Threshold,
)

_COLUMNS = {
    "title": Prompt.title,
    "description": Prompt.description,
    "content": Prompt.content,
    "category": Prompt.category,
    "difficulty": Prompt.difficulty,
    "is_featured": Prompt.is_featured,
    "is_public": Prompt.is_public,
    "average_rating": Prompt.average_rating,
    "total_ratings": Prompt.total_ratings,
    "usage_count": Prompt.usage_count,
    "total_favorites": Prompt.total_favorites,
    "created_at": Prompt.created_at,
    "updated_at": Prompt.updated_at,
}
_SET_FIELDS = frozenset({"tags"})

_WEIGHTS = {
    "title": TITLE_WEIGHT,
    "tags": TAG_WEIGHT,
    "description": DESCRIPTION_WEIGHT,
    "content": CONTENT_WEIGHT,
}


def _column(field: str) -> Any:
    try:
        return _COLUMNS[field]
    except KeyError:
        raise ValueError(f"Unknown filter field '{field}'.") from None


def _check_set_field(field: str) -> None:
    if field not in _SET_FIELDS:
        raise ValueError(f"'{field}' is not a set-valued field.")


def contains_term(column: Any, term: str) -> ColumnElement[bool]:
    """Case-insensitive substring test; LIKE wildcards in ``term`` are escaped."""
    return func.lower(column).contains(term.lower(), autoescape=True)


def _tag_exists(condition: ColumnElement[bool]) -> ColumnElement[bool]:
    return (
        select(PromptTag.prompt_id)
        .where(PromptTag.prompt_id == Prompt.id, condition)
        .exists()
    )


def _field_matches(field: str, term: str) -> ColumnElement[bool]:
    if field in _SET_FIELDS:
        return _tag_exists(contains_term(PromptTag.name, term))
    return contains_term(_column(field), term)


@functools.singledispatch
def compile_predicate(predicate: Predicate) -> ColumnElement[bool]:
    raise TypeError(f"Cannot compile {type(predicate).__name__}.")


@compile_predicate.register
def _(predicate: TextMatch) -> ColumnElement[bool]:
    if not predicate.terms:
        return true()
    return or_(
        *(
            _field_matches(field, term)
            for term in predicate.terms
            for field in predicate.fields
        )
    )


@compile_predicate.register
def _(predicate: Equals) -> ColumnElement[bool]:
    return _column(predicate.field) == predicate.value


@compile_predicate.register
def _(predicate: SetContains) -> ColumnElement[bool]:
    _check_set_field(predicate.field)
    return _tag_exists(PromptTag.name == predicate.value)


@compile_predicate.register
def _(predicate: DateRange) -> ColumnElement[bool]:
    column = _column(predicate.field)
    clauses = []
    if predicate.start is not None:
        clauses.append(column >= predicate.start)
    if predicate.end is not None:
        clauses.append(column < predicate.end)
    return and_(true(), *clauses)


@compile_predicate.register
def _(predicate: BooleanFlag) -> ColumnElement[bool]:
    return _column(predicate.field).is_(true() if predicate.value else false())


@compile_predicate.register
def _(predicate: Threshold) -> ColumnElement[bool]:
    return _column(predicate.field) > predicate.minimum


def compile_where(predicates: Iterable[Predicate]) -> list[ColumnElement[bool]]:
    """Compile each predicate; the caller ANDs them with ``.where(*clauses)``."""
    return [compile_predicate(p) for p in predicates]


def relevance_score(terms: Iterable[str]) -> ColumnElement[int]:
    """Weighted count of (term, field) hits; title hits outweigh content hits."""
    parts = [
        case((_field_matches(field, term), weight), else_=0)
        for term in terms
        for field, weight in _WEIGHTS.items()
    ]
    if not parts:
        return literal(0, Integer)
    return functools.reduce(operator.add, parts)


def render_sql(statement: Executable) -> tuple[str, dict[str, Any]]:
    """Return the SQL text and bound parameters of ``statement``."""
    compiled = statement.compile(dialect=sqlite.dialect())
    return str(compiled), dict(compiled.params)
