"""Turn a normalized filter request into count, page and facet statements."""

from __future__ import annotations

import datetime
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy import ColumnElement, Select, func, select, true
from sqlalchemy.orm import selectinload

from prompthero.config import (
    CATEGORY_SUGGESTION_LIMIT,
    DEFAULT_SORT,
    FACET_WORKING_SET,
    RELATED_TAG_LIMIT,
    TAG_SUGGESTION_LIMIT,
    TITLE_SUGGESTION_LIMIT,
    TRENDING_WINDOW_DAYS,
)
from prompthero.models.prompt import Prompt, PromptTag, utcnow
from prompthero.query.compiler import compile_where, contains_term, relevance_score
from prompthero.query.predicates import (
    BooleanFlag,
    DateRange,
    Equals,
    Predicate,
    SetContains,
    TextMatch,
    Threshold,
)
from prompthero.schemas.search import SearchFilters

# sort key -> (column, forced direction or None to follow the requested order)
_SORT_COLUMNS: dict[str, tuple[Any, str | None]] = {
    "newest": (Prompt.created_at, "desc"),
    "oldest": (Prompt.created_at, "asc"),
    "created_at": (Prompt.created_at, None),
    "updated_at": (Prompt.updated_at, None),
    "title": (func.lower(Prompt.title), None),
    "alphabetical": (func.lower(Prompt.title), "asc"),
    "rating": (Prompt.average_rating, None),
    "average_rating": (Prompt.average_rating, None),
    "popular": (Prompt.usage_count, None),
    "usage_count": (Prompt.usage_count, None),
    "total_ratings": (Prompt.total_ratings, None),
}

_TIE_BREAK = (Prompt.created_at.desc(), Prompt.id.asc())
_CREATED_AT_SORTS = frozenset({"newest", "oldest", "created_at"})


@dataclass(frozen=True)
class QueryPlan:
    filters: SearchFilters
    predicates: tuple[Predicate, ...]
    where: tuple[ColumnElement[bool], ...]
    count_statement: Select[Any]
    page_statement: Select[Any]


class FilterQueryBuilder:
    """Builds read-only statements against the ``prompts`` table.

    ``now`` supplies the reference time for the trending window so tests can
    pin it.
    """

    def __init__(self, now: Callable[[], datetime.datetime] = utcnow) -> None:
        self._now = now

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    def predicates(self, filters: SearchFilters) -> list[Predicate]:
        preds: list[Predicate] = [BooleanFlag("is_public", True)]
        if filters.terms:
            preds.append(TextMatch(tuple(filters.terms)))
        if filters.category:
            preds.append(Equals("category", filters.category))
        for tag in filters.tags:
            preds.append(SetContains("tags", tag))
        if filters.difficulty:
            preds.append(Equals("difficulty", filters.difficulty))
        if filters.featured:
            preds.append(BooleanFlag("is_featured", True))
        if filters.trending:
            window_start = self._now() - datetime.timedelta(days=TRENDING_WINDOW_DAYS)
            preds.append(DateRange("created_at", start=window_start))
            preds.append(Threshold("usage_count", 0))
        return preds

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def sort_clauses(self, filters: SearchFilters) -> list[Any]:
        """Requested sort followed by the fixed tie-break."""
        if filters.sort is None and filters.trending:
            engagement = Prompt.usage_count + Prompt.total_favorites
            return [engagement.desc(), *_TIE_BREAK]

        sort = filters.sort or DEFAULT_SORT
        column, forced = _SORT_COLUMNS[sort]
        direction = forced or filters.order
        primary = column.asc() if direction == "asc" else column.desc()
        if sort in _CREATED_AT_SORTS:
            return [primary, Prompt.id.asc()]
        return [primary, *_TIE_BREAK]

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def build(self, filters: SearchFilters) -> QueryPlan:
        predicates = tuple(self.predicates(filters))
        where = tuple(compile_where(predicates))

        count_statement = select(func.count()).select_from(Prompt).where(*where)

        score = relevance_score(filters.terms).label("relevance")
        order_by = self.sort_clauses(filters)
        if filters.terms:
            order_by.insert(0, score.desc())
        page_statement = (
            select(Prompt, score)
            .options(selectinload(Prompt.tag_links))
            .where(*where)
            .order_by(*order_by)
            .limit(filters.limit)
            .offset(filters.offset)
        )
        return QueryPlan(
            filters=filters,
            predicates=predicates,
            where=where,
            count_statement=count_statement,
            page_statement=page_statement,
        )

    def related_tags_statement(self, plan: QueryPlan) -> Select[Any]:
        """Tag frequencies over a capped slice of the filtered set."""
        working_set = (
            select(Prompt.id)
            .where(*plan.where)
            .order_by(*_TIE_BREAK)
            .limit(FACET_WORKING_SET)
            .subquery()
        )
        frequency = func.count().label("frequency")
        stmt = (
            select(PromptTag.name, frequency)
            .where(PromptTag.prompt_id.in_(select(working_set.c.id)))
            .group_by(PromptTag.name)
            .order_by(frequency.desc(), PromptTag.name.asc())
            .limit(RELATED_TAG_LIMIT)
        )
        if plan.filters.tags:
            stmt = stmt.where(PromptTag.name.not_in(plan.filters.tags))
        return stmt

    def suggestion_statements(self, query: str) -> list[tuple[str, Select[Any]]]:
        """One statement per suggestion type, each capped separately."""
        public = Prompt.is_public.is_(true())
        titles = (
            select(Prompt.title)
            .distinct()
            .where(public, contains_term(Prompt.title, query))
            .order_by(Prompt.title)
            .limit(TITLE_SUGGESTION_LIMIT)
        )
        categories = (
            select(Prompt.category)
            .distinct()
            .where(public, contains_term(Prompt.category, query))
            .order_by(Prompt.category)
            .limit(CATEGORY_SUGGESTION_LIMIT)
        )
        tags = (
            select(PromptTag.name)
            .distinct()
            .join(Prompt, Prompt.id == PromptTag.prompt_id)
            .where(public, contains_term(PromptTag.name, query))
            .order_by(PromptTag.name)
            .limit(TAG_SUGGESTION_LIMIT)
        )
        return [("category", categories), ("prompt", titles), ("tag", tags)]
