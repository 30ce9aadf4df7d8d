"""Read-only catalog search: filtered, ranked, paginated prompts plus facets."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prompthero.config import MIN_SUGGESTION_LENGTH, SUGGESTION_LIMIT
from prompthero.errors import CatalogUnavailableError
from prompthero.query.builder import FilterQueryBuilder, QueryPlan
from prompthero.schemas.prompt import PromptOut
from prompthero.schemas.search import (
    Facets,
    Pagination,
    RelatedTag,
    SearchFilters,
    SearchResponse,
    Suggestion,
    parse_filters,
)

logger = logging.getLogger(__name__)


class SearchService:
    """Answers filter requests without ever writing to the catalog."""

    def __init__(self, session: Session, builder: FilterQueryBuilder | None = None) -> None:
        self._session = session
        self._builder = builder or FilterQueryBuilder()

    def search(self, filters: SearchFilters | Mapping[str, Any]) -> SearchResponse:
        """Run the count and page queries, then the best-effort facets."""
        if not isinstance(filters, SearchFilters):
            filters = parse_filters(dict(filters))
        plan = self._builder.build(filters)

        try:
            total = self._session.execute(plan.count_statement).scalar_one()
            rows = self._session.execute(plan.page_statement).all()
        except SQLAlchemyError as exc:
            logger.error("Catalog search failed: %s", exc)
            raise CatalogUnavailableError("Failed to search prompts") from exc

        results = [
            PromptOut.model_validate(prompt).model_copy(update={"relevance": int(relevance or 0)})
            for prompt, relevance in rows
        ]
        total_pages = math.ceil(total / filters.limit)
        logger.debug(
            "search %r matched %d prompts, returning page %d/%d",
            filters.search,
            total,
            filters.page,
            total_pages,
        )
        return SearchResponse(
            results=results,
            pagination=Pagination(
                page=filters.page,
                limit=filters.limit,
                total=total,
                total_pages=total_pages,
                has_next=filters.page < total_pages,
                has_prev=filters.page > 1,
            ),
            facets=Facets(
                related_tags=self.related_tags(plan),
                suggestions=self.suggestions(filters.search),
            ),
        )

    # ------------------------------------------------------------------
    # Facets
    # ------------------------------------------------------------------

    def related_tags(self, plan: QueryPlan) -> list[RelatedTag]:
        """Most frequent tags in the filtered set, minus the ones already selected."""
        try:
            rows = self._session.execute(self._builder.related_tags_statement(plan)).all()
        except SQLAlchemyError:
            logger.warning("Related tags unavailable", exc_info=True)
            return []
        return [RelatedTag(tag=name, frequency=frequency) for name, frequency in rows]

    def suggestions(self, query: str) -> list[Suggestion]:
        if len(query) < MIN_SUGGESTION_LENGTH:
            return []
        suggestions: list[Suggestion] = []
        try:
            for kind, stmt in self._builder.suggestion_statements(query):
                for text in self._session.execute(stmt).scalars():
                    suggestions.append(Suggestion(text=text, type=kind))
        except SQLAlchemyError:
            logger.warning("Search suggestions unavailable", exc_info=True)
            return []
        return suggestions[:SUGGESTION_LIMIT]
