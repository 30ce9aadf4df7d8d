"""Framework-agnostic handler for ``GET /api/search``.

The web layer hands over the parsed query string and gets back a status code
and a JSON-ready body.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.orm import Session

from prompthero.errors import CatalogUnavailableError, InvalidFilterError
from prompthero.schemas.search import parse_filters
from prompthero.services.search_service import SearchService

logger = logging.getLogger(__name__)

_LIST_PARAMS = {"tags", "tags[]"}


def flatten_query_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Collapse repeated query-string values.

    ``tags`` may be repeated and/or comma-separated; every other parameter keeps
    its last value.
    """
    flat: dict[str, Any] = {}
    tags: list[str] = []
    for key, value in params.items():
        values = list(value) if isinstance(value, (list, tuple)) else [value]
        if key in _LIST_PARAMS:
            for item in values:
                if isinstance(item, str):
                    tags.extend(item.split(","))
                else:
                    tags.append(item)
        elif values:
            flat[key] = values[-1]
    if tags:
        flat["tags"] = tags
    return flat


def handle_search(
    session: Session,
    params: Mapping[str, Any],
    service: SearchService | None = None,
) -> tuple[int, dict[str, Any]]:
    """Return ``(status, body)`` for a catalog search request."""
    try:
        filters = parse_filters(flatten_query_params(params))
    except InvalidFilterError as exc:
        return 400, {"error": "Invalid query parameters", "details": exc.details}

    service = service or SearchService(session)
    try:
        response = service.search(filters)
    except CatalogUnavailableError:
        logger.exception("Search request failed")
        return 500, {"error": "Failed to search prompts"}
    return 200, response.model_dump(mode="json")
