"""Filter request and response shapes for catalog search.

Cosmetic mistakes in a filter (an unknown sort key, a category that does not
exist, ``limit=500``) never reject the request: they fall back to a default
or get clamped.  Only input that cannot be read at all, such as a page number
of ``"abc"``, is an error.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from prompthero.config import (
    CATEGORIES,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT,
    DIFFICULTIES,
    MAX_PAGE,
    MAX_PAGE_SIZE,
    MAX_SEARCH_LENGTH,
    MAX_SEARCH_TERMS,
    SORT_KEYS,
)
from prompthero.errors import InvalidFilterError
from prompthero.schemas.prompt import PromptOut, normalize_tags


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _lenient_choice(value: Any, choices: tuple[str, ...]) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    return value if value in choices else None


class SearchFilters(BaseModel):
    model_config = ConfigDict(extra="ignore")

    search: str = ""
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    difficulty: str | None = None
    featured: bool = False
    trending: bool = False
    sort: str | None = None
    order: Literal["asc", "desc"] = "desc"
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE

    @field_validator("search", mode="before")
    @classmethod
    def _search(cls, v: Any) -> Any:
        if v is None:
            return ""
        if not isinstance(v, str):
            return v
        v = " ".join(v.split()).lower()
        if len(v) > MAX_SEARCH_LENGTH:
            raise ValueError(f"Search query must not exceed {MAX_SEARCH_LENGTH} characters")
        return v

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, v: Any) -> str | None:
        # "all" is not in CATEGORIES, so it drops the filter like any unknown value.
        return _lenient_choice(v, CATEGORIES)

    @field_validator("difficulty", mode="before")
    @classmethod
    def _difficulty(cls, v: Any) -> str | None:
        return _lenient_choice(v, DIFFICULTIES)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, v: Any) -> Any:
        if _blank(v):
            return []
        if isinstance(v, str):
            v = v.split(",")
        return v

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, v: list[str]) -> list[str]:
        return normalize_tags(v)

    @field_validator("featured", "trending", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> Any:
        return False if _blank(v) else v

    @field_validator("sort", mode="before")
    @classmethod
    def _sort(cls, v: Any) -> str | None:
        if _blank(v):
            return None
        return _lenient_choice(v, SORT_KEYS) or DEFAULT_SORT

    @field_validator("order", mode="before")
    @classmethod
    def _order(cls, v: Any) -> str:
        return _lenient_choice(v, ("asc", "desc")) or "desc"

    @field_validator("page", mode="before")
    @classmethod
    def _page_default(cls, v: Any) -> Any:
        return 1 if _blank(v) else v

    @field_validator("limit", mode="before")
    @classmethod
    def _limit_default(cls, v: Any) -> Any:
        return DEFAULT_PAGE_SIZE if _blank(v) else v

    @field_validator("page")
    @classmethod
    def _clamp_page(cls, v: int) -> int:
        return min(max(1, v), MAX_PAGE)

    @field_validator("limit")
    @classmethod
    def _clamp_limit(cls, v: int) -> int:
        return min(max(1, v), MAX_PAGE_SIZE)

    @property
    def terms(self) -> list[str]:
        """Unique search terms in query order."""
        return list(dict.fromkeys(self.search.split()))[:MAX_SEARCH_TERMS]

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def parse_filters(params: dict[str, Any]) -> SearchFilters:
    """Validate raw filter input, raising InvalidFilterError on malformed fields."""
    try:
        return SearchFilters.model_validate(params)
    except ValidationError as exc:
        details = [
            {
                "field": ".".join(str(part) for part in err["loc"]),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        summary = "; ".join(f"{d['field']}: {d['message']}" for d in details)
        raise InvalidFilterError(f"Invalid filter: {summary}", details) from None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool


class RelatedTag(BaseModel):
    tag: str
    frequency: int


class Suggestion(BaseModel):
    text: str
    type: Literal["prompt", "category", "tag"]


class Facets(BaseModel):
    related_tags: list[RelatedTag] = Field(default_factory=list)
    suggestions: list[Suggestion] = Field(default_factory=list)


class SearchResponse(BaseModel):
    results: list[PromptOut]
    pagination: Pagination
    facets: Facets
