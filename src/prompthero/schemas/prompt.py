from __future__ import annotations

import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prompthero.config import CATEGORIES, DIFFICULTIES

MAX_TAGS = 10
MAX_TAG_LENGTH = 50


def normalize_tags(tags: list[str]) -> list[str]:
    """Strip and lower-case tags, dropping blanks and repeats but keeping order."""
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


def _check_tags(tags: list[str]) -> list[str]:
    tags = normalize_tags(tags)
    if len(tags) > MAX_TAGS:
        raise ValueError(f"Maximum {MAX_TAGS} tags allowed")
    for tag in tags:
        if len(tag) > MAX_TAG_LENGTH:
            raise ValueError(f"Tag '{tag[:20]}...' must not exceed {MAX_TAG_LENGTH} characters")
    return tags


def _check_choice(value: str, choices: tuple[str, ...], label: str) -> str:
    value = value.strip().lower()
    if value not in choices:
        raise ValueError(f"{label} must be one of: {', '.join(choices)}")
    return value


class PromptCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1, max_length=10_000)
    description: str | None = Field(default=None, max_length=500)
    category: str = Field(default="general")
    tags: list[str] = Field(default_factory=list)
    difficulty: str = Field(default="intermediate")
    is_public: bool = True
    is_featured: bool = False

    @field_validator("category")
    @classmethod
    def _category(cls, v: str) -> str:
        return _check_choice(v, CATEGORIES, "Category")

    @field_validator("difficulty")
    @classmethod
    def _difficulty(cls, v: str) -> str:
        return _check_choice(v, DIFFICULTIES, "Difficulty")

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: list[str]) -> list[str]:
        return _check_tags(v)


class PromptUpdate(BaseModel):
    """Partial update; only fields that were explicitly set are applied."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    content: str | None = Field(default=None, min_length=1, max_length=10_000)
    description: str | None = Field(default=None, max_length=500)
    category: str | None = None
    tags: list[str] | None = None
    difficulty: str | None = None
    is_public: bool | None = None
    is_featured: bool | None = None

    @field_validator("category")
    @classmethod
    def _category(cls, v: str | None) -> str | None:
        return None if v is None else _check_choice(v, CATEGORIES, "Category")

    @field_validator("difficulty")
    @classmethod
    def _difficulty(cls, v: str | None) -> str | None:
        return None if v is None else _check_choice(v, DIFFICULTIES, "Difficulty")

    @field_validator("tags")
    @classmethod
    def _tags(cls, v: list[str] | None) -> list[str] | None:
        return None if v is None else _check_tags(v)


class PromptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    description: str | None
    content: str
    category: str
    tags: list[str] = Field(default_factory=list)
    difficulty: str
    is_featured: bool
    is_public: bool
    average_rating: float
    total_ratings: int
    usage_count: int
    total_favorites: int
    created_at: datetime.datetime
    updated_at: datetime.datetime
    relevance: int = 0
