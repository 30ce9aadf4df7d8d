"""Typed filter conditions combined by AND into a catalog query.

Predicates only describe *what* to match.  Turning them into SQL is the job of
:mod:`prompthero.query.compiler`, which binds every value as a parameter.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Union

TEXT_FIELDS = ("title", "description", "content", "tags")


@dataclass(frozen=True)
class TextMatch:
    """At least one term appears (case-insensitively) in at least one field."""

    terms: tuple[str, ...]
    fields: tuple[str, ...] = TEXT_FIELDS


@dataclass(frozen=True)
class Equals:
    field: str
    value: str


@dataclass(frozen=True)
class SetContains:
    """``value`` is a member of the set-valued ``field`` (exact match, not substring)."""

    field: str
    value: str


@dataclass(frozen=True)
class DateRange:
    field: str
    start: datetime.datetime | None = None
    end: datetime.datetime | None = None


@dataclass(frozen=True)
class BooleanFlag:
    field: str
    value: bool = True


@dataclass(frozen=True)
class Threshold:
    """``field`` is strictly greater than ``minimum``."""

    field: str
    minimum: int | float


Predicate = Union[TextMatch, Equals, SetContains, DateRange, BooleanFlag, Threshold]
