"""Tests for predicate compilation."""

from __future__ import annotations

import datetime

import pytest
from sqlalchemy import select

from prompthero.models.prompt import Prompt
from prompthero.query.builder import FilterQueryBuilder
from prompthero.query.compiler import compile_predicate, relevance_score, render_sql
from prompthero.query.predicates import (
    BooleanFlag,
    DateRange,
    Equals,
    SetContains,
    TextMatch,
    Threshold,
)
from prompthero.schemas.search import SearchFilters


def _where_sql(predicate) -> tuple[str, dict]:
    return render_sql(select(Prompt.id).where(compile_predicate(predicate)))


class TestCompilePredicate:
    def test_equals_binds_value(self) -> None:
        sql, params = _where_sql(Equals("category", "development"))
        assert "prompts.category = ?" in sql
        assert "development" in params.values()
        assert "development" not in sql

    def test_set_contains_is_exact_membership(self) -> None:
        sql, params = _where_sql(SetContains("tags", "ai"))
        assert "EXISTS" in sql
        assert "prompt_tags.name = ?" in sql
        assert "LIKE" not in sql
        assert "ai" in params.values()

    def test_text_match_escapes_wildcards(self) -> None:
        sql, params = _where_sql(TextMatch(("100%",)))
        assert "LIKE" in sql
        assert "ESCAPE" in sql
        assert "100/%" in params.values()

    def test_text_match_never_inlines_terms(self) -> None:
        hostile = "'; drop table prompts; --"
        sql, params = _where_sql(TextMatch((hostile,)))
        assert "drop table" not in sql.lower()
        assert hostile in params.values()

    def test_date_range_bounds(self) -> None:
        start = datetime.datetime(2026, 1, 1)
        end = datetime.datetime(2026, 2, 1)
        sql, params = _where_sql(DateRange("created_at", start=start, end=end))
        assert "prompts.created_at >= ?" in sql
        assert "prompts.created_at < ?" in sql
        assert set(params.values()) == {start, end}

    def test_boolean_flag(self) -> None:
        sql, _ = _where_sql(BooleanFlag("is_public", True))
        assert "prompts.is_public IS 1" in sql

    def test_threshold_is_strict(self) -> None:
        sql, params = _where_sql(Threshold("usage_count", 0))
        assert "prompts.usage_count > ?" in sql
        assert 0 in params.values()

    def test_unknown_field_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown filter field"):
            compile_predicate(Equals("password_hash", "x"))

    def test_set_contains_requires_set_field(self) -> None:
        with pytest.raises(ValueError, match="not a set-valued field"):
            compile_predicate(SetContains("title", "x"))

    def test_unsupported_object(self) -> None:
        with pytest.raises(TypeError):
            compile_predicate("category = 'x'")  # type: ignore[arg-type]


class TestOrdering:
    @pytest.mark.parametrize("sort", ["newest", "oldest", "created_at"])
    def test_created_at_sorts_skip_redundant_tie_break(self, sort: str) -> None:
        plan = FilterQueryBuilder().build(SearchFilters(sort=sort))
        sql, _ = render_sql(plan.page_statement)
        order_by = sql.split("ORDER BY", 1)[1]
        assert order_by.count("prompts.created_at") == 1
        assert "prompts.id ASC" in order_by

    def test_other_sorts_end_with_full_tie_break(self) -> None:
        plan = FilterQueryBuilder().build(SearchFilters(sort="rating"))
        sql, _ = render_sql(plan.page_statement)
        order_by = sql.split("ORDER BY", 1)[1]
        assert "prompts.average_rating DESC, prompts.created_at DESC, prompts.id ASC" in order_by


class TestRelevanceScore:
    def test_no_terms_scores_zero(self) -> None:
        sql, params = render_sql(select(relevance_score([])))
        assert list(params.values()) == [0]

    def test_each_term_checks_every_weighted_field(self) -> None:
        sql, _ = render_sql(select(relevance_score(["ai", "bot"])))
        assert sql.count("CASE") == 8
