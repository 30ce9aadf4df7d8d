"""Tests for filter normalization."""

from __future__ import annotations

import pytest

from prompthero.config import MAX_PAGE
from prompthero.errors import InvalidFilterError
from prompthero.schemas.search import SearchFilters, parse_filters


class TestDefaults:
    def test_empty_request(self) -> None:
        filters = parse_filters({})
        assert filters.search == ""
        assert filters.category is None
        assert filters.tags == []
        assert filters.sort is None
        assert filters.order == "desc"
        assert filters.page == 1
        assert filters.limit == 20
        assert filters.offset == 0

    def test_none_values_mean_defaults(self) -> None:
        filters = parse_filters({"search": None, "page": None, "limit": "", "featured": None})
        assert filters.page == 1
        assert filters.limit == 20
        assert filters.featured is False


class TestSearchText:
    def test_trimmed_and_case_folded(self) -> None:
        filters = parse_filters({"search": "  AI   Code\tAssistant "})
        assert filters.search == "ai code assistant"
        assert filters.terms == ["ai", "code", "assistant"]

    def test_repeated_terms_collapse(self) -> None:
        assert parse_filters({"search": "ai AI ai bot"}).terms == ["ai", "bot"]

    def test_too_long_is_rejected(self) -> None:
        with pytest.raises(InvalidFilterError, match="100 characters"):
            parse_filters({"search": "x" * 101})


class TestLenientEnums:
    def test_unknown_sort_falls_back_to_newest(self) -> None:
        assert parse_filters({"sort": "garbage"}).sort == "newest"

    def test_sort_is_case_insensitive(self) -> None:
        assert parse_filters({"sort": "RATING"}).sort == "rating"

    def test_unknown_order_means_desc(self) -> None:
        assert parse_filters({"order": "sideways"}).order == "desc"
        assert parse_filters({"order": "ASC"}).order == "asc"

    def test_category_all_means_no_filter(self) -> None:
        assert parse_filters({"category": "all"}).category is None

    def test_unknown_category_means_no_filter(self) -> None:
        assert parse_filters({"category": "cooking"}).category is None
        assert parse_filters({"category": "Development"}).category == "development"

    def test_unknown_difficulty_means_no_filter(self) -> None:
        assert parse_filters({"difficulty": "expert"}).difficulty is None
        assert parse_filters({"difficulty": "advanced"}).difficulty == "advanced"


class TestTags:
    def test_comma_separated_string(self) -> None:
        assert parse_filters({"tags": "AI, demo,,ai"}).tags == ["ai", "demo"]

    def test_list(self) -> None:
        assert parse_filters({"tags": [" Python ", "sql"]}).tags == ["python", "sql"]


class TestPagination:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(500, 100), ("500", 100), (0, 1), (-5, 1), (37, 37)],
    )
    def test_limit_is_clamped(self, raw: object, expected: int) -> None:
        assert parse_filters({"limit": raw}).limit == expected

    def test_page_is_clamped(self) -> None:
        assert parse_filters({"page": 0}).page == 1
        assert parse_filters({"page": "-3"}).page == 1
        assert parse_filters({"page": str(10**19)}).page == MAX_PAGE

    def test_offset(self) -> None:
        assert SearchFilters(page=3, limit=10).offset == 20

    def test_non_numeric_page_is_a_client_error(self) -> None:
        with pytest.raises(InvalidFilterError) as excinfo:
            parse_filters({"page": "abc"})
        assert excinfo.value.details[0]["field"] == "page"

    def test_non_numeric_limit_is_a_client_error(self) -> None:
        with pytest.raises(InvalidFilterError):
            parse_filters({"limit": "lots"})


class TestFlags:
    def test_string_booleans(self) -> None:
        filters = parse_filters({"featured": "true", "trending": "0"})
        assert filters.featured is True
        assert filters.trending is False

    def test_unreadable_boolean_is_a_client_error(self) -> None:
        with pytest.raises(InvalidFilterError):
            parse_filters({"featured": "maybe"})

    def test_invalid_filter_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            parse_filters({"trending": "perhaps"})
