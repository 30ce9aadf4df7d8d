"""Tests for the CatalogService."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from prompthero.schemas.prompt import PromptCreate, PromptUpdate
from prompthero.services.catalog_service import CatalogService


def _create(service: CatalogService, title: str = "Code reviewer", **fields):
    fields.setdefault("content", "Review the following diff for bugs.")
    return service.create_prompt(PromptCreate(title=title, **fields))


class TestCreatePrompt:
    def test_create_prompt(self, catalog: CatalogService) -> None:
        prompt = _create(catalog, category="development", tags=["AI", " review ", "ai"])
        assert prompt.id
        assert prompt.category == "development"
        assert prompt.tags == ["ai", "review"]
        assert prompt.difficulty == "intermediate"
        assert prompt.is_public is True
        assert prompt.created_at == prompt.updated_at

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Category must be one of"):
            PromptCreate(title="t", content="c", category="cooking")

    def test_too_many_tags_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Maximum 10 tags"):
            PromptCreate(title="t", content="c", tags=[f"tag{i}" for i in range(11)])

    def test_empty_title_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PromptCreate(title="", content="c")


class TestGetPrompt:
    def test_get(self, catalog: CatalogService) -> None:
        created = _create(catalog)
        assert catalog.get_prompt(created.id).title == "Code reviewer"

    def test_get_missing_raises(self, catalog: CatalogService) -> None:
        with pytest.raises(ValueError, match="not found"):
            catalog.get_prompt("nope")


class TestUpdatePrompt:
    def test_update_fields_and_tags(self, catalog: CatalogService) -> None:
        prompt = _create(catalog, tags=["ai", "review"])
        created_at = prompt.created_at
        updated = catalog.update_prompt(
            prompt.id, PromptUpdate(title="Diff reviewer", tags=["review", "git"])
        )
        assert updated.title == "Diff reviewer"
        assert updated.tags == ["review", "git"]
        assert updated.created_at == created_at
        assert updated.updated_at >= created_at

    def test_update_nothing_raises(self, catalog: CatalogService) -> None:
        prompt = _create(catalog)
        with pytest.raises(ValueError, match="No fields"):
            catalog.update_prompt(prompt.id, PromptUpdate())

    def test_description_can_be_cleared(self, catalog: CatalogService) -> None:
        prompt = _create(catalog, description="Old")
        updated = catalog.update_prompt(prompt.id, PromptUpdate(description=None))
        assert updated.description is None


class TestDeletePrompt:
    def test_delete_prompt(self, catalog: CatalogService) -> None:
        prompt = _create(catalog)
        catalog.rate_prompt(prompt.id, "u1", 4)
        catalog.delete_prompt(prompt.id)
        with pytest.raises(ValueError, match="not found"):
            catalog.get_prompt(prompt.id)

    def test_delete_nonexistent_raises(self, catalog: CatalogService) -> None:
        with pytest.raises(ValueError, match="not found"):
            catalog.delete_prompt("nope")


class TestEngagement:
    def test_record_usage(self, catalog: CatalogService) -> None:
        prompt = _create(catalog)
        catalog.record_usage(prompt.id)
        assert catalog.record_usage(prompt.id) == 2

    def test_record_usage_missing(self, catalog: CatalogService) -> None:
        with pytest.raises(ValueError, match="not found"):
            catalog.record_usage("nope")

    def test_ratings_average(self, catalog: CatalogService) -> None:
        prompt = _create(catalog)
        catalog.rate_prompt(prompt.id, "u1", 4)
        rated = catalog.rate_prompt(prompt.id, "u2", 5)
        assert rated.average_rating == pytest.approx(4.5)
        assert rated.total_ratings == 2

    def test_rerating_replaces(self, catalog: CatalogService) -> None:
        prompt = _create(catalog)
        catalog.rate_prompt(prompt.id, "u1", 1)
        rated = catalog.rate_prompt(prompt.id, "u1", 5, review="Much better now")
        assert rated.average_rating == pytest.approx(5.0)
        assert rated.total_ratings == 1

    def test_rating_out_of_range(self, catalog: CatalogService) -> None:
        prompt = _create(catalog)
        with pytest.raises(ValueError, match="between 1 and 5"):
            catalog.rate_prompt(prompt.id, "u1", 6)

    def test_favorites(self, catalog: CatalogService, session) -> None:
        prompt = _create(catalog)
        assert catalog.add_favorite(prompt.id, "u1") is True
        assert catalog.add_favorite(prompt.id, "u1") is False
        catalog.add_favorite(prompt.id, "u2")
        session.refresh(prompt)
        assert prompt.total_favorites == 2
        assert catalog.remove_favorite(prompt.id, "u1") is True
        assert catalog.remove_favorite(prompt.id, "u1") is False
        session.refresh(prompt)
        assert prompt.total_favorites == 1


class TestImportExport:
    def test_export_json(self, catalog: CatalogService) -> None:
        _create(catalog, "First", tags=["t1"])
        _create(catalog, "Second")
        data = json.loads(catalog.export_prompts())
        by_title = {p["title"]: p for p in data}
        assert set(by_title) == {"First", "Second"}
        assert by_title["First"]["tags"] == ["t1"]
        assert "relevance" not in by_title["First"]

    def test_export_then_import(self, catalog: CatalogService, tmp_path) -> None:
        _create(catalog, "Original", category="research", tags=["papers"])
        path = catalog.export_to_file(tmp_path / "catalog.json")
        imported = catalog.import_prompts(path)
        assert len(imported) == 1
        assert imported[0].id != json.loads(path.read_text())[0]["id"]
        assert imported[0].tags == ["papers"]

    def test_import_invalid_record(self, catalog: CatalogService, tmp_path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"title": "No content"}]))
        with pytest.raises(ValueError, match="Prompt #1 is invalid"):
            catalog.import_prompts(path)

    def test_import_requires_array(self, catalog: CatalogService, tmp_path) -> None:
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"title": "x"}))
        with pytest.raises(ValueError, match="JSON array"):
            catalog.import_prompts(path)
