"""Write-side business logic for catalog prompts."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, selectinload

from prompthero.models.prompt import Favorite, Prompt, Rating, utcnow
from prompthero.schemas.prompt import PromptCreate, PromptOut, PromptUpdate

logger = logging.getLogger(__name__)

_NON_NULLABLE = frozenset({"title", "content", "category", "difficulty", "is_public", "is_featured"})


class CatalogService:
    """Service layer for creating and maintaining prompts.

    Counters and aggregates (``usage_count``, ``average_rating``,
    ``total_ratings``, ``total_favorites``) are only ever changed here, by
    single UPDATE statements computed inside the database.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Prompt CRUD
    # ------------------------------------------------------------------

    def create_prompt(self, data: PromptCreate) -> Prompt:
        """Create a new prompt from a validated payload."""
        now = utcnow()
        prompt = Prompt(
            title=data.title,
            content=data.content,
            description=data.description,
            category=data.category,
            difficulty=data.difficulty,
            is_public=data.is_public,
            is_featured=data.is_featured,
            created_at=now,
            updated_at=now,
        )
        prompt.tags = data.tags
        self._session.add(prompt)
        self._session.flush()
        logger.info("Created prompt %s (%s)", prompt.id, prompt.title)
        return prompt

    def get_prompt(self, prompt_id: str) -> Prompt:
        """Fetch a prompt by id. Raises ValueError if not found."""
        prompt = self._session.execute(
            select(Prompt).options(selectinload(Prompt.tag_links)).where(Prompt.id == prompt_id)
        ).scalar_one_or_none()
        if prompt is None:
            raise ValueError(f"Prompt '{prompt_id}' not found.")
        return prompt

    def update_prompt(self, prompt_id: str, data: PromptUpdate) -> Prompt:
        """Apply the fields set on ``data`` and bump ``updated_at``."""
        prompt = self.get_prompt(prompt_id)
        changes = data.model_dump(exclude_unset=True)
        changes = {k: v for k, v in changes.items() if v is not None or k not in _NON_NULLABLE}
        if not changes:
            raise ValueError("No fields to update.")
        tags = changes.pop("tags", None)
        for field, value in changes.items():
            setattr(prompt, field, value)
        if tags is not None:
            prompt.tag_links.clear()
            self._session.flush()
            prompt.tags = tags
        prompt.updated_at = utcnow()
        self._session.flush()
        return prompt

    def delete_prompt(self, prompt_id: str) -> None:
        """Delete a prompt with its tags, ratings and favorites."""
        prompt = self.get_prompt(prompt_id)
        self._session.delete(prompt)
        self._session.flush()
        logger.info("Deleted prompt %s", prompt_id)

    # ------------------------------------------------------------------
    # Engagement
    # ------------------------------------------------------------------

    def _require(self, prompt_id: str) -> None:
        exists = self._session.execute(
            select(Prompt.id).where(Prompt.id == prompt_id)
        ).scalar_one_or_none()
        if exists is None:
            raise ValueError(f"Prompt '{prompt_id}' not found.")

    def _refresh(self, prompt_id: str) -> Prompt:
        prompt = self.get_prompt(prompt_id)
        self._session.refresh(prompt)
        return prompt

    def record_usage(self, prompt_id: str) -> int:
        """Increment the usage counter atomically and return its new value."""
        self._require(prompt_id)
        self._session.execute(
            update(Prompt)
            .where(Prompt.id == prompt_id)
            .values(usage_count=Prompt.usage_count + 1),
            execution_options={"synchronize_session": False},
        )
        return self._refresh(prompt_id).usage_count

    def rate_prompt(
        self,
        prompt_id: str,
        user_id: str,
        rating: int,
        review: str | None = None,
    ) -> Prompt:
        """Record (or replace) a user's 1-5 rating and recompute the aggregates."""
        if not 1 <= rating <= 5:
            raise ValueError("Rating must be between 1 and 5.")
        self._require(prompt_id)
        existing = self._session.execute(
            select(Rating).where(Rating.prompt_id == prompt_id, Rating.user_id == user_id)
        ).scalar_one_or_none()
        if existing is None:
            self._session.add(
                Rating(prompt_id=prompt_id, user_id=user_id, rating=rating, review=review)
            )
        else:
            existing.rating = rating
            existing.review = review
            existing.updated_at = utcnow()
        self._session.flush()

        self._session.execute(
            update(Prompt)
            .where(Prompt.id == prompt_id)
            .values(
                average_rating=select(func.coalesce(func.round(func.avg(Rating.rating), 2), 0))
                .where(Rating.prompt_id == Prompt.id)
                .scalar_subquery(),
                total_ratings=select(func.count(Rating.id))
                .where(Rating.prompt_id == Prompt.id)
                .scalar_subquery(),
            ),
            execution_options={"synchronize_session": False},
        )
        return self._refresh(prompt_id)

    def _sync_favorites(self, prompt_id: str) -> None:
        self._session.execute(
            update(Prompt)
            .where(Prompt.id == prompt_id)
            .values(
                total_favorites=select(func.count(Favorite.user_id))
                .where(Favorite.prompt_id == Prompt.id)
                .scalar_subquery()
            ),
            execution_options={"synchronize_session": False},
        )

    def add_favorite(self, prompt_id: str, user_id: str) -> bool:
        """Favorite a prompt for a user. Returns False if it already was."""
        self._require(prompt_id)
        if self._session.get(Favorite, (user_id, prompt_id)) is not None:
            return False
        self._session.add(Favorite(user_id=user_id, prompt_id=prompt_id))
        self._session.flush()
        self._sync_favorites(prompt_id)
        return True

    def remove_favorite(self, prompt_id: str, user_id: str) -> bool:
        """Drop a user's favorite. Returns False if there was none."""
        self._require(prompt_id)
        favorite = self._session.get(Favorite, (user_id, prompt_id))
        if favorite is None:
            return False
        self._session.delete(favorite)
        self._session.flush()
        self._sync_favorites(prompt_id)
        return True

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_prompts(self) -> str:
        """Export every prompt as a JSON array."""
        prompts = self._session.execute(
            select(Prompt).options(selectinload(Prompt.tag_links)).order_by(Prompt.created_at, Prompt.id)
        ).scalars()
        data = [PromptOut.model_validate(p).model_dump(mode="json", exclude={"relevance"}) for p in prompts]
        return json.dumps(data, indent=2)

    def export_to_file(self, path: Path) -> Path:
        """Export prompt JSON to a file."""
        path.write_text(self.export_prompts(), encoding="utf-8")
        return path

    def import_prompts(self, path: Path) -> list[Prompt]:
        """Create prompts from a JSON array of prompt objects."""
        try:
            records = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ValueError(f"{path} is not valid JSON: {exc}") from None
        if not isinstance(records, list):
            raise ValueError(f"{path} must contain a JSON array of prompts.")
        created = []
        for index, record in enumerate(records):
            try:
                data = PromptCreate.model_validate(record)
            except ValidationError as exc:
                raise ValueError(f"Prompt #{index + 1} is invalid: {exc}") from None
            created.append(self.create_prompt(data))
        logger.info("Imported %d prompts from %s", len(created), path)
        return created
