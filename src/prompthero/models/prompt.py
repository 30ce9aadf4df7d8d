from __future__ import annotations

import datetime
import uuid

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prompthero.models.base import Base


def utcnow() -> datetime.datetime:
    """Naive UTC timestamp, the form stored in every DateTime column."""
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def new_id() -> str:
    return str(uuid.uuid4())


class Prompt(Base):
    __tablename__ = "prompts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    difficulty: Mapped[str] = mapped_column(String(20), nullable=False, default="intermediate")
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    average_rating: Mapped[float] = mapped_column(
        Numeric(3, 2, asdecimal=False), nullable=False, default=0.0
    )
    total_ratings: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_favorites: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, index=True
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )

    tag_links: Mapped[list[PromptTag]] = relationship(
        "PromptTag",
        back_populates="prompt",
        cascade="all, delete-orphan",
        order_by="PromptTag.position",
    )
    ratings: Mapped[list[Rating]] = relationship(
        "Rating", back_populates="prompt", cascade="all, delete-orphan"
    )
    favorites: Mapped[list[Favorite]] = relationship(
        "Favorite", back_populates="prompt", cascade="all, delete-orphan"
    )

    @property
    def tags(self) -> list[str]:
        return [link.name for link in self.tag_links]

    @tags.setter
    def tags(self, names: list[str]) -> None:
        self.tag_links = [PromptTag(position=i, name=name) for i, name in enumerate(names)]

    def __repr__(self) -> str:
        return f"<Prompt(id={self.id!r}, title={self.title!r})>"


class PromptTag(Base):
    __tablename__ = "prompt_tags"

    prompt_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True
    )
    name: Mapped[str] = mapped_column(String(50), primary_key=True, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    prompt: Mapped[Prompt] = relationship("Prompt", back_populates="tag_links")

    def __repr__(self) -> str:
        return f"<PromptTag(prompt_id={self.prompt_id!r}, name={self.name!r})>"


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("prompt_id", "user_id", name="uq_ratings_prompt_user"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_ratings_range"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    prompt_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("prompts.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    review: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    prompt: Mapped[Prompt] = relationship("Prompt", back_populates="ratings")

    def __repr__(self) -> str:
        return f"<Rating(prompt_id={self.prompt_id!r}, user_id={self.user_id!r}, rating={self.rating})>"


class Favorite(Base):
    __tablename__ = "favorites"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    prompt_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("prompts.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    prompt: Mapped[Prompt] = relationship("Prompt", back_populates="favorites")

    def __repr__(self) -> str:
        return f"<Favorite(user_id={self.user_id!r}, prompt_id={self.prompt_id!r})>"
