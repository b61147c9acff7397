"""Quiz data models — quiz documents as stored and served."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizType(str, Enum):
    """Declarative hint about whether questions carry media."""

    text = "text"
    image = "image"  # Every question must have media
    mixed = "mixed"  # Media is optional per question


class Question(BaseModel):
    """A single multiple-choice question."""

    model_config = ConfigDict(populate_by_name=True)

    question: str
    image: str | None = None  # External media URL
    options: list[str]
    correct_index: int = Field(alias="correctIndex")

    @field_validator("image", mode="before")
    @classmethod
    def _blank_image_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class QuizInput(BaseModel):
    """Quiz fields an author controls."""

    slug: str
    title: str
    description: str
    type: QuizType = QuizType.text
    questions: list[Question] = Field(default_factory=list)


class Quiz(QuizInput):
    """A stored quiz document."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def summary(self) -> QuizSummary:
        return QuizSummary(
            id=self.id,
            slug=self.slug,
            title=self.title,
            description=self.description,
            type=self.type,
            question_count=len(self.questions),
            created_at=self.created_at,
        )


class QuizSummary(BaseModel):
    """List-view projection of a quiz."""

    id: str
    slug: str
    title: str
    description: str
    type: QuizType
    question_count: int
    created_at: datetime
