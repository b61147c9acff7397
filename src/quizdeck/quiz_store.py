"""Quiz store — JSON document storage keyed by quiz id, unique by slug."""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path

from pydantic import ValidationError

from quizdeck.quiz_models import Quiz, QuizInput, QuizSummary, utcnow

logger = logging.getLogger(__name__)

# Default quiz storage directory (override with QUIZ_DIR env var)
QUIZ_DIR = Path(
    os.environ.get("QUIZ_DIR", Path(__file__).parent.parent.parent / "quizzes")
)


class QuizStoreError(Exception):
    """The store could not be read or written."""


class QuizNotFoundError(QuizStoreError):
    pass


class SlugConflictError(QuizStoreError):
    def __init__(self, slug: str) -> None:
        super().__init__("A quiz with this slug already exists")
        self.slug = slug


class QuizStore:
    """JSON file-based quiz storage."""

    def __init__(self, directory: Path = QUIZ_DIR) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, quiz_id: str) -> Path:
        return self.directory / f"{quiz_id}.json"

    def _read(self, path: Path) -> Quiz:
        try:
            return Quiz.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise QuizStoreError(f"Failed to read quiz {path.stem}: {e}") from e

    def _write(self, quiz: Quiz) -> Quiz:
        data = quiz.model_dump(mode="json", by_alias=True)
        try:
            self._path(quiz.id).write_text(
                json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as e:
            raise QuizStoreError(f"Failed to save quiz {quiz.id}: {e}") from e
        return quiz

    def _load_all(self) -> list[Quiz]:
        quizzes = []
        for p in sorted(self.directory.glob("*.json")):
            try:
                quizzes.append(self._read(p))
            except QuizStoreError as e:
                logger.warning("Skipping unreadable quiz document: %s", e)
        return quizzes

    # --- Queries ---

    def fetch_all(self) -> list[QuizSummary]:
        """All quizzes, most recently created first."""
        quizzes = sorted(self._load_all(), key=lambda q: q.created_at, reverse=True)
        return [q.summary() for q in quizzes]

    def fetch_by_id(self, quiz_id: str) -> Quiz | None:
        path = self._path(quiz_id)
        if not path.exists():
            return None
        return self._read(path)

    def fetch_by_slug(self, slug: str) -> Quiz | None:
        for quiz in self._load_all():
            if quiz.slug == slug:
                return quiz
        return None

    # --- Mutations ---

    def create(self, data: QuizInput) -> Quiz:
        with self._lock:
            if self.fetch_by_slug(data.slug) is not None:
                raise SlugConflictError(data.slug)
            quiz = Quiz(**_input_fields(data))
            logger.info("Creating quiz '%s' (%s)", quiz.slug, quiz.id)
            return self._write(quiz)

    def update(self, quiz_id: str, data: QuizInput) -> Quiz:
        with self._lock:
            existing = self.fetch_by_id(quiz_id)
            if existing is None:
                raise QuizNotFoundError(f"Quiz not found: {quiz_id}")
            owner = self.fetch_by_slug(data.slug)
            if owner is not None and owner.id != quiz_id:
                raise SlugConflictError(data.slug)
            quiz = Quiz(
                **_input_fields(data),
                id=quiz_id,
                created_at=existing.created_at,
                updated_at=utcnow(),
            )
            logger.info("Updating quiz '%s' (%s)", quiz.slug, quiz.id)
            return self._write(quiz)

    def delete(self, quiz_id: str) -> None:
        path = self._path(quiz_id)
        with self._lock:
            if path.exists():
                path.unlink()
                logger.info("Deleted quiz %s", quiz_id)


def _input_fields(data: QuizInput) -> dict:
    return data.model_dump(include=set(QuizInput.model_fields))
