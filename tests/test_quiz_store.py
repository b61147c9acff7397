"""Tests for quiz models and JSON quiz storage."""

import json
from datetime import timedelta

import pytest

from quizdeck.quiz_models import Question, Quiz, QuizInput, QuizType
from quizdeck.quiz_store import (
    QuizNotFoundError,
    QuizStore,
    QuizStoreError,
    SlugConflictError,
)
from quizdeck.seed import SAMPLE_QUIZZES, seed_store


@pytest.fixture
def tmp_store(tmp_path):
    return QuizStore(directory=tmp_path)


def quiz_input(slug: str = "test-quiz", title: str = "Test Quiz") -> QuizInput:
    return QuizInput(
        slug=slug,
        title=title,
        description="Testing",
        questions=[Question(question="2 + 2?", options=["3", "4"], correct_index=1)],
    )


# --- Model tests ---


class TestQuizModel:
    def test_default_quiz(self):
        q = Quiz(slug="a", title="A", description="B")
        assert q.type is QuizType.text
        assert q.questions == []
        assert len(q.id) == 12

    def test_correct_index_alias(self):
        q = Question.model_validate({"question": "?", "options": ["a", "b"], "correctIndex": 1})
        assert q.correct_index == 1
        assert q.model_dump(by_alias=True)["correctIndex"] == 1

    def test_blank_image_becomes_none(self):
        q = Question(question="?", options=["a", "b"], correct_index=0, image="  ")
        assert q.image is None


# --- Store tests ---


class TestQuizStore:
    def test_create_and_fetch(self, tmp_store):
        created = tmp_store.create(quiz_input())
        by_id = tmp_store.fetch_by_id(created.id)
        by_slug = tmp_store.fetch_by_slug("test-quiz")
        assert by_id == created
        assert by_slug == created
        assert by_id.questions[0].correct_index == 1

    def test_document_uses_camel_case_index(self, tmp_store, tmp_path):
        created = tmp_store.create(quiz_input())
        data = json.loads((tmp_path / f"{created.id}.json").read_text())
        assert data["questions"][0]["correctIndex"] == 1

    def test_missing_returns_none(self, tmp_store):
        assert tmp_store.fetch_by_id("nonexistent") is None
        assert tmp_store.fetch_by_slug("nonexistent") is None

    def test_duplicate_slug_rejected(self, tmp_store):
        tmp_store.create(quiz_input())
        with pytest.raises(SlugConflictError, match="already exists"):
            tmp_store.create(quiz_input(title="Other"))

    def test_list_newest_first(self, tmp_store):
        first = tmp_store.create(quiz_input("quiz-a", "Quiz A"))
        second = tmp_store.create(quiz_input("quiz-b", "Quiz B"))
        # Make ordering independent of clock resolution
        tmp_store._write(first.model_copy(update={"created_at": second.created_at - timedelta(seconds=5)}))
        summaries = tmp_store.fetch_all()
        assert [s.slug for s in summaries] == ["quiz-b", "quiz-a"]
        assert summaries[0].question_count == 1

    def test_update_keeps_created_at(self, tmp_store):
        created = tmp_store.create(quiz_input())
        updated = tmp_store.update(created.id, quiz_input(title="Renamed"))
        assert updated.id == created.id
        assert updated.title == "Renamed"
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at

    def test_update_slug_collision(self, tmp_store):
        tmp_store.create(quiz_input("taken"))
        other = tmp_store.create(quiz_input("mine"))
        with pytest.raises(SlugConflictError):
            tmp_store.update(other.id, quiz_input("taken"))
        # Keeping its own slug is fine
        assert tmp_store.update(other.id, quiz_input("mine")).slug == "mine"

    def test_update_unknown_id(self, tmp_store):
        with pytest.raises(QuizNotFoundError):
            tmp_store.update("nonexistent", quiz_input())

    def test_delete(self, tmp_store):
        created = tmp_store.create(quiz_input())
        tmp_store.delete(created.id)
        assert tmp_store.fetch_by_id(created.id) is None
        tmp_store.delete(created.id)

    def test_corrupt_document(self, tmp_store, tmp_path):
        tmp_store.create(quiz_input())
        (tmp_path / "broken.json").write_text("{not json")
        assert len(tmp_store.fetch_all()) == 1
        with pytest.raises(QuizStoreError):
            tmp_store.fetch_by_id("broken")


class TestSeed:
    def test_seed_is_idempotent(self, tmp_store):
        assert seed_store(tmp_store) == len(SAMPLE_QUIZZES)
        assert seed_store(tmp_store) == 0
        quiz = tmp_store.fetch_by_slug("javascript-essentials")
        assert len(quiz.questions) == 3
