"""Tests for authoring-side quiz validation."""

import copy

import pytest

from quizdeck.quiz_models import QuizInput
from quizdeck.validation import is_valid_url, validate_quiz_data


@pytest.fixture
def quiz_data():
    return {
        "slug": "space-facts",
        "title": "Space Facts",
        "description": "How well do you know the solar system?",
        "type": "text",
        "questions": [
            {
                "question": "Which planet is largest?",
                "options": ["Mars", "Jupiter", "Venus"],
                "correctIndex": 1,
            },
            {
                "question": "How many moons does Mars have?",
                "options": ["0", "1", "2"],
                "correctIndex": 2,
            },
        ],
    }


class TestValidQuiz:
    def test_well_formed_quiz(self, quiz_data):
        assert validate_quiz_data(quiz_data) == []

    def test_accepts_model(self, quiz_data):
        assert validate_quiz_data(QuizInput.model_validate(quiz_data)) == []

    def test_mixed_type_media_optional(self, quiz_data):
        quiz_data["type"] = "mixed"
        quiz_data["questions"][0]["image"] = "https://example.com/jupiter.png"
        assert validate_quiz_data(quiz_data) == []


class TestMetadataRules:
    @pytest.mark.parametrize("slug", ["Space", "space facts", "space_facts", "my-quiz\n", "", None])
    def test_bad_slug(self, quiz_data, slug):
        quiz_data["slug"] = slug
        assert validate_quiz_data(quiz_data) == [
            "Slug must be lowercase letters, numbers, and hyphens only"
        ]

    def test_blank_title_and_description(self, quiz_data):
        quiz_data["title"] = "   "
        del quiz_data["description"]
        assert validate_quiz_data(quiz_data) == [
            "Title is required",
            "Description is required",
        ]

    def test_unknown_type(self, quiz_data):
        quiz_data["type"] = "video"
        assert validate_quiz_data(quiz_data) == ["Type must be 'text', 'image', or 'mixed'"]

    def test_no_questions(self, quiz_data):
        quiz_data["questions"] = []
        assert validate_quiz_data(quiz_data) == ["At least one question is required"]


class TestQuestionRules:
    def test_missing_text(self, quiz_data):
        quiz_data["questions"][1]["question"] = ""
        assert validate_quiz_data(quiz_data) == ["Question 2: Question text is required"]

    def test_too_few_options(self, quiz_data):
        quiz_data["questions"][0]["options"] = ["Mars"]
        quiz_data["questions"][0]["correctIndex"] = 0
        assert validate_quiz_data(quiz_data) == [
            "Question 1: At least 2 options are required"
        ]

    def test_blank_option(self, quiz_data):
        quiz_data["questions"][0]["options"][2] = " "
        assert validate_quiz_data(quiz_data) == ["Question 1: Option 3 is required"]

    @pytest.mark.parametrize("index", [-1, 3, "1", None, True])
    def test_bad_correct_index(self, quiz_data, index):
        quiz_data["questions"][0]["correctIndex"] = index
        assert validate_quiz_data(quiz_data) == [
            "Question 1: Valid correct answer index is required"
        ]

    def test_invalid_image_url(self, quiz_data):
        quiz_data["questions"][1]["image"] = "not a url"
        assert validate_quiz_data(quiz_data) == ["Question 2: Invalid image URL"]

    def test_image_quiz_requires_media(self, quiz_data):
        quiz_data["type"] = "image"
        quiz_data["questions"][0]["image"] = "https://example.com/jupiter.png"
        errors = validate_quiz_data(quiz_data)
        assert errors
        assert any(e.startswith("Question 2:") and "Image" in e for e in errors)

    def test_errors_keep_order(self, quiz_data):
        data = copy.deepcopy(quiz_data)
        data["title"] = ""
        data["questions"][0]["question"] = ""
        data["questions"][1]["options"] = ["only"]
        errors = validate_quiz_data(data)
        assert errors[0] == "Title is required"
        assert errors[1] == "Question 1: Question text is required"
        assert errors[2] == "Question 2: At least 2 options are required"


class TestUrl:
    def test_urls(self):
        assert is_valid_url("https://res.cloudinary.com/demo/image/upload/x.jpg")
        assert not is_valid_url("/assets/image.jpeg")
        assert not is_valid_url("")
