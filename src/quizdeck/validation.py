"""Authoring-side validation of candidate quizzes."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import AnyUrl, TypeAdapter, ValidationError

from quizdeck.quiz_models import QuizInput, QuizType

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

_url_adapter = TypeAdapter(AnyUrl)


def is_valid_url(value: str) -> bool:
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_quiz_data(candidate: Mapping[str, Any] | QuizInput) -> list[str]:
    """Check a candidate quiz and return human-readable errors in order.

    An empty list means the quiz may be saved. Questions are referred to by
    their 1-based position.
    """
    if isinstance(candidate, QuizInput):
        data: Mapping[str, Any] = candidate.model_dump(by_alias=True, mode="json")
    else:
        data = candidate

    errors: list[str] = []

    slug = data.get("slug")
    if not isinstance(slug, str) or not SLUG_PATTERN.fullmatch(slug):
        errors.append("Slug must be lowercase letters, numbers, and hyphens only")

    if _blank(data.get("title")):
        errors.append("Title is required")

    if _blank(data.get("description")):
        errors.append("Description is required")

    quiz_type = data.get("type")
    if quiz_type not in {t.value for t in QuizType}:
        errors.append("Type must be 'text', 'image', or 'mixed'")
    media_required = quiz_type == QuizType.image.value

    questions = data.get("questions")
    if not isinstance(questions, list) or not questions:
        errors.append("At least one question is required")
        return errors

    for number, question in enumerate(questions, start=1):
        if not isinstance(question, Mapping):
            errors.append(f"Question {number}: Malformed question")
            continue

        if _blank(question.get("question")):
            errors.append(f"Question {number}: Question text is required")

        options = question.get("options")
        if not isinstance(options, list) or len(options) < 2:
            errors.append(f"Question {number}: At least 2 options are required")
            options = options if isinstance(options, list) else []
        else:
            for option_number, option in enumerate(options, start=1):
                if _blank(option):
                    errors.append(
                        f"Question {number}: Option {option_number} is required"
                    )

        correct_index = question.get("correctIndex", question.get("correct_index"))
        if (
            not isinstance(correct_index, int)
            or isinstance(correct_index, bool)
            or not 0 <= correct_index < len(options)
        ):
            errors.append(f"Question {number}: Valid correct answer index is required")

        image = question.get("image")
        if _blank(image):
            if media_required:
                errors.append(f"Question {number}: Image is required for image quizzes")
        elif not is_valid_url(image.strip()):
            errors.append(f"Question {number}: Invalid image URL")

    return errors
