"""Authoring form state — immutable edits over a list of question drafts.

Every helper returns a new list; drafts are frozen, so no two callers can
ever share a mutable options list.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from quizdeck.quiz_models import QuizInput

DEFAULT_OPTION_COUNT = 4
MIN_OPTIONS = 2


class EditError(Exception):
    """An edit that would leave the form in an unsupported shape."""


class QuestionDraft(BaseModel):
    """A question as it is being edited in the authoring form."""

    model_config = ConfigDict(frozen=True)

    question: str = ""
    image: str = ""
    options: tuple[str, ...] = ("",) * DEFAULT_OPTION_COUNT
    correct_index: int = 0


def new_question() -> QuestionDraft:
    return QuestionDraft()


def add_question(drafts: list[QuestionDraft]) -> list[QuestionDraft]:
    return [*drafts, new_question()]


def remove_question(drafts: list[QuestionDraft], index: int) -> list[QuestionDraft]:
    if len(drafts) <= 1:
        raise EditError("Quiz must have at least one question")
    _check_index(drafts, index)
    return [d for i, d in enumerate(drafts) if i != index]


def update_question(
    drafts: list[QuestionDraft], index: int, **changes: Any
) -> list[QuestionDraft]:
    """Replace fields of one draft, e.g. ``update_question(d, 0, image=url)``."""
    _check_index(drafts, index)
    if "options" in changes:
        changes["options"] = tuple(changes["options"])
    updated = QuestionDraft.model_validate({**drafts[index].model_dump(), **changes})
    return _replace(drafts, index, updated)


def set_option(
    drafts: list[QuestionDraft], index: int, option_index: int, value: str
) -> list[QuestionDraft]:
    _check_index(drafts, index)
    draft = drafts[index]
    if not 0 <= option_index < len(draft.options):
        raise EditError(f"Question {index + 1} has no option {option_index + 1}")
    options = tuple(
        value if i == option_index else opt for i, opt in enumerate(draft.options)
    )
    return _replace(drafts, index, draft.model_copy(update={"options": options}))


def add_option(drafts: list[QuestionDraft], index: int) -> list[QuestionDraft]:
    _check_index(drafts, index)
    draft = drafts[index]
    return _replace(
        drafts, index, draft.model_copy(update={"options": (*draft.options, "")})
    )


def remove_option(
    drafts: list[QuestionDraft], index: int, option_index: int
) -> list[QuestionDraft]:
    """Drop an option, pulling the correct index back onto the last option if needed."""
    _check_index(drafts, index)
    draft = drafts[index]
    if len(draft.options) <= MIN_OPTIONS:
        raise EditError("Question must have at least 2 options")
    if not 0 <= option_index < len(draft.options):
        raise EditError(f"Question {index + 1} has no option {option_index + 1}")

    options = tuple(opt for i, opt in enumerate(draft.options) if i != option_index)
    correct_index = min(draft.correct_index, len(options) - 1)
    return _replace(
        drafts,
        index,
        draft.model_copy(update={"options": options, "correct_index": correct_index}),
    )


def set_correct_index(
    drafts: list[QuestionDraft], index: int, correct_index: int
) -> list[QuestionDraft]:
    _check_index(drafts, index)
    draft = drafts[index]
    if not 0 <= correct_index < len(draft.options):
        raise EditError(f"Question {index + 1} has no option {correct_index + 1}")
    return _replace(drafts, index, draft.model_copy(update={"correct_index": correct_index}))


def drafts_from_quiz(quiz: QuizInput) -> list[QuestionDraft]:
    """Load a stored quiz into editable drafts."""
    return [
        QuestionDraft(
            question=q.question,
            image=q.image or "",
            options=tuple(q.options),
            correct_index=q.correct_index,
        )
        for q in quiz.questions
    ]


def build_quiz_payload(
    slug: str,
    title: str,
    description: str,
    quiz_type: str,
    drafts: list[QuestionDraft],
) -> dict[str, Any]:
    """Normalise form values into a candidate quiz ready for validation."""
    return {
        "slug": slug.strip().lower(),
        "title": title.strip(),
        "description": description.strip(),
        "type": quiz_type,
        "questions": [
            {
                "question": d.question.strip(),
                "image": d.image.strip() or None,
                "options": [opt.strip() for opt in d.options],
                "correctIndex": d.correct_index,
            }
            for d in drafts
        ],
    }


def _check_index(drafts: list[QuestionDraft], index: int) -> None:
    if not 0 <= index < len(drafts):
        raise EditError(f"No question at position {index + 1}")


def _replace(
    drafts: list[QuestionDraft], index: int, draft: QuestionDraft
) -> list[QuestionDraft]:
    return [draft if i == index else d for i, d in enumerate(drafts)]
