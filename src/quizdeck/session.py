"""Quiz session engine — drives one player through a quiz.

The engine owns all mutable session state and performs no I/O. The quiz
definition it is given is treated as read-only input.

State machine::

    IN_PROGRESS/UNANSWERED --select_option--> IN_PROGRESS/ANSWERED
    IN_PROGRESS/ANSWERED   --advance-------> IN_PROGRESS/UNANSWERED (next question)
    IN_PROGRESS/ANSWERED   --advance-------> FINISHED (after the last question)
    any                    --restart-------> IN_PROGRESS/UNANSWERED (question 0)

Every other transition is rejected and leaves the state untouched.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel

from quizdeck.quiz_models import Question, QuizInput

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    in_progress = "IN_PROGRESS"
    finished = "FINISHED"


class AnswerState(str, Enum):
    """Per-question answer latch."""

    unanswered = "UNANSWERED"
    answered = "ANSWERED"


class OptionState(str, Enum):
    """How an option should be presented to the player."""

    neutral = "NEUTRAL"
    correct = "CORRECT"
    incorrect_selected = "INCORRECT_SELECTED"
    dimmed = "DIMMED"


class Tier(str, Enum):
    """Result-screen label derived from the final score ratio."""

    perfect = "perfect"
    great = "great"
    good = "good"
    practice = "practice"


class SessionError(Exception):
    """Base class for session engine errors."""


class EmptyQuizError(SessionError):
    """The quiz has no questions and cannot be played."""


class SessionInvariantError(SessionError):
    """The caller broke an engine precondition (a UI bug, not a user error)."""


class Transition(BaseModel):
    """Outcome of a guarded state transition."""

    ok: bool
    reason: str | None = None

    @classmethod
    def accepted(cls) -> Transition:
        return cls(ok=True)

    @classmethod
    def rejected(cls, reason: str) -> Transition:
        return cls(ok=False, reason=reason)


class AnswerRecord(BaseModel):
    """What the player answered for one question, recorded on advance."""

    question_index: int
    selected_index: int
    correct_index: int
    correct: bool


class FinalSummary(BaseModel):
    score: int
    total: int
    ratio: float
    tier: Tier


def tier_for_ratio(ratio: float) -> Tier:
    """Map a score ratio to its tier. Boundaries are inclusive."""
    if ratio == 1:
        return Tier.perfect
    if ratio >= 0.7:
        return Tier.great
    if ratio >= 0.5:
        return Tier.good
    return Tier.practice


def classify_option(
    index: int,
    answer_revealed: bool,
    selected_index: int | None,
    correct_index: int,
) -> OptionState:
    """Presentation state of one option, as a pure function of the answer state."""
    if not answer_revealed:
        return OptionState.neutral
    if index == correct_index:
        return OptionState.correct
    if index == selected_index:
        return OptionState.incorrect_selected
    return OptionState.dimmed


def _check_question(position: int, question: Question) -> None:
    if not question.question.strip():
        raise SessionInvariantError(f"Question {position}: text is empty")
    if len(question.options) < 2:
        raise SessionInvariantError(f"Question {position}: fewer than 2 options")
    if not 0 <= question.correct_index < len(question.options):
        raise SessionInvariantError(
            f"Question {position}: correct index {question.correct_index} out of range"
        )


class QuizSession:
    """A single player's traversal of a quiz."""

    def __init__(self, quiz: QuizInput) -> None:
        # Emptiness is checked before anything else is set up.
        if not self.is_playable(quiz):
            raise EmptyQuizError(f"Quiz '{quiz.slug}' has no questions")
        for position, question in enumerate(quiz.questions, start=1):
            _check_question(position, question)

        self._quiz = quiz
        self._questions: tuple[Question, ...] = tuple(quiz.questions)
        self.restart()

    @staticmethod
    def is_playable(quiz: QuizInput) -> bool:
        return len(quiz.questions) > 0

    # --- Transitions ---

    def select_option(self, index: int) -> Transition:
        """Lock in an answer for the current question. The first choice is final."""
        if self._phase is Phase.finished:
            return Transition.rejected("Quiz is finished")
        if self._answer_state is AnswerState.answered:
            return Transition.rejected("Answer already locked for this question")
        if not 0 <= index < len(self.current_question.options):
            raise SessionInvariantError(
                f"Option index {index} out of range for question {self._current_index + 1}"
            )

        self._selected_index = index
        self._answer_state = AnswerState.answered
        logger.debug(
            "Question %d: selected option %d", self._current_index + 1, index
        )
        return Transition.accepted()

    def advance(self) -> Transition:
        """Score the locked answer and move on, finishing after the last question."""
        if self._phase is Phase.finished:
            return Transition.rejected("Quiz is finished")
        if self._answer_state is AnswerState.unanswered:
            return Transition.rejected("No answer selected for this question")

        question = self.current_question
        correct = self._selected_index == question.correct_index
        if correct:
            self._score += 1
        self._history.append(
            AnswerRecord(
                question_index=self._current_index,
                selected_index=self._selected_index,
                correct_index=question.correct_index,
                correct=correct,
            )
        )

        if self.is_last_question:
            self._phase = Phase.finished
            logger.info(
                "Quiz '%s' finished: %d/%d",
                self._quiz.slug,
                self._score,
                self.total_questions,
            )
        else:
            self._current_index += 1

        self._selected_index = None
        self._answer_state = AnswerState.unanswered
        return Transition.accepted()

    def restart(self) -> Transition:
        """Reset to the first question. Allowed in any phase."""
        self._current_index = 0
        self._score = 0
        self._selected_index: int | None = None
        self._answer_state = AnswerState.unanswered
        self._phase = Phase.in_progress
        self._history: list[AnswerRecord] = []
        return Transition.accepted()

    # --- Queries ---

    @property
    def quiz(self) -> QuizInput:
        return self._quiz

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def score(self) -> int:
        return self._score

    @property
    def selected_option(self) -> int | None:
        return self._selected_index

    @property
    def answer_state(self) -> AnswerState:
        return self._answer_state

    @property
    def answer_revealed(self) -> bool:
        return self._answer_state is AnswerState.answered

    @property
    def history(self) -> list[AnswerRecord]:
        return list(self._history)

    @property
    def total_questions(self) -> int:
        return len(self._questions)

    @property
    def current_question(self) -> Question:
        return self._questions[self._current_index]

    @property
    def is_last_question(self) -> bool:
        return self._current_index == self.total_questions - 1

    @property
    def is_advance_enabled(self) -> bool:
        return self._phase is Phase.in_progress and self.answer_revealed

    @property
    def progress_percent(self) -> int:
        """Position through the quiz, rounded half up to a whole percent."""
        if self._phase is Phase.finished:
            return 100
        total = self.total_questions
        return (200 * (self._current_index + 1) + total) // (2 * total)

    def option_state(self, index: int) -> OptionState:
        return classify_option(
            index,
            self.answer_revealed,
            self._selected_index,
            self.current_question.correct_index,
        )

    def option_states(self) -> list[OptionState]:
        return [self.option_state(i) for i in range(len(self.current_question.options))]

    def final_summary(self) -> FinalSummary:
        if self._phase is not Phase.finished:
            raise SessionInvariantError("Final summary requested before the quiz finished")
        total = self.total_questions
        ratio = self._score / total
        return FinalSummary(
            score=self._score, total=total, ratio=ratio, tier=tier_for_ratio(ratio)
        )

    def snapshot(self) -> dict[str, Any]:
        """Serializable view of the session for rendering."""
        state: dict[str, Any] = {
            "slug": self._quiz.slug,
            "title": self._quiz.title,
            "description": self._quiz.description,
            "phase": self._phase.value,
            "total_questions": self.total_questions,
            "score": self._score,
            "progress_percent": self.progress_percent,
        }
        if self._phase is Phase.finished:
            state["summary"] = self.final_summary().model_dump(mode="json")
            state["history"] = [r.model_dump() for r in self._history]
            return state

        question = self.current_question
        states = self.option_states()
        state.update(
            {
                "current_index": self._current_index,
                "answer_state": self._answer_state.value,
                "selected_option": self._selected_index,
                "advance_enabled": self.is_advance_enabled,
                "advance_label": "Finish" if self.is_last_question else "Next",
                "question": {
                    "number": self._current_index + 1,
                    "text": question.question,
                    "image": question.image,
                    "options": [
                        {"index": i, "text": text, "state": states[i].value}
                        for i, text in enumerate(question.options)
                    ],
                },
            }
        )
        return state
