"""MCP tools for browsing and checking quizzes (read-only)."""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from quizdeck.quiz_store import QuizStore
from quizdeck.session import tier_for_ratio
from quizdeck.validation import validate_quiz_data


def register(mcp: FastMCP, store: QuizStore) -> None:
    @mcp.tool()
    def list_quizzes() -> list[dict]:
        """List all quizzes, most recently created first.

        Each entry has id, slug, title, description, type and question_count.
        """
        return [s.model_dump(mode="json") for s in store.fetch_all()]

    @mcp.tool()
    def get_quiz(slug: str) -> dict:
        """Get a full quiz, including its questions and correct answers.

        Args:
            slug: The quiz slug (e.g. "frontend-basics")
        """
        quiz = store.fetch_by_slug(slug)
        if quiz is None:
            return {"error": f"Quiz not found: {slug}"}
        return quiz.model_dump(mode="json", by_alias=True)

    @mcp.tool()
    def validate_quiz(quiz: dict[str, Any]) -> dict:
        """Check a candidate quiz against the authoring rules without saving it.

        The quiz needs slug, title, description, type ("text", "image" or
        "mixed") and questions, each with question, options, correctIndex and
        an optional image URL (required when type is "image").

        Args:
            quiz: The candidate quiz as a JSON object
        """
        errors = validate_quiz_data(quiz)
        return {"valid": not errors, "errors": errors}

    @mcp.tool()
    def preview_result_tier(score: int, total: int) -> dict:
        """Show which result tier a final score falls into.

        Args:
            score: Number of correct answers
            total: Number of questions in the quiz
        """
        if total <= 0 or not 0 <= score <= total:
            return {"error": "score must be between 0 and total, and total must be positive"}
        ratio = score / total
        return {"score": score, "total": total, "ratio": ratio, "tier": tier_for_ratio(ratio).value}
