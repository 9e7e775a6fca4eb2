"""
Content validators: compare a learner's submission with frozen content.

This is a pure domain service; the only side effect is logging a warning
when a task carries a pattern that does not compile.
"""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Literal

import structlog

from buddyflow.domain.snapshot.content import QuizContent, TaskContent

MatchedBy = Literal["reference", "alternative", "pattern", "partial"]

# The hint is only offered once the learner has missed at least this many times.
HINT_AFTER_ATTEMPTS = 2


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for non-negative input."""
    return math.floor(value + 0.5)


@dataclass(frozen=True)
class TaskMatch:
    is_correct: bool
    matched_by: MatchedBy | None = None


@dataclass(frozen=True)
class QuestionResult:
    question_id: str
    is_correct: bool
    selected_option_ids: frozenset[str]
    correct_option_ids: frozenset[str]


@dataclass(frozen=True)
class QuizScore:
    score: int
    correct_answers: int
    total_questions: int
    passed: bool
    passing_score: int
    questions: tuple[QuestionResult, ...]


class AnswerValidator:
    """Task text matching and quiz option scoring."""

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None) -> None:
        self.logger = logger or structlog.get_logger(__name__)

    def match_task(self, content: TaskContent, answer: str) -> TaskMatch:
        """
        Check a free-text answer.

        Strategies are tried in order and the first hit wins: the reference
        answer, the alternative answers, the configured pattern, then
        containment when partial matches are allowed.

        Args:
            content: Frozen task content
            answer: The learner's raw submission

        Returns:
            TaskMatch naming the strategy that accepted the answer, if any
        """
        settings = content.validation
        submitted = self._normalize(answer, settings.trim_whitespace, settings.case_sensitive)
        reference = self._normalize(
            content.reference_answer, settings.trim_whitespace, settings.case_sensitive
        )
        alternatives = [
            self._normalize(alt, settings.trim_whitespace, settings.case_sensitive)
            for alt in content.alternative_answers
            if alt
        ]

        if submitted == reference:
            return TaskMatch(is_correct=True, matched_by="reference")
        if submitted in alternatives:
            return TaskMatch(is_correct=True, matched_by="alternative")
        if settings.pattern and self._matches_pattern(
            settings.pattern,
            answer.strip() if settings.trim_whitespace else answer,
            settings.case_sensitive,
        ):
            return TaskMatch(is_correct=True, matched_by="pattern")
        if settings.allow_partial_match and submitted:
            for candidate in (reference, *alternatives):
                if submitted in candidate or candidate in submitted:
                    return TaskMatch(is_correct=True, matched_by="partial")
        return TaskMatch(is_correct=False)

    def score_quiz(
        self,
        content: QuizContent,
        answers: Mapping[str, Iterable[str]],
        passing_score: int | None = None,
    ) -> QuizScore:
        """
        Score a quiz submission.

        A question counts as correct only when the selected option ids are
        exactly the set of correct option ids. Unanswered questions are wrong.

        Args:
            content: Frozen quiz content
            answers: Selected option ids keyed by question id
            passing_score: Threshold override; defaults to the quiz's own

        Returns:
            QuizScore with a 0-100 score and per-question results
        """
        threshold = content.passing_score if passing_score is None else passing_score
        results: list[QuestionResult] = []
        for question in content.questions:
            selected = frozenset(answers.get(question.id, ()))
            correct = question.correct_option_ids
            results.append(
                QuestionResult(
                    question_id=question.id,
                    is_correct=selected == correct,
                    selected_option_ids=selected,
                    correct_option_ids=correct,
                )
            )

        total = len(results)
        correct_count = sum(1 for r in results if r.is_correct)
        score = round_half_up(correct_count / total * 100) if total else 0
        return QuizScore(
            score=score,
            correct_answers=correct_count,
            total_questions=total,
            passed=score >= threshold,
            passing_score=threshold,
            questions=tuple(results),
        )

    def hint_for(self, content: TaskContent, failed_attempts: int) -> str | None:
        """Return the task hint once enough wrong answers have been given."""
        if content.hint and failed_attempts >= HINT_AFTER_ATTEMPTS:
            return content.hint
        return None

    @staticmethod
    def _normalize(value: str, trim: bool, case_sensitive: bool) -> str:
        if trim:
            value = value.strip()
        if not case_sensitive:
            value = value.lower()
        return value

    def _matches_pattern(self, pattern: str, answer: str, case_sensitive: bool) -> bool:
        flags = 0 if case_sensitive else re.IGNORECASE
        try:
            return re.search(pattern, answer, flags) is not None
        except re.error as e:
            # A broken pattern on one component must not block the other strategies.
            self.logger.warning("invalid_task_pattern", pattern=pattern, error=str(e))
            return False
