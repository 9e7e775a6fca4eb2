"""Tests for AnswerValidator domain service."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from buddyflow.domain.progress.services.answer_validators import AnswerValidator, round_half_up
from buddyflow.domain.snapshot.content import (
    QuizContent,
    QuizOption,
    QuizQuestion,
    TaskContent,
    TaskValidationSettings,
)


def _task(**settings: Any) -> TaskContent:
    return TaskContent(
        instruction="Name the capital of France.",
        reference_answer="Paris",
        alternative_answers=("Paris, France",),
        hint="It is on the Seine.",
        validation=TaskValidationSettings(**settings),
    )


def _question(question_id: str, correct: tuple[str, ...] = ("a",)) -> QuizQuestion:
    return QuizQuestion(
        id=question_id,
        text=question_id,
        options=tuple(QuizOption(id=o, text=o, is_correct=o in correct) for o in ("a", "b", "c")),
    )


def _quiz(passing_score: int = 70) -> QuizContent:
    return QuizContent(
        questions=(_question("q1"), _question("q2"), _question("q3"), _question("q4")),
        passing_score=passing_score,
    )


class TestTaskMatching:
    @pytest.mark.parametrize("answer", ["Paris", "paris", "  PARIS  ", "paris, france"])
    def test_default_settings_ignore_case_and_whitespace(self, answer: str) -> None:
        assert AnswerValidator().match_task(_task(), answer).is_correct

    def test_reports_which_strategy_matched(self) -> None:
        validator = AnswerValidator()
        assert validator.match_task(_task(), "Paris").matched_by == "reference"
        assert validator.match_task(_task(), "Paris, France").matched_by == "alternative"

    def test_case_sensitive(self) -> None:
        validator = AnswerValidator()
        task = _task(case_sensitive=True)
        assert validator.match_task(task, "Paris").is_correct
        assert not validator.match_task(task, "paris").is_correct

    def test_whitespace_kept_when_trim_disabled(self) -> None:
        assert not AnswerValidator().match_task(_task(trim_whitespace=False), " Paris").is_correct

    def test_wrong_answer(self) -> None:
        match = AnswerValidator().match_task(_task(), "Lyon")
        assert not match.is_correct
        assert match.matched_by is None

    def test_pattern(self) -> None:
        validator = AnswerValidator()
        task = _task(pattern=r"^par[iy]s$")
        match = validator.match_task(task, "Parys")
        assert match.is_correct
        assert match.matched_by == "pattern"

    def test_malformed_pattern_is_logged_and_ignored(self) -> None:
        logger = MagicMock()
        validator = AnswerValidator(logger=logger)
        task = _task(pattern="([unclosed")

        assert validator.match_task(task, "Paris").is_correct
        assert not validator.match_task(task, "Lyon").is_correct
        logger.warning.assert_called_once()
        assert logger.warning.call_args.args[0] == "invalid_task_pattern"

    def test_partial_match_only_when_allowed(self) -> None:
        validator = AnswerValidator()
        assert not validator.match_task(_task(), "Paris is the capital").is_correct

        match = validator.match_task(_task(allow_partial_match=True), "Paris is the capital")
        assert match.is_correct
        assert match.matched_by == "partial"

    def test_hint_after_two_misses(self) -> None:
        validator = AnswerValidator()
        assert validator.hint_for(_task(), 1) is None
        assert validator.hint_for(_task(), 2) == "It is on the Seine."


class TestQuizScoring:
    def test_three_of_four_passes_at_seventy(self) -> None:
        answers = {"q1": ["a"], "q2": ["a"], "q3": ["a"], "q4": ["b"]}
        score = AnswerValidator().score_quiz(_quiz(70), answers)
        assert score.score == 75
        assert score.correct_answers == 3
        assert score.total_questions == 4
        assert score.passed

    def test_three_of_four_fails_at_eighty(self) -> None:
        answers = {"q1": ["a"], "q2": ["a"], "q3": ["a"], "q4": ["b"]}
        score = AnswerValidator().score_quiz(_quiz(80), answers)
        assert score.score == 75
        assert not score.passed

    def test_passing_score_override(self) -> None:
        answers = {"q1": ["a"], "q2": ["a"], "q3": ["a"], "q4": ["b"]}
        score = AnswerValidator().score_quiz(_quiz(70), answers, passing_score=80)
        assert not score.passed
        assert score.passing_score == 80

    def test_multi_select_needs_exact_set(self) -> None:
        quiz = QuizContent(questions=(_question("q1", correct=("a", "c")),))
        validator = AnswerValidator()
        assert validator.score_quiz(quiz, {"q1": ["c", "a"]}).score == 100
        assert validator.score_quiz(quiz, {"q1": ["a"]}).score == 0
        assert validator.score_quiz(quiz, {"q1": ["a", "b", "c"]}).score == 0

    def test_unanswered_questions_are_wrong(self) -> None:
        score = AnswerValidator().score_quiz(_quiz(), {"q1": ["a"]})
        assert score.score == 25
        assert [q.is_correct for q in score.questions] == [True, False, False, False]

    def test_scores_round_half_up(self) -> None:
        questions = tuple(_question(f"q{n}") for n in range(8))
        quiz = QuizContent(questions=questions)
        # 5 of 8 is 62.5
        answers = {f"q{n}": ["a"] for n in range(5)}
        assert AnswerValidator().score_quiz(quiz, answers).score == 63

    def test_round_half_up(self) -> None:
        assert round_half_up(62.5) == 63
        assert round_half_up(0.5) == 1
        assert round_half_up(66.4) == 66
