"""Quiz grading.

``score`` is a pure function of the questions, the submitted answers and the
pass mark. A quiz with no questions (or no points on offer) scores 100 and
passes, so an authoring omission never blocks a learner.
"""
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Set

from app.core.constants import QuestionTypeEnum
from app.utils.numbers import percentage

DEFAULT_PASSING_SCORE = 80


@dataclass(frozen=True)
class QuizScore:
    percentage: int
    passed: bool
    earned_points: int
    total_points: int
    correct_question_ids: frozenset


def _normalize(value: Any) -> str:
    return str(value).strip().lower()


def answer_is_correct(question: Any, submitted: Optional[Any]) -> bool:
    if submitted is None:
        return False
    if question.question_type == QuestionTypeEnum.MULTIPLE_CHOICE:
        return str(submitted) == str(question.correct_answer)
    return _normalize(submitted) == _normalize(question.correct_answer)


def _points(question: Any) -> int:
    return question.points if question.points is not None else 1


def unknown_question_ids(questions: Iterable[Any], submitted_answers: Mapping[int, Any]) -> Set[int]:
    known = {q.id for q in questions}
    return {question_id for question_id in submitted_answers if question_id not in known}


def score(questions: Iterable[Any], submitted_answers: Mapping[int, Any], passing_score: int = DEFAULT_PASSING_SCORE) -> QuizScore:
    questions = list(questions)
    total = sum(_points(q) for q in questions)
    if total <= 0:
        return QuizScore(percentage=100, passed=True, earned_points=0, total_points=0, correct_question_ids=frozenset())

    correct = {q.id for q in questions if answer_is_correct(q, submitted_answers.get(q.id))}
    earned = sum(_points(q) for q in questions if q.id in correct)
    result = percentage(earned, total)
    return QuizScore(
        percentage=result,
        passed=result >= passing_score,
        earned_points=earned,
        total_points=total,
        correct_question_ids=frozenset(correct),
    )


def can_retake(attempts: Iterable[Any]) -> bool:
    return not any(attempt.passed for attempt in attempts)
