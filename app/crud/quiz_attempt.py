from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import List

from app.crud.base import CRUDBase
from app.models.quiz_attempt import QuizAttempt


class CRUDQuizAttempt(CRUDBase[QuizAttempt, dict, dict]):

    def get_by_enrollment_and_lesson(self, db: Session, enrollment_id: int, lesson_id: int) -> List[QuizAttempt]:
        return (
            db.query(QuizAttempt)
            .filter(QuizAttempt.enrollment_id == enrollment_id)
            .filter(QuizAttempt.lesson_id == lesson_id)
            .order_by(QuizAttempt.attempt_number.desc())
            .all()
        )

    def next_attempt_number(self, db: Session, enrollment_id: int, lesson_id: int) -> int:
        current = (
            db.query(func.max(QuizAttempt.attempt_number))
            .filter(QuizAttempt.enrollment_id == enrollment_id)
            .filter(QuizAttempt.lesson_id == lesson_id)
            .scalar()
        )
        return (current or 0) + 1

    def has_passed(self, db: Session, enrollment_id: int, lesson_id: int) -> bool:
        return (
            db.query(QuizAttempt.id)
            .filter(QuizAttempt.enrollment_id == enrollment_id)
            .filter(QuizAttempt.lesson_id == lesson_id)
            .filter(QuizAttempt.passed == True)
            .first()
        ) is not None

    def best_score(self, db: Session, enrollment_id: int, lesson_id: int) -> int:
        best = (
            db.query(func.max(QuizAttempt.score))
            .filter(QuizAttempt.enrollment_id == enrollment_id)
            .filter(QuizAttempt.lesson_id == lesson_id)
            .scalar()
        )
        return best or 0

quiz_attempt = CRUDQuizAttempt(QuizAttempt)
