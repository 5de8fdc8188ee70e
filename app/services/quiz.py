import logging
from datetime import datetime
from sqlalchemy.orm import Session

from app.core.constants import ContentTypeEnum
from app.core.exceptions import AccessError, ProgressValidationError, QuizLockedError
from app.crud.lesson_progress import lesson_progress as crud_lesson_progress
from app.crud.quiz_attempt import quiz_attempt as crud_quiz_attempt
from app.engine.completion import CompletionSignal
from app.engine.ordering import build_lesson_order
from app.engine.quiz_scoring import can_retake, score, unknown_question_ids
from app.engine.unlock import is_unlocked
from app.models.quiz_attempt import QuizAttempt
from app.schemas.quiz import QuizAttempt as QuizAttemptSchema, QuizAttemptHistory, QuizResult, QuizSubmission
from app.services.course_progress import course_progress_service

logger = logging.getLogger(__name__)


class QuizService:

    def _require_quiz(self, lesson):
        if lesson.content_type != ContentTypeEnum.QUIZ:
            raise ProgressValidationError("This lesson is not a quiz.")

    async def submit_quiz(self, db: Session, *, user_id: int, lesson_id: int, submission: QuizSubmission) -> QuizResult:
        course, lesson = course_progress_service.resolve_lesson(db, lesson_id)
        self._require_quiz(lesson)
        enrollment = course_progress_service.get_enrollment_or_raise(db, user_id, course.id, for_update=True)

        progress = crud_lesson_progress.get_by_enrollment_and_lesson(db, enrollment_id=enrollment.id, lesson_id=lesson.id)
        if (progress and progress.is_completed) or crud_quiz_attempt.has_passed(db, enrollment_id=enrollment.id, lesson_id=lesson.id):
            raise QuizLockedError()

        order = build_lesson_order(course)
        if not is_unlocked(order, course_progress_service.completed_lesson_ids(db, enrollment, order), lesson.id):
            raise AccessError("Complete the previous lessons before this quiz.")

        unknown = unknown_question_ids(lesson.questions, submission.answers)
        if unknown:
            raise ProgressValidationError(f"Answers reference questions outside this quiz: {sorted(unknown)}")

        passing_score = course_progress_service.completion_threshold(course, lesson)
        result = score(lesson.questions, submission.answers, passing_score=passing_score)

        attempt = QuizAttempt(
            enrollment_id=enrollment.id,
            lesson_id=lesson.id,
            attempt_number=crud_quiz_attempt.next_attempt_number(db, enrollment_id=enrollment.id, lesson_id=lesson.id),
            score=result.percentage,
            passed=result.passed,
            answers={str(question_id): answer for question_id, answer in submission.answers.items()},
            submitted_at=datetime.now(),
        )
        db.add(attempt)
        db.flush()
        logger.info(
            f"User {user_id} attempt {attempt.attempt_number} on quiz {lesson.id}: {result.percentage}% "
            f"({'passed' if result.passed else 'failed'})"
        )

        if result.passed:
            await course_progress_service.complete_lesson(
                db,
                user_id=user_id,
                course_id=course.id,
                lesson_id=lesson.id,
                signal=CompletionSignal(score=result.percentage),
            )
        else:
            course_progress_service.record_quiz_progress(db, enrollment, lesson, result.percentage)

        return QuizResult(
            percentage=result.percentage,
            passed=result.passed,
            attempt_number=attempt.attempt_number,
            passing_score=passing_score,
            correct_question_ids=sorted(result.correct_question_ids),
        )

    def get_attempt_history(self, db: Session, *, user_id: int, lesson_id: int) -> QuizAttemptHistory:
        course, lesson = course_progress_service.resolve_lesson(db, lesson_id)
        self._require_quiz(lesson)
        enrollment = course_progress_service.get_enrollment_or_raise(db, user_id, course.id)
        attempts = crud_quiz_attempt.get_by_enrollment_and_lesson(db, enrollment_id=enrollment.id, lesson_id=lesson.id)
        return QuizAttemptHistory(
            attempts=[QuizAttemptSchema.model_validate(a) for a in attempts],
            can_retake=can_retake(attempts),
            best_score=max((a.score for a in attempts), default=0),
        )


quiz_service = QuizService()
