import logging
from datetime import datetime
from typing import Optional, Set, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import ContentTypeEnum, EnrollmentStatusEnum, LessonStatusEnum
from app.core.exceptions import AccessError, CompletionConflict, NotFoundError, TransientIOError
from app.crud.course import course as crud_course
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.crud.lesson import lesson as crud_lesson
from app.crud.lesson_progress import lesson_progress as crud_lesson_progress
from app.crud.quiz_attempt import quiz_attempt as crud_quiz_attempt
from app.engine.completion import CompletionSignal, Verdict, evaluate, is_regression, merge_status
from app.engine.ordering import LessonOrder, build_lesson_order, flatten_lessons
from app.engine.unlock import is_course_fully_complete, is_unlocked, lock_states, next_unlocked_incomplete_lesson
from app.models.course import Course
from app.models.course_enrollment import CourseEnrollment
from app.models.lesson import Lesson
from app.models.lesson_progress import LessonProgress
from app.schemas.course_enrollment import (
    CourseEnrollment as CourseEnrollmentSchema,
    CourseLessonStates,
    EnrollmentSnapshot,
    LessonState,
    ProgressSnapshot,
)
from app.schemas.lesson_progress import CompleteLessonRequest, ProgressPing, ProgressPingResult
from app.utils.numbers import percentage, round_half_up

logger = logging.getLogger(__name__)


class CourseProgressService:
    """Owns every write to LessonProgress and to the enrollment aggregate."""

    def _get_course_or_raise(self, db: Session, course_id: int) -> Course:
        course = crud_course.get_with_outline(db, id=course_id)
        if not course:
            raise NotFoundError("Course not found.")
        if not course.is_published:
            raise AccessError("This course is not available.")
        return course

    def _get_lesson_or_raise(self, db: Session, lesson_id: int) -> Lesson:
        lesson = crud_lesson.get(db, id=lesson_id)
        if not lesson or not lesson.module:
            raise NotFoundError("Lesson not found.")
        return lesson

    def get_enrollment_or_raise(self, db: Session, user_id: int, course_id: int, for_update: bool = False) -> CourseEnrollment:
        enrollment = crud_enrollment.get_by_user_and_course(
            db, user_id=user_id, course_id=course_id, for_update=for_update
        )
        if not enrollment:
            raise AccessError("You are not enrolled in this course.")
        return enrollment

    def resolve_lesson(self, db: Session, lesson_id: int, course_id: Optional[int] = None) -> Tuple[Course, Lesson]:
        lesson = self._get_lesson_or_raise(db, lesson_id)
        if course_id is not None and lesson.module.course_id != course_id:
            raise NotFoundError("Lesson not found in this course.")
        course = self._get_course_or_raise(db, lesson.module.course_id)
        return course, lesson

    def completed_lesson_ids(self, db: Session, enrollment: CourseEnrollment, order: LessonOrder) -> Set[int]:
        completed = set(crud_lesson_progress.get_completed_lesson_ids(db, enrollment_id=enrollment.id))
        # lessons removed from the course no longer count
        return {lesson_id for lesson_id in completed if lesson_id in order}

    def completion_threshold(self, course: Course, lesson: Lesson):
        if lesson.content_type == ContentTypeEnum.VIDEO:
            return settings.VIDEO_COMPLETION_THRESHOLD
        if lesson.content_type == ContentTypeEnum.QUIZ:
            course_default = course.passing_score if course.passing_score is not None else settings.DEFAULT_PASSING_SCORE
            return lesson.effective_passing_score(course_default)
        return None

    def _mark_enrollment_started(self, enrollment: CourseEnrollment, now: datetime):
        if enrollment.status == EnrollmentStatusEnum.NOT_STARTED:
            enrollment.status = EnrollmentStatusEnum.IN_PROGRESS
            enrollment.started_at = enrollment.started_at or now

    def _get_or_create_progress(self, db: Session, enrollment: CourseEnrollment, lesson: Lesson, now: datetime) -> LessonProgress:
        progress = crud_lesson_progress.get_by_enrollment_and_lesson(
            db, enrollment_id=enrollment.id, lesson_id=lesson.id
        )
        if progress:
            return progress
        progress = LessonProgress(
            enrollment_id=enrollment.id,
            lesson_id=lesson.id,
            status=LessonStatusEnum.NOT_STARTED,
            progress_percentage=0,
            time_spent_seconds=0,
            started_at=now,
        )
        db.add(progress)
        db.flush()
        return progress

    def _apply_status(self, progress: LessonProgress, verdict: Verdict, now: datetime) -> bool:
        """Move the stored status forward; raise CompletionConflict on a regression."""
        if is_regression(progress.status, verdict.status):
            raise CompletionConflict(progress.lesson_id, verdict.status)

        if progress.is_completed:
            return False
        progress.status = merge_status(progress.status, verdict.status)
        progress.progress_percentage = verdict.progress_percentage
        if progress.is_completed:
            progress.completed_at = now
            return True
        return False

    def recompute_aggregate(self, db: Session, course: Course, enrollment: CourseEnrollment) -> Tuple[LessonOrder, Set[int]]:
        """Derive progress_percentage and completed_at from the current completed set.

        Safe to re-run at any time: the result depends only on stored lesson facts.
        """
        order = build_lesson_order(course)
        completed = self.completed_lesson_ids(db, enrollment, order)
        now = datetime.now()

        enrollment.progress_percentage = percentage(len(completed), len(order))
        if completed:
            self._mark_enrollment_started(enrollment, now)
        if len(order) and is_course_fully_complete(order, completed) and enrollment.completed_at is None:
            enrollment.completed_at = now
            enrollment.status = EnrollmentStatusEnum.COMPLETED
            logger.info(f"Enrollment {enrollment.id} completed course {course.id}")

        crud_enrollment.update(db, db_obj=enrollment, obj_in={}, commit=False)
        return order, completed

    def _snapshot(self, enrollment: CourseEnrollment, order: LessonOrder, completed: Set[int]) -> ProgressSnapshot:
        return ProgressSnapshot(
            enrollment=CourseEnrollmentSchema.model_validate(enrollment),
            completed_lesson_ids=[lesson_id for lesson_id in order if lesson_id in completed],
        )

    async def complete_lesson(
        self,
        db: Session,
        *,
        user_id: int,
        course_id: int,
        lesson_id: int,
        signal: CompletionSignal,
        time_spent: int = 0,
    ) -> EnrollmentSnapshot:
        course, lesson = self.resolve_lesson(db, lesson_id, course_id=course_id)
        enrollment = self.get_enrollment_or_raise(db, user_id, course.id, for_update=True)
        now = datetime.now()

        verdict = evaluate(lesson.content_type, signal, self.completion_threshold(course, lesson))
        progress = self._get_or_create_progress(db, enrollment, lesson, now)

        if verdict.completed and not progress.is_completed:
            order = build_lesson_order(course)
            if not is_unlocked(order, self.completed_lesson_ids(db, enrollment, order), lesson.id):
                raise AccessError("Complete the previous lessons before this one.")

        newly_completed = False
        try:
            newly_completed = self._apply_status(progress, verdict, now)
        except CompletionConflict as conflict:
            logger.debug(str(conflict))

        progress.time_spent_seconds = (progress.time_spent_seconds or 0) + time_spent
        progress.last_accessed_at = now
        if signal.score is not None:
            progress.quiz_score = max(progress.quiz_score or 0, signal.score)
        crud_lesson_progress.update(db, db_obj=progress, obj_in={}, commit=False)

        if newly_completed:
            logger.info(f"User {user_id} completed lesson {lesson.id} in course {course.id}")

        if lesson.is_final_quiz and verdict.completed and signal.score is not None:
            enrollment.final_score = signal.score
            logger.info(f"Final score {signal.score} recorded for enrollment {enrollment.id}")

        order, completed = self.recompute_aggregate(db, course, enrollment)
        snapshot = self._snapshot(enrollment, order, completed)
        return EnrollmentSnapshot(
            **snapshot.model_dump(),
            lesson_id=lesson.id,
            lesson_completed=lesson.id in completed,
            next_lesson_id=next_unlocked_incomplete_lesson(order, completed),
            course_completed=enrollment.completed_at is not None,
        )

    def signal_for_request(self, db: Session, enrollment: CourseEnrollment, lesson: Lesson, request: CompleteLessonRequest) -> CompletionSignal:
        if lesson.content_type == ContentTypeEnum.VIDEO:
            if request.final_progress is None:
                logger.warning(f"Completion for video lesson {lesson.id} sent without final_progress")
                return CompletionSignal(watched_ratio=0.0)
            return CompletionSignal(watched_ratio=request.final_progress / 100)
        if lesson.content_type == ContentTypeEnum.QUIZ:
            # only graded attempts count, never a score reported by the client
            best = crud_quiz_attempt.best_score(db, enrollment_id=enrollment.id, lesson_id=lesson.id)
            if request.quiz_score is not None and request.quiz_score != best:
                logger.warning(
                    f"Ignoring reported quiz score {request.quiz_score} for lesson {lesson.id}; best graded attempt is {best}"
                )
            has_attempts = bool(crud_quiz_attempt.get_by_enrollment_and_lesson(db, enrollment_id=enrollment.id, lesson_id=lesson.id))
            return CompletionSignal(score=best if has_attempts else None)
        return CompletionSignal(acknowledged=True)

    async def complete_lesson_from_request(self, db: Session, *, user_id: int, lesson_id: int, request: CompleteLessonRequest) -> EnrollmentSnapshot:
        course, lesson = self.resolve_lesson(db, lesson_id)
        enrollment = self.get_enrollment_or_raise(db, user_id, course.id)
        signal = self.signal_for_request(db, enrollment, lesson, request)
        return await self.complete_lesson(
            db,
            user_id=user_id,
            course_id=course.id,
            lesson_id=lesson.id,
            signal=signal,
            time_spent=request.time_spent,
        )

    def _record_ping(self, db: Session, user_id: int, lesson_id: int, ping: ProgressPing) -> LessonProgress:
        """Lookups and the write share one guard; access and not-found errors pass through."""
        now = datetime.now()
        try:
            course, lesson = self.resolve_lesson(db, lesson_id)
            enrollment = self.get_enrollment_or_raise(db, user_id, course.id, for_update=True)
            progress = self._get_or_create_progress(db, enrollment, lesson, now)
            if not progress.is_completed:
                progress.status = merge_status(progress.status, LessonStatusEnum.IN_PROGRESS)
                progress.progress_percentage = round_half_up(ping.progress_percentage)
            progress.time_spent_seconds = (progress.time_spent_seconds or 0) + ping.time_spent
            progress.last_accessed_at = now
            crud_lesson_progress.update(db, db_obj=progress, obj_in={}, commit=True)
        except SQLAlchemyError as exc:
            db.rollback()
            raise TransientIOError(str(exc)) from exc
        return progress

    def update_progress(self, db: Session, *, user_id: int, lesson_id: int, ping: ProgressPing) -> ProgressPingResult:
        """Lightweight ping: touches LessonProgress only, never the enrollment aggregate."""
        try:
            progress = self._record_ping(db, user_id, lesson_id, ping)
        except TransientIOError as exc:
            logger.warning(f"Dropped progress ping for user {user_id} lesson {lesson_id}: {exc}")
            return ProgressPingResult(success=False)
        return ProgressPingResult(success=True, status=progress.status)

    def record_quiz_progress(self, db: Session, enrollment: CourseEnrollment, lesson: Lesson, score: int) -> LessonProgress:
        """Bookkeeping for a graded attempt that did not complete the lesson."""
        now = datetime.now()
        progress = self._get_or_create_progress(db, enrollment, lesson, now)
        if not progress.is_completed:
            progress.status = merge_status(progress.status, LessonStatusEnum.IN_PROGRESS)
            progress.progress_percentage = max(progress.progress_percentage or 0, score)
        progress.quiz_score = max(progress.quiz_score or 0, score)
        progress.last_accessed_at = now
        self._mark_enrollment_started(enrollment, now)
        crud_lesson_progress.update(db, db_obj=progress, obj_in={}, commit=False)
        return progress

    async def start_lesson(self, db: Session, *, user_id: int, lesson_id: int) -> LessonProgress:
        course, lesson = self.resolve_lesson(db, lesson_id)
        enrollment = self.get_enrollment_or_raise(db, user_id, course.id, for_update=True)
        order = build_lesson_order(course)
        if not is_unlocked(order, self.completed_lesson_ids(db, enrollment, order), lesson.id):
            raise AccessError("Complete the previous lessons before this one.")

        now = datetime.now()
        progress = self._get_or_create_progress(db, enrollment, lesson, now)
        progress.status = merge_status(progress.status, LessonStatusEnum.IN_PROGRESS)
        progress.last_accessed_at = now
        crud_lesson_progress.update(db, db_obj=progress, obj_in={}, commit=False)

        enrollment.current_lesson_id = lesson.id
        self._mark_enrollment_started(enrollment, now)
        crud_enrollment.update(db, db_obj=enrollment, obj_in={}, commit=False)
        return progress

    def get_progress_snapshot(self, db: Session, *, user_id: int, course_id: int) -> ProgressSnapshot:
        course = self._get_course_or_raise(db, course_id)
        enrollment = self.get_enrollment_or_raise(db, user_id, course.id)
        order = build_lesson_order(course)
        return self._snapshot(enrollment, order, self.completed_lesson_ids(db, enrollment, order))

    def get_lesson_states(self, db: Session, *, user_id: int, course_id: int) -> CourseLessonStates:
        course = self._get_course_or_raise(db, course_id)
        enrollment = self.get_enrollment_or_raise(db, user_id, course.id)
        order = build_lesson_order(course)
        completed = self.completed_lesson_ids(db, enrollment, order)
        locked = lock_states(order, completed)
        records = {
            lp.lesson_id: lp for lp in crud_lesson_progress.get_all_by_enrollment(db, enrollment_id=enrollment.id)
        }

        states = []
        for lesson in flatten_lessons(course.modules):
            record = records.get(lesson.id)
            states.append(LessonState(
                lesson_id=lesson.id,
                module_id=lesson.module_id,
                title=lesson.title,
                content_type=lesson.content_type,
                locked=locked.get(lesson.id, False),
                status=record.status if record else LessonStatusEnum.NOT_STARTED,
                progress_percentage=record.progress_percentage if record else 0,
            ))

        return CourseLessonStates(
            course_id=course.id,
            sequential_completion=course.sequential_completion,
            lessons=states,
            next_lesson_id=next_unlocked_incomplete_lesson(order, completed),
        )

    def reconcile_enrollment(self, db: Session, enrollment: CourseEnrollment) -> bool:
        """Recompute one aggregate; return True when stored values were stale."""
        course = crud_course.get_with_outline(db, id=enrollment.course_id)
        if not course:
            return False
        before = (enrollment.progress_percentage, enrollment.completed_at)
        self.recompute_aggregate(db, course, enrollment)
        return before != (enrollment.progress_percentage, enrollment.completed_at)

    def reconcile_all_enrollments(self, db: Session) -> int:
        repaired = 0
        for enrollment_id in crud_enrollment.get_all_ids(db):
            enrollment = crud_enrollment.get(db, id=enrollment_id)
            if enrollment and self.reconcile_enrollment(db, enrollment):
                repaired += 1
        db.commit()
        if repaired:
            logger.info(f"Reconciliation repaired {repaired} enrollment aggregates")
        return repaired


course_progress_service = CourseProgressService()
