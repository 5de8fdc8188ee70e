from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.course_enrollment import CourseEnrollment
from app.models.lesson_progress import LessonProgress  # noqa: F401
from app.models.quiz_attempt import QuizAttempt  # noqa: F401
from app.schemas.course_enrollment import CourseEnrollmentCreate, CourseEnrollmentUpdate

class CRUDCourseEnrollment(CRUDBase[CourseEnrollment, CourseEnrollmentCreate, CourseEnrollmentUpdate]):

    def get_by_user_and_course(self, db: Session, user_id: int, course_id: int, for_update: bool = False) -> Optional[CourseEnrollment]:
        query = (
            db.query(CourseEnrollment)
            .filter(CourseEnrollment.user_id == user_id)
            .filter(CourseEnrollment.course_id == course_id)
        )
        if for_update:
            query = query.with_for_update()
        return query.first()

    def get_all_ids(self, db: Session) -> List[int]:
        return [row.id for row in db.query(CourseEnrollment.id).order_by(CourseEnrollment.id).all()]

    def enroll(self, db: Session, *, user_id: int, course_id: int, commit: bool = True) -> CourseEnrollment:
        """Create a zeroed enrollment, or return the existing one."""
        existing = self.get_by_user_and_course(db, user_id=user_id, course_id=course_id)
        if existing:
            return existing
        return self.create(db, obj_in=CourseEnrollmentCreate(user_id=user_id, course_id=course_id), commit=commit)

course_enrollment = CRUDCourseEnrollment(CourseEnrollment)
