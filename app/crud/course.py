from sqlalchemy.orm import Session, selectinload
from typing import Optional

from app.crud.base import CRUDBase
from app.models.course import Course
from app.models.course_module import CourseModule
from app.models.lesson import Lesson


class CRUDCourse(CRUDBase[Course, dict, dict]):

    def _query_with_outline(self, db: Session):
        return db.query(Course).options(
            selectinload(Course.modules).selectinload(CourseModule.lessons).selectinload(Lesson.questions)
        )

    def get_with_outline(self, db: Session, id: int) -> Optional[Course]:
        """Load the full Course -> Module -> Lesson -> Question tree in one go."""
        return (
            self._query_with_outline(db)
            .filter(Course.id == id)
            .filter(Course.deleted_at.is_(None))
            .first()
        )

course = CRUDCourse(Course)
