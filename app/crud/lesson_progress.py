from sqlalchemy.orm import Session
from typing import List, Optional

from app.crud.base import CRUDBase
from app.models.lesson_progress import LessonProgress
from app.core.constants import LessonStatusEnum
from app.schemas.lesson_progress import LessonProgressCreate, LessonProgressUpdate

class CRUDLessonProgress(CRUDBase[LessonProgress, LessonProgressCreate, LessonProgressUpdate]):

    def get_by_enrollment_and_lesson(self, db: Session, enrollment_id: int, lesson_id: int) -> Optional[LessonProgress]:
        return (
            db.query(LessonProgress)
            .filter(LessonProgress.enrollment_id == enrollment_id)
            .filter(LessonProgress.lesson_id == lesson_id)
            .first()
        )

    def get_all_by_enrollment(self, db: Session, enrollment_id: int) -> List[LessonProgress]:
        return (
            db.query(LessonProgress)
            .filter(LessonProgress.enrollment_id == enrollment_id)
            .order_by(LessonProgress.id)
            .all()
        )

    def get_completed_lesson_ids(self, db: Session, enrollment_id: int) -> List[int]:
        rows = (
            db.query(LessonProgress.lesson_id)
            .filter(LessonProgress.enrollment_id == enrollment_id)
            .filter(LessonProgress.status == LessonStatusEnum.COMPLETED)
            .all()
        )
        return [row.lesson_id for row in rows]


lesson_progress = CRUDLessonProgress(LessonProgress)
