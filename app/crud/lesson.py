from sqlalchemy.orm import Session, selectinload
from typing import Any, Optional

from app.crud.base import CRUDBase
from app.models.lesson import Lesson
from app.models.question import QuizQuestion  # noqa: F401

class CRUDLesson(CRUDBase[Lesson, dict, dict]):
    def get(self, db: Session, id: Any) -> Optional[Lesson]:
        return (
            self._query_active(db)
            .filter(self.model.id == id)
            .options(selectinload(self.model.module), selectinload(self.model.questions))
            .first()
        )

lesson = CRUDLesson(Lesson)
