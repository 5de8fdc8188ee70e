from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base
from app.core.constants import ContentTypeEnum

class Lesson(Base):
    __tablename__ = "lessons"
    __table_args__ = (
        UniqueConstraint("module_id", "order_index", name="uq_lessons_module_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    content_type = Column(Enum(ContentTypeEnum), nullable=False, default=ContentTypeEnum.TEXT)
    order_index = Column(Integer, nullable=False, default=0)
    duration = Column(Integer, nullable=True)  # seconds, video only
    is_final_quiz = Column(Boolean, nullable=False, default=False)
    passing_score = Column(Integer, nullable=True)  # overrides Course.passing_score
    module_id = Column(Integer, ForeignKey("course_modules.id"), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    module = relationship("CourseModule", back_populates="lessons")
    questions = relationship(
        "QuizQuestion",
        order_by="QuizQuestion.order_index",
        back_populates="lesson",
        cascade="all, delete-orphan",
    )
    progress_records = relationship("LessonProgress", back_populates="lesson")

    def effective_passing_score(self, course_default: int) -> int:
        return self.passing_score if self.passing_score is not None else course_default
