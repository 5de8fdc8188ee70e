from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class CourseModule(Base):
    __tablename__ = "course_modules"
    __table_args__ = (
        UniqueConstraint("course_id", "order_index", name="uq_course_modules_course_order"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    order_index = Column(Integer, nullable=False, default=0)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    course = relationship("Course", back_populates="modules")
    lessons = relationship(
        "Lesson",
        primaryjoin="and_(CourseModule.id == Lesson.module_id, Lesson.deleted_at == None)",
        order_by="Lesson.order_index",
        back_populates="module",
        cascade="all, delete-orphan",
    )
