from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False)
    description = Column(String, nullable=True)
    is_published = Column(Boolean, nullable=False, default=True)
    sequential_completion = Column(Boolean, nullable=False, default=True)
    passing_score = Column(Integer, nullable=False, default=80)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    modules = relationship(
        "CourseModule",
        primaryjoin="and_(Course.id == CourseModule.course_id, CourseModule.deleted_at == None)",
        order_by="CourseModule.order_index",
        back_populates="course",
        cascade="all, delete-orphan",
    )
    enrollments = relationship("CourseEnrollment", back_populates="course")
