from pydantic import BaseModel, ConfigDict
from typing import List, Optional
from datetime import datetime
from app.core.constants import EnrollmentStatusEnum, LessonStatusEnum, ContentTypeEnum


class CourseEnrollmentBase(BaseModel):
    user_id: int
    course_id: int


class CourseEnrollmentCreate(CourseEnrollmentBase):
    status: EnrollmentStatusEnum = EnrollmentStatusEnum.NOT_STARTED
    progress_percentage: int = 0


class CourseEnrollmentUpdate(BaseModel):
    status: Optional[EnrollmentStatusEnum] = None
    progress_percentage: Optional[int] = None
    final_score: Optional[int] = None
    current_lesson_id: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CourseEnrollment(CourseEnrollmentBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: EnrollmentStatusEnum
    progress_percentage: int
    final_score: Optional[int] = None
    current_lesson_id: Optional[int] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class ProgressSnapshot(BaseModel):
    enrollment: CourseEnrollment
    completed_lesson_ids: List[int]


class EnrollmentSnapshot(ProgressSnapshot):
    """Returned by lesson completion; drives the player's auto-advance."""
    lesson_id: int
    lesson_completed: bool
    next_lesson_id: Optional[int] = None
    course_completed: bool


class LessonState(BaseModel):
    lesson_id: int
    module_id: int
    title: str
    content_type: ContentTypeEnum
    locked: bool
    status: LessonStatusEnum
    progress_percentage: int


class CourseLessonStates(BaseModel):
    course_id: int
    sequential_completion: bool
    lessons: List[LessonState]
    next_lesson_id: Optional[int] = None
