from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from app.core.constants import LessonStatusEnum


class LessonProgressBase(BaseModel):
    enrollment_id: int
    lesson_id: int


class LessonProgressCreate(LessonProgressBase):
    status: LessonStatusEnum = LessonStatusEnum.IN_PROGRESS
    progress_percentage: int = 0
    time_spent_seconds: int = 0
    started_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None


class LessonProgressUpdate(BaseModel):
    status: Optional[LessonStatusEnum] = None
    progress_percentage: Optional[int] = None
    quiz_score: Optional[int] = None
    time_spent_seconds: Optional[int] = None
    completed_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None


class LessonProgress(LessonProgressBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: LessonStatusEnum
    progress_percentage: int
    quiz_score: Optional[int] = None
    time_spent_seconds: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None


class ProgressPing(BaseModel):
    """Periodic progress report from the player."""
    progress_percentage: float = Field(..., ge=0, le=100)
    time_spent: int = Field(0, ge=0, description="Seconds spent since the previous ping.")


class ProgressPingResult(BaseModel):
    success: bool
    status: Optional[LessonStatusEnum] = None


class CompleteLessonRequest(BaseModel):
    final_progress: Optional[float] = Field(
        None, ge=0, le=100, description="Watched percentage for videos; missing counts as nothing watched."
    )
    quiz_score: Optional[int] = Field(None, ge=0, le=100)
    time_spent: int = Field(0, ge=0)
