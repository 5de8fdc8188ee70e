from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List
from datetime import datetime


class QuizSubmission(BaseModel):
    answers: Dict[int, str] = Field(..., description="Question id -> submitted answer.")


class QuizResult(BaseModel):
    percentage: int
    passed: bool
    attempt_number: int
    passing_score: int
    correct_question_ids: List[int]


class QuizAttempt(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    lesson_id: int
    attempt_number: int
    score: int
    passed: bool
    answers: Dict[str, Any]
    submitted_at: datetime


class QuizAttemptHistory(BaseModel):
    attempts: List[QuizAttempt]
    can_retake: bool
    best_score: int = 0
