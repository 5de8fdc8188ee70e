from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.utils import deps
from app.schemas.quiz import QuizAttemptHistory, QuizResult, QuizSubmission
from app.services.quiz import quiz_service

router = APIRouter()


@router.post("/lessons/{lesson_id}/quiz/submit", response_model=APIResponse[QuizResult])
async def submit_quiz(
    *,
    db: Session = Depends(deps.get_transactional_db),
    lesson_id: int,
    submission: QuizSubmission,
    principal_id: int = Depends(deps.get_current_principal)
):
    result = await quiz_service.submit_quiz(db, user_id=principal_id, lesson_id=lesson_id, submission=submission)
    message = "Quiz passed" if result.passed else "Quiz not passed"
    return APIResponse(message=message, data=result)


@router.get("/lessons/{lesson_id}/quiz/attempts", response_model=APIResponse[QuizAttemptHistory])
def get_quiz_attempts(
    *,
    db: Session = Depends(deps.get_db),
    lesson_id: int,
    principal_id: int = Depends(deps.get_current_principal)
):
    history = quiz_service.get_attempt_history(db, user_id=principal_id, lesson_id=lesson_id)
    return APIResponse(message="Quiz attempts retrieved successfully", data=history)
