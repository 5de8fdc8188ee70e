from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.schemas.response import APIResponse
from app.utils import deps
from app.schemas.course_enrollment import CourseLessonStates, EnrollmentSnapshot, ProgressSnapshot
from app.schemas.lesson_progress import CompleteLessonRequest, LessonProgress, ProgressPing, ProgressPingResult
from app.services.course_progress import course_progress_service

router = APIRouter()


@router.get("/courses/{course_id}/progress", response_model=APIResponse[ProgressSnapshot])
def get_progress_snapshot(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    principal_id: int = Depends(deps.get_current_principal)
):
    snapshot = course_progress_service.get_progress_snapshot(db, user_id=principal_id, course_id=course_id)
    return APIResponse(message="Course progress retrieved successfully", data=snapshot)


@router.get("/courses/{course_id}/lessons/state", response_model=APIResponse[CourseLessonStates])
def get_lesson_states(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int,
    principal_id: int = Depends(deps.get_current_principal)
):
    states = course_progress_service.get_lesson_states(db, user_id=principal_id, course_id=course_id)
    return APIResponse(message="Lesson states retrieved successfully", data=states)


@router.post("/lessons/{lesson_id}/start", response_model=APIResponse[LessonProgress])
async def start_lesson(
    *,
    db: Session = Depends(deps.get_transactional_db),
    lesson_id: int,
    principal_id: int = Depends(deps.get_current_principal)
):
    progress = await course_progress_service.start_lesson(db, user_id=principal_id, lesson_id=lesson_id)
    return APIResponse(message="Lesson started successfully", data=LessonProgress.model_validate(progress))


@router.post("/lessons/{lesson_id}/progress", response_model=APIResponse[ProgressPingResult])
def update_progress(
    *,
    db: Session = Depends(deps.get_db),
    lesson_id: int,
    ping: ProgressPing,
    principal_id: int = Depends(deps.get_current_principal)
):
    result = course_progress_service.update_progress(db, user_id=principal_id, lesson_id=lesson_id, ping=ping)
    message = "Progress recorded" if result.success else "Progress ping dropped"
    return APIResponse(message=message, data=result)


@router.post("/lessons/{lesson_id}/complete", response_model=APIResponse[EnrollmentSnapshot])
async def complete_lesson(
    *,
    db: Session = Depends(deps.get_transactional_db),
    lesson_id: int,
    request: CompleteLessonRequest,
    principal_id: int = Depends(deps.get_current_principal)
):
    snapshot = await course_progress_service.complete_lesson_from_request(
        db, user_id=principal_id, lesson_id=lesson_id, request=request
    )
    return APIResponse(message="Lesson completion recorded", data=snapshot)
