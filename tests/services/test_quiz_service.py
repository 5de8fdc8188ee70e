import pytest
from sqlalchemy.orm import Session

from app.core.constants import LessonStatusEnum
from app.core.exceptions import AccessError, ProgressValidationError, QuizLockedError
from app.crud.lesson_progress import lesson_progress as crud_lesson_progress
from app.engine.completion import CompletionSignal
from app.schemas.lesson_progress import CompleteLessonRequest
from app.schemas.quiz import QuizSubmission
from app.services.course_progress import course_progress_service
from app.services.quiz import quiz_service
from tests.helpers.factories import answers_with, create_course, enroll, lesson_ids, quiz_questions


async def _finish_video(db: Session, course, user_id: int):
    video = course.modules[0].lessons[0]
    return await course_progress_service.complete_lesson(
        db, user_id=user_id, course_id=course.id, lesson_id=video.id,
        signal=CompletionSignal(watched_ratio=1.0),
    )


def _quiz(course):
    return course.modules[0].lessons[1]


@pytest.mark.asyncio
async def test_failed_attempt_keeps_lesson_in_progress(db_session: Session, scenario_course, learner_id):
    await _finish_video(db_session, scenario_course, learner_id)
    quiz = _quiz(scenario_course)

    result = await quiz_service.submit_quiz(
        db_session, user_id=learner_id, lesson_id=quiz.id,
        submission=QuizSubmission(answers=answers_with(quiz, 12)),
    )
    assert result.percentage == 60
    assert not result.passed
    assert result.attempt_number == 1
    assert result.passing_score == 80
    assert len(result.correct_question_ids) == 12

    snapshot = course_progress_service.get_progress_snapshot(db_session, user_id=learner_id, course_id=scenario_course.id)
    progress = crud_lesson_progress.get_by_enrollment_and_lesson(db_session, enrollment_id=snapshot.enrollment.id, lesson_id=quiz.id)
    assert progress.status == LessonStatusEnum.IN_PROGRESS
    assert progress.quiz_score == 60
    assert snapshot.enrollment.progress_percentage == 33

    history = quiz_service.get_attempt_history(db_session, user_id=learner_id, lesson_id=quiz.id)
    assert history.can_retake
    assert history.best_score == 60


@pytest.mark.asyncio
async def test_retake_then_pass_then_locked(db_session: Session, scenario_course, learner_id):
    await _finish_video(db_session, scenario_course, learner_id)
    quiz = _quiz(scenario_course)

    await quiz_service.submit_quiz(
        db_session, user_id=learner_id, lesson_id=quiz.id,
        submission=QuizSubmission(answers=answers_with(quiz, 10)),
    )
    passed = await quiz_service.submit_quiz(
        db_session, user_id=learner_id, lesson_id=quiz.id,
        submission=QuizSubmission(answers=answers_with(quiz, 17)),
    )
    assert passed.passed
    assert passed.percentage == 85
    assert passed.attempt_number == 2

    snapshot = course_progress_service.get_progress_snapshot(db_session, user_id=learner_id, course_id=scenario_course.id)
    assert snapshot.enrollment.progress_percentage == 67
    assert quiz.id in snapshot.completed_lesson_ids

    with pytest.raises(QuizLockedError):
        await quiz_service.submit_quiz(
            db_session, user_id=learner_id, lesson_id=quiz.id,
            submission=QuizSubmission(answers=answers_with(quiz, 20)),
        )

    history = quiz_service.get_attempt_history(db_session, user_id=learner_id, lesson_id=quiz.id)
    assert [a.attempt_number for a in history.attempts] == [2, 1]
    assert not history.can_retake
    assert history.best_score == 85


@pytest.mark.asyncio
async def test_quiz_behind_unfinished_lesson_is_locked(db_session: Session, scenario_course, learner_id):
    quiz = _quiz(scenario_course)
    with pytest.raises(AccessError):
        await quiz_service.submit_quiz(
            db_session, user_id=learner_id, lesson_id=quiz.id,
            submission=QuizSubmission(answers=answers_with(quiz, 20)),
        )


@pytest.mark.asyncio
async def test_unknown_question_ids_are_rejected(db_session: Session, scenario_course, learner_id):
    await _finish_video(db_session, scenario_course, learner_id)
    quiz = _quiz(scenario_course)
    answers = answers_with(quiz, 20)
    answers[999999] = "b"
    with pytest.raises(ProgressValidationError):
        await quiz_service.submit_quiz(
            db_session, user_id=learner_id, lesson_id=quiz.id, submission=QuizSubmission(answers=answers),
        )


@pytest.mark.asyncio
async def test_submitting_to_a_non_quiz_lesson_is_rejected(db_session: Session, scenario_course, learner_id):
    video = scenario_course.modules[0].lessons[0]
    with pytest.raises(ProgressValidationError):
        await quiz_service.submit_quiz(
            db_session, user_id=learner_id, lesson_id=video.id, submission=QuizSubmission(answers={}),
        )


@pytest.mark.asyncio
async def test_quiz_without_questions_passes(db_session: Session, learner_id):
    course = create_course(db_session, modules=[[{"content_type": "quiz"}]])
    enroll(db_session, user_id=learner_id, course=course)
    result = await quiz_service.submit_quiz(
        db_session, user_id=learner_id, lesson_id=lesson_ids(course)[0], submission=QuizSubmission(answers={}),
    )
    assert result.passed
    assert result.percentage == 100


@pytest.mark.asyncio
async def test_lesson_passing_score_overrides_course_default(db_session: Session, learner_id):
    course = create_course(
        db_session,
        modules=[[{"content_type": "quiz", "passing_score": 50, "questions": quiz_questions(10)}]],
    )
    enroll(db_session, user_id=learner_id, course=course)
    quiz = course.modules[0].lessons[0]
    result = await quiz_service.submit_quiz(
        db_session, user_id=learner_id, lesson_id=quiz.id,
        submission=QuizSubmission(answers=answers_with(quiz, 5)),
    )
    assert result.passing_score == 50
    assert result.passed


@pytest.mark.asyncio
async def test_final_quiz_records_final_score_only_when_passed(db_session: Session, learner_id):
    course = create_course(
        db_session,
        modules=[[{"content_type": "quiz", "is_final_quiz": True, "questions": quiz_questions(10)}]],
    )
    enroll(db_session, user_id=learner_id, course=course)
    quiz = course.modules[0].lessons[0]

    await quiz_service.submit_quiz(
        db_session, user_id=learner_id, lesson_id=quiz.id,
        submission=QuizSubmission(answers=answers_with(quiz, 7)),
    )
    snapshot = course_progress_service.get_progress_snapshot(db_session, user_id=learner_id, course_id=course.id)
    assert snapshot.enrollment.final_score is None

    await quiz_service.submit_quiz(
        db_session, user_id=learner_id, lesson_id=quiz.id,
        submission=QuizSubmission(answers=answers_with(quiz, 9)),
    )
    snapshot = course_progress_service.get_progress_snapshot(db_session, user_id=learner_id, course_id=course.id)
    assert snapshot.enrollment.final_score == 90
    assert snapshot.enrollment.completed_at is not None


@pytest.mark.asyncio
async def test_complete_request_ignores_reported_quiz_score(db_session: Session, scenario_course, learner_id):
    await _finish_video(db_session, scenario_course, learner_id)
    quiz = _quiz(scenario_course)
    await quiz_service.submit_quiz(
        db_session, user_id=learner_id, lesson_id=quiz.id,
        submission=QuizSubmission(answers=answers_with(quiz, 12)),
    )
    snapshot = await course_progress_service.complete_lesson_from_request(
        db_session, user_id=learner_id, lesson_id=quiz.id, request=CompleteLessonRequest(quiz_score=100),
    )
    assert not snapshot.lesson_completed
    assert snapshot.enrollment.progress_percentage == 33
