import uuid
from typing import Dict, List, Optional
from sqlalchemy.orm import Session

from app.core.constants import ContentTypeEnum, QuestionTypeEnum
from app.crud.course_enrollment import course_enrollment as crud_enrollment
from app.engine.ordering import build_lesson_order
from app.models.course import Course
from app.models.course_module import CourseModule
from app.models.lesson import Lesson
from app.models.question import QuizQuestion

OPTIONS = [{"id": "a", "text": "A"}, {"id": "b", "text": "B"}, {"id": "c", "text": "C"}]
CORRECT_OPTION = "b"
WRONG_OPTION = "c"


def quiz_questions(count: int, points: int = 1) -> List[Dict]:
    return [
        {"question_text": f"Question {i + 1}?", "correct_answer": CORRECT_OPTION, "points": points}
        for i in range(count)
    ]


def create_course(
    db: Session,
    *,
    modules: List[List[Dict]],
    sequential: bool = True,
    passing_score: int = 80,
    is_published: bool = True,
    module_order: Optional[List[int]] = None,
) -> Course:
    course = Course(
        title=f"Course {uuid.uuid4().hex[:6]}",
        sequential_completion=sequential,
        passing_score=passing_score,
        is_published=is_published,
    )
    db.add(course)
    db.flush()

    for m_index, lesson_specs in enumerate(modules):
        order_index = module_order[m_index] if module_order else m_index
        module = CourseModule(title=f"Module {order_index}", order_index=order_index, course_id=course.id)
        db.add(module)
        db.flush()
        for l_index, spec in enumerate(lesson_specs):
            spec = dict(spec)
            questions = spec.pop("questions", [])
            lesson = Lesson(
                title=spec.pop("title", f"Lesson {l_index}"),
                content_type=ContentTypeEnum(spec.pop("content_type", "text")),
                order_index=spec.pop("order_index", l_index),
                module_id=module.id,
                **spec,
            )
            db.add(lesson)
            db.flush()
            for q_index, q in enumerate(questions):
                db.add(QuizQuestion(
                    lesson_id=lesson.id,
                    question_text=q["question_text"],
                    question_type=QuestionTypeEnum(q.get("question_type", "multiple_choice")),
                    options=q.get("options", OPTIONS),
                    correct_answer=q["correct_answer"],
                    points=q.get("points", 1),
                    order_index=q_index,
                ))
    db.commit()
    db.expire_all()
    return db.get(Course, course.id)


def lesson_ids(course: Course) -> List[int]:
    return list(build_lesson_order(course).lesson_ids)


def enroll(db: Session, *, user_id: int, course: Course):
    return crud_enrollment.enroll(db, user_id=user_id, course_id=course.id)


def answers_with(lesson: Lesson, correct: int) -> Dict[int, str]:
    """Answer the first ``correct`` questions right and the rest wrong."""
    return {
        q.id: (CORRECT_OPTION if i < correct else WRONG_OPTION)
        for i, q in enumerate(sorted(lesson.questions, key=lambda q: q.order_index))
    }
