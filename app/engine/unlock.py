"""Lesson unlock resolution.

Pure functions over a ``LessonOrder`` and the principal's completed set; cheap
enough to run on every render.
"""
from typing import AbstractSet, Dict, Optional

from app.engine.ordering import LessonOrder


def is_unlocked(order: LessonOrder, completed_lesson_ids: AbstractSet[int], target_lesson_id: int) -> bool:
    if not order.sequential:
        return True
    # Unknown lessons are unlocked so a data error never dead-locks the player.
    if target_lesson_id not in order:
        return True
    for lesson_id in order.lesson_ids:
        if lesson_id == target_lesson_id:
            return True
        if lesson_id not in completed_lesson_ids:
            return False
    return True


def lock_states(order: LessonOrder, completed_lesson_ids: AbstractSet[int]) -> Dict[int, bool]:
    """Map every lesson id to its locked flag in a single walk."""
    states = {}
    blocked = False
    for lesson_id in order.lesson_ids:
        states[lesson_id] = order.sequential and blocked
        if lesson_id not in completed_lesson_ids:
            blocked = True
    return states


def next_unlocked_incomplete_lesson(order: LessonOrder, completed_lesson_ids: AbstractSet[int]) -> Optional[int]:
    for lesson_id, locked in lock_states(order, completed_lesson_ids).items():
        if not locked and lesson_id not in completed_lesson_ids:
            return lesson_id
    return None


def is_course_fully_complete(order: LessonOrder, completed_lesson_ids: AbstractSet[int]) -> bool:
    return all(lesson_id in completed_lesson_ids for lesson_id in order.lesson_ids)
