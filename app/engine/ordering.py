"""Course-wide lesson order.

A course is authored as modules holding lessons; everything downstream only
needs the flattened sequence ``(module.order_index, lesson.order_index)``.
The order is built once per structural load and then shared by the unlock
resolver, the aggregator and the lesson state listing.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple


@dataclass(frozen=True)
class LessonOrder:
    course_id: Optional[int]
    sequential: bool
    lesson_ids: Tuple[int, ...]
    _positions: Dict[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_positions", {lesson_id: i for i, lesson_id in enumerate(self.lesson_ids)})

    def __len__(self) -> int:
        return len(self.lesson_ids)

    def __contains__(self, lesson_id) -> bool:
        return lesson_id in self._positions

    def __iter__(self):
        return iter(self.lesson_ids)

    def position(self, lesson_id: int) -> Optional[int]:
        return self._positions.get(lesson_id)


def _sort_key(item) -> Tuple[int, int]:
    # id breaks ties left behind by bad data so the order stays total
    return (item.order_index if item.order_index is not None else 0, item.id or 0)


def flatten_lessons(modules: Iterable[Any]) -> list:
    lessons = []
    for module in sorted(modules, key=_sort_key):
        lessons.extend(sorted(module.lessons, key=_sort_key))
    return lessons


def build_lesson_order(course: Any) -> LessonOrder:
    """Flatten any Course-shaped object (ORM row or schema) into a LessonOrder."""
    lessons = flatten_lessons(course.modules)
    return LessonOrder(
        course_id=getattr(course, "id", None),
        sequential=bool(course.sequential_completion),
        lesson_ids=tuple(lesson.id for lesson in lessons),
    )
