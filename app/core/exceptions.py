"""Error taxonomy for the progression service.

User-visible failures are ``HTTPException`` subclasses so the global handler in
``app.middleware.exceptions`` renders them like any other HTTP error.
``TransientIOError`` and ``CompletionConflict`` never reach a client: the
progress service absorbs them.
"""
from fastapi import HTTPException, status


class AccessError(HTTPException):
    """Principal is not enrolled, the course is unpublished, or the lesson is locked."""

    def __init__(self, detail: str = "You do not have access to this course."):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    def __init__(self, detail: str = "Resource not found."):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ProgressValidationError(HTTPException):
    """Malformed answers or out-of-range progress values."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)


class QuizLockedError(HTTPException):
    def __init__(self, detail: str = "This quiz has already been passed and cannot be retaken."):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class TransientIOError(Exception):
    """Storage failure on the fire-and-forget ping path."""


class CompletionConflict(Exception):
    """A write tried to move a completed lesson back to an earlier status."""

    def __init__(self, lesson_id: int, attempted_status):
        self.lesson_id = lesson_id
        self.attempted_status = attempted_status
        super().__init__(f"Lesson {lesson_id} is completed; ignoring transition to {attempted_status}")
