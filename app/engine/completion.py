"""Per content-type completion rules.

``evaluate`` turns a raw signal into a verdict; ``merge_status`` applies a
verdict to a stored status without ever moving a completed lesson backwards.
Both are total: they never raise for well-typed input.
"""
import math
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from app.core.constants import ContentTypeEnum, LessonStatusEnum
from app.utils.numbers import round_half_up

VIDEO_COMPLETION_THRESHOLD = 0.95
DEFAULT_PASSING_SCORE = 80

_STATUS_RANK = {
    LessonStatusEnum.NOT_STARTED: 0,
    LessonStatusEnum.IN_PROGRESS: 1,
    LessonStatusEnum.COMPLETED: 2,
}


@dataclass(frozen=True)
class CompletionSignal:
    watched_ratio: Optional[float] = None
    score: Optional[int] = None
    acknowledged: bool = False


@dataclass(frozen=True)
class Verdict:
    status: LessonStatusEnum
    progress_percentage: int

    @property
    def completed(self) -> bool:
        return self.status == LessonStatusEnum.COMPLETED


def _clamp_ratio(ratio: Optional[float]) -> float:
    if ratio is None or math.isnan(ratio):
        return 0.0
    return min(max(ratio, 0.0), 1.0)


def _video(signal: CompletionSignal, threshold: Optional[Union[int, float]]) -> Verdict:
    threshold = VIDEO_COMPLETION_THRESHOLD if threshold is None else threshold
    ratio = _clamp_ratio(signal.watched_ratio)
    status = LessonStatusEnum.COMPLETED if ratio >= threshold else LessonStatusEnum.IN_PROGRESS
    return Verdict(status=status, progress_percentage=round_half_up(ratio * 100))


def _quiz(signal: CompletionSignal, threshold: Optional[Union[int, float]]) -> Verdict:
    threshold = DEFAULT_PASSING_SCORE if threshold is None else threshold
    if signal.score is None:
        return Verdict(status=LessonStatusEnum.IN_PROGRESS, progress_percentage=0)
    score = min(max(int(signal.score), 0), 100)
    status = LessonStatusEnum.COMPLETED if score >= threshold else LessonStatusEnum.IN_PROGRESS
    return Verdict(status=status, progress_percentage=score)


def _acknowledgement(signal: CompletionSignal, threshold: Optional[Union[int, float]]) -> Verdict:
    if signal.acknowledged:
        return Verdict(status=LessonStatusEnum.COMPLETED, progress_percentage=100)
    return Verdict(status=LessonStatusEnum.IN_PROGRESS, progress_percentage=0)


COMPLETION_RULES: Dict[ContentTypeEnum, Callable[[CompletionSignal, Optional[Union[int, float]]], Verdict]] = {
    ContentTypeEnum.VIDEO: _video,
    ContentTypeEnum.QUIZ: _quiz,
    ContentTypeEnum.ASSET: _acknowledgement,
    ContentTypeEnum.TEXT: _acknowledgement,
}

_missing_rules = set(ContentTypeEnum) - set(COMPLETION_RULES)
if _missing_rules:
    raise RuntimeError(f"No completion rule for content types: {sorted(m.value for m in _missing_rules)}")


def evaluate(content_type: ContentTypeEnum, signal: CompletionSignal, threshold: Optional[Union[int, float]] = None) -> Verdict:
    return COMPLETION_RULES[ContentTypeEnum(content_type)](signal, threshold)


def merge_status(current: Optional[LessonStatusEnum], incoming: LessonStatusEnum) -> LessonStatusEnum:
    """Return the status to store; the higher of the two wins."""
    if current is None:
        return incoming
    return incoming if _STATUS_RANK[incoming] > _STATUS_RANK[current] else current


def is_regression(current: Optional[LessonStatusEnum], incoming: LessonStatusEnum) -> bool:
    return current == LessonStatusEnum.COMPLETED and incoming != LessonStatusEnum.COMPLETED
