"""Anti-seek video watch tracking.

The player feeds media events into ``reduce``; the returned ``GuardResult``
carries the next session, the position the player must actually show, and
whether this event is the one that first crossed the completion threshold.

Only ``max_watched_time`` counts towards completion. A raw player position can
be moved anywhere by seeking, so forward seeks past the furthest watched point
(plus a small jitter allowance) are clamped back to it. Backward seeks are
always allowed.
"""
from dataclasses import dataclass, replace
from typing import Optional, Union

from app.core.constants import PlaybackStateEnum
from app.utils.numbers import round_half_up

DEFAULT_SEEK_ALLOWANCE = 1.0
DEFAULT_COMPLETION_THRESHOLD = 0.95


@dataclass(frozen=True)
class WatchSession:
    duration: Optional[float] = None
    max_watched_time: float = 0.0
    position: float = 0.0
    state: PlaybackStateEnum = PlaybackStateEnum.IDLE
    completion_fired: bool = False

    @property
    def has_duration(self) -> bool:
        return self.duration is not None and self.duration > 0


@dataclass(frozen=True)
class MetadataLoaded:
    duration: float


@dataclass(frozen=True)
class Play:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Tick:
    position: float


@dataclass(frozen=True)
class SeekRequested:
    position: float


@dataclass(frozen=True)
class Ended:
    pass


PlaybackEvent = Union[MetadataLoaded, Play, Pause, Tick, SeekRequested, Ended]


@dataclass(frozen=True)
class GuardResult:
    session: WatchSession
    clamped: bool = False
    completed_now: bool = False

    @property
    def effective_position(self) -> float:
        return self.session.position


def watched_ratio(session: WatchSession) -> float:
    if not session.has_duration:
        return 0.0
    return min(max(session.max_watched_time / session.duration, 0.0), 1.0)


def watched_percentage(session: WatchSession) -> int:
    return round_half_up(watched_ratio(session) * 100)


def _advance(session: WatchSession, position: float) -> WatchSession:
    position = max(position, 0.0)
    return replace(session, position=position, max_watched_time=max(session.max_watched_time, position))


def _seek(session: WatchSession, requested: float, allowance: float):
    requested = max(requested, 0.0)
    if session.has_duration and requested > session.max_watched_time + allowance:
        return replace(session, position=session.max_watched_time, state=PlaybackStateEnum.SEEKING), True
    return replace(session, position=requested, state=PlaybackStateEnum.SEEKING), False


def reduce(
    session: WatchSession,
    event: PlaybackEvent,
    threshold: float = DEFAULT_COMPLETION_THRESHOLD,
    allowance: float = DEFAULT_SEEK_ALLOWANCE,
) -> GuardResult:
    clamped = False

    if isinstance(event, MetadataLoaded):
        duration = event.duration if event.duration and event.duration > 0 else None
        session = replace(session, duration=duration)
    elif isinstance(event, Play):
        session = replace(session, state=PlaybackStateEnum.PLAYING)
    elif isinstance(event, Pause):
        session = replace(session, state=PlaybackStateEnum.PAUSED)
    elif isinstance(event, Tick):
        session = _advance(session, event.position)
        if session.state in (PlaybackStateEnum.IDLE, PlaybackStateEnum.SEEKING):
            session = replace(session, state=PlaybackStateEnum.PLAYING)
    elif isinstance(event, SeekRequested):
        session, clamped = _seek(session, event.position, allowance)
    elif isinstance(event, Ended):
        session = replace(session, state=PlaybackStateEnum.PAUSED)
    else:
        raise TypeError(f"Unknown playback event: {event!r}")

    completed_now = False
    if not session.completion_fired and session.has_duration and watched_ratio(session) >= threshold:
        session = replace(session, completion_fired=True)
        completed_now = True

    return GuardResult(session=session, clamped=clamped, completed_now=completed_now)


class WatchGuard:
    """Stateful convenience wrapper around ``reduce`` for one playback session."""

    def __init__(self, threshold: float = DEFAULT_COMPLETION_THRESHOLD, allowance: float = DEFAULT_SEEK_ALLOWANCE):
        self.threshold = threshold
        self.allowance = allowance
        self.session = WatchSession()

    def dispatch(self, event: PlaybackEvent) -> GuardResult:
        result = reduce(self.session, event, threshold=self.threshold, allowance=self.allowance)
        self.session = result.session
        return result

    @property
    def ratio(self) -> float:
        return watched_ratio(self.session)
