"""
Presentation State Machine

Pure transition rules and timer arithmetic for a single presentation.
Nothing in this module touches the database; services/presentation_service.py
loads rows, asks this module what the next state is, and persists the result.

State Flow: not_started → presenting → qa → completed
            presenting|qa → emergency_stopped → presenting|qa (resume)
"""
import json
import logging
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from presenter.config.settings import settings
from presenter.exceptions import InvalidTransitionError

logger = logging.getLogger(__name__)


class PresentationStatus(str, Enum):
    """Lifecycle of one team's presentation."""
    NOT_STARTED = "not_started"
    PRESENTING = "presenting"
    QA = "qa"
    EMERGENCY_STOPPED = "emergency_stopped"
    COMPLETED = "completed"


class TeamStatus(str, Enum):
    """Team-side mirror of the presentation lifecycle."""
    PENDING = "pending"
    PRESENTING = "presenting"
    COMPLETED = "completed"
    DEFERRED = "deferred"


class TimerPhase(str, Enum):
    PRESENTATION = "presentation"
    QA = "qa"


class PresentationEvent(str, Enum):
    """Instructor actions that drive the presentation lifecycle."""
    START = "start"
    SWITCH_TO_QA = "switch_to_qa"
    EMERGENCY_STOP = "emergency_stop"
    RESUME = "resume"
    START_FRESH = "start_fresh"
    STOP_AND_GRADE = "stop_and_grade"
    DEFER = "defer"
    COMPLETE = "complete"


class TimerIndicator(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    OVERTIME = "overtime"


TIMER_SNAPSHOT_VERSION = 1


class TimerSnapshot(BaseModel):
    """
    Persisted timer state, stored as JSON text on the presentation row.

    Wire format: {"phase": "presentation"|"qa", "elapsedTime": int, "isRunning": bool}
    plus a version number for forward compatibility.
    """
    model_config = ConfigDict(populate_by_name=True)

    phase: Optional[TimerPhase] = None
    elapsed_time: int = Field(default=0, ge=0, alias="elapsedTime")
    is_running: bool = Field(default=False, alias="isRunning")
    version: int = TIMER_SNAPSHOT_VERSION

    def to_json(self) -> str:
        return json.dumps(self.to_wire())

    def to_wire(self) -> Dict:
        return {
            "phase": self.phase.value if self.phase else None,
            "elapsedTime": self.elapsed_time,
            "isRunning": self.is_running,
            "version": self.version,
        }

    @classmethod
    def from_json(cls, raw: Optional[str]) -> Optional["TimerSnapshot"]:
        """Parse a stored snapshot; unreadable legacy values are treated as absent."""
        if not raw:
            return None
        try:
            return cls.model_validate(json.loads(raw))
        except (ValueError, TypeError, PydanticValidationError):
            logger.warning("Discarding unreadable timer snapshot: %r", raw)
            return None

    @property
    def should_auto_resume(self) -> bool:
        """A snapshot taken mid-phase resumes running after a reload."""
        return self.phase in (TimerPhase.PRESENTATION, TimerPhase.QA)

    def restored(self) -> "TimerSnapshot":
        """The in-memory timer a client should start from after a reload."""
        return self.model_copy(update={"is_running": self.should_auto_resume})


# Raw status writes: target statuses reachable from each status.
# A write to the current status is always accepted as a no-op.
STATUS_TRANSITIONS: Dict[PresentationStatus, FrozenSet[PresentationStatus]] = {
    PresentationStatus.NOT_STARTED: frozenset({
        PresentationStatus.PRESENTING,
        PresentationStatus.COMPLETED,
    }),
    PresentationStatus.PRESENTING: frozenset({
        PresentationStatus.QA,
        PresentationStatus.EMERGENCY_STOPPED,
        PresentationStatus.COMPLETED,
    }),
    PresentationStatus.QA: frozenset({
        PresentationStatus.EMERGENCY_STOPPED,
        PresentationStatus.COMPLETED,
    }),
    PresentationStatus.EMERGENCY_STOPPED: frozenset({
        PresentationStatus.PRESENTING,
        PresentationStatus.QA,
        PresentationStatus.COMPLETED,
    }),
    PresentationStatus.COMPLETED: frozenset(),
}

# Statuses from which each event may fire.
EVENT_SOURCES: Dict[PresentationEvent, FrozenSet[PresentationStatus]] = {
    PresentationEvent.START: frozenset({PresentationStatus.NOT_STARTED}),
    PresentationEvent.SWITCH_TO_QA: frozenset({PresentationStatus.PRESENTING}),
    PresentationEvent.EMERGENCY_STOP: frozenset({PresentationStatus.PRESENTING, PresentationStatus.QA}),
    PresentationEvent.RESUME: frozenset({PresentationStatus.EMERGENCY_STOPPED}),
    PresentationEvent.START_FRESH: frozenset({PresentationStatus.EMERGENCY_STOPPED}),
    PresentationEvent.STOP_AND_GRADE: frozenset({PresentationStatus.PRESENTING, PresentationStatus.QA}),
    PresentationEvent.DEFER: frozenset({
        PresentationStatus.NOT_STARTED,
        PresentationStatus.PRESENTING,
        PresentationStatus.QA,
        PresentationStatus.EMERGENCY_STOPPED,
    }),
    PresentationEvent.COMPLETE: frozenset({
        PresentationStatus.NOT_STARTED,
        PresentationStatus.PRESENTING,
        PresentationStatus.QA,
        PresentationStatus.EMERGENCY_STOPPED,
        PresentationStatus.COMPLETED,
    }),
}

TEAM_STATUS_FOR: Dict[PresentationStatus, TeamStatus] = {
    PresentationStatus.NOT_STARTED: TeamStatus.PENDING,
    PresentationStatus.PRESENTING: TeamStatus.PRESENTING,
    PresentationStatus.QA: TeamStatus.PRESENTING,
    PresentationStatus.EMERGENCY_STOPPED: TeamStatus.PRESENTING,
    PresentationStatus.COMPLETED: TeamStatus.COMPLETED,
}


def can_transition(current: PresentationStatus, target: PresentationStatus) -> bool:
    """Check whether a raw status write is allowed."""
    if current == target:
        return True
    return target in STATUS_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: PresentationStatus, target: PresentationStatus) -> None:
    if not can_transition(current, target):
        allowed = sorted(s.value for s in STATUS_TRANSITIONS.get(current, frozenset()))
        raise InvalidTransitionError(
            f"Cannot move presentation from {current.value} to {target.value}. Allowed: {allowed}",
            from_status=current.value,
            to_status=target.value,
        )


def team_status_for(status: PresentationStatus) -> TeamStatus:
    return TEAM_STATUS_FOR[status]


class TransitionResult(BaseModel):
    """Outcome of applying an event: the new status (None means the row goes away) and timer."""
    status: Optional[PresentationStatus]
    snapshot: Optional[TimerSnapshot]
    team_status: TeamStatus
    stamp_started: bool = False
    stamp_ended: bool = False


def apply_event(
    status: PresentationStatus,
    event: PresentationEvent,
    snapshot: Optional[TimerSnapshot] = None,
    elapsed_time: Optional[int] = None,
) -> TransitionResult:
    """
    Compute the effect of an event on a presentation.

    Args:
        status: Current presentation status
        event: Instructor action
        snapshot: Currently stored timer snapshot, if any
        elapsed_time: Latest elapsed seconds reported by the client clock

    Returns:
        TransitionResult describing what to persist

    Raises:
        InvalidTransitionError: If the event cannot fire from this status
    """
    if status not in EVENT_SOURCES[event]:
        raise InvalidTransitionError(
            f"Cannot {event.value} a presentation that is {status.value}",
            from_status=status.value,
        )

    current = snapshot or TimerSnapshot()
    latest = current.elapsed_time if elapsed_time is None else elapsed_time

    if event == PresentationEvent.START:
        return TransitionResult(
            status=PresentationStatus.PRESENTING,
            snapshot=TimerSnapshot(phase=TimerPhase.PRESENTATION, elapsed_time=0, is_running=True),
            team_status=TeamStatus.PRESENTING,
            stamp_started=True,
        )

    if event == PresentationEvent.SWITCH_TO_QA:
        return TransitionResult(
            status=PresentationStatus.QA,
            snapshot=TimerSnapshot(phase=TimerPhase.QA, elapsed_time=0, is_running=False),
            team_status=TeamStatus.PRESENTING,
        )

    if event == PresentationEvent.EMERGENCY_STOP:
        phase = current.phase or (
            TimerPhase.QA if status == PresentationStatus.QA else TimerPhase.PRESENTATION
        )
        return TransitionResult(
            status=PresentationStatus.EMERGENCY_STOPPED,
            snapshot=TimerSnapshot(phase=phase, elapsed_time=latest, is_running=False),
            team_status=TeamStatus.PRESENTING,
        )

    if event == PresentationEvent.RESUME:
        phase = current.phase or TimerPhase.PRESENTATION
        resumed_status = PresentationStatus.QA if phase == TimerPhase.QA else PresentationStatus.PRESENTING
        return TransitionResult(
            status=resumed_status,
            snapshot=TimerSnapshot(phase=phase, elapsed_time=current.elapsed_time, is_running=True),
            team_status=TeamStatus.PRESENTING,
        )

    if event == PresentationEvent.START_FRESH:
        return TransitionResult(
            status=PresentationStatus.PRESENTING,
            snapshot=TimerSnapshot(phase=TimerPhase.PRESENTATION, elapsed_time=0, is_running=True),
            team_status=TeamStatus.PRESENTING,
        )

    if event == PresentationEvent.STOP_AND_GRADE:
        return TransitionResult(
            status=status,
            snapshot=current.model_copy(update={"elapsed_time": latest, "is_running": False}),
            team_status=TeamStatus.PRESENTING,
        )

    if event == PresentationEvent.DEFER:
        return TransitionResult(status=None, snapshot=None, team_status=TeamStatus.PENDING)

    # COMPLETE
    return TransitionResult(
        status=PresentationStatus.COMPLETED,
        snapshot=current.model_copy(update={"is_running": False}) if snapshot else None,
        team_status=TeamStatus.COMPLETED,
        stamp_ended=status != PresentationStatus.COMPLETED,
    )


# ================= TIMER ARITHMETIC =================


def phase_duration_seconds(phase: TimerPhase, presentation_minutes: int, qa_minutes: int) -> int:
    minutes = presentation_minutes if phase == TimerPhase.PRESENTATION else qa_minutes
    return minutes * 60


def remaining_seconds(duration_seconds: int, elapsed: int) -> int:
    """Remaining time; negative once the phase runs over."""
    return duration_seconds - elapsed


def timer_indicator(remaining: int, warning_threshold: Optional[int] = None) -> TimerIndicator:
    threshold = settings.TIMER_WARNING_THRESHOLD_SECONDS if warning_threshold is None else warning_threshold
    if remaining < 0:
        return TimerIndicator.OVERTIME
    if remaining <= threshold:
        return TimerIndicator.WARNING
    return TimerIndicator.NORMAL


def format_time(seconds: int) -> str:
    """Render seconds as [-]M:SS."""
    sign = "-" if seconds < 0 else ""
    minutes, secs = divmod(abs(seconds), 60)
    return f"{sign}{minutes}:{secs:02d}"


def read_timer(
    snapshot: Optional[TimerSnapshot],
    presentation_minutes: int,
    qa_minutes: int,
) -> Dict:
    """UI-facing view of a stored snapshot after a reload."""
    if snapshot is None or snapshot.phase is None:
        return {
            "timerState": None,
            "remaining": None,
            "display": None,
            "indicator": None,
        }
    restored = snapshot.restored()
    duration = phase_duration_seconds(restored.phase, presentation_minutes, qa_minutes)
    remaining = remaining_seconds(duration, restored.elapsed_time)
    return {
        "timerState": restored.to_wire(),
        "durationSeconds": duration,
        "remaining": remaining,
        "display": format_time(remaining),
        "indicator": timer_indicator(remaining).value,
    }


def split_elapsed(snapshot: TimerSnapshot) -> Tuple[Optional[int], Optional[int]]:
    """Phase-specific elapsed counters (presentation_time_elapsed, qa_time_elapsed) to write."""
    if snapshot.phase == TimerPhase.PRESENTATION:
        return snapshot.elapsed_time, None
    if snapshot.phase == TimerPhase.QA:
        return None, snapshot.elapsed_time
    return None, None
