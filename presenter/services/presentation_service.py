"""
Presentation Service

Applies state machine decisions to stored presentations.

Every call writes the presentation and its team in a single transaction.
Transition rules come from state_machines/presentation.py; this module only
loads, stamps and commits.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.exceptions import PersistenceError, ValidationError
from presenter.orm.grading_session import GradingSession
from presenter.orm.presentation import Presentation
from presenter.orm.team import Team
from presenter.state_machines.presentation import (
    PresentationEvent,
    PresentationStatus,
    TimerSnapshot,
    apply_event,
    ensure_transition,
    read_timer,
    split_elapsed,
    team_status_for,
)

logger = logging.getLogger(__name__)


async def _commit(db: AsyncSession, context: str) -> None:
    try:
        await db.commit()
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"{context} failed: {str(e)}")
        raise PersistenceError(f"{context} failed") from e


def _write_snapshot(presentation: Presentation, snapshot: TimerSnapshot) -> None:
    """Store the snapshot and the matching phase counter together."""
    presentation.timer_state = snapshot
    presentation_elapsed, qa_elapsed = split_elapsed(snapshot)
    if presentation_elapsed is not None:
        presentation.presentation_time_elapsed = presentation_elapsed
    if qa_elapsed is not None:
        presentation.qa_time_elapsed = qa_elapsed


async def _set_team_status(db: AsyncSession, team_id: int, status) -> None:
    team = await db.get(Team, team_id)
    if team is not None:
        team.status = status


async def apply_presentation_event(
    db: AsyncSession,
    presentation: Presentation,
    event: PresentationEvent,
    elapsed_time: Optional[int] = None,
) -> Optional[Presentation]:
    """
    Run an instructor action against a presentation and persist the outcome.

    Args:
        db: Database session
        presentation: Loaded presentation row
        event: Action to apply
        elapsed_time: Latest client clock reading, for stop events

    Returns:
        The updated presentation, or None when the event removed it (defer)

    Raises:
        InvalidTransitionError: If the event cannot fire from the current status
        PersistenceError: If the write fails
    """
    old_status = presentation.status
    result = apply_event(old_status, event, presentation.timer_state, elapsed_time)
    now = datetime.utcnow()

    if result.status is None:
        # Defer: drop the row so the next pick starts from zero
        team_id = presentation.team_id
        await db.delete(presentation)
        await _set_team_status(db, team_id, result.team_status)
        await _commit(db, f"Deferring presentation {presentation.id}")
        logger.info(f"Presentation {presentation.id} deferred; team {team_id} back to pending")
        return None

    presentation.status = result.status
    if result.snapshot is not None:
        _write_snapshot(presentation, result.snapshot)
    if result.stamp_started:
        presentation.started_at = now
    if result.stamp_ended:
        presentation.ended_at = now
    presentation.updated_at = now
    await _set_team_status(db, presentation.team_id, result.team_status)

    await _commit(db, f"Presentation {presentation.id} {event.value}")
    logger.info(
        f"Presentation {presentation.id}: {event.value} "
        f"({old_status.value} → {result.status.value})"
    )
    return presentation


async def update_presentation(
    db: AsyncSession,
    presentation: Presentation,
    team_id: Optional[int] = None,
    status: Optional[PresentationStatus] = None,
    presentation_time_elapsed: Optional[int] = None,
    qa_time_elapsed: Optional[int] = None,
    timer_state: Optional[TimerSnapshot] = None,
    clear_timer_state: bool = False,
) -> Presentation:
    """
    Partial update. Each argument that is not None is written independently,
    all in one transaction. Only these columns are ever updatable.
    `clear_timer_state` drops the stored snapshot and leaves the counters.
    """
    if team_id is not None and team_id != presentation.team_id:
        raise ValidationError(f"Team {team_id} does not own presentation {presentation.id}")

    now = datetime.utcnow()

    if status is not None:
        ensure_transition(presentation.status, status)
        if status == PresentationStatus.PRESENTING and presentation.started_at is None:
            presentation.started_at = now
        if status == PresentationStatus.COMPLETED and presentation.status != PresentationStatus.COMPLETED:
            presentation.ended_at = now
        presentation.status = status
        await _set_team_status(db, presentation.team_id, team_status_for(status))

    if clear_timer_state:
        presentation.timer_state = None
    elif timer_state is not None:
        _write_snapshot(presentation, timer_state)

    # Explicit counters win over the ones derived from the snapshot
    if presentation_time_elapsed is not None:
        presentation.presentation_time_elapsed = presentation_time_elapsed
    if qa_time_elapsed is not None:
        presentation.qa_time_elapsed = qa_time_elapsed

    presentation.updated_at = now
    await _commit(db, f"Updating presentation {presentation.id}")
    return presentation


def timer_view(presentation: Presentation, session: GradingSession) -> Dict[str, Any]:
    """Timer as a client should restore it after a reload."""
    view = read_timer(
        presentation.timer_state,
        session.presentation_duration,
        session.qa_duration,
    )
    view["presentationId"] = presentation.id
    view["status"] = presentation.status.value
    return view
