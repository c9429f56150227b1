"""
presenter/routes/presentations.py
Team picking, timer controls and raw presentation updates.

The action endpoints run one state machine event each; PATCH is the
generic partial update used by the client's periodic timer autosave.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.database import get_db
from presenter.orm.user import User
from presenter.schemas.presentation import (
    ACTION_EVENTS,
    PickTeamRequest,
    PresentationAction,
    PresentationRef,
    PresentationUpdate,
    TimerAction,
)
from presenter.security.auth import get_current_user
from presenter.services.permission_guards import get_owned_presentation, get_owned_session
from presenter.services.presentation_service import (
    apply_presentation_event,
    timer_view,
    update_presentation,
)
from presenter.services.session_orchestrator import lock_rubric, pick_next_team
from presenter.state_machines.presentation import PresentationEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/presentations", tags=["Presentations"])


@router.post("")
async def pick_team(
    body: PickTeamRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Pick a random pending team. 404 once every team has been picked.

    The rubric is locked first, so criteria are frozen once grading begins.
    """
    session = await get_owned_session(db, body.session_id, current_user.id)
    await lock_rubric(db, session)
    team, presentation = await pick_next_team(db, session.id)
    return {"team": team.to_dict(), "presentation": presentation.to_dict()}


@router.patch("")
async def patch_presentation(
    body: PresentationUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    presentation, _ = await get_owned_presentation(db, body.presentation_id, current_user.id)
    await update_presentation(
        db,
        presentation,
        team_id=body.team_id,
        status=body.status,
        presentation_time_elapsed=body.presentation_time_elapsed,
        qa_time_elapsed=body.qa_time_elapsed,
        timer_state=body.timer_state,
        clear_timer_state=body.clears_timer_state,
    )
    return {"success": True}


@router.delete("")
async def defer_presentation(
    body: PresentationRef,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Send the team back to the pending pool and drop its presentation."""
    presentation, _ = await get_owned_presentation(db, body.presentation_id, current_user.id)
    await apply_presentation_event(db, presentation, PresentationEvent.DEFER)
    return {"success": True}


@router.post("/{presentation_id}/{action}")
async def run_action(
    presentation_id: int,
    action: PresentationAction,
    body: Optional[TimerAction] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    presentation, session = await get_owned_presentation(db, presentation_id, current_user.id)
    elapsed_time = body.elapsed_time if body else None
    presentation = await apply_presentation_event(
        db,
        presentation,
        ACTION_EVENTS[action],
        elapsed_time=elapsed_time,
    )
    return {
        "presentation": presentation.to_dict(),
        "timer": timer_view(presentation, session),
    }


@router.get("/{presentation_id}/timer")
async def get_timer(
    presentation_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Stored timer as the client should restore it after a reload."""
    presentation, session = await get_owned_presentation(db, presentation_id, current_user.id)
    return timer_view(presentation, session)
