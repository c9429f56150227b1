"""
presenter/routes/session.py
The instructor's grading session: create, load, lock the rubric, delete.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.database import get_db
from presenter.orm.user import User
from presenter.schemas.session import SessionCreate, SessionUpdate
from presenter.security.auth import get_current_user
from presenter.services.permission_guards import get_owned_session
from presenter.services.session_orchestrator import set_rubric_locked
from presenter.services.setup_service import (
    create_session,
    delete_session,
    get_current_session,
    load_session_state,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/session", tags=["Session"])


@router.get("")
async def get_session(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Current session with teams, criteria and presentations, or {session: null}."""
    session = await get_current_session(db, current_user)
    if session is None:
        return {"session": None}
    return await load_session_state(db, session)


@router.post("", status_code=201)
async def post_session(
    body: SessionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await create_session(
        db,
        current_user,
        body.name,
        body.presentation_duration,
        body.qa_duration,
    )
    return {"session": session.to_dict()}


@router.patch("")
async def patch_session(
    body: SessionUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await get_owned_session(db, body.session_id, current_user.id)
    await set_rubric_locked(db, session, body.rubric_locked)
    return {"success": True}


@router.delete("")
async def remove_session(
    session_id: int = Query(..., alias="sessionId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await get_owned_session(db, session_id, current_user.id)
    await delete_session(db, session)
    return {"success": True}
