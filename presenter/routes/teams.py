"""
presenter/routes/teams.py
Team import and manual status changes.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.database import get_db
from presenter.exceptions import ValidationError
from presenter.orm.user import User
from presenter.schemas.session import TeamsCreate, TeamUpdate
from presenter.security.auth import get_current_user
from presenter.services.permission_guards import get_owned_session, get_owned_team
from presenter.services.setup_service import add_teams, parse_bulk_teams, update_team_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.post("", status_code=201)
async def post_teams(
    body: TeamsCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Add teams one at a time. Duplicates and failures are reported in
    `errors`; the remaining teams are still added.
    """
    session = await get_owned_session(db, body.session_id, current_user.id)

    items = [team.model_dump() for team in body.teams]
    if body.bulk:
        items.extend(parse_bulk_teams(body.bulk))
    if not items:
        raise ValidationError("Session ID and teams array are required")

    added, errors = await add_teams(db, session, items)
    if errors:
        logger.warning(f"Session {session.id}: rejected teams {errors}")
    return {"teams": [team.to_dict() for team in added], "errors": errors}


@router.patch("")
async def patch_team(
    body: TeamUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    team = await get_owned_team(db, body.team_id, current_user.id)
    await update_team_status(db, team, body.status)
    return {"success": True}
