"""
presenter/routes/export.py
CSV download of a session's completed presentations.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.database import get_db
from presenter.orm.user import User
from presenter.security.auth import get_current_user
from presenter.services.export_service import build_export_csv, export_filename
from presenter.services.permission_guards import get_owned_session

router = APIRouter(prefix="/export", tags=["Export"])


@router.get("")
async def export_grades(
    session_id: int = Query(..., alias="sessionId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await get_owned_session(db, session_id, current_user.id)
    content = await build_export_csv(db, session)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(session.id)}"'},
    )
