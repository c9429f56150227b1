"""
presenter/routes/grades.py
Grade submission, grade lookup and the correction history.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.database import get_db
from presenter.orm.user import User
from presenter.schemas.presentation import GradesSubmit
from presenter.security.auth import get_current_user
from presenter.services import grade_ledger
from presenter.services.permission_guards import get_owned_presentation
from presenter.services.session_orchestrator import submit_and_complete

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/grades", tags=["Grades"])


@router.post("", status_code=201)
async def post_grades(
    body: GradesSubmit,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Record scores and feedback. Resubmitting overwrites the scores and
    records each changed score in the audit trail. With `complete` set the
    presentation is marked completed once the grades are saved.
    """
    presentation, _ = await get_owned_presentation(db, body.presentation_id, current_user.id)
    result = await submit_and_complete(
        db,
        presentation,
        [g.to_entry() for g in body.grades],
        public_feedback=body.public_feedback,
        private_notes=body.private_notes,
        complete=body.complete,
    )
    return {
        "success": True,
        "created": result.created,
        "updated": result.updated,
        "audited": result.audited,
        "status": presentation.status.value,
    }


@router.get("")
async def get_grades(
    presentation_id: int = Query(..., alias="presentationId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    presentation, _ = await get_owned_presentation(db, presentation_id, current_user.id)
    grades, feedback = await grade_ledger.get_grades(db, presentation.id)
    return {
        "grades": [g.to_dict() for g in grades],
        "feedback": feedback.to_dict() if feedback else None,
    }


@router.get("/history")
async def get_history(
    presentation_id: int = Query(..., alias="presentationId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    presentation, _ = await get_owned_presentation(db, presentation_id, current_user.id)
    return {"audits": await grade_ledger.get_grade_history(db, presentation.id)}
