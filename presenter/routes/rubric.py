"""
presenter/routes/rubric.py
Session rubric criteria and reusable rubric templates.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.database import get_db
from presenter.orm.user import User
from presenter.schemas.session import RubricCreate, TemplateCreate
from presenter.security.auth import get_current_user
from presenter.services.permission_guards import get_owned_session
from presenter.services.session_orchestrator import add_criteria
from presenter.services.setup_service import list_templates, save_template

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rubric", tags=["Rubric"])


@router.post("", status_code=201)
async def post_criteria(
    body: RubricCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    session = await get_owned_session(db, body.session_id, current_user.id)
    criteria = await add_criteria(db, session, [c.to_service() for c in body.criteria])
    return {"criteria": [c.to_dict() for c in criteria]}


@router.get("")
async def get_templates(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    templates = await list_templates(db, current_user)
    return {"templates": [t.to_dict() for t in templates]}


@router.post("/templates", status_code=201)
async def post_template(
    body: TemplateCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    template = await save_template(
        db,
        current_user,
        body.name,
        [c.to_service() for c in body.criteria],
    )
    return {"template": template.to_dict()}
