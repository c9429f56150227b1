"""
presenter/routes/diagnostics.py
Database connectivity probe for deployments.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.config.settings import settings
from presenter.database import check_connection, get_db
from presenter.errors import ErrorCode, error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/debug", tags=["Diagnostics"])


@router.get("/db-check")
async def db_check(db: AsyncSession = Depends(get_db)):
    try:
        status = await check_connection(db)
    except SQLAlchemyError as e:
        logger.error(f"Database check failed: {str(e)}")
        return error_response(
            503,
            "Database unavailable",
            ErrorCode.PERSISTENCE_ERROR,
            {"connected": False, "environment": settings.ENVIRONMENT},
        )
    return {"success": True, **status, "environment": settings.ENVIRONMENT}
