"""
presenter/routes/auth.py
Instructor signup, login and logout. Rate limited per client address.
"""
import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.config.settings import settings
from presenter.database import get_db
from presenter.orm.user import User
from presenter.schemas.auth import LoginRequest, SignupRequest
from presenter.security.auth import (
    authenticate_user,
    clear_auth_cookie,
    create_access_token,
    get_current_user,
    register_user,
    set_auth_cookie,
)
from presenter.security.rate_limit import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/signup", status_code=201)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def signup(
    request: Request,  # Required by slowapi
    response: Response,
    body: SignupRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await register_user(db, body.email, body.password)
    set_auth_cookie(response, create_access_token(user))
    return {"message": "User created successfully", "userId": user.id}


@router.post("/login")
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(
    request: Request,  # Required by slowapi
    response: Response,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_user(db, body.email, body.password)
    set_auth_cookie(response, create_access_token(user))
    logger.info(f"User logged in: {user.email}")
    return {"message": "Login successful", "userId": user.id}


@router.post("/logout")
async def logout(response: Response):
    clear_auth_cookie(response)
    return {"success": True}


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return {"user": current_user.to_dict()}
