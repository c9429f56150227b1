"""
presenter/security/auth.py
Password hashing, JWT issuing and the current-user dependency.

The token travels in an HTTP-only cookie set at login/signup. A Bearer
Authorization header is accepted as well, for API clients and tests.
"""
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Depends, Request, Response
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from presenter.config.settings import settings
from presenter.database import get_db
from presenter.errors import ErrorCode
from presenter.exceptions import PersistenceError, UnauthorizedError, ValidationError
from presenter.orm.user import User

logger = logging.getLogger(__name__)

# bcrypt blocks the event loop, so hashing runs in a small thread pool
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

_executor = None


def get_executor():
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=4)
    return _executor


def normalize_password(password: str) -> str:
    """
    bcrypt only supports 72 bytes.
    Truncate after UTF-8 encoding so multi-byte passwords hash consistently.
    """
    encoded = password.encode("utf-8")
    if len(encoded) > 72:
        encoded = encoded[:72]
    return encoded.decode("utf-8", errors="ignore")


async def hash_password_async(password: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_executor(), pwd_context.hash, normalize_password(password))


async def verify_password_async(plain: str, hashed: str) -> bool:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(
        get_executor(), pwd_context.verify, normalize_password(plain), hashed
    )


# ================= TOKENS =================

def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Decode and validate an access token.

    Raises:
        UnauthorizedError: Token expired, malformed or of the wrong type
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError("Session expired, please log in again", ErrorCode.AUTH_EXPIRED)
    except JWTError:
        raise UnauthorizedError("Invalid authentication token", ErrorCode.AUTH_INVALID)

    if payload.get("type") != "access" or not payload.get("sub"):
        raise UnauthorizedError("Invalid authentication token", ErrorCode.AUTH_INVALID)
    return payload


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.AUTH_COOKIE_NAME, path="/")


def extract_token(request: Request) -> Optional[str]:
    """Cookie first, then `Authorization: Bearer <token>`."""
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


# ================= ACCOUNTS =================

async def register_user(db: AsyncSession, email: str, password: str) -> User:
    email = (email or "").strip().lower()
    if not email or not password:
        raise ValidationError("Email and password are required")
    if len(password) < settings.MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters")

    existing = (await db.execute(select(User.id).where(User.email == email))).scalar_one_or_none()
    if existing is not None:
        logger.warning(f"Signup rejected, email already registered: {email}")
        raise ValidationError("User already exists", {"field": "email"})

    user = User(email=email, password_hash=await hash_password_async(password))
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationError("User already exists", {"field": "email"})
    except SQLAlchemyError as e:
        await db.rollback()
        raise PersistenceError("Failed to create user") from e
    await db.refresh(user)
    logger.info(f"User registered: {email}")
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User:
    email = (email or "").strip().lower()
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = (await db.execute(select(User).where(User.email == email))).scalar_one_or_none()
    password_valid = False
    if user is not None:
        password_valid = await verify_password_async(password, user.password_hash)

    if user is None or not password_valid:
        logger.warning(f"Invalid credentials for email: {email}")
        raise UnauthorizedError("Invalid credentials", ErrorCode.AUTH_INVALID)
    return user


# ================= DEPENDENCIES =================

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the signed-in instructor or raise 401."""
    token = extract_token(request)
    if not token:
        raise UnauthorizedError()

    payload = decode_token(token)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid authentication token", ErrorCode.AUTH_INVALID)

    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedError("User not found", ErrorCode.AUTH_INVALID)
    return user
