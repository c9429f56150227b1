"""
Authentication request/response schemas
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    """JSON login schema"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class AuthResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    user_id: int = Field(..., alias="userId")
