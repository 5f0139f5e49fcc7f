"""
Pydantic models for user data.

Defines schemas for registering, logging in and reading users, plus
the payload carried inside a session token.  The password hash is
never part of any response model.
"""

from datetime import datetime

from pydantic import BaseModel, Field, validator

USERNAME_MIN_LENGTH = 4


class UserCredentials(BaseModel):
    """Username and password, as sent to ``/register`` and ``/login``."""

    username: str = Field(..., example="alice")
    password: str = Field(..., min_length=1, example="strongpassword")

    @validator("username")
    def strip_username(cls, v: str) -> str:
        return v.strip()


class UserCreate(UserCredentials):
    """Schema for registering a user."""

    @validator("username")
    def check_username_length(cls, v: str) -> str:
        if len(v) < USERNAME_MIN_LENGTH:
            raise ValueError(f"Username must be at least {USERNAME_MIN_LENGTH} characters")
        return v


class UserPublic(BaseModel):
    """Identity fields safe to show next to a post or after login."""

    id: int
    username: str

    model_config = {
        "from_attributes": True,
    }


class UserRead(UserPublic):
    """Schema for reading a user from the API."""

    created_at: datetime


class TokenPayload(BaseModel):
    """Claims signed into a session token."""

    username: str
    user_id: int
