"""
Account schemas. One account type serves both hosts and guests.
"""

from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"


class UserCreate(BaseModel):
    """Sign-up body. Username and email must both be unused."""

    email: EmailStr
    username: str = Field(..., min_length=3, max_length=100, pattern=USERNAME_PATTERN)
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=8, max_length=72)


class UserLogin(BaseModel):
    """Hosts and guests sign in with their username."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    email: str
    username: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
