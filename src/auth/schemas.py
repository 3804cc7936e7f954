from datetime import datetime

from pydantic import Field

from src.auth import constants
from src.models import CustomModel
from src.users.schemas import UserResponse


class RegisterRequest(CustomModel):
    email: str = Field(..., pattern=constants.EMAIL_PATTERN, max_length=255)
    username: str = Field(
        ...,
        min_length=constants.MIN_USERNAME_LENGTH,
        max_length=constants.MAX_USERNAME_LENGTH,
    )
    password: str = Field(..., min_length=constants.MIN_PASSWORD_LENGTH)


class LoginRequest(CustomModel):
    email: str
    password: str


class AuthResponse(CustomModel):
    token: str
    user: UserResponse


class TokenClaims(CustomModel):
    user_id: str
    role: str
    expires_at: datetime
