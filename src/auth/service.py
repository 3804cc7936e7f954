"""
Service layer for Auth module
"""
import logging
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import constants
from src.auth.exceptions import (
    InactiveAccountException,
    InvalidCredentialsException,
    UserAlreadyExistsException,
)
from src.auth.schemas import AuthResponse, LoginRequest, RegisterRequest
from src.auth.utils import create_access_token
from src.users.models import User, UserRole
from src.users.schemas import UserResponse

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AuthService:

    def verify_password(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        if not hashed_password:
            return False
        return pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password: str) -> str:
        return pwd_context.hash(password)

    def issue_token(self, user: User) -> str:
        return create_access_token(user.id, user.role.value)

    async def register_user(self, data: RegisterRequest, db: AsyncSession) -> AuthResponse:
        """Create a viewer account and return a token for it."""
        result = await db.execute(
            select(User).where(
                or_(User.email == data.email, User.username == data.username)
            )
        )
        for existing in result.scalars().all():
            if existing.email == data.email:
                raise UserAlreadyExistsException(constants.EMAIL_TAKEN)
            raise UserAlreadyExistsException(constants.USERNAME_TAKEN)

        user = User(
            email=data.email,
            username=data.username,
            password_hash=self.get_password_hash(data.password),
            role=UserRole.VIEWER,
            is_active=True,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            await db.rollback()
            raise UserAlreadyExistsException()
        await db.refresh(user)

        logger.info("Registered user %s", user.id)
        return AuthResponse(token=self.issue_token(user), user=UserResponse.model_validate(user))

    async def authenticate_user(self, email: str, password: str, db: AsyncSession) -> Optional[User]:
        result = await db.execute(
            select(User).where(User.email == email, User.deleted_at.is_(None))
        )
        user = result.scalar_one_or_none()
        if user is None or not self.verify_password(password, user.password_hash):
            return None
        return user

    async def login(self, data: LoginRequest, db: AsyncSession) -> AuthResponse:
        user = await self.authenticate_user(data.email, data.password, db)
        if user is None:
            raise InvalidCredentialsException()
        if not user.is_active:
            raise InactiveAccountException()
        return AuthResponse(token=self.issue_token(user), user=UserResponse.model_validate(user))
