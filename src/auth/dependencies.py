from typing import Callable, Optional

from fastapi import Depends, Request, WebSocket
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth import constants
from src.auth.exceptions import (
    InactiveAccountException,
    InsufficientRoleException,
    TokenNotValidException,
)
from src.auth.schemas import TokenClaims
from src.auth.service import AuthService
from src.auth.utils import decode_access_token, extract_bearer_token
from src.database import get_db
from src.exceptions import UnauthorizedException
from src.users.models import User, UserRole


def get_auth_service() -> AuthService:
    """Get AuthService instance"""
    return AuthService()


def get_bearer_token(request: Request) -> str:
    """
    Read `Authorization: Bearer <token>`; absent or malformed header is a 401.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise UnauthorizedException(constants.TOKEN_MISSING)
    token = extract_bearer_token(auth_header)
    if token is None:
        raise UnauthorizedException(constants.TOKEN_MALFORMED)
    return token


def get_token_claims(token: str = Depends(get_bearer_token)) -> TokenClaims:
    return decode_access_token(token)


def get_optional_claims(request: Request) -> Optional[TokenClaims]:
    """Claims when a valid bearer token is present, None otherwise."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        return None
    try:
        return decode_access_token(token)
    except TokenNotValidException:
        return None


async def resolve_user(user_id: str, db: AsyncSession) -> Optional[User]:
    result = await db.execute(
        select(User).where(User.id == user_id, User.deleted_at.is_(None))
    )
    return result.scalar_one_or_none()


async def get_current_user(
    claims: TokenClaims = Depends(get_token_claims),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await resolve_user(claims.user_id, db)
    if user is None:
        raise TokenNotValidException()
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise InactiveAccountException()
    return current_user


def require_roles(*roles: UserRole) -> Callable:
    """Dependency factory admitting only the listed roles."""
    async def dependency(current_user: User = Depends(get_current_active_user)) -> User:
        if current_user.role not in roles:
            raise InsufficientRoleException()
        return current_user

    return dependency


def get_websocket_token(websocket: WebSocket) -> Optional[str]:
    """
    Browsers cannot set headers on a websocket upgrade, so the token may also
    arrive as the `token` query argument.
    """
    token = extract_bearer_token(websocket.headers.get("authorization"))
    if token:
        return token
    return websocket.query_params.get("token") or None


def resolve_claims_from_websocket(websocket: WebSocket) -> Optional[TokenClaims]:
    token = get_websocket_token(websocket)
    if not token:
        return None
    try:
        return decode_access_token(token)
    except TokenNotValidException:
        return None
