from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from src.auth.constants import CLAIM_ROLE, CLAIM_USER_ID
from src.auth.exceptions import TokenNotValidException
from src.auth.schemas import TokenClaims
from src.config import settings


def create_access_token(user_id: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Mint a signed bearer token binding (user_id, role, expiry).
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=settings.ACCESS_TOKEN_EXPIRE_HOURS)
    )
    to_encode = {CLAIM_USER_ID: user_id, CLAIM_ROLE: role, "exp": expire}
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> TokenClaims:
    """
    Validate signature, algorithm and expiry.

    Raises:
        TokenNotValidException: for any token that does not verify
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise TokenNotValidException()

    user_id = payload.get(CLAIM_USER_ID)
    exp = payload.get("exp")
    if not user_id or exp is None:
        raise TokenNotValidException()

    return TokenClaims(
        user_id=str(user_id),
        role=str(payload.get(CLAIM_ROLE) or ""),
        expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
    )


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token of a `Bearer <token>` header value, else None."""
    if not authorization:
        return None
    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]
