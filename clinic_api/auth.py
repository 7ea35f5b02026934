import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 from us, not a framework 403
security = HTTPBearer(auto_error=False)

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class CurrentUser:
    id: int
    role: str
    name: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def create_access_token(
    user_id: int,
    role: str,
    name: str,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Issue a bearer token carrying {sub, role, name}.

    Token issuance normally belongs to the identity provider; this helper
    exists for operators and tests.
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=settings.jwt_expire_hours)
    )
    claims: dict[str, Any] = {"sub": str(user_id), "role": role, "name": name, "exp": expire}
    return jose_jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> CurrentUser:
    """Verify signature and expiry, returning the caller's identity"""
    try:
        payload = jose_jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError as e:
        logger.info("ℹ️ Expired token presented")
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please sign in again.",
            headers={"X-Token-Expired": "true"},
        ) from e
    except JWTError as e:
        logger.warning(f"⚠️ Invalid token: {e}")
        raise HTTPException(status_code=401, detail="Invalid token") from e

    subject = payload.get("sub")
    role = payload.get("role")
    if not subject or not role:
        logger.error(f"❌ Token missing claims. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    try:
        user_id = int(subject)
    except ValueError as e:
        raise HTTPException(status_code=401, detail="Invalid token claims") from e

    return CurrentUser(id=user_id, role=role, name=payload.get("name", ""))


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """Get current user from the bearer token"""

    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    user = decode_access_token(credentials.credentials, settings)
    logger.debug(f"✅ User authenticated: {user.id} ({user.role})")
    return user


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Restrict a route to the admin role"""
    if not user.is_admin:
        logger.warning(f"⚠️ User {user.id} with role {user.role} attempted an admin route")
        raise HTTPException(status_code=403, detail="Access denied.")
    return user
