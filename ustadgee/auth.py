import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError
from jose import jwt as jose_jwt
from sqlalchemy.orm import Session

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, SECRET_KEY
from .database import get_db
from .models import USER_TYPE_PROVIDER, USER_TYPE_REQUESTER, User

logger = logging.getLogger(__name__)

security = HTTPBearer()


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a bearer token for a user

    Args:
        user_id: User the token identifies (stored in the "id" claim)
        expires_delta: Token lifetime (default ACCESS_TOKEN_EXPIRE_MINUTES)
    """
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return jose_jwt.encode({"id": user_id, "exp": expire}, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a bearer token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer token"""

    if not credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    token = credentials.credentials
    try:
        payload = jose_jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(
            status_code=401,
            detail="Token has expired. Please sign in again.",
            headers={"X-Token-Expired": "true"},
        ) from None
    except JWTError as e:
        logger.warning(f"⚠️ Invalid bearer token: {e}")
        raise HTTPException(status_code=401, detail="Invalid or expired token") from e

    user_id = payload.get("id")
    if user_id is None:
        logger.error(f"❌ Token missing user ID claim. Available claims: {list(payload.keys())}")
        raise HTTPException(status_code=401, detail="Invalid token claims")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.active:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    logger.debug(f"✅ User authenticated: {user.id}")
    return user


def _require_user_type(user_type: int, role_name: str):
    async def dependency(user: User = Depends(get_current_user)) -> User:
        if user.user_type != user_type:
            logger.warning(f"🚫 User {user.id} attempted {role_name}-only route")
            raise HTTPException(
                status_code=403, detail=f"Access denied. {role_name} role required"
            )
        return user

    return dependency


get_current_provider = _require_user_type(USER_TYPE_PROVIDER, "Service provider")
get_current_requester = _require_user_type(USER_TYPE_REQUESTER, "User")
