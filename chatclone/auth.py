from datetime import datetime, timedelta
from jose import JWTError, jwt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from chatclone.config import get_settings
from chatclone.database import get_db
from chatclone.errors import InvalidCredential, MissingCredential, NotFound
from chatclone.models.user import User
from chatclone.repositories.chat_repository import get_user_by_id
from chatclone.schemas.user import TokenPayload

security = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": user_id,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> TokenPayload | None:
    """Verify signature and expiry. Returns None for any invalid token."""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return TokenPayload(
            sub=payload["sub"],
            exp=payload["exp"],
            type=payload.get("type", "access"),
        )
    except (JWTError, KeyError):
        return None


def get_current_user_id(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """Hard gate for protected endpoints. Binds the user id to request.state."""
    if not credentials or not credentials.credentials:
        raise MissingCredential()

    payload = decode_token(credentials.credentials)
    if not payload or not payload.sub:
        raise InvalidCredential("Invalid or expired token")

    request.state.user_id = payload.sub
    return payload.sub


def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> User:
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFound("User not found")
    return user
