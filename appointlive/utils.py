import hashlib
import jwt
from datetime import datetime, timedelta
from typing import Optional
from .config import settings


# =========================
# JWT Token Handling
# =========================
def _secret_configured() -> bool:
    return bool(settings.SECRET_KEY) and settings.SECRET_KEY != "change-me-in-prod"


def create_jwt_token(data: dict, expires_minutes: Optional[int] = None):
    """Create a JWT access token. Used by tests and local tooling; production tokens come from the identity provider."""
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire, "type": "access"})

    if not _secret_configured():
        raise ValueError("SECRET_KEY not properly configured")

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_jwt_token(token: str):
    """Decode and verify JWT token"""
    if not _secret_configured():
        return None
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def session_id_for_token(token: str, payload: dict) -> str:
    """Session key for per-session state: the ``sid`` claim, else a digest of the token."""
    sid = payload.get("sid")
    if sid:
        return str(sid)
    return hashlib.sha256(token.encode()).hexdigest()
