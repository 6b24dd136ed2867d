# lesson_approval/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import jwt
from lesson_approval.core.config import settings

def create_token(sub: str, school_id: Optional[str] = None, minutes: Optional[int] = None) -> str:
    """Issue a signed identity token. Used by the identity bridge and by tests."""
    now = datetime.now(tz=timezone.utc)
    payload: dict[str, Any] = {
        "sub": sub,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=minutes or settings.JWT_EXPIRES_MINUTES)).timestamp()),
    }
    if school_id:
        payload["school_id"] = school_id
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
