# lesson_approval/api/deps/auth.py
import logging

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from lesson_approval.core.db import get_db
from lesson_approval.core.security import decode_token
from lesson_approval.models.user import User
from lesson_approval.workflow.actors import ActorSnapshot

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Decode the bearer JWT and load the user it names.

    The user row is read on every request so a role change made by
    assign_team_role applies to the very next call.
    """
    if credentials is None:
        raise _unauthorized("Missing bearer token")
    try:
        claims = decode_token(credentials.credentials)
    except jwt.PyJWTError as e:
        logger.info("Rejected token: %s", e)
        raise _unauthorized("Invalid token")

    user_id = claims.get("sub")
    if not user_id:
        raise _unauthorized("Token missing user ID")

    user = db.get(User, str(user_id))
    if not user:
        raise _unauthorized("User not found")
    return user


def get_current_actor(user: User = Depends(get_current_user)) -> ActorSnapshot:
    return ActorSnapshot.from_user(user)
