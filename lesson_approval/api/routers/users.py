# lesson_approval/api/routers/users.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lesson_approval.api.deps.auth import get_current_actor
from lesson_approval.api.deps.locale import get_locale
from lesson_approval.api.serializers import user_out
from lesson_approval.core.db import get_db
from lesson_approval.schemas.org import UserCreate, UserOut, UserUpdate
from lesson_approval.services.directory import OrgDirectory
from lesson_approval.workflow.actors import ActorSnapshot

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserOut)
def me(
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    return user_out(OrgDirectory(db).get_user(actor.id), locale)


@router.get("", response_model=list[UserOut])
def list_users(
    school_id: Optional[str] = Query(None),
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    return [user_out(u, locale) for u in OrgDirectory(db).list_users(actor, school_id)]


@router.post("", response_model=UserOut, status_code=201)
def create_user(
    payload: UserCreate,
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    user = OrgDirectory(db).create_user(actor, **payload.model_dump())
    return user_out(user, locale)


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate,
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    user = OrgDirectory(db).update_profile(actor, user_id, **payload.model_dump(exclude_unset=True))
    return user_out(user, locale)
