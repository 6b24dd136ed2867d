# lesson_approval/api/routers/notifications.py
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from lesson_approval.api.deps.auth import get_current_actor
from lesson_approval.api.serializers import notification_out
from lesson_approval.core.db import get_db
from lesson_approval.models.notification import Notification
from lesson_approval.schemas.notification import NotificationOut
from lesson_approval.workflow.actors import ActorSnapshot

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=list[NotificationOut])
def list_notifications(
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    rows = db.execute(
        select(Notification)
        .where(Notification.to_user_id == actor.id)
        .order_by(Notification.created_at.desc())
    ).scalars().all()
    return [notification_out(r) for r in rows]
