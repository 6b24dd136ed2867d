# lesson_approval/models/notification.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, DateTime, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from lesson_approval.models.base import Base, new_id, utcnow

class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    school_id: Mapped[str | None] = mapped_column(String(64), ForeignKey("schools.id"), index=True)
    to_user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    plan_id: Mapped[str | None] = mapped_column(String(36))
    body: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="QUEUED")  # QUEUED|SENT|SKIPPED
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
