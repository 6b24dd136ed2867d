# lesson_approval/models/team.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from lesson_approval.models.base import Base, new_id, utcnow

class Team(Base):
    """
    A subject team within a school.

    leader_id / deputy_leader_id mirror User.role and User.team_id; only
    OrgDirectory.assign_team_role writes them.
    """
    __tablename__ = "teams"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    school_id: Mapped[str] = mapped_column(String(64), ForeignKey("schools.id"), nullable=False, index=True)
    leader_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    deputy_leader_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
