# lesson_approval/models/delegation.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from lesson_approval.models.base import Base, utcnow

class SchoolDelegation(Base):
    __tablename__ = "school_delegations"

    school_id: Mapped[str] = mapped_column(String(64), ForeignKey("schools.id"), primary_key=True)
    principal_to_vp: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

class TeamDelegation(Base):
    __tablename__ = "team_delegations"

    team_id: Mapped[str] = mapped_column(String(36), ForeignKey("teams.id"), primary_key=True)
    school_id: Mapped[str] = mapped_column(String(64), ForeignKey("schools.id"), nullable=False, index=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
