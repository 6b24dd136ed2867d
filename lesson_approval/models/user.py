# lesson_approval/models/user.py
from __future__ import annotations
import enum
from datetime import datetime
from sqlalchemy import String, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column
from lesson_approval.models.base import Base, new_id, utcnow

class UserRole(str, enum.Enum):
    SUPER_ADMIN = "SUPER_ADMIN"
    PRINCIPAL = "PRINCIPAL"
    VICE_PRINCIPAL = "VICE_PRINCIPAL"
    TEAM_LEADER = "TEAM_LEADER"
    DEPUTY_TEAM_LEADER = "DEPUTY_TEAM_LEADER"
    TEACHER = "TEACHER"

# roles that are granted only through team assignment
TEAM_ROLES = frozenset({UserRole.TEAM_LEADER, UserRole.DEPUTY_TEAM_LEADER})

class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, native_enum=False, length=32), nullable=False, default=UserRole.TEACHER
    )
    school_id: Mapped[str | None] = mapped_column(String(64), ForeignKey("schools.id"), index=True)
    team_id: Mapped[str | None] = mapped_column(String(36), index=True)

    # notification address and default cloud-drive folder
    zalo_phone: Mapped[str | None] = mapped_column(String(32))
    drive_folder_link: Mapped[str | None] = mapped_column(String(512))

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
