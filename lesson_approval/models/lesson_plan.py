# lesson_approval/models/lesson_plan.py
from __future__ import annotations
from datetime import datetime
from sqlalchemy import (
    String, Integer, DateTime, Text, Boolean, ForeignKey, Index, UniqueConstraint,
    Enum as SAEnum, event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from lesson_approval.models.base import Base, new_id, utcnow
from lesson_approval.models.user import UserRole
from lesson_approval.workflow.states import HistoryAction, PlanStatus


class LessonPlan(Base):
    __tablename__ = "lesson_plans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    school_id: Mapped[str] = mapped_column(String(64), ForeignKey("schools.id"), nullable=False, index=True)
    team_id: Mapped[str | None] = mapped_column(String(36), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[PlanStatus] = mapped_column(
        SAEnum(PlanStatus, native_enum=False, length=32), nullable=False, default=PlanStatus.DRAFT
    )

    # submitter snapshot, taken when the plan is created
    submitted_by_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    submitted_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    submitted_by_role: Mapped[UserRole] = mapped_column(SAEnum(UserRole, native_enum=False, length=32), nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    subject: Mapped[str | None] = mapped_column(String(128))
    grade: Mapped[str | None] = mapped_column(String(64))
    class_name: Mapped[str | None] = mapped_column(String(64))
    notes: Mapped[str | None] = mapped_column(Text)

    # file reference only; the binary lives with the storage collaborator
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_is_external: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    drive_folder_id: Mapped[str | None] = mapped_column(String(255))
    drive_folder_name: Mapped[str | None] = mapped_column(String(512))

    final_approver_id: Mapped[str | None] = mapped_column(String(36))
    final_approver_name: Mapped[str | None] = mapped_column(String(255))
    final_approver_role: Mapped[UserRole | None] = mapped_column(SAEnum(UserRole, native_enum=False, length=32))
    final_approved_at: Mapped[datetime | None] = mapped_column(DateTime)

    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    history: Mapped[list["HistoryEntry"]] = relationship(
        "HistoryEntry",
        back_populates="plan",
        order_by="HistoryEntry.position",
        cascade="save-update, merge",
        passive_deletes=True,
    )
    comments: Mapped[list["CommentEntry"]] = relationship(
        "CommentEntry",
        back_populates="plan",
        order_by="CommentEntry.created_at",
        cascade="save-update, merge",
        passive_deletes=True,
    )

    # every UPDATE is conditional on the version read; a concurrent writer loses with StaleDataError
    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_lesson_plans_school_status", "school_id", "status"),
    )


class HistoryEntry(Base):
    """Audit record of one lifecycle event. Insert-only."""
    __tablename__ = "lesson_plan_history"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    plan_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("lesson_plans.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    action: Mapped[HistoryAction] = mapped_column(SAEnum(HistoryAction, native_enum=False, length=32), nullable=False)
    actor_id: Mapped[str] = mapped_column(String(36), nullable=False)
    actor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_role: Mapped[UserRole] = mapped_column(SAEnum(UserRole, native_enum=False, length=32), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    reason: Mapped[str | None] = mapped_column(Text)

    plan: Mapped[LessonPlan] = relationship("LessonPlan", back_populates="history")

    __table_args__ = (
        UniqueConstraint("plan_id", "position", name="uq_history_plan_position"),
    )


class CommentEntry(Base):
    __tablename__ = "lesson_plan_comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    plan_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("lesson_plans.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[str] = mapped_column(String(36), nullable=False)
    author_name: Mapped[str] = mapped_column(String(255), nullable=False)
    author_role: Mapped[UserRole] = mapped_column(SAEnum(UserRole, native_enum=False, length=32), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)

    plan: Mapped[LessonPlan] = relationship("LessonPlan", back_populates="comments")


class AppendOnlyViolation(RuntimeError):
    pass


def _refuse_mutation(mapper, connection, target):
    raise AppendOnlyViolation(f"{type(target).__name__} rows are append-only")


for _cls in (HistoryEntry, CommentEntry):
    event.listen(_cls, "before_update", _refuse_mutation)
    event.listen(_cls, "before_delete", _refuse_mutation)
