# lesson_approval/services/lesson_plans.py
"""
Lesson plan document store.

Every mutation goes: load the plan under a row lock -> guard -> state
machine -> append history -> flush. The mapper's version column makes the
UPDATE conditional on the version that was read, so of two writers racing on
the same plan exactly one succeeds; the other gets InvalidTransition and
leaves no history behind. The surrounding db_session commits before the
caller is answered.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from lesson_approval.core.errors import Denied, DenyReason, InvalidTransition, NotFound, ValidationError
from lesson_approval.models.base import utcnow
from lesson_approval.models.lesson_plan import CommentEntry, HistoryEntry, LessonPlan
from lesson_approval.models.user import UserRole
from lesson_approval.services.delegation import DelegationStore
from lesson_approval.services.notifications import PlanNotifier
from lesson_approval.services.storage import FileRef
from lesson_approval.workflow.actors import ActorSnapshot
from lesson_approval.workflow.guard import authorize, authorize_edit
from lesson_approval.workflow.states import (
    EDITABLE_STATUSES, HistoryAction, PlanStatus, Transition, advance,
)
from lesson_approval.workflow.visibility import can_view, list_visible

logger = logging.getLogger(__name__)

DETAIL_FIELDS = ("title", "subject", "grade", "class_name", "notes")


@dataclass
class PlanFilters:
    search: Optional[str] = None
    status: Optional[PlanStatus] = None
    subject: Optional[str] = None
    team_id: Optional[str] = None

    def matches(self, plan: LessonPlan) -> bool:
        if self.search:
            term = self.search.lower()
            haystack = (plan.title or "", plan.subject or "", plan.submitted_by_name or "")
            if not any(term in h.lower() for h in haystack):
                return False
        if self.status and plan.status != self.status:
            return False
        if self.subject and plan.subject != self.subject:
            return False
        if self.team_id and plan.team_id != self.team_id:
            return False
        return True


class LessonPlanService:
    def __init__(self, db: Session, notifier: Optional[PlanNotifier] = None):
        self.db = db
        self.notifier = notifier

    # --- reads -----------------------------------------------------------

    def _load(self, plan_id: str, *, for_update: bool = False) -> LessonPlan:
        q = select(LessonPlan).where(LessonPlan.id == plan_id)
        if for_update:
            # FOR UPDATE on PostgreSQL; ignored by SQLite, where the version column still decides
            q = q.with_for_update().execution_options(populate_existing=True)
        plan = self.db.execute(q).scalar_one_or_none()
        if plan is None:
            raise NotFound(f"Lesson plan {plan_id} not found")
        return plan

    def get(self, actor: ActorSnapshot, plan_id: str) -> LessonPlan:
        plan = self._load(plan_id)
        self._require_visible(actor, plan)
        return plan

    def list_visible(self, actor: ActorSnapshot, filters: Optional[PlanFilters] = None) -> list[LessonPlan]:
        q = select(LessonPlan).order_by(LessonPlan.submitted_at.desc())
        if not actor.is_super_admin:
            if not actor.school_id:
                return []
            q = q.where(LessonPlan.school_id == actor.school_id)
        plans = list_visible(actor, self.db.execute(q).scalars().all())
        if filters:
            plans = [p for p in plans if filters.matches(p)]
        return plans

    # --- writes ----------------------------------------------------------

    def create(
        self,
        actor: ActorSnapshot,
        details: dict[str, Any],
        file_ref: FileRef,
        as_draft: bool,
    ) -> LessonPlan:
        if actor.role != UserRole.TEACHER:
            raise Denied(DenyReason.WRONG_ROLE, "Only teachers submit lesson plans")
        if not actor.school_id or not actor.team_id:
            raise ValidationError("Teacher must belong to a team before submitting lesson plans")
        title = (details.get("title") or "").strip()
        if not title:
            raise ValidationError("Title is required")
        if not file_ref or not file_ref.name or not file_ref.url:
            raise ValidationError("File is required")

        now = utcnow()
        plan = LessonPlan(
            school_id=actor.school_id,
            team_id=actor.team_id,
            title=title,
            status=PlanStatus.DRAFT if as_draft else PlanStatus.SUBMITTED,
            submitted_by_id=actor.id,
            submitted_by_name=actor.name,
            submitted_by_role=actor.role,
            submitted_at=now,
            subject=details.get("subject"),
            grade=details.get("grade"),
            class_name=details.get("class_name"),
            notes=details.get("notes"),
            file_name=file_ref.name,
            file_url=file_ref.url,
            file_is_external=file_ref.is_external_link,
        )
        self._apply_drive_folder(plan, details.get("drive_folder"))
        self.db.add(plan)
        action = HistoryAction.CREATE_DRAFT if as_draft else HistoryAction.SUBMIT
        self._append_history(plan, action, actor, at=now)
        self.db.flush()
        logger.info("Lesson plan %s created by %s as %s", plan.id, actor.id, plan.status.value)
        if not as_draft:
            self._notify(plan, action, actor)
        return plan

    def apply_transition(
        self,
        actor: ActorSnapshot,
        plan_id: str,
        transition: Transition,
        reason: Optional[str] = None,
        expected_to: Optional[PlanStatus] = None,
    ) -> LessonPlan:
        transition = Transition(transition)
        plan = self._load(plan_id, for_update=True)

        delegation = DelegationStore(self.db).get(plan.school_id)
        decision = authorize(actor, plan, transition, delegation, reason)
        if not decision.allowed:
            logger.warning(
                "Denied %s on plan %s for %s: %s", transition.value, plan.id, actor.id, decision.reason.value
            )
        decision.raise_for_denial()

        step = advance(plan.status, transition, expected_to)
        now = utcnow()
        plan.status = step.next_status
        if step.action in (HistoryAction.SUBMIT, HistoryAction.RESUBMIT):
            plan.submitted_at = now
        if step.next_status == PlanStatus.ISSUED:
            plan.final_approver_id = actor.id
            plan.final_approver_name = actor.name
            plan.final_approver_role = actor.role
            plan.final_approved_at = now
        self._append_history(plan, step.action, actor, at=now, reason=(reason or "").strip() or None)
        self._flush_or_conflict(plan)

        logger.info(
            "Plan %s: %s by %s -> %s", plan.id, step.action.value, actor.id, step.next_status.value
        )
        self._notify(plan, step.action, actor, reason)
        return plan

    def add_comment(self, actor: ActorSnapshot, plan_id: str, text: str) -> CommentEntry:
        text = (text or "").strip()
        if not text:
            raise ValidationError("Comment text cannot be empty")
        plan = self._load(plan_id, for_update=True)
        self._require_visible(actor, plan)
        comment = CommentEntry(
            author_id=actor.id,
            author_name=actor.name,
            author_role=actor.role,
            text=text,
            created_at=utcnow(),
        )
        plan.comments.append(comment)
        self.db.flush()
        return comment

    def edit_details(
        self,
        actor: ActorSnapshot,
        plan_id: str,
        patch: dict[str, Any],
        file_ref: Optional[FileRef] = None,
    ) -> LessonPlan:
        plan = self._load(plan_id, for_update=True)
        authorize_edit(actor, plan).raise_for_denial()
        if plan.status not in EDITABLE_STATUSES:
            raise InvalidTransition(f"Lesson plan cannot be edited while {plan.status.value}")

        if "title" in patch and patch["title"] is not None:
            if not patch["title"].strip():
                raise ValidationError("Title is required")
            patch = {**patch, "title": patch["title"].strip()}
        for field in DETAIL_FIELDS:
            if field in patch and patch[field] is not None:
                setattr(plan, field, patch[field])
        if "drive_folder" in patch and patch["drive_folder"] is not None:
            self._apply_drive_folder(plan, patch["drive_folder"])
        if file_ref is not None:
            plan.file_name = file_ref.name
            plan.file_url = file_ref.url
            plan.file_is_external = file_ref.is_external_link

        self._append_history(plan, HistoryAction.UPDATE_DRAFT, actor, at=utcnow())
        plan.updated_at = utcnow()
        self._flush_or_conflict(plan)
        return plan

    # --- helpers ---------------------------------------------------------

    def _append_history(
        self,
        plan: LessonPlan,
        action: HistoryAction,
        actor: ActorSnapshot,
        *,
        at: datetime,
        reason: Optional[str] = None,
    ) -> HistoryEntry:
        last = plan.history[-1] if plan.history else None
        # timestamps never go backwards, even if the clock does
        if last is not None and last.timestamp > at:
            at = last.timestamp
        entry = HistoryEntry(
            position=len(plan.history),
            action=action,
            actor_id=actor.id,
            actor_name=actor.name,
            actor_role=actor.role,
            timestamp=at,
            reason=reason,
        )
        plan.history.append(entry)
        return entry

    def _flush_or_conflict(self, plan: LessonPlan) -> None:
        # the instance is expired once the flush fails
        plan_id = plan.id
        try:
            self.db.flush()
        except (StaleDataError, IntegrityError) as e:
            logger.warning("Concurrent update on plan %s rejected", plan_id)
            raise InvalidTransition("Lesson plan was changed by someone else; reload and try again") from e

    def _require_visible(self, actor: ActorSnapshot, plan: LessonPlan) -> None:
        if not actor.is_super_admin and actor.school_id != plan.school_id:
            raise Denied(DenyReason.TENANT_MISMATCH, "Lesson plan belongs to a different school")
        if not can_view(actor, plan):
            raise Denied(DenyReason.WRONG_ROLE, "You cannot view this lesson plan")

    @staticmethod
    def _apply_drive_folder(plan: LessonPlan, folder: Optional[dict]) -> None:
        if folder:
            plan.drive_folder_id = folder.get("id")
            plan.drive_folder_name = folder.get("name")

    def _notify(self, plan: LessonPlan, action: HistoryAction, actor: ActorSnapshot,
                reason: Optional[str] = None) -> None:
        if self.notifier is not None:
            self.notifier.plan_event(plan, action, actor, reason)
