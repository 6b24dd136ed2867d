# lesson_approval/services/reports.py
"""
Dashboard and team statistics.

Read-only views over plans the caller can already see. Nothing here feeds
back into authorization or status.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from lesson_approval.core.errors import Denied, DenyReason, ValidationError, tenant_mismatch
from lesson_approval.models.lesson_plan import LessonPlan
from lesson_approval.models.team import Team
from lesson_approval.models.user import User, UserRole
from lesson_approval.services.delegation import DelegationStore
from lesson_approval.services.directory import OrgDirectory
from lesson_approval.workflow.actors import ActorSnapshot, DelegationState
from lesson_approval.workflow.guard import can_review_institution, can_review_team
from lesson_approval.workflow.states import HistoryAction, PlanStatus
from lesson_approval.workflow.visibility import list_visible

APPROVED_STATUSES = frozenset({
    PlanStatus.APPROVED_BY_TEAM,
    PlanStatus.APPROVED_BY_INSTITUTION,
    PlanStatus.ISSUED,
})
REJECTED_STATUSES = frozenset({PlanStatus.REJECTED_BY_TEAM, PlanStatus.REJECTED_BY_INSTITUTION})
SUBMIT_ACTIONS = frozenset({HistoryAction.SUBMIT, HistoryAction.RESUBMIT})
TEAM_DECISIONS = frozenset({HistoryAction.TEAM_APPROVE, HistoryAction.TEAM_REJECT})


def dashboard_stats(
    actor: ActorSnapshot,
    visible: list[LessonPlan],
    tenant_plans: list[LessonPlan],
    delegation: DelegationState,
) -> dict:
    waiting_for_me = 0
    if actor.role in (UserRole.TEAM_LEADER, UserRole.DEPUTY_TEAM_LEADER):
        if can_review_team(actor, actor.team_id, delegation):
            waiting_for_me = sum(1 for p in visible if p.status == PlanStatus.SUBMITTED)
    elif can_review_institution(actor, delegation):
        waiting_for_me = sum(1 for p in tenant_plans if p.status == PlanStatus.APPROVED_BY_TEAM)

    scope = visible if actor.role == UserRole.TEACHER else tenant_plans
    if actor.role in (UserRole.TEAM_LEADER, UserRole.DEPUTY_TEAM_LEADER, UserRole.VICE_PRINCIPAL):
        scope = visible
    return {
        "waiting_for_me": waiting_for_me,
        "waiting_for_institution": sum(1 for p in scope if p.status == PlanStatus.APPROVED_BY_TEAM),
        "total_issued": sum(1 for p in scope if p.status == PlanStatus.ISSUED),
        "total_rejected": sum(1 for p in scope if p.status in REJECTED_STATUSES),
    }


def feedback_hours(plan: LessonPlan) -> Optional[float]:
    """Hours from the latest (re)submission to the team decision that followed it."""
    submits = [h for h in plan.history if h.action in SUBMIT_ACTIONS]
    if not submits:
        return None
    last = submits[-1]
    for entry in plan.history:
        if entry.action in TEAM_DECISIONS and entry.timestamp > last.timestamp:
            return (entry.timestamp - last.timestamp).total_seconds() / 3600
    return None


def team_statistics(team: Team, teachers: list[User], plans: list[LessonPlan]) -> dict:
    approved = sum(1 for p in plans if p.status in APPROVED_STATUSES)
    rejected = sum(1 for p in plans if p.status in REJECTED_STATUSES)
    decided = approved + rejected
    durations = [h for h in (feedback_hours(p) for p in plans) if h is not None]

    rows = []
    for teacher in teachers:
        own = [p for p in plans if p.submitted_by_id == teacher.id]
        rows.append({
            "teacher_id": teacher.id,
            "teacher_name": teacher.name,
            "submitted": len(own),
            "approved": sum(1 for p in own if p.status in APPROVED_STATUSES),
            "rejected": sum(1 for p in own if p.status in REJECTED_STATUSES),
            "pending": sum(1 for p in own if p.status == PlanStatus.SUBMITTED),
        })
    rows.sort(key=lambda r: r["submitted"], reverse=True)

    return {
        "team_id": team.id,
        "team_name": team.name,
        "total_teachers": len(teachers),
        "total_plans": len(plans),
        "approval_rate": round(approved / decided * 100, 1) if decided else None,
        "avg_feedback_hours": round(sum(durations) / len(durations), 1) if durations else None,
        "teachers": rows,
    }


class ReportService:
    def __init__(self, db: Session):
        self.db = db

    def _tenant_plans(self, actor: ActorSnapshot) -> list[LessonPlan]:
        q = select(LessonPlan)
        if not actor.is_super_admin:
            q = q.where(LessonPlan.school_id == actor.school_id)
        return list(self.db.execute(q).scalars().all())

    def dashboard(self, actor: ActorSnapshot, visible: list[LessonPlan]) -> dict:
        if actor.is_super_admin or not actor.school_id:
            delegation = DelegationState()
        else:
            delegation = DelegationStore(self.db).get(actor.school_id)
        return dashboard_stats(actor, visible, self._tenant_plans(actor), delegation)

    def team_overview(self, actor: ActorSnapshot, team_id: Optional[str] = None) -> dict:
        team_id = team_id or actor.team_id
        if not team_id:
            raise ValidationError("team_id is required")
        team = OrgDirectory(self.db).get_team(team_id)
        if not actor.is_super_admin:
            if actor.school_id != team.school_id:
                raise tenant_mismatch()
            in_team = actor.role in (UserRole.TEAM_LEADER, UserRole.DEPUTY_TEAM_LEADER) and actor.team_id == team.id
            leadership = actor.role in (UserRole.PRINCIPAL, UserRole.VICE_PRINCIPAL)
            if not (in_team or leadership):
                raise Denied(DenyReason.WRONG_ROLE, "Team overview is for team and school leadership")

        teachers = list(self.db.execute(
            select(User).where(User.team_id == team.id, User.role == UserRole.TEACHER).order_by(User.name)
        ).scalars().all())
        # counts never cover more than the caller could list
        plans = list_visible(actor, self.db.execute(
            select(LessonPlan).where(LessonPlan.team_id == team.id)
        ).scalars().all())
        return team_statistics(team, teachers, plans)
