# lesson_approval/workflow/visibility.py
from __future__ import annotations
from typing import Iterable, Optional, Protocol, TypeVar

from lesson_approval.models.user import UserRole
from lesson_approval.workflow.actors import ActorSnapshot
from lesson_approval.workflow.states import PlanStatus


class VisiblePlan(Protocol):
    school_id: str
    team_id: Optional[str]
    submitted_by_id: str
    status: PlanStatus


P = TypeVar("P", bound=VisiblePlan)

# the vice principal only sees plans once they have left team review
INSTITUTION_QUEUE = frozenset({
    PlanStatus.APPROVED_BY_TEAM,
    PlanStatus.REJECTED_BY_INSTITUTION,
    PlanStatus.APPROVED_BY_INSTITUTION,
    PlanStatus.ISSUED,
})


def can_view(actor: ActorSnapshot, plan: VisiblePlan) -> bool:
    if actor.role == UserRole.SUPER_ADMIN:
        return True
    if not actor.school_id or actor.school_id != plan.school_id:
        return False
    if actor.role == UserRole.TEACHER:
        return plan.submitted_by_id == actor.id
    if actor.role in (UserRole.TEAM_LEADER, UserRole.DEPUTY_TEAM_LEADER):
        return actor.team_id is not None and plan.team_id == actor.team_id
    if actor.role == UserRole.VICE_PRINCIPAL:
        return PlanStatus(plan.status) in INSTITUTION_QUEUE
    if actor.role == UserRole.PRINCIPAL:
        return True
    return False


def list_visible(actor: ActorSnapshot, plans: Iterable[P]) -> list[P]:
    """Subset of ``plans`` the actor may list. Ordering is preserved."""
    return [p for p in plans if can_view(actor, p)]
