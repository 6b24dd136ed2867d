# lesson_approval/workflow/guard.py
"""
Authorization guard for lesson plan transitions.

``authorize`` is the only place that decides whether an actor may move a
plan. It is pure: the caller resolves the actor from the org directory and
reads the school's delegation flags, then passes both in.

Rules, in order:
  1. tenant scope (SuperAdmin passes, but never qualifies below)
  2. owner-only transitions: the submitting Teacher
  3. team tier: the team's leader, or its deputy while delegated
  4. institution tier: the principal, or the vice principal while delegated
  5. reject transitions carry a non-empty reason
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Protocol

from lesson_approval.core.errors import DenyReason, Denied, ValidationError
from lesson_approval.models.user import UserRole
from lesson_approval.workflow.actors import ActorSnapshot, DelegationState
from lesson_approval.workflow.states import (
    INSTITUTION_TRANSITIONS,
    OWNER_TRANSITIONS,
    REASON_REQUIRED,
    TEAM_TRANSITIONS,
    Transition,
)


class PlanRef(Protocol):
    school_id: str
    team_id: Optional[str]
    submitted_by_id: str


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None
    message: str = ""

    @classmethod
    def allow(cls) -> "Decision":
        return cls(True)

    @classmethod
    def deny(cls, reason: DenyReason, message: str) -> "Decision":
        return cls(False, reason, message)

    def raise_for_denial(self) -> None:
        if self.allowed:
            return
        if self.reason == DenyReason.MISSING_REASON:
            raise ValidationError(self.message)
        raise Denied(self.reason, self.message)


def _check_tenant(actor: ActorSnapshot, plan: PlanRef) -> Optional[Decision]:
    if actor.is_super_admin:
        return None
    if not actor.school_id or actor.school_id != plan.school_id:
        return Decision.deny(DenyReason.TENANT_MISMATCH, "Lesson plan belongs to a different school")
    return None


def _check_owner(actor: ActorSnapshot, plan: PlanRef) -> Decision:
    if actor.role != UserRole.TEACHER:
        return Decision.deny(DenyReason.WRONG_ROLE, "Only the submitting teacher may do this")
    if actor.id != plan.submitted_by_id:
        return Decision.deny(DenyReason.NOT_OWNER, "Only the submitting teacher may do this")
    return Decision.allow()


def _check_team_tier(actor: ActorSnapshot, plan: PlanRef, delegation: DelegationState) -> Decision:
    if actor.role not in (UserRole.TEAM_LEADER, UserRole.DEPUTY_TEAM_LEADER):
        return Decision.deny(DenyReason.WRONG_ROLE, "Only the team leader may review at team level")
    if not actor.team_id or actor.team_id != plan.team_id:
        return Decision.deny(DenyReason.NOT_TEAM_MEMBER, "Lesson plan belongs to another team")
    if actor.role == UserRole.DEPUTY_TEAM_LEADER and not delegation.team_delegated(plan.team_id):
        return Decision.deny(DenyReason.NOT_DELEGATED, "Team approval is not delegated to the deputy leader")
    return Decision.allow()


def _check_institution_tier(actor: ActorSnapshot, delegation: DelegationState) -> Decision:
    if actor.role == UserRole.PRINCIPAL:
        return Decision.allow()
    if actor.role == UserRole.VICE_PRINCIPAL:
        if delegation.principal_to_vp:
            return Decision.allow()
        return Decision.deny(DenyReason.NOT_DELEGATED, "Approval is not delegated to the vice principal")
    return Decision.deny(DenyReason.WRONG_ROLE, "Only the principal may review at school level")


def authorize(
    actor: ActorSnapshot,
    plan: PlanRef,
    transition: Transition,
    delegation: DelegationState,
    reason: Optional[str] = None,
) -> Decision:
    transition = Transition(transition)

    denied = _check_tenant(actor, plan)
    if denied:
        return denied

    if transition in OWNER_TRANSITIONS:
        decision = _check_owner(actor, plan)
    elif transition in TEAM_TRANSITIONS:
        decision = _check_team_tier(actor, plan, delegation)
    elif transition in INSTITUTION_TRANSITIONS:
        decision = _check_institution_tier(actor, delegation)
    else:
        decision = Decision.deny(DenyReason.WRONG_ROLE, f"Unknown transition {transition.value}")
    if not decision.allowed:
        return decision

    if transition in REASON_REQUIRED and not (reason or "").strip():
        return Decision.deny(DenyReason.MISSING_REASON, "A reason is required to reject a lesson plan")
    return Decision.allow()


def authorize_edit(actor: ActorSnapshot, plan: PlanRef) -> Decision:
    """Detail edits follow the owner-only rule."""
    return _check_tenant(actor, plan) or _check_owner(actor, plan)


def can_review_team(actor: ActorSnapshot, team_id: Optional[str], delegation: DelegationState) -> bool:
    if actor.role == UserRole.TEAM_LEADER:
        return bool(team_id) and actor.team_id == team_id
    if actor.role == UserRole.DEPUTY_TEAM_LEADER:
        return bool(team_id) and actor.team_id == team_id and delegation.team_delegated(team_id)
    return False


def can_review_institution(actor: ActorSnapshot, delegation: DelegationState) -> bool:
    return actor.role == UserRole.PRINCIPAL or (
        actor.role == UserRole.VICE_PRINCIPAL and delegation.principal_to_vp
    )
