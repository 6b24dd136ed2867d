from dataclasses import dataclass
from typing import Optional

import pytest

from lesson_approval.core.errors import Denied, DenyReason, ValidationError
from lesson_approval.models.user import UserRole
from lesson_approval.workflow.actors import ActorSnapshot, DelegationState
from lesson_approval.workflow.guard import (
    authorize, authorize_edit, can_review_institution, can_review_team,
)
from lesson_approval.workflow.states import Transition


@dataclass
class Plan:
    school_id: str = "A"
    team_id: Optional[str] = "t1"
    submitted_by_id: str = "teacher"


TEACHER = ActorSnapshot("teacher", "Em", UserRole.TEACHER, "A", "t1")
OTHER_TEACHER = ActorSnapshot("teacher2", "Gam", UserRole.TEACHER, "A", "t1")
LEADER = ActorSnapshot("leader", "Cuong", UserRole.TEAM_LEADER, "A", "t1")
OTHER_LEADER = ActorSnapshot("leader2", "Kien", UserRole.TEAM_LEADER, "A", "t2")
DEPUTY = ActorSnapshot("deputy", "Dung", UserRole.DEPUTY_TEAM_LEADER, "A", "t1")
PRINCIPAL = ActorSnapshot("principal", "An", UserRole.PRINCIPAL, "A")
VICE = ActorSnapshot("vice", "Bich", UserRole.VICE_PRINCIPAL, "A")
ADMIN = ActorSnapshot("admin", "Admin", UserRole.SUPER_ADMIN)

NO_DELEGATION = DelegationState()


def test_owner_may_submit_and_recall():
    for t in (Transition.SUBMIT, Transition.RECALL, Transition.REVISE_AND_RESUBMIT):
        assert authorize(TEACHER, Plan(), t, NO_DELEGATION).allowed


def test_other_teacher_is_not_owner():
    d = authorize(OTHER_TEACHER, Plan(), Transition.RECALL, NO_DELEGATION)
    assert d.reason is DenyReason.NOT_OWNER


def test_leader_cannot_recall():
    d = authorize(LEADER, Plan(), Transition.RECALL, NO_DELEGATION)
    assert d.reason is DenyReason.WRONG_ROLE


def test_team_tier():
    assert authorize(LEADER, Plan(), Transition.TEAM_APPROVE, NO_DELEGATION).allowed
    assert authorize(OTHER_LEADER, Plan(), Transition.TEAM_APPROVE, NO_DELEGATION).reason is DenyReason.NOT_TEAM_MEMBER
    assert authorize(PRINCIPAL, Plan(), Transition.TEAM_APPROVE, NO_DELEGATION).reason is DenyReason.WRONG_ROLE


def test_deputy_needs_team_delegation():
    d = authorize(DEPUTY, Plan(), Transition.TEAM_APPROVE, NO_DELEGATION)
    assert d.reason is DenyReason.NOT_DELEGATED
    delegated = DelegationState(team_delegation={"t1": True})
    assert authorize(DEPUTY, Plan(), Transition.TEAM_APPROVE, delegated).allowed
    # delegation on another team does not count
    assert not authorize(DEPUTY, Plan(), Transition.TEAM_APPROVE, DelegationState(team_delegation={"t2": True})).allowed


def test_delegation_is_additive():
    off = DelegationState(principal_to_vp=False, team_delegation={"t1": False})
    assert authorize(LEADER, Plan(), Transition.TEAM_CANCEL, off).allowed
    assert authorize(PRINCIPAL, Plan(), Transition.INSTITUTION_APPROVE, off).allowed
    on = DelegationState(principal_to_vp=True, team_delegation={"t1": True})
    assert authorize(LEADER, Plan(), Transition.TEAM_CANCEL, on).allowed
    assert authorize(PRINCIPAL, Plan(), Transition.INSTITUTION_APPROVE, on).allowed


def test_vice_principal_needs_delegation():
    d = authorize(VICE, Plan(), Transition.INSTITUTION_APPROVE, NO_DELEGATION)
    assert d.reason is DenyReason.NOT_DELEGATED
    assert authorize(VICE, Plan(), Transition.INSTITUTION_APPROVE, DelegationState(principal_to_vp=True)).allowed


def test_reject_requires_reason():
    for reason in (None, "", "   "):
        d = authorize(LEADER, Plan(), Transition.TEAM_REJECT, NO_DELEGATION, reason)
        assert d.reason is DenyReason.MISSING_REASON
        with pytest.raises(ValidationError):
            d.raise_for_denial()
    assert authorize(PRINCIPAL, Plan(), Transition.INSTITUTION_REJECT, NO_DELEGATION, "Thiếu mục tiêu").allowed


def test_role_checked_before_reason():
    d = authorize(TEACHER, Plan(), Transition.TEAM_REJECT, NO_DELEGATION, "")
    assert d.reason is DenyReason.WRONG_ROLE


def test_tenant_mismatch_wins_over_matching_role():
    foreign = Plan(school_id="B")
    for who, t in ((TEACHER, Transition.RECALL), (LEADER, Transition.TEAM_APPROVE),
                   (PRINCIPAL, Transition.INSTITUTION_APPROVE)):
        d = authorize(who, foreign, t, DelegationState(principal_to_vp=True), "x")
        assert d.reason is DenyReason.TENANT_MISMATCH
        with pytest.raises(Denied) as exc:
            d.raise_for_denial()
        assert exc.value.is_tenant_mismatch


def test_super_admin_passes_tenant_but_never_approves():
    for t in Transition:
        d = authorize(ADMIN, Plan(), t, DelegationState(principal_to_vp=True, team_delegation={"t1": True}), "x")
        assert not d.allowed
        assert d.reason is not DenyReason.TENANT_MISMATCH


def test_authorize_edit_is_owner_only():
    assert authorize_edit(TEACHER, Plan()).allowed
    assert authorize_edit(OTHER_TEACHER, Plan()).reason is DenyReason.NOT_OWNER
    assert authorize_edit(TEACHER, Plan(school_id="B")).reason is DenyReason.TENANT_MISMATCH


def test_review_helpers():
    delegated = DelegationState(principal_to_vp=True, team_delegation={"t1": True})
    assert can_review_team(LEADER, "t1", NO_DELEGATION)
    assert not can_review_team(DEPUTY, "t1", NO_DELEGATION)
    assert can_review_team(DEPUTY, "t1", delegated)
    assert not can_review_team(LEADER, "t2", delegated)
    assert can_review_institution(PRINCIPAL, NO_DELEGATION)
    assert not can_review_institution(VICE, NO_DELEGATION)
    assert can_review_institution(VICE, delegated)
