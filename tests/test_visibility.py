from dataclasses import dataclass
from typing import Optional

from lesson_approval.models.user import UserRole
from lesson_approval.workflow.actors import ActorSnapshot
from lesson_approval.workflow.states import PlanStatus
from lesson_approval.workflow.visibility import can_view, list_visible


@dataclass
class Plan:
    id: str
    school_id: str
    team_id: Optional[str]
    submitted_by_id: str
    status: PlanStatus


PLANS = [
    Plan("p1", "A", "t1", "em", PlanStatus.SUBMITTED),
    Plan("p2", "A", "t1", "gam", PlanStatus.APPROVED_BY_TEAM),
    Plan("p3", "A", "t2", "lan", PlanStatus.REJECTED_BY_TEAM),
    Plan("p4", "A", "t2", "lan", PlanStatus.ISSUED),
    Plan("p5", "A", "t1", "gam", PlanStatus.DRAFT),
    Plan("p6", "B", "t3", "na", PlanStatus.SUBMITTED),
]


def ids(actor):
    return [p.id for p in list_visible(actor, PLANS)]


def test_teacher_sees_own_plans():
    assert ids(ActorSnapshot("gam", "Gam", UserRole.TEACHER, "A", "t1")) == ["p2", "p5"]


def test_team_roles_see_their_team():
    assert ids(ActorSnapshot("cuong", "Cuong", UserRole.TEAM_LEADER, "A", "t1")) == ["p1", "p2", "p5"]
    assert ids(ActorSnapshot("dung", "Dung", UserRole.DEPUTY_TEAM_LEADER, "A", "t1")) == ["p1", "p2", "p5"]


def test_team_role_without_team_sees_nothing():
    assert ids(ActorSnapshot("x", "X", UserRole.TEAM_LEADER, "A", None)) == []


def test_vice_principal_sees_institution_queue():
    assert ids(ActorSnapshot("bich", "Bich", UserRole.VICE_PRINCIPAL, "A")) == ["p2", "p4"]


def test_principal_sees_whole_tenant_only():
    assert ids(ActorSnapshot("an", "An", UserRole.PRINCIPAL, "A")) == ["p1", "p2", "p3", "p4", "p5"]


def test_super_admin_sees_everything():
    assert ids(ActorSnapshot("admin", "Admin", UserRole.SUPER_ADMIN)) == [p.id for p in PLANS]


def test_other_tenant_is_hidden_even_with_matching_team_id():
    leader = ActorSnapshot("muoi", "Muoi", UserRole.TEAM_LEADER, "B", "t1")
    assert ids(leader) == []


def test_principal_visibility_covers_every_team_leader():
    principal = ActorSnapshot("an", "An", UserRole.PRINCIPAL, "A")
    seen = set(ids(principal))
    for team in ("t1", "t2"):
        leader = ActorSnapshot(f"lead-{team}", "L", UserRole.TEAM_LEADER, "A", team)
        assert set(ids(leader)) <= seen


def test_can_view_matches_list():
    teacher = ActorSnapshot("lan", "Lan", UserRole.TEACHER, "A", "t2")
    assert can_view(teacher, PLANS[2])
    assert not can_view(teacher, PLANS[0])
