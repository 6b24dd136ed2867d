import threading

import pytest

from lesson_approval.core.errors import Denied, DenyReason, InvalidTransition, NotFound, ValidationError
from lesson_approval.models.lesson_plan import AppendOnlyViolation, LessonPlan
from lesson_approval.models.user import UserRole
from lesson_approval.services.delegation import DelegationStore
from lesson_approval.services.lesson_plans import LessonPlanService, PlanFilters
from lesson_approval.services.notifications import PlanNotifier
from lesson_approval.workflow.states import HistoryAction, PlanStatus, Transition


class RecordingSender:
    def __init__(self):
        self.sent = []

    def send(self, user, message):
        self.sent.append((user.id, message))
        return True


def test_draft_then_submit(plans, actor, pdf):
    em = actor("em")
    plan = plans.create(em, {"title": "Bài dạy: Quang hợp", "subject": "Khoa học tự nhiên"}, pdf, as_draft=True)
    assert plan.status is PlanStatus.DRAFT
    assert [h.action for h in plan.history] == [HistoryAction.CREATE_DRAFT]

    plan = plans.apply_transition(em, plan.id, Transition.SUBMIT)
    assert plan.status is PlanStatus.SUBMITTED
    assert [h.action for h in plan.history] == [HistoryAction.CREATE_DRAFT, HistoryAction.SUBMIT]
    assert plan.history[-1].actor_id == em.id
    assert plan.history[-1].actor_role is UserRole.TEACHER


def test_direct_submit_has_single_entry(plans, actor, pdf):
    plan = plans.create(actor("em"), {"title": "Bài 2"}, pdf, as_draft=False)
    assert plan.status is PlanStatus.SUBMITTED
    assert [h.action for h in plan.history] == [HistoryAction.SUBMIT]
    assert plan.team_id == actor("em").team_id


def test_only_teachers_with_a_title_create(plans, actor, pdf):
    with pytest.raises(Denied) as exc:
        plans.create(actor("cuong"), {"title": "X"}, pdf, as_draft=False)
    assert exc.value.reason is DenyReason.WRONG_ROLE
    with pytest.raises(ValidationError):
        plans.create(actor("em"), {"title": "   "}, pdf, as_draft=False)


def test_team_reject_needs_reason(db, demo, plans, actor):
    pid = demo.plans["oxihoa"].id
    with pytest.raises(ValidationError):
        plans.apply_transition(actor("cuong"), pid, Transition.TEAM_REJECT, reason="")
    assert db.get(LessonPlan, pid).status is PlanStatus.SUBMITTED

    plan = plans.apply_transition(actor("cuong"), pid, Transition.TEAM_REJECT, reason="Needs revision")
    assert plan.status is PlanStatus.REJECTED_BY_TEAM
    assert plan.history[-1].action is HistoryAction.TEAM_REJECT
    assert plan.history[-1].reason == "Needs revision"
    assert len(plan.history) == 2


def test_deputy_approves_once_delegated(db, demo, plans, actor):
    pid = demo.plans["oxihoa"].id
    with pytest.raises(Denied) as exc:
        plans.apply_transition(actor("dung"), pid, Transition.TEAM_APPROVE)
    assert exc.value.reason is DenyReason.NOT_DELEGATED

    DelegationStore(db).set_team_delegation("THCS-BINHSON", demo.teams["khtn"].id, True)
    plan = plans.apply_transition(actor("dung"), pid, Transition.TEAM_APPROVE)
    assert plan.status is PlanStatus.APPROVED_BY_TEAM
    assert plan.history[-1].actor_role is UserRole.DEPUTY_TEAM_LEADER


def test_vice_principal_denied_until_principal_acts(demo, plans, actor):
    pid = demo.plans["hoanthanh"].id
    with pytest.raises(Denied) as exc:
        plans.apply_transition(actor("bich"), pid, Transition.INSTITUTION_APPROVE)
    assert exc.value.reason is DenyReason.NOT_DELEGATED

    plan = plans.apply_transition(actor("an"), pid, Transition.INSTITUTION_APPROVE)
    assert plan.status is PlanStatus.APPROVED_BY_INSTITUTION
    assert plan.final_approver_id is None


def test_other_school_is_always_denied(demo, plans, actor):
    with pytest.raises(Denied) as exc:
        plans.apply_transition(actor("na"), demo.plans["oxihoa"].id, Transition.RECALL)
    assert exc.value.is_tenant_mismatch
    with pytest.raises(Denied) as exc:
        plans.apply_transition(actor("ich"), demo.plans["hoanthanh"].id, Transition.INSTITUTION_APPROVE)
    assert exc.value.is_tenant_mismatch


def test_unknown_plan(plans, actor, demo):
    with pytest.raises(NotFound):
        plans.apply_transition(actor("em"), "missing", Transition.SUBMIT)


def test_transition_not_in_table(demo, plans, actor):
    with pytest.raises(InvalidTransition):
        plans.apply_transition(actor("gam"), demo.plans["scratch"].id, Transition.RECALL)


def test_recall_and_resubmit_cycle(demo, plans, actor):
    lan = actor("lan")
    pid = demo.plans["truyenkieu"].id
    plan = plans.apply_transition(lan, pid, Transition.REVISE_AND_RESUBMIT)
    assert plan.status is PlanStatus.SUBMITTED
    assert plan.history[-1].action is HistoryAction.RESUBMIT
    plan = plans.apply_transition(lan, pid, Transition.RECALL)
    assert plan.status is PlanStatus.DRAFT
    assert [h.position for h in plan.history] == list(range(len(plan.history)))


def test_history_is_ordered_and_canonical(demo, plans, actor):
    pid = demo.plans["hoanthanh"].id
    plans.apply_transition(actor("cuong"), pid, Transition.TEAM_CANCEL)
    plans.apply_transition(actor("cuong"), pid, Transition.TEAM_APPROVE)
    plans.apply_transition(actor("an"), pid, Transition.INSTITUTION_REJECT, reason="Thiếu phần đánh giá")
    plan = plans.apply_transition(actor("gam"), pid, Transition.REVISE_AND_RESUBMIT)

    stamps = [h.timestamp for h in plan.history]
    assert stamps == sorted(stamps)
    assert all(isinstance(h.action, HistoryAction) for h in plan.history)
    assert [h.position for h in plan.history] == list(range(6))


def test_issued_plan_keeps_final_approver(demo, db):
    plan = db.get(LessonPlan, demo.plans["lichsu"].id)
    assert plan.status is PlanStatus.ISSUED
    assert plan.final_approver_id == demo.users["an"].id
    assert plan.history[-1].action is HistoryAction.ISSUE


def test_concurrent_transitions_one_wins(demo, session_factory, actor):
    pid = demo.plans["oxihoa"].id
    cuong = actor("cuong")
    first, second = session_factory(), session_factory()
    try:
        # both requests have read the plan in SUBMITTED
        first.get(LessonPlan, pid)
        second.get(LessonPlan, pid)

        LessonPlanService(first).apply_transition(cuong, pid, Transition.TEAM_APPROVE)
        first.commit()
        with pytest.raises(InvalidTransition):
            LessonPlanService(second).apply_transition(cuong, pid, Transition.TEAM_APPROVE)
        second.rollback()

        plan = second.get(LessonPlan, pid)
        assert plan.status is PlanStatus.APPROVED_BY_TEAM
        assert [h.action for h in plan.history] == [HistoryAction.SUBMIT, HistoryAction.TEAM_APPROVE]
    finally:
        first.close()
        second.close()


def test_racing_reviewers_past_the_guard(demo, session_factory, actor):
    pid = demo.plans["oxihoa"].id
    cuong = actor("cuong")
    barrier = threading.Barrier(2)
    outcomes = []

    def review():
        session = session_factory()
        try:
            session.get(LessonPlan, pid)
            barrier.wait()
            LessonPlanService(session).apply_transition(cuong, pid, Transition.TEAM_APPROVE)
            session.commit()
            outcomes.append("ok")
        except InvalidTransition:
            session.rollback()
            outcomes.append("conflict")
        except Exception as e:
            session.rollback()
            outcomes.append(type(e).__name__)
        finally:
            session.close()

    workers = [threading.Thread(target=review) for _ in range(2)]
    for w in workers:
        w.start()
    for w in workers:
        w.join(timeout=30)

    assert sorted(outcomes) == ["conflict", "ok"]
    check = session_factory()
    try:
        plan = check.get(LessonPlan, pid)
        assert plan.status is PlanStatus.APPROVED_BY_TEAM
        assert [h.action for h in plan.history] == [HistoryAction.SUBMIT, HistoryAction.TEAM_APPROVE]
    finally:
        check.close()


def test_stale_version_is_rejected(demo, session_factory, actor):
    pid = demo.plans["oxihoa"].id
    first, second = session_factory(), session_factory()
    try:
        stale = second.get(LessonPlan, pid)
        LessonPlanService(first).apply_transition(actor("cuong"), pid, Transition.TEAM_REJECT, reason="Sửa lại")
        first.commit()

        stale.status = PlanStatus.APPROVED_BY_TEAM
        with pytest.raises(InvalidTransition):
            LessonPlanService(second)._flush_or_conflict(stale)
        second.rollback()
    finally:
        first.close()
        second.close()


def test_history_rows_are_append_only(db, demo):
    entry = db.get(LessonPlan, demo.plans["truyenkieu"].id).history[-1]
    entry.reason = "rewritten"
    with pytest.raises(AppendOnlyViolation):
        db.flush()
    db.rollback()

    entry = db.get(LessonPlan, demo.plans["truyenkieu"].id).history[0]
    db.delete(entry)
    with pytest.raises(AppendOnlyViolation):
        db.flush()
    db.rollback()


def test_edit_details(demo, plans, actor, pdf):
    gam = actor("gam")
    pid = demo.plans["scratch"].id
    plan = plans.edit_details(gam, pid, {"title": "Scratch nâng cao", "class_name": "6B"}, pdf)
    assert plan.title == "Scratch nâng cao"
    assert plan.class_name == "6B"
    assert plan.file_name == pdf.name
    assert plan.history[-1].action is HistoryAction.UPDATE_DRAFT

    with pytest.raises(Denied) as exc:
        plans.edit_details(actor("em"), pid, {"title": "mine"})
    assert exc.value.reason is DenyReason.NOT_OWNER
    with pytest.raises(ValidationError):
        plans.edit_details(gam, pid, {"title": " "})
    with pytest.raises(InvalidTransition):
        plans.edit_details(gam, demo.plans["hoanthanh"].id, {"title": "too late"})


def test_comments(demo, plans, actor):
    pid = demo.plans["oxihoa"].id
    c = plans.add_comment(actor("cuong"), pid, "  Bổ sung thí nghiệm minh họa.  ")
    assert c.text == "Bổ sung thí nghiệm minh họa."
    assert c.author_role is UserRole.TEAM_LEADER

    with pytest.raises(ValidationError):
        plans.add_comment(actor("cuong"), pid, "   ")
    with pytest.raises(Denied):
        plans.add_comment(actor("kien"), pid, "không cùng tổ")
    with pytest.raises(Denied) as exc:
        plans.add_comment(actor("muoi"), pid, "khác trường")
    assert exc.value.is_tenant_mismatch


def test_get_respects_visibility(demo, plans, actor):
    assert plans.get(actor("an"), demo.plans["oxihoa"].id).title.startswith("Bài dạy")
    with pytest.raises(Denied):
        plans.get(actor("bich"), demo.plans["oxihoa"].id)


def test_list_visible_with_filters(demo, plans, actor):
    an = actor("an")
    assert len(plans.list_visible(an)) == 5
    rejected = plans.list_visible(an, PlanFilters(status=PlanStatus.REJECTED_BY_TEAM))
    assert [p.id for p in rejected] == [demo.plans["truyenkieu"].id]
    found = plans.list_visible(an, PlanFilters(search="kiều"))
    assert [p.id for p in found] == [demo.plans["truyenkieu"].id]
    team = plans.list_visible(an, PlanFilters(team_id=demo.teams["khtn"].id))
    assert len(team) == 3
    assert len(plans.list_visible(actor("admin"))) == 6


def test_transitions_notify_reviewers_and_owner(db, demo, actor, pdf):
    sender = RecordingSender()
    svc = LessonPlanService(db, notifier=PlanNotifier(db, sender))

    plan = svc.create(actor("em"), {"title": "Bài 3"}, pdf, as_draft=False)
    assert [to for to, _ in sender.sent] == [demo.users["cuong"].id]

    sender.sent.clear()
    DelegationStore(db).set_principal_delegation("THCS-BINHSON", True)
    svc.apply_transition(actor("cuong"), plan.id, Transition.TEAM_APPROVE)
    recipients = {to for to, _ in sender.sent}
    assert recipients == {demo.users[k].id for k in ("em", "an", "bich")}
    assert all("Bài 3" in msg for _, msg in sender.sent)
