import asyncio
import json

import httpx
import pytest

from lesson_approval.core.errors import Denied, DenyReason
from lesson_approval.services.delegation import DelegationStore
from lesson_approval.services.lesson_plans import LessonPlanService
from lesson_approval.services.reports import ReportService, feedback_hours
from lesson_approval.services.text_generation import TextGenerator


def dashboard(db, actor):
    return ReportService(db).dashboard(actor, LessonPlanService(db).list_visible(actor))


def test_dashboard_team_leader(db, demo, actor):
    assert dashboard(db, actor("cuong")) == {
        "waiting_for_me": 1,
        "waiting_for_institution": 1,
        "total_issued": 0,
        "total_rejected": 0,
    }


def test_dashboard_principal_counts_whole_school(db, demo, actor):
    assert dashboard(db, actor("an")) == {
        "waiting_for_me": 1,
        "waiting_for_institution": 1,
        "total_issued": 1,
        "total_rejected": 1,
    }


def test_dashboard_follows_delegation(db, demo, actor):
    assert dashboard(db, actor("bich"))["waiting_for_me"] == 0
    assert dashboard(db, actor("dung"))["waiting_for_me"] == 0

    store = DelegationStore(db)
    store.set_principal_delegation("THCS-BINHSON", True)
    store.set_team_delegation("THCS-BINHSON", demo.teams["khtn"].id, True)
    assert dashboard(db, actor("bich"))["waiting_for_me"] == 1
    assert dashboard(db, actor("dung"))["waiting_for_me"] == 1


def test_dashboard_teacher_sees_own_numbers(db, demo, actor):
    stats = dashboard(db, actor("lan"))
    assert stats["waiting_for_me"] == 0
    assert stats["total_issued"] == 1
    assert stats["total_rejected"] == 1


def test_team_overview(db, demo, actor):
    overview = ReportService(db).team_overview(actor("cuong"))
    assert overview["team_name"] == "Tổ Khoa học Tự nhiên"
    assert overview["total_teachers"] == 2
    assert overview["total_plans"] == 3
    assert overview["approval_rate"] == 100.0
    assert overview["avg_feedback_hours"] == pytest.approx(24.0)
    assert [r["teacher_name"] for r in overview["teachers"]] == ["Vũ Thị Gấm", "Hoàng Văn Em"]
    assert overview["teachers"][1]["pending"] == 1


def test_team_overview_access(db, demo, actor):
    svc = ReportService(db)
    khtn = demo.teams["khtn"].id
    assert svc.team_overview(actor("an"), khtn)["team_id"] == khtn
    with pytest.raises(Denied) as exc:
        svc.team_overview(actor("em"), khtn)
    assert exc.value.reason is DenyReason.WRONG_ROLE
    with pytest.raises(Denied):
        svc.team_overview(actor("kien"), khtn)
    with pytest.raises(Denied) as exc:
        svc.team_overview(actor("ich"), khtn)
    assert exc.value.is_tenant_mismatch


def test_team_overview_counts_only_visible_plans(db, demo, actor):
    bich = actor("bich")
    khtn = demo.teams["khtn"].id
    listed = [p for p in LessonPlanService(db).list_visible(bich) if p.team_id == khtn]
    overview = ReportService(db).team_overview(bich, khtn)
    assert overview["total_plans"] == len(listed) == 1
    assert all(row["pending"] == 0 for row in overview["teachers"])
    assert sum(row["submitted"] for row in overview["teachers"]) == 1


def test_feedback_uses_latest_submission(db, demo, actor):
    plan = demo.plans["truyenkieu"]
    assert feedback_hours(plan) == pytest.approx(24.0)
    svc = LessonPlanService(db)
    svc.apply_transition(actor("lan"), plan.id, "REVISE_AND_RESUBMIT")
    assert feedback_hours(plan) is None


ROWS = [{"teacher_name": "Vũ Thị Gấm", "submitted": 2, "approved": 1, "rejected": 0, "pending": 0}]


def run(coro):
    return asyncio.run(coro)


def make_generator(handler):
    client = httpx.AsyncClient(base_url="http://ollama.test", transport=httpx.MockTransport(handler))
    return TextGenerator(client=client)


def test_team_analysis_posts_chat_request():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"message": {"role": "assistant", "content": "Tổ hoạt động tốt."}})

    async def go():
        gen = make_generator(handler)
        try:
            return await gen.team_analysis(ROWS)
        finally:
            await gen.aclose()

    assert run(go()) == "Tổ hoạt động tốt."
    assert seen[0]["stream"] is False
    assert "Vũ Thị Gấm: Nộp 2" in seen[0]["messages"][-1]["content"]


def test_team_analysis_retries_then_gives_up():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async def go():
        gen = make_generator(handler)
        try:
            return await gen.team_analysis(ROWS)
        finally:
            await gen.aclose()

    assert run(go()) == ""
    assert len(calls) == 2


def test_team_analysis_does_not_retry_server_errors():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500, json={"error": "model not loaded"})

    async def go():
        gen = make_generator(handler)
        try:
            return await gen.team_analysis(ROWS)
        finally:
            await gen.aclose()

    assert run(go()) == ""
    assert len(calls) == 1
