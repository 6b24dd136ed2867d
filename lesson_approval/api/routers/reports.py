# lesson_approval/api/routers/reports.py
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lesson_approval.api.deps.auth import get_current_actor
from lesson_approval.core.db import get_db
from lesson_approval.schemas.report import DashboardStatsOut, TeamOverviewOut
from lesson_approval.services.lesson_plans import LessonPlanService
from lesson_approval.services.reports import ReportService
from lesson_approval.services.text_generation import TextGenerator
from lesson_approval.workflow.actors import ActorSnapshot

router = APIRouter(prefix="/reports", tags=["Reports"])


async def get_text_generator() -> AsyncIterator[TextGenerator]:
    gen = TextGenerator()
    try:
        yield gen
    finally:
        await gen.aclose()


@router.get("/dashboard", response_model=DashboardStatsOut)
def dashboard(
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    visible = LessonPlanService(db).list_visible(actor)
    return DashboardStatsOut(**ReportService(db).dashboard(actor, visible))


@router.get("/team-overview", response_model=TeamOverviewOut)
async def team_overview(
    team_id: Optional[str] = Query(None),
    analyze: bool = Query(False),
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
    generator: TextGenerator = Depends(get_text_generator),
):
    overview = ReportService(db).team_overview(actor, team_id)
    if analyze:
        overview["analysis"] = await generator.team_analysis(overview["teachers"]) or None
    return TeamOverviewOut(**overview)
