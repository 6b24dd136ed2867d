# lesson_approval/api/routers/lesson_plans.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lesson_approval.api.deps.auth import get_current_actor
from lesson_approval.api.deps.locale import get_locale
from lesson_approval.api.serializers import comment_out, plan_out
from lesson_approval.core.db import get_db
from lesson_approval.schemas.lesson_plan import (
    CommentIn, CommentOut, FileRefIn, LessonPlanCreate, LessonPlanOut, LessonPlanUpdate, TransitionIn,
)
from lesson_approval.services.lesson_plans import LessonPlanService, PlanFilters
from lesson_approval.services.notifications import PlanNotifier
from lesson_approval.services.storage import FileRef, external_link
from lesson_approval.workflow.actors import ActorSnapshot
from lesson_approval.workflow.states import PlanStatus

router = APIRouter(prefix="/lesson-plans", tags=["Lesson Plans"])


def get_plan_service(db: Session = Depends(get_db)) -> LessonPlanService:
    return LessonPlanService(db, notifier=PlanNotifier(db))


def _file_ref(file: FileRefIn) -> FileRef:
    if file.is_external_link:
        return external_link(file.name, file.url)
    return FileRef(name=file.name, url=file.url)


@router.get("", response_model=list[LessonPlanOut])
def list_lesson_plans(
    search: Optional[str] = Query(None),
    status: Optional[PlanStatus] = Query(None),
    subject: Optional[str] = Query(None),
    team_id: Optional[str] = Query(None),
    actor: ActorSnapshot = Depends(get_current_actor),
    svc: LessonPlanService = Depends(get_plan_service),
    locale: str = Depends(get_locale),
):
    filters = PlanFilters(search=search, status=status, subject=subject, team_id=team_id)
    return [plan_out(p, locale, include_timeline=False) for p in svc.list_visible(actor, filters)]


@router.get("/{plan_id}", response_model=LessonPlanOut)
def get_lesson_plan(
    plan_id: str,
    actor: ActorSnapshot = Depends(get_current_actor),
    svc: LessonPlanService = Depends(get_plan_service),
    locale: str = Depends(get_locale),
):
    return plan_out(svc.get(actor, plan_id), locale)


@router.post("", response_model=LessonPlanOut, status_code=201)
def create_lesson_plan(
    payload: LessonPlanCreate,
    actor: ActorSnapshot = Depends(get_current_actor),
    svc: LessonPlanService = Depends(get_plan_service),
    locale: str = Depends(get_locale),
):
    plan = svc.create(actor, payload.details.model_dump(), _file_ref(payload.file), as_draft=payload.is_draft)
    return plan_out(plan, locale)


@router.put("/{plan_id}", response_model=LessonPlanOut)
def edit_lesson_plan(
    plan_id: str,
    payload: LessonPlanUpdate,
    actor: ActorSnapshot = Depends(get_current_actor),
    svc: LessonPlanService = Depends(get_plan_service),
    locale: str = Depends(get_locale),
):
    file_ref = _file_ref(payload.file) if payload.file is not None else None
    plan = svc.edit_details(actor, plan_id, payload.details.model_dump(exclude_unset=True), file_ref)
    return plan_out(plan, locale)


@router.post("/{plan_id}/transitions", response_model=LessonPlanOut)
def apply_transition(
    plan_id: str,
    payload: TransitionIn,
    actor: ActorSnapshot = Depends(get_current_actor),
    svc: LessonPlanService = Depends(get_plan_service),
    locale: str = Depends(get_locale),
):
    plan = svc.apply_transition(
        actor, plan_id, payload.transition, reason=payload.reason, expected_to=payload.expected_status
    )
    return plan_out(plan, locale)


@router.post("/{plan_id}/comments", response_model=CommentOut, status_code=201)
def add_comment(
    plan_id: str,
    payload: CommentIn,
    actor: ActorSnapshot = Depends(get_current_actor),
    svc: LessonPlanService = Depends(get_plan_service),
    locale: str = Depends(get_locale),
):
    return comment_out(svc.add_comment(actor, plan_id, payload.text), locale)
