# lesson_approval/api/routers/teams.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lesson_approval.api.deps.auth import get_current_actor
from lesson_approval.api.deps.locale import get_locale
from lesson_approval.api.serializers import team_out, user_out
from lesson_approval.core.db import get_db
from lesson_approval.schemas.org import AssignRoleIn, AssignRoleOut, TeamCreate, TeamOut
from lesson_approval.services.directory import OrgDirectory
from lesson_approval.workflow.actors import ActorSnapshot

router = APIRouter(prefix="/teams", tags=["Teams"])


@router.get("", response_model=list[TeamOut])
def list_teams(
    school_id: Optional[str] = Query(None),
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return [team_out(t) for t in OrgDirectory(db).list_teams(actor, school_id)]


@router.post("", response_model=TeamOut, status_code=201)
def create_team(
    payload: TeamCreate,
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return team_out(OrgDirectory(db).create_team(actor, payload.name, payload.school_id))


@router.post("/{team_id}/assign-role", response_model=AssignRoleOut)
def assign_role(
    team_id: str,
    payload: AssignRoleIn,
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    team, users = OrgDirectory(db).assign_team_role(actor, team_id, payload.role_type, payload.user_id)
    return AssignRoleOut(updated_team=team_out(team), updated_users=[user_out(u, locale) for u in users])
