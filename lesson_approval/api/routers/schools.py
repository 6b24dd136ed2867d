# lesson_approval/api/routers/schools.py
from fastapi import APIRouter, Depends, Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from lesson_approval.api.deps.auth import get_current_actor
from lesson_approval.api.serializers import school_out
from lesson_approval.core.db import get_db
from lesson_approval.core.errors import tenant_mismatch
from lesson_approval.models.school import School
from lesson_approval.schemas.org import DelegationOut, DelegationPatch, SchoolCreate, SchoolOut, SchoolUpdate
from lesson_approval.services.delegation import DelegationStore, set_delegation
from lesson_approval.services.directory import OrgDirectory
from lesson_approval.workflow.actors import ActorSnapshot

router = APIRouter(prefix="/schools", tags=["Schools"])


@router.get("", response_model=list[SchoolOut])
def list_schools(db: Session = Depends(get_db)):
    """Public: the login screen lists schools before anyone is signed in."""
    rows = db.execute(select(School).order_by(School.name)).scalars().all()
    return [school_out(s) for s in rows]


@router.post("", response_model=SchoolOut, status_code=201)
def create_school(
    payload: SchoolCreate,
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return school_out(OrgDirectory(db).create_school(actor, payload.name))


@router.put("/{school_id}", response_model=SchoolOut)
def rename_school(
    school_id: str,
    payload: SchoolUpdate,
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    return school_out(OrgDirectory(db).rename_school(actor, school_id, payload.name))


@router.delete("/{school_id}", status_code=204)
def delete_school(
    school_id: str,
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    OrgDirectory(db).delete_school(actor, school_id)
    return Response(status_code=204)


def _delegation_out(school_id: str, state) -> DelegationOut:
    return DelegationOut(
        school_id=school_id,
        principal_to_vp=state.principal_to_vp,
        team_delegation=dict(state.team_delegation or {}),
    )


@router.get("/{school_id}/delegation", response_model=DelegationOut)
def get_delegation(
    school_id: str,
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    if not actor.is_super_admin and actor.school_id != school_id:
        raise tenant_mismatch()
    OrgDirectory(db).get_school(school_id)
    return _delegation_out(school_id, DelegationStore(db).get(school_id))


@router.put("/{school_id}/delegation", response_model=DelegationOut)
def update_delegation(
    school_id: str,
    payload: DelegationPatch,
    actor: ActorSnapshot = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    state = set_delegation(
        db, actor, school_id,
        principal_to_vp=payload.principal_to_vp,
        team_delegation=payload.team_delegation,
    )
    return _delegation_out(school_id, state)
