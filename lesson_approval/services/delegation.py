# lesson_approval/services/delegation.py
"""
Delegation flags per school.

Flags are plain latest-write-wins values. A flag flipped while another
request is inside ``authorize`` may or may not be seen by that request;
there is no versioning and no retroactive effect on history.
"""
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from lesson_approval.core.errors import Denied, DenyReason, NotFound, tenant_mismatch
from lesson_approval.models.delegation import SchoolDelegation, TeamDelegation
from lesson_approval.models.school import School
from lesson_approval.models.team import Team
from lesson_approval.models.user import UserRole
from lesson_approval.workflow.actors import ActorSnapshot, DelegationState

logger = logging.getLogger(__name__)


class DelegationStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, school_id: str) -> DelegationState:
        row = self.db.get(SchoolDelegation, school_id)
        teams = self.db.execute(
            select(TeamDelegation.team_id, TeamDelegation.enabled).where(TeamDelegation.school_id == school_id)
        ).all()
        return DelegationState(
            principal_to_vp=bool(row.principal_to_vp) if row else False,
            team_delegation={team_id: bool(enabled) for team_id, enabled in teams},
        )

    def set_principal_delegation(self, school_id: str, enabled: bool) -> None:
        self._require_school(school_id)
        row = self.db.get(SchoolDelegation, school_id)
        if row is None:
            row = SchoolDelegation(school_id=school_id, principal_to_vp=enabled)
            self.db.add(row)
        else:
            row.principal_to_vp = enabled
        self.db.flush()
        logger.info("Principal delegation for school %s set to %s", school_id, enabled)

    def set_team_delegation(self, school_id: str, team_id: str, enabled: bool) -> None:
        team = self.db.get(Team, team_id)
        if not team or team.school_id != school_id:
            raise NotFound(f"Team {team_id} not found in school {school_id}")
        row = self.db.get(TeamDelegation, team_id)
        if row is None:
            row = TeamDelegation(team_id=team_id, school_id=school_id, enabled=enabled)
            self.db.add(row)
        else:
            row.enabled = enabled
        self.db.flush()
        logger.info("Team delegation for team %s (school %s) set to %s", team_id, school_id, enabled)

    def _require_school(self, school_id: str) -> None:
        if self.db.get(School, school_id) is None:
            raise NotFound(f"School {school_id} not found")


def set_delegation(
    db: Session,
    actor: ActorSnapshot,
    school_id: str,
    principal_to_vp: Optional[bool] = None,
    team_delegation: Optional[dict[str, bool]] = None,
) -> DelegationState:
    """Apply a partial delegation update. Principal of the school or SuperAdmin only."""
    if not actor.is_super_admin:
        if actor.school_id != school_id:
            raise tenant_mismatch()
        if actor.role != UserRole.PRINCIPAL:
            raise Denied(DenyReason.WRONG_ROLE, "Only the principal may change delegation")

    store = DelegationStore(db)
    if db.get(School, school_id) is None:
        raise NotFound(f"School {school_id} not found")
    if principal_to_vp is not None:
        store.set_principal_delegation(school_id, principal_to_vp)
    for team_id, enabled in (team_delegation or {}).items():
        store.set_team_delegation(school_id, team_id, enabled)
    return store.get(school_id)
