# lesson_approval/services/directory.py
"""
Org directory: schools, teams, users and team role assignment.

Team roles are denormalized onto User.role/User.team_id and
Team.leader_id/deputy_leader_id. ``assign_team_role`` is the only writer of
either side, so the two never drift.
"""
import logging
import re
import time
import unicodedata
from typing import Literal, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from lesson_approval.core.errors import Denied, DenyReason, NotFound, ValidationError, tenant_mismatch
from lesson_approval.models.delegation import SchoolDelegation, TeamDelegation
from lesson_approval.models.lesson_plan import CommentEntry, HistoryEntry, LessonPlan
from lesson_approval.models.notification import Notification
from lesson_approval.models.school import School
from lesson_approval.models.team import Team
from lesson_approval.models.user import TEAM_ROLES, User, UserRole
from lesson_approval.workflow.actors import ActorSnapshot

logger = logging.getLogger(__name__)

TeamSlot = Literal["leader", "deputy"]

SLOT_ROLE = {
    "leader": UserRole.TEAM_LEADER,
    "deputy": UserRole.DEPUTY_TEAM_LEADER,
}
SLOT_COLUMN = {
    "leader": "leader_id",
    "deputy": "deputy_leader_id",
}
ASSIGNABLE_ROLES = frozenset({UserRole.TEACHER}) | TEAM_ROLES


def slugify(text: str) -> str:
    text = unicodedata.normalize("NFD", str(text).lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"[^\w-]+", "", text, flags=re.ASCII)
    text = re.sub(r"--+", "-", text)
    return text.strip("-")


def school_id_for(name: str) -> str:
    return f"{slugify(name).upper()}-{str(int(time.time() * 1000))[-4:]}"


class OrgDirectory:
    def __init__(self, db: Session):
        self.db = db

    # --- lookups -------------------------------------------------------

    def get_school(self, school_id: str) -> School:
        school = self.db.get(School, school_id)
        if not school:
            raise NotFound(f"School {school_id} not found")
        return school

    def get_team(self, team_id: str) -> Team:
        team = self.db.get(Team, team_id)
        if not team:
            raise NotFound(f"Team {team_id} not found")
        return team

    def get_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFound(f"User {user_id} not found")
        return user

    def actor_for(self, user_id: str) -> ActorSnapshot:
        return ActorSnapshot.from_user(self.get_user(user_id))

    # --- permission helpers ---------------------------------------------

    @staticmethod
    def _require_super_admin(actor: ActorSnapshot) -> None:
        if not actor.is_super_admin:
            raise Denied(DenyReason.WRONG_ROLE, "Super admin access required")

    @staticmethod
    def _require_school_admin(actor: ActorSnapshot, school_id: str) -> None:
        if actor.is_super_admin:
            return
        if actor.school_id != school_id:
            raise tenant_mismatch()
        if actor.role != UserRole.PRINCIPAL:
            raise Denied(DenyReason.WRONG_ROLE, "Principal access required")

    # --- schools ---------------------------------------------------------

    def create_school(self, actor: ActorSnapshot, name: str) -> School:
        self._require_super_admin(actor)
        if not name or not name.strip():
            raise ValidationError("School name is required")
        school = School(id=school_id_for(name.strip()), name=name.strip())
        self.db.add(school)
        self.db.add(SchoolDelegation(school_id=school.id, principal_to_vp=False))
        self.db.flush()
        logger.info("School %s created by %s", school.id, actor.id)
        return school

    def rename_school(self, actor: ActorSnapshot, school_id: str, name: str) -> School:
        self._require_super_admin(actor)
        if not name or not name.strip():
            raise ValidationError("School name is required")
        school = self.get_school(school_id)
        school.name = name.strip()
        self.db.flush()
        return school

    def delete_school(self, actor: ActorSnapshot, school_id: str) -> None:
        """Remove a tenant and everything scoped to it."""
        self._require_super_admin(actor)
        school = self.get_school(school_id)

        plan_ids = select(LessonPlan.id).where(LessonPlan.school_id == school_id)
        self.db.execute(delete(HistoryEntry).where(HistoryEntry.plan_id.in_(plan_ids)))
        self.db.execute(delete(CommentEntry).where(CommentEntry.plan_id.in_(plan_ids)))
        self.db.execute(delete(LessonPlan).where(LessonPlan.school_id == school_id))
        self.db.execute(delete(Notification).where(Notification.school_id == school_id))
        self.db.execute(delete(TeamDelegation).where(TeamDelegation.school_id == school_id))
        self.db.execute(delete(SchoolDelegation).where(SchoolDelegation.school_id == school_id))
        self.db.execute(delete(Team).where(Team.school_id == school_id))
        self.db.execute(delete(User).where(User.school_id == school_id))
        self.db.delete(school)
        self.db.flush()
        self.db.expire_all()
        logger.warning("School %s and all of its data deleted by %s", school_id, actor.id)

    # --- teams -----------------------------------------------------------

    def create_team(self, actor: ActorSnapshot, name: str, school_id: Optional[str] = None) -> Team:
        school_id = school_id or actor.school_id
        if not school_id:
            raise ValidationError("school_id is required")
        self._require_school_admin(actor, school_id)
        self.get_school(school_id)
        if not name or not name.strip():
            raise ValidationError("Team name is required")
        team = Team(name=name.strip(), school_id=school_id)
        self.db.add(team)
        self.db.flush()
        self.db.add(TeamDelegation(team_id=team.id, school_id=school_id, enabled=False))
        self.db.flush()
        return team

    def list_teams(self, actor: ActorSnapshot, school_id: Optional[str] = None) -> list[Team]:
        school_id = school_id or actor.school_id
        if not actor.is_super_admin and school_id != actor.school_id:
            raise tenant_mismatch()
        q = select(Team).order_by(Team.name)
        if school_id:
            q = q.where(Team.school_id == school_id)
        return list(self.db.execute(q).scalars().all())

    def assign_team_role(
        self,
        actor: ActorSnapshot,
        team_id: str,
        slot: TeamSlot,
        user_id: Optional[str],
    ) -> tuple[Team, list[User]]:
        """
        Put ``user_id`` (or nobody) into the team's leader or deputy slot.

        In one flush: the previous holder is demoted to Teacher, any other
        slot the new user holds is vacated, the new user is promoted and
        moved into the team, and the team row is updated.
        """
        if slot not in SLOT_ROLE:
            raise ValidationError(f"Unknown team slot {slot!r}")
        team = self.get_team(team_id)
        self._require_school_admin(actor, team.school_id)

        column = SLOT_COLUMN[slot]
        previous_id = getattr(team, column)
        updated: dict[str, User] = {}

        new_user = None
        if user_id:
            new_user = self.get_user(user_id)
            if new_user.school_id != team.school_id:
                raise ValidationError("User belongs to a different school than the team")
            if UserRole(new_user.role) not in ASSIGNABLE_ROLES:
                raise ValidationError(f"A {UserRole(new_user.role).value} cannot hold a team role")

        if previous_id and previous_id != user_id:
            previous = self.db.get(User, previous_id)
            if previous is not None:
                previous.role = UserRole.TEACHER
                updated[previous.id] = previous

        if new_user is not None:
            held = self.db.execute(
                select(Team).where(
                    Team.school_id == team.school_id,
                    or_(Team.leader_id == new_user.id, Team.deputy_leader_id == new_user.id),
                )
            ).scalars().all()
            for other in held:
                for other_slot, other_column in SLOT_COLUMN.items():
                    if getattr(other, other_column) != new_user.id:
                        continue
                    if other.id == team.id and other_slot == slot:
                        continue
                    setattr(other, other_column, None)
                    logger.info("User %s vacated %s slot of team %s", new_user.id, other_slot, other.id)
            new_user.role = SLOT_ROLE[slot]
            new_user.team_id = team.id
            updated[new_user.id] = new_user

        setattr(team, column, new_user.id if new_user else None)
        self.db.flush()
        logger.info(
            "Team %s %s slot: %s -> %s (by %s)",
            team.id, slot, previous_id, new_user.id if new_user else None, actor.id,
        )
        return team, list(updated.values())

    # --- users -----------------------------------------------------------

    def create_user(
        self,
        actor: ActorSnapshot,
        *,
        name: str,
        email: str,
        school_id: Optional[str] = None,
        team_id: Optional[str] = None,
        zalo_phone: Optional[str] = None,
        drive_folder_link: Optional[str] = None,
    ) -> User:
        """New staff always start as Teachers; team roles come from assign_team_role."""
        school_id = school_id or actor.school_id
        if not school_id:
            raise ValidationError("school_id is required")
        self._require_school_admin(actor, school_id)
        self.get_school(school_id)
        if not name or not name.strip():
            raise ValidationError("User name is required")
        self._require_unique_email(email)
        if team_id:
            self._require_team_in_school(team_id, school_id)

        user = User(
            name=name.strip(),
            email=email,
            role=UserRole.TEACHER,
            school_id=school_id,
            team_id=team_id,
            zalo_phone=(zalo_phone or "").strip() or None,
            drive_folder_link=(drive_folder_link or "").strip() or None,
        )
        self.db.add(user)
        self.db.flush()
        return user

    def update_profile(self, actor: ActorSnapshot, user_id: str, **changes) -> User:
        user = self.get_user(user_id)
        # users edit their own contact details; team membership stays with school admins
        if actor.id != user.id or "team_id" in changes:
            if user.school_id is None:
                self._require_super_admin(actor)
            else:
                self._require_school_admin(actor, user.school_id)

        if "email" in changes and changes["email"] and changes["email"] != user.email:
            self._require_unique_email(changes["email"])
            user.email = changes["email"]
        if changes.get("name") is not None:
            if not changes["name"].strip():
                raise ValidationError("User name is required")
            user.name = changes["name"].strip()
        if "team_id" in changes and changes["team_id"] != user.team_id:
            if UserRole(user.role) in TEAM_ROLES:
                raise ValidationError("Reassign the team role before moving a team leader or deputy")
            if changes["team_id"]:
                self._require_team_in_school(changes["team_id"], user.school_id)
            user.team_id = changes["team_id"]
        for field in ("zalo_phone", "drive_folder_link"):
            if field in changes:
                setattr(user, field, (changes[field] or "").strip() or None)
        self.db.flush()
        return user

    def list_users(self, actor: ActorSnapshot, school_id: Optional[str] = None) -> list[User]:
        school_id = school_id or actor.school_id
        if not actor.is_super_admin and school_id != actor.school_id:
            raise tenant_mismatch()
        q = select(User).order_by(User.name)
        if school_id:
            q = q.where(User.school_id == school_id)
        return list(self.db.execute(q).scalars().all())

    def _require_unique_email(self, email: str) -> None:
        exists = self.db.execute(select(User.id).where(User.email == email)).first()
        if exists:
            raise ValidationError("Email already in use")

    def _require_team_in_school(self, team_id: str, school_id: Optional[str]) -> None:
        team = self.db.get(Team, team_id)
        if not team or team.school_id != school_id:
            raise NotFound(f"Team {team_id} not found in school {school_id}")
