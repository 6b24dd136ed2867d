# lesson_approval/workflow/actors.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from lesson_approval.models.user import UserRole


@dataclass(frozen=True)
class ActorSnapshot:
    """The verified caller as the org directory sees them right now."""
    id: str
    name: str
    role: UserRole
    school_id: Optional[str] = None
    team_id: Optional[str] = None

    @classmethod
    def from_user(cls, user) -> "ActorSnapshot":
        return cls(
            id=user.id,
            name=user.name,
            role=UserRole(user.role),
            school_id=user.school_id,
            team_id=user.team_id,
        )

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "role": self.role.value}


@dataclass
class DelegationState:
    principal_to_vp: bool = False
    team_delegation: dict[str, bool] | None = None

    def team_delegated(self, team_id: Optional[str]) -> bool:
        if not team_id or not self.team_delegation:
            return False
        return bool(self.team_delegation.get(team_id, False))
