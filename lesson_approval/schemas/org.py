# lesson_approval/schemas/org.py
from typing import Literal
from pydantic import BaseModel, EmailStr
from lesson_approval.models.user import UserRole

class SchoolCreate(BaseModel):
    name: str

class SchoolUpdate(BaseModel):
    name: str

class SchoolOut(BaseModel):
    id: str
    name: str

class TeamCreate(BaseModel):
    name: str
    school_id: str | None = None

class TeamOut(BaseModel):
    id: str
    name: str
    school_id: str
    leader_id: str | None = None
    deputy_leader_id: str | None = None

class AssignRoleIn(BaseModel):
    role_type: Literal["leader", "deputy"]
    user_id: str | None = None

class UserCreate(BaseModel):
    name: str
    email: EmailStr
    school_id: str | None = None
    team_id: str | None = None
    zalo_phone: str | None = None
    drive_folder_link: str | None = None

class UserUpdate(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    team_id: str | None = None
    zalo_phone: str | None = None
    drive_folder_link: str | None = None

class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    role_label: str
    school_id: str | None = None
    team_id: str | None = None
    zalo_phone: str | None = None
    drive_folder_link: str | None = None

class AssignRoleOut(BaseModel):
    updated_team: TeamOut
    updated_users: list[UserOut]

class DelegationPatch(BaseModel):
    principal_to_vp: bool | None = None
    team_delegation: dict[str, bool] | None = None

class DelegationOut(BaseModel):
    school_id: str
    principal_to_vp: bool
    team_delegation: dict[str, bool]
