# lesson_approval/schemas/lesson_plan.py
from datetime import datetime
from pydantic import BaseModel, Field
from lesson_approval.models.user import UserRole
from lesson_approval.workflow.states import HistoryAction, PlanStatus, Transition

class FileRefIn(BaseModel):
    name: str
    url: str
    is_external_link: bool = False

class DriveFolderIn(BaseModel):
    id: str
    name: str

class LessonPlanDetails(BaseModel):
    title: str
    subject: str | None = None
    grade: str | None = None
    class_name: str | None = Field(default=None, alias="class")
    notes: str | None = None
    drive_folder: DriveFolderIn | None = None

    model_config = {"populate_by_name": True}

class LessonPlanDetailsPatch(BaseModel):
    title: str | None = None
    subject: str | None = None
    grade: str | None = None
    class_name: str | None = Field(default=None, alias="class")
    notes: str | None = None
    drive_folder: DriveFolderIn | None = None

    model_config = {"populate_by_name": True}

class LessonPlanCreate(BaseModel):
    details: LessonPlanDetails
    file: FileRefIn
    is_draft: bool = False

class LessonPlanUpdate(BaseModel):
    details: LessonPlanDetailsPatch
    file: FileRefIn | None = None

class TransitionIn(BaseModel):
    transition: Transition
    reason: str | None = None
    # optional guard against acting on a stale view of the plan
    expected_status: PlanStatus | None = None

class CommentIn(BaseModel):
    text: str

class ActorOut(BaseModel):
    id: str
    name: str
    role: UserRole
    role_label: str

class HistoryEntryOut(BaseModel):
    action: HistoryAction
    action_label: str
    actor: ActorOut
    timestamp: datetime
    reason: str | None = None

class CommentOut(BaseModel):
    id: str
    author: ActorOut
    timestamp: datetime
    text: str

class FileRefOut(BaseModel):
    name: str
    url: str
    is_external_link: bool

class LessonPlanOut(BaseModel):
    id: str
    title: str
    school_id: str
    team_id: str | None
    status: PlanStatus
    status_label: str
    submitted_by: ActorOut
    submitted_at: datetime
    subject: str | None = None
    grade: str | None = None
    class_name: str | None = None
    notes: str | None = None
    file: FileRefOut
    drive_folder: DriveFolderIn | None = None
    final_approver: ActorOut | None = None
    final_approved_at: datetime | None = None
    available_transitions: list[Transition] = []
    history: list[HistoryEntryOut] = []
    comments: list[CommentOut] = []
