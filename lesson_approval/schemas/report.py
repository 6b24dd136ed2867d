# lesson_approval/schemas/report.py
from pydantic import BaseModel

class DashboardStatsOut(BaseModel):
    waiting_for_me: int
    waiting_for_institution: int
    total_issued: int
    total_rejected: int

class TeacherStatsOut(BaseModel):
    teacher_id: str
    teacher_name: str
    submitted: int
    approved: int
    rejected: int
    pending: int

class TeamOverviewOut(BaseModel):
    team_id: str
    team_name: str
    total_teachers: int
    total_plans: int
    approval_rate: float | None
    avg_feedback_hours: float | None
    teachers: list[TeacherStatsOut]
    analysis: str | None = None
