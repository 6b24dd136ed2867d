# lesson_approval/workflow/labels.py
"""Display text for statuses, history actions and roles. Never persisted."""
from typing import Optional

from lesson_approval.core.config import settings
from lesson_approval.models.user import UserRole
from lesson_approval.workflow.states import HistoryAction, PlanStatus

STATUS_LABELS = {
    "vi": {
        PlanStatus.DRAFT: "Bản nháp",
        PlanStatus.SUBMITTED: "Chờ Tổ trưởng duyệt",
        PlanStatus.REJECTED_BY_TEAM: "Tổ trưởng từ chối",
        PlanStatus.APPROVED_BY_TEAM: "Chờ Hiệu trưởng duyệt",
        PlanStatus.APPROVED_BY_INSTITUTION: "Đã phê duyệt",
        PlanStatus.REJECTED_BY_INSTITUTION: "Hiệu trưởng từ chối",
        PlanStatus.ISSUED: "Đã ban hành",
    },
    "en": {
        PlanStatus.DRAFT: "Draft",
        PlanStatus.SUBMITTED: "Awaiting team review",
        PlanStatus.REJECTED_BY_TEAM: "Rejected by team leader",
        PlanStatus.APPROVED_BY_TEAM: "Awaiting principal review",
        PlanStatus.APPROVED_BY_INSTITUTION: "Approved",
        PlanStatus.REJECTED_BY_INSTITUTION: "Rejected by principal",
        PlanStatus.ISSUED: "Issued",
    },
}

ACTION_LABELS = {
    "vi": {
        HistoryAction.CREATE_DRAFT: "Tạo bản nháp",
        HistoryAction.UPDATE_DRAFT: "Cập nhật bản nháp",
        HistoryAction.SUBMIT: "Nộp Kế hoạch bài dạy",
        HistoryAction.RESUBMIT: "Nộp lại Kế hoạch bài dạy",
        HistoryAction.TEAM_APPROVE: "Tổ trưởng đã duyệt",
        HistoryAction.TEAM_REJECT: "Tổ trưởng từ chối",
        HistoryAction.TEAM_CANCEL: "Tổ trưởng hủy duyệt",
        HistoryAction.INSTITUTION_APPROVE: "Hiệu trưởng đã duyệt",
        HistoryAction.INSTITUTION_REJECT: "Hiệu trưởng từ chối",
        HistoryAction.INSTITUTION_CANCEL: "Hiệu trưởng hủy duyệt",
        HistoryAction.RECALL: "Thu hồi để chỉnh sửa",
        HistoryAction.ISSUE: "Đã ban hành",
    },
    "en": {
        HistoryAction.CREATE_DRAFT: "Draft created",
        HistoryAction.UPDATE_DRAFT: "Draft updated",
        HistoryAction.SUBMIT: "Submitted",
        HistoryAction.RESUBMIT: "Resubmitted",
        HistoryAction.TEAM_APPROVE: "Approved by team leader",
        HistoryAction.TEAM_REJECT: "Rejected by team leader",
        HistoryAction.TEAM_CANCEL: "Team approval cancelled",
        HistoryAction.INSTITUTION_APPROVE: "Approved by principal",
        HistoryAction.INSTITUTION_REJECT: "Rejected by principal",
        HistoryAction.INSTITUTION_CANCEL: "Principal approval cancelled",
        HistoryAction.RECALL: "Recalled for editing",
        HistoryAction.ISSUE: "Issued",
    },
}

ROLE_LABELS = {
    "vi": {
        UserRole.SUPER_ADMIN: "Quản trị viên toàn cầu",
        UserRole.PRINCIPAL: "Hiệu trưởng",
        UserRole.VICE_PRINCIPAL: "Phó Hiệu trưởng",
        UserRole.TEAM_LEADER: "Tổ trưởng Chuyên môn",
        UserRole.DEPUTY_TEAM_LEADER: "Tổ phó Chuyên môn",
        UserRole.TEACHER: "Giáo viên",
    },
    "en": {
        UserRole.SUPER_ADMIN: "Global administrator",
        UserRole.PRINCIPAL: "Principal",
        UserRole.VICE_PRINCIPAL: "Vice principal",
        UserRole.TEAM_LEADER: "Team leader",
        UserRole.DEPUTY_TEAM_LEADER: "Deputy team leader",
        UserRole.TEACHER: "Teacher",
    },
}

SUPPORTED_LOCALES = frozenset(STATUS_LABELS)


def resolve_locale(locale: Optional[str]) -> str:
    if locale:
        short = locale.split(",")[0].split("-")[0].strip().lower()
        if short in SUPPORTED_LOCALES:
            return short
    return settings.DEFAULT_LOCALE if settings.DEFAULT_LOCALE in SUPPORTED_LOCALES else "en"


def status_label(status: PlanStatus, locale: Optional[str] = None) -> str:
    return STATUS_LABELS[resolve_locale(locale)][PlanStatus(status)]


def action_label(action: HistoryAction, locale: Optional[str] = None) -> str:
    return ACTION_LABELS[resolve_locale(locale)][HistoryAction(action)]


def role_label(role: UserRole, locale: Optional[str] = None) -> str:
    return ROLE_LABELS[resolve_locale(locale)][UserRole(role)]
