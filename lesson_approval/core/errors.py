# lesson_approval/core/errors.py
"""
Error taxonomy of the approval workflow.

Every error is recoverable by the caller. Routers never catch these: the
handlers registered in ``create_app`` turn them into HTTP responses.
"""
import enum


class DenyReason(str, enum.Enum):
    TENANT_MISMATCH = "TENANT_MISMATCH"
    WRONG_ROLE = "WRONG_ROLE"
    NOT_TEAM_MEMBER = "NOT_TEAM_MEMBER"
    NOT_DELEGATED = "NOT_DELEGATED"
    NOT_OWNER = "NOT_OWNER"
    MISSING_REASON = "MISSING_REASON"


class WorkflowError(Exception):
    status_code = 400
    code = "WORKFLOW_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(WorkflowError):
    status_code = 404
    code = "NOT_FOUND"


class Denied(WorkflowError):
    status_code = 403
    code = "DENIED"

    def __init__(self, reason: DenyReason, message: str):
        super().__init__(message)
        self.reason = reason

    @property
    def is_tenant_mismatch(self) -> bool:
        return self.reason == DenyReason.TENANT_MISMATCH


class ValidationError(WorkflowError):
    status_code = 422
    code = "VALIDATION_ERROR"


class InvalidTransition(WorkflowError):
    status_code = 409
    code = "INVALID_TRANSITION"


def tenant_mismatch(message: str = "Actor belongs to a different school") -> Denied:
    return Denied(DenyReason.TENANT_MISMATCH, message)
