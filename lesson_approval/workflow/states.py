# lesson_approval/workflow/states.py
"""
Approval state machine for lesson plans.

Pure: maps (current status, requested transition) to the next status and the
history action recorded for it. Who may request a transition is decided by
``workflow.guard`` before this module runs.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Optional

from lesson_approval.core.errors import InvalidTransition


class PlanStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    REJECTED_BY_TEAM = "REJECTED_BY_TEAM"
    APPROVED_BY_TEAM = "APPROVED_BY_TEAM"
    APPROVED_BY_INSTITUTION = "APPROVED_BY_INSTITUTION"
    REJECTED_BY_INSTITUTION = "REJECTED_BY_INSTITUTION"
    ISSUED = "ISSUED"


class Transition(str, enum.Enum):
    SUBMIT = "SUBMIT"
    TEAM_APPROVE = "TEAM_APPROVE"
    TEAM_REJECT = "TEAM_REJECT"
    RECALL = "RECALL"
    TEAM_CANCEL = "TEAM_CANCEL"
    INSTITUTION_APPROVE = "INSTITUTION_APPROVE"
    INSTITUTION_REJECT = "INSTITUTION_REJECT"
    INSTITUTION_CANCEL = "INSTITUTION_CANCEL"
    REVISE_AND_RESUBMIT = "REVISE_AND_RESUBMIT"


class HistoryAction(str, enum.Enum):
    CREATE_DRAFT = "CREATE_DRAFT"
    UPDATE_DRAFT = "UPDATE_DRAFT"
    SUBMIT = "SUBMIT"
    RESUBMIT = "RESUBMIT"
    TEAM_APPROVE = "TEAM_APPROVE"
    TEAM_REJECT = "TEAM_REJECT"
    TEAM_CANCEL = "TEAM_CANCEL"
    INSTITUTION_APPROVE = "INSTITUTION_APPROVE"
    INSTITUTION_REJECT = "INSTITUTION_REJECT"
    INSTITUTION_CANCEL = "INSTITUTION_CANCEL"
    RECALL = "RECALL"
    ISSUE = "ISSUE"


OWNER_TRANSITIONS = frozenset({
    Transition.SUBMIT,
    Transition.RECALL,
    Transition.REVISE_AND_RESUBMIT,
})
TEAM_TRANSITIONS = frozenset({
    Transition.TEAM_APPROVE,
    Transition.TEAM_REJECT,
    Transition.TEAM_CANCEL,
})
INSTITUTION_TRANSITIONS = frozenset({
    Transition.INSTITUTION_APPROVE,
    Transition.INSTITUTION_REJECT,
    Transition.INSTITUTION_CANCEL,
})
REASON_REQUIRED = frozenset({Transition.TEAM_REJECT, Transition.INSTITUTION_REJECT})

# statuses in which the owner may still change details and file
EDITABLE_STATUSES = frozenset({
    PlanStatus.DRAFT,
    PlanStatus.REJECTED_BY_TEAM,
    PlanStatus.REJECTED_BY_INSTITUTION,
})


@dataclass(frozen=True)
class Step:
    next_status: PlanStatus
    action: HistoryAction


S = PlanStatus
T = Transition
A = HistoryAction

TRANSITIONS: dict[tuple[PlanStatus, Transition], Step] = {
    (S.DRAFT, T.SUBMIT): Step(S.SUBMITTED, A.SUBMIT),
    (S.SUBMITTED, T.TEAM_APPROVE): Step(S.APPROVED_BY_TEAM, A.TEAM_APPROVE),
    (S.SUBMITTED, T.TEAM_REJECT): Step(S.REJECTED_BY_TEAM, A.TEAM_REJECT),
    (S.SUBMITTED, T.RECALL): Step(S.DRAFT, A.RECALL),
    (S.APPROVED_BY_TEAM, T.TEAM_CANCEL): Step(S.SUBMITTED, A.TEAM_CANCEL),
    (S.APPROVED_BY_TEAM, T.RECALL): Step(S.DRAFT, A.RECALL),
    (S.APPROVED_BY_TEAM, T.INSTITUTION_APPROVE): Step(S.APPROVED_BY_INSTITUTION, A.INSTITUTION_APPROVE),
    (S.APPROVED_BY_TEAM, T.INSTITUTION_REJECT): Step(S.REJECTED_BY_INSTITUTION, A.INSTITUTION_REJECT),
    (S.APPROVED_BY_INSTITUTION, T.INSTITUTION_CANCEL): Step(S.APPROVED_BY_TEAM, A.INSTITUTION_CANCEL),
    (S.REJECTED_BY_TEAM, T.REVISE_AND_RESUBMIT): Step(S.SUBMITTED, A.RESUBMIT),
    (S.REJECTED_BY_INSTITUTION, T.REVISE_AND_RESUBMIT): Step(S.SUBMITTED, A.RESUBMIT),
}

del S, T, A


def advance(
    current: PlanStatus,
    transition: Transition,
    expected_to: Optional[PlanStatus] = None,
) -> Step:
    """
    Compute the step for ``transition`` out of ``current``.

    ``expected_to`` lets a caller pin the destination it believes it is
    moving to; a mismatch is rejected rather than reinterpreted.
    """
    step = TRANSITIONS.get((PlanStatus(current), Transition(transition)))
    if step is None:
        raise InvalidTransition(
            f"Transition {Transition(transition).value} is not allowed from status {PlanStatus(current).value}"
        )
    if expected_to is not None and PlanStatus(expected_to) != step.next_status:
        raise InvalidTransition(
            f"Transition {step.action.value} from {PlanStatus(current).value} leads to "
            f"{step.next_status.value}, not {PlanStatus(expected_to).value}"
        )
    return step


def available_transitions(current: PlanStatus) -> list[Transition]:
    return [t for (s, t) in TRANSITIONS if s == current]
