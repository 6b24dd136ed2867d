# lesson_approval/services/notifications.py
import logging
from typing import Iterable, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from lesson_approval.models.delegation import SchoolDelegation, TeamDelegation
from lesson_approval.models.lesson_plan import LessonPlan
from lesson_approval.models.notification import Notification
from lesson_approval.models.team import Team
from lesson_approval.models.user import User, UserRole
from lesson_approval.workflow.actors import ActorSnapshot
from lesson_approval.workflow.labels import action_label, status_label
from lesson_approval.workflow.states import HistoryAction

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    def send(self, user: User, message: str) -> bool: ...


class ZaloLogSender:
    """Stand-in for the Zalo gateway: logs the message for users with a phone on file."""

    def send(self, user: User, message: str) -> bool:
        if not user.zalo_phone:
            logger.warning("Skipping notification: user %s has no Zalo phone configured", user.id)
            return False
        logger.info("[ZALO] to %s (%s): %s", user.zalo_phone, user.name, message)
        return True


def queue_notification(
    db: Session,
    *,
    school_id: Optional[str],
    to_user_id: str,
    body: str,
    plan_id: Optional[str] = None,
) -> Notification:
    n = Notification(
        school_id=school_id,
        to_user_id=to_user_id,
        plan_id=plan_id,
        body=body,
        status="QUEUED",
    )
    db.add(n)
    return n


def deliver_if_possible(db: Session, n: Notification, sender: NotificationSender) -> None:
    user = db.get(User, n.to_user_id)
    if user is None:
        n.status = "SKIPPED"
        return
    try:
        delivered = sender.send(user, n.body)
    except Exception:
        # delivery is best effort; the workflow change is already decided
        logger.exception("Notification %s could not be delivered", n.id)
        delivered = False
    n.status = "SENT" if delivered else "SKIPPED"


class PlanNotifier:
    """Works out who hears about a lesson plan event and queues the messages."""

    OWNER_EVENTS = frozenset({
        HistoryAction.TEAM_APPROVE,
        HistoryAction.TEAM_REJECT,
        HistoryAction.TEAM_CANCEL,
        HistoryAction.INSTITUTION_APPROVE,
        HistoryAction.INSTITUTION_REJECT,
        HistoryAction.INSTITUTION_CANCEL,
    })
    TEAM_REVIEW_EVENTS = frozenset({HistoryAction.SUBMIT, HistoryAction.RESUBMIT})

    def __init__(self, db: Session, sender: Optional[NotificationSender] = None):
        self.db = db
        self.sender = sender or ZaloLogSender()

    def plan_event(self, plan: LessonPlan, action: HistoryAction, actor: ActorSnapshot,
                   reason: Optional[str] = None) -> list[Notification]:
        recipients = [u for u in self._recipients(plan, action) if u.id != actor.id]
        message = self._message(plan, action, actor, reason)
        queued = []
        for user in recipients:
            n = queue_notification(
                self.db, school_id=plan.school_id, to_user_id=user.id, body=message, plan_id=plan.id
            )
            deliver_if_possible(self.db, n, self.sender)
            queued.append(n)
        return queued

    def _recipients(self, plan: LessonPlan, action: HistoryAction) -> Iterable[User]:
        users: dict[str, User] = {}
        if action in self.OWNER_EVENTS:
            owner = self.db.get(User, plan.submitted_by_id)
            if owner:
                users[owner.id] = owner
        if action in self.TEAM_REVIEW_EVENTS:
            users.update((u.id, u) for u in self._team_reviewers(plan))
        if action == HistoryAction.TEAM_APPROVE:
            users.update((u.id, u) for u in self._institution_reviewers(plan))
        return list(users.values())

    def _team_reviewers(self, plan: LessonPlan) -> list[User]:
        team = self.db.get(Team, plan.team_id) if plan.team_id else None
        if team is None:
            return []
        users = []
        if team.leader_id:
            users.append(self.db.get(User, team.leader_id))
        if team.deputy_leader_id:
            delegation = self.db.get(TeamDelegation, team.id)
            if delegation and delegation.enabled:
                users.append(self.db.get(User, team.deputy_leader_id))
        return [u for u in users if u is not None]

    def _institution_reviewers(self, plan: LessonPlan) -> list[User]:
        roles = [UserRole.PRINCIPAL]
        delegation = self.db.get(SchoolDelegation, plan.school_id)
        if delegation and delegation.principal_to_vp:
            roles.append(UserRole.VICE_PRINCIPAL)
        return list(self.db.execute(
            select(User).where(User.school_id == plan.school_id, User.role.in_(roles))
        ).scalars().all())

    @staticmethod
    def _message(plan: LessonPlan, action: HistoryAction, actor: ActorSnapshot,
                 reason: Optional[str]) -> str:
        text = (
            f'Giáo án "{plan.title}": {action_label(action)} bởi {actor.name}. '
            f"Trạng thái: {status_label(plan.status)}."
        )
        if reason:
            text += f" Lý do: {reason}"
        return text
