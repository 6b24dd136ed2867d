# lesson_approval/api/serializers.py
"""ORM rows -> response schemas, with display labels in the caller's locale."""
from lesson_approval.models.lesson_plan import CommentEntry, HistoryEntry, LessonPlan
from lesson_approval.models.notification import Notification
from lesson_approval.models.school import School
from lesson_approval.models.team import Team
from lesson_approval.models.user import User
from lesson_approval.schemas.lesson_plan import (
    ActorOut, CommentOut, DriveFolderIn, FileRefOut, HistoryEntryOut, LessonPlanOut,
)
from lesson_approval.schemas.notification import NotificationOut
from lesson_approval.schemas.org import SchoolOut, TeamOut, UserOut
from lesson_approval.workflow.labels import action_label, role_label, status_label
from lesson_approval.workflow.states import available_transitions


def actor_out(id, name, role, locale: str) -> ActorOut:
    return ActorOut(id=id, name=name, role=role, role_label=role_label(role, locale))


def history_out(h: HistoryEntry, locale: str) -> HistoryEntryOut:
    return HistoryEntryOut(
        action=h.action,
        action_label=action_label(h.action, locale),
        actor=actor_out(h.actor_id, h.actor_name, h.actor_role, locale),
        timestamp=h.timestamp,
        reason=h.reason,
    )


def comment_out(c: CommentEntry, locale: str) -> CommentOut:
    return CommentOut(
        id=c.id,
        author=actor_out(c.author_id, c.author_name, c.author_role, locale),
        timestamp=c.created_at,
        text=c.text,
    )


def plan_out(p: LessonPlan, locale: str, *, include_timeline: bool = True) -> LessonPlanOut:
    final = None
    if p.final_approver_id:
        final = actor_out(p.final_approver_id, p.final_approver_name, p.final_approver_role, locale)
    folder = None
    if p.drive_folder_id:
        folder = DriveFolderIn(id=p.drive_folder_id, name=p.drive_folder_name or "")
    return LessonPlanOut(
        id=p.id,
        title=p.title,
        school_id=p.school_id,
        team_id=p.team_id,
        status=p.status,
        status_label=status_label(p.status, locale),
        submitted_by=actor_out(p.submitted_by_id, p.submitted_by_name, p.submitted_by_role, locale),
        submitted_at=p.submitted_at,
        subject=p.subject,
        grade=p.grade,
        class_name=p.class_name,
        notes=p.notes,
        file=FileRefOut(name=p.file_name, url=p.file_url, is_external_link=p.file_is_external),
        drive_folder=folder,
        final_approver=final,
        final_approved_at=p.final_approved_at,
        available_transitions=available_transitions(p.status),
        history=[history_out(h, locale) for h in p.history] if include_timeline else [],
        comments=[comment_out(c, locale) for c in p.comments] if include_timeline else [],
    )


def school_out(s: School) -> SchoolOut:
    return SchoolOut(id=s.id, name=s.name)


def team_out(t: Team) -> TeamOut:
    return TeamOut(
        id=t.id, name=t.name, school_id=t.school_id,
        leader_id=t.leader_id, deputy_leader_id=t.deputy_leader_id,
    )


def user_out(u: User, locale: str) -> UserOut:
    return UserOut(
        id=u.id, name=u.name, email=u.email, role=u.role, role_label=role_label(u.role, locale),
        school_id=u.school_id, team_id=u.team_id,
        zalo_phone=u.zalo_phone, drive_folder_link=u.drive_folder_link,
    )


def notification_out(n: Notification) -> NotificationOut:
    return NotificationOut(
        id=n.id, to_user_id=n.to_user_id, plan_id=n.plan_id,
        body=n.body, status=n.status, created_at=n.created_at,
    )
