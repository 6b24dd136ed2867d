# lesson_approval/services/helpers/seed_demo.py - demo tenants for local runs and tests
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from lesson_approval.models.base import utcnow
from lesson_approval.models.delegation import SchoolDelegation, TeamDelegation
from lesson_approval.models.lesson_plan import CommentEntry, HistoryEntry, LessonPlan
from lesson_approval.models.school import School
from lesson_approval.models.team import Team
from lesson_approval.models.user import User, UserRole
from lesson_approval.workflow.states import HistoryAction, PlanStatus

SCHOOLS = [
    ("THCS-BINHSON", "Trường THCS Bình Sơn"),
    ("THPT-SONTINH", "Trường THPT Sơn Tịnh"),
]

# key, name, role, email, school, team key
USERS = [
    ("admin", "Quản trị viên Toàn Cầu", UserRole.SUPER_ADMIN, "admin@gmail.com", None, None),
    ("an", "Nguyễn Văn An", UserRole.PRINCIPAL, "hieutruong@qni.edu.vn", "THCS-BINHSON", None),
    ("bich", "Trần Thị Bích", UserRole.VICE_PRINCIPAL, "phohieutruong@qni.edu.vn", "THCS-BINHSON", None),
    ("cuong", "Lê Minh Cường", UserRole.TEAM_LEADER, "cuonglm@qni.edu.vn", "THCS-BINHSON", "khtn"),
    ("dung", "Phạm Thị Dung", UserRole.DEPUTY_TEAM_LEADER, "dungpt@qni.edu.vn", "THCS-BINHSON", "khtn"),
    ("em", "Hoàng Văn Em", UserRole.TEACHER, "emhv@qni.edu.vn", "THCS-BINHSON", "khtn"),
    ("gam", "Vũ Thị Gấm", UserRole.TEACHER, "gamvt@qni.edu.vn", "THCS-BINHSON", "khtn"),
    ("kien", "Đỗ Hùng Kiên", UserRole.TEAM_LEADER, "kiendh@qni.edu.vn", "THCS-BINHSON", "khxh"),
    ("lan", "Nguyễn Thị Lan", UserRole.TEACHER, "lann@qni.edu.vn", "THCS-BINHSON", "khxh"),
    ("ich", "Phan Huy Ích", UserRole.PRINCIPAL, "hieutruong.st@qni.edu.vn", "THPT-SONTINH", None),
    ("muoi", "Trần Văn Mười", UserRole.TEAM_LEADER, "muoitv.st@qni.edu.vn", "THPT-SONTINH", "toantin"),
    ("na", "Lý Thị Na", UserRole.TEACHER, "nalt.st@qni.edu.vn", "THPT-SONTINH", "toantin"),
]

# key, name, school, leader key, deputy key
TEAMS = [
    ("khtn", "Tổ Khoa học Tự nhiên", "THCS-BINHSON", "cuong", "dung"),
    ("khxh", "Tổ Khoa học Xã hội", "THCS-BINHSON", "kien", None),
    ("toantin", "Tổ Toán - Tin", "THPT-SONTINH", "muoi", None),
]


@dataclass
class DemoData:
    schools: dict[str, School] = field(default_factory=dict)
    users: dict[str, User] = field(default_factory=dict)
    teams: dict[str, Team] = field(default_factory=dict)
    plans: dict[str, LessonPlan] = field(default_factory=dict)


def seed_demo(db: Session, *, now: datetime | None = None) -> DemoData:
    """
    Load the two demo schools with their staff, teams and lesson plans.

    The "lichsu" plan arrives already ISSUED with its full history; no
    transition in the workflow produces that status.
    """
    now = now or utcnow()
    data = DemoData()

    for school_id, name in SCHOOLS:
        s = School(id=school_id, name=name, created_at=now)
        db.add(s)
        db.add(SchoolDelegation(school_id=school_id, principal_to_vp=False))
        data.schools[school_id] = s
    db.flush()

    for key, name, role, email, school_id, _ in USERS:
        u = User(name=name, role=role, email=email, school_id=school_id)
        db.add(u)
        data.users[key] = u
    db.flush()

    for key, name, school_id, leader, deputy in TEAMS:
        t = Team(
            name=name,
            school_id=school_id,
            leader_id=data.users[leader].id,
            deputy_leader_id=data.users[deputy].id if deputy else None,
        )
        db.add(t)
        data.teams[key] = t
    db.flush()

    for key, _, _, _, _, team_key in USERS:
        if team_key:
            data.users[key].team_id = data.teams[team_key].id
    for t in data.teams.values():
        db.add(TeamDelegation(team_id=t.id, school_id=t.school_id, enabled=False))
    db.flush()

    def days_ago(n: float) -> datetime:
        return now - timedelta(days=n)

    def plan(key, title, owner, team, status, subject, grade, class_name, file_name, events,
             submitted=None, final=None):
        u = data.users[owner]
        p = LessonPlan(
            school_id=u.school_id,
            team_id=data.teams[team].id,
            title=title,
            status=status,
            submitted_by_id=u.id,
            submitted_by_name=u.name,
            submitted_by_role=u.role,
            submitted_at=submitted or events[0][2],
            subject=subject,
            grade=grade,
            class_name=class_name,
            file_name=file_name,
            file_url="#",
        )
        for position, (action, actor_key, at, *reason) in enumerate(events):
            actor = data.users[actor_key]
            p.history.append(HistoryEntry(
                position=position,
                action=action,
                actor_id=actor.id,
                actor_name=actor.name,
                actor_role=actor.role,
                timestamp=at,
                reason=reason[0] if reason else None,
            ))
        if final:
            approver, at = final
            p.final_approver_id = data.users[approver].id
            p.final_approver_name = data.users[approver].name
            p.final_approver_role = data.users[approver].role
            p.final_approved_at = at
        db.add(p)
        data.plans[key] = p
        return p

    plan("oxihoa", "Bài dạy: Phản ứng Oxi hóa - Khử", "em", "khtn", PlanStatus.SUBMITTED,
         "Khoa học tự nhiên", "Khối 8", "8A", "KHTN8_Oxihoa.pdf",
         [(HistoryAction.SUBMIT, "em", days_ago(1))])

    kieu = plan("truyenkieu", "Bài dạy: Truyện Kiều - Nguyễn Du", "lan", "khxh", PlanStatus.REJECTED_BY_TEAM,
                "Ngữ văn", "Khối 9", "9A", "NguVan9_TruyenKieu.pdf",
                [(HistoryAction.SUBMIT, "lan", days_ago(5)),
                 (HistoryAction.TEAM_REJECT, "kien", days_ago(4), "Cần bổ sung phần câu hỏi thảo luận.")])
    for author, at, text in (
        ("kien", days_ago(4),
         "Em xem lại mục tiêu bài học và bổ sung thêm các câu hỏi thảo luận nhóm để tăng tương tác nhé."),
        ("lan", days_ago(3), "Dạ, em đã nhận được góp ý ạ. Em sẽ chỉnh sửa ngay."),
    ):
        u = data.users[author]
        kieu.comments.append(CommentEntry(
            author_id=u.id, author_name=u.name, author_role=u.role, text=text, created_at=at,
        ))

    plan("hoanthanh", "Bài dạy: Thì Hiện tại Hoàn thành", "gam", "khtn", PlanStatus.APPROVED_BY_TEAM,
         "Ngoại ngữ 1 (Tiếng Anh)", "Khối 7", "7B", "English7_PresentPerfect.pdf",
         [(HistoryAction.SUBMIT, "gam", days_ago(3)),
          (HistoryAction.TEAM_APPROVE, "cuong", days_ago(2))])

    plan("lichsu", "Bài dạy: Lịch sử Việt Nam giai đoạn 1945-1954", "lan", "khxh", PlanStatus.ISSUED,
         "Lịch sử và Địa lí", "Khối 9", "9B", "LichSu9_1945.pdf",
         [(HistoryAction.SUBMIT, "lan", days_ago(10)),
          (HistoryAction.TEAM_APPROVE, "kien", days_ago(9)),
          (HistoryAction.INSTITUTION_APPROVE, "an", days_ago(7)),
          (HistoryAction.ISSUE, "an", days_ago(6))],
         final=("an", days_ago(6)))

    plan("scratch", "Soạn bài: Lập trình Scratch cơ bản", "gam", "khtn", PlanStatus.DRAFT,
         "Tin học", "Khối 6", "6A", "TinHoc6_Scratch.pdf",
         [(HistoryAction.CREATE_DRAFT, "gam", now)])

    plan("gioihan", "Bài dạy: Giới hạn hàm số", "na", "toantin", PlanStatus.SUBMITTED,
         "Toán", "Khối 11", "11A1", "Toan11_GioiHan.pdf",
         [(HistoryAction.SUBMIT, "na", days_ago(2))])

    db.flush()
    return data
