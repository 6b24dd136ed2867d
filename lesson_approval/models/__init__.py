# Import every model so Base.metadata is complete for create_all and Alembic
from lesson_approval.models.base import Base  # noqa: F401
from lesson_approval.models.school import School  # noqa: F401
from lesson_approval.models.user import User, UserRole  # noqa: F401
from lesson_approval.models.team import Team  # noqa: F401
from lesson_approval.models.delegation import SchoolDelegation, TeamDelegation  # noqa: F401
from lesson_approval.models.lesson_plan import LessonPlan, HistoryEntry, CommentEntry  # noqa: F401
from lesson_approval.models.notification import Notification  # noqa: F401
