from datetime import datetime
from pydantic import BaseModel

class NotificationOut(BaseModel):
    id: str
    to_user_id: str
    plan_id: str | None
    body: str
    status: str
    created_at: datetime
