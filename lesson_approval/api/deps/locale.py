# lesson_approval/api/deps/locale.py
from typing import Optional

from fastapi import Header

from lesson_approval.workflow.labels import resolve_locale


def get_locale(accept_language: Optional[str] = Header(None)) -> str:
    return resolve_locale(accept_language)
