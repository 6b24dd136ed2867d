# lesson_approval/core/logging.py
import logging
from lesson_approval.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
    # SQL echo is controlled separately through the engine
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
