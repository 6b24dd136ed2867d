# lesson_approval/services/storage.py
import logging
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote

from lesson_approval.core.config import settings
from lesson_approval.core.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileRef:
    name: str
    url: str
    is_external_link: bool = False


class LocalFileStorage:
    """Stores uploads on local disk and hands back a stable /uploads/ locator."""

    def __init__(self, root: str | Path | None = None, url_prefix: str = "/uploads"):
        self.root = Path(root or settings.UPLOAD_DIR)
        self.url_prefix = url_prefix.rstrip("/")

    def save(self, filename: str, stream: BinaryIO) -> FileRef:
        name = Path(filename or "").name
        if not name:
            raise ValidationError("File name is required")
        self.root.mkdir(parents=True, exist_ok=True)
        stored = f"{int(time.time() * 1000)}-{name}"
        target = self.root / stored
        # write to a temp name and rename so a crash never leaves a partial file under the real name
        tmp = target.with_name(stored + ".part")
        try:
            with open(tmp, "wb") as out:
                shutil.copyfileobj(stream, out)
            tmp.replace(target)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.info("Stored upload %s as %s", name, target)
        return FileRef(name=name, url=f"{self.url_prefix}/{quote(stored)}")


def external_link(name: str, url: str) -> FileRef:
    if not url.strip():
        raise ValidationError("Link is required")
    return FileRef(name=name or url, url=url.strip(), is_external_link=True)
