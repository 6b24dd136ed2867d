# lesson_approval/api/routers/files.py
from fastapi import APIRouter, Depends, File, UploadFile

from lesson_approval.api.deps.auth import get_current_actor
from lesson_approval.schemas.lesson_plan import FileRefOut
from lesson_approval.services.storage import LocalFileStorage
from lesson_approval.workflow.actors import ActorSnapshot

router = APIRouter(prefix="/files", tags=["Files"])


def get_storage() -> LocalFileStorage:
    return LocalFileStorage()


@router.post("", response_model=FileRefOut, status_code=201)
def upload_file(
    file: UploadFile = File(...),
    actor: ActorSnapshot = Depends(get_current_actor),
    storage: LocalFileStorage = Depends(get_storage),
):
    ref = storage.save(file.filename, file.file)
    return FileRefOut(name=ref.name, url=ref.url, is_external_link=ref.is_external_link)
