from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from taskdesk.errors import NotFound
from taskdesk.storage import LocalBlobStore, get_storage

router = APIRouter(prefix="/storage", tags=["attachments"])


@router.get("/{path:path}")
def download(path: str, storage: LocalBlobStore = Depends(get_storage)):
    """Serve a stored attachment by the relative path recorded on its task."""
    try:
        target = storage.resolve(path)
    except ValueError:
        raise NotFound(error="No attachment found at that path")
    if not target.is_file():
        raise NotFound(error="No attachment found at that path")
    return FileResponse(target)
