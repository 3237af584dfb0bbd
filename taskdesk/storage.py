import os
import shutil
import uuid
from pathlib import Path, PurePosixPath

from fastapi import UploadFile

from taskdesk import config
from taskdesk.utils.logger import setup_logger, log_info

logger = setup_logger("storage")


class LocalBlobStore:
    """Stores uploaded files on disk under ``root`` and addresses them by relative path."""

    def __init__(self, root):
        self.root = Path(root).resolve()

    def resolve(self, path: str) -> Path:
        target = (self.root / PurePosixPath(path)).resolve()
        if target != self.root and self.root not in target.parents:
            raise ValueError(f"path escapes storage root: {path}")
        return target

    def save(self, namespace: str, upload: UploadFile) -> str:
        """Copy ``upload`` into ``namespace`` and return its relative path."""
        ext = os.path.splitext(upload.filename or "")[1].lower()
        relative = str(PurePosixPath(namespace) / f"{uuid.uuid4().hex}{ext}")
        target = self.resolve(relative)
        target.parent.mkdir(parents=True, exist_ok=True)
        upload.file.seek(0)
        with open(target, "wb") as fh:
            shutil.copyfileobj(upload.file, fh)
        log_info(logger, "Blob stored", path=relative, filename=upload.filename)
        return relative

    def delete(self, path: str) -> bool:
        """Remove the blob at ``path``; returns False if it was already gone."""
        target = self.resolve(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        log_info(logger, "Blob deleted", path=path)
        return True

    def exists(self, path: str) -> bool:
        return self.resolve(path).is_file()


def get_storage() -> LocalBlobStore:
    # read at call-time so STORAGE_ROOT overrides take effect per request
    return LocalBlobStore(config.STORAGE_ROOT)
