import mimetypes
import os
from dataclasses import dataclass
from datetime import datetime, UTC
from typing import Optional

from fastapi import UploadFile
from pydantic import BaseModel, ConfigDict, field_validator

from taskdesk import config
from taskdesk.models.task import TaskStatus


class TaskForm(BaseModel):
    """Non-file fields of the create/update multipart form."""

    title: str
    description: str
    time: datetime
    # absent on update means "leave unchanged"; create falls back to pending
    status: Optional[TaskStatus] = None

    @field_validator("title", "description")
    @classmethod
    def not_blank(cls, v: str, info) -> str:
        if not v.strip():
            raise ValueError(f"{info.field_name} cannot be empty")
        return v.strip()

    @field_validator("time", mode="before")
    @classmethod
    def parse_time(cls, v):
        """Accept ISO-8601 dates (2025-01-01) as well as full timestamps."""
        if isinstance(v, str):
            try:
                v = datetime.fromisoformat(v.strip())
            except ValueError:
                raise ValueError("time must be a valid date")
        if isinstance(v, datetime) and v.tzinfo is not None:
            v = v.astimezone(UTC).replace(tzinfo=None)
        return v


DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"

# Pinned so the result does not depend on the host's mime.types
KNOWN_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "pdf": "application/pdf",
    "docx": DOCX_MIME,
}
MIME_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg", "image/x-png": "image/png"}
# Clients send these when they cannot tell; the extension decides then
GENERIC_MIME_TYPES = {"", "application/octet-stream"}


def expected_mime(ext: str) -> Optional[str]:
    return KNOWN_MIME_TYPES.get(ext) or mimetypes.guess_type(f"file.{ext}")[0]


@dataclass(frozen=True)
class AttachmentRule:
    required: bool
    extensions: frozenset

    def check(self, upload: Optional[UploadFile]) -> list:
        """Return the list of problems with ``upload`` (empty when acceptable)."""
        if upload is None or not upload.filename:
            return ["attachment is required"] if self.required else []
        ext = os.path.splitext(upload.filename)[1].lower().lstrip(".")
        if ext not in self.extensions:
            allowed = ", ".join(sorted(self.extensions))
            return [f"attachment must be a file of type: {allowed}"]
        sent = (upload.content_type or "").split(";")[0].strip().lower()
        sent = MIME_ALIASES.get(sent, sent)
        expected = expected_mime(ext)
        if sent not in GENERIC_MIME_TYPES and expected and sent != expected:
            return [f"attachment content type {sent} does not match .{ext}"]
        return []


def create_attachment_rule() -> AttachmentRule:
    return AttachmentRule(config.TASK_CREATE_ATTACHMENT_REQUIRED, config.TASK_CREATE_ATTACHMENT_TYPES)


def update_attachment_rule() -> AttachmentRule:
    return AttachmentRule(config.TASK_UPDATE_ATTACHMENT_REQUIRED, config.TASK_UPDATE_ATTACHMENT_TYPES)


class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    attachment: Optional[str] = None
    time: datetime
    status: str
    user_id: int
    created_at: datetime
    updated_at: datetime


class CompletedCountRow(BaseModel):
    owner_id: int
    owner_name: str
    completed_tasks_count: int
