from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from taskdesk.database import get_db
from taskdesk.dependencies import get_current_user, require_report_access
from taskdesk.models.user import User
from taskdesk.schemas.envelope import envelope
from taskdesk.schemas.task import TaskOut
from taskdesk.services import tasks as task_service
from taskdesk.storage import LocalBlobStore, get_storage

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _task_fields(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    time: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
) -> dict:
    """Raw multipart fields; validation happens in the task service."""
    return {"title": title, "description": description, "time": time, "status": status}


# Registered ahead of /{task_id} so the literal path is matched first
@router.get("/completedcount")
def completed_count(db: Session = Depends(get_db), user: User = Depends(require_report_access)):
    rows = task_service.completed_tasks_count(db)
    return envelope(data=rows, message="Completed task count per user fetched successfully")


@router.get("")
@router.get("/", include_in_schema=False)
def list_tasks(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    tasks = task_service.list_tasks(db, user)
    return envelope(data=[TaskOut.model_validate(t) for t in tasks], message="Tasks retrieved successfully")


@router.post("", status_code=201)
@router.post("/", status_code=201, include_in_schema=False)
def create_task(
    fields: dict = Depends(_task_fields),
    attachment: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: LocalBlobStore = Depends(get_storage),
    user: User = Depends(get_current_user),
):
    task = task_service.create_task(db, storage, user, fields, attachment)
    return envelope(data=TaskOut.model_validate(task), message="Task created successfully", status_code=201)


@router.get("/{task_id}")
def get_task(task_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    task = task_service.get_task(db, user, task_id)
    return envelope(data=TaskOut.model_validate(task), message="Task retrieved successfully")


@router.post("/{task_id}")
def update_task(
    task_id: int,
    fields: dict = Depends(_task_fields),
    attachment: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    storage: LocalBlobStore = Depends(get_storage),
    user: User = Depends(get_current_user),
):
    task = task_service.update_task(db, storage, user, task_id, fields, attachment)
    return envelope(data=TaskOut.model_validate(task), message="Task updated successfully")


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    db: Session = Depends(get_db),
    storage: LocalBlobStore = Depends(get_storage),
    user: User = Depends(get_current_user),
):
    task_service.delete_task(db, storage, user, task_id)
    return envelope(message="Task deleted successfully")
