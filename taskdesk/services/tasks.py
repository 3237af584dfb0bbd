"""Task lifecycle: owner-scoped CRUD plus the cross-user completion report.

Every lookup filters on both the task id and the caller's id, so a task that
belongs to someone else is reported exactly like one that does not exist.

Replacing an attachment touches two stores that share no transaction. The
sequence is delete-old, store-new, write-row; when a step after the delete
fails the old blob is not restored and ``AttachmentOrphaned`` is raised so
the dangling reference is visible to the caller and in the log.
"""
from typing import Optional

from fastapi import UploadFile
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskdesk import config
from taskdesk.errors import AttachmentOrphaned, NoData, NotFound, UnexpectedError, ValidationFailed
from taskdesk.models.task import Task, TaskStatus
from taskdesk.models.user import User
from taskdesk.schemas.envelope import field_errors, merge_errors
from taskdesk.schemas.task import (
    AttachmentRule,
    CompletedCountRow,
    TaskForm,
    create_attachment_rule,
    update_attachment_rule,
)
from taskdesk.storage import LocalBlobStore
from taskdesk.utils.logger import setup_logger, log_info, log_warning, log_error

logger = setup_logger("services.tasks")


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


def validate_form(fields: dict, attachment: Optional[UploadFile], rule: AttachmentRule) -> TaskForm:
    """Validate form fields and the attachment together, reporting every problem at once."""
    form = None
    errors = {}
    try:
        form = TaskForm(**{k: v for k, v in fields.items() if v is not None})
    except ValidationError as e:
        errors = field_errors(e.errors())
    problems = rule.check(attachment)
    if problems:
        errors = merge_errors(errors, {"attachment": problems})
    if errors:
        raise ValidationFailed(errors)
    return form


def _not_found(task_id: int) -> NotFound:
    return NotFound(message="Task not found", error=f"No task found with ID {task_id}")


def get_owned(db: Session, user: User, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == user.id).first()
    if task is None:
        raise _not_found(task_id)
    return task


def create_task(db: Session, storage: LocalBlobStore, user: User, fields: dict, attachment: Optional[UploadFile]) -> Task:
    try:
        form = validate_form(fields, attachment, create_attachment_rule())
    except ValidationFailed as e:
        log_warning(logger, "Validation failed on task creation", user_id=user.id, errors=e.errors)
        raise

    path = None
    try:
        if _has_file(attachment):
            path = storage.save(config.ATTACHMENT_NAMESPACE, attachment)
        task = Task(
            title=form.title,
            description=form.description,
            attachment=path,
            time=form.time,
            status=(form.status or TaskStatus.PENDING).value,
            user_id=user.id,
        )
        db.add(task)
        db.commit()
        db.refresh(task)
    except (SQLAlchemyError, OSError) as e:
        db.rollback()
        log_error(logger, "Error creating task", exc_info=True, user_id=user.id)
        if path:
            _discard_blob(storage, path, user_id=user.id)
        raise UnexpectedError(message="Failed to create task", detail=str(e))

    log_info(logger, "Task created", task_id=task.id, user_id=user.id)
    return task


def list_tasks(db: Session, user: User) -> list:
    try:
        tasks = db.query(Task).filter(Task.user_id == user.id).all()
    except SQLAlchemyError as e:
        log_error(logger, "Error retrieving tasks", exc_info=True, user_id=user.id)
        raise UnexpectedError(message="Failed to retrieve tasks", detail=str(e))
    log_info(logger, "Tasks retrieved", user_id=user.id, count=len(tasks))
    return tasks


def get_task(db: Session, user: User, task_id: int) -> Task:
    try:
        task = get_owned(db, user, task_id)
    except NotFound:
        log_warning(logger, "Task not found", task_id=task_id, user_id=user.id)
        raise
    log_info(logger, "Task retrieved", task_id=task.id, user_id=user.id)
    return task


def update_task(db: Session, storage: LocalBlobStore, user: User, task_id: int, fields: dict, attachment: Optional[UploadFile]) -> Task:
    try:
        task = get_owned(db, user, task_id)
    except NotFound:
        log_warning(logger, "Task not found for update", task_id=task_id, user_id=user.id)
        raise

    try:
        form = validate_form(fields, attachment, update_attachment_rule())
    except ValidationFailed as e:
        log_warning(logger, "Validation failed on task update", task_id=task_id, user_id=user.id, errors=e.errors)
        raise

    old_path = task.attachment
    old_deleted = False
    new_path = None
    if _has_file(attachment):
        if old_path:
            try:
                old_deleted = storage.delete(old_path)
            except OSError as e:
                log_error(logger, "Error deleting previous attachment", exc_info=True, task_id=task_id, user_id=user.id)
                raise UnexpectedError(message="Failed to update task", detail=str(e))
        try:
            new_path = storage.save(config.ATTACHMENT_NAMESPACE, attachment)
        except OSError as e:
            db.rollback()
            raise _replacement_failed(task_id, user, old_path, old_deleted, e)
        task.attachment = new_path

    task.title = form.title
    task.description = form.description
    task.time = form.time
    if form.status is not None:
        task.status = form.status.value
    try:
        db.commit()
        db.refresh(task)
    except SQLAlchemyError as e:
        db.rollback()
        if new_path:
            _discard_blob(storage, new_path, task_id=task_id, user_id=user.id)
        raise _replacement_failed(task_id, user, old_path, old_deleted, e)

    log_info(logger, "Task updated", task_id=task.id, user_id=user.id)
    return task


def _replacement_failed(task_id: int, user: User, old_path: Optional[str], old_deleted: bool, exc: Exception) -> UnexpectedError:
    if old_deleted:
        log_error(logger, "Attachment orphaned during task update", exc_info=True, task_id=task_id, user_id=user.id, orphaned_path=old_path)
        return AttachmentOrphaned(old_path, detail=str(exc))
    log_error(logger, "Error updating task", exc_info=True, task_id=task_id, user_id=user.id)
    return UnexpectedError(message="Failed to update task", detail=str(exc))


def _discard_blob(storage: LocalBlobStore, path: str, **context) -> None:
    try:
        storage.delete(path)
    except OSError:
        log_error(logger, "Could not remove unreferenced blob", exc_info=True, path=path, **context)


def delete_task(db: Session, storage: LocalBlobStore, user: User, task_id: int) -> None:
    try:
        task = get_owned(db, user, task_id)
    except NotFound:
        log_warning(logger, "Task not found for deletion", task_id=task_id, user_id=user.id)
        raise

    try:
        if task.attachment:
            storage.delete(task.attachment)
        db.delete(task)
        db.commit()
    except (SQLAlchemyError, OSError) as e:
        db.rollback()
        log_error(logger, "Error deleting task", exc_info=True, task_id=task_id, user_id=user.id)
        raise UnexpectedError(message="Failed to delete task", detail=str(e))

    log_info(logger, "Task deleted", task_id=task_id, user_id=user.id)


def completed_tasks_count(db: Session) -> list:
    """Count completed tasks per owner across all users."""
    try:
        rows = (
            db.query(Task.user_id, User.name, func.count(Task.id))
            .join(User, Task.user_id == User.id)
            .filter(Task.status == TaskStatus.COMPLETED.value)
            .group_by(Task.user_id, User.name)
            .order_by(Task.user_id)
            .all()
        )
    except SQLAlchemyError as e:
        log_error(logger, "Error fetching completed tasks by user", exc_info=True)
        raise UnexpectedError(message="Failed to fetch completed task counts", detail=str(e))

    data = [CompletedCountRow(owner_id=uid, owner_name=name, completed_tasks_count=count) for uid, name, count in rows]
    log_info(logger, "Fetched completed task counts by user", rows=len(data))
    if not data:
        log_warning(logger, "No completed tasks found")
        raise NoData(message="No completed tasks found", error="No data for completed tasks")
    return data
