from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from cronhooks import cron
from cronhooks.config import settings
from cronhooks.errors import NotFoundError, ValidationError
from cronhooks.models import Task, TaskStatus
from cronhooks.schemas import TaskCreate

MIN_RETRY = 0
MAX_RETRY = 10

CREATION_STATUSES = (TaskStatus.ACTIVE, TaskStatus.INACTIVE)


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    # sqlite hands back naive datetimes even for timezone=True columns
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def _next_stamp(previous: datetime | None) -> datetime:
    now = now_utc()
    if previous is not None and now <= as_utc(previous):
        now = as_utc(previous) + timedelta(microseconds=1)
    return now


class TaskStore:
    """CRUD and lifecycle rules for Task rows.

    Validation failures raise ``ValidationError`` with one entry per bad
    field; unknown ids raise ``NotFoundError``. The store commits each
    mutation on its own, so a status change is never half-applied.
    """

    def __init__(self, db: Session, allowed_prefixes: Sequence[str] | None = None):
        self.db = db
        if allowed_prefixes is None:
            allowed_prefixes = settings.webhook_url_prefixes
        self.allowed_prefixes = tuple(allowed_prefixes)

    # ---- validation ----

    def _check_field(self, field: str, value: Any) -> str | None:
        """Return the reason ``value`` is unacceptable for ``field``, or None."""
        if field == "name":
            if not isinstance(value, str) or not value.strip():
                return "Task name is required"
        elif field == "schedule":
            if not isinstance(value, str) or not value.strip():
                return "Schedule (cron expression) is required"
            if not cron.validate(value):
                return "Invalid cron expression"
        elif field == "webhook_url":
            if not isinstance(value, str) or not value.strip():
                return "Webhook URL is required"
            if self.allowed_prefixes and not value.startswith(self.allowed_prefixes):
                return "Webhook URL must start with " + " or ".join(self.allowed_prefixes)
        elif field == "payload":
            if value is not None and not isinstance(value, (dict, list)):
                return "Payload must be a JSON object, a JSON array or null"
        elif field == "max_retry":
            if isinstance(value, bool) or not isinstance(value, int):
                return "Max retry must be an integer"
            if not MIN_RETRY <= value <= MAX_RETRY:
                return f"Max retry must be between {MIN_RETRY} and {MAX_RETRY}"
        elif field == "status":
            if value not in [s.value for s in TaskStatus]:
                return "Status must be one of: " + ", ".join(s.value for s in TaskStatus)
        else:
            return "Unknown or read-only field"
        return None

    def _validate(self, fields: Mapping[str, Any]) -> None:
        errors = {}
        for field, value in fields.items():
            reason = self._check_field(field, value)
            if reason:
                errors[field] = reason
        if errors:
            logger.warning("Task validation failed: {}", errors)
            raise ValidationError(errors)

    # ---- public API ----

    def create(self, data: TaskCreate) -> Task:
        fields = data.model_dump()
        self._validate(fields)

        status = TaskStatus(fields["status"])
        if status not in CREATION_STATUSES:
            raise ValidationError({"status": "New tasks must be active or inactive"})

        stamp = now_utc()
        t = Task(
            name=fields["name"],
            schedule=fields["schedule"],
            webhook_url=fields["webhook_url"],
            payload=fields["payload"],
            max_retry=fields["max_retry"],
            status=status,
            created_at=stamp,
            updated_at=stamp,
        )
        self.db.add(t)
        self.db.commit()
        self.db.refresh(t)
        logger.info("Task created id={} name={!r} status={}", t.id, t.name, t.status.value)
        return t

    def get(self, task_id: str) -> Task:
        t = self.db.execute(select(Task).where(Task.id == task_id)).scalar_one_or_none()
        if not t:
            raise NotFoundError("Task", task_id)
        return t

    def list_tasks(self, status: TaskStatus | str | None = None) -> list[Task]:
        stmt = select(Task).order_by(Task.created_at.asc())
        if status is not None:
            stmt = stmt.where(Task.status == TaskStatus(status))
        return list(self.db.execute(stmt).scalars().all())

    def list_active(self) -> list[Task]:
        """Tasks the external executor may fire."""
        return self.list_tasks(TaskStatus.ACTIVE)

    def update(self, task_id: str, changes: Mapping[str, Any]) -> Task:
        t = self.get(task_id)
        changes = dict(changes)
        self._validate(changes)

        if "status" in changes:
            new_status = TaskStatus(changes["status"])
            if t.status == TaskStatus.DELETED and new_status != TaskStatus.DELETED:
                logger.warning("Refused to revive deleted task id={}", t.id)
                raise ValidationError({"status": "Deleted tasks cannot change status"})
            changes["status"] = new_status

        for field, value in changes.items():
            setattr(t, field, value)
        t.updated_at = _next_stamp(t.updated_at)

        self.db.commit()
        self.db.refresh(t)
        logger.info("Task updated id={} fields={}", t.id, sorted(changes))
        return t

    def delete(self, task_id: str) -> Task:
        """Soft delete. Deleting an already deleted task is a no-op."""
        t = self.get(task_id)
        if t.status == TaskStatus.DELETED:
            logger.debug("Task id={} already deleted", t.id)
            return t

        t.status = TaskStatus.DELETED
        t.updated_at = _next_stamp(t.updated_at)
        self.db.commit()
        self.db.refresh(t)
        logger.info("Task deleted id={}", t.id)
        return t
