from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import Session

from cronhooks.errors import DataIntegrityError, NotFoundError, ValidationError
from cronhooks.models import LogStatus, Task, TaskLog
from cronhooks.task_store import TaskStore, now_utc


class TaskLogStore:
    """Append-only execution history.

    Logs are written by the external executor and never edited here. A log
    must point at an existing task when it is written; the task may be
    soft-deleted later and the log stays readable.
    """

    def __init__(self, db: Session):
        self.db = db
        self.tasks = TaskStore(db)

    def append(
        self,
        task_id: str,
        status: LogStatus | str,
        retry_count: int,
        message: str | None = None,
        execution_time: datetime | None = None,
    ) -> TaskLog:
        task: Task = self.tasks.get(task_id)

        errors = {}
        if status not in [s.value for s in LogStatus]:
            errors["status"] = "Status must be success or failed"
        if isinstance(retry_count, bool) or not isinstance(retry_count, int):
            errors["retry_count"] = "Retry count must be an integer"
        elif retry_count < 0:
            errors["retry_count"] = "Retry count cannot be negative"
        if message is not None and not isinstance(message, str):
            errors["message"] = "Message must be text"
        if errors:
            logger.warning("Log for task {} rejected: {}", task_id, errors)
            raise ValidationError(errors)

        if retry_count > task.max_retry:
            logger.warning(
                "Retry budget exceeded task={} retry_count={} max_retry={}",
                task_id, retry_count, task.max_retry,
            )
            raise DataIntegrityError(
                {"retry_count": f"Retry count {retry_count} exceeds the task's max retry of {task.max_retry}"}
            )

        log = TaskLog(
            task_id=task.id,
            status=LogStatus(status),
            retry_count=retry_count,
            message=message,
            # local wall clock, so the date matches the dashboard's date.today() buckets
            execution_time=execution_time or datetime.now().astimezone(),
            created_at=now_utc(),
        )
        self.db.add(log)
        self.db.commit()
        self.db.refresh(log)
        logger.info(
            "Execution logged id={} task={} status={} retries={}",
            log.id, log.task_id, log.status.value, log.retry_count,
        )
        return log

    def get(self, log_id: str) -> TaskLog:
        log = self.db.execute(select(TaskLog).where(TaskLog.id == log_id)).scalar_one_or_none()
        if not log:
            raise NotFoundError("Task log", log_id)
        return log

    def _newest_first(self):
        return select(TaskLog).order_by(TaskLog.execution_time.desc(), TaskLog.created_at.desc())

    def list_by_task(self, task_id: str) -> list[TaskLog]:
        self.tasks.get(task_id)
        stmt = self._newest_first().where(TaskLog.task_id == task_id)
        return list(self.db.execute(stmt).scalars().all())

    def list_all(self) -> list[TaskLog]:
        return list(self.db.execute(self._newest_first()).scalars().all())

    def delete(self, log_id: str) -> None:
        """Administrative removal; not part of normal executor flow."""
        log = self.get(log_id)
        self.db.delete(log)
        self.db.commit()
        logger.warning("Task log id={} deleted by administrator", log_id)
