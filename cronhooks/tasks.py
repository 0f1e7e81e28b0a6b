from datetime import datetime

from celery import shared_task
from loguru import logger
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from cronhooks.celery_app import celery
from cronhooks.config import settings
from cronhooks.db import SessionLocal
from cronhooks.errors import NotFoundError, ValidationError
from cronhooks.log_store import TaskLogStore
from cronhooks.models import Task

# accepts the "Z" suffix JS executors send, on every supported Python
_TIMESTAMP = TypeAdapter(datetime)

@shared_task(name="cronhooks.tasks.record_execution")
def record_execution(
    task_id: str,
    status: str,
    retry_count: int,
    message: str | None = None,
    execution_time: str | None = None,
):
    """Entry point for the external executor: persist one attempt's outcome.

    Rejections are returned, not raised, so a bad message is not redelivered.
    """
    try:
        executed_at = _TIMESTAMP.validate_python(execution_time) if execution_time else None
    except PydanticValidationError:
        return {"ok": False, "error": "invalid execution_time", "errors": {"execution_time": "Not an ISO-8601 timestamp"}}

    with SessionLocal() as db:
        try:
            log = TaskLogStore(db).append(task_id, status, retry_count, message, executed_at)
        except NotFoundError as e:
            logger.warning("Executor reported unknown task {}", task_id)
            return {"ok": False, "error": str(e), "errors": {}}
        except ValidationError as e:
            return {"ok": False, "error": type(e).__name__, "errors": e.errors}
        return {"ok": True, "log_id": log.id}

def request_execution(task: Task) -> str:
    """Ask the executor service to fire ``task`` now. Returns the queue used."""
    queue = settings.executor_queue
    celery.send_task(
        settings.executor_task_name,
        args=[task.id],
        kwargs={"webhook_url": task.webhook_url, "payload": task.payload, "max_retry": task.max_retry},
        queue=queue,
    )
    logger.info("Manual execution requested task={} queue={}", task.id, queue)
    return queue
