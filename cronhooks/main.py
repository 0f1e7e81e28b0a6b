from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from cronhooks import aggregation, cron
from cronhooks.config import settings
from cronhooks.db import SessionLocal, engine, Base
from cronhooks.errors import DataIntegrityError, NotFoundError, ValidationError
from cronhooks.filters import filter_logs, filter_tasks
from cronhooks.log_store import TaskLogStore
from cronhooks.logging_setup import setup_logging
from cronhooks.models import TaskStatus
from cronhooks.notifier import LogNotifier, Notifier
from cronhooks.schemas import (
    CronDescription,
    DashboardStats,
    ExecuteOut,
    TaskCreate,
    TaskListOut,
    TaskLogCreate,
    TaskLogListOut,
    TaskLogOut,
    TaskOut,
    TaskUpdate,
)
from cronhooks.task_store import TaskStore
from cronhooks.tasks import request_execution
from cronhooks.wait_for_db import wait_for_db

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    # Wait for the database, then create tables
    wait_for_db(max_seconds=settings.db_wait_seconds)
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()

app = FastAPI(title="Cronhooks (scheduled webhook tasks + execution history)", lifespan=lifespan)

_notifier = LogNotifier()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_notifier() -> Notifier:
    return _notifier

def _app_notifier(request: Request) -> Notifier:
    # exception handlers sit outside DI, so honour overrides by hand
    return request.app.dependency_overrides.get(get_notifier, get_notifier)()

# --- error translation ---

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    detail = "Data integrity violation" if isinstance(exc, DataIntegrityError) else "Validation failed"
    _app_notifier(request).notify(f"{detail}: {exc}", "error")
    return JSONResponse(status_code=422, content={"detail": detail, "errors": exc.errors})

@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    _app_notifier(request).notify(str(exc), "error")
    return JSONResponse(status_code=404, content={"detail": str(exc)})

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # same {field: reason} shape as the store's ValidationError
    errors = {}
    for err in exc.errors():
        field = str(err["loc"][-1]) if err.get("loc") else "body"
        errors.setdefault(field, err["msg"])
    _app_notifier(request).notify(f"Validation failed: {errors}", "error")
    return JSONResponse(status_code=422, content={"detail": "Validation failed", "errors": errors})

# --- tasks ---

@app.post("/tasks/", response_model=TaskOut)
def create_task(payload: TaskCreate, db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)):
    t = TaskStore(db).create(payload)
    notifier.notify("Task created successfully!", "success")
    return t

@app.get("/tasks/", response_model=TaskListOut)
def list_tasks(search: str = "", status: str | None = None, db: Session = Depends(get_db)):
    tasks = TaskStore(db).list_tasks()
    return {"tasks": filter_tasks(tasks, search, status)}

@app.get("/tasks/{task_id}", response_model=TaskOut)
def get_task(task_id: str, db: Session = Depends(get_db)):
    return TaskStore(db).get(task_id)

@app.put("/tasks/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    t = TaskStore(db).update(task_id, payload.model_dump(exclude_unset=True))
    notifier.notify("Task updated successfully!", "success")
    return t

@app.delete("/tasks/{task_id}", response_model=TaskOut)
def delete_task(task_id: str, db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)):
    t = TaskStore(db).delete(task_id)
    notifier.notify("Task deleted successfully!", "success")
    return t

@app.post("/tasks/{task_id}/execute", response_model=ExecuteOut)
def execute_task(task_id: str, db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)):
    t = TaskStore(db).get(task_id)
    if t.status == TaskStatus.DELETED:
        raise ValidationError({"status": "Deleted tasks cannot be executed"})
    queue = request_execution(t)
    notifier.notify("Task execution started!", "success")
    return ExecuteOut(ok=True, task_id=t.id, queue=queue)

# --- task logs ---

@app.post("/task-logs/", response_model=TaskLogOut)
def create_task_log(payload: TaskLogCreate, db: Session = Depends(get_db)):
    return TaskLogStore(db).append(
        payload.task_id,
        payload.status,
        payload.retry_count,
        payload.message,
        payload.execution_time,
    )

@app.get("/task-logs/", response_model=TaskLogListOut)
def list_task_logs(search: str = "", status: str | None = None, db: Session = Depends(get_db)):
    logs = TaskLogStore(db).list_all()
    return {"task_logs": filter_logs(logs, search, status)}

@app.get("/task-logs/task/{task_id}", response_model=TaskLogListOut)
def list_task_logs_for_task(task_id: str, db: Session = Depends(get_db)):
    return {"task_logs": TaskLogStore(db).list_by_task(task_id)}

@app.get("/task-logs/{log_id}", response_model=TaskLogOut)
def get_task_log(log_id: str, db: Session = Depends(get_db)):
    return TaskLogStore(db).get(log_id)

@app.delete("/task-logs/{log_id}", status_code=204)
def delete_task_log(log_id: str, db: Session = Depends(get_db), notifier: Notifier = Depends(get_notifier)):
    TaskLogStore(db).delete(log_id)
    notifier.notify("Task log deleted", "warning")

# --- read-only views ---

@app.get("/dashboard", response_model=DashboardStats)
def dashboard(db: Session = Depends(get_db)):
    # two separate reads; see aggregation module docstring
    tasks = TaskStore(db).list_tasks()
    logs = TaskLogStore(db).list_all()
    return aggregation.build_dashboard(
        tasks,
        logs,
        recent_limit=settings.recent_executions_limit,
        days=settings.trend_days,
    )

@app.get("/cron/describe", response_model=CronDescription)
def describe_cron(expression: str):
    return CronDescription(
        expression=expression,
        valid=cron.validate(expression),
        description=cron.describe(expression),
    )

@app.get("/health")
def health():
    return {"status": "ok"}
