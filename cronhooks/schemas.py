from datetime import date, datetime
from typing import Any
from pydantic import BaseModel, Field

from cronhooks.models import TaskStatus, LogStatus

# Field-level rules (cron shape, URL prefix, retry range) live in TaskStore so
# the API and the Celery bridge reject bad input with the same messages.

class TaskCreate(BaseModel):
    name: str
    schedule: str
    webhook_url: str
    payload: Any = None
    max_retry: int = 3
    status: TaskStatus = TaskStatus.ACTIVE

class TaskUpdate(BaseModel):
    name: str | None = None
    schedule: str | None = None
    webhook_url: str | None = None
    payload: Any = None
    max_retry: int | None = None
    status: TaskStatus | None = None

class TaskOut(BaseModel):
    id: str
    name: str
    schedule: str
    webhook_url: str
    payload: Any
    max_retry: int
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class TaskListOut(BaseModel):
    tasks: list[TaskOut]

class TaskLogCreate(BaseModel):
    task_id: str
    status: LogStatus
    retry_count: int = 0
    message: str | None = None
    execution_time: datetime | None = None

class TaskLogOut(BaseModel):
    id: str
    task_id: str
    execution_time: datetime
    status: LogStatus
    retry_count: int
    message: str | None
    created_at: datetime

    class Config:
        from_attributes = True

class TaskLogListOut(BaseModel):
    task_logs: list[TaskLogOut]

class ExecuteOut(BaseModel):
    ok: bool
    task_id: str
    queue: str

class CronDescription(BaseModel):
    expression: str
    valid: bool
    description: str

# --- dashboard aggregates ---

class StatusCounts(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    deleted: int = 0

class TrendPoint(BaseModel):
    day: date
    label: str
    success: int = 0
    failed: int = 0

class RecentExecution(BaseModel):
    log_id: str
    task_id: str
    task_name: str
    execution_time: datetime | str | None
    status: LogStatus
    retry_count: int = 0
    message: str | None = None

class DashboardStats(BaseModel):
    status_counts: StatusCounts
    execution_trend: list[TrendPoint]
    failed_last_7_days: int
    failed_all_time: int
    recent_executions: list[RecentExecution]
    retry_budget_violations: list[str] = Field(default_factory=list)
