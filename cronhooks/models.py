import enum
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import String, Integer, DateTime, Enum, JSON, Text, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from cronhooks.db import Base

class TaskStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"

class LogStatus(str, enum.Enum):
    SUCCESS = "success"
    FAILED = "failed"

def _new_id() -> str:
    return str(uuid.uuid4())

def _enum_values(enum_cls):
    return [member.value for member in enum_cls]

class Task(Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(200), index=True)
    schedule: Mapped[str] = mapped_column(String(120))
    webhook_url: Mapped[str] = mapped_column(Text)
    payload: Mapped[Any] = mapped_column(JSON, nullable=True)
    max_retry: Mapped[int] = mapped_column(Integer, default=3)

    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, name="task_status", native_enum=False, values_callable=_enum_values),
        default=TaskStatus.ACTIVE,
        index=True,
    )

    # stamped by TaskStore, not the server, so updated_at is strictly monotonic
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

class TaskLog(Base):
    __tablename__ = "task_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    # weak reference: no cascade, logs outlive their task for audit
    task_id: Mapped[str] = mapped_column(String(36), ForeignKey("tasks.id"), index=True)
    execution_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    status: Mapped[LogStatus] = mapped_column(
        Enum(LogStatus, name="log_status", native_enum=False, values_callable=_enum_values),
        index=True,
    )
    retry_count: Mapped[int] = mapped_column(Integer, default=0)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
