"""Dashboard statistics derived from task and log snapshots.

Every function here is pure: callers fetch the current tasks and logs and
pass them in, and nothing is cached between calls. Items only need the
model attributes, so ORM rows and ``TaskOut``/``TaskLogOut`` both work.

The task and log snapshots are read separately; a task created between the
two reads can show up in one and not the other. Callers who care should
fetch both right before aggregating.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta

from cronhooks.models import LogStatus, TaskStatus
from cronhooks.schemas import DashboardStats, RecentExecution, StatusCounts, TrendPoint

UNKNOWN_TASK = "Unknown Task"


def _value(status) -> str:
    return getattr(status, "value", status)


def date_prefix(ts: datetime | str | None) -> str:
    """``YYYY-MM-DD`` part of a timestamp, compared lexically, no tz shift."""
    if ts is None:
        return ""
    if isinstance(ts, (datetime, date)):
        return ts.isoformat()[:10]
    return str(ts)[:10]


def status_counts(tasks: Iterable) -> StatusCounts:
    tasks = list(tasks)
    total = len(tasks)
    active = sum(1 for t in tasks if _value(t.status) == TaskStatus.ACTIVE.value)
    inactive = sum(1 for t in tasks if _value(t.status) == TaskStatus.INACTIVE.value)
    # residual: anything not active/inactive is shown as deleted
    deleted = max(0, total - active - inactive)
    return StatusCounts(total=total, active=active, inactive=inactive, deleted=deleted)


def execution_trend(logs: Iterable, today: date | None = None, days: int = 7) -> list[TrendPoint]:
    """Success/failed counts per calendar day, oldest first, ending ``today``."""
    today = today or date.today()
    buckets: dict[str, TrendPoint] = {}
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        buckets[day.isoformat()] = TrendPoint(day=day, label=day.strftime("%b %d"))

    for log in logs:
        point = buckets.get(date_prefix(log.execution_time))
        if point is None:
            continue
        status = _value(log.status)
        if status == LogStatus.SUCCESS.value:
            point.success += 1
        elif status == LogStatus.FAILED.value:
            point.failed += 1

    return list(buckets.values())


def failed_executions(logs: Iterable, since: date | None = None, until: date | None = None) -> int:
    """Failed logs dated within [since, until]; unbounded sides count everything."""
    total = 0
    for log in logs:
        if _value(log.status) != LogStatus.FAILED.value:
            continue
        day = date_prefix(log.execution_time)
        if since and day < since.isoformat():
            continue
        if until and day > until.isoformat():
            continue
        total += 1
    return total


def recent_executions(logs: Sequence, tasks: Iterable, limit: int = 5) -> list[RecentExecution]:
    """The first ``limit`` logs, in the order given, joined to their task name."""
    names = {t.id: t.name for t in tasks}
    return [
        RecentExecution(
            log_id=log.id,
            task_id=log.task_id,
            task_name=names.get(log.task_id) or UNKNOWN_TASK,
            execution_time=log.execution_time,
            status=_value(log.status),
            retry_count=log.retry_count or 0,
            message=log.message,
        )
        for log in list(logs)[:limit]
    ]


def retry_budget_violations(logs: Iterable, tasks: Iterable) -> list[str]:
    """Ids of logs whose retry_count is above their task's current max_retry."""
    budgets = {t.id: t.max_retry for t in tasks}
    return [
        log.id
        for log in logs
        if log.task_id in budgets and (log.retry_count or 0) > budgets[log.task_id]
    ]


def build_dashboard(
    tasks: Sequence,
    logs: Sequence,
    today: date | None = None,
    recent_limit: int = 5,
    days: int = 7,
) -> DashboardStats:
    today = today or date.today()
    window_start = today - timedelta(days=days - 1)
    return DashboardStats(
        status_counts=status_counts(tasks),
        execution_trend=execution_trend(logs, today=today, days=days),
        failed_last_7_days=failed_executions(logs, since=window_start, until=today),
        failed_all_time=failed_executions(logs),
        recent_executions=recent_executions(logs, tasks, limit=recent_limit),
        retry_budget_violations=retry_budget_violations(logs, tasks),
    )
