from datetime import date, datetime, time, timedelta
from types import SimpleNamespace

from cronhooks import aggregation
from cronhooks.aggregation import UNKNOWN_TASK, build_dashboard
from cronhooks.models import TaskStatus
from cronhooks.schemas import TaskLogOut

TODAY = date(2024, 3, 10)


def _task(id, status="active", name=None, max_retry=3):
    return SimpleNamespace(id=id, status=status, name=name or f"task-{id}", max_retry=max_retry)


def _log(id, task_id, status, when, retry_count=0, message=None):
    return SimpleNamespace(
        id=id, task_id=task_id, status=status, execution_time=when,
        retry_count=retry_count, message=message,
    )


def test_empty_snapshots():
    stats = build_dashboard([], [], today=TODAY)

    assert stats.status_counts.model_dump() == {"total": 0, "active": 0, "inactive": 0, "deleted": 0}
    assert len(stats.execution_trend) == 7
    assert all(p.success == 0 and p.failed == 0 for p in stats.execution_trend)
    assert stats.failed_last_7_days == 0
    assert stats.recent_executions == []


def test_trend_covers_seven_days_oldest_first():
    trend = aggregation.execution_trend([], today=TODAY)
    assert [p.day for p in trend] == [TODAY - timedelta(days=i) for i in range(6, -1, -1)]
    assert trend[-1].label == "Mar 10"


def test_deleted_is_a_residual():
    tasks = [_task("a"), _task("b", "inactive"), _task("c", "deleted"), _task("d", "archived")]
    counts = aggregation.status_counts(tasks)
    assert (counts.total, counts.active, counts.inactive, counts.deleted) == (4, 1, 1, 2)


def test_enum_statuses_are_counted():
    counts = aggregation.status_counts([_task("a", TaskStatus.ACTIVE), _task("b", TaskStatus.DELETED)])
    assert (counts.active, counts.deleted) == (1, 1)


def test_todays_bucket_only():
    at = datetime.combine(TODAY, time(9, 0))
    logs = [
        _log("1", "a", "success", at),
        _log("2", "a", "success", at.replace(hour=23, minute=59)),
        _log("3", "a", "failed", at.replace(hour=0, minute=0)),
    ]

    trend = aggregation.execution_trend(logs, today=TODAY)

    assert (trend[-1].success, trend[-1].failed) == (2, 1)
    assert all(p.success == 0 and p.failed == 0 for p in trend[:-1])


def test_bucketing_uses_the_date_prefix_without_tz_shift():
    logs = [
        _log("1", "a", "success", "2024-03-09T23:30:00-05:00"),
        _log("2", "a", "failed", "2024-03-10T00:15:00+09:00"),
        _log("3", "a", "failed", "2024-03-02T12:00:00"),
        _log("4", "a", "success", None),
    ]
    trend = {p.day.isoformat(): (p.success, p.failed) for p in aggregation.execution_trend(logs, today=TODAY)}

    assert trend["2024-03-09"] == (1, 0)
    assert trend["2024-03-10"] == (0, 1)
    assert sum(s + f for s, f in trend.values()) == 2


def test_failed_counts_window_and_all_time():
    logs = [
        _log("1", "a", "failed", datetime(2024, 3, 10, 8)),
        _log("2", "a", "failed", datetime(2024, 3, 4, 8)),
        _log("3", "a", "failed", datetime(2024, 3, 3, 23)),
        _log("4", "a", "failed", datetime(2024, 3, 11, 1)),
        _log("5", "a", "success", datetime(2024, 3, 10, 9)),
    ]
    stats = build_dashboard([_task("a")], logs, today=TODAY)

    assert stats.failed_last_7_days == 2
    assert stats.failed_all_time == 4


def test_failed_executions_bounds_are_inclusive_and_optional():
    logs = [
        _log("1", "a", "failed", "2024-03-04T00:00:00"),
        _log("2", "a", "failed", "2024-03-07T12:00:00"),
        _log("3", "a", "failed", "2024-03-10T23:59:59"),
        _log("4", "a", "success", "2024-03-07T12:00:00"),
    ]

    assert aggregation.failed_executions(logs) == 3
    assert aggregation.failed_executions(logs, since=date(2024, 3, 7)) == 2
    assert aggregation.failed_executions(logs, until=date(2024, 3, 7)) == 2
    assert aggregation.failed_executions(logs, since=date(2024, 3, 4), until=date(2024, 3, 10)) == 3
    assert aggregation.failed_executions(logs, since=date(2024, 3, 5), until=date(2024, 3, 9)) == 1


def test_recent_executions_keep_input_order_and_label_unknown_tasks():
    tasks = [_task("a", name="Sync Report")]
    logs = [_log(str(i), "a" if i % 2 else "gone", "success", datetime(2024, 3, 1, i)) for i in range(7)]

    recent = aggregation.recent_executions(logs, tasks)

    assert [r.log_id for r in recent] == ["0", "1", "2", "3", "4"]
    assert recent[0].task_name == UNKNOWN_TASK
    assert recent[1].task_name == "Sync Report"


def test_recent_executions_accept_schema_objects():
    log = TaskLogOut(
        id="l1", task_id="a", execution_time=datetime(2024, 3, 10, 9), status="failed",
        retry_count=2, message=None, created_at=datetime(2024, 3, 10, 9, 1),
    )
    [row] = aggregation.recent_executions([log], [_task("a", name="Ping")])
    assert (row.task_name, row.retry_count, row.status.value) == ("Ping", 2, "failed")


def test_retry_budget_violations_use_current_budget():
    tasks = [_task("a", max_retry=1), _task("b", max_retry=5)]
    logs = [
        _log("ok", "a", "failed", TODAY, retry_count=1),
        _log("bad", "a", "failed", TODAY, retry_count=3),
        _log("fine", "b", "failed", TODAY, retry_count=3),
        _log("orphan", "zzz", "failed", TODAY, retry_count=9),
    ]
    assert aggregation.retry_budget_violations(logs, tasks) == ["bad"]
