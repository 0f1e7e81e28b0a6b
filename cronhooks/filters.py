from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T")

ALL = "all"


def _status_value(item) -> str:
    status = item.status
    return getattr(status, "value", status)


def filter_items(
    items: Iterable[T],
    text_of: Callable[[T], str | None],
    search: str | None = "",
    status: str | None = None,
) -> list[T]:
    """Keep items whose text contains ``search`` (case-insensitive) AND whose
    status equals ``status``. Input order is preserved."""
    needle = (search or "").lower()
    wanted = getattr(status, "value", status)
    match_any_status = wanted in (None, "", ALL)

    out = []
    for item in items:
        if needle:
            text = text_of(item)
            if not text or needle not in text.lower():
                continue
        if not match_any_status and _status_value(item) != wanted:
            continue
        out.append(item)
    return out


def filter_tasks(tasks: Iterable[T], search: str | None = "", status: str | None = None) -> list[T]:
    return filter_items(tasks, lambda t: t.name, search, status)


def filter_logs(logs: Iterable[T], search: str | None = "", status: str | None = None) -> list[T]:
    return filter_items(logs, lambda log: log.message, search, status)
