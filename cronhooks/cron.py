"""Syntactic cron checks.

Only the *shape* of each of the five fields is checked (``*``, ``N``,
``*/N``, ``A-B``, ``A,B``). Field ranges are not: ``0 99 * * *`` is valid.
"""

import re

_FIELD = r"(\*|[0-9]+|\*/[0-9]+|[0-9]+-[0-9]+|[0-9]+,[0-9]+)"
CRON_RE = re.compile(rf"{_FIELD}(\s+{_FIELD}){{4}}")

INVALID_DESCRIPTION = "Invalid cron expression"

KNOWN_DESCRIPTIONS = {
    "0 0 * * *": "At 12:00 AM every day",
    "0 9 * * *": "At 9:00 AM every day",
    "0 0 * * 0": "At 12:00 AM every Sunday",
    "0 0 1 * *": "At 12:00 AM on the 1st of every month",
}


def validate(expression: str) -> bool:
    if not isinstance(expression, str):
        return False
    return CRON_RE.fullmatch(expression) is not None


def describe(expression: str) -> str:
    """Human readable phrase for ``expression``. Never raises."""
    if not isinstance(expression, str):
        return INVALID_DESCRIPTION

    parts = expression.split()
    if len(parts) != 5:
        return INVALID_DESCRIPTION

    known = KNOWN_DESCRIPTIONS.get(" ".join(parts))
    if known:
        return known

    minute, hour, day, month, day_of_week = parts
    return (
        f"Runs at {minute} minutes past hour {hour} on day {day} "
        f"of month {month} and day {day_of_week} of week"
    )
