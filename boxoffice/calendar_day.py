"""Calendar-day normalization.

Every date comparison in the engine goes through ``to_calendar_day`` first so
that a show date stored as ``2025-07-01``, a catalog option value of
``2025-07-01T00:00:00.000Z`` and an aware ``datetime`` all reduce to the same
``date`` key. Aware datetimes are converted to UTC before the date is taken;
naive datetimes are taken as-is.
"""

from datetime import date, datetime, timezone
from typing import Union

from boxoffice.exceptions import InvalidArgumentError

DateLike = Union[date, datetime, str]


def to_calendar_day(value: DateLike) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        raw = value.strip()
        if not raw:
            raise InvalidArgumentError("Date value is empty")
        if raw.endswith("Z") or raw.endswith("z"):
            raw = raw[:-1] + "+00:00"
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            return to_calendar_day(datetime.fromisoformat(raw))
        except ValueError:
            raise InvalidArgumentError(f"Invalid date format: {value}")

    raise InvalidArgumentError(f"Unsupported date value: {value!r}")


def is_same_day(left: DateLike, right: DateLike) -> bool:
    return to_calendar_day(left) == to_calendar_day(right)
