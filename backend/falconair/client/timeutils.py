"""
Tolerant ISO-8601 parsing for timestamps coming from the API.

Accepted on top of what datetime.fromisoformat takes:
  - more than six fractional digits ("2025-09-24T10:15:00.1234567")
  - a trailing "Z"
  - date-only strings ("2025-09-24"), read as midnight UTC
Naive results are treated as UTC.
"""

import re
from datetime import datetime, timezone
from typing import Union

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_FRACTION = re.compile(r"(\.\d+)")


def normalize_timestamp(value: str) -> str:
    value = value.strip()
    if _DATE_ONLY.match(value):
        return f"{value}T00:00:00+00:00"

    value = value.replace(" ", "T", 1)
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"

    match = _FRACTION.search(value)
    if match:
        digits = match.group(1)[1:]
        fraction = "." + digits[:6].ljust(6, "0")
        value = value[:match.start()] + fraction + value[match.end():]
    return value


def parse_timestamp(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(normalize_timestamp(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
