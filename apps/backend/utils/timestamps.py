from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

# Postgres trims trailing zeros from fractional seconds ("12.3456") and may
# render the offset as "+00"; fromisoformat before 3.11 wants 3 or 6 digits
# and "+HH:MM".
_FRACTION = re.compile(r"\.(\d+)")
_SHORT_OFFSET = re.compile(r"(:\d{2}(?:\.\d+)?)([+-]\d{2})$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalise(text: str) -> str:
    text = text.strip().replace("Z", "+00:00")
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return _SHORT_OFFSET.sub(r"\1\2:00", text)


def parse_ts(value: Any) -> Optional[datetime]:
    """Supabase returns timestamptz as ISO strings; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(_normalise(str(value)))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
