# dialin_backend/app/utils/clock.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive values; those are UTC already
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
