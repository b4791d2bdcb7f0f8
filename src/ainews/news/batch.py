"""Batch identifiers.

A batch id is ``YYYY-MM-DD-HH`` in a fixed UTC+8 offset. It is stored on
every article and parsed back when rendering a digest, so the format must
not drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone

BATCH_TZ = timezone(timedelta(hours=8))

_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def generate_batch_id(now: datetime | None = None) -> str:
    """Return the batch id for ``now`` (default: current time).

    Naive datetimes are taken to be UTC.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local = now.astimezone(BATCH_TZ)
    return f"{local:%Y-%m-%d}-{local.hour:02d}"


@dataclass(frozen=True)
class BatchInfo:
    """Date and edition derived from a batch id."""

    day: date
    hour: int

    @property
    def is_morning(self) -> bool:
        return self.hour < 12

    @property
    def edition(self) -> str:
        return "Morning" if self.is_morning else "Evening"

    @property
    def date_formatted(self) -> str:
        """e.g. ``March 5, 2024``."""
        return f"{_MONTHS[self.day.month - 1]} {self.day.day}, {self.day.year}"


def parse_batch_id(batch_id: str) -> BatchInfo:
    """Parse ``YYYY-MM-DD-HH``. Raises ValueError on malformed input."""
    if len(batch_id) != 13 or batch_id[10] != "-":
        raise ValueError(f"Malformed batch id: {batch_id!r}")
    day = date.fromisoformat(batch_id[:10])
    hour = int(batch_id[11:])
    if not 0 <= hour <= 23:
        raise ValueError(f"Malformed batch id: {batch_id!r}")
    return BatchInfo(day=day, hour=hour)
