"""Split reservations into current and past by a rolling creation-time window."""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from operator import attrgetter
from typing import Any, Generic, TypeVar

DEFAULT_WINDOW = timedelta(hours=24)

T = TypeVar("T")


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (e.g. from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def is_current(created_at: datetime, now: datetime, window: timedelta = DEFAULT_WINDOW) -> bool:
    """True when ``created_at`` is strictly inside the window ending at ``now``."""
    return as_utc(created_at) > as_utc(now) - window


@dataclass
class WindowSplit(Generic[T]):
    current: list[T] = field(default_factory=list)
    past: list[T] = field(default_factory=list)

    @property
    def current_count(self) -> int:
        return len(self.current)

    @property
    def past_count(self) -> int:
        return len(self.past)


def classify(
    items: Iterable[T],
    now: datetime | None = None,
    window: timedelta = DEFAULT_WINDOW,
    created_at: Callable[[T], Any] = attrgetter("created_at"),
) -> WindowSplit[T]:
    """Partition ``items`` into current (created within ``window``) and past.

    Evaluated at read time; nothing is stored, so items drift from current
    to past as time passes. Input order is preserved within each bucket.
    """
    now = now or datetime.now(UTC)
    split: WindowSplit[T] = WindowSplit()
    for item in items:
        if is_current(created_at(item), now, window):
            split.current.append(item)
        else:
            split.past.append(item)
    return split
