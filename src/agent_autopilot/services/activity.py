"""Bounded in-memory activity feed for the engine.

Entries are newest-first and capped; the oldest entry falls off when the
cap is reached. Snapshots are tuples, so readers never see a partial write.
"""

from __future__ import annotations

from collections import deque
from datetime import UTC, datetime
from itertools import count

from agent_autopilot.domain.enums import ActivityLevel
from agent_autopilot.domain.models import ActivityEntry


class ActivityLog:
    def __init__(self, max_entries: int = 50) -> None:
        self._entries: deque[ActivityEntry] = deque(maxlen=max_entries)
        self._ids = count(1)

    def add(
        self,
        level: ActivityLevel,
        message: str,
        detail: str | None = None,
    ) -> ActivityEntry:
        entry = ActivityEntry(
            id=f"act-{next(self._ids)}",
            level=level,
            message=message,
            detail=detail,
            timestamp=datetime.now(UTC),
        )
        self._entries.appendleft(entry)
        return entry

    def info(self, message: str, detail: str | None = None) -> ActivityEntry:
        return self.add(ActivityLevel.INFO, message, detail)

    def success(self, message: str, detail: str | None = None) -> ActivityEntry:
        return self.add(ActivityLevel.SUCCESS, message, detail)

    def warning(self, message: str, detail: str | None = None) -> ActivityEntry:
        return self.add(ActivityLevel.WARNING, message, detail)

    def error(self, message: str, detail: str | None = None) -> ActivityEntry:
        return self.add(ActivityLevel.ERROR, message, detail)

    def snapshot(self) -> tuple[ActivityEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
