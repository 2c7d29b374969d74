"""Player-facing event and battle logs.

Both logs are append-only rings that keep only the most recent entries:
the main log keeps 100, the battle log 20.  Snapshots store the entries as
plain tuples; a :class:`LogBook` is the short-lived builder a command uses
to append to one of them before the new snapshot is committed.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, List, Optional, Sequence, Tuple

Clock = Callable[[], str]

MAIN_LOG_CAPACITY = 100
BATTLE_LOG_CAPACITY = 20


class LogCategory(Enum):
    BUY = "buy"
    SELL = "sell"
    TRAVEL = "travel"
    SHOP = "shop"
    EVENT = "event"
    COMBAT = "combat"
    COMBAT_WIN = "combat_win"
    COMBAT_LOSS = "combat_loss"
    HEALTH_UPDATE = "health_update"
    RANK_UP = "rank_up"
    GAME_OVER = "game_over"
    INFO = "info"
    WARNING = "warning"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """Structured record for a single log line."""

    id: str
    timestamp: str
    category: LogCategory
    message: str
    day: int = 0


def utc_clock() -> str:
    return datetime.now(timezone.utc).isoformat()


class LogBook:
    """Fixed-size log history seeded from a snapshot's entries."""

    def __init__(
        self,
        entries: Sequence[LogEntry] = (),
        *,
        capacity: int = MAIN_LOG_CAPACITY,
        next_seq: int = 0,
        clock: Clock = utc_clock,
        prefix: str = "log",
    ) -> None:
        self.capacity = max(1, capacity)
        self._entries: Deque[LogEntry] = deque(entries, maxlen=self.capacity)
        self.next_seq = next_seq
        self._clock = clock
        self._prefix = prefix
        self._added: List[LogEntry] = []

    # ------------------------------------------------------------------
    # Recording helpers
    # ------------------------------------------------------------------
    def record(self, category: LogCategory, message: str, *, day: int = 0) -> LogEntry:
        entry = LogEntry(
            id=f"{self._prefix}:{self.next_seq}",
            timestamp=self._clock(),
            category=category,
            message=message,
            day=day,
        )
        self.next_seq += 1
        self._entries.append(entry)
        self._added.append(entry)
        return entry

    # ------------------------------------------------------------------
    # Introspection helpers
    # ------------------------------------------------------------------
    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._entries)

    @property
    def added(self) -> Tuple[LogEntry, ...]:
        """Entries recorded through this book, including ones already evicted."""

        return tuple(self._added)

    def get_recent(self, *, category: Optional[LogCategory] = None, limit: int = 100) -> List[LogEntry]:
        """Return the newest entries matching the optional category filter."""

        selected: List[LogEntry] = []
        for entry in reversed(self._entries):
            if category and entry.category != category:
                continue
            selected.append(entry)
            if len(selected) >= limit:
                break
        return list(reversed(selected))

    def cleared(self) -> "LogBook":
        """Empty book that keeps numbering where this one left off."""

        return LogBook((), capacity=self.capacity, next_seq=self.next_seq, clock=self._clock, prefix=self._prefix)

    def freeze(self) -> Tuple[LogEntry, ...]:
        return tuple(self._entries)


__all__ = [
    "BATTLE_LOG_CAPACITY",
    "Clock",
    "LogBook",
    "LogCategory",
    "LogEntry",
    "MAIN_LOG_CAPACITY",
    "utc_clock",
]
