"""Scratch state for a single command.

A :class:`CommandContext` wraps the snapshot a command starts from, the two
log books seeded from it, and the toasts raised along the way.  Nothing
leaves the context until :meth:`CommandContext.commit` folds the logs back
into a new snapshot.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple

from hustle.game_log import BATTLE_LOG_CAPACITY, MAIN_LOG_CAPACITY, Clock, LogBook, LogCategory, LogEntry, utc_clock
from hustle.notifications import Toast, ToastVariant
from hustle.state import GameSnapshot


class CommandContext:
    def __init__(
        self,
        snapshot: GameSnapshot,
        *,
        main_capacity: int = MAIN_LOG_CAPACITY,
        battle_capacity: int = BATTLE_LOG_CAPACITY,
        clock: Clock = utc_clock,
    ) -> None:
        self.snapshot = snapshot
        self.log = LogBook(
            snapshot.event_log,
            capacity=main_capacity,
            next_seq=snapshot.log_seq,
            clock=clock,
            prefix="log",
        )
        self.battle_log = LogBook(
            snapshot.battle_log,
            capacity=battle_capacity,
            next_seq=snapshot.battle_log_seq,
            clock=clock,
            prefix="battle",
        )
        self.toasts: List[Toast] = []

    @property
    def day(self) -> int:
        return self.snapshot.player.days_passed

    def note(
        self,
        category: LogCategory,
        message: str,
        *,
        toast: Optional[str] = None,
        variant: ToastVariant = ToastVariant.DEFAULT,
    ) -> LogEntry:
        """Append to the main log, optionally raising a toast with title ``toast``."""

        entry = self.log.record(category, message, day=self.day)
        if toast is not None:
            self.toasts.append(Toast(title=toast, description=message, variant=variant))
        return entry

    def warn(self, message: str, *, toast: str = "Warning") -> LogEntry:
        return self.note(LogCategory.WARNING, message, toast=toast, variant=ToastVariant.DESTRUCTIVE)

    def battle_note(self, message: str) -> LogEntry:
        return self.battle_log.record(LogCategory.COMBAT, message, day=self.day)

    def clear_battle_log(self) -> None:
        self.battle_log = self.battle_log.cleared()

    @property
    def new_entries(self) -> Tuple[LogEntry, ...]:
        return self.log.added

    @property
    def new_battle_entries(self) -> Tuple[LogEntry, ...]:
        return self.battle_log.added

    def commit(self) -> GameSnapshot:
        return replace(
            self.snapshot,
            event_log=self.log.freeze(),
            battle_log=self.battle_log.freeze(),
            log_seq=self.log.next_seq,
            battle_log_seq=self.battle_log.next_seq,
        )


__all__ = ["CommandContext"]
