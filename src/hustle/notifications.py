"""Outbound notifications for the presentation layer.

Every committed command publishes its new log entries and user-facing
toasts here.  Delivery is ordered by priority first and publication order
second.  Subscribers are fire-and-forget: nothing they do can change the
committed snapshot.
"""

from __future__ import annotations

from collections import Counter, deque
from dataclasses import dataclass
from enum import Enum, auto
import heapq
import itertools
from typing import Callable, Deque, Dict, Iterable, List, Optional

from .game_log import BATTLE_LOG_CAPACITY, MAIN_LOG_CAPACITY, LogEntry

OUTBOX_CAPACITY = MAIN_LOG_CAPACITY + BATTLE_LOG_CAPACITY


class NotificationPriority(Enum):
    """Delivery classes; ``CRITICAL`` is delivered before ``HIGH`` and so on."""

    CRITICAL = auto()
    HIGH = auto()
    NORMAL = auto()
    LOW = auto()

    @property
    def queue_index(self) -> int:
        return {
            NotificationPriority.CRITICAL: 0,
            NotificationPriority.HIGH: 1,
            NotificationPriority.NORMAL: 2,
            NotificationPriority.LOW: 3,
        }[self]


class ToastVariant(Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True, slots=True)
class Toast:
    title: str
    description: str
    variant: ToastVariant = ToastVariant.DEFAULT


@dataclass(frozen=True, slots=True)
class Notification:
    """One item on the bus: either a toast or a new log entry."""

    id: str
    type: str
    day: int
    toast: Optional[Toast] = None
    entry: Optional[LogEntry] = None
    priority: NotificationPriority = NotificationPriority.NORMAL


Subscriber = Callable[[Notification], None]
Predicate = Callable[[Notification], bool]


@dataclass
class Subscription:
    predicate: Predicate
    callback: Subscriber
    active: bool = True

    def matches(self, notification: Notification) -> bool:
        return self.active and self.predicate(notification)


class NotificationBus:
    """Priority queue based notification dispatcher.

    The outbox keeps only the most recent ``outbox_capacity`` notifications.
    """

    def __init__(self, *, outbox_capacity: int = OUTBOX_CAPACITY) -> None:
        self._subscriptions: List[Subscription] = []
        self._queue: List[tuple[int, int, Notification]] = []
        self._counter = itertools.count()
        self._ids = itertools.count()
        self._outbox: Deque[Notification] = deque(maxlen=max(1, outbox_capacity))
        self._delivered_counts: Counter[str] = Counter()

    # ------------------------------------------------------------------
    # Subscription management
    # ------------------------------------------------------------------
    def subscribe(self, callback: Subscriber, *, predicate: Optional[Predicate] = None) -> Subscription:
        """Register a subscriber.

        ``predicate`` defaults to accepting everything.  Set
        ``subscription.active = False`` to stop receiving notifications.
        """

        if predicate is None:
            predicate = lambda notification: True
        sub = Subscription(predicate=predicate, callback=callback)
        self._subscriptions.append(sub)
        return sub

    # ------------------------------------------------------------------
    # Emission and dispatch
    # ------------------------------------------------------------------
    def publish(self, notification: Notification) -> None:
        heapq.heappush(
            self._queue,
            (notification.priority.queue_index, next(self._counter), notification),
        )
        self._outbox.append(notification)

    def publish_toast(
        self,
        title: str,
        description: str,
        *,
        day: int = 0,
        variant: ToastVariant = ToastVariant.DEFAULT,
        priority: Optional[NotificationPriority] = None,
    ) -> Notification:
        if priority is None:
            priority = NotificationPriority.HIGH if variant is ToastVariant.DESTRUCTIVE else NotificationPriority.NORMAL
        notification = Notification(
            id=f"toast:{next(self._ids)}",
            type="toast",
            day=day,
            toast=Toast(title=title, description=description, variant=variant),
            priority=priority,
        )
        self.publish(notification)
        return notification

    def publish_entry(self, entry: LogEntry, *, priority: NotificationPriority = NotificationPriority.LOW) -> Notification:
        notification = Notification(
            id=f"entry:{entry.id}",
            type=f"log.{entry.category.value}",
            day=entry.day,
            entry=entry,
            priority=priority,
        )
        self.publish(notification)
        return notification

    def dispatch(self) -> List[Notification]:
        """Drain the queue and notify matching subscribers."""

        delivered: List[Notification] = []
        while self._queue:
            _, _, notification = heapq.heappop(self._queue)
            delivered.append(notification)
            self._delivered_counts[notification.type] += 1
            for subscription in self._subscriptions:
                if subscription.matches(notification):
                    subscription.callback(notification)
        return delivered

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def outbox(self) -> Iterable[Notification]:
        return tuple(self._outbox)

    def toasts(self) -> List[Toast]:
        return [item.toast for item in self._outbox if item.toast is not None]

    def delivered_counts(self) -> Dict[str, int]:
        return dict(self._delivered_counts)

    def clear_outbox(self) -> None:
        self._outbox.clear()


__all__ = [
    "OUTBOX_CAPACITY",
    "Notification",
    "NotificationBus",
    "NotificationPriority",
    "Subscription",
    "Toast",
    "ToastVariant",
]
