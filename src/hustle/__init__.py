"""Hustle trading simulation core public façade."""

from .catalog import COMMODITIES, Region
from .config import GameConfig, LogConfig
from .errors import CommandRejected
from .feeds import LocalMarketFeed, MarketFeed
from .game_log import LogBook, LogCategory, LogEntry
from .notifications import Notification, NotificationBus, NotificationPriority, Toast, ToastVariant
from .runtime.combat import BattleAction, BattleOutcome, BattlePhase, BattleState
from .runtime.rng_service import RNGService
from .session import CommandResult, GameSession
from .snapshot import serialize_state, snapshot_signature
from .state import GameSnapshot, PlayerState, Rank, initial_snapshot

__all__ = [
    "BattleAction",
    "BattleOutcome",
    "BattlePhase",
    "BattleState",
    "COMMODITIES",
    "CommandRejected",
    "CommandResult",
    "GameConfig",
    "GameSession",
    "GameSnapshot",
    "LocalMarketFeed",
    "LogBook",
    "LogCategory",
    "LogConfig",
    "LogEntry",
    "MarketFeed",
    "Notification",
    "NotificationBus",
    "NotificationPriority",
    "PlayerState",
    "RNGService",
    "Rank",
    "Region",
    "Toast",
    "ToastVariant",
    "initial_snapshot",
    "serialize_state",
    "snapshot_signature",
]
