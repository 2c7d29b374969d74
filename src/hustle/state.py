"""Structured game state for the hustle simulation core.

The whole session is one :class:`GameSnapshot`.  Snapshots are frozen
dataclasses; every command builds the next snapshot with
:func:`dataclasses.replace` and the session swaps it in atomically, so a
failed command never leaves a half-updated state behind.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, FrozenSet, Mapping, Optional, Tuple

from .catalog import Armor, Region, Weapon
from .game_log import LogEntry
from .runtime.events import GameEvent

if TYPE_CHECKING:
    from .runtime.combat import BattleState


MAX_HEALTH = 100
MIN_CAPACITY = 10


class Rank(Enum):
    ROOKIE = "Rookie"
    PEDDLER = "Peddler"
    DEALER = "Dealer"
    SUPPLIER = "Supplier"
    DISTRIBUTOR = "Distributor"
    BARON = "Baron"
    KINGPIN = "Kingpin"

    @property
    def order(self) -> int:
        return list(Rank).index(self)


class Direction(Enum):
    UP = "up"
    DOWN = "down"
    SAME = "same"
    NEW = "new"


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)."""

    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


# ---------------------------------------------------------------------------
# Player
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Holding:
    quantity: int
    total_cost: int

    @property
    def average_cost(self) -> float:
        return self.total_cost / self.quantity if self.quantity else 0.0


@dataclass(frozen=True, slots=True)
class AmmoState:
    in_clip: int
    reserve: int


@dataclass(frozen=True, slots=True)
class PlayerState:
    name: str = "Player1"
    health: int = MAX_HEALTH
    cash: int = 1000
    reputation: int = 0
    days_passed: int = 0
    current_region: Region = Region.MANHATTAN
    rank: Rank = Rank.ROOKIE
    inventory: Mapping[str, Holding] = field(default_factory=dict)
    max_capacity: int = 100
    equipped_weapon: Optional[Weapon] = None
    equipped_armor: Optional[Armor] = None
    weapon_ammo: Optional[AmmoState] = None
    purchased_upgrade_ids: FrozenSet[str] = frozenset()
    purchased_armor_ids: FrozenSet[str] = frozenset()

    @property
    def inventory_units(self) -> int:
        return sum(holding.quantity for holding in self.inventory.values())

    @property
    def free_capacity(self) -> int:
        return max(0, self.max_capacity - self.inventory_units)

    def holding(self, commodity: str) -> Holding:
        return self.inventory.get(commodity, Holding(0, 0))

    def with_health_delta(self, delta: int) -> "PlayerState":
        return replace(self, health=clamp(self.health + delta, 0, MAX_HEALTH))

    def with_cash_delta(self, delta: int) -> "PlayerState":
        # Shortfalls clamp to exactly zero.
        return replace(self, cash=max(0, self.cash + delta))

    def with_reputation_delta(self, delta: int) -> "PlayerState":
        return replace(self, reputation=self.reputation + delta)


# ---------------------------------------------------------------------------
# Market values
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RawPrice:
    """Price generator output before headline and event modifiers."""

    commodity: str
    price: int
    volatility: float


@dataclass(frozen=True, slots=True)
class Headline:
    headline: str
    price_impact: float
    affected_commodity: Optional[str] = None
    affected_categories: Tuple[str, ...] = ()

    @property
    def general(self) -> bool:
        return self.affected_commodity is None and not self.affected_categories


@dataclass(frozen=True, slots=True)
class MarketQuote:
    commodity: str
    price: int
    volatility: float
    direction: Direction = Direction.NEW


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


def _zero_by_region() -> Mapping[Region, int]:
    return {region: 0 for region in Region.ordered()}


def _no_events() -> Mapping[Region, Optional[GameEvent]]:
    return {region: None for region in Region.ordered()}


@dataclass(frozen=True, slots=True)
class GameSnapshot:
    """Complete game state at one point in time."""

    player: PlayerState = field(default_factory=PlayerState)
    market: Tuple[MarketQuote, ...] = ()
    previous_quotes: Mapping[Region, Mapping[str, int]] = field(default_factory=dict)
    headlines: Tuple[Headline, ...] = ()
    region_events: Mapping[Region, Optional[GameEvent]] = field(default_factory=_no_events)
    heat: Mapping[Region, int] = field(default_factory=_zero_by_region)
    activity: Mapping[Region, int] = field(default_factory=_zero_by_region)
    battle: Optional["BattleState"] = None
    event_log: Tuple[LogEntry, ...] = ()
    battle_log: Tuple[LogEntry, ...] = ()
    game_over: bool = False
    game_message: Optional[str] = None
    log_seq: int = 0
    battle_log_seq: int = 0

    @property
    def day(self) -> int:
        return self.player.days_passed

    @property
    def battle_active(self) -> bool:
        return self.battle is not None and not self.battle.resolved

    @property
    def current_event(self) -> Optional[GameEvent]:
        return self.region_events.get(self.player.current_region)

    def heat_for(self, region: Region) -> int:
        return int(self.heat.get(region, 0))

    def quote_for(self, commodity: str) -> Optional[MarketQuote]:
        for quote in self.market:
            if quote.commodity == commodity:
                return quote
        return None


def initial_snapshot(player: Optional[PlayerState] = None) -> GameSnapshot:
    return GameSnapshot(player=player or PlayerState())


__all__ = [
    "AmmoState",
    "Direction",
    "GameSnapshot",
    "Headline",
    "Holding",
    "MAX_HEALTH",
    "MIN_CAPACITY",
    "MarketQuote",
    "PlayerState",
    "Rank",
    "RawPrice",
    "clamp",
    "initial_snapshot",
    "round_half_up",
]
