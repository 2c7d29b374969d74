"""Session-wide configuration.

Each runtime module owns a small slotted dataclass with its tunables;
:class:`GameConfig` bundles them so one object can be handed to a session
and overridden with dotted keys such as ``combat.miss_chance``.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import Mapping, Optional

from .catalog import Region
from .game_log import BATTLE_LOG_CAPACITY, MAIN_LOG_CAPACITY
from .notifications import OUTBOX_CAPACITY
from .runtime.combat import CombatConfig
from .runtime.events import EventConfig
from .runtime.headlines import HeadlineConfig
from .runtime.heat import HeatConfig
from .runtime.pricing import PriceConfig
from .runtime.rng_service import RNGConfig
from .runtime.trading import TradeConfig
from .state import PlayerState


@dataclass(slots=True)
class LogConfig:
    main_capacity: int = MAIN_LOG_CAPACITY
    battle_capacity: int = BATTLE_LOG_CAPACITY
    outbox_capacity: int = OUTBOX_CAPACITY


@dataclass(slots=True)
class GameConfig:
    seed: int = 1337
    player_name: str = "Player1"
    starting_cash: int = 1000
    starting_capacity: int = 100
    starting_region: Region = Region.MANHATTAN
    rng: RNGConfig = field(default_factory=RNGConfig)
    prices: PriceConfig = field(default_factory=PriceConfig)
    headlines: HeadlineConfig = field(default_factory=HeadlineConfig)
    events: EventConfig = field(default_factory=EventConfig)
    heat: HeatConfig = field(default_factory=HeatConfig)
    combat: CombatConfig = field(default_factory=CombatConfig)
    trade: TradeConfig = field(default_factory=TradeConfig)
    logs: LogConfig = field(default_factory=LogConfig)

    def starting_player(self) -> PlayerState:
        return PlayerState(
            name=self.player_name,
            cash=self.starting_cash,
            max_capacity=self.starting_capacity,
            current_region=self.starting_region,
        )

    def with_overrides(self, overrides: Optional[Mapping[str, object]] = None) -> "GameConfig":
        """Copy of this config with dotted-key overrides applied.

        ``{"seed": 7, "combat.miss_chance": 0.0}`` sets a top-level field and
        a field of the nested combat config.  Unknown keys raise
        ``AttributeError``.
        """

        config = copy.deepcopy(self)
        for key, value in (overrides or {}).items():
            target = config
            parts = key.split(".")
            for part in parts[:-1]:
                if part not in _field_names(target):
                    raise AttributeError(f"Config '{type(target).__name__}' has no section '{part}'")
                target = getattr(target, part)
            leaf = parts[-1]
            if leaf not in _field_names(target):
                raise AttributeError(f"Config '{type(target).__name__}' has no field '{leaf}'")
            if isinstance(getattr(target, leaf), Region) and not isinstance(value, Region):
                value = Region.parse(str(value))
            setattr(target, leaf, value)
        return config


def _field_names(obj: object) -> set[str]:
    return {f.name for f in fields(obj)}


__all__ = ["GameConfig", "LogConfig"]
