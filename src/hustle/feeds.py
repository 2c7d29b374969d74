"""Data feeds the day loop pulls from.

The core only depends on the :class:`MarketFeed` protocol.  Calls are
coroutines so a remote implementation can do real I/O; any exception a
feed raises is treated as a non-fatal fetch failure by the caller.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Protocol

from .catalog import (
    ARMOR,
    CAPACITY_UPGRADES,
    HEALING_ITEMS,
    WEAPONS,
    Armor,
    CapacityUpgrade,
    HealingItem,
    Region,
    Weapon,
)
from .runtime.events import EventConfig, GameEvent, select_todays_events
from .runtime.headlines import HeadlineConfig, generate_headlines
from .runtime.pricing import PriceConfig, generate_market_prices
from .runtime.rng_service import RNGService
from .state import Headline, RawPrice


class MarketFeed(Protocol):
    async def get_market_prices(
        self, region: Region, day: int, heat_by_region: Mapping[Region, int]
    ) -> List[RawPrice]: ...

    async def get_local_headlines(self, region: Region) -> List[Headline]: ...

    async def get_todays_events(
        self, day: int, heat_by_region: Mapping[Region, int]
    ) -> Dict[Region, Optional[GameEvent]]: ...

    async def get_shop_weapons(self) -> List[Weapon]: ...

    async def get_shop_armor(self) -> List[Armor]: ...

    async def get_shop_healing_items(self) -> List[HealingItem]: ...

    async def get_shop_capacity_upgrades(self) -> List[CapacityUpgrade]: ...


@dataclass
class LocalMarketFeed:
    """In-process feed backed by the session's :class:`RNGService`."""

    rng: RNGService
    prices: PriceConfig = field(default_factory=PriceConfig)
    headlines: HeadlineConfig = field(default_factory=HeadlineConfig)
    events: EventConfig = field(default_factory=EventConfig)

    async def get_market_prices(
        self, region: Region, day: int, heat_by_region: Mapping[Region, int]
    ) -> List[RawPrice]:
        await asyncio.sleep(0)
        return generate_market_prices(self.rng, region=region, day=day, heat_by_region=heat_by_region, cfg=self.prices)

    async def get_local_headlines(self, region: Region) -> List[Headline]:
        await asyncio.sleep(0)
        return generate_headlines(self.rng, region=region, cfg=self.headlines)

    async def get_todays_events(
        self, day: int, heat_by_region: Mapping[Region, int]
    ) -> Dict[Region, Optional[GameEvent]]:
        # Local selection does not weight events by heat.
        await asyncio.sleep(0)
        return select_todays_events(self.rng, day=day, cfg=self.events)

    async def get_shop_weapons(self) -> List[Weapon]:
        return list(WEAPONS)

    async def get_shop_armor(self) -> List[Armor]:
        return list(ARMOR)

    async def get_shop_healing_items(self) -> List[HealingItem]:
        return list(HEALING_ITEMS)

    async def get_shop_capacity_upgrades(self) -> List[CapacityUpgrade]:
        return list(CAPACITY_UPGRADES)


__all__ = ["LocalMarketFeed", "MarketFeed"]
