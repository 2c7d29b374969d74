"""Per-region police attention.

Heat is an integer in ``[0, 5]`` per region.  It moves once per day from
the player's trading activity, then again from that day's event.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from hustle.catalog import Region
from hustle.runtime.events import GameEvent


@dataclass(slots=True)
class HeatConfig:
    min_heat: int = 0
    max_heat: int = 5
    activity_step: int = 1
    cooldown_step: int = 1


def clamp_heat(value: int, cfg: HeatConfig) -> int:
    return max(cfg.min_heat, min(cfg.max_heat, int(value)))


def daily_heat_update(
    heat: Mapping[Region, int],
    activity: Mapping[Region, int],
    cfg: HeatConfig,
) -> Dict[Region, int]:
    """Raise heat where the player traded yesterday, cool it everywhere else."""

    updated: Dict[Region, int] = {}
    for region in Region.ordered():
        current = int(heat.get(region, 0))
        if int(activity.get(region, 0)) >= 1:
            updated[region] = clamp_heat(current + cfg.activity_step, cfg)
        else:
            updated[region] = clamp_heat(current - cfg.cooldown_step, cfg)
    return updated


def apply_event_heat(
    heat: Mapping[Region, int],
    events: Mapping[Region, Optional[GameEvent]],
    cfg: HeatConfig,
) -> Dict[Region, int]:
    updated = {region: int(heat.get(region, 0)) for region in Region.ordered()}
    for region, event in events.items():
        if event is None or not event.heat_delta:
            continue
        updated[region] = clamp_heat(updated.get(region, 0) + event.heat_delta, cfg)
    return updated


def record_activity(activity: Mapping[Region, int], region: Region) -> Dict[Region, int]:
    updated = {key: int(value) for key, value in activity.items()}
    updated[region] = updated.get(region, 0) + 1
    return updated


def reset_activity() -> Dict[Region, int]:
    return {region: 0 for region in Region.ordered()}


__all__ = [
    "HeatConfig",
    "apply_event_heat",
    "clamp_heat",
    "daily_heat_update",
    "record_activity",
    "reset_activity",
]
