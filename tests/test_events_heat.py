from __future__ import annotations

import pytest

from hustle.catalog import Region
from hustle.runtime.combat import TRIGGER_CATEGORIES, EnemyCategory
from hustle.runtime.events import (
    GENERIC_EVENTS,
    REGION_EVENTS,
    CombatTrigger,
    EventConfig,
    GameEvent,
    all_events,
    event_pool,
    select_event,
    select_todays_events,
)
from hustle.runtime.heat import HeatConfig, apply_event_heat, daily_heat_update, record_activity, reset_activity
from hustle.runtime.rng_service import RNGService

from fakes import ScriptedRNG


def test_event_pool_lists_region_events_first():
    pool = event_pool(Region.BRONX)
    assert pool[: len(REGION_EVENTS[Region.BRONX])] == REGION_EVENTS[Region.BRONX]
    assert pool[-len(GENERIC_EVENTS):] == GENERIC_EVENTS


def test_select_event_respects_event_chance():
    cfg = EventConfig()
    assert select_event(ScriptedRNG({"events.occurs": [0.80]}), Region.QUEENS, day=1, cfg=cfg) is None
    picked = select_event(ScriptedRNG({"events.occurs": [0.10]}), Region.QUEENS, day=1, cfg=cfg)
    assert picked == event_pool(Region.QUEENS)[0]


def test_select_event_disabled():
    cfg = EventConfig(enabled=False)
    assert select_event(ScriptedRNG(default_rand=0.0), Region.QUEENS, day=1, cfg=cfg) is None


def test_todays_events_cover_every_region_and_come_from_pools():
    rng = RNGService(seed=3)
    cfg = EventConfig()
    hits = 0
    for day in range(1, 40):
        events = select_todays_events(rng, day=day, cfg=cfg)
        assert set(events) == set(Region)
        for region, event in events.items():
            if event is not None:
                hits += 1
                assert event in event_pool(region)
    # 39 days * 5 regions at 75%: well above half
    assert hits > 39 * 5 // 2


def test_event_price_factor_combines_commodity_and_category():
    event = GameEvent(
        id="e",
        name="E",
        text="t",
        commodity_factors={"MDMA": 1.2},
        category_factors={"party": 1.1, "stimulants": 0.5},
    )
    assert event.price_factor("MDMA") == pytest.approx(1.2 * 1.1 * 0.5)
    assert event.price_factor("Weed") == pytest.approx(1.0)


def test_every_combat_trigger_is_reachable_and_mapped():
    triggers = {
        event.player_impact.combat_trigger
        for event in all_events()
        if event.player_impact is not None and event.player_impact.combat_trigger is not None
    }
    assert triggers == set(CombatTrigger)
    assert TRIGGER_CATEGORIES[CombatTrigger.POLICE_RAID] is EnemyCategory.POLICE
    assert TRIGGER_CATEGORIES[CombatTrigger.GANG_ACTIVITY] is EnemyCategory.GANG
    assert TRIGGER_CATEGORIES[CombatTrigger.MUGGING] is EnemyCategory.FIEND


def test_heat_rises_with_activity_and_cools_without():
    cfg = HeatConfig()
    heat = {Region.MANHATTAN: 2, Region.BROOKLYN: 2, Region.QUEENS: 0, Region.BRONX: 5, Region.STATEN_ISLAND: 0}
    activity = record_activity(reset_activity(), Region.MANHATTAN)
    activity = record_activity(activity, Region.BRONX)

    updated = daily_heat_update(heat, activity, cfg)

    assert updated[Region.MANHATTAN] == 3
    assert updated[Region.BROOKLYN] == 1
    assert updated[Region.QUEENS] == 0
    assert updated[Region.BRONX] == 5
    assert updated[Region.STATEN_ISLAND] == 0


def test_event_heat_is_clamped():
    cfg = HeatConfig()
    heat = {region: 4 for region in Region}
    raid = GameEvent(id="raid", name="Raid", text="t", heat_delta=2)
    truce = GameEvent(id="truce", name="Truce", text="t", heat_delta=-9)

    updated = apply_event_heat(heat, {Region.MANHATTAN: raid, Region.BROOKLYN: truce, Region.QUEENS: None}, cfg)

    assert updated[Region.MANHATTAN] == 5
    assert updated[Region.BROOKLYN] == 0
    assert updated[Region.QUEENS] == 4


def test_record_activity_counts_trades():
    activity = record_activity(record_activity(reset_activity(), Region.QUEENS), Region.QUEENS)
    assert activity[Region.QUEENS] == 2
    assert activity[Region.BRONX] == 0
