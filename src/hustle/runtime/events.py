from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Sequence, Tuple

from hustle.catalog import CATEGORIES, Region

if TYPE_CHECKING:
    from hustle.runtime.rng_service import RNGService


class EventKind(Enum):
    POLICE = "police"
    GANG = "gang"
    ECONOMY = "economy"
    CELEBRITY = "celebrity"
    CIVIL = "civil"
    WEATHER = "weather"
    GENERIC = "generic"


class CombatTrigger(Enum):
    POLICE_RAID = "police_raid"
    GANG_ACTIVITY = "gang_activity"
    DESPERATE_SELLER = "desperate_seller"
    MUGGING = "mugging"


@dataclass(frozen=True, slots=True)
class PlayerImpact:
    message: str
    health_delta: int = 0
    cash_delta: int = 0
    reputation_delta: int = 0
    combat_trigger: Optional[CombatTrigger] = None


@dataclass(frozen=True, slots=True)
class GameEvent:
    """Single-day modifier bundle for one region."""

    id: str
    name: str
    text: str
    kind: EventKind = EventKind.GENERIC
    description: str = ""
    commodity_factors: Mapping[str, float] = field(default_factory=dict)
    category_factors: Mapping[str, float] = field(default_factory=dict)
    heat_delta: int = 0
    player_impact: Optional[PlayerImpact] = None

    def price_factor(self, commodity: str) -> float:
        """Commodity factor first, then every category factor that covers it."""

        factor = float(self.commodity_factors.get(commodity, 1.0))
        for category, category_factor in self.category_factors.items():
            if commodity in CATEGORIES.get(category, frozenset()):
                factor *= float(category_factor)
        return factor


@dataclass(slots=True)
class EventConfig:
    enabled: bool = True
    event_chance: float = 0.75
    deterministic_salt: str = "events-v1"


# ---------------------------------------------------------------------------
# Event pools
# ---------------------------------------------------------------------------


GENERIC_EVENTS: Tuple[GameEvent, ...] = (
    GameEvent(
        id="generic_light_rain",
        name="Light Rain",
        text="Light rain falls over the city, making streets slick.",
        kind=EventKind.WEATHER,
        description="A light drizzle is making the rounds. Not much impact, but the city looks grimier.",
        commodity_factors={"Weed": 1.02},
    ),
    GameEvent(
        id="generic_economic_uptick",
        name="Economic Uptick",
        text="Positive economic news has people spending a bit more freely.",
        kind=EventKind.ECONOMY,
        description="Good times are rolling, or so they say. More cash flowing around.",
        commodity_factors={"Cocaine": 1.05, "MDMA": 1.03},
    ),
    GameEvent(
        id="generic_undercover_op_rumor",
        name="Undercover Op Rumor",
        text="Whispers of undercover cops are making dealers nervous city-wide.",
        kind=EventKind.POLICE,
        description="There's a buzz about plainclothes officers. Everyone's a bit more cautious.",
        commodity_factors={"Heroin": 1.03, "Meth": 1.03},
        heat_delta=1,
    ),
    GameEvent(
        id="generic_pharmacy_shortage",
        name="Pharmacy Shortage",
        text="Pharmacies across the city report shortages of common prescriptions.",
        kind=EventKind.ECONOMY,
        description="Scripts are hard to fill this week. Street supply of pills is in demand.",
        category_factors={"prescription": 1.12},
    ),
)

REGION_EVENTS: Mapping[Region, Tuple[GameEvent, ...]] = {
    Region.MANHATTAN: (
        GameEvent(
            id="manhattan_wallstreet_raid_major",
            name="Major Wall Street Raid",
            text="SWAT teams hit multiple financial institutions in a massive crackdown on white-collar drug use.",
            kind=EventKind.POLICE,
            description="The Financial District is crawling with feds. High-end drugs are risky business.",
            commodity_factors={"Cocaine": 1.30, "Adderall": 1.20, "OxyContin": 1.15},
            heat_delta=2,
            player_impact=PlayerImpact(
                message="Feds are sweeping the Financial District. A patrol has you in its sights.",
                combat_trigger=CombatTrigger.POLICE_RAID,
            ),
        ),
        GameEvent(
            id="manhattan_celebrity_party_overdose",
            name="Celebrity Overdose Scandal",
            text="A-list celebrity overdose at a SoHo party. Media frenzy ensues.",
            kind=EventKind.CELEBRITY,
            description="Paparazzi are everywhere after a celebrity OD. Party drugs are under scrutiny.",
            commodity_factors={"MDMA": 0.9, "Ketamine": 0.92, "LSD": 1.1},
            heat_delta=1,
        ),
        GameEvent(
            id="manhattan_un_summit_security",
            name="UN Summit Security",
            text="Midtown locked down for a UN summit. Police presence is overwhelming.",
            kind=EventKind.CIVIL,
            description="Good luck moving anything through Midtown with this level of security.",
            commodity_factors={"Weed": 1.1, "Cocaine": 1.15, "Heroin": 1.12},
            heat_delta=2,
        ),
    ),
    Region.BROOKLYN: (
        GameEvent(
            id="brooklyn_warehouse_fire",
            name="Warehouse Fire in Bushwick",
            text="Massive warehouse fire in Bushwick destroys suspected drug lab. Certain supplies affected.",
            kind=EventKind.CIVIL,
            description="A huge fire in Bushwick is making headlines. Rumor has it a major lab went up.",
            commodity_factors={"Meth": 1.25, "Spice": 1.20, "MDMA": 1.15},
            heat_delta=1,
        ),
        GameEvent(
            id="brooklyn_hipster_festival",
            name="Hipster Music Festival",
            text='Williamsburg overrun by a massive indie music festival. Demand for "boutique" drugs spikes.',
            kind=EventKind.CIVIL,
            description="Thousands of festival-goers in Williamsburg. They want the good stuff.",
            commodity_factors={"Weed": 1.15, "Mushrooms": 1.20, "LSD": 1.18, "Ketamine": 1.10},
            category_factors={"party": 1.05},
            heat_delta=-1,
        ),
        GameEvent(
            id="brooklyn_gang_truce_meeting",
            name="Gang Truce Meeting",
            text="Rival Brooklyn gangs reportedly holding a truce meeting. Streets unusually quiet.",
            kind=EventKind.GANG,
            description="Word is the big gangs are talking peace. Might be easier to operate for a bit.",
            commodity_factors={"Crack": 0.95, "Heroin": 0.97},
            heat_delta=-2,
        ),
    ),
    Region.QUEENS: (
        GameEvent(
            id="queens_airport_security_tech",
            name="New Airport Security Tech",
            text="JFK and LaGuardia roll out advanced new scanners. Smuggling routes hit hard.",
            kind=EventKind.POLICE,
            description="Getting anything through the airports just got a lot harder.",
            commodity_factors={"Cocaine": 1.20, "Heroin": 1.18, "Fentanyl": 1.25},
            heat_delta=2,
        ),
        GameEvent(
            id="queens_cultural_festival",
            name="Large Cultural Festival",
            text="A major cultural festival in Flushing draws huge crowds. Specific demands up.",
            kind=EventKind.CIVIL,
            description="Flushing is packed for a cultural fest. Some niche markets are buzzing.",
            commodity_factors={"Opium": 1.15, "Ketamine": 1.10},
        ),
        GameEvent(
            id="queens_desperate_seller",
            name="Desperate Seller",
            text="A strung-out seller is dumping product cheap around Jackson Heights.",
            kind=EventKind.GANG,
            description="Someone is liquidating fast. Cheap goods, but desperate people are dangerous.",
            category_factors={"opioids": 0.85},
            player_impact=PlayerImpact(
                message="A desperate seller corners you, demanding you buy or pay up.",
                combat_trigger=CombatTrigger.DESPERATE_SELLER,
            ),
        ),
    ),
    Region.BRONX: (
        GameEvent(
            id="bronx_gang_leader_arrested",
            name="Major Gang Leader Arrested",
            text="High-profile Bronx gang leader busted in a pre-dawn raid. Power vacuum emerging.",
            kind=EventKind.GANG,
            description="The arrest of a top gang figure has thrown the underworld into chaos.",
            commodity_factors={"Crack": 1.10, "PCP": 1.08, "Heroin": 1.05},
            heat_delta=1,
            player_impact=PlayerImpact(
                message="Streets in The Bronx are tense after a big arrest. Could be dangerous, could be opportunity.",
                combat_trigger=CombatTrigger.GANG_ACTIVITY,
            ),
        ),
        GameEvent(
            id="bronx_community_watch_boost",
            name="Community Watch Expansion",
            text="Several Bronx neighborhoods receive funding to expand community watch programs.",
            kind=EventKind.CIVIL,
            description="More eyes on the street as community watch groups get a boost.",
            commodity_factors={"Weed": 1.05, "Crack": 1.07},
            heat_delta=1,
        ),
        GameEvent(
            id="bronx_block_party",
            name="Block Party Brawl",
            text="A Grand Concourse block party spills into a street brawl.",
            kind=EventKind.CIVIL,
            description="Fists are flying on the Concourse. Keep your head down.",
            category_factors={"cheap": 1.08},
            player_impact=PlayerImpact(
                message="You catch a stray elbow in the crowd.",
                health_delta=-8,
                reputation_delta=1,
            ),
        ),
    ),
    Region.STATEN_ISLAND: (
        GameEvent(
            id="staten_ferry_drug_dog_patrols",
            name="Ferry Drug Dog Patrols",
            text="Increased K9 units patrolling the Staten Island Ferry. Smuggling significantly harder.",
            kind=EventKind.POLICE,
            description="Drug dogs are all over the ferry terminals. Moving anything by boat is risky.",
            commodity_factors={"Weed": 1.15, "Cocaine": 1.12, "Heroin": 1.10},
            heat_delta=2,
        ),
        GameEvent(
            id="staten_island_storm_surge",
            name="Coastal Storm Surge",
            text="Coastal storm surge warnings for Staten Island. Ferry services disrupted, some roads flooded.",
            kind=EventKind.WEATHER,
            description="Bad weather hitting the island. Transport is a mess.",
            commodity_factors={"Fentanyl": 1.08, "Meth": 1.05},
        ),
        GameEvent(
            id="staten_ferry_mugging",
            name="Ferry Terminal Mugging",
            text="A string of muggings near the St. George terminal has commuters on edge.",
            kind=EventKind.CIVIL,
            description="Somebody is working the ferry crowds. Watch your pockets.",
            player_impact=PlayerImpact(
                message="A mugger lifts some cash off you near the terminal and squares up.",
                cash_delta=-75,
                combat_trigger=CombatTrigger.MUGGING,
            ),
        ),
    ),
}


def event_pool(region: Region) -> Tuple[GameEvent, ...]:
    """Region-specific events followed by the shared generic pool."""

    return tuple(REGION_EVENTS.get(region, ())) + GENERIC_EVENTS


def select_event(
    rng: "RNGService",
    region: Region,
    *,
    day: int,
    cfg: EventConfig,
    pool: Optional[Sequence[GameEvent]] = None,
) -> Optional[GameEvent]:
    candidates = tuple(pool) if pool is not None else event_pool(region)
    if not cfg.enabled or not candidates:
        return None
    scope = {"day": day, "region": region.value, "salt": cfg.deterministic_salt}
    if rng.rand("events.occurs", scope=scope) >= cfg.event_chance:
        return None
    return rng.choice("events.pick", candidates, scope=scope)


def select_todays_events(rng: "RNGService", *, day: int, cfg: EventConfig) -> Dict[Region, Optional[GameEvent]]:
    """Draw each region's event for ``day`` independently."""

    return {region: select_event(rng, region, day=day, cfg=cfg) for region in Region.ordered()}


def all_events() -> Tuple[GameEvent, ...]:
    seen: Dict[str, GameEvent] = {}
    for region in Region.ordered():
        for event in event_pool(region):
            seen.setdefault(event.id, event)
    return tuple(seen.values())


__all__ = [
    "CombatTrigger",
    "EventConfig",
    "EventKind",
    "GENERIC_EVENTS",
    "GameEvent",
    "PlayerImpact",
    "REGION_EVENTS",
    "all_events",
    "event_pool",
    "select_event",
    "select_todays_events",
]
