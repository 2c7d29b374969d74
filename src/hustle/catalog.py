"""Static game data: regions, commodities, categories and shop items.

Everything here is immutable reference data.  The market, event and combat
runtimes read it; nothing in the simulation writes to it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Mapping, Tuple


class Region(Enum):
    MANHATTAN = "Manhattan"
    BROOKLYN = "Brooklyn"
    QUEENS = "Queens"
    BRONX = "The Bronx"
    STATEN_ISLAND = "Staten Island"

    @classmethod
    def ordered(cls) -> Tuple["Region", ...]:
        return tuple(cls)

    @classmethod
    def parse(cls, raw: str) -> "Region":
        lowered = raw.strip().lower()
        for region in cls:
            if lowered in {region.value.lower(), region.name.lower()}:
                return region
        raise ValueError(f"Unknown region '{raw}'")


@dataclass(frozen=True, slots=True)
class RegionProfile:
    region: Region
    price_multiplier: float
    description: str
    typical_heat: str


REGION_PROFILES: Mapping[Region, RegionProfile] = {
    Region.MANHATTAN: RegionProfile(
        Region.MANHATTAN,
        1.15,
        "The bustling heart of the city. High-end clientele and heavy police presence.",
        "Medium to High",
    ),
    Region.BROOKLYN: RegionProfile(
        Region.BROOKLYN,
        1.08,
        "Artistic communities and historic neighborhoods. Markets vary widely block to block.",
        "Low to Medium",
    ),
    Region.QUEENS: RegionProfile(
        Region.QUEENS,
        1.00,
        "Home to both airports, making it a hub for imported goods.",
        "Low to Medium",
    ),
    Region.BRONX: RegionProfile(
        Region.BRONX,
        0.92,
        "Rough around the edges, with significant gang activity and cheaper, harder product.",
        "Medium to High",
    ),
    Region.STATEN_ISLAND: RegionProfile(
        Region.STATEN_ISLAND,
        0.88,
        "Suburban and isolated, connected mainly by ferry. Lower prices, thinner volume.",
        "Low",
    ),
}


def region_multiplier(region: Region) -> float:
    profile = REGION_PROFILES.get(region)
    return profile.price_multiplier if profile else 1.0


@dataclass(frozen=True, slots=True)
class Commodity:
    name: str
    base_price: int
    volatility: float


COMMODITIES: Tuple[Commodity, ...] = (
    Commodity("Weed", 20, 0.15),
    Commodity("Cocaine", 150, 0.25),
    Commodity("Heroin", 120, 0.22),
    Commodity("MDMA", 40, 0.18),
    Commodity("LSD", 25, 0.20),
    Commodity("Meth", 80, 0.28),
    Commodity("Mushrooms", 15, 0.16),
    Commodity("Opium", 90, 0.20),
    Commodity("Ketamine", 50, 0.19),
    Commodity("PCP", 30, 0.21),
    Commodity("Xanax", 5, 0.12),
    Commodity("Valium", 4, 0.10),
    Commodity("Steroids", 20, 0.15),
    Commodity("Fentanyl", 200, 0.30),
    Commodity("Crack", 25, 0.23),
    Commodity("Spice", 8, 0.17),
    Commodity("GHB", 22, 0.19),
    Commodity("Rohypnol", 10, 0.15),
    Commodity("Adderall", 6, 0.13),
    Commodity("OxyContin", 60, 0.22),
    Commodity("Codeine Syrup", 18, 0.14),
    Commodity("Poppers (Amyl Nitrite)", 7, 0.11),
    Commodity("DMT", 70, 0.25),
    Commodity("Mescaline", 45, 0.20),
    Commodity("Ayahuasca Brew", 55, 0.21),
)

COMMODITY_BY_NAME: Mapping[str, Commodity] = {commodity.name: commodity for commodity in COMMODITIES}

CATEGORIES: Mapping[str, FrozenSet[str]] = {
    "all": frozenset(COMMODITY_BY_NAME),
    "stimulants": frozenset({"Cocaine", "Meth", "MDMA", "Crack", "Adderall"}),
    "opioids": frozenset({"Heroin", "Opium", "Fentanyl", "OxyContin", "Codeine Syrup"}),
    "psychedelics": frozenset({"LSD", "Mushrooms", "DMT", "Mescaline", "Ayahuasca Brew", "Spice", "PCP"}),
    "party": frozenset({"MDMA", "Ketamine", "LSD", "Cocaine", "GHB", "Poppers (Amyl Nitrite)"}),
    "prescription": frozenset({"Xanax", "Valium", "Adderall", "OxyContin", "Codeine Syrup"}),
    "cheap": frozenset({"Weed", "Spice", "Xanax", "Valium", "Poppers (Amyl Nitrite)"}),
    "expensive": frozenset({"Cocaine", "Heroin", "Fentanyl", "DMT", "OxyContin", "Meth"}),
}


def in_category(commodity: str, category: str) -> bool:
    return commodity in CATEGORIES.get(category, frozenset())


# ---------------------------------------------------------------------------
# Shop items
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Weapon:
    item_id: str
    name: str
    price: int
    damage: int
    firearm: bool = False
    clip_size: int = 0
    ammo_box_price: int = 0
    ammo_box_rounds: int = 0


@dataclass(frozen=True, slots=True)
class Armor:
    item_id: str
    name: str
    price: int
    protection: int


@dataclass(frozen=True, slots=True)
class HealingItem:
    item_id: str
    name: str
    price: int
    heal_amount: int


@dataclass(frozen=True, slots=True)
class CapacityUpgrade:
    item_id: str
    name: str
    price: int
    capacity_bonus: int


WEAPONS: Tuple[Weapon, ...] = (
    Weapon("switchblade", "Switchblade", 100, 8),
    Weapon("9mm", "9MM", 500, 14, firearm=True, clip_size=15, ammo_box_price=60, ammo_box_rounds=30),
    Weapon("switch_smg", "Switch (SMG)", 2500, 22, firearm=True, clip_size=30, ammo_box_price=150, ammo_box_rounds=60),
    Weapon("combat_shotty", "Combat Shotty", 5000, 35, firearm=True, clip_size=6, ammo_box_price=120, ammo_box_rounds=12),
    Weapon("rpg", "RPG", 10000, 50, firearm=True, clip_size=1, ammo_box_price=800, ammo_box_rounds=2),
)

ARMOR: Tuple[Armor, ...] = (
    Armor("leather_jacket", "Leather Jacket", 150, 2),
    Armor("kevlar_vest", "Kevlar Vest", 800, 5),
    Armor("tactical_vest", "Tactical Vest", 2500, 9),
    Armor("riot_gear", "Riot Gear", 6000, 14),
)

HEALING_ITEMS: Tuple[HealingItem, ...] = (
    HealingItem("bandages", "Bandages", 50, 15),
    HealingItem("first_aid_kit", "First Aid Kit", 150, 40),
    HealingItem("trauma_kit", "Trauma Kit", 400, 100),
)

CAPACITY_UPGRADES: Tuple[CapacityUpgrade, ...] = (
    CapacityUpgrade("backpack", "Backpack", 300, 20),
    CapacityUpgrade("duffel_bag", "Duffel Bag", 1200, 50),
    CapacityUpgrade("car_trunk", "Car Trunk", 5000, 100),
)


__all__ = [
    "ARMOR",
    "CAPACITY_UPGRADES",
    "CATEGORIES",
    "COMMODITIES",
    "COMMODITY_BY_NAME",
    "HEALING_ITEMS",
    "REGION_PROFILES",
    "WEAPONS",
    "Armor",
    "CapacityUpgrade",
    "Commodity",
    "HealingItem",
    "Region",
    "RegionProfile",
    "Weapon",
    "in_category",
    "region_multiplier",
]
