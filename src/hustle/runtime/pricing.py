from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Mapping, Sequence

from hustle.catalog import COMMODITIES, Commodity, Region, region_multiplier
from hustle.state import RawPrice, round_half_up

if TYPE_CHECKING:
    from hustle.runtime.rng_service import RNGService


@dataclass(slots=True)
class PriceConfig:
    min_listed: int = 15
    max_listed: int = 20
    fluctuation_scale: float = 0.5
    heat_risk_premium: float = 0.02
    deterministic_salt: str = "prices-v1"


def perturbed_price(
    base_price: float,
    volatility: float,
    region: Region,
    normal_sample: float,
    *,
    heat: int = 0,
    cfg: PriceConfig | None = None,
) -> int:
    """Apply one normal draw, the region multiplier and the heat premium.

    The result is rounded half up and never drops below 1.  Heat adds
    ``heat_risk_premium`` per level; setting it to 0 leaves the bare
    base x fluctuation x region formula.
    """

    cfg = cfg or PriceConfig()
    if base_price <= 0:
        raise ValueError("base_price must be positive")
    price = base_price * (1.0 + normal_sample * volatility * cfg.fluctuation_scale)
    price *= region_multiplier(region)
    price *= 1.0 + max(0, heat) * cfg.heat_risk_premium
    return max(1, round_half_up(price))


def pick_listed_commodities(
    rng: "RNGService",
    *,
    region: Region,
    day: int,
    cfg: PriceConfig,
    catalog: Sequence[Commodity] = COMMODITIES,
) -> List[Commodity]:
    """Random subset of the catalog traded in ``region`` today, no duplicates."""

    scope = {"day": day, "region": region.value, "salt": cfg.deterministic_salt}
    upper = min(cfg.max_listed, len(catalog))
    lower = min(cfg.min_listed, upper)
    count = rng.randint("prices.count", lower, upper, scope=scope)
    return rng.sample("prices.subset", catalog, count, scope=scope)


def generate_market_prices(
    rng: "RNGService",
    *,
    region: Region,
    day: int,
    heat_by_region: Mapping[Region, int] | None = None,
    cfg: PriceConfig | None = None,
) -> List[RawPrice]:
    cfg = cfg or PriceConfig()
    heat = int((heat_by_region or {}).get(region, 0))
    listed = pick_listed_commodities(rng, region=region, day=day, cfg=cfg)
    prices: List[RawPrice] = []
    for commodity in listed:
        sample = rng.gauss(
            "prices.fluctuation",
            scope={"day": day, "region": region.value, "commodity": commodity.name, "salt": cfg.deterministic_salt},
        )
        price = perturbed_price(
            commodity.base_price,
            commodity.volatility,
            region,
            sample,
            heat=heat,
            cfg=cfg,
        )
        prices.append(RawPrice(commodity=commodity.name, price=price, volatility=commodity.volatility))
    return prices


__all__ = ["PriceConfig", "generate_market_prices", "perturbed_price", "pick_listed_commodities"]
