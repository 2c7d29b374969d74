"""Market composition: raw prices, then headlines, then the day's event.

The composer is a pure function.  It never draws randomness itself; the
raw prices and headlines it combines come from the feed.
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from hustle.catalog import Region
from hustle.runtime.events import GameEvent
from hustle.runtime.headlines import headline_matches
from hustle.state import Direction, Headline, MarketQuote, RawPrice, round_half_up


def headline_factor(commodity: str, headlines: Iterable[Headline]) -> float:
    factor = 1.0
    for headline in headlines:
        if headline_matches(headline, commodity):
            factor *= 1.0 + headline.price_impact
    return factor


def compose_price(raw_price: float, commodity: str, headlines: Sequence[Headline], event: Optional[GameEvent]) -> int:
    price = float(raw_price) * headline_factor(commodity, headlines)
    if event is not None:
        price *= event.price_factor(commodity)
    return max(1, round_half_up(price))


def direction_for(price: int, previous: Optional[int]) -> Direction:
    if previous is None:
        return Direction.NEW
    if price > previous:
        return Direction.UP
    if price < previous:
        return Direction.DOWN
    return Direction.SAME


def compose_market(
    raw_prices: Sequence[RawPrice],
    headlines: Sequence[Headline],
    event: Optional[GameEvent],
    previous: Mapping[str, int] | None = None,
) -> Tuple[MarketQuote, ...]:
    """Final quotes for one region, tagged against that region's last quotes."""

    previous = previous or {}
    quotes = []
    for raw in raw_prices:
        price = compose_price(raw.price, raw.commodity, headlines, event)
        quotes.append(
            MarketQuote(
                commodity=raw.commodity,
                price=price,
                volatility=raw.volatility,
                direction=direction_for(price, previous.get(raw.commodity)),
            )
        )
    return tuple(quotes)


def quotes_by_commodity(quotes: Iterable[MarketQuote]) -> Dict[str, int]:
    return {quote.commodity: quote.price for quote in quotes}


def remember_quotes(
    previous_quotes: Mapping[Region, Mapping[str, int]],
    region: Region,
    quotes: Sequence[MarketQuote],
) -> Dict[Region, Mapping[str, int]]:
    """Keep one generation of quotes per region for the next comparison."""

    updated: Dict[Region, Mapping[str, int]] = dict(previous_quotes)
    if quotes:
        updated[region] = quotes_by_commodity(quotes)
    return updated


__all__ = [
    "compose_market",
    "compose_price",
    "direction_for",
    "headline_factor",
    "quotes_by_commodity",
    "remember_quotes",
]
