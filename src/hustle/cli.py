"""Command line autopilot for headless runs."""

from __future__ import annotations

import argparse
import asyncio
from typing import Dict, Sequence

from .catalog import COMMODITY_BY_NAME, REGION_PROFILES, Region
from .config import GameConfig
from .runtime.combat import BattleAction
from .session import GameSession
from .snapshot import snapshot_signature
from .state import GameSnapshot


def _parse_overrides(pairs: Sequence[str]) -> Dict[str, object]:
    overrides: Dict[str, object] = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Overrides must be of the form key=value, received '{pair}'")
        key, raw_value = pair.split("=", 1)
        overrides[key.strip()] = _coerce_value(raw_value.strip())
    return overrides


def _coerce_value(raw: str) -> object:
    for cast in (int, float):
        try:
            return cast(raw)
        except ValueError:
            continue
    lowered = raw.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    return raw


def _summary_line(snapshot: GameSnapshot) -> str:
    player = snapshot.player
    region = player.current_region
    event = snapshot.current_event
    return (
        f"day {player.days_passed:3d} | {region.value:13} | cash ${player.cash:>9,} | hp {player.health:3d} | "
        f"rep {player.reputation:4d} | {player.rank.value:11} | heat {snapshot.heat_for(region)} | "
        f"units {player.inventory_units}/{player.max_capacity}"
        + (f" | {event.name}" if event is not None else "")
    )


async def _fight(session: GameSession) -> None:
    while session.snapshot.battle_active:
        result = await session.submit_battle_action(BattleAction.ATTACK)
        if not result.accepted:
            break
    if session.snapshot.battle is not None:
        await session.end_battle()


async def _trade(session: GameSession) -> None:
    """Sell anything showing a profit, then stock up on the best bargain."""

    snapshot = session.snapshot
    for commodity, holding in list(snapshot.player.inventory.items()):
        quote = snapshot.quote_for(commodity)
        if quote is not None and quote.price > holding.average_cost:
            await session.sell_commodity(commodity, holding.quantity, quote.price)

    snapshot = session.snapshot
    bargains = sorted(
        snapshot.market,
        key=lambda quote: quote.price / COMMODITY_BY_NAME[quote.commodity].base_price,
    )
    if not bargains:
        return
    best = bargains[0]
    if best.price / COMMODITY_BY_NAME[best.commodity].base_price >= 0.95:
        return
    player = snapshot.player
    quantity = min(player.free_capacity, (player.cash // 2) // best.price)
    if quantity > 0:
        await session.buy_commodity(best.commodity, quantity, best.price)


async def run_autopilot(config: GameConfig, days: int, *, echo: bool = True) -> GameSession:
    session = GameSession(config)
    await session.start()
    for _ in range(days):
        result = await session.advance_day()
        if not result.accepted:
            break
        await _fight(session)
        if session.snapshot.game_over:
            if echo:
                print(_summary_line(session.snapshot))
            break
        await _trade(session)
        if echo:
            print(_summary_line(session.snapshot))
    return session


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run a hustle autopilot session")
    parser.add_argument("--seed", type=int, default=1337, help="Session seed")
    parser.add_argument("--days", type=int, default=30, help="Days to simulate")
    parser.add_argument("--region", help="Starting region")
    parser.add_argument(
        "--config",
        action="append",
        default=[],
        metavar="key=value",
        help="Override config fields (dotted keys, e.g. combat.miss_chance=0)",
    )
    parser.add_argument("--list-regions", action="store_true", help="List the regions and exit")
    parser.add_argument("--signature", action="store_true", help="Print the final snapshot signature")
    args = parser.parse_args(argv)

    if args.list_regions:
        for region in Region.ordered():
            profile = REGION_PROFILES[region]
            print(f"{region.value:13} | x{profile.price_multiplier:0.2f} | heat {profile.typical_heat:15} | {profile.description}")
        return 0

    overrides = _parse_overrides(args.config)
    overrides["seed"] = args.seed
    if args.region:
        overrides["starting_region"] = args.region
    config = GameConfig().with_overrides(overrides)

    session = asyncio.run(run_autopilot(config, args.days))
    snapshot = session.snapshot
    print("")
    print(f"Final: {snapshot.player.rank.value} with ${snapshot.player.cash:,} after {snapshot.day} days.")
    if snapshot.game_message:
        print(snapshot.game_message)
    if args.signature:
        print(f"signature {snapshot_signature(snapshot)} rng {session.rng.signature()}")
    return 2 if snapshot.game_over else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
