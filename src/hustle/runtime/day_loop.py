"""The once-per-day tick.

``advance_day`` produces the next snapshot in a fixed order:

1. advance the calendar and drop random-stream counters older than yesterday
2. heat from yesterday's trading, then reset the activity counters
3. today's events and their heat deltas
4. the current region's event impact on the player (may start a fight)
5. prices and headlines for the current region, composed into the market
6. the random encounter roll, unless a fight already started
7. rank promotion
8. commit

Any step can end the tick early when the game is over.  Feed failures are
logged as warnings and never abort the tick.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple

from hustle.catalog import Region
from hustle.errors import CommandRejected
from hustle.game_log import Clock, LogCategory, LogEntry, utc_clock
from hustle.notifications import Toast, ToastVariant
from hustle.runtime.combat import TRIGGER_CATEGORIES, EncounterRoll, roll_encounter
from hustle.runtime.context import CommandContext
from hustle.runtime.encounters import declare_game_over, open_battle
from hustle.runtime.events import GameEvent
from hustle.runtime.heat import apply_event_heat, daily_heat_update, reset_activity
from hustle.runtime.market import compose_market, remember_quotes
from hustle.runtime.progression import promoted_rank
from hustle.state import GameSnapshot

if TYPE_CHECKING:
    from hustle.config import GameConfig
    from hustle.feeds import MarketFeed
    from hustle.runtime.rng_service import RNGService


@dataclass(frozen=True, slots=True)
class DayReport:
    snapshot: GameSnapshot
    toasts: Tuple[Toast, ...] = ()
    entries: Tuple[LogEntry, ...] = ()
    battle_entries: Tuple[LogEntry, ...] = ()
    events: Mapping[Region, Optional[GameEvent]] | None = None
    encounter: Optional[EncounterRoll] = None
    battle_started: bool = False
    market_failed: bool = False
    events_failed: bool = False


def _no_events() -> Dict[Region, Optional[GameEvent]]:
    return {region: None for region in Region.ordered()}


async def refresh_market(ctx: CommandContext, feed: "MarketFeed") -> bool:
    """Fetch and compose the current region's market.  Returns ``False`` on failure."""

    snapshot = ctx.snapshot
    region = snapshot.player.current_region
    try:
        raw_prices = await feed.get_market_prices(region, snapshot.day, dict(snapshot.heat))
        headlines = await feed.get_local_headlines(region)
    except Exception as exc:
        ctx.warn(f"Could not update market data ({exc}).", toast="Market Error")
        ctx.snapshot = replace(snapshot, market=(), headlines=())
        return False

    quotes = compose_market(
        raw_prices,
        headlines,
        snapshot.region_events.get(region),
        snapshot.previous_quotes.get(region),
    )
    ctx.snapshot = replace(
        snapshot,
        market=quotes,
        headlines=tuple(headlines),
        previous_quotes=remember_quotes(snapshot.previous_quotes, region, quotes),
    )
    return True


def _report(ctx: CommandContext, **kwargs) -> DayReport:
    return DayReport(
        snapshot=ctx.commit(),
        toasts=tuple(ctx.toasts),
        entries=ctx.new_entries,
        battle_entries=ctx.new_battle_entries,
        **kwargs,
    )


async def advance_day(
    snapshot: GameSnapshot,
    feed: "MarketFeed",
    rng: "RNGService",
    cfg: "GameConfig",
    *,
    clock: Clock = utc_clock,
) -> DayReport:
    if snapshot.game_over:
        raise CommandRejected("The game is over. Start a new game to keep playing.", title="Game Over")
    if snapshot.battle is not None:
        raise CommandRejected("Finish the fight before moving on to the next day.", title="In Battle")

    ctx = CommandContext(
        snapshot,
        main_capacity=cfg.logs.main_capacity,
        battle_capacity=cfg.logs.battle_capacity,
        clock=clock,
    )

    # 1. calendar
    player = replace(snapshot.player, days_passed=snapshot.player.days_passed + 1)
    ctx.snapshot = replace(snapshot, player=player, game_message=None)
    day = player.days_passed
    rng.forget_before(day - 1)
    ctx.note(LogCategory.INFO, f"Day {day} begins.")

    # 2. heat from yesterday's activity
    heat = daily_heat_update(snapshot.heat, snapshot.activity, cfg.heat)
    ctx.snapshot = replace(ctx.snapshot, heat=heat, activity=reset_activity())

    # 3. events
    events_failed = False
    try:
        fetched = await feed.get_todays_events(day, dict(heat))
    except Exception as exc:
        ctx.warn(f"Could not fetch today's events ({exc}).", toast="Event Error")
        fetched = {}
        events_failed = True
    events = _no_events()
    events.update({region: fetched.get(region) for region in Region.ordered()})
    heat = apply_event_heat(heat, events, cfg.heat)
    ctx.snapshot = replace(ctx.snapshot, region_events=events, heat=heat)

    # 4. local event impact
    region = player.current_region
    event = events.get(region)
    battle_started = False
    if event is not None:
        ctx.note(LogCategory.EVENT, f"{event.name}: {event.text}", toast=event.name)
        impact = event.player_impact
        if impact is not None:
            player = (
                ctx.snapshot.player.with_health_delta(impact.health_delta)
                .with_cash_delta(impact.cash_delta)
                .with_reputation_delta(impact.reputation_delta)
            )
            ctx.snapshot = replace(ctx.snapshot, player=player)
            category = LogCategory.HEALTH_UPDATE if impact.health_delta else LogCategory.EVENT
            variant = ToastVariant.DESTRUCTIVE if impact.health_delta < 0 or impact.cash_delta < 0 else ToastVariant.DEFAULT
            ctx.note(category, impact.message, toast=event.name, variant=variant)
            if player.health <= 0:
                declare_game_over(ctx)
                return _report(ctx, events=events, events_failed=events_failed)
            if impact.combat_trigger is not None:
                open_battle(
                    ctx,
                    rng,
                    TRIGGER_CATEGORIES[impact.combat_trigger],
                    cfg.combat,
                    trigger=impact.combat_trigger,
                )
                battle_started = True
                if ctx.snapshot.game_over:
                    return _report(ctx, events=events, battle_started=True, events_failed=events_failed)

    # 5. market
    market_ok = await refresh_market(ctx, feed)

    # 6. random encounter
    encounter: Optional[EncounterRoll] = None
    if not battle_started:
        encounter = roll_encounter(
            rng,
            days_passed=day,
            heat=ctx.snapshot.heat_for(region),
            cfg=cfg.combat,
        )
        if encounter.suppressed:
            ctx.note(LogCategory.INFO, "You spot trouble down the block and keep your head low.")
        elif encounter.triggered and encounter.category is not None:
            open_battle(ctx, rng, encounter.category, cfg.combat)
            battle_started = True
            if ctx.snapshot.game_over:
                return _report(
                    ctx,
                    events=events,
                    encounter=encounter,
                    battle_started=True,
                    market_failed=not market_ok,
                    events_failed=events_failed,
                )

    # 7. rank
    player = ctx.snapshot.player
    if player.health > 0 and not ctx.snapshot.battle_active:
        new_rank = promoted_rank(player)
        if new_rank is not None:
            ctx.snapshot = replace(ctx.snapshot, player=replace(player, rank=new_rank))
            ctx.note(LogCategory.RANK_UP, f"You've been promoted to {new_rank.value}!", toast="Rank Up!")

    # 8. commit
    return _report(
        ctx,
        events=events,
        encounter=encounter,
        battle_started=battle_started,
        market_failed=not market_ok,
        events_failed=events_failed,
    )


__all__ = ["DayReport", "advance_day", "refresh_market"]
