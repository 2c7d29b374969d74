"""Per-player game session.

:class:`GameSession` is the only way to change game state.  It keeps the
current :class:`~hustle.state.GameSnapshot`, runs one command at a time and
swaps in the command's new snapshot only once the command has finished.
A command issued while another is still running is rejected outright.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Dict, List, Optional, Tuple

from .catalog import Region
from .config import GameConfig
from .errors import CommandRejected
from .feeds import LocalMarketFeed, MarketFeed
from .game_log import Clock, LogCategory, LogEntry, utc_clock
from .notifications import NotificationBus, NotificationPriority, Toast, ToastVariant
from .runtime import day_loop, trading
from .runtime.combat import BattleAction, resolve_action
from .runtime.context import CommandContext
from .runtime.encounters import apply_turn, battle_closed_message
from .runtime.rng_service import RNGService
from .runtime.telemetry import Metrics
from .state import GameSnapshot, initial_snapshot


@dataclass(frozen=True, slots=True)
class CommandResult:
    command: str
    accepted: bool
    snapshot: GameSnapshot
    reason: Optional[str] = None
    title: Optional[str] = None
    toasts: Tuple[Toast, ...] = ()
    entries: Tuple[LogEntry, ...] = ()


@dataclass(frozen=True, slots=True)
class _Outcome:
    snapshot: GameSnapshot
    toasts: Tuple[Toast, ...] = ()
    entries: Tuple[LogEntry, ...] = ()
    battle_entries: Tuple[LogEntry, ...] = ()


Operation = Callable[[GameSnapshot], Awaitable[_Outcome]]


def _from_context(ctx: CommandContext) -> _Outcome:
    return _Outcome(
        snapshot=ctx.commit(),
        toasts=tuple(ctx.toasts),
        entries=ctx.new_entries,
        battle_entries=ctx.new_battle_entries,
    )


class GameSession:
    def __init__(
        self,
        config: Optional[GameConfig] = None,
        *,
        feed: Optional[MarketFeed] = None,
        rng: Optional[RNGService] = None,
        bus: Optional[NotificationBus] = None,
        metrics: Optional[Metrics] = None,
        clock: Clock = utc_clock,
    ) -> None:
        self.config = config or GameConfig()
        self.rng = rng or RNGService(seed=self.config.seed, config=self.config.rng)
        self.feed: MarketFeed = feed or LocalMarketFeed(
            self.rng,
            prices=self.config.prices,
            headlines=self.config.headlines,
            events=self.config.events,
        )
        self.bus = bus or NotificationBus(outbox_capacity=self.config.logs.outbox_capacity)
        self.metrics = metrics or Metrics()
        self.clock = clock
        self._snapshot = initial_snapshot(self.config.starting_player())
        self._busy = False
        self.started = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def snapshot(self) -> GameSnapshot:
        return self._snapshot

    @property
    def busy(self) -> bool:
        return self._busy

    def _context(self, snapshot: GameSnapshot) -> CommandContext:
        return CommandContext(
            snapshot,
            main_capacity=self.config.logs.main_capacity,
            battle_capacity=self.config.logs.battle_capacity,
            clock=self.clock,
        )

    # ------------------------------------------------------------------
    # Command plumbing
    # ------------------------------------------------------------------
    async def _run(self, name: str, operation: Operation) -> CommandResult:
        if self._busy:
            return self._reject(name, CommandRejected("Another action is still in progress.", title="Busy"))
        self._busy = True
        try:
            outcome = await operation(self._snapshot)
        except CommandRejected as exc:
            return self._reject(name, exc)
        except Exception as exc:
            return self._fail(name, exc)
        finally:
            self._busy = False
        return self._commit(name, outcome)

    def _reject(self, name: str, exc: CommandRejected) -> CommandResult:
        self.metrics.inc("commands.rejected")
        self.metrics.inc(f"commands.rejected.{name}")
        toast = Toast(title=exc.title, description=exc.reason, variant=ToastVariant.DESTRUCTIVE)
        self.bus.publish_toast(toast.title, toast.description, day=self._snapshot.day, variant=toast.variant)
        self.bus.dispatch()
        return CommandResult(
            command=name,
            accepted=False,
            snapshot=self._snapshot,
            reason=exc.reason,
            title=exc.title,
            toasts=(toast,),
        )

    def _fail(self, name: str, exc: Exception) -> CommandResult:
        self.metrics.inc("commands.failed")
        self.metrics.inc(f"commands.failed.{name}")
        reason = f"'{name}' failed ({type(exc).__name__}: {exc}); nothing was changed."
        toast = Toast(title="Unexpected Error", description=reason, variant=ToastVariant.DESTRUCTIVE)
        self.bus.publish_toast(
            toast.title,
            toast.description,
            day=self._snapshot.day,
            variant=toast.variant,
            priority=NotificationPriority.CRITICAL,
        )
        self.bus.dispatch()
        return CommandResult(
            command=name,
            accepted=False,
            snapshot=self._snapshot,
            reason=reason,
            title=toast.title,
            toasts=(toast,),
        )

    def _commit(self, name: str, outcome: _Outcome) -> CommandResult:
        self._snapshot = outcome.snapshot
        self.metrics.inc("commands.accepted")
        self.metrics.inc(f"commands.accepted.{name}")
        self._record_gauges(outcome.snapshot)
        for entry in outcome.entries + outcome.battle_entries:
            self.bus.publish_entry(entry)
        for toast in outcome.toasts:
            self.bus.publish_toast(toast.title, toast.description, day=outcome.snapshot.day, variant=toast.variant)
        self.bus.dispatch()
        return CommandResult(
            command=name,
            accepted=True,
            snapshot=outcome.snapshot,
            toasts=outcome.toasts,
            entries=outcome.entries,
        )

    def _record_gauges(self, snapshot: GameSnapshot) -> None:
        player = snapshot.player
        self.metrics.set_gauge("player.cash", player.cash)
        self.metrics.set_gauge("player.health", player.health)
        self.metrics.set_gauge("player.reputation", player.reputation)
        self.metrics.set_gauge("player.rank", player.rank.value)
        self.metrics.set_gauge("player.day", player.days_passed)
        self.metrics.set_gauge("heat", {region.value: level for region, level in snapshot.heat.items()})

    async def _apply_receipt(self, name: str, build: Callable[[GameSnapshot], trading.Receipt]) -> CommandResult:
        async def operation(snapshot: GameSnapshot) -> _Outcome:
            receipt = build(snapshot)
            ctx = self._context(receipt.snapshot)
            ctx.note(receipt.category, receipt.message, toast=receipt.title)
            return _from_context(ctx)

        return await self._run(name, operation)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def _fresh_game(self) -> _Outcome:
        ctx = self._context(initial_snapshot(self.config.starting_player()))
        region = ctx.snapshot.player.current_region
        ctx.note(
            LogCategory.INFO,
            f"Welcome to the streets of {region.value}. You have ${ctx.snapshot.player.cash:,} to get started.",
            toast="Game Started",
        )
        await day_loop.refresh_market(ctx, self.feed)
        return _from_context(ctx)

    async def start(self) -> CommandResult:
        async def operation(snapshot: GameSnapshot) -> _Outcome:
            if self.started:
                raise CommandRejected("A game is already running. Reset it to start over.", title="Already Started")
            outcome = await self._fresh_game()
            self.started = True
            return outcome

        return await self._run("start", operation)

    async def reset_session(self) -> CommandResult:
        async def operation(snapshot: GameSnapshot) -> _Outcome:
            outcome = await self._fresh_game()
            self.metrics.inc("session.resets")
            self.started = True
            return outcome

        return await self._run("reset_session", operation)

    # ------------------------------------------------------------------
    # Trading and shop
    # ------------------------------------------------------------------
    async def buy_commodity(self, commodity: str, quantity: int, price: int) -> CommandResult:
        result = await self._apply_receipt(
            "buy_commodity",
            lambda snapshot: trading.buy_commodity(snapshot, commodity, quantity, price, self.config.trade),
        )
        if result.accepted:
            self.metrics.inc("trades.bought_units", quantity)
        return result

    async def sell_commodity(self, commodity: str, quantity: int, price: int) -> CommandResult:
        result = await self._apply_receipt(
            "sell_commodity",
            lambda snapshot: trading.sell_commodity(snapshot, commodity, quantity, price, self.config.trade),
        )
        if result.accepted:
            self.metrics.inc("trades.sold_units", quantity)
            self.metrics.topk_add(
                "trades.largest_sales",
                f"day{result.snapshot.day}:{commodity}",
                price * quantity,
                payload={"quantity": quantity, "price": price},
            )
        return result

    async def buy_weapon(self, item_id: str) -> CommandResult:
        return await self._apply_receipt("buy_weapon", lambda snapshot: trading.buy_weapon(snapshot, item_id))

    async def buy_armor(self, item_id: str) -> CommandResult:
        return await self._apply_receipt("buy_armor", lambda snapshot: trading.buy_armor(snapshot, item_id))

    async def buy_healing_item(self, item_id: str) -> CommandResult:
        return await self._apply_receipt(
            "buy_healing_item", lambda snapshot: trading.buy_healing_item(snapshot, item_id)
        )

    async def buy_capacity_upgrade(self, item_id: str) -> CommandResult:
        return await self._apply_receipt(
            "buy_capacity_upgrade", lambda snapshot: trading.buy_capacity_upgrade(snapshot, item_id)
        )

    async def buy_ammo(self, boxes: int = 1) -> CommandResult:
        return await self._apply_receipt("buy_ammo", lambda snapshot: trading.buy_ammo(snapshot, boxes))

    async def travel_to(self, region: Region | str) -> CommandResult:
        async def operation(snapshot: GameSnapshot) -> _Outcome:
            receipt = trading.travel_to(snapshot, region)
            ctx = self._context(receipt.snapshot)
            ctx.note(receipt.category, receipt.message, toast=receipt.title)
            await day_loop.refresh_market(ctx, self.feed)
            return _from_context(ctx)

        return await self._run("travel_to", operation)

    async def shop_catalog(self) -> Dict[str, List[object]]:
        return {
            "weapons": list(await self.feed.get_shop_weapons()),
            "armor": list(await self.feed.get_shop_armor()),
            "healing_items": list(await self.feed.get_shop_healing_items()),
            "capacity_upgrades": list(await self.feed.get_shop_capacity_upgrades()),
        }

    # ------------------------------------------------------------------
    # Day loop and combat
    # ------------------------------------------------------------------
    async def advance_day(self) -> CommandResult:
        async def operation(snapshot: GameSnapshot) -> _Outcome:
            report = await day_loop.advance_day(snapshot, self.feed, self.rng, self.config, clock=self.clock)
            if report.market_failed:
                self.metrics.inc("feeds.market_failures")
            if report.events_failed:
                self.metrics.inc("feeds.event_failures")
            if report.encounter is not None and report.encounter.suppressed:
                self.metrics.inc("combat.encounters_suppressed")
            if report.battle_started:
                self.metrics.inc("combat.battles_started")
            return _Outcome(
                snapshot=report.snapshot,
                toasts=report.toasts,
                entries=report.entries,
                battle_entries=report.battle_entries,
            )

        return await self._run("advance_day", operation)

    async def submit_battle_action(self, action: BattleAction | str) -> CommandResult:
        async def operation(snapshot: GameSnapshot) -> _Outcome:
            battle = snapshot.battle
            if battle is None:
                raise CommandRejected("There is no fight going on.", title="No Battle")
            if battle.resolved:
                raise CommandRejected("The fight is already over.", title="No Battle")
            report = resolve_action(self.rng, snapshot.player, battle, action, self.config.combat)
            ctx = self._context(snapshot)
            apply_turn(ctx, report)
            if report.battle.outcome is not None:
                self.metrics.inc(f"combat.{report.battle.outcome.value}")
            return _from_context(ctx)

        return await self._run("submit_battle_action", operation)

    async def end_battle(self) -> CommandResult:
        async def operation(snapshot: GameSnapshot) -> _Outcome:
            battle = snapshot.battle
            if battle is None:
                raise CommandRejected("There is no fight to leave.", title="No Battle")
            if not battle.resolved:
                raise CommandRejected("The fight is still going on.", title="In Battle")
            ctx = self._context(replace(snapshot, battle=None))
            ctx.note(LogCategory.INFO, battle_closed_message(battle.outcome))
            return _from_context(ctx)

        return await self._run("end_battle", operation)


__all__ = ["CommandResult", "GameSession"]
