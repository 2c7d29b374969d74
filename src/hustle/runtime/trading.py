"""Trading and shop commands.

Each command validates against the current snapshot and either raises
:class:`~hustle.errors.CommandRejected` or returns a :class:`Receipt`
holding the next snapshot.  Rejections never touch the snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Optional

from hustle.catalog import (
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
from hustle.errors import CommandRejected
from hustle.game_log import LogCategory
from hustle.runtime.heat import record_activity
from hustle.state import MAX_HEALTH, AmmoState, GameSnapshot, Holding, round_half_up


@dataclass(slots=True)
class TradeConfig:
    buy_reputation_divisor: int = 10
    sell_reputation_divisor: int = 5
    enforce_quoted_price: bool = True


@dataclass(frozen=True, slots=True)
class Receipt:
    snapshot: GameSnapshot
    category: LogCategory
    title: str
    message: str


def ensure_playable(snapshot: GameSnapshot) -> None:
    if snapshot.game_over:
        raise CommandRejected("The game is over. Start a new game to keep playing.", title="Game Over")
    if snapshot.battle is not None:
        raise CommandRejected("You can't do that in the middle of a fight.", title="In Battle")


def _require_quantity(quantity: int) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise CommandRejected("Quantity must be a positive whole number.", title="Invalid Quantity")
    return quantity


def _quoted_price(snapshot: GameSnapshot, commodity: str, price: int, cfg: TradeConfig) -> int:
    quote = snapshot.quote_for(commodity)
    if quote is None:
        raise CommandRejected(f"{commodity} isn't on the market here today.", title="Not Available")
    if cfg.enforce_quoted_price and price != quote.price:
        raise CommandRejected(
            f"The price of {commodity} is ${quote.price:,}, not ${price:,}.",
            title="Price Changed",
        )
    return quote.price


def _with_activity(snapshot: GameSnapshot) -> Dict[Region, int]:
    return record_activity(snapshot.activity, snapshot.player.current_region)


# ---------------------------------------------------------------------------
# Commodities
# ---------------------------------------------------------------------------


def buy_commodity(
    snapshot: GameSnapshot,
    commodity: str,
    quantity: int,
    price: int,
    cfg: Optional[TradeConfig] = None,
) -> Receipt:
    cfg = cfg or TradeConfig()
    ensure_playable(snapshot)
    quantity = _require_quantity(quantity)
    unit_price = _quoted_price(snapshot, commodity, price, cfg)
    player = snapshot.player

    total = unit_price * quantity
    if total > player.cash:
        raise CommandRejected(
            f"You need ${total:,} to buy {quantity} {commodity} but only have ${player.cash:,}.",
            title="Not Enough Cash",
        )
    if quantity > player.free_capacity:
        raise CommandRejected(
            f"You only have room for {player.free_capacity} more units.",
            title="Inventory Full",
        )

    held = player.holding(commodity)
    inventory = dict(player.inventory)
    inventory[commodity] = Holding(quantity=held.quantity + quantity, total_cost=held.total_cost + total)
    player = replace(
        player,
        cash=player.cash - total,
        inventory=inventory,
        reputation=player.reputation + quantity // cfg.buy_reputation_divisor + 1,
    )
    message = f"Bought {quantity} {commodity} for ${total:,}."
    return Receipt(
        replace(snapshot, player=player, activity=_with_activity(snapshot)),
        LogCategory.BUY,
        "Purchase Successful",
        message,
    )


def sell_commodity(
    snapshot: GameSnapshot,
    commodity: str,
    quantity: int,
    price: int,
    cfg: Optional[TradeConfig] = None,
) -> Receipt:
    cfg = cfg or TradeConfig()
    ensure_playable(snapshot)
    quantity = _require_quantity(quantity)
    player = snapshot.player
    held = player.holding(commodity)
    if held.quantity < quantity:
        raise CommandRejected(
            f"You only have {held.quantity} {commodity}.",
            title="Not Enough Stock",
        )
    unit_price = _quoted_price(snapshot, commodity, price, cfg)

    earnings = unit_price * quantity
    remaining = held.quantity - quantity
    inventory = dict(player.inventory)
    if remaining > 0:
        # Cost basis shrinks proportionally so the average cost is unchanged.
        cost_left = round_half_up(held.average_cost * remaining)
        inventory[commodity] = Holding(quantity=remaining, total_cost=cost_left)
    else:
        inventory.pop(commodity, None)
    player = replace(
        player,
        cash=player.cash + earnings,
        inventory=inventory,
        reputation=player.reputation + quantity // cfg.sell_reputation_divisor + 1,
    )
    message = f"Sold {quantity} {commodity} for ${earnings:,}."
    return Receipt(
        replace(snapshot, player=player, activity=_with_activity(snapshot)),
        LogCategory.SELL,
        "Sale Successful",
        message,
    )


# ---------------------------------------------------------------------------
# Shop
# ---------------------------------------------------------------------------


def _lookup(items, item_id: str, kind: str):
    for item in items:
        if item.item_id == item_id:
            return item
    raise CommandRejected(f"No {kind} called '{item_id}' in the shop.", title="Unknown Item")


def _pay(snapshot: GameSnapshot, price: int, name: str):
    player = snapshot.player
    if price > player.cash:
        raise CommandRejected(
            f"{name} costs ${price:,} but you only have ${player.cash:,}.",
            title="Not Enough Cash",
        )
    return player.with_cash_delta(-price)


def buy_weapon(snapshot: GameSnapshot, item_id: str) -> Receipt:
    ensure_playable(snapshot)
    weapon: Weapon = _lookup(WEAPONS, item_id, "weapon")
    current = snapshot.player.equipped_weapon
    if current is not None and current.item_id == weapon.item_id:
        raise CommandRejected(f"You already carry a {weapon.name}.", title="Already Owned")
    player = _pay(snapshot, weapon.price, weapon.name)
    ammo = AmmoState(in_clip=weapon.clip_size, reserve=0) if weapon.firearm else None
    player = replace(player, equipped_weapon=weapon, weapon_ammo=ammo)
    return Receipt(
        replace(snapshot, player=player),
        LogCategory.SHOP,
        "Weapon Purchased",
        f"Bought a {weapon.name} for ${weapon.price:,}.",
    )


def buy_armor(snapshot: GameSnapshot, item_id: str) -> Receipt:
    ensure_playable(snapshot)
    armor: Armor = _lookup(ARMOR, item_id, "armor")
    if armor.item_id in snapshot.player.purchased_armor_ids:
        raise CommandRejected(f"You already own the {armor.name}.", title="Already Owned")
    player = _pay(snapshot, armor.price, armor.name)
    player = replace(
        player,
        equipped_armor=armor,
        purchased_armor_ids=player.purchased_armor_ids | {armor.item_id},
    )
    return Receipt(
        replace(snapshot, player=player),
        LogCategory.SHOP,
        "Armor Purchased",
        f"Bought {armor.name} for ${armor.price:,}.",
    )


def buy_healing_item(snapshot: GameSnapshot, item_id: str) -> Receipt:
    ensure_playable(snapshot)
    item: HealingItem = _lookup(HEALING_ITEMS, item_id, "healing item")
    if snapshot.player.health >= MAX_HEALTH:
        raise CommandRejected("You're already at full health.", title="Full Health")
    player = _pay(snapshot, item.price, item.name)
    before = player.health
    player = player.with_health_delta(item.heal_amount)
    return Receipt(
        replace(snapshot, player=player),
        LogCategory.HEALTH_UPDATE,
        "Healed",
        f"Used {item.name} for ${item.price:,}. Health {before} -> {player.health}.",
    )


def buy_capacity_upgrade(snapshot: GameSnapshot, item_id: str) -> Receipt:
    ensure_playable(snapshot)
    upgrade: CapacityUpgrade = _lookup(CAPACITY_UPGRADES, item_id, "upgrade")
    if upgrade.item_id in snapshot.player.purchased_upgrade_ids:
        raise CommandRejected(f"You already have the {upgrade.name}.", title="Already Owned")
    player = _pay(snapshot, upgrade.price, upgrade.name)
    player = replace(
        player,
        max_capacity=player.max_capacity + upgrade.capacity_bonus,
        purchased_upgrade_ids=player.purchased_upgrade_ids | {upgrade.item_id},
    )
    return Receipt(
        replace(snapshot, player=player),
        LogCategory.SHOP,
        "Upgrade Purchased",
        f"Bought a {upgrade.name} for ${upgrade.price:,}. Capacity is now {player.max_capacity}.",
    )


def buy_ammo(snapshot: GameSnapshot, boxes: int = 1) -> Receipt:
    ensure_playable(snapshot)
    boxes = _require_quantity(boxes)
    weapon = snapshot.player.equipped_weapon
    if weapon is None or not weapon.firearm:
        raise CommandRejected("You need a firearm before buying ammo.", title="No Firearm")
    price = weapon.ammo_box_price * boxes
    player = _pay(snapshot, price, f"{boxes} box(es) of {weapon.name} ammo")
    ammo = player.weapon_ammo or AmmoState(in_clip=0, reserve=0)
    rounds = weapon.ammo_box_rounds * boxes
    player = replace(player, weapon_ammo=AmmoState(in_clip=ammo.in_clip, reserve=ammo.reserve + rounds))
    return Receipt(
        replace(snapshot, player=player),
        LogCategory.SHOP,
        "Ammo Purchased",
        f"Bought {rounds} rounds for your {weapon.name} for ${price:,}.",
    )


# ---------------------------------------------------------------------------
# Travel
# ---------------------------------------------------------------------------


def travel_to(snapshot: GameSnapshot, destination: Region | str) -> Receipt:
    """Move the player; the caller refreshes the market for the new region."""

    ensure_playable(snapshot)
    if not isinstance(destination, Region):
        try:
            destination = Region.parse(str(destination))
        except ValueError as exc:
            raise CommandRejected(str(exc), title="Unknown Region") from exc
    if destination is snapshot.player.current_region:
        raise CommandRejected(f"You're already in {destination.value}.", title="Already Here")
    player = replace(snapshot.player, current_region=destination)
    return Receipt(
        replace(snapshot, player=player, market=(), headlines=()),
        LogCategory.TRAVEL,
        "Travel",
        f"You moved to {destination.value}.",
    )


__all__ = [
    "Receipt",
    "TradeConfig",
    "buy_ammo",
    "buy_armor",
    "buy_capacity_upgrade",
    "buy_commodity",
    "buy_healing_item",
    "buy_weapon",
    "ensure_playable",
    "sell_commodity",
    "travel_to",
]
