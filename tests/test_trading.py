from __future__ import annotations

from dataclasses import replace

import pytest

from hustle.catalog import Region
from hustle.errors import CommandRejected
from hustle.game_log import LogCategory
from hustle.runtime import trading
from hustle.runtime.combat import BattleState, EnemyCategory, EnemyState
from hustle.runtime.progression import promoted_rank, rank_for_cash
from hustle.state import AmmoState, Holding, MarketQuote, PlayerState, Rank, initial_snapshot


def market_snapshot(price: int = 50, commodity: str = "Weed", **player_fields):
    snapshot = initial_snapshot(PlayerState(**player_fields))
    return replace(snapshot, market=(MarketQuote(commodity, price, 0.15),))


def test_buy_scenario_updates_cash_inventory_and_activity():
    receipt = trading.buy_commodity(market_snapshot(50), "Weed", 10, 50)
    player = receipt.snapshot.player

    assert player.cash == 500
    assert player.inventory["Weed"] == Holding(quantity=10, total_cost=500)
    assert player.reputation == 10 // 10 + 1
    assert receipt.snapshot.activity[Region.MANHATTAN] == 1
    assert receipt.category is LogCategory.BUY
    assert receipt.message == "Bought 10 Weed for $500."


def test_sell_scenario_reduces_cost_basis_proportionally():
    bought = trading.buy_commodity(market_snapshot(50), "Weed", 10, 50).snapshot
    repriced = replace(bought, market=(MarketQuote("Weed", 60, 0.15),))

    receipt = trading.sell_commodity(repriced, "Weed", 4, 60)
    player = receipt.snapshot.player

    assert player.cash == 740
    assert player.inventory["Weed"] == Holding(quantity=6, total_cost=300)
    assert player.reputation == 2 + 4 // 5 + 1
    assert receipt.snapshot.activity[Region.MANHATTAN] == 2
    assert receipt.message == "Sold 4 Weed for $240."


def test_selling_everything_removes_entry():
    bought = trading.buy_commodity(market_snapshot(50), "Weed", 10, 50).snapshot
    sold = trading.sell_commodity(bought, "Weed", 10, 50).snapshot

    assert "Weed" not in sold.player.inventory
    assert sold.player.cash == 1000


def test_buy_rejected_for_insufficient_cash_is_idempotent():
    snapshot = market_snapshot(50)
    reasons = []
    for _ in range(2):
        with pytest.raises(CommandRejected) as excinfo:
            trading.buy_commodity(snapshot, "Weed", 30, 50)
        reasons.append(excinfo.value.reason)

    assert reasons[0] == reasons[1]
    assert snapshot.player.cash == 1000
    assert snapshot.player.inventory == {}


@pytest.mark.parametrize(
    "commodity, quantity, price, title",
    [
        ("Weed", 0, 50, "Invalid Quantity"),
        ("Weed", -3, 50, "Invalid Quantity"),
        ("Cocaine", 1, 50, "Not Available"),
        ("Weed", 1, 49, "Price Changed"),
    ],
)
def test_buy_validation(commodity, quantity, price, title):
    with pytest.raises(CommandRejected) as excinfo:
        trading.buy_commodity(market_snapshot(50), commodity, quantity, price)
    assert excinfo.value.title == title


def test_buy_rejected_when_capacity_exceeded():
    snapshot = market_snapshot(1, max_capacity=10)
    with pytest.raises(CommandRejected) as excinfo:
        trading.buy_commodity(snapshot, "Weed", 11, 1)
    assert excinfo.value.title == "Inventory Full"


def test_sell_rejected_without_stock():
    with pytest.raises(CommandRejected) as excinfo:
        trading.sell_commodity(market_snapshot(50), "Weed", 1, 50)
    assert excinfo.value.title == "Not Enough Stock"


def test_commands_rejected_when_game_over_or_in_battle():
    over = replace(market_snapshot(50), game_over=True)
    with pytest.raises(CommandRejected):
        trading.buy_commodity(over, "Weed", 1, 50)

    enemy = EnemyState("Cop", EnemyCategory.POLICE, 10, 10, 5, 5, 10, 1)
    fighting = replace(market_snapshot(50), battle=BattleState(enemy=enemy))
    with pytest.raises(CommandRejected):
        trading.buy_commodity(fighting, "Weed", 1, 50)
    with pytest.raises(CommandRejected):
        trading.travel_to(fighting, Region.QUEENS)


def test_buy_firearm_comes_loaded_and_cannot_be_rebought():
    snapshot = trading.buy_weapon(initial_snapshot(), "9mm").snapshot

    assert snapshot.player.cash == 500
    assert snapshot.player.equipped_weapon.item_id == "9mm"
    assert snapshot.player.weapon_ammo == AmmoState(in_clip=15, reserve=0)
    with pytest.raises(CommandRejected):
        trading.buy_weapon(snapshot, "9mm")


def test_melee_weapon_has_no_ammo():
    snapshot = trading.buy_weapon(initial_snapshot(), "switchblade").snapshot
    assert snapshot.player.weapon_ammo is None


def test_buy_ammo_requires_firearm():
    with pytest.raises(CommandRejected) as excinfo:
        trading.buy_ammo(initial_snapshot())
    assert excinfo.value.title == "No Firearm"

    armed = trading.buy_weapon(initial_snapshot(), "9mm").snapshot
    stocked = trading.buy_ammo(armed, 2).snapshot
    assert stocked.player.weapon_ammo == AmmoState(in_clip=15, reserve=60)
    assert stocked.player.cash == 500 - 120


def test_armor_and_upgrades_are_one_time_purchases():
    snapshot = trading.buy_armor(initial_snapshot(), "leather_jacket").snapshot
    assert snapshot.player.equipped_armor.protection == 2
    with pytest.raises(CommandRejected):
        trading.buy_armor(snapshot, "leather_jacket")

    upgraded = trading.buy_capacity_upgrade(snapshot, "backpack").snapshot
    assert upgraded.player.max_capacity == 120
    assert "backpack" in upgraded.player.purchased_upgrade_ids
    with pytest.raises(CommandRejected):
        trading.buy_capacity_upgrade(upgraded, "backpack")


def test_healing_clamps_and_rejects_at_full_health():
    with pytest.raises(CommandRejected) as excinfo:
        trading.buy_healing_item(initial_snapshot(), "bandages")
    assert excinfo.value.title == "Full Health"

    hurt = initial_snapshot(PlayerState(health=50))
    healed = trading.buy_healing_item(hurt, "trauma_kit").snapshot
    assert healed.player.health == 100
    assert healed.player.cash == 600


def test_shop_rejects_unknown_items_and_short_cash():
    with pytest.raises(CommandRejected):
        trading.buy_weapon(initial_snapshot(), "laser")
    with pytest.raises(CommandRejected) as excinfo:
        trading.buy_weapon(initial_snapshot(), "rpg")
    assert excinfo.value.title == "Not Enough Cash"


def test_travel_moves_player_and_clears_market():
    receipt = trading.travel_to(market_snapshot(50), "brooklyn")

    assert receipt.snapshot.player.current_region is Region.BROOKLYN
    assert receipt.snapshot.market == ()
    assert receipt.snapshot.day == 0
    with pytest.raises(CommandRejected):
        trading.travel_to(receipt.snapshot, Region.BROOKLYN)
    with pytest.raises(CommandRejected):
        trading.travel_to(receipt.snapshot, "Atlantis")


@pytest.mark.parametrize(
    "cash, rank",
    [
        (0, Rank.ROOKIE),
        (2000, Rank.ROOKIE),
        (2001, Rank.PEDDLER),
        (5001, Rank.DEALER),
        (10001, Rank.SUPPLIER),
        (20001, Rank.DISTRIBUTOR),
        (50001, Rank.BARON),
        (100001, Rank.KINGPIN),
    ],
)
def test_rank_thresholds(cash, rank):
    assert rank_for_cash(cash) is rank


def test_rank_is_never_demoted():
    assert promoted_rank(PlayerState(cash=100, rank=Rank.DEALER)) is None
    assert promoted_rank(PlayerState(cash=6000, rank=Rank.PEDDLER)) is Rank.DEALER
    assert promoted_rank(PlayerState(cash=6000, rank=Rank.DEALER)) is None
