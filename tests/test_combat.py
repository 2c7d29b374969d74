from __future__ import annotations

from dataclasses import replace

import pytest

from hustle.catalog import ARMOR, WEAPONS
from hustle.errors import CommandRejected
from hustle.runtime.combat import (
    BattleAction,
    BattleOutcome,
    BattlePhase,
    BattleState,
    CombatConfig,
    EnemyCategory,
    EnemyState,
    TurnResult,
    bribe_chance,
    category_weights,
    difficulty_multiplier,
    enemy_turn,
    flee_chance,
    generate_enemy,
    resolve_action,
    roll_encounter,
    settle_battle,
    start_battle,
)
from hustle.runtime.rng_service import RNGService
from hustle.state import AmmoState, PlayerState

from fakes import ScriptedRNG

PISTOL = next(weapon for weapon in WEAPONS if weapon.item_id == "9mm")
KEVLAR = next(armor for armor in ARMOR if armor.item_id == "kevlar_vest")


def make_enemy(**overrides) -> EnemyState:
    values = dict(
        name="Test Thug",
        category=EnemyCategory.GANG,
        health=30,
        max_health=30,
        attack=10,
        defense=2,
        cash_reward=120,
        reputation_reward=7,
        bribable=True,
        bribe_cost=200,
        bribe_success_rate=0.5,
    )
    values.update(overrides)
    return EnemyState(**values)


def make_battle(enemy: EnemyState | None = None, **overrides) -> BattleState:
    return BattleState(enemy=enemy or make_enemy(), phase=BattlePhase.PLAYER_TURN, day=5, **overrides)


def test_unarmed_attack_that_kills_grants_exact_rewards():
    cfg = CombatConfig()
    player = PlayerState(cash=1000, reputation=3)
    battle = make_battle(make_enemy(health=3))

    report = resolve_action(ScriptedRNG(), player, battle, BattleAction.ATTACK, cfg)

    assert report.result is TurnResult.VICTORY
    assert report.battle.phase is BattlePhase.RESOLVED
    assert report.battle.outcome is BattleOutcome.VICTORY
    assert report.battle.enemy.health == 0
    assert report.player.cash == 1000 + 120
    assert report.player.reputation == 3 + 7


def test_attack_damage_uses_weapon_and_defense_then_enemy_replies():
    cfg = CombatConfig()
    player = PlayerState(equipped_weapon=WEAPONS[0], equipped_armor=KEVLAR)
    battle = make_battle(make_enemy(health=30, attack=10, defense=2))

    report = resolve_action(ScriptedRNG(), player, battle, "attack", cfg)

    # switchblade 8 - defense 2 = 6; enemy 10 - (2 + kevlar 5) = 3
    assert report.result is TurnResult.CONTINUE
    assert report.battle.enemy.health == 24
    assert report.player.health == 97
    assert report.battle.phase is BattlePhase.PLAYER_TURN
    assert report.battle.turn == 1


def test_damage_is_at_least_one():
    cfg = CombatConfig()
    report = resolve_action(ScriptedRNG(), PlayerState(), make_battle(make_enemy(defense=40, attack=0)), "attack", cfg)

    assert report.battle.enemy.health == 29
    assert report.player.health == 99


def test_critical_hit_rounds_half_up():
    cfg = CombatConfig()
    rng = ScriptedRNG({"combat.player.crit": [0.0]})
    player = PlayerState(equipped_weapon=WEAPONS[0])
    battle = make_battle(make_enemy(defense=3))

    report = resolve_action(rng, player, battle, "attack", cfg)

    # (8 - 3) * 1.5 = 7.5 -> 8
    assert report.battle.enemy.health == 30 - 8


def test_missed_attack_deals_no_damage():
    rng = ScriptedRNG({"combat.player.miss": [0.0]})
    report = resolve_action(rng, PlayerState(), make_battle(), "attack", CombatConfig())

    assert report.battle.enemy.health == 30


def test_firearm_consumes_clip_round():
    player = PlayerState(equipped_weapon=PISTOL, weapon_ammo=AmmoState(in_clip=3, reserve=30))
    report = resolve_action(ScriptedRNG(), player, make_battle(), "attack", CombatConfig())

    assert report.player.weapon_ammo == AmmoState(in_clip=2, reserve=30)
    assert report.battle.enemy.health == 30 - (14 - 2)


def test_empty_clip_reloads_and_enemy_still_acts():
    player = PlayerState(equipped_weapon=PISTOL, weapon_ammo=AmmoState(in_clip=0, reserve=40))
    report = resolve_action(ScriptedRNG(), player, make_battle(), "attack", CombatConfig())

    assert report.player.weapon_ammo == AmmoState(in_clip=15, reserve=25)
    assert report.battle.enemy.health == 30
    assert report.player.health == 100 - (10 - 2)
    assert any("reload" in message for message in report.messages)


def test_out_of_ammo_attack_fails():
    player = PlayerState(equipped_weapon=PISTOL, weapon_ammo=AmmoState(in_clip=0, reserve=0))
    report = resolve_action(ScriptedRNG(), player, make_battle(), "attack", CombatConfig())

    assert report.battle.enemy.health == 30
    assert report.player.weapon_ammo == AmmoState(in_clip=0, reserve=0)
    assert report.result is TurnResult.CONTINUE


def test_enemy_hit_clamps_health_and_defeats_player():
    cfg = CombatConfig()
    player = PlayerState(health=5)
    battle = make_battle(make_enemy(attack=22))

    report = enemy_turn(ScriptedRNG(), player, replace(battle, phase=BattlePhase.ENEMY_TURN), cfg)

    assert report.player.health == 0
    assert report.result is TurnResult.DEFEAT
    assert report.battle.outcome is BattleOutcome.DEFEAT


def test_defeat_penalty_applied_after_enemy_reply():
    cfg = CombatConfig()
    player = PlayerState(health=5, cash=1000, reputation=20)
    report = resolve_action(ScriptedRNG(), player, make_battle(make_enemy(attack=22)), "attack", cfg)

    assert report.result is TurnResult.DEFEAT
    assert report.player.health == 0
    assert report.player.cash == 900
    assert report.player.reputation == 15


@pytest.mark.parametrize("seed", range(25))
@pytest.mark.parametrize("cash", [9, 40, 1000])
def test_defeat_cash_penalty_bounds(seed, cash):
    cfg = CombatConfig()
    battle = replace(make_battle(), phase=BattlePhase.RESOLVED, outcome=BattleOutcome.DEFEAT)
    player = PlayerState(health=0, cash=cash, reputation=0)

    settled, _ = settle_battle(RNGService(seed=seed), player, battle, cfg)
    loss = cash - settled.cash

    assert cash * 0.10 <= loss <= cash * 0.25
    assert -15 <= settled.reputation <= -5


def test_defeat_with_no_cash_loses_nothing():
    battle = replace(make_battle(), phase=BattlePhase.RESOLVED, outcome=BattleOutcome.DEFEAT)
    settled, _ = settle_battle(ScriptedRNG(), PlayerState(health=0, cash=0), battle, CombatConfig())

    assert settled.cash == 0


@pytest.mark.parametrize(
    "category, bribable",
    [(EnemyCategory.POLICE, True), (EnemyCategory.GANG, True), (EnemyCategory.FIEND, False)],
)
def test_only_police_and_gangs_take_bribes(category, bribable):
    enemy = generate_enemy(ScriptedRNG(), category, days_passed=1, cfg=CombatConfig())
    assert enemy.bribable is bribable


def test_fiend_refuses_bribe():
    fiend = generate_enemy(ScriptedRNG(), EnemyCategory.FIEND, days_passed=1, cfg=CombatConfig())
    with pytest.raises(CommandRejected) as excinfo:
        resolve_action(ScriptedRNG(), PlayerState(cash=1000), make_battle(fiend), "bribe", CombatConfig())
    assert excinfo.value.title == "Bribe Refused"


def test_flee_success_and_failure():
    cfg = CombatConfig()
    escaped = resolve_action(ScriptedRNG({"combat.flee": [0.1]}), PlayerState(), make_battle(), "flee", cfg)
    assert escaped.result is TurnResult.ESCAPE
    assert escaped.battle.outcome is BattleOutcome.ESCAPED
    assert escaped.player.health == 100

    stuck = resolve_action(ScriptedRNG({"combat.flee": [0.9]}), PlayerState(), make_battle(), "flee", cfg)
    assert stuck.result is TurnResult.CONTINUE
    assert stuck.player.health < 100


def test_flee_chance_modifiers():
    cfg = CombatConfig()
    weak = make_enemy(attack=1, defense=1)
    strong = make_enemy(attack=30, defense=10)

    assert flee_chance(PlayerState(), weak, cfg) == pytest.approx(0.33)
    assert flee_chance(PlayerState(health=20), weak, cfg) == pytest.approx(0.58)
    assert flee_chance(PlayerState(), strong, cfg) == pytest.approx(0.18)
    assert flee_chance(PlayerState(health=20), strong, cfg) == pytest.approx(0.43)
    assert flee_chance(PlayerState(), strong, CombatConfig(flee_base_chance=0.0)) == pytest.approx(0.10)


def test_bribe_rejected_when_cash_short():
    player = PlayerState(cash=50)
    battle = make_battle()

    for _ in range(2):
        with pytest.raises(CommandRejected):
            resolve_action(ScriptedRNG(), player, battle, "bribe", CombatConfig())
    assert player.cash == 50
    assert battle.phase is BattlePhase.PLAYER_TURN


def test_bribe_success_pays_and_escapes():
    report = resolve_action(ScriptedRNG({"combat.bribe": [0.0]}), PlayerState(cash=1000), make_battle(), "bribe", CombatConfig())

    assert report.result is TurnResult.ESCAPE
    assert report.battle.bribe_paid == 200
    assert report.player.cash == 800


def test_failed_bribe_costs_nothing_and_blocks_retry():
    cfg = CombatConfig()
    report = resolve_action(ScriptedRNG({"combat.bribe": [0.99]}), PlayerState(cash=1000), make_battle(), "bribe", cfg)

    assert report.result is TurnResult.CONTINUE
    assert report.player.cash == 1000
    assert report.battle.enemy.bribable is False
    assert report.battle.turn == 1
    with pytest.raises(CommandRejected):
        resolve_action(ScriptedRNG(), report.player, report.battle, "bribe", cfg)


def test_bribe_chance_reputation_bonus_is_capped():
    cfg = CombatConfig()
    enemy = make_enemy(bribe_success_rate=0.5)
    assert bribe_chance(PlayerState(reputation=-50), enemy, cfg) == pytest.approx(0.5)
    assert bribe_chance(PlayerState(reputation=100), enemy, cfg) == pytest.approx(0.6)
    assert bribe_chance(PlayerState(reputation=5000), enemy, cfg) == pytest.approx(0.65)
    assert bribe_chance(PlayerState(reputation=5000), make_enemy(bribe_success_rate=0.9), cfg) == pytest.approx(0.95)


def test_unknown_action_and_resolved_battle_rejected():
    cfg = CombatConfig()
    with pytest.raises(CommandRejected):
        resolve_action(ScriptedRNG(), PlayerState(), make_battle(), "dance", cfg)
    resolved = replace(make_battle(), phase=BattlePhase.RESOLVED, outcome=BattleOutcome.ESCAPED)
    with pytest.raises(CommandRejected):
        resolve_action(ScriptedRNG(), PlayerState(), resolved, "attack", cfg)


def test_first_strike_can_end_battle_before_player_acts():
    cfg = CombatConfig()
    rng = ScriptedRNG({"combat.first_strike": [0.0]})
    report = start_battle(rng, PlayerState(health=5, cash=1000), make_enemy(attack=30), cfg=cfg)

    assert report.result is TurnResult.DEFEAT
    assert report.battle.resolved
    assert report.player.health == 0
    assert report.player.cash == 900


def test_no_first_strike_waits_for_player():
    report = start_battle(ScriptedRNG(), PlayerState(), make_enemy(), cfg=CombatConfig())

    assert report.result is TurnResult.CONTINUE
    assert report.battle.phase is BattlePhase.PLAYER_TURN
    assert report.player.health == 100


@pytest.mark.parametrize("day", [0, 1, 2])
@pytest.mark.parametrize("heat", [0, 5])
def test_grace_period_never_starts_battle(day, heat):
    cfg = CombatConfig()
    for seed in range(30):
        roll = roll_encounter(RNGService(seed=seed), days_passed=day, heat=heat, cfg=cfg)
        assert not roll.triggered

    forced = roll_encounter(ScriptedRNG(default_rand=0.0), days_passed=day, heat=heat, cfg=cfg)
    assert forced.suppressed and not forced.triggered


def test_encounter_after_grace_period():
    cfg = CombatConfig()
    roll = roll_encounter(ScriptedRNG(default_rand=0.0), days_passed=3, heat=2, cfg=cfg)

    assert roll.triggered
    assert roll.chance == pytest.approx(0.05 + 2 * 0.09)
    assert roll.category is EnemyCategory.POLICE

    quiet = roll_encounter(ScriptedRNG(default_rand=0.99), days_passed=3, heat=2, cfg=cfg)
    assert not quiet.triggered and not quiet.suppressed


@pytest.mark.parametrize("heat", range(6))
def test_category_weights_normalized(heat):
    weights = category_weights(heat, CombatConfig())

    assert sum(weights.values()) == pytest.approx(1.0)
    assert all(weight >= 0 for weight in weights.values())


def test_police_weight_grows_with_heat():
    cfg = CombatConfig()
    assert category_weights(5, cfg)[EnemyCategory.POLICE] > category_weights(0, cfg)[EnemyCategory.POLICE]


def test_difficulty_ramp():
    cfg = CombatConfig()
    assert difficulty_multiplier(1, cfg) == pytest.approx(1.0)
    assert difficulty_multiplier(3, cfg) == pytest.approx(1.0)
    assert difficulty_multiplier(78, cfg) == pytest.approx(2.0)


def test_generated_enemy_scales_with_days():
    cfg = CombatConfig()
    early = generate_enemy(ScriptedRNG(), EnemyCategory.POLICE, days_passed=1, cfg=cfg)
    late = generate_enemy(ScriptedRNG(), EnemyCategory.POLICE, days_passed=78, cfg=cfg)

    assert early.health == early.max_health == 60
    assert late.health == 120
    assert late.attack == 2 * early.attack
    assert late.bribe_cost == 2 * early.bribe_cost
    assert late.cash_reward == early.cash_reward
