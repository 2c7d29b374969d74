"""Turn-based combat encounters.

A battle moves through explicit phases::

    ENEMY_FIRST_STRIKE? -> PLAYER_TURN -> ENEMY_TURN -> PLAYER_TURN ... -> RESOLVED

Every function here takes the current ``PlayerState`` and ``BattleState``
and returns a :class:`TurnReport` with fresh values; nothing is mutated in
place.  Each resolved step ends with exactly one :class:`TurnResult`.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import math
from typing import TYPE_CHECKING, Dict, Mapping, Optional, Tuple

from hustle.errors import CommandRejected
from hustle.runtime.events import CombatTrigger
from hustle.state import MAX_HEALTH, AmmoState, PlayerState, round_half_up

if TYPE_CHECKING:
    from hustle.runtime.rng_service import RNGService


class EnemyCategory(Enum):
    POLICE = "police"
    GANG = "gang"
    FIEND = "fiend"


class BattlePhase(Enum):
    ENEMY_FIRST_STRIKE = "enemy_first_strike"
    PLAYER_TURN = "player_turn"
    ENEMY_TURN = "enemy_turn"
    RESOLVED = "resolved"


class BattleOutcome(Enum):
    VICTORY = "victory"
    DEFEAT = "defeat"
    ESCAPED = "escaped"


class BattleAction(Enum):
    ATTACK = "attack"
    FLEE = "flee"
    BRIBE = "bribe"

    @classmethod
    def parse(cls, raw: "BattleAction | str") -> "BattleAction":
        if isinstance(raw, BattleAction):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError as exc:
            raise CommandRejected(f"Unknown battle action '{raw}'.", title="Invalid Action") from exc


class TurnResult(Enum):
    CONTINUE = "continue"
    VICTORY = "victory"
    DEFEAT = "defeat"
    ESCAPE = "escape"


TRIGGER_CATEGORIES: Mapping[CombatTrigger, EnemyCategory] = {
    CombatTrigger.POLICE_RAID: EnemyCategory.POLICE,
    CombatTrigger.GANG_ACTIVITY: EnemyCategory.GANG,
    CombatTrigger.DESPERATE_SELLER: EnemyCategory.FIEND,
    CombatTrigger.MUGGING: EnemyCategory.FIEND,
}


@dataclass(slots=True)
class CombatConfig:
    player_base_attack: int = 5
    player_base_defense: int = 2
    miss_chance: float = 0.15
    crit_chance: float = 0.10
    crit_multiplier: float = 1.5
    first_strike_chance: float = 0.30
    # Encounters
    grace_period_days: int = 2
    base_encounter_chance: float = 0.05
    encounter_chance_per_heat: float = 0.09
    police_weight_base: float = 0.20
    police_weight_per_heat: float = 0.10
    gang_weight_base: float = 0.35
    gang_weight_per_heat: float = -0.05
    fiend_weight_base: float = 0.45
    fiend_weight_per_heat: float = -0.05
    # Difficulty ramp
    difficulty_start_day: int = 3
    difficulty_ramp_days: float = 75.0
    # Flee
    flee_base_chance: float = 0.33
    flee_low_health_bonus: float = 0.25
    low_health_fraction: float = 0.30
    flee_outmatched_penalty: float = 0.15
    outmatched_ratio: float = 1.2
    flee_min_chance: float = 0.10
    flee_max_chance: float = 0.90
    # Bribes
    bribe_reputation_scale: float = 0.001
    bribe_reputation_cap: float = 0.15
    bribe_min_chance: float = 0.05
    bribe_max_chance: float = 0.95
    # Defeat penalties
    defeat_cash_min_fraction: float = 0.10
    defeat_cash_max_fraction: float = 0.25
    defeat_reputation_min: int = 5
    defeat_reputation_max: int = 15
    deterministic_salt: str = "combat-v1"


# ---------------------------------------------------------------------------
# Enemies
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class EnemyProfile:
    category: EnemyCategory
    names: Tuple[str, ...]
    health: Tuple[int, int]
    attack: Tuple[int, int]
    defense: Tuple[int, int]
    cash_reward: Tuple[int, int]
    reputation_reward: Tuple[int, int]
    bribable: bool
    bribe_base_cost: int
    bribe_success_rate: float


ENEMY_PROFILES: Mapping[EnemyCategory, EnemyProfile] = {
    EnemyCategory.POLICE: EnemyProfile(
        category=EnemyCategory.POLICE,
        names=("Beat Cop", "Narcotics Detective", "Patrol Sergeant", "Undercover Officer"),
        health=(60, 90),
        attack=(8, 13),
        defense=(5, 9),
        cash_reward=(50, 200),
        reputation_reward=(3, 8),
        bribable=True,
        bribe_base_cost=300,
        bribe_success_rate=0.60,
    ),
    EnemyCategory.GANG: EnemyProfile(
        category=EnemyCategory.GANG,
        names=("Corner Boy", "Gang Enforcer", "Rival Lieutenant", "Street Soldier"),
        health=(45, 75),
        attack=(10, 16),
        defense=(3, 6),
        cash_reward=(100, 350),
        reputation_reward=(5, 14),
        bribable=True,
        bribe_base_cost=200,
        bribe_success_rate=0.45,
    ),
    EnemyCategory.FIEND: EnemyProfile(
        category=EnemyCategory.FIEND,
        names=("Desperate Fiend", "Twitchy Junkie", "Strung-out Stranger"),
        health=(20, 40),
        attack=(4, 9),
        defense=(0, 3),
        cash_reward=(10, 60),
        reputation_reward=(1, 3),
        bribable=False,
        bribe_base_cost=0,
        bribe_success_rate=0.0,
    ),
}


@dataclass(frozen=True, slots=True)
class EnemyState:
    name: str
    category: EnemyCategory
    health: int
    max_health: int
    attack: int
    defense: int
    cash_reward: int
    reputation_reward: int
    bribable: bool = False
    bribe_cost: int = 0
    bribe_success_rate: float = 0.0


@dataclass(frozen=True, slots=True)
class BattleState:
    enemy: EnemyState
    phase: BattlePhase = BattlePhase.PLAYER_TURN
    turn: int = 0
    day: int = 0
    outcome: Optional[BattleOutcome] = None
    trigger: Optional[CombatTrigger] = None
    bribe_paid: int = 0

    @property
    def resolved(self) -> bool:
        return self.phase is BattlePhase.RESOLVED


@dataclass(frozen=True, slots=True)
class Strike:
    missed: bool
    critical: bool
    damage: int


@dataclass(frozen=True, slots=True)
class TurnReport:
    player: PlayerState
    battle: BattleState
    result: TurnResult
    messages: Tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class EncounterRoll:
    triggered: bool
    suppressed: bool
    chance: float
    roll: float
    category: Optional[EnemyCategory] = None


def difficulty_multiplier(days_passed: int, cfg: CombatConfig) -> float:
    """No scaling up to the start day, then a slow linear ramp."""

    return 1.0 + max(0, days_passed - cfg.difficulty_start_day) / cfg.difficulty_ramp_days


def generate_enemy(
    rng: "RNGService",
    category: EnemyCategory,
    *,
    days_passed: int,
    cfg: CombatConfig,
) -> EnemyState:
    profile = ENEMY_PROFILES[category]
    scale = difficulty_multiplier(days_passed, cfg)
    scope = {"day": days_passed, "category": category.value, "salt": cfg.deterministic_salt}

    def _stat(key: str, band: Tuple[int, int]) -> int:
        return max(0, round_half_up(rng.randint(f"combat.enemy.{key}", band[0], band[1], scope=scope) * scale))

    health = max(1, _stat("health", profile.health))
    return EnemyState(
        name=rng.choice("combat.enemy.name", profile.names, scope=scope),
        category=category,
        health=health,
        max_health=health,
        attack=_stat("attack", profile.attack),
        defense=_stat("defense", profile.defense),
        cash_reward=rng.randint("combat.enemy.cash", *profile.cash_reward, scope=scope),
        reputation_reward=rng.randint("combat.enemy.reputation", *profile.reputation_reward, scope=scope),
        bribable=profile.bribable,
        bribe_cost=round_half_up(profile.bribe_base_cost * scale),
        bribe_success_rate=profile.bribe_success_rate,
    )


# ---------------------------------------------------------------------------
# Encounter rolls
# ---------------------------------------------------------------------------


def encounter_chance(heat: int, cfg: CombatConfig) -> float:
    return max(0.0, min(1.0, cfg.base_encounter_chance + heat * cfg.encounter_chance_per_heat))


def category_weights(heat: int, cfg: CombatConfig) -> Dict[EnemyCategory, float]:
    """Normalized opponent weights; no band is ever negative."""

    raw = {
        EnemyCategory.POLICE: max(0.0, cfg.police_weight_base + heat * cfg.police_weight_per_heat),
        EnemyCategory.GANG: max(0.0, cfg.gang_weight_base + heat * cfg.gang_weight_per_heat),
        EnemyCategory.FIEND: max(0.0, cfg.fiend_weight_base + heat * cfg.fiend_weight_per_heat),
    }
    total = sum(raw.values())
    if total <= 0:
        return {category: 1.0 / len(raw) for category in raw}
    return {category: weight / total for category, weight in raw.items()}


def choose_category(rng: "RNGService", heat: int, *, day: int, cfg: CombatConfig) -> EnemyCategory:
    roll = rng.rand("combat.encounter.category", scope={"day": day, "salt": cfg.deterministic_salt})
    cumulative = 0.0
    weights = category_weights(heat, cfg)
    for category, weight in weights.items():
        cumulative += weight
        if roll < cumulative:
            return category
    return list(weights)[-1]


def roll_encounter(rng: "RNGService", *, days_passed: int, heat: int, cfg: CombatConfig) -> EncounterRoll:
    chance = encounter_chance(heat, cfg)
    roll = rng.rand("combat.encounter", scope={"day": days_passed, "salt": cfg.deterministic_salt})
    if roll >= chance:
        return EncounterRoll(triggered=False, suppressed=False, chance=chance, roll=roll)
    if days_passed <= cfg.grace_period_days:
        return EncounterRoll(triggered=False, suppressed=True, chance=chance, roll=roll)
    category = choose_category(rng, heat, day=days_passed, cfg=cfg)
    return EncounterRoll(triggered=True, suppressed=False, chance=chance, roll=roll, category=category)


# ---------------------------------------------------------------------------
# Strikes
# ---------------------------------------------------------------------------


def attack_power(player: PlayerState, cfg: CombatConfig) -> int:
    weapon = player.equipped_weapon
    return weapon.damage if weapon is not None else cfg.player_base_attack


def defense_rating(player: PlayerState, cfg: CombatConfig) -> int:
    armor = player.equipped_armor
    return cfg.player_base_defense + (armor.protection if armor is not None else 0)


def roll_strike(
    rng: "RNGService",
    *,
    attacker: str,
    attack: int,
    defense: int,
    scope: Dict[str, object],
    cfg: CombatConfig,
) -> Strike:
    if rng.rand(f"combat.{attacker}.miss", scope=scope) < cfg.miss_chance:
        return Strike(missed=True, critical=False, damage=0)
    damage = max(1, attack - defense)
    critical = rng.rand(f"combat.{attacker}.crit", scope=scope) < cfg.crit_chance
    if critical:
        damage = round_half_up(damage * cfg.crit_multiplier)
    return Strike(missed=False, critical=critical, damage=damage)


def _scope(battle: BattleState, cfg: CombatConfig) -> Dict[str, object]:
    return {"day": battle.day, "turn": battle.turn, "salt": cfg.deterministic_salt}


def _resolve(battle: BattleState, outcome: BattleOutcome) -> BattleState:
    return replace(battle, phase=BattlePhase.RESOLVED, outcome=outcome)


# ---------------------------------------------------------------------------
# Phases
# ---------------------------------------------------------------------------


def enemy_turn(rng: "RNGService", player: PlayerState, battle: BattleState, cfg: CombatConfig) -> TurnReport:
    enemy = battle.enemy
    strike = roll_strike(
        rng,
        attacker="enemy",
        attack=enemy.attack,
        defense=defense_rating(player, cfg),
        scope=_scope(battle, cfg),
        cfg=cfg,
    )
    if strike.missed:
        next_battle = replace(battle, phase=BattlePhase.PLAYER_TURN, turn=battle.turn + 1)
        return TurnReport(player, next_battle, TurnResult.CONTINUE, (f"{enemy.name} swings at you and misses.",))

    player = player.with_health_delta(-strike.damage)
    crit = " A critical hit!" if strike.critical else ""
    messages = [f"{enemy.name} hits you for {strike.damage} damage.{crit}"]
    if player.health <= 0:
        messages.append(f"You were taken down by {enemy.name}.")
        return TurnReport(player, _resolve(battle, BattleOutcome.DEFEAT), TurnResult.DEFEAT, tuple(messages))
    next_battle = replace(battle, phase=BattlePhase.PLAYER_TURN, turn=battle.turn + 1)
    return TurnReport(player, next_battle, TurnResult.CONTINUE, tuple(messages))


def start_battle(
    rng: "RNGService",
    player: PlayerState,
    enemy: EnemyState,
    *,
    cfg: CombatConfig,
    trigger: Optional[CombatTrigger] = None,
) -> TurnReport:
    """Open a battle; the enemy may strike before the player can act."""

    battle = BattleState(enemy=enemy, phase=BattlePhase.PLAYER_TURN, day=player.days_passed, trigger=trigger)
    opener = f"A {enemy.name} ({enemy.category.value}) confronts you!"
    if rng.rand("combat.first_strike", scope=_scope(battle, cfg)) >= cfg.first_strike_chance:
        return TurnReport(player, battle, TurnResult.CONTINUE, (opener,))

    battle = replace(battle, phase=BattlePhase.ENEMY_FIRST_STRIKE)
    report = enemy_turn(rng, player, battle, cfg)
    messages = (opener, f"{enemy.name} strikes first!") + report.messages
    if report.result is TurnResult.DEFEAT:
        player, settle_messages = settle_battle(rng, report.player, report.battle, cfg)
        return TurnReport(player, report.battle, report.result, messages + settle_messages)
    return TurnReport(report.player, report.battle, report.result, messages)


def _attack(rng: "RNGService", player: PlayerState, battle: BattleState, cfg: CombatConfig) -> TurnReport:
    weapon = player.equipped_weapon
    messages = []
    if weapon is not None and weapon.firearm:
        ammo = player.weapon_ammo or AmmoState(in_clip=0, reserve=0)
        if ammo.in_clip <= 0:
            if ammo.reserve > 0:
                loaded = min(weapon.clip_size, ammo.reserve)
                player = replace(player, weapon_ammo=AmmoState(in_clip=loaded, reserve=ammo.reserve - loaded))
                return TurnReport(player, battle, TurnResult.CONTINUE, (f"You reload your {weapon.name} ({loaded} rounds).",))
            return TurnReport(player, battle, TurnResult.CONTINUE, (f"Click! Your {weapon.name} is out of ammo.",))
        player = replace(player, weapon_ammo=AmmoState(in_clip=ammo.in_clip - 1, reserve=ammo.reserve))

    enemy = battle.enemy
    strike = roll_strike(
        rng,
        attacker="player",
        attack=attack_power(player, cfg),
        defense=enemy.defense,
        scope=_scope(battle, cfg),
        cfg=cfg,
    )
    if strike.missed:
        return TurnReport(player, battle, TurnResult.CONTINUE, ("You attack and miss.",))

    remaining = max(0, enemy.health - strike.damage)
    battle = replace(battle, enemy=replace(enemy, health=remaining))
    crit = " A critical hit!" if strike.critical else ""
    messages.append(f"You hit {enemy.name} for {strike.damage} damage.{crit}")
    if remaining <= 0:
        messages.append(f"{enemy.name} is down. You win the fight!")
        return TurnReport(player, _resolve(battle, BattleOutcome.VICTORY), TurnResult.VICTORY, tuple(messages))
    return TurnReport(player, battle, TurnResult.CONTINUE, tuple(messages))


def flee_chance(player: PlayerState, enemy: EnemyState, cfg: CombatConfig) -> float:
    chance = cfg.flee_base_chance
    if player.health < MAX_HEALTH * cfg.low_health_fraction:
        chance += cfg.flee_low_health_bonus
    player_total = attack_power(player, cfg) + defense_rating(player, cfg)
    if enemy.attack + enemy.defense > cfg.outmatched_ratio * player_total:
        chance -= cfg.flee_outmatched_penalty
    return max(cfg.flee_min_chance, min(cfg.flee_max_chance, chance))


def _flee(rng: "RNGService", player: PlayerState, battle: BattleState, cfg: CombatConfig) -> TurnReport:
    chance = flee_chance(player, battle.enemy, cfg)
    if rng.rand("combat.flee", scope=_scope(battle, cfg)) < chance:
        return TurnReport(player, _resolve(battle, BattleOutcome.ESCAPED), TurnResult.ESCAPE, ("You got away!",))
    return TurnReport(player, battle, TurnResult.CONTINUE, ("You try to run but can't shake them.",))


def bribe_chance(player: PlayerState, enemy: EnemyState, cfg: CombatConfig) -> float:
    bonus = min(cfg.bribe_reputation_cap, max(0, player.reputation) * cfg.bribe_reputation_scale)
    return max(cfg.bribe_min_chance, min(cfg.bribe_max_chance, enemy.bribe_success_rate + bonus))


def _bribe(rng: "RNGService", player: PlayerState, battle: BattleState, cfg: CombatConfig) -> TurnReport:
    enemy = battle.enemy
    if not enemy.bribable:
        raise CommandRejected(f"{enemy.name} won't take your money.", title="Bribe Refused")
    if player.cash < enemy.bribe_cost:
        raise CommandRejected(
            f"A bribe costs ${enemy.bribe_cost:,} but you only have ${player.cash:,}.",
            title="Not Enough Cash",
        )
    if rng.rand("combat.bribe", scope=_scope(battle, cfg)) < bribe_chance(player, enemy, cfg):
        player = player.with_cash_delta(-enemy.bribe_cost)
        battle = replace(_resolve(battle, BattleOutcome.ESCAPED), bribe_paid=enemy.bribe_cost)
        return TurnReport(
            player,
            battle,
            TurnResult.ESCAPE,
            (f"{enemy.name} pockets ${enemy.bribe_cost:,} and looks the other way.",),
        )
    battle = replace(battle, enemy=replace(enemy, bribable=False))
    return TurnReport(player, battle, TurnResult.CONTINUE, (f"{enemy.name} is insulted by the offer.",))


_PLAYER_ACTIONS = {
    BattleAction.ATTACK: _attack,
    BattleAction.FLEE: _flee,
    BattleAction.BRIBE: _bribe,
}


def player_turn(
    rng: "RNGService",
    player: PlayerState,
    battle: BattleState,
    action: BattleAction,
    cfg: CombatConfig,
) -> TurnReport:
    if battle.resolved:
        raise CommandRejected("The fight is already over.", title="No Battle")
    if battle.phase is not BattlePhase.PLAYER_TURN:
        raise CommandRejected("It is not your turn.", title="Wait")
    report = _PLAYER_ACTIONS[action](rng, player, battle, cfg)
    if report.result is TurnResult.CONTINUE:
        return replace(report, battle=replace(report.battle, phase=BattlePhase.ENEMY_TURN))
    return report


def settle_battle(
    rng: "RNGService",
    player: PlayerState,
    battle: BattleState,
    cfg: CombatConfig,
) -> Tuple[PlayerState, Tuple[str, ...]]:
    """Apply the rewards or penalties of a resolved battle."""

    enemy = battle.enemy
    if battle.outcome is BattleOutcome.VICTORY:
        player = player.with_cash_delta(enemy.cash_reward).with_reputation_delta(enemy.reputation_reward)
        return player, (f"You take ${enemy.cash_reward:,} and gain {enemy.reputation_reward} reputation.",)
    if battle.outcome is BattleOutcome.DEFEAT:
        scope = {"day": battle.day, "salt": cfg.deterministic_salt}
        fraction = rng.uniform("combat.defeat.cash", cfg.defeat_cash_min_fraction, cfg.defeat_cash_max_fraction, scope=scope)
        floor = math.ceil(round(player.cash * cfg.defeat_cash_min_fraction, 9))
        cash_loss = min(player.cash, max(floor, int(player.cash * fraction)))
        reputation_loss = rng.randint(
            "combat.defeat.reputation", cfg.defeat_reputation_min, cfg.defeat_reputation_max, scope=scope
        )
        player = player.with_cash_delta(-cash_loss).with_reputation_delta(-reputation_loss)
        return player, (f"You lose ${cash_loss:,} and {reputation_loss} reputation.",)
    return player, ()


def resolve_action(
    rng: "RNGService",
    player: PlayerState,
    battle: BattleState,
    action: BattleAction | str,
    cfg: CombatConfig,
) -> TurnReport:
    """Run one full round: the player's action, then the enemy's reply."""

    action = BattleAction.parse(action)
    report = player_turn(rng, player, battle, action, cfg)
    messages = report.messages
    if report.result is TurnResult.CONTINUE:
        reply = enemy_turn(rng, report.player, report.battle, cfg)
        report = replace(reply, messages=messages + reply.messages)
        messages = report.messages
    if report.result in (TurnResult.VICTORY, TurnResult.DEFEAT):
        settled_player, settle_messages = settle_battle(rng, report.player, report.battle, cfg)
        report = replace(report, player=settled_player, messages=messages + settle_messages)
    return report


__all__ = [
    "BattleAction",
    "BattleOutcome",
    "BattlePhase",
    "BattleState",
    "CombatConfig",
    "ENEMY_PROFILES",
    "EncounterRoll",
    "EnemyCategory",
    "EnemyProfile",
    "EnemyState",
    "Strike",
    "TRIGGER_CATEGORIES",
    "TurnReport",
    "TurnResult",
    "attack_power",
    "bribe_chance",
    "category_weights",
    "choose_category",
    "defense_rating",
    "difficulty_multiplier",
    "encounter_chance",
    "enemy_turn",
    "flee_chance",
    "generate_enemy",
    "player_turn",
    "resolve_action",
    "roll_encounter",
    "roll_strike",
    "settle_battle",
    "start_battle",
]
