"""Glue between the combat engine and a command in progress."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Optional

from hustle.game_log import LogCategory
from hustle.notifications import ToastVariant
from hustle.runtime.combat import (
    BattleOutcome,
    CombatConfig,
    EnemyCategory,
    TurnReport,
    TurnResult,
    generate_enemy,
    start_battle,
)
from hustle.runtime.context import CommandContext
from hustle.runtime.events import CombatTrigger

if TYPE_CHECKING:
    from hustle.runtime.rng_service import RNGService


GAME_OVER_MESSAGE = "Your health reached 0. Game Over."


def declare_game_over(ctx: CommandContext, message: str = GAME_OVER_MESSAGE) -> None:
    player = replace(ctx.snapshot.player, health=0)
    ctx.snapshot = replace(ctx.snapshot, player=player, game_over=True, game_message=message)
    ctx.note(LogCategory.GAME_OVER, message, toast="Game Over", variant=ToastVariant.DESTRUCTIVE)


def apply_turn(ctx: CommandContext, report: TurnReport) -> None:
    """Fold a combat step into the context, logging and closing out the fight."""

    ctx.snapshot = replace(ctx.snapshot, player=report.player, battle=report.battle)
    for message in report.messages:
        ctx.battle_note(message)

    enemy = report.battle.enemy
    if report.result is TurnResult.VICTORY:
        ctx.note(
            LogCategory.COMBAT_WIN,
            f"You beat the {enemy.name} and took ${enemy.cash_reward:,} (+{enemy.reputation_reward} rep).",
            toast="Victory!",
        )
    elif report.result is TurnResult.ESCAPE:
        if report.battle.bribe_paid:
            message = f"You paid off the {enemy.name} with ${report.battle.bribe_paid:,}."
        else:
            message = f"You escaped from the {enemy.name}."
        ctx.note(LogCategory.COMBAT, message, toast="Escaped")
    elif report.result is TurnResult.DEFEAT:
        ctx.note(
            LogCategory.COMBAT_LOSS,
            f"You lost the fight against the {enemy.name}.",
            toast="Combat Lost!",
            variant=ToastVariant.DESTRUCTIVE,
        )
        declare_game_over(ctx)


def open_battle(
    ctx: CommandContext,
    rng: "RNGService",
    category: EnemyCategory,
    cfg: CombatConfig,
    *,
    trigger: Optional[CombatTrigger] = None,
) -> TurnReport:
    """Generate an opponent and start the fight; the first strike may be fatal."""

    player = ctx.snapshot.player
    enemy = generate_enemy(rng, category, days_passed=player.days_passed, cfg=cfg)
    ctx.clear_battle_log()
    ctx.note(LogCategory.COMBAT, f"You've run into a {enemy.name}!", toast="Encounter!")
    report = start_battle(rng, player, enemy, cfg=cfg, trigger=trigger)
    apply_turn(ctx, report)
    return report


def battle_closed_message(outcome: Optional[BattleOutcome]) -> str:
    if outcome is BattleOutcome.VICTORY:
        return "You walk away from the fight victorious."
    if outcome is BattleOutcome.ESCAPED:
        return "You slip back into the streets."
    return "The fight is over."


__all__ = ["GAME_OVER_MESSAGE", "apply_turn", "battle_closed_message", "declare_game_over", "open_battle"]
