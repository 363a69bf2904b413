# residuals.py
from __future__ import annotations

import logging
from fractions import Fraction
from typing import Callable, List, Tuple

import abilities
import items
from effects import apply_stat_change, check_hp_threshold_items, hp_fraction
from outcome import TERMINAL_OUTCOMES, check_battle_state, merge_outcomes
from rng import BattleRng
from state import (
    STATUS_NAMES,
    BattleState,
    CreatureInstance,
    active_positions,
    creature_at,
    find_active_by_id,
)

logger = logging.getLogger(__name__)

WEATHER_IMMUNE_TYPES = {
    "sandstorm": ("Rock", "Ground", "Steel"),
    "hail": ("Ice",),
}

WEATHER_RESIDUAL_MESSAGES = {
    "sandstorm": "{name} is buffeted by the sandstorm!",
    "hail": "{name} is pelted by hail!",
}

Step = Callable[[CreatureInstance, BattleState, List[CreatureInstance], BattleRng, List[str]], None]


def _status_damage(creature: CreatureInstance, battle_state, player_team, rng, logs) -> None:
    status = creature.status
    if status == "burn":
        amount = hp_fraction(creature, Fraction(1, 16))
    elif status == "poison":
        amount = hp_fraction(creature, Fraction(1, 8))
    elif status == "bad-poison":
        volatile = creature.volatile_status
        turns = 1
        if volatile is not None:
            volatile.badly_poisoned_turns += 1
            turns = volatile.badly_poisoned_turns
        amount = hp_fraction(creature, Fraction(turns, 16))
    else:
        return
    dealt = creature.take_damage(amount)
    logs.append(f"{creature.display_name} is hurt by its {'burn' if status == 'burn' else 'poison'}! (-{dealt} HP)")
    logger.debug("%s %s residual %d", creature.display_name, STATUS_NAMES[status], dealt)


def _weather_damage(creature: CreatureInstance, battle_state: BattleState, player_team, rng, logs) -> None:
    weather = battle_state.weather
    if weather is None or weather.kind not in WEATHER_IMMUNE_TYPES:
        return
    if any(creature.has_type(t) for t in WEATHER_IMMUNE_TYPES[weather.kind]):
        return
    dealt = creature.take_damage(hp_fraction(creature, Fraction(1, 16)))
    logs.append(WEATHER_RESIDUAL_MESSAGES[weather.kind].format(name=creature.display_name) + f" (-{dealt} HP)")


def _leech_seed(creature: CreatureInstance, battle_state: BattleState, player_team, rng, logs) -> None:
    volatile = creature.volatile_status
    if volatile is None or not volatile.leech_seeded:
        return
    drained = creature.take_damage(hp_fraction(creature, Fraction(1, 8)))
    logs.append(f"{creature.display_name}'s health is sapped by Leech Seed! (-{drained} HP)")
    source = find_active_by_id(volatile.leech_seed_source or "", battle_state, player_team)
    if source is not None and source.current_hp > 0:
        source.heal(drained)


def _grassy_terrain(creature: CreatureInstance, battle_state: BattleState, player_team, rng, logs) -> None:
    if not battle_state.has_terrain("grassy") or not creature.is_grounded():
        return
    healed = creature.heal(hp_fraction(creature, Fraction(1, 16)))
    if healed:
        logs.append(f"{creature.display_name} is healed by the grassy terrain! (+{healed} HP)")


def _ability_end_of_turn(creature: CreatureInstance, battle_state: BattleState, player_team, rng, logs) -> None:
    ability_name = abilities.display_ability(creature.ability_id)
    weather = battle_state.weather.kind if battle_state.weather else None
    terrain = battle_state.terrain.kind if battle_state.terrain else None
    for effect in abilities.effects_for(creature.ability_id, "end_of_turn"):
        if isinstance(effect, abilities.BoostStatEndOfTurn):
            apply_stat_change(creature, effect.stat, effect.stages, logs, source=creature)
        elif isinstance(effect, abilities.HealEndOfTurn):
            if effect.weather is not None and effect.weather != weather:
                continue
            if effect.terrain is not None and effect.terrain != terrain:
                continue
            healed = creature.heal(hp_fraction(creature, effect.fraction))
            if healed:
                logs.append(f"{creature.display_name}'s {ability_name} restored its HP! (+{healed} HP)")
        elif isinstance(effect, abilities.Custom) and effect.id == "moody":
            for stat, stages in abilities.roll_moody(creature, rng):
                apply_stat_change(creature, stat, stages, logs, source=creature)


def _item_end_of_turn(creature: CreatureInstance, battle_state: BattleState, player_team, rng, logs) -> None:
    if creature.held_item_id is None:
        return
    item_name = items.display_item(creature.held_item_id)
    for hook in items.hooks_for(creature.held_item_id, "end_of_turn"):
        if not items.condition_holds(hook.condition, holder_types=creature.types):
            continue
        if isinstance(hook.effect, items.RestoreHP):
            healed = creature.heal(hp_fraction(creature, hook.effect.fraction))
            if healed:
                logs.append(f"{creature.display_name} restored a little HP using its {item_name}! (+{healed} HP)")
        elif isinstance(hook.effect, items.RecoilDamage):
            dealt = creature.take_damage(hp_fraction(creature, hook.effect.fraction))
            logs.append(f"{creature.display_name} is hurt by its {item_name}! (-{dealt} HP)")


def _threshold_berries(creature: CreatureInstance, battle_state: BattleState, player_team, rng, logs) -> None:
    check_hp_threshold_items(creature, logs)


def _perish_count(creature: CreatureInstance, battle_state: BattleState, player_team, rng, logs) -> None:
    volatile = creature.volatile_status
    if volatile is None or volatile.perish_count <= 0:
        return
    volatile.perish_count -= 1
    logs.append(f"{creature.display_name}'s perish count fell to {volatile.perish_count}.")
    if volatile.perish_count == 0:
        creature.take_damage(creature.current_hp)


RESIDUAL_STEPS: Tuple[Step, ...] = (
    _status_damage,
    _weather_damage,
    _leech_seed,
    _grassy_terrain,
    _ability_end_of_turn,
    _item_end_of_turn,
    _threshold_berries,
    _perish_count,
)


def process_end_of_turn(
    battle_state: BattleState,
    player_team: List[CreatureInstance],
    rng: BattleRng,
    logs: List[str],
) -> str:
    """Run every residual step over the field in slot order.

    Field timers tick last. Returns the battle outcome; only a faint that
    decides the battle stops the remaining residuals.
    """
    outcome = "continue"
    for step in RESIDUAL_STEPS:
        for position in active_positions(battle_state):
            creature = creature_at(position, battle_state, player_team)
            if creature is None or creature.current_hp <= 0:
                continue
            step(creature, battle_state, player_team, rng, logs)
            if creature.current_hp <= 0:
                logs.append(f"{creature.display_name} fainted!")
                outcome = merge_outcomes(outcome, check_battle_state(battle_state, player_team, logs))
                if outcome in TERMINAL_OUTCOMES:
                    return outcome
    decrement_field_timers(battle_state, logs)
    return outcome


def decrement_field_timers(battle_state: BattleState, logs: List[str]) -> None:
    if battle_state.weather is not None:
        battle_state.weather.turns_remaining -= 1
        if battle_state.weather.turns_remaining <= 0:
            battle_state.weather = None
            logs.append("The weather returned to normal!")
    if battle_state.terrain is not None:
        battle_state.terrain.turns_remaining -= 1
        if battle_state.terrain.turns_remaining <= 0:
            battle_state.terrain = None
            logs.append("The terrain returned to normal!")
