# effects.py
"""Interpreters for ability and item effects shared by the damage, scheduler
and residual steps.

Every function appends user-visible narration to ``logs`` and mutates the
creatures or the battle state it is handed. RNG draws happen only where a
hook actually rolls, so callers can rely on a stable draw order.
"""
from __future__ import annotations

import logging
from fractions import Fraction
from typing import List, Optional

import abilities
import items
from config import DEFAULT_FIELD_DURATION
from rng import BattleRng
from state import (
    PERSISTENT_STATUSES,
    TERRAIN_NAMES,
    WEATHER_NAMES,
    BattleState,
    CreatureInstance,
    TerrainState,
    WeatherState,
    ally_position,
    creature_at,
    display_stat,
    opposing_positions,
)

logger = logging.getLogger(__name__)

WEATHER_START_MESSAGES = {
    "sun": "The sunlight turned harsh!",
    "rain": "It started to rain!",
    "sandstorm": "A sandstorm kicked up!",
    "hail": "It started to hail!",
}

TERRAIN_START_MESSAGES = {
    "electric": "An electric current ran across the battlefield!",
    "grassy": "Grass grew to cover the battlefield!",
    "misty": "Mist swirled around the battlefield!",
    "psychic": "The battlefield got weird!",
}

STATUS_INFLICT_MESSAGES = {
    "burn": "{name} was burned!",
    "freeze": "{name} was frozen solid!",
    "paralysis": "{name} is paralyzed! It may be unable to move!",
    "poison": "{name} was poisoned!",
    "bad-poison": "{name} was badly poisoned!",
    "sleep": "{name} fell asleep!",
}

# Ailment -> types that can never receive it
STATUS_TYPE_IMMUNITIES = {
    "burn": ("Fire",),
    "paralysis": ("Electric",),
    "poison": ("Poison", "Steel"),
    "bad-poison": ("Poison", "Steel"),
    "freeze": ("Ice",),
    "leech-seed": ("Grass", "Ghost"),
}

VOLATILE_AILMENTS = ("confusion", "infatuation", "leech-seed")

# Fail outright against Grass types
POWDER_MOVES = ("spore", "sleep-powder", "stun-spore", "poison-powder")


def hp_fraction(creature: CreatureInstance, fraction: Fraction) -> int:
    return max(1, int(creature.max_hp * fraction))


# --- Stat stages ---


def _stage_message(name: str, stat: str, delta: int, requested: int) -> str:
    label = display_stat(stat)
    if delta == 0:
        direction = "higher" if requested > 0 else "lower"
        return f"{name}'s {label} won't go any {direction}!"
    if delta > 0:
        suffix = {1: "rose!", 2: "rose sharply!"}.get(delta, "rose drastically!")
    else:
        suffix = {-1: "fell!", -2: "harshly fell!"}.get(delta, "severely fell!")
    return f"{name}'s {label} {suffix}"


def apply_stat_change(
    target: CreatureInstance,
    stat: str,
    stages: int,
    logs: List[str],
    *,
    source: Optional[CreatureInstance] = None,
    ignore_abilities: bool = False,
) -> int:
    """Apply a stage change and narrate it. Returns the delta that actually landed.

    Drops caused by another creature respect the target's ``PreventStatLoss``
    abilities unless the source ignores abilities.
    """
    if target.battle_stages is None or stages == 0:
        return 0
    lowered_by_foe = stages < 0 and source is not None and source is not target
    if lowered_by_foe and not ignore_abilities and abilities.prevents_stat_loss(target.ability_id, stat):
        logs.append(
            f"{target.display_name}'s {abilities.display_ability(target.ability_id)} "
            f"prevents its {display_stat(stat)} from being lowered!"
        )
        return 0
    delta = target.change_stage(stat, stages)
    logs.append(_stage_message(target.display_name, stat, delta, stages))
    return delta


# --- Items ---


def consume_item(creature: CreatureInstance, logs: List[str], message: str = "") -> None:
    if creature.held_item_id is None:
        return
    logger.debug("%s consumed %s", creature.display_name, creature.held_item_id)
    if message:
        logs.append(message.format(name=creature.display_name))
    creature.held_item_id = None


def check_hp_threshold_items(creature: CreatureInstance, logs: List[str]) -> bool:
    """Fire ``on_hp_threshold`` items (Sitrus Berry) when the holder is at or below the threshold."""
    if creature.current_hp <= 0:
        return False
    for hook in items.hooks_for(creature.held_item_id, "on_hp_threshold"):
        threshold = hook.hp_threshold if hook.hp_threshold is not None else Fraction(1, 2)
        if creature.current_hp > creature.max_hp * threshold:
            continue
        if isinstance(hook.effect, items.RestoreHP):
            item_name = items.display_item(creature.held_item_id)
            creature.heal(hp_fraction(creature, hook.effect.fraction))
            logs.append(f"{creature.display_name} restored HP using its {item_name}!")
        if hook.consumable:
            consume_item(creature, logs)
        return True
    return False


def _cure_with_item(creature: CreatureInstance, logs: List[str]) -> None:
    for hook in items.hooks_for(creature.held_item_id, "on_status_applied"):
        if isinstance(hook.effect, items.CureStatus) and creature.status is not None:
            cured = creature.status
            item_name = items.display_item(creature.held_item_id)
            creature.cure_status()
            logs.append(f"{creature.display_name}'s {item_name} cured its {cured.replace('-', ' ')}!")
            if hook.consumable:
                consume_item(creature, logs)
            return


# --- Status ---


def is_status_immune(
    target: CreatureInstance,
    ailment: str,
    battle_state: Optional[BattleState],
    *,
    ignore_abilities: bool = False,
    move_id: Optional[str] = None,
) -> bool:
    if move_id in POWDER_MOVES and target.has_type("Grass"):
        return True
    immune_types = STATUS_TYPE_IMMUNITIES.get(ailment, ())
    if any(target.has_type(t) for t in immune_types):
        return True
    if not ignore_abilities and abilities.prevents_status(target.ability_id, ailment):
        return True
    if battle_state is not None and target.is_grounded():
        if battle_state.has_terrain("electric") and ailment == "sleep":
            return True
        if battle_state.has_terrain("misty") and (ailment in PERSISTENT_STATUSES or ailment == "confusion"):
            return True
    return False


def inflict_status(
    target: CreatureInstance,
    status: str,
    logs: List[str],
    battle_state: Optional[BattleState] = None,
    *,
    ignore_abilities: bool = False,
    move_id: Optional[str] = None,
) -> bool:
    if target.current_hp <= 0 or target.status is not None:
        return False
    if is_status_immune(target, status, battle_state, ignore_abilities=ignore_abilities, move_id=move_id):
        return False
    if not target.apply_status(status):
        return False
    logs.append(STATUS_INFLICT_MESSAGES[status].format(name=target.display_name))
    _cure_with_item(target, logs)
    return True


def inflict_ailment(
    target: CreatureInstance,
    ailment: str,
    battle_state: BattleState,
    rng: BattleRng,
    logs: List[str],
    *,
    source: Optional[CreatureInstance] = None,
    ignore_abilities: bool = False,
    move_id: Optional[str] = None,
) -> bool:
    """Apply a move ailment: a persistent status or one of the volatile ailments."""
    if ailment in PERSISTENT_STATUSES:
        return inflict_status(
            target, ailment, logs, battle_state, ignore_abilities=ignore_abilities, move_id=move_id
        )
    if ailment not in VOLATILE_AILMENTS:
        logger.debug("Ignoring unsupported ailment %r", ailment)
        return False
    volatile = target.volatile_status
    if volatile is None or target.current_hp <= 0:
        return False
    if is_status_immune(target, ailment, battle_state, ignore_abilities=ignore_abilities, move_id=move_id):
        return False
    if ailment == "confusion":
        if volatile.confused:
            return False
        volatile.confused = True
        volatile.confusion_turns = rng.randint(2, 5)
        logs.append(f"{target.display_name} became confused!")
        return True
    if ailment == "infatuation":
        if source is None or volatile.infatuated_by is not None:
            return False
        volatile.infatuated_by = source.instance_id
        logs.append(f"{target.display_name} fell in love!")
        return True
    if ailment == "leech-seed":
        if source is None or volatile.leech_seeded:
            return False
        volatile.leech_seeded = True
        volatile.leech_seed_source = source.instance_id
        logs.append(f"{target.display_name} was seeded!")
        return True
    return False


# --- Field ---


def set_weather(
    battle_state: BattleState,
    kind: str,
    logs: List[str],
    duration: int = DEFAULT_FIELD_DURATION,
) -> bool:
    if battle_state.has_weather(kind):
        return False
    battle_state.weather = WeatherState(kind=kind, turns_remaining=duration)
    logs.append(WEATHER_START_MESSAGES[kind])
    return True


def set_terrain(
    battle_state: BattleState,
    kind: str,
    logs: List[str],
    duration: int = DEFAULT_FIELD_DURATION,
) -> bool:
    if battle_state.has_terrain(kind):
        return False
    battle_state.terrain = TerrainState(kind=kind, turns_remaining=duration)
    logs.append(TERRAIN_START_MESSAGES[kind])
    return True


# --- Ability triggers ---


def _live_opponents(position: str, battle_state: BattleState, player_team: List[CreatureInstance]) -> List[CreatureInstance]:
    out = []
    for pos in opposing_positions(position):
        foe = creature_at(pos, battle_state, player_team)
        if foe is not None and foe.current_hp > 0:
            out.append(foe)
    return out


def trigger_entry_abilities(
    creature: CreatureInstance,
    position: str,
    battle_state: BattleState,
    player_team: List[CreatureInstance],
    logs: List[str],
) -> None:
    if creature.current_hp <= 0:
        return
    ability_name = abilities.display_ability(creature.ability_id)
    for effect in abilities.effects_for(creature.ability_id, "on_entry"):
        if isinstance(effect, abilities.SetWeather):
            if set_weather(battle_state, effect.weather, [], effect.duration):
                logs.append(f"{creature.display_name}'s {ability_name} set {WEATHER_NAMES[effect.weather]}!")
        elif isinstance(effect, abilities.SetTerrain):
            if set_terrain(battle_state, effect.terrain, [], effect.duration):
                logs.append(f"{creature.display_name}'s {ability_name} set {TERRAIN_NAMES[effect.terrain]}!")
        elif isinstance(effect, abilities.ModifyStatOnEntry):
            if effect.target == "user":
                targets = [creature]
            elif effect.target == "allies":
                ally = creature_at(ally_position(position), battle_state, player_team) if battle_state.is_double else None
                targets = [ally] if ally is not None and ally.current_hp > 0 else []
            else:
                targets = _live_opponents(position, battle_state, player_team)
                if effect.target == "single_opponent":
                    targets = targets[:1]
            for target in targets:
                apply_stat_change(target, effect.stat, effect.stages, logs, source=creature)
        elif isinstance(effect, abilities.Custom) and effect.id == "download":
            stat, stages = abilities.resolve_download(_live_opponents(position, battle_state, player_team))
            apply_stat_change(creature, stat, stages, logs, source=creature)


def trigger_switch_out_abilities(creature: CreatureInstance, logs: List[str]) -> None:
    for effect in abilities.effects_for(creature.ability_id, "on_switch"):
        if isinstance(effect, abilities.HealOnSwitch) and creature.current_hp > 0:
            healed = creature.heal(int(creature.max_hp * effect.fraction))
            logger.debug("%s regenerated %d HP on switch-out", creature.display_name, healed)
        elif isinstance(effect, abilities.Custom) and effect.id == "natural-cure" and creature.status is not None:
            creature.cure_status()
            logger.debug("%s was cured on switch-out", creature.display_name)


def apply_contact_effects(
    attacker: CreatureInstance,
    defender: CreatureInstance,
    battle_state: BattleState,
    rng: BattleRng,
    logs: List[str],
) -> None:
    """Fire contact hooks in both directions after a contact hit the defender survived."""
    ignore = abilities.ignores_abilities(attacker.ability_id)
    defender_ability = abilities.display_ability(defender.ability_id)
    if not ignore:
        for effect in abilities.effects_for(defender.ability_id, "on_contact"):
            if attacker.current_hp <= 0:
                break
            if isinstance(effect, abilities.InflictStatusOnContact) and not effect.on_attack:
                if rng.chance(effect.chance):
                    inflict_status(attacker, effect.status, logs, battle_state)
            elif isinstance(effect, abilities.DamageAttackerOnContact):
                attacker.take_damage(hp_fraction(attacker, effect.fraction))
                logs.append(f"{attacker.display_name} was hurt by {defender.display_name}'s {defender_ability}!")

    for hook in items.hooks_for(defender.held_item_id, "on_damage_taken"):
        if hook.condition != "contact" or attacker.current_hp <= 0:
            continue
        if isinstance(hook.effect, items.RecoilDamage):
            attacker.take_damage(hp_fraction(attacker, hook.effect.fraction))
            logs.append(f"{attacker.display_name} was hurt by the {items.display_item(defender.held_item_id)}!")

    for effect in abilities.effects_for(attacker.ability_id, "on_contact"):
        if isinstance(effect, abilities.InflictStatusOnContact) and effect.on_attack and defender.current_hp > 0:
            if rng.chance(effect.chance):
                inflict_status(defender, effect.status, logs, battle_state)


def apply_receive_damage_abilities(defender: CreatureInstance, logs: List[str]) -> None:
    if defender.current_hp <= 0:
        return
    for effect in abilities.effects_for(defender.ability_id, "on_receive_damage"):
        if isinstance(effect, abilities.ModifyStatsOnHit):
            for stat, stages in effect.changes:
                apply_stat_change(defender, stat, stages, logs, source=defender)


def apply_damage_taken_items(
    defender: CreatureInstance,
    effectiveness: float,
    damage_class: str,
    logs: List[str],
) -> None:
    """Non-contact ``on_damage_taken`` item hooks: Weakness Policy, Air Balloon."""
    if defender.current_hp <= 0 or defender.held_item_id is None:
        return
    consumed = False
    consume_message = ""
    for hook in items.hooks_for(defender.held_item_id, "on_damage_taken"):
        if hook.condition == "contact":
            continue
        if not items.condition_holds(
            hook.condition,
            damage_class=damage_class,
            effectiveness=effectiveness,
            holder_types=defender.types,
        ):
            continue
        if isinstance(hook.effect, items.BoostStat):
            apply_stat_change(defender, hook.effect.stat, hook.effect.stages, logs, source=defender)
        elif isinstance(hook.effect, items.Consume):
            consume_message = hook.effect.message
        consumed = consumed or hook.consumable
    if consumed:
        consume_item(defender, logs, consume_message)
