# damage.py
from __future__ import annotations

import math
from typing import List, Optional, Tuple

import abilities
import effects
import items
from data_loader import MoveData
from rng import BattleRng
from state import CreatureInstance, stage_multiplier
from type_chart import effectiveness, effectiveness_label

# Probability of a critical hit by cumulative stage; stage 3+ always crits
CRIT_CHANCES: Tuple[float, ...] = (1 / 24, 1 / 8, 1 / 2, 1.0)

# Canonical 2-5 multi-strike distribution (cumulative percent thresholds)
MULTI_HIT_THRESHOLDS: Tuple[Tuple[int, int], ...] = ((35, 2), (70, 3), (85, 4), (100, 5))

TERRAIN_BOOSTED_TYPES = {"electric": "Electric", "grassy": "Grass", "psychic": "Psychic"}
GRASSY_WEAKENED_MOVES = ("earthquake", "bulldoze", "magnitude")

SPREAD_MODIFIER = 0.75
CONFUSION_POWER = 40


def check_critical_hit(stage: int, rng: BattleRng) -> bool:
    stage = max(0, min(stage, len(CRIT_CHANCES) - 1))
    return rng.gen_bool(CRIT_CHANCES[stage])


def critical_stage(attacker: CreatureInstance, move: MoveData) -> int:
    stage = move.meta.crit_rate
    if attacker.volatile_status is not None:
        stage += attacker.volatile_status.crit_stage
    stage += abilities.crit_stage_bonus(attacker.ability_id)
    stage += items.crit_stage_bonus(attacker.held_item_id)
    return max(0, min(3, stage))


def hit_count(min_hits: Optional[int], max_hits: Optional[int], rng: BattleRng) -> int:
    if min_hits is None or max_hits is None:
        return 1
    if min_hits == max_hits:
        return max(1, min_hits)
    if (min_hits, max_hits) == (2, 5):
        roll = rng.randint(1, 100)
        for threshold, hits in MULTI_HIT_THRESHOLDS:
            if roll <= threshold:
                return hits
    return rng.randint(min(min_hits, max_hits), max(min_hits, max_hits))


def has_secondary_effect(move: MoveData) -> bool:
    meta = move.meta
    if meta.ailment != "none" and meta.ailment_chance > 0:
        return True
    if meta.flinch_chance > 0:
        return True
    return bool(move.stat_changes) and meta.stat_chance > 0 and not move.is_status


def sheer_force_applies(attacker: CreatureInstance, move: MoveData) -> bool:
    if move.is_status:
        return False
    if not abilities.effects_of(attacker.ability_id, abilities.RemoveSecondaryEffects):
        return False
    return has_secondary_effect(move)


def _absorb(defender: CreatureInstance, move: MoveData, logs: List[str]) -> bool:
    immunity = abilities.type_immunity(defender.ability_id, move.type)
    if immunity is None:
        return False
    ability_name = abilities.display_ability(defender.ability_id)
    logs.append(f"{defender.display_name}'s {ability_name} absorbed the attack!")
    if immunity.heal is not None:
        healed = defender.heal(int(defender.max_hp * immunity.heal))
        if healed:
            logs.append(f"{defender.display_name} restored {healed} HP!")
    if immunity.boost is not None:
        stat, stages = immunity.boost
        effects.apply_stat_change(defender, stat, stages, logs, source=defender)
    return True


def _offense(attacker: CreatureInstance, move: MoveData, stat: str, is_critical: bool) -> float:
    stage = attacker.stage(stat)
    if is_critical:
        stage = max(0, stage)
    value = attacker.stat(stat) * stage_multiplier(stage) * items.stat_multiplier(attacker.held_item_id, stat)

    for effect in abilities.effects_for(attacker.ability_id, "before_damage"):
        if isinstance(effect, abilities.MultiplyBaseStat) and effect.stat == stat:
            value *= effect.factor
        elif isinstance(effect, abilities.BoostTypeAtLowHP):
            if move.type == effect.move_type and attacker.current_hp <= attacker.max_hp * effect.hp_threshold:
                value *= effect.factor
        elif isinstance(effect, abilities.Custom) and effect.id == "guts":
            if attacker.status is not None and stat == "attack":
                value *= 1.5
    return value


def _defense(
    defender: CreatureInstance,
    stat: str,
    is_critical: bool,
    weather: Optional[str],
    ignore_abilities: bool,
) -> float:
    stage = defender.stage(stat)
    if is_critical:
        stage = min(0, stage)
    value = defender.stat(stat) * stage_multiplier(stage) * items.stat_multiplier(defender.held_item_id, stat)

    if not ignore_abilities:
        for effect in abilities.effects_of(defender.ability_id, abilities.MultiplyBaseStat):
            if effect.stat == stat:
                value *= effect.factor

    if weather == "sandstorm" and defender.has_type("Rock") and stat == "special_defense":
        value *= 1.5
    if weather == "hail" and defender.has_type("Ice") and stat == "defense":
        value *= 1.5
    return max(1.0, value)


def calculate_damage(
    attacker: CreatureInstance,
    defender: CreatureInstance,
    move: MoveData,
    is_critical: bool,
    rng: BattleRng,
    weather: Optional[str] = None,
    terrain: Optional[str] = None,
    logs: Optional[List[str]] = None,
) -> Tuple[int, str, bool]:
    """Damage of one hit of ``move``. Returns (damage, effectiveness label, critical).

    Immunities short-circuit to zero without touching the RNG; every damaging
    hit draws exactly one random factor.
    """
    if logs is None:
        logs = []
    if not move.power or move.is_status:
        return (0, "", False)

    ignore = abilities.ignores_abilities(attacker.ability_id)
    if not ignore and _absorb(defender, move, logs):
        return (0, "", False)

    eff = effectiveness(move.type, defender.types)
    if eff == 0:
        logs.append(f"It doesn't affect {defender.display_name}...")
        return (0, "", False)

    stab = 1.0
    if attacker.has_type(move.type):
        stab = 2.0 if abilities.has_custom(attacker.ability_id, "adaptability") else 1.5

    if move.damage_class == "special":
        offense_stat, defense_stat = "special_attack", "special_defense"
    else:
        offense_stat, defense_stat = "attack", "defense"
    A = _offense(attacker, move, offense_stat, is_critical)
    D = _defense(defender, defense_stat, is_critical, weather, ignore)

    power = move.power
    base_damage = math.floor(math.floor((2 * attacker.level / 5 + 2) * power * A / D) / 50) + 2

    modifier = 1.0
    # Weather
    if weather == "sun":
        if move.type == "Fire":
            modifier *= 1.5
        elif move.type == "Water":
            modifier *= 0.5
    elif weather == "rain":
        if move.type == "Water":
            modifier *= 1.5
        elif move.type == "Fire":
            modifier *= 0.5

    # Terrain
    if terrain is not None:
        if TERRAIN_BOOSTED_TYPES.get(terrain) == move.type and attacker.is_grounded():
            modifier *= 1.3
        if terrain == "grassy" and move.id in GRASSY_WEAKENED_MOVES:
            modifier *= 0.5
        if terrain == "misty" and move.type == "Dragon" and defender.is_grounded():
            modifier *= 0.5

    modifier *= stab * eff

    # Abilities
    for effect in abilities.effects_for(attacker.ability_id, "before_damage"):
        if isinstance(effect, abilities.BoostContactMoves) and move.makes_contact:
            modifier *= effect.factor
        elif isinstance(effect, abilities.BoostWeakMoves) and power <= effect.threshold:
            modifier *= effect.factor
        elif isinstance(effect, abilities.RemoveSecondaryEffects) and has_secondary_effect(move):
            modifier *= effect.factor
    if not ignore and eff >= 2.0:
        for effect in abilities.effects_of(defender.ability_id, abilities.ReduceSuperEffectiveDamage):
            modifier *= effect.factor

    if (
        move.damage_class == "physical"
        and attacker.status == "burn"
        and not abilities.has_custom(attacker.ability_id, "guts")
    ):
        modifier *= 0.5

    if is_critical:
        modifier *= 1.5

    modifier *= items.damage_multiplier(attacker.held_item_id)

    modifier *= rng.uniform(0.85, 1.0)

    damage = max(1, int(base_damage * modifier))
    return (damage, effectiveness_label(eff), is_critical)


def confusion_damage(creature: CreatureInstance) -> int:
    """Typeless 40-power physical hit against itself; no STAB, no crit, no random factor."""
    A = creature.stat("attack") * stage_multiplier(creature.stage("attack"))
    D = max(1.0, creature.stat("defense") * stage_multiplier(creature.stage("defense")))
    base = math.floor(math.floor((2 * creature.level / 5 + 2) * CONFUSION_POWER * A / D) / 50) + 2
    return max(1, base)
