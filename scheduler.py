# scheduler.py
"""Turn pipeline: harvest one action per active slot, order them, run each
through the gate / targeting / hit / secondary-effect steps, resolve faints,
then run residuals.

``execute_turn`` is the only entry point that advances a battle. It validates
every pending player action before touching any state, so an input error
leaves the battle exactly as it was.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, List, Optional, Set, Tuple

import abilities
import items
from ai_policy import choose_opponent_moves
from damage import (
    SPREAD_MODIFIER,
    calculate_damage,
    check_critical_hit,
    critical_stage,
    hit_count,
    sheer_force_applies,
)
from data_loader import MoveData
from effects import (
    apply_contact_effects,
    apply_damage_taken_items,
    apply_receive_damage_abilities,
    apply_stat_change,
    check_hp_threshold_items,
    hp_fraction,
    inflict_ailment,
    set_terrain,
    set_weather,
    trigger_entry_abilities,
    trigger_switch_out_abilities,
)
from errors import InvalidInputError
from outcome import check_battle_state, end_battle, merge_outcomes, turn_is_over
from protection import (
    GUARD_MOVES,
    PROTECT_MOVES,
    REDIRECTION_MOVES,
    activate_guard,
    ally_switch,
    attempt_protect,
    check_protection,
    clear_redirection,
    set_follow_me,
    set_rage_powder,
    set_spotlight,
)
from residuals import process_end_of_turn
from rng import BattleRng
from state import (
    STAGE_KEYS,
    BattleState,
    CreatureInstance,
    TurnResult,
    accuracy_stage_multiplier,
    active_positions,
    bench_alive,
    creature_at,
    is_player_position,
    live_positions,
    position_for,
    position_of,
    slot_of,
    stage_multiplier,
    team_for,
)
from targeting import is_spread, resolve_targets
from type_chart import effectiveness
from validator import (
    STRUGGLE_ID,
    check_ailment_success,
    check_can_act,
    consume_move_pp,
    resolve_move_for_use,
    validate_pending_action,
)

logger = logging.getLogger(__name__)

FIELD_MOVES: Dict[str, Tuple[str, str]] = {
    "sunny-day": ("weather", "sun"),
    "rain-dance": ("weather", "rain"),
    "sandstorm": ("weather", "sandstorm"),
    "hail": ("weather", "hail"),
    "electric-terrain": ("terrain", "electric"),
    "grassy-terrain": ("terrain", "grassy"),
    "misty-terrain": ("terrain", "misty"),
    "psychic-terrain": ("terrain", "psychic"),
}

CHARGE_MOVES = (
    "solar-beam", "solar-blade", "razor-wind", "skull-bash", "sky-attack",
    "fly", "dig", "dive", "bounce", "meteor-beam",
)

RECHARGE_MOVES = (
    "hyper-beam", "giga-impact", "blast-burn", "hydro-cannon", "frenzy-plant",
    "rock-wrecker", "roar-of-time", "prismatic-laser", "eternabeam",
)

# Damaging moves whose stat drops land on the user rather than the target
SELF_DEBUFF_MOVES = (
    "close-combat", "superpower", "draco-meteor", "overheat", "leaf-storm",
    "psycho-boost", "fleur-cannon", "v-create", "hammer-arm", "clanging-scales",
)

STRUGGLE_RECOIL = Fraction(1, 4)
SUBSTITUTE_COST = Fraction(1, 4)
PERISH_SONG_COUNT = 4


@dataclass
class ActionCandidate:
    position: str
    team_index: int
    is_player: bool
    speed: int
    priority: int
    move_data: MoveData
    move_template_id: str
    selected_target: Optional[str]
    name: str
    tie_break: int = 0


@dataclass
class _TurnContext:
    battle_state: BattleState
    player_team: List[CreatureInstance]
    rng: BattleRng
    logs: List[str]
    result: TurnResult
    acted: Set[str]

    @property
    def weather(self) -> Optional[str]:
        return self.battle_state.weather.kind if self.battle_state.weather else None

    @property
    def terrain(self) -> Optional[str]:
        return self.battle_state.terrain.kind if self.battle_state.terrain else None


# --- Ordering ---


def effective_speed(creature: CreatureInstance, battle_state: BattleState) -> int:
    speed = creature.stat("speed") * stage_multiplier(creature.stage("speed"))
    if creature.status == "paralysis":
        speed *= 0.5
    speed *= items.stat_multiplier(creature.held_item_id, "speed")
    weather = battle_state.weather.kind if battle_state.weather else None
    terrain = battle_state.terrain.kind if battle_state.terrain else None
    speed *= abilities.speed_multiplier(creature.ability_id, weather, terrain)
    return int(speed)


def effective_priority(creature: CreatureInstance, move: MoveData) -> int:
    return move.priority + abilities.priority_bonus(creature, move)


def sort_candidates(candidates: List[ActionCandidate], rng: BattleRng) -> List[ActionCandidate]:
    """Priority desc, speed desc, then a u32 tie-break drawn per candidate in collection order."""
    for candidate in candidates:
        candidate.tie_break = rng.next_u32()
    return sorted(candidates, key=lambda c: (-c.priority, -c.speed, c.tie_break))


# --- Harvest ---


def _locked_move_id(creature: CreatureInstance, requested: str) -> str:
    volatile = creature.volatile_status
    if volatile is None:
        return requested
    if volatile.charging_move is not None:
        return volatile.charging_move
    locked = volatile.choice_locked_move
    if locked and locked != requested and items.is_choice_item(creature.held_item_id):
        if creature.find_learned_move(locked) is not None:
            logger.debug("%s is locked into %s by its choice item", creature.display_name, locked)
            return locked
    return requested


def _build_candidate(
    creature: CreatureInstance,
    position: str,
    team_index: int,
    is_player: bool,
    requested_move: str,
    selected_target: Optional[str],
    battle_state: BattleState,
    move_catalog: Dict[str, MoveData],
) -> ActionCandidate:
    move_id = _locked_move_id(creature, requested_move)
    move = resolve_move_for_use(creature, move_id, move_catalog)
    return ActionCandidate(
        position=position,
        team_index=team_index,
        is_player=is_player,
        speed=effective_speed(creature, battle_state),
        priority=effective_priority(creature, move),
        move_data=move,
        move_template_id=move_id,
        selected_target=selected_target,
        name=creature.display_name,
    )


def _default_opponent_target(battle_state: BattleState, player_team: List[CreatureInstance]) -> Optional[str]:
    # Single battles fall back to the lone player slot inside targeting
    if not battle_state.is_double:
        return None
    live = live_positions(True, battle_state, player_team)
    return live[0] if live else None


def collect_action_candidates(
    battle_state: BattleState,
    player_team: List[CreatureInstance],
    move_catalog: Dict[str, MoveData],
) -> List[ActionCandidate]:
    candidates: List[ActionCandidate] = []
    for action in battle_state.pending_player_actions:
        team_index = battle_state.player_active_indices[action.user_index]
        creature = player_team[team_index]
        if creature.current_hp <= 0:
            continue
        candidates.append(_build_candidate(
            creature,
            position_for(True, action.user_index),
            team_index,
            True,
            action.move_id,
            action.target_position,
            battle_state,
            move_catalog,
        ))

    opponent_target = _default_opponent_target(battle_state, player_team)
    for slot, team_index, move_id in choose_opponent_moves(battle_state):
        creature = battle_state.opponent_team[team_index]
        candidates.append(_build_candidate(
            creature,
            position_for(False, slot),
            team_index,
            False,
            move_id,
            opponent_target,
            battle_state,
            move_catalog,
        ))
    return candidates


# --- Field entry ---


def _run_entry_hooks(battle_state: BattleState, player_team: List[CreatureInstance], logs: List[str]) -> None:
    positions = active_positions(battle_state)
    for position in positions:
        creature = creature_at(position, battle_state, player_team)
        if creature is not None and not creature.is_on_field:
            creature.enter_field()
    for position in positions:
        creature = creature_at(position, battle_state, player_team)
        if creature is not None:
            trigger_entry_abilities(creature, position, battle_state, player_team, logs)


def _reset_turn_flags(battle_state: BattleState, player_team: List[CreatureInstance]) -> None:
    for position in active_positions(battle_state):
        creature = creature_at(position, battle_state, player_team)
        if creature is not None and creature.volatile_status is not None:
            creature.volatile_status.reset_turn_flags()


def _invariant_violated(message: str) -> None:
    logger.warning("Invariant violated: %s", message)
    assert False, message


def _enforce_invariants(battle_state: BattleState, player_team: List[CreatureInstance]) -> None:
    """HP within [0, max], stages within [-6, 6], PP within [0, max_pp]; clamped when asserts are off."""
    for creature in list(player_team) + list(battle_state.opponent_team):
        name = creature.display_name
        if not 0 <= creature.current_hp <= creature.max_hp:
            _invariant_violated(f"{name} has {creature.current_hp}/{creature.max_hp} HP")
            creature.current_hp = max(0, min(creature.current_hp, creature.max_hp))
        for learned in creature.learned_moves:
            if not 0 <= learned.current_pp <= learned.max_pp:
                _invariant_violated(f"{name} has {learned.current_pp}/{learned.max_pp} PP for {learned.move_id}")
                learned.current_pp = max(0, min(learned.current_pp, learned.max_pp))
        stages = creature.battle_stages
        if stages is None:
            continue
        for key in STAGE_KEYS:
            value = getattr(stages, key)
            if not -6 <= value <= 6:
                _invariant_violated(f"{name} has {key} stage {value}")
                setattr(stages, key, max(-6, min(6, value)))


def _finish_turn(battle_state: BattleState, player_team: List[CreatureInstance]) -> None:
    _enforce_invariants(battle_state, player_team)
    for position in active_positions(battle_state):
        creature = creature_at(position, battle_state, player_team)
        if creature is None or creature.volatile_status is None:
            continue
        volatile = creature.volatile_status
        if not volatile.used_protect_this_turn:
            volatile.protect_counter = 0
        volatile.reset_turn_flags()
        volatile.turns_on_field += 1
    clear_redirection(battle_state)
    battle_state.turn_counter += 1
    battle_state.pending_player_actions = []


# --- Per-action steps ---


def _fainted(creature: CreatureInstance, logs: List[str]) -> None:
    logs.append(f"{creature.display_name} fainted!")


def _accuracy_check(user: CreatureInstance, target: CreatureInstance, move: MoveData, rng: BattleRng) -> bool:
    if move.accuracy is None or target is user:
        return True
    chance = move.accuracy / 100.0
    chance *= accuracy_stage_multiplier(user.stage("accuracy"))
    chance /= accuracy_stage_multiplier(target.stage("evasion"))
    chance *= abilities.accuracy_multiplier(user.ability_id)
    return rng.random() < chance


def _stat_recipient(user: CreatureInstance, target: CreatureInstance, move: MoveData, change: int) -> CreatureInstance:
    if move.is_status:
        return target
    if change > 0 or move.id in SELF_DEBUFF_MOVES:
        return user
    return target


def _apply_stat_changes(user: CreatureInstance, target: CreatureInstance, move: MoveData, ctx: _TurnContext) -> None:
    if not move.stat_changes:
        return
    if not check_ailment_success(move.meta.stat_chance, not move.is_status, ctx.rng):
        return
    ignore = abilities.ignores_abilities(user.ability_id)
    for stat, change in move.stat_changes:
        recipient = _stat_recipient(user, target, move, change)
        if recipient.current_hp <= 0:
            continue
        apply_stat_change(recipient, stat, change, ctx.logs, source=user, ignore_abilities=ignore)


def _apply_ailment(user: CreatureInstance, target: CreatureInstance, move: MoveData, ctx: _TurnContext) -> bool:
    ailment = move.meta.ailment
    if ailment == "none" or target.current_hp <= 0:
        return True
    if not check_ailment_success(move.meta.ailment_chance, not move.is_status, ctx.rng):
        return True
    applied = inflict_ailment(
        target,
        ailment,
        ctx.battle_state,
        ctx.rng,
        ctx.logs,
        source=user,
        ignore_abilities=abilities.ignores_abilities(user.ability_id),
        move_id=move.id,
    )
    return applied or not move.is_status


def _apply_status_move(user: CreatureInstance, target: CreatureInstance, move: MoveData, ctx: _TurnContext) -> None:
    volatile = target.volatile_status
    if target is not user and volatile is not None and volatile.substitute_hp > 0:
        ctx.logs.append("But it failed!")
        return
    _apply_stat_changes(user, target, move, ctx)
    if not _apply_ailment(user, target, move, ctx):
        ctx.logs.append("But it failed!")
    if move.meta.healing > 0 and target.current_hp > 0:
        healed = target.heal(max(1, target.max_hp * move.meta.healing // 100))
        if healed:
            ctx.logs.append(f"{target.display_name} restored {healed} HP!")
        else:
            ctx.logs.append(f"{target.display_name}'s HP is full!")


def _absorb_with_substitute(target: CreatureInstance, damage: int, logs: List[str]) -> bool:
    volatile = target.volatile_status
    if volatile is None or volatile.substitute_hp <= 0:
        return False
    volatile.substitute_hp = max(0, volatile.substitute_hp - damage)
    logs.append(f"The substitute took damage for {target.display_name}!")
    if volatile.substitute_hp == 0:
        logs.append(f"{target.display_name}'s substitute faded!")
    return True


def _hit_loop(
    user: CreatureInstance,
    target: CreatureInstance,
    move: MoveData,
    spread: bool,
    ctx: _TurnContext,
) -> Tuple[int, int]:
    """Strike ``target`` up to hit_count times. Returns (HP dealt, hits landed)."""
    hits = hit_count(move.meta.min_hits, move.meta.max_hits, ctx.rng)
    eff = effectiveness(move.type, target.types)
    total = 0
    landed = 0
    label = ""
    for _ in range(hits):
        if target.current_hp <= 0 or user.current_hp <= 0:
            break
        crit = check_critical_hit(critical_stage(user, move), ctx.rng)
        damage, label, crit = calculate_damage(user, target, move, crit, ctx.rng, ctx.weather, ctx.terrain, ctx.logs)
        if damage <= 0:
            break
        if spread:
            damage = max(1, int(damage * SPREAD_MODIFIER))
        landed += 1
        if crit:
            ctx.logs.append("A critical hit!")
        if target is not user and _absorb_with_substitute(target, damage, ctx.logs):
            continue
        dealt = target.take_damage(damage)
        total += dealt
        ctx.logs.append(f"{target.display_name} took {dealt} damage!")
        if target.current_hp <= 0:
            _fainted(target, ctx.logs)
        if move.makes_contact and target.current_hp > 0:
            apply_contact_effects(user, target, ctx.battle_state, ctx.rng, ctx.logs)
            if user.current_hp <= 0:
                _fainted(user, ctx.logs)
        if dealt > 0:
            apply_receive_damage_abilities(target, ctx.logs)
            apply_damage_taken_items(target, eff, move.damage_class, ctx.logs)
            check_hp_threshold_items(target, ctx.logs)
    if hits > 1 and landed:
        ctx.logs.append(f"Hit {landed} time(s)!")
    if label and landed:
        ctx.logs.append(f"It's {label}!")
    return total, landed


def _apply_damage_secondaries(
    user: CreatureInstance,
    target: CreatureInstance,
    move: MoveData,
    dealt: int,
    ctx: _TurnContext,
) -> None:
    if move.id == STRUGGLE_ID:
        recoil = user.take_damage(hp_fraction(user, STRUGGLE_RECOIL))
        ctx.logs.append(f"{user.display_name} is damaged by recoil! (-{recoil} HP)")
    elif dealt > 0 and move.meta.drain > 0:
        healed = user.heal(max(1, dealt * move.meta.drain // 100))
        if healed:
            ctx.logs.append(f"{target.display_name} had its energy drained!")
    elif dealt > 0 and move.meta.drain < 0:
        recoil = user.take_damage(max(1, dealt * -move.meta.drain // 100))
        ctx.logs.append(f"{user.display_name} is damaged by recoil! (-{recoil} HP)")
    if user.current_hp <= 0:
        _fainted(user, ctx.logs)

    if sheer_force_applies(user, move):
        return

    if move.meta.flinch_chance > 0 and target.current_hp > 0 and target.instance_id not in ctx.acted:
        if ctx.rng.chance(move.meta.flinch_chance) and target.volatile_status is not None:
            target.volatile_status.flinched = True
    if user.current_hp > 0:
        _apply_stat_changes(user, target, move, ctx)
    _apply_ailment(user, target, move, ctx)


def _force_switch(target: CreatureInstance, target_position: str, ctx: _TurnContext) -> str:
    """Drag the target out. Opponents are replaced from the bench; the player is asked to pick."""
    battle_state, player_team = ctx.battle_state, ctx.player_team
    is_player = is_player_position(target_position)
    bench = bench_alive(is_player, battle_state, player_team)
    if not bench:
        return "continue"
    if target.volatile_status is not None:
        target.volatile_status.forced_switch = True
    if is_player:
        ctx.logs.append(f"{target.display_name} was blown away!")
        return "player_must_switch"
    slot = slot_of(target_position)
    trigger_switch_out_abilities(target, ctx.logs)
    target.leave_field()
    replacement = battle_state.opponent_team[bench[0]]
    battle_state.opponent_active_indices[slot] = bench[0]
    replacement.enter_field()
    ctx.logs.append(f"{replacement.display_name} was dragged out!")
    trigger_entry_abilities(replacement, target_position, battle_state, player_team, ctx.logs)
    return "continue"


def _use_field_move(move: MoveData, ctx: _TurnContext) -> None:
    kind, value = FIELD_MOVES[move.id]
    if kind == "weather":
        changed = set_weather(ctx.battle_state, value, ctx.logs)
    else:
        changed = set_terrain(ctx.battle_state, value, ctx.logs)
    if not changed:
        ctx.logs.append("But it failed!")


def _use_self_move(user: CreatureInstance, position: str, cand: ActionCandidate, ctx: _TurnContext) -> bool:
    """Moves resolved without the hit pipeline. Returns True when the move was handled here."""
    move = cand.move_data
    name = user.display_name
    logs = ctx.logs
    volatile = user.volatile_status

    if move.id in PROTECT_MOVES:
        logs.append(f"{name} used {move.name}!")
        if attempt_protect(user, ctx.rng):
            logs.append(f"{name} protected itself!")
        else:
            logs.append("But it failed!")
        return True

    if move.id in GUARD_MOVES:
        logs.append(f"{name} used {move.name}!")
        if activate_guard(move.id, user, position, ctx.battle_state, ctx.player_team):
            logs.append(f"{move.name} is guarding {name}'s side!")
        else:
            logs.append("But it failed!")
        return True

    if move.id in REDIRECTION_MOVES:
        if move.id != "spotlight":
            logs.append(f"{name} used {move.name}!")
            if move.id == "follow-me":
                set_follow_me(ctx.battle_state, position)
            else:
                set_rage_powder(ctx.battle_state, position)
            logs.append(f"{name} became the center of attention!")
            return True
        targets = resolve_targets(
            position, move.target, cand.selected_target, ctx.battle_state, ctx.player_team, user, move, ctx.rng
        )
        if not targets:
            logs.append(f"{name} used {move.name}, but there was no target!")
            return True
        logs.append(f"{name} used {move.name}!")
        set_spotlight(ctx.battle_state, targets[0])
        spotlit = creature_at(targets[0], ctx.battle_state, ctx.player_team)
        logs.append(f"{spotlit.display_name} became the center of attention!")
        return True

    if move.id == "ally-switch":
        logs.append(f"{name} used {move.name}!")
        if ally_switch(ctx.battle_state, position):
            logs.append(f"{name} and its ally switched places!")
        else:
            logs.append("But it failed!")
        return True

    if move.id in FIELD_MOVES:
        logs.append(f"{name} used {move.name}!")
        _use_field_move(move, ctx)
        return True

    if move.id == "substitute":
        logs.append(f"{name} used {move.name}!")
        cost = int(user.max_hp * SUBSTITUTE_COST)
        if volatile.substitute_hp > 0 or cost <= 0 or user.current_hp <= cost:
            logs.append("But it failed!")
        else:
            user.take_damage(cost)
            volatile.substitute_hp = cost
            logs.append(f"{name} put in a substitute!")
        return True

    if move.id == "perish-song":
        logs.append(f"{name} used {move.name}!")
        for pos in active_positions(ctx.battle_state):
            listener = creature_at(pos, ctx.battle_state, ctx.player_team)
            if listener is None or listener.current_hp <= 0 or listener.volatile_status is None:
                continue
            if listener.volatile_status.perish_count == 0:
                listener.volatile_status.perish_count = PERISH_SONG_COUNT
        logs.append("All Pokémon that heard the song will faint in three turns!")
        return True

    return False


def _execute_action(cand: ActionCandidate, ctx: _TurnContext) -> str:
    battle_state, player_team = ctx.battle_state, ctx.player_team
    team = team_for(cand.is_player, battle_state, player_team)
    if not 0 <= cand.team_index < len(team):
        return "continue"
    user = team[cand.team_index]
    if user.current_hp <= 0 or not user.is_on_field:
        return "continue"
    position = position_of(user, battle_state, player_team)
    if position is None:
        return "continue"

    move = cand.move_data
    volatile = user.volatile_status
    logs = ctx.logs
    ctx.acted.add(user.instance_id)

    if volatile.must_recharge:
        volatile.must_recharge = False
        logs.append(f"{user.display_name} must recharge!")
        return "continue"

    if not check_can_act(user, ctx.rng, logs):
        volatile.charging_move = None
        if user.current_hp <= 0:
            _fainted(user, logs)
            return check_battle_state(battle_state, player_team, logs)
        return "continue"

    releasing_charge = volatile.charging_move == move.id
    if move.id != STRUGGLE_ID and not releasing_charge:
        consume_move_pp(user, cand.move_template_id)

    if items.is_choice_item(user.held_item_id) and volatile.choice_locked_move is None and move.id != STRUGGLE_ID:
        volatile.choice_locked_move = move.id

    if move.is_status and items.blocks_status_moves(user.held_item_id):
        item_name = items.display_item(user.held_item_id)
        logs.append(f"{user.display_name} can't use status moves while holding the {item_name}!")
        return "continue"

    if _use_self_move(user, position, cand, ctx):
        return "continue"

    if move.id in CHARGE_MOVES and not releasing_charge:
        if not (move.id in ("solar-beam", "solar-blade") and ctx.weather == "sun"):
            volatile.charging_move = move.id
            logs.append(f"{user.display_name} began charging {move.name}!")
            return "continue"
    if releasing_charge:
        volatile.charging_move = None

    targets = resolve_targets(
        position, move.target, cand.selected_target, battle_state, player_team, user, move, ctx.rng
    )
    if not targets:
        logs.append(f"{user.display_name} used {move.name}, but there was no target!")
        return "continue"
    logs.append(f"{user.display_name} used {move.name}!")

    spread = is_spread(targets) and not move.is_status
    total_dealt = 0
    outcome = "continue"
    for target_position in targets:
        target = creature_at(target_position, battle_state, player_team)
        if target is None or target.current_hp <= 0 or user.current_hp <= 0:
            continue
        if target is not user:
            blocked = check_protection(target, move, cand.priority)
            if blocked:
                logs.append(blocked)
                continue
        if not _accuracy_check(user, target, move, ctx.rng):
            logs.append(f"{user.display_name}'s attack missed!")
            continue

        if move.is_status:
            _apply_status_move(user, target, move, ctx)
            continue

        dealt, landed = _hit_loop(user, target, move, spread, ctx)
        if not landed:
            continue
        total_dealt += dealt
        _apply_damage_secondaries(user, target, move, dealt, ctx)
        if move.meta.forces_switch and target.current_hp > 0:
            forced = _force_switch(target, target_position, ctx)
            if forced != "continue":
                outcome = forced

    if cand.is_player:
        ctx.result.player_damage_dealt += total_dealt
    else:
        ctx.result.enemy_damage_dealt += total_dealt

    if total_dealt > 0 and user.current_hp > 0:
        if move.id in RECHARGE_MOVES:
            volatile.must_recharge = True
        if not sheer_force_applies(user, move):
            for hook in items.hooks_for(user.held_item_id, "after_damage_dealt"):
                if isinstance(hook.effect, items.RecoilDamage):
                    lost = user.take_damage(hp_fraction(user, hook.effect.fraction))
                    logs.append(f"{user.display_name} lost some of its HP! (-{lost} HP)")
                    if user.current_hp <= 0:
                        _fainted(user, logs)

    resolved = check_battle_state(battle_state, player_team, logs)
    if resolved != "continue":
        return resolved
    return outcome


# --- Public API ---


def execute_turn(
    battle_state: BattleState,
    player_team: List[CreatureInstance],
    rng: BattleRng,
    move_catalog: Dict[str, MoveData],
) -> TurnResult:
    for action in battle_state.pending_player_actions:
        validate_pending_action(action, battle_state, player_team)

    logs: List[str] = []
    result = TurnResult(logs=logs)
    ctx = _TurnContext(battle_state, player_team, rng, logs, result, set())

    if battle_state.turn_counter == 1:
        _run_entry_hooks(battle_state, player_team, logs)
    _reset_turn_flags(battle_state, player_team)

    candidates = collect_action_candidates(battle_state, player_team, move_catalog)
    outcome = "continue"
    for candidate in sort_candidates(candidates, rng):
        outcome = merge_outcomes(outcome, _execute_action(candidate, ctx))
        if turn_is_over(outcome, battle_state, player_team):
            break
    else:
        outcome = merge_outcomes(outcome, process_end_of_turn(battle_state, player_team, rng, logs))

    _finish_turn(battle_state, player_team)
    result.outcome = outcome
    battle_state.log.extend(logs)
    logger.debug("Turn %d finished with %s", battle_state.turn_counter - 1, outcome)
    return result


def switch_player_active(
    battle_state: BattleState,
    player_team: List[CreatureInstance],
    slot: int,
    team_index: int,
) -> List[str]:
    """Put ``player_team[team_index]`` into player slot ``slot``; the host's answer to a forced switch."""
    if not 0 <= slot < len(battle_state.player_active_indices):
        raise InvalidInputError("slot", f"{slot} is not an active player slot")
    if not 0 <= team_index < len(player_team):
        raise InvalidInputError("team_index", f"{team_index} is outside the team")
    if team_index in battle_state.player_active_indices:
        raise InvalidInputError("team_index", f"{player_team[team_index].display_name} is already on the field")
    incoming = player_team[team_index]
    if incoming.current_hp <= 0:
        raise InvalidInputError("team_index", f"{incoming.display_name} has fainted")

    logs: List[str] = []
    outgoing = player_team[battle_state.player_active_indices[slot]]
    if outgoing.is_on_field:
        trigger_switch_out_abilities(outgoing, logs)
        outgoing.leave_field()

    battle_state.player_active_indices[slot] = team_index
    incoming.enter_field()
    logs.append(f"Go! {incoming.display_name}!")
    trigger_entry_abilities(incoming, position_for(True, slot), battle_state, player_team, logs)
    battle_state.log.extend(logs)
    return logs


__all__ = [
    "ActionCandidate",
    "collect_action_candidates",
    "effective_priority",
    "effective_speed",
    "end_battle",
    "execute_turn",
    "sort_candidates",
    "switch_player_active",
]
