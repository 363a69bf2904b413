# protection.py
from __future__ import annotations

import logging
from typing import List, Optional

from data_loader import MoveData
from rng import BattleRng
from state import (
    BattleState,
    CreatureInstance,
    Redirection,
    creature_at,
    is_player_position,
    live_positions,
)

logger = logging.getLogger(__name__)

SPREAD_TARGETS = ("all-opponents", "all-other-pokemon", "all-pokemon", "entire-field")
SINGLE_TARGETS = ("selected-pokemon", "selected-pokemon-me-first", "random-opponent")

PROTECT_MOVES = ("protect", "detect")
GUARD_MOVES = ("wide-guard", "quick-guard", "mat-block", "crafty-shield")
REDIRECTION_MOVES = ("follow-me", "rage-powder", "spotlight")


# --- Redirection ---


def set_follow_me(battle_state: BattleState, user_position: str) -> None:
    battle_state.redirection = Redirection(user_position, "follow-me", opponent_only=True)


def set_rage_powder(battle_state: BattleState, user_position: str) -> None:
    battle_state.redirection = Redirection(user_position, "rage-powder", opponent_only=True)


def set_spotlight(battle_state: BattleState, target_position: str) -> None:
    # Spotlight marks its target; every attacker is drawn to it
    battle_state.redirection = Redirection(target_position, "spotlight", opponent_only=False)


def clear_redirection(battle_state: BattleState) -> None:
    battle_state.redirection = None


def is_single_target(target_tag: str) -> bool:
    return target_tag in SINGLE_TARGETS


def apply_redirection(
    original_target: str,
    attacker_position: str,
    attacker: CreatureInstance,
    move: MoveData,
    battle_state: BattleState,
    player_team: List[CreatureInstance],
) -> Optional[str]:
    """Return the position a single-target move is pulled to, or None when nothing changes."""
    if not battle_state.is_double:
        return None
    redirection = battle_state.redirection
    if redirection is None or not is_single_target(move.target):
        return None
    same_side = is_player_position(redirection.redirector_position) == is_player_position(attacker_position)
    if redirection.opponent_only and same_side:
        return None
    if redirection.kind == "rage-powder" and attacker.has_type("Grass"):
        return None
    if original_target == redirection.redirector_position:
        return None
    redirector = creature_at(redirection.redirector_position, battle_state, player_team)
    if redirector is None or redirector.current_hp <= 0:
        return None
    return redirection.redirector_position


def ally_switch(battle_state: BattleState, user_position: str) -> bool:
    if not battle_state.is_double:
        return False
    indices = battle_state.active_indices(is_player_position(user_position))
    if len(indices) != 2:
        return False
    indices[0], indices[1] = indices[1], indices[0]
    return True


# --- Protection ---


def check_protection(
    defender: CreatureInstance,
    move: MoveData,
    effective_priority: int,
) -> Optional[str]:
    """First matching protection in guard order, as a log line; None when the hit goes through."""
    volatile = defender.volatile_status
    if volatile is None:
        return None
    name = defender.display_name
    if volatile.wide_guard_active and move.target in SPREAD_TARGETS:
        return f"Wide Guard protected {name}!"
    if volatile.quick_guard_active and effective_priority > 0:
        return f"Quick Guard protected {name}!"
    if volatile.mat_block_active and not move.is_status:
        return f"{name} was protected by Mat Block!"
    if volatile.crafty_shield_active and move.is_status:
        return f"Crafty Shield protected {name}!"
    if volatile.protected and move.target != "user":
        return f"{name} protected itself!"
    return None


def protect_chance(counter: int) -> float:
    return 1.0 / (3 ** max(0, counter))


def attempt_protect(creature: CreatureInstance, rng: BattleRng) -> bool:
    volatile = creature.volatile_status
    if volatile is None:
        return False
    volatile.used_protect_this_turn = True
    if rng.gen_bool(protect_chance(volatile.protect_counter)):
        volatile.protected = True
        volatile.protect_counter += 1
        return True
    volatile.protect_counter = 0
    return False


def activate_guard(
    move_id: str,
    user: CreatureInstance,
    user_position: str,
    battle_state: BattleState,
    player_team: List[CreatureInstance],
) -> bool:
    """Raise a side guard over every live member of the user's side."""
    if move_id == "mat-block" and (user.volatile_status is None or user.volatile_status.turns_on_field > 0):
        return False
    flag = move_id.replace("-", "_") + "_active"
    for position in live_positions(is_player_position(user_position), battle_state, player_team):
        member = creature_at(position, battle_state, player_team)
        if member is not None and member.volatile_status is not None:
            setattr(member.volatile_status, flag, True)
    return True

