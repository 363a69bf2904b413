# validator.py
from __future__ import annotations

import logging
from typing import Dict, List

from damage import confusion_damage
from data_loader import MoveData, MoveMeta
from errors import InvalidInputError
from rng import BattleRng
from state import BattleState, CreatureInstance, PendingAction, slot_of
from targeting import ADDRESSABLE_POSITIONS

logger = logging.getLogger(__name__)

STRUGGLE_ID = "struggle"

SLEEP_WAKE_CHANCE = 0.33
FREEZE_THAW_CHANCE = 0.2
FULL_PARALYSIS_CHANCE = 0.25
CONFUSION_SELF_HIT_CHANCE = 0.5
INFATUATION_CHANCE = 0.5


def create_struggle_move() -> MoveData:
    return MoveData(
        id=STRUGGLE_ID,
        name="Struggle",
        type="Normal",
        power=50,
        accuracy=None,
        pp=255,
        damage_class="physical",
        priority=0,
        meta=MoveMeta(drain=-25, makes_contact=True),
        target="selected-pokemon",
    )


def initialize_move_pp(creature: CreatureInstance, move_id: str, move: MoveData) -> None:
    """Fill in PP for a learned move that was created without it."""
    learned = creature.find_learned_move(move_id)
    if learned is not None and learned.max_pp == 0:
        learned.max_pp = move.pp
        learned.current_pp = move.pp


def consume_move_pp(creature: CreatureInstance, move_id: str) -> bool:
    learned = creature.find_learned_move(move_id)
    if learned is None or learned.current_pp <= 0:
        return False
    learned.current_pp -= 1
    return True


def has_moves_with_pp(creature: CreatureInstance) -> bool:
    return any(m.current_pp > 0 for m in creature.active_moves())


def check_ailment_success(chance: int, move_has_power: bool, rng: BattleRng) -> bool:
    # Chance 0 means "always" for pure status moves and "never" for damaging ones
    if chance <= 0:
        return not move_has_power
    return rng.chance(chance)


def validate_pending_action(
    action: PendingAction,
    battle_state: BattleState,
    player_team: List[CreatureInstance],
) -> None:
    """Raise InvalidInputError for an action the host should never have submitted."""
    slots = battle_state.player_active_indices
    if not 0 <= action.user_index < len(slots):
        raise InvalidInputError("user_index", f"{action.user_index} is not an active player slot")
    team_index = slots[action.user_index]
    if not 0 <= team_index < len(player_team):
        raise InvalidInputError("user_index", f"slot {action.user_index} points outside the team")

    if action.target_position is not None:
        if action.target_position not in ADDRESSABLE_POSITIONS:
            raise InvalidInputError("target_position", f"unknown position {action.target_position!r}")
        if slot_of(action.target_position) > 0 and not battle_state.is_double:
            raise InvalidInputError("target_position", f"{action.target_position} does not exist in a single battle")

    creature = player_team[team_index]
    if action.move_id == STRUGGLE_ID:
        return
    if creature.find_learned_move(action.move_id) is None:
        raise InvalidInputError(
            "move_id",
            f"{action.move_id!r} is not one of {creature.display_name}'s active moves",
        )


def resolve_move_for_use(
    creature: CreatureInstance,
    move_id: str,
    move_catalog: Dict[str, MoveData],
) -> MoveData:
    """Catalog entry for a selected move, or Struggle when it cannot be used."""
    if move_id == STRUGGLE_ID:
        return create_struggle_move()
    move = move_catalog.get(move_id)
    if move is None:
        logger.warning("Move %r missing from the catalog; %s struggles instead", move_id, creature.display_name)
        return create_struggle_move()
    learned = creature.find_learned_move(move_id)
    if learned is not None:
        initialize_move_pp(creature, move_id, move)
        if learned.current_pp <= 0:
            logger.info("%s has no PP left for %s; using Struggle", creature.display_name, move_id)
            return create_struggle_move()
    return move


def check_can_act(creature: CreatureInstance, rng: BattleRng, logs: List[str]) -> bool:
    """Pre-action status gate: sleep, freeze, paralysis, confusion, infatuation, flinch."""
    name = creature.display_name
    if creature.status == "sleep":
        if rng.gen_bool(SLEEP_WAKE_CHANCE):
            creature.cure_status()
            logs.append(f"{name} woke up!")
        else:
            logs.append(f"{name} is fast asleep.")
            return False
    elif creature.status == "freeze":
        if rng.gen_bool(FREEZE_THAW_CHANCE):
            creature.cure_status()
            logs.append(f"{name} thawed out!")
        else:
            logs.append(f"{name} is frozen solid!")
            return False
    elif creature.status == "paralysis":
        if rng.gen_bool(FULL_PARALYSIS_CHANCE):
            logs.append(f"{name} is paralyzed! It can't move!")
            return False

    volatile = creature.volatile_status
    if volatile is None:
        return True

    if volatile.confused:
        volatile.confusion_turns -= 1
        if volatile.confusion_turns <= 0:
            volatile.confused = False
            volatile.confusion_turns = 0
            logs.append(f"{name} snapped out of its confusion!")
        else:
            logs.append(f"{name} is confused!")
            if rng.gen_bool(CONFUSION_SELF_HIT_CHANCE):
                dealt = creature.take_damage(confusion_damage(creature))
                logs.append(f"{name} hurt itself in its confusion and lost {dealt} HP!")
                return False

    if volatile.infatuated_by is not None:
        logs.append(f"{name} is in love!")
        if rng.gen_bool(INFATUATION_CHANCE):
            logs.append(f"{name} is immobilized by love!")
            return False

    if volatile.flinched:
        logs.append(f"{name} flinched and couldn't move!")
        return False

    return True
