# targeting.py
from __future__ import annotations

import logging
from typing import List, Optional

from data_loader import MoveData
from protection import apply_redirection
from rng import BattleRng
from state import (
    BattleState,
    CreatureInstance,
    ally_position,
    is_player_position,
    is_position_alive,
    opposing_positions,
    position_for,
)

logger = logging.getLogger(__name__)

ADDRESSABLE_POSITIONS = ("player-left", "player-right", "opponent-left", "opponent-right")


def _live(positions, battle_state: BattleState, player_team: List[CreatureInstance]) -> List[str]:
    return [p for p in positions if is_position_alive(p, battle_state, player_team)]


def _own_side(user_position: str) -> List[str]:
    is_player = is_player_position(user_position)
    return [position_for(is_player, 0), position_for(is_player, 1)]


def resolve_targets(
    user_position: str,
    target_tag: str,
    chosen_target: Optional[str],
    battle_state: BattleState,
    player_team: List[CreatureInstance],
    attacker: CreatureInstance,
    move: MoveData,
    rng: BattleRng,
) -> List[str]:
    """Resolve a move's target tag into the live positions it will hit.

    Tags are read relative to the user's side. Only ``random-opponent`` draws
    from the RNG; ``selected-pokemon`` is the only tag that honors
    ``chosen_target`` and redirection.
    """
    foes = opposing_positions(user_position)

    if target_tag == "user":
        return [user_position]

    if target_tag == "random-opponent":
        live_foes = _live(foes, battle_state, player_team)
        if not live_foes:
            return []
        return [live_foes[rng.randint(0, len(live_foes) - 1)]]

    if target_tag == "all-opponents":
        return _live(foes, battle_state, player_team)

    if target_tag == "all-other-pokemon":
        targets = _live(foes, battle_state, player_team)
        ally = ally_position(user_position)
        if battle_state.is_double and is_position_alive(ally, battle_state, player_team):
            targets.append(ally)
        return targets

    if target_tag in ("all-pokemon", "entire-field"):
        return _live(_own_side(user_position), battle_state, player_team) + _live(foes, battle_state, player_team)

    if target_tag == "users-field":
        return _live(_own_side(user_position), battle_state, player_team)

    if target_tag == "opponents-field":
        return _live(foes, battle_state, player_team)

    if target_tag == "ally":
        ally = ally_position(user_position)
        if battle_state.is_double and is_position_alive(ally, battle_state, player_team):
            return [ally]
        return []

    if target_tag == "user-or-ally":
        if chosen_target is not None and chosen_target == ally_position(user_position):
            if battle_state.is_double and is_position_alive(chosen_target, battle_state, player_team):
                return [chosen_target]
        return [user_position]

    if target_tag in ("selected-pokemon", "selected-pokemon-me-first"):
        if chosen_target is None:
            if battle_state.is_double:
                return []
            default = foes[0]
            return [default] if is_position_alive(default, battle_state, player_team) else []
        if not is_position_alive(chosen_target, battle_state, player_team):
            logger.debug("Chosen target %s is not alive; %s fizzles", chosen_target, move.id)
            return []
        redirected = apply_redirection(chosen_target, user_position, attacker, move, battle_state, player_team)
        return [redirected or chosen_target]

    logger.debug("Unknown target tag %r for %s; falling back to the chosen target", target_tag, move.id)
    if chosen_target is not None and is_position_alive(chosen_target, battle_state, player_team):
        return [chosen_target]
    return []


def is_spread(targets: List[str]) -> bool:
    return len(targets) > 1
