# outcome.py
from __future__ import annotations

import logging
from typing import List

from effects import trigger_entry_abilities
from state import (
    BattleState,
    CreatureInstance,
    bench_alive,
    position_for,
)

logger = logging.getLogger(__name__)

# Highest first
OUTCOME_PRECEDENCE = ("player_won", "player_lost", "player_must_switch", "enemy_switched", "continue")
TERMINAL_OUTCOMES = ("player_won", "player_lost")


def _fainted_slots(indices: List[int], team: List[CreatureInstance]) -> List[int]:
    return [slot for slot, idx in enumerate(indices) if 0 <= idx < len(team) and team[idx].current_hp <= 0]


def _retire(creature: CreatureInstance) -> None:
    if creature.is_on_field:
        creature.leave_field()


def send_out_opponent(
    battle_state: BattleState,
    slot: int,
    team_index: int,
    player_team: List[CreatureInstance],
    logs: List[str],
) -> None:
    creature = battle_state.opponent_team[team_index]
    battle_state.opponent_active_indices[slot] = team_index
    creature.enter_field()
    trainer = battle_state.opponent_name or "The opponent"
    logs.append(f"{trainer} sent out {creature.display_name}!")
    trigger_entry_abilities(creature, position_for(False, slot), battle_state, player_team, logs)


def _resolve_opponent_side(battle_state: BattleState, player_team: List[CreatureInstance], logs: List[str]) -> str:
    team = battle_state.opponent_team
    indices = battle_state.opponent_active_indices
    fainted = _fainted_slots(indices, team)
    for slot in fainted:
        _retire(team[indices[slot]])
    if not battle_state.has_more_opponents():
        return "player_won"
    if not fainted:
        return "continue"

    outcome = "continue"
    emptied: List[int] = []
    for slot in fainted:
        bench = bench_alive(False, battle_state, player_team)
        if bench:
            send_out_opponent(battle_state, slot, bench[0], player_team, logs)
            outcome = "enemy_switched"
        else:
            emptied.append(slot)
    for slot in reversed(emptied):
        del indices[slot]
    return outcome


def _resolve_player_side(battle_state: BattleState, player_team: List[CreatureInstance]) -> str:
    indices = battle_state.player_active_indices
    fainted = _fainted_slots(indices, player_team)
    for slot in fainted:
        _retire(player_team[indices[slot]])
    if not any(c.current_hp > 0 for c in player_team):
        return "player_lost"
    if not fainted:
        return "continue"
    if bench_alive(True, battle_state, player_team):
        return "player_must_switch"
    # Doubles with a surviving partner and an empty bench: the side fights on one slot
    for slot in reversed(fainted):
        del indices[slot]
    return "continue"


def check_battle_state(
    battle_state: BattleState,
    player_team: List[CreatureInstance],
    logs: List[str],
) -> str:
    """Resolve faints after an action or residual and report the battle outcome.

    The opposing side is settled first (auto-switching from its bench), then
    the player side; the most decisive outcome wins.
    """
    opponent_outcome = _resolve_opponent_side(battle_state, player_team, logs)
    if opponent_outcome == "player_won":
        return "player_won"
    player_outcome = _resolve_player_side(battle_state, player_team)
    return merge_outcomes(opponent_outcome, player_outcome)


def merge_outcomes(current: str, new: str) -> str:
    for outcome in OUTCOME_PRECEDENCE:
        if outcome in (current, new):
            return outcome
    return "continue"


def turn_is_over(outcome: str, battle_state: BattleState, player_team: List[CreatureInstance]) -> bool:
    """True once the battle is decided or no player slot has a creature standing."""
    if outcome in TERMINAL_OUTCOMES:
        return True
    return all(
        not 0 <= idx < len(player_team) or player_team[idx].current_hp <= 0
        for idx in battle_state.player_active_indices
    )


def end_battle(battle_state: BattleState, player_team: List[CreatureInstance]) -> None:
    """Clear every creature's field state; persistent status and HP carry over."""
    for creature in list(player_team) + list(battle_state.opponent_team):
        _retire(creature)
    battle_state.weather = None
    battle_state.terrain = None
    battle_state.redirection = None
    battle_state.pending_player_actions = []
    logger.debug("Battle ended after %d turns", battle_state.turn_counter - 1)
