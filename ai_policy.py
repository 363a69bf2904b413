# ai_policy.py
from __future__ import annotations

import logging
from typing import List, Tuple

from state import BattleState, CreatureInstance
from validator import STRUGGLE_ID, has_moves_with_pp

logger = logging.getLogger(__name__)


def select_ai_move(creature: CreatureInstance) -> str:
    """First active learned move with PP left, else Struggle."""
    if not has_moves_with_pp(creature):
        logger.debug("%s has no usable moves; choosing Struggle", creature.display_name)
        return STRUGGLE_ID
    return next(m.move_id for m in creature.active_moves() if m.current_pp > 0)


def choose_opponent_moves(battle_state: BattleState) -> List[Tuple[int, int, str]]:
    """(slot, team index, move id) for every live opposing slot, asked once each in slot order."""
    choices: List[Tuple[int, int, str]] = []
    for slot, team_index in enumerate(battle_state.opponent_active_indices):
        if not 0 <= team_index < len(battle_state.opponent_team):
            continue
        creature = battle_state.opponent_team[team_index]
        if creature.current_hp <= 0:
            continue
        choices.append((slot, team_index, select_ai_move(creature)))
    return choices
