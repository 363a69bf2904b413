# factory.py
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from config import EngineConfig
from data_loader import STAT_KEYS, MoveData, SpeciesData, Stats, build_global_move_pool
from rng import BattleRng
from state import CreatureInstance, LearnedMove

logger = logging.getLogger(__name__)

MOVES_PER_CREATURE = 4
CHAOS_MOVE_COUNT = 6
MAX_IV = 31


def roll_ivs(rng: BattleRng) -> Stats:
    return Stats(**{stat: rng.randint(0, MAX_IV) for stat in STAT_KEYS})


def roll_moves(rng: BattleRng, move_pool: Sequence[str]) -> List[str]:
    pool = list(move_pool)
    rng.shuffle(pool)
    return pool[:MOVES_PER_CREATURE]


def roll_chaos_moves(rng: BattleRng, global_move_pool: Sequence[str]) -> List[str]:
    pool = list(global_move_pool)
    rng.shuffle(pool)
    picked: List[str] = []
    for move_id in pool:
        if move_id not in picked:
            picked.append(move_id)
        if len(picked) >= CHAOS_MOVE_COUNT:
            break
    return picked


def roll_ability(rng: BattleRng, species: SpeciesData) -> str:
    if not species.abilities:
        return "none"
    return rng.choice(species.abilities)


def create_creature_instance(
    species: SpeciesData,
    level: int,
    seed: int,
    chaos_mode: bool = False,
    global_move_pool: Sequence[str] = (),
    move_catalog: Optional[Dict[str, MoveData]] = None,
) -> CreatureInstance:
    """Build a fresh creature deterministically from ``seed``.

    Draw order is fixed: IVs (hp through speed), moves, ability, instance id.
    Learned moves missing from ``move_catalog`` start at 0 PP and are filled
    in the first time they are used.
    """
    rng = BattleRng(seed)
    ivs = roll_ivs(rng)
    if chaos_mode:
        move_ids = roll_chaos_moves(rng, global_move_pool)
    else:
        move_ids = roll_moves(rng, species.move_pool)

    learned_moves = []
    for move_id in move_ids:
        move = move_catalog.get(move_id) if move_catalog else None
        max_pp = move.pp if move is not None else 0
        learned_moves.append(LearnedMove(move_id=move_id, current_pp=max_pp, max_pp=max_pp))

    ability_id = roll_ability(rng, species)
    instance_id = rng.hex_id()

    creature = CreatureInstance(
        instance_id=instance_id,
        species=species,
        level=max(1, min(100, level)),
        ability_id=ability_id,
        ivs=ivs,
        evs=Stats.uniform(0),
        learned_moves=learned_moves,
    )
    logger.debug(
        "Created %s (lv %d, %s) with moves %s",
        creature.display_name,
        creature.level,
        ability_id,
        ", ".join(move_ids) or "-",
    )
    return creature


def create_from_config(
    species: SpeciesData,
    seed: int,
    config: EngineConfig,
    move_catalog: Dict[str, MoveData],
    level: Optional[int] = None,
) -> CreatureInstance:
    """Factory call with the engine defaults (level, chaos mode) taken from ``config``."""
    global_move_pool = build_global_move_pool(move_catalog) if config.chaos_mode else ()
    return create_creature_instance(
        species,
        config.default_level if level is None else level,
        seed,
        config.chaos_mode,
        global_move_pool,
        move_catalog,
    )
