# serialization.py
"""JSON persistence for a battle session: the BattleState, the player team
and optionally the RNG, so a host can park a battle between requests.

Species are stored by id and looked up again in the species catalog on load;
everything else is plain data.
"""
from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, List, Optional, Tuple

from data_loader import SpeciesData, Stats
from errors import UnknownSpeciesError
from rng import BattleRng
from state import (
    BattleStages,
    BattleState,
    CreatureInstance,
    LearnedMove,
    PendingAction,
    Redirection,
    TerrainState,
    VolatileStatus,
    WeatherState,
)

SESSION_VERSION = 1


def creature_to_dict(creature: CreatureInstance) -> Dict[str, Any]:
    return {
        "instance_id": creature.instance_id,
        "species_id": creature.species.species_id,
        "level": creature.level,
        "current_hp": creature.current_hp,
        "status": creature.status,
        "ability_id": creature.ability_id,
        "held_item_id": creature.held_item_id,
        "ivs": asdict(creature.ivs),
        "evs": asdict(creature.evs),
        "computed_stats": asdict(creature.computed_stats),
        "battle_stages": asdict(creature.battle_stages) if creature.battle_stages else None,
        "volatile_status": asdict(creature.volatile_status) if creature.volatile_status else None,
        "learned_moves": [asdict(m) for m in creature.learned_moves],
    }


def creature_from_dict(data: Dict[str, Any], species_catalog: Dict[str, SpeciesData]) -> CreatureInstance:
    species_id = data["species_id"]
    species = species_catalog.get(species_id)
    if species is None:
        raise UnknownSpeciesError(species_id)
    stages = data.get("battle_stages")
    volatile = data.get("volatile_status")
    return CreatureInstance(
        instance_id=data["instance_id"],
        species=species,
        level=int(data["level"]),
        current_hp=int(data["current_hp"]),
        status=data.get("status"),
        ability_id=data.get("ability_id", "none"),
        held_item_id=data.get("held_item_id"),
        ivs=Stats(**data["ivs"]),
        evs=Stats(**data["evs"]),
        computed_stats=Stats(**data["computed_stats"]),
        battle_stages=BattleStages(**stages) if stages is not None else None,
        volatile_status=VolatileStatus(**volatile) if volatile is not None else None,
        learned_moves=[LearnedMove(**m) for m in data.get("learned_moves", [])],
    )


def battle_to_dict(battle_state: BattleState) -> Dict[str, Any]:
    return {
        "player_active_indices": list(battle_state.player_active_indices),
        "opponent_team": [creature_to_dict(c) for c in battle_state.opponent_team],
        "opponent_active_indices": list(battle_state.opponent_active_indices),
        "format": battle_state.format,
        "weather": asdict(battle_state.weather) if battle_state.weather else None,
        "terrain": asdict(battle_state.terrain) if battle_state.terrain else None,
        "redirection": asdict(battle_state.redirection) if battle_state.redirection else None,
        "pending_player_actions": [asdict(a) for a in battle_state.pending_player_actions],
        "turn_counter": battle_state.turn_counter,
        "log": list(battle_state.log),
        "is_trainer_battle": battle_state.is_trainer_battle,
        "opponent_name": battle_state.opponent_name,
    }


def battle_from_dict(data: Dict[str, Any], species_catalog: Dict[str, SpeciesData]) -> BattleState:
    weather = data.get("weather")
    terrain = data.get("terrain")
    redirection = data.get("redirection")
    return BattleState(
        player_active_indices=[int(i) for i in data["player_active_indices"]],
        opponent_team=[creature_from_dict(c, species_catalog) for c in data["opponent_team"]],
        opponent_active_indices=[int(i) for i in data["opponent_active_indices"]],
        format=data.get("format", "single"),
        weather=WeatherState(**weather) if weather else None,
        terrain=TerrainState(**terrain) if terrain else None,
        redirection=Redirection(**redirection) if redirection else None,
        pending_player_actions=[PendingAction(**a) for a in data.get("pending_player_actions", [])],
        turn_counter=int(data.get("turn_counter", 1)),
        log=list(data.get("log", [])),
        is_trainer_battle=bool(data.get("is_trainer_battle", False)),
        opponent_name=data.get("opponent_name"),
    )


def _rng_state_to_json(state: Tuple[Any, ...]) -> List[Any]:
    version, internal, gauss_next = state
    return [version, list(internal), gauss_next]


def _rng_state_from_json(raw: List[Any]) -> Tuple[Any, ...]:
    version, internal, gauss_next = raw
    return (version, tuple(internal), gauss_next)


def dump_session(
    battle_state: BattleState,
    player_team: List[CreatureInstance],
    rng: Optional[BattleRng] = None,
) -> str:
    payload: Dict[str, Any] = {
        "version": SESSION_VERSION,
        "battle": battle_to_dict(battle_state),
        "player_team": [creature_to_dict(c) for c in player_team],
        "rng": None,
    }
    if rng is not None:
        payload["rng"] = {"seed": rng.seed, "state": _rng_state_to_json(rng.getstate())}
    return json.dumps(payload)


def load_session(
    raw: str,
    species_catalog: Dict[str, SpeciesData],
) -> Tuple[BattleState, List[CreatureInstance], Optional[BattleRng]]:
    payload = json.loads(raw)
    battle_state = battle_from_dict(payload["battle"], species_catalog)
    player_team = [creature_from_dict(c, species_catalog) for c in payload["player_team"]]
    rng = None
    if payload.get("rng") is not None:
        rng = BattleRng(payload["rng"]["seed"])
        rng.setstate(_rng_state_from_json(payload["rng"]["state"]))
    return battle_state, player_team, rng
