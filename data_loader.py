# data_loader.py
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import pandas as pd

from errors import CatalogError
from type_chart import UNKNOWN_TYPE, normalize_type

logger = logging.getLogger(__name__)

STAT_KEYS = ("hp", "attack", "defense", "special_attack", "special_defense", "speed")

DAMAGE_CLASSES = ("physical", "special", "status")

SPECIES_PATH = Path(__file__).with_name("species.json")
MOVES_PATH = Path(__file__).with_name("moves.json")


@dataclass
class Stats:
    hp: int = 0
    attack: int = 0
    defense: int = 0
    special_attack: int = 0
    special_defense: int = 0
    speed: int = 0

    @classmethod
    def uniform(cls, value: int) -> "Stats":
        return cls(*(value for _ in STAT_KEYS))

    def get(self, stat: str) -> int:
        return getattr(self, stat)


@dataclass(frozen=True)
class MoveMeta:
    ailment: str = "none"
    ailment_chance: int = 0
    crit_rate: int = 0
    drain: int = 0
    flinch_chance: int = 0
    stat_chance: int = 0
    healing: int = 0
    min_hits: Optional[int] = None
    max_hits: Optional[int] = None
    min_turns: Optional[int] = None
    max_turns: Optional[int] = None
    makes_contact: bool = False
    forces_switch: bool = False


@dataclass(frozen=True)
class MoveData:
    id: str
    name: str
    type: str
    power: Optional[int]
    accuracy: Optional[int]
    pp: int
    damage_class: str = "physical"
    priority: int = 0
    meta: MoveMeta = field(default_factory=MoveMeta)
    stat_changes: Tuple[Tuple[str, int], ...] = ()
    target: str = "selected-pokemon"

    @property
    def is_status(self) -> bool:
        return self.damage_class == "status" or not self.power

    @property
    def makes_contact(self) -> bool:
        return self.meta.makes_contact


@dataclass(frozen=True)
class EvolutionData:
    target_species_id: str
    min_level: Optional[int] = None
    trigger: str = "level-up"


@dataclass(frozen=True)
class SpeciesData:
    species_id: str
    display_name: str
    primary_type: str
    base_stats: Stats
    secondary_type: Optional[str] = None
    move_pool: Tuple[str, ...] = ()
    abilities: Tuple[str, ...] = ()
    evolutions: Tuple[EvolutionData, ...] = ()
    generation: int = 1
    is_starter_candidate: bool = False

    @property
    def types(self) -> Tuple[str, ...]:
        if self.secondary_type:
            return (self.primary_type, self.secondary_type)
        return (self.primary_type,)


def _records(raw: Union[List[Any], Dict[str, Any]]) -> List[Dict[str, Any]]:
    # Catalogs may be a list of records or a mapping keyed by id
    if isinstance(raw, dict):
        rows = []
        for key, value in raw.items():
            row = dict(value)
            row.setdefault("id", key)
            rows.append(row)
        return rows
    return [dict(r) for r in raw]


def _read_json(path: Path) -> Union[List[Any], Dict[str, Any]]:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise CatalogError(str(path), "file not found") from None
    except json.JSONDecodeError as exc:
        raise CatalogError(str(path), f"invalid JSON ({exc})") from exc


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, (list, dict)):
        return None
    return int(value) if pd.notna(value) else None


def _int_or(value: Any, default: int) -> int:
    parsed = _optional_int(value)
    return default if parsed is None else parsed


def _mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _sequence(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _text(value: Any, default: str) -> str:
    if value is None or isinstance(value, (list, dict)):
        return default
    return str(value) if pd.notna(value) else default


def _flag(value: Any) -> bool:
    if value is None or isinstance(value, (list, dict)):
        return False
    return bool(value) if pd.notna(value) else False


def _parse_meta(raw: Dict[str, Any]) -> MoveMeta:
    return MoveMeta(
        ailment=_text(raw.get("ailment"), "none"),
        ailment_chance=_int_or(raw.get("ailment_chance"), 0),
        crit_rate=_int_or(raw.get("crit_rate"), 0),
        drain=_int_or(raw.get("drain"), 0),
        flinch_chance=_int_or(raw.get("flinch_chance"), 0),
        stat_chance=_int_or(raw.get("stat_chance"), 0),
        healing=_int_or(raw.get("healing"), 0),
        min_hits=_optional_int(raw.get("min_hits")),
        max_hits=_optional_int(raw.get("max_hits")),
        min_turns=_optional_int(raw.get("min_turns")),
        max_turns=_optional_int(raw.get("max_turns")),
        makes_contact=_flag(raw.get("makes_contact")),
        forces_switch=_flag(raw.get("forces_switch")),
    )


def load_moves(path: Union[str, Path] = MOVES_PATH) -> Dict[str, MoveData]:
    rows = _records(_read_json(Path(path)))
    moves: Dict[str, MoveData] = {}
    if not rows:
        return moves

    moves_df = pd.DataFrame(rows)
    for _, row in moves_df.iterrows():
        move_id = _text(row.get("id"), "")
        if not move_id:
            logger.warning("Skipping move record without id in %s", path)
            continue
        stat_changes = tuple(
            (str(change["stat"]).replace("-", "_"), int(change["change"]))
            for change in _sequence(row.get("stat_changes"))
            if isinstance(change, dict) and "stat" in change
        )
        damage_class = _text(row.get("damage_class"), "physical")
        if damage_class not in DAMAGE_CLASSES:
            logger.warning("Move %s has unknown damage class %r", move_id, damage_class)
            damage_class = "physical"
        moves[move_id] = MoveData(
            id=move_id,
            name=_text(row.get("name"), move_id),
            type=normalize_type(_text(row.get("type"), UNKNOWN_TYPE)),
            power=_optional_int(row.get("power")),
            accuracy=_optional_int(row.get("accuracy")),
            pp=_int_or(row.get("pp"), 0),
            damage_class=damage_class,
            priority=_int_or(row.get("priority"), 0),
            meta=_parse_meta(_mapping(row.get("meta"))),
            stat_changes=stat_changes,
            target=_text(row.get("target"), "selected-pokemon"),
        )

    logger.info("Loaded %d moves from %s", len(moves), path)
    return moves


def _parse_base_stats(raw: Dict[str, Any]) -> Stats:
    aliases = {"special-attack": "special_attack", "special-defense": "special_defense"}
    values = {aliases.get(k, k): v for k, v in raw.items()}
    return Stats(**{stat: _int_or(values.get(stat), 0) for stat in STAT_KEYS})


def load_species(path: Union[str, Path] = SPECIES_PATH) -> Dict[str, SpeciesData]:
    rows = _records(_read_json(Path(path)))
    species: Dict[str, SpeciesData] = {}
    if not rows:
        return species

    species_df = pd.DataFrame(rows)
    for _, row in species_df.iterrows():
        species_id = _text(row.get("species_id"), "") or _text(row.get("id"), "")
        if not species_id:
            logger.warning("Skipping species record without id in %s", path)
            continue
        secondary = row.get("secondary_type")
        evolutions = tuple(
            EvolutionData(
                target_species_id=str(evo["target_species_id"]),
                min_level=_optional_int(evo.get("min_level")),
                trigger=str(evo.get("trigger") or "level-up"),
            )
            for evo in _sequence(row.get("evolutions"))
            if isinstance(evo, dict) and "target_species_id" in evo
        )
        species[species_id] = SpeciesData(
            species_id=species_id,
            display_name=_text(row.get("display_name"), species_id.capitalize()),
            primary_type=normalize_type(_text(row.get("primary_type"), UNKNOWN_TYPE)),
            secondary_type=normalize_type(str(secondary)) if _text(secondary, "") else None,
            base_stats=_parse_base_stats(_mapping(row.get("base_stats"))),
            move_pool=tuple(str(m) for m in _sequence(row.get("move_pool"))),
            abilities=tuple(str(a) for a in _sequence(row.get("abilities"))),
            evolutions=evolutions,
            generation=_int_or(row.get("generation"), 1),
            is_starter_candidate=_flag(row.get("is_starter_candidate")),
        )

    logger.info("Loaded %d species from %s", len(species), path)
    return species


def build_global_move_pool(move_catalog: Dict[str, MoveData]) -> List[str]:
    return sorted(move_id for move_id in move_catalog if move_id != "struggle")


_MOVE_CATALOG: Optional[Dict[str, MoveData]] = None
_SPECIES_CATALOG: Optional[Dict[str, SpeciesData]] = None


def get_move_catalog(path: Union[str, Path] = MOVES_PATH) -> Dict[str, MoveData]:
    global _MOVE_CATALOG
    if _MOVE_CATALOG is None:
        _MOVE_CATALOG = load_moves(path)
    return _MOVE_CATALOG


def get_species_catalog(path: Union[str, Path] = SPECIES_PATH) -> Dict[str, SpeciesData]:
    global _SPECIES_CATALOG
    if _SPECIES_CATALOG is None:
        _SPECIES_CATALOG = load_species(path)
    return _SPECIES_CATALOG


def load_catalogs(data_dir: Union[str, Path]) -> Tuple[Dict[str, SpeciesData], Dict[str, MoveData]]:
    data_dir = Path(data_dir)
    return load_species(data_dir / SPECIES_PATH.name), load_moves(data_dir / MOVES_PATH.name)
