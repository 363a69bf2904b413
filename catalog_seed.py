"""Command-line helper that builds the JSON catalogs the engine loads.

Fetches moves and species from PokéAPI and writes ``moves.json`` and
``species.json`` in the format ``data_loader`` reads:

    python catalog_seed.py --gen 1 --max-move-id 165 --out-dir .
"""

from __future__ import annotations

import argparse
import json
import logging
import re
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import requests

from config import EngineConfig, configure_logging

logger = logging.getLogger(__name__)

POKEAPI_BASE_URL = "https://pokeapi.co/api/v2/"
CRAWL_DELAY_SECONDS = 0.075
REQUEST_TIMEOUT_SECONDS = 10

STAT_NAMES = {
    "hp": "hp",
    "attack": "attack",
    "defense": "defense",
    "special-attack": "special_attack",
    "special-defense": "special_defense",
    "speed": "speed",
}

# PokéAPI carries no contact flag; physical moves make contact unless listed here
NON_CONTACT_PHYSICAL = {
    "earthquake", "magnitude", "bulldoze", "rock-slide", "rock-throw", "rock-blast",
    "stone-edge", "bone-club", "bonemerang", "bone-rush", "egg-bomb", "barrage",
    "spike-cannon", "pin-missile", "icicle-spear", "bullet-seed", "seed-bomb",
    "poison-sting", "twineedle", "sky-attack", "self-destruct", "explosion",
    "rock-tomb", "sand-tomb", "fissure", "dig", "razor-leaf", "gunk-shot",
    "icicle-crash", "earth-power", "precipice-blades", "stomping-tantrum",
}


def fetch_json(
    url: str,
    session: Optional[requests.Session] = None,
) -> Optional[Dict[str, Any]]:
    http = session or requests
    try:
        resp = http.get(url, timeout=REQUEST_TIMEOUT_SECONDS)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        return None
    return resp.json()


def _title(slug: str) -> str:
    return " ".join(part.capitalize() for part in slug.split("-"))


def _named(value: Optional[Dict[str, Any]], default: str = "") -> str:
    if not value:
        return default
    return value.get("name") or default


def _id_from_url(url: str) -> Optional[str]:
    match = re.search(r"/(\d+)/?$", url or "")
    if not match:
        return None
    return match.group(1).zfill(3)


# --- Moves ---


def convert_move(raw: Dict[str, Any]) -> Dict[str, Any]:
    """PokéAPI move payload -> catalog record."""
    meta = raw.get("meta") or {}
    move_id = raw["name"]
    damage_class = _named(raw.get("damage_class"), "status")
    return {
        "id": move_id,
        "name": _title(move_id),
        "type": _named(raw.get("type"), "unknown").capitalize(),
        "power": raw.get("power"),
        "accuracy": raw.get("accuracy"),
        "pp": raw.get("pp") or 0,
        "priority": raw.get("priority") or 0,
        "damage_class": damage_class,
        "meta": {
            "ailment": _named(meta.get("ailment"), "none"),
            "ailment_chance": meta.get("ailment_chance") or 0,
            "crit_rate": meta.get("crit_rate") or 0,
            "drain": meta.get("drain") or 0,
            "flinch_chance": meta.get("flinch_chance") or 0,
            "stat_chance": meta.get("stat_chance") or 0,
            "healing": meta.get("healing") or 0,
            "min_hits": meta.get("min_hits"),
            "max_hits": meta.get("max_hits"),
            "min_turns": meta.get("min_turns"),
            "max_turns": meta.get("max_turns"),
            "makes_contact": damage_class == "physical" and move_id not in NON_CONTACT_PHYSICAL,
            "forces_switch": _named(meta.get("category")) == "force-switch",
        },
        "stat_changes": [
            {"stat": _named(change.get("stat")).replace("-", "_"), "change": change.get("change", 0)}
            for change in raw.get("stat_changes") or []
        ],
        "target": _named(raw.get("target"), "selected-pokemon"),
    }


def fetch_moves(
    max_move_id: int,
    session: Optional[requests.Session] = None,
    delay: float = CRAWL_DELAY_SECONDS,
) -> List[Dict[str, Any]]:
    moves: List[Dict[str, Any]] = []
    for move_number in range(1, max_move_id + 1):
        raw = fetch_json(f"{POKEAPI_BASE_URL}move/{move_number}", session)
        if raw is not None:
            moves.append(convert_move(raw))
        if move_number % 50 == 0:
            logger.info("Fetched %d/%d moves", move_number, max_move_id)
        if delay:
            time.sleep(delay)
    moves.sort(key=lambda m: m["id"])
    return moves


# --- Species ---


def find_chain_node(chain: Dict[str, Any], species_name: str) -> Optional[Dict[str, Any]]:
    if _named(chain.get("species")) == species_name:
        return chain
    for child in chain.get("evolves_to") or []:
        found = find_chain_node(child, species_name)
        if found is not None:
            return found
    return None


def chain_depth(chain: Dict[str, Any]) -> int:
    children = chain.get("evolves_to") or []
    if not children:
        return 1
    return 1 + max(chain_depth(child) for child in children)


def extract_evolutions(node: Dict[str, Any]) -> List[Dict[str, Any]]:
    evolutions = []
    for child in node.get("evolves_to") or []:
        species = child.get("species") or {}
        details = (child.get("evolution_details") or [{}])[0]
        evolutions.append({
            "target_species_id": _id_from_url(species.get("url", "")) or species.get("name", ""),
            "min_level": details.get("min_level"),
            "trigger": _named(details.get("trigger"), "unknown"),
        })
    return evolutions


def level_up_moves(raw_moves: Sequence[Dict[str, Any]]) -> List[str]:
    learned = set()
    for entry in raw_moves:
        for detail in entry.get("version_group_details") or []:
            if _named(detail.get("move_learn_method")) == "level-up":
                learned.add(_named(entry.get("move")))
                break
    return sorted(m for m in learned if m)


def convert_species(
    pokemon: Dict[str, Any],
    species_name: str,
    generation: int,
    chain: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """PokéAPI pokemon payload (plus its evolution chain) -> catalog record."""
    types = sorted(pokemon.get("types") or [], key=lambda t: t.get("slot", 0))
    type_names = [_named(t.get("type")).capitalize() for t in types]
    base_stats = {key: 0 for key in STAT_NAMES.values()}
    for stat in pokemon.get("stats") or []:
        key = STAT_NAMES.get(_named(stat.get("stat")))
        if key:
            base_stats[key] = stat.get("base_stat", 0)
    abilities = [
        _named(a.get("ability"))
        for a in sorted(pokemon.get("abilities") or [], key=lambda a: a.get("slot", 0))
        if not a.get("is_hidden")
    ]

    evolutions: List[Dict[str, Any]] = []
    is_starter_candidate = False
    if chain:
        root = chain.get("chain") or {}
        is_starter_candidate = chain_depth(root) >= 3 and _named(root.get("species")) == species_name
        node = find_chain_node(root, species_name)
        if node is not None:
            evolutions = extract_evolutions(node)

    return {
        "species_id": str(pokemon["id"]).zfill(3),
        "display_name": _title(species_name),
        "generation": generation,
        "primary_type": type_names[0] if type_names else "Unknown",
        "secondary_type": type_names[1] if len(type_names) > 1 else None,
        "base_stats": base_stats,
        "move_pool": level_up_moves(pokemon.get("moves") or []),
        "abilities": [a for a in abilities if a],
        "is_starter_candidate": is_starter_candidate,
        "evolutions": evolutions,
    }


def _default_variety(species_info: Dict[str, Any], fallback: str) -> str:
    varieties = species_info.get("varieties") or []
    for variety in varieties:
        if variety.get("is_default"):
            return _named(variety.get("pokemon"), fallback)
    if varieties:
        return _named(varieties[0].get("pokemon"), fallback)
    return fallback


def fetch_generation_species(
    generation: int,
    session: Optional[requests.Session] = None,
    delay: float = CRAWL_DELAY_SECONDS,
) -> List[Dict[str, Any]]:
    listing = fetch_json(f"{POKEAPI_BASE_URL}generation/{generation}", session)
    if listing is None:
        return []
    chains: Dict[str, Optional[Dict[str, Any]]] = {}
    out: List[Dict[str, Any]] = []
    for entry in listing.get("pokemon_species") or []:
        species_name = entry["name"]
        species_info = fetch_json(f"{POKEAPI_BASE_URL}pokemon-species/{species_name}", session) or {}
        pokemon_name = _default_variety(species_info, species_name)
        pokemon = fetch_json(f"{POKEAPI_BASE_URL}pokemon/{pokemon_name}", session)
        if pokemon is None:
            continue
        chain_url = (species_info.get("evolution_chain") or {}).get("url")
        if chain_url and chain_url not in chains:
            chains[chain_url] = fetch_json(chain_url, session)
        out.append(convert_species(pokemon, species_name, generation, chains.get(chain_url)))
        if delay:
            time.sleep(delay)
    logger.info("Generation %d: %d species", generation, len(out))
    return out


def write_catalog(records: List[Dict[str, Any]], path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(records, indent=2, ensure_ascii=False), encoding="utf-8")


def seed_catalogs(
    generations: Sequence[int],
    max_move_id: int,
    out_dir: Path,
    session: Optional[requests.Session] = None,
    delay: float = CRAWL_DELAY_SECONDS,
) -> List[Path]:
    """Fetch everything and write both catalogs; returns the written paths."""
    species: List[Dict[str, Any]] = []
    for generation in generations:
        species.extend(fetch_generation_species(generation, session, delay))
    species.sort(key=lambda s: int(s["species_id"]))
    moves = fetch_moves(max_move_id, session, delay)

    config = EngineConfig(data_dir=Path(out_dir))
    write_catalog(moves, config.moves_path)
    write_catalog(species, config.species_path)
    return [config.moves_path, config.species_path]


def main(argv: Optional[Sequence[str]] = None) -> None:
    env_config = EngineConfig.from_env()
    parser = argparse.ArgumentParser(description="Seed the species and move catalogs from PokéAPI.")
    parser.add_argument("--gen", type=int, action="append", choices=range(1, 10),
                        help="Generation to fetch (repeatable; default: 1).")
    parser.add_argument("--max-move-id", type=int, default=165, help="Fetch moves 1..N (default: 165).")
    parser.add_argument("--out-dir", default=str(env_config.data_dir),
                        help="Directory for moves.json and species.json (default: $BATTLE_DATA_DIR or the package).")
    parser.add_argument("--delay", type=float, default=CRAWL_DELAY_SECONDS, help="Seconds to wait between requests.")
    args = parser.parse_args(argv)

    configure_logging("INFO" if env_config.log_level == "WARNING" else env_config.log_level)
    with requests.Session() as session:
        written = seed_catalogs(args.gen or [1], args.max_move_id, Path(args.out_dir), session, args.delay)
    for path in written:
        print(f"Wrote {path}")


if __name__ == "__main__":
    main()
