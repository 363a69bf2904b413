from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional, Tuple

from data_loader import STAT_KEYS, SpeciesData, Stats

logger = logging.getLogger(__name__)

StatusCondition = Literal["burn", "freeze", "paralysis", "poison", "bad-poison", "sleep"]
Weather = Literal["sun", "rain", "sandstorm", "hail"]
Terrain = Literal["electric", "grassy", "misty", "psychic"]
Position = Literal["player-left", "player-right", "opponent-left", "opponent-right"]
BattleFormat = Literal["single", "double"]
BattleOutcome = Literal["continue", "player_won", "player_lost", "player_must_switch", "enemy_switched"]
RedirectionKind = Literal["follow-me", "rage-powder", "spotlight"]

PERSISTENT_STATUSES: Tuple[str, ...] = ("burn", "freeze", "paralysis", "poison", "bad-poison", "sleep")

STAGE_KEYS = ("attack", "defense", "special_attack", "special_defense", "speed", "accuracy", "evasion")

PLAYER_POSITIONS: Tuple[Position, ...] = ("player-left", "player-right")
OPPONENT_POSITIONS: Tuple[Position, ...] = ("opponent-left", "opponent-right")

MAX_STAT_VALUE = 65535

STAT_ALIASES: Dict[str, str] = {
    "atk": "attack",
    "def": "defense",
    "spa": "special_attack",
    "spd": "special_defense",
    "spe": "speed",
    "special-attack": "special_attack",
    "special-defense": "special_defense",
    "acc": "accuracy",
    "eva": "evasion",
}

STAT_DISPLAY_NAMES: Dict[str, str] = {
    "hp": "HP",
    "attack": "Attack",
    "defense": "Defense",
    "special_attack": "Sp. Atk",
    "special_defense": "Sp. Def",
    "speed": "Speed",
    "accuracy": "accuracy",
    "evasion": "evasiveness",
}

WEATHER_NAMES: Dict[str, str] = {
    "sun": "harsh sunlight",
    "rain": "rain",
    "sandstorm": "a sandstorm",
    "hail": "hail",
}

TERRAIN_NAMES: Dict[str, str] = {
    "electric": "Electric Terrain",
    "grassy": "Grassy Terrain",
    "misty": "Misty Terrain",
    "psychic": "Psychic Terrain",
}

STATUS_NAMES: Dict[str, str] = {
    "burn": "burned",
    "freeze": "frozen solid",
    "paralysis": "paralyzed",
    "poison": "poisoned",
    "bad-poison": "badly poisoned",
    "sleep": "asleep",
}


def normalize_stat(stat: str) -> str:
    key = stat.strip().lower()
    return STAT_ALIASES.get(key, key.replace("-", "_"))


def display_stat(stat: str) -> str:
    return STAT_DISPLAY_NAMES.get(stat, stat)


def compute_stat(base: int, iv: int, ev: int, level: int, *, is_hp: bool = False) -> int:
    raw = (2 * base + iv + ev // 4) * level // 100
    value = raw + level + 10 if is_hp else raw + 5
    return min(MAX_STAT_VALUE, value)


def compute_stats(base: Stats, ivs: Stats, evs: Stats, level: int) -> Stats:
    return Stats(**{
        stat: compute_stat(base.get(stat), ivs.get(stat), evs.get(stat), level, is_hp=(stat == "hp"))
        for stat in STAT_KEYS
    })


def stage_multiplier(stage: int) -> float:
    stage = max(-6, min(6, stage))
    if stage >= 0:
        return (2 + stage) / 2.0
    return 2.0 / (2 - stage)


def accuracy_stage_multiplier(stage: int) -> float:
    stage = max(-6, min(6, stage))
    if stage >= 0:
        return (3 + stage) / 3.0
    return 3.0 / (3 - stage)


@dataclass
class LearnedMove:
    move_id: str
    current_pp: int
    max_pp: int


@dataclass
class BattleStages:
    attack: int = 0
    defense: int = 0
    special_attack: int = 0
    special_defense: int = 0
    speed: int = 0
    accuracy: int = 0
    evasion: int = 0

    def get(self, stat: str) -> int:
        key = normalize_stat(stat)
        if key not in STAGE_KEYS:
            return 0
        return getattr(self, key)

    def set(self, stat: str, value: int) -> None:
        key = normalize_stat(stat)
        if key not in STAGE_KEYS:
            logger.warning("Ignoring stage change for unknown stat %r", stat)
            return
        setattr(self, key, max(-6, min(6, value)))

    def change(self, stat: str, stages: int) -> int:
        """Apply a saturating change and return the delta that actually landed."""
        current = self.get(stat)
        self.set(stat, current + stages)
        return self.get(stat) - current

    def multiplier(self, stat: str) -> float:
        key = normalize_stat(stat)
        if key in ("accuracy", "evasion"):
            return accuracy_stage_multiplier(self.get(key))
        return stage_multiplier(self.get(key))

    def reset(self) -> None:
        for key in STAGE_KEYS:
            setattr(self, key, 0)


@dataclass
class VolatileStatus:
    flinched: bool = False
    confused: bool = False
    confusion_turns: int = 0
    crit_stage: int = 0
    protected: bool = False
    protect_counter: int = 0
    used_protect_this_turn: bool = False
    must_recharge: bool = False
    charging_move: Optional[str] = None
    badly_poisoned_turns: int = 0
    infatuated_by: Optional[str] = None
    leech_seeded: bool = False
    leech_seed_source: Optional[str] = None
    substitute_hp: int = 0
    perish_count: int = 0
    wide_guard_active: bool = False
    quick_guard_active: bool = False
    mat_block_active: bool = False
    crafty_shield_active: bool = False
    forced_switch: bool = False
    magnet_rise: bool = False
    telekinesis: bool = False
    choice_locked_move: Optional[str] = None
    turns_on_field: int = 0

    def reset_turn_flags(self) -> None:
        self.flinched = False
        self.protected = False
        self.used_protect_this_turn = False
        self.wide_guard_active = False
        self.quick_guard_active = False
        self.mat_block_active = False
        self.crafty_shield_active = False


@dataclass
class CreatureInstance:
    instance_id: str
    species: SpeciesData
    level: int
    current_hp: Optional[int] = None
    status: Optional[str] = None
    ability_id: str = "none"
    held_item_id: Optional[str] = None
    ivs: Stats = field(default_factory=lambda: Stats.uniform(31))
    evs: Stats = field(default_factory=lambda: Stats.uniform(0))
    computed_stats: Optional[Stats] = None
    battle_stages: Optional[BattleStages] = None
    volatile_status: Optional[VolatileStatus] = None
    learned_moves: List[LearnedMove] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.computed_stats is None:
            self.computed_stats = compute_stats(self.species.base_stats, self.ivs, self.evs, self.level)
        if self.current_hp is None:
            self.current_hp = self.max_hp
        self.current_hp = max(0, min(self.current_hp, self.max_hp))

    @property
    def display_name(self) -> str:
        return self.species.display_name

    @property
    def types(self) -> Tuple[str, ...]:
        return self.species.types

    @property
    def max_hp(self) -> int:
        return self.computed_stats.hp

    @property
    def is_fainted(self) -> bool:
        return self.current_hp <= 0

    @property
    def is_on_field(self) -> bool:
        return self.volatile_status is not None

    def has_type(self, type_name: str) -> bool:
        return type_name in self.types

    def active_moves(self) -> List[LearnedMove]:
        return self.learned_moves[:4]

    def find_learned_move(self, move_id: str) -> Optional[LearnedMove]:
        for learned in self.active_moves():
            if learned.move_id == move_id:
                return learned
        return None

    def recompute_stats(self) -> None:
        old_max = self.max_hp
        self.computed_stats = compute_stats(self.species.base_stats, self.ivs, self.evs, self.level)
        # Keep the missing HP constant across a level change
        missing = old_max - self.current_hp
        self.current_hp = max(0 if self.current_hp <= 0 else 1, min(self.max_hp, self.max_hp - missing))

    def set_level(self, level: int) -> None:
        self.level = max(1, min(100, level))
        self.recompute_stats()

    def enter_field(self) -> None:
        self.battle_stages = BattleStages()
        self.volatile_status = VolatileStatus()

    def leave_field(self) -> None:
        self.battle_stages = None
        self.volatile_status = None

    def stat(self, stat: str) -> int:
        return self.computed_stats.get(normalize_stat(stat))

    def stage(self, stat: str) -> int:
        if self.battle_stages is None:
            return 0
        return self.battle_stages.get(stat)

    def change_stage(self, stat: str, stages: int) -> int:
        if self.battle_stages is None:
            return 0
        return self.battle_stages.change(stat, stages)

    def apply_status(self, status: str) -> bool:
        if self.status is not None or self.is_fainted:
            return False
        if status not in PERSISTENT_STATUSES:
            logger.warning("Refusing unknown persistent status %r on %s", status, self.display_name)
            return False
        self.status = status
        if status == "bad-poison" and self.volatile_status is not None:
            self.volatile_status.badly_poisoned_turns = 0
        return True

    def cure_status(self) -> None:
        if self.status == "bad-poison" and self.volatile_status is not None:
            self.volatile_status.badly_poisoned_turns = 0
        self.status = None

    def take_damage(self, amount: int) -> int:
        if amount <= 0 or self.current_hp <= 0:
            return 0
        dealt = min(self.current_hp, amount)
        self.current_hp -= dealt
        return dealt

    def heal(self, amount: int) -> int:
        if amount <= 0 or self.current_hp <= 0:
            return 0
        healed = min(self.max_hp - self.current_hp, amount)
        self.current_hp += healed
        return healed

    def is_grounded(self) -> bool:
        if self.has_type("Flying"):
            return False
        if self.ability_id == "levitate":
            return False
        if self.held_item_id == "air-balloon":
            return False
        volatile = self.volatile_status
        if volatile is not None and (volatile.magnet_rise or volatile.telekinesis):
            return False
        return True


@dataclass
class WeatherState:
    kind: str
    turns_remaining: int = 5


@dataclass
class TerrainState:
    kind: str
    turns_remaining: int = 5


@dataclass
class Redirection:
    redirector_position: str
    kind: str
    opponent_only: bool = True


@dataclass
class PendingAction:
    user_index: int
    move_id: str
    target_position: Optional[str] = None


@dataclass
class TurnResult:
    logs: List[str] = field(default_factory=list)
    player_damage_dealt: int = 0
    enemy_damage_dealt: int = 0
    outcome: str = "continue"


@dataclass
class BattleState:
    player_active_indices: List[int]
    opponent_team: List[CreatureInstance]
    opponent_active_indices: List[int] = field(default_factory=lambda: [0])
    format: str = "single"
    weather: Optional[WeatherState] = None
    terrain: Optional[TerrainState] = None
    redirection: Optional[Redirection] = None
    pending_player_actions: List[PendingAction] = field(default_factory=list)
    turn_counter: int = 1
    log: List[str] = field(default_factory=list)
    is_trainer_battle: bool = False
    opponent_name: Optional[str] = None

    @classmethod
    def new_wild(cls, player_active_index: int, opponent: CreatureInstance) -> "BattleState":
        return cls(player_active_indices=[player_active_index], opponent_team=[opponent])

    @classmethod
    def new_trainer_battle(
        cls,
        player_active_index: int,
        opponent_team: List[CreatureInstance],
        opponent_name: str,
    ) -> "BattleState":
        return cls(
            player_active_indices=[player_active_index],
            opponent_team=opponent_team,
            is_trainer_battle=True,
            opponent_name=opponent_name,
        )

    @classmethod
    def new_double(
        cls,
        player_active_indices: List[int],
        opponent_team: List[CreatureInstance],
        opponent_name: Optional[str] = None,
    ) -> "BattleState":
        return cls(
            player_active_indices=list(player_active_indices),
            opponent_team=opponent_team,
            opponent_active_indices=list(range(min(2, len(opponent_team)))),
            format="double",
            is_trainer_battle=opponent_name is not None,
            opponent_name=opponent_name,
        )

    @property
    def is_double(self) -> bool:
        return self.format == "double"

    def active_indices(self, is_player: bool) -> List[int]:
        return self.player_active_indices if is_player else self.opponent_active_indices

    def has_weather(self, *kinds: str) -> bool:
        return self.weather is not None and self.weather.kind in kinds

    def has_terrain(self, *kinds: str) -> bool:
        return self.terrain is not None and self.terrain.kind in kinds

    def has_more_opponents(self) -> bool:
        return any(c.current_hp > 0 for c in self.opponent_team)


# --- Field positions ---


def is_player_position(position: str) -> bool:
    return position in PLAYER_POSITIONS


def slot_of(position: str) -> int:
    return 1 if position.endswith("right") else 0


def position_for(is_player: bool, slot: int) -> str:
    positions = PLAYER_POSITIONS if is_player else OPPONENT_POSITIONS
    return positions[slot]


def ally_position(position: str) -> str:
    return position_for(is_player_position(position), 1 - slot_of(position))


def opposing_positions(position: str) -> Tuple[str, ...]:
    return OPPONENT_POSITIONS if is_player_position(position) else PLAYER_POSITIONS


def team_for(is_player: bool, battle_state: BattleState, player_team: List[CreatureInstance]) -> List[CreatureInstance]:
    return player_team if is_player else battle_state.opponent_team


def team_index_at(position: str, battle_state: BattleState) -> Optional[int]:
    indices = battle_state.active_indices(is_player_position(position))
    slot = slot_of(position)
    if slot >= len(indices):
        return None
    return indices[slot]


def creature_at(
    position: str,
    battle_state: BattleState,
    player_team: List[CreatureInstance],
) -> Optional[CreatureInstance]:
    idx = team_index_at(position, battle_state)
    team = team_for(is_player_position(position), battle_state, player_team)
    if idx is None or not 0 <= idx < len(team):
        return None
    return team[idx]


def is_position_alive(position: str, battle_state: BattleState, player_team: List[CreatureInstance]) -> bool:
    creature = creature_at(position, battle_state, player_team)
    return creature is not None and creature.current_hp > 0


def live_positions(is_player: bool, battle_state: BattleState, player_team: List[CreatureInstance]) -> List[str]:
    positions = PLAYER_POSITIONS if is_player else OPPONENT_POSITIONS
    return [p for p in positions if is_position_alive(p, battle_state, player_team)]


def active_positions(battle_state: BattleState) -> List[str]:
    """Occupied slots in residual order: player-left, player-right, opponent-left, opponent-right."""
    out = [position_for(True, slot) for slot in range(len(battle_state.player_active_indices))]
    out += [position_for(False, slot) for slot in range(len(battle_state.opponent_active_indices))]
    return out


def position_of(
    creature: CreatureInstance,
    battle_state: BattleState,
    player_team: List[CreatureInstance],
) -> Optional[str]:
    for position in active_positions(battle_state):
        if creature_at(position, battle_state, player_team) is creature:
            return position
    return None


def find_active_by_id(
    instance_id: str,
    battle_state: BattleState,
    player_team: List[CreatureInstance],
) -> Optional[CreatureInstance]:
    for position in active_positions(battle_state):
        creature = creature_at(position, battle_state, player_team)
        if creature is not None and creature.instance_id == instance_id:
            return creature
    return None


def bench_alive(is_player: bool, battle_state: BattleState, player_team: List[CreatureInstance]) -> List[int]:
    """Team indices with HP > 0 that are not currently active."""
    team = team_for(is_player, battle_state, player_team)
    active = set(battle_state.active_indices(is_player))
    return [i for i, c in enumerate(team) if c.current_hp > 0 and i not in active]
