# abilities.py
from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING, Dict, List, Literal, Optional, Tuple, Type, TypeVar, Union

if TYPE_CHECKING:
    from data_loader import MoveData
    from rng import BattleRng
    from state import CreatureInstance


AbilityTrigger = Literal[
    "on_entry",
    "before_damage",
    "after_damage",
    "on_receive_damage",
    "on_contact",
    "end_of_turn",
    "on_switch",
    "modify_priority",
    "modify_speed",
]

StatChangeTarget = Literal["user", "all_opponents", "single_opponent", "allies"]

PriorityCondition = Literal["full_hp", "status_move", "poisoned"]


@dataclass(frozen=True)
class SetWeather:
    weather: str
    duration: int = 5


@dataclass(frozen=True)
class SetTerrain:
    terrain: str
    duration: int = 5


@dataclass(frozen=True)
class ModifyStatOnEntry:
    stat: str
    stages: int
    target: StatChangeTarget


@dataclass(frozen=True)
class TypeImmunity:
    move_type: str
    heal: Optional[Fraction] = None
    boost: Optional[Tuple[str, int]] = None


@dataclass(frozen=True)
class MultiplyBaseStat:
    stat: str
    factor: float


@dataclass(frozen=True)
class BoostTypeAtLowHP:
    move_type: str
    factor: float
    hp_threshold: Fraction


@dataclass(frozen=True)
class BoostContactMoves:
    factor: float


@dataclass(frozen=True)
class MultiplySpeedInWeather:
    weather: str
    factor: float


@dataclass(frozen=True)
class MultiplySpeedInTerrain:
    terrain: str
    factor: float


@dataclass(frozen=True)
class ModifyMovePriority:
    boost: int
    move_type: Optional[str] = None
    condition: Optional[PriorityCondition] = None


@dataclass(frozen=True)
class ModifyAccuracy:
    factor: float


@dataclass(frozen=True)
class ModifyCritRate:
    stages: int


@dataclass(frozen=True)
class ModifyStatsOnHit:
    changes: Tuple[Tuple[str, int], ...]


@dataclass(frozen=True)
class InflictStatusOnContact:
    status: str
    chance: int
    # Set when the holder spreads the status by touching, not by being touched
    on_attack: bool = False


@dataclass(frozen=True)
class DamageAttackerOnContact:
    fraction: Fraction


@dataclass(frozen=True)
class HealEndOfTurn:
    fraction: Fraction
    weather: Optional[str] = None
    terrain: Optional[str] = None


@dataclass(frozen=True)
class PreventStatLoss:
    # Empty means every stat
    stats: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PreventStatus:
    statuses: Tuple[str, ...]


@dataclass(frozen=True)
class HealOnSwitch:
    fraction: Fraction


@dataclass(frozen=True)
class BoostStatEndOfTurn:
    stat: str
    stages: int


@dataclass(frozen=True)
class IgnoreOpponentAbility:
    pass


@dataclass(frozen=True)
class ReduceSuperEffectiveDamage:
    factor: float


@dataclass(frozen=True)
class BoostWeakMoves:
    threshold: int
    factor: float


@dataclass(frozen=True)
class RemoveSecondaryEffects:
    factor: float


@dataclass(frozen=True)
class Custom:
    id: str


AbilityEffect = Union[
    SetWeather,
    SetTerrain,
    ModifyStatOnEntry,
    TypeImmunity,
    MultiplyBaseStat,
    BoostTypeAtLowHP,
    BoostContactMoves,
    MultiplySpeedInWeather,
    MultiplySpeedInTerrain,
    ModifyMovePriority,
    ModifyAccuracy,
    ModifyCritRate,
    ModifyStatsOnHit,
    InflictStatusOnContact,
    DamageAttackerOnContact,
    HealEndOfTurn,
    PreventStatLoss,
    PreventStatus,
    HealOnSwitch,
    BoostStatEndOfTurn,
    IgnoreOpponentAbility,
    ReduceSuperEffectiveDamage,
    BoostWeakMoves,
    RemoveSecondaryEffects,
    Custom,
]


@dataclass(frozen=True)
class AbilityHook:
    trigger: AbilityTrigger
    effect: AbilityEffect


def _hook(trigger: AbilityTrigger, effect: AbilityEffect) -> List[AbilityHook]:
    return [AbilityHook(trigger, effect)]


LOW_HP_THRESHOLD = Fraction(1, 3)

ABILITY_HOOKS: Dict[str, List[AbilityHook]] = {
    # --- Weather / terrain setters ---
    "drought": _hook("on_entry", SetWeather("sun")),
    "drizzle": _hook("on_entry", SetWeather("rain")),
    "sand-stream": _hook("on_entry", SetWeather("sandstorm")),
    "snow-warning": _hook("on_entry", SetWeather("hail")),
    "electric-surge": _hook("on_entry", SetTerrain("electric")),
    "grassy-surge": _hook("on_entry", SetTerrain("grassy")),
    "misty-surge": _hook("on_entry", SetTerrain("misty")),
    "psychic-surge": _hook("on_entry", SetTerrain("psychic")),

    # --- Entry stat changes ---
    "intimidate": _hook("on_entry", ModifyStatOnEntry("attack", -1, "all_opponents")),
    # Download compares the foes' defenses before picking a stat
    "download": _hook("on_entry", Custom("download")),

    # --- Type immunities / absorption ---
    "levitate": _hook("before_damage", TypeImmunity("Ground")),
    "volt-absorb": _hook("before_damage", TypeImmunity("Electric", heal=Fraction(1, 4))),
    "water-absorb": _hook("before_damage", TypeImmunity("Water", heal=Fraction(1, 4))),
    "flash-fire": _hook("before_damage", TypeImmunity("Fire", boost=("special_attack", 1))),
    "sap-sipper": _hook("before_damage", TypeImmunity("Grass", boost=("attack", 1))),
    "lightning-rod": _hook("before_damage", TypeImmunity("Electric", boost=("special_attack", 1))),
    "storm-drain": _hook("before_damage", TypeImmunity("Water", boost=("special_attack", 1))),

    # --- Passive stat multipliers ---
    "huge-power": _hook("before_damage", MultiplyBaseStat("attack", 2.0)),
    "pure-power": _hook("before_damage", MultiplyBaseStat("attack", 2.0)),
    "fur-coat": _hook("before_damage", MultiplyBaseStat("defense", 2.0)),
    "guts": _hook("before_damage", Custom("guts")),

    # --- Pinch boosts ---
    "blaze": _hook("before_damage", BoostTypeAtLowHP("Fire", 1.5, LOW_HP_THRESHOLD)),
    "torrent": _hook("before_damage", BoostTypeAtLowHP("Water", 1.5, LOW_HP_THRESHOLD)),
    "overgrow": _hook("before_damage", BoostTypeAtLowHP("Grass", 1.5, LOW_HP_THRESHOLD)),
    "swarm": _hook("before_damage", BoostTypeAtLowHP("Bug", 1.5, LOW_HP_THRESHOLD)),

    "tough-claws": _hook("before_damage", BoostContactMoves(1.3)),

    # --- Speed ---
    "chlorophyll": _hook("modify_speed", MultiplySpeedInWeather("sun", 2.0)),
    "swift-swim": _hook("modify_speed", MultiplySpeedInWeather("rain", 2.0)),
    "sand-rush": _hook("modify_speed", MultiplySpeedInWeather("sandstorm", 2.0)),
    "slush-rush": _hook("modify_speed", MultiplySpeedInWeather("hail", 2.0)),
    "surge-surfer": _hook("modify_speed", MultiplySpeedInTerrain("electric", 2.0)),

    # --- Priority ---
    "prankster": _hook("modify_priority", ModifyMovePriority(1, condition="status_move")),
    "gale-wings": _hook("modify_priority", ModifyMovePriority(1, move_type="Flying", condition="full_hp")),

    # --- Accuracy / crit ---
    "compound-eyes": _hook("before_damage", ModifyAccuracy(1.3)),
    "super-luck": _hook("before_damage", ModifyCritRate(1)),

    # --- On hit ---
    "stamina": _hook("on_receive_damage", ModifyStatsOnHit((("defense", 1),))),
    "weak-armor": _hook("on_receive_damage", ModifyStatsOnHit((("defense", -1), ("speed", 2)))),

    # --- On contact ---
    "static": _hook("on_contact", InflictStatusOnContact("paralysis", 30)),
    "flame-body": _hook("on_contact", InflictStatusOnContact("burn", 30)),
    "poison-point": _hook("on_contact", InflictStatusOnContact("poison", 30)),
    "poison-touch": _hook("on_contact", InflictStatusOnContact("poison", 30, on_attack=True)),
    "rough-skin": _hook("on_contact", DamageAttackerOnContact(Fraction(1, 8))),
    "iron-barbs": _hook("on_contact", DamageAttackerOnContact(Fraction(1, 8))),

    # --- End of turn ---
    "speed-boost": _hook("end_of_turn", BoostStatEndOfTurn("speed", 1)),
    "rain-dish": _hook("end_of_turn", HealEndOfTurn(Fraction(1, 16), weather="rain")),
    "ice-body": _hook("end_of_turn", HealEndOfTurn(Fraction(1, 16), weather="hail")),
    "moody": _hook("end_of_turn", Custom("moody")),

    # --- Blockers ---
    "clear-body": _hook("before_damage", PreventStatLoss()),
    "white-smoke": _hook("before_damage", PreventStatLoss()),
    "hyper-cutter": _hook("before_damage", PreventStatLoss(("attack",))),
    "keen-eye": _hook("before_damage", PreventStatLoss(("accuracy",))),
    "immunity": _hook("before_damage", PreventStatus(("poison", "bad-poison"))),
    "limber": _hook("before_damage", PreventStatus(("paralysis",))),
    "insomnia": _hook("before_damage", PreventStatus(("sleep",))),
    "vital-spirit": _hook("before_damage", PreventStatus(("sleep",))),
    "water-veil": _hook("before_damage", PreventStatus(("burn",))),

    # --- Switching ---
    "regenerator": _hook("on_switch", HealOnSwitch(Fraction(1, 3))),
    "natural-cure": _hook("on_switch", Custom("natural-cure")),

    # --- Damage modifiers ---
    "mold-breaker": _hook("before_damage", IgnoreOpponentAbility()),
    "teravolt": _hook("before_damage", IgnoreOpponentAbility()),
    "turboblaze": _hook("before_damage", IgnoreOpponentAbility()),
    "solid-rock": _hook("before_damage", ReduceSuperEffectiveDamage(0.75)),
    "filter": _hook("before_damage", ReduceSuperEffectiveDamage(0.75)),
    "technician": _hook("before_damage", BoostWeakMoves(60, 1.5)),
    "sheer-force": _hook("before_damage", RemoveSecondaryEffects(1.3)),
    # STAB 2.0 is read directly by the damage calculator
    "adaptability": _hook("before_damage", Custom("adaptability")),
}

E = TypeVar("E")


def hooks(ability_id: Optional[str]) -> List[AbilityHook]:
    if not ability_id:
        return []
    return list(ABILITY_HOOKS.get(ability_id, ()))


def effects_for(ability_id: Optional[str], trigger: AbilityTrigger) -> List[AbilityEffect]:
    return [h.effect for h in hooks(ability_id) if h.trigger == trigger]


def effects_of(ability_id: Optional[str], effect_type: Type[E]) -> List[E]:
    return [h.effect for h in hooks(ability_id) if isinstance(h.effect, effect_type)]


def has_custom(ability_id: Optional[str], custom_id: str) -> bool:
    return any(e.id == custom_id for e in effects_of(ability_id, Custom))


def display_ability(ability_id: str) -> str:
    return ability_id.replace("-", " ").title()


def ignores_abilities(ability_id: Optional[str]) -> bool:
    return bool(effects_of(ability_id, IgnoreOpponentAbility))


def prevents_stat_loss(ability_id: Optional[str], stat: str) -> bool:
    for effect in effects_of(ability_id, PreventStatLoss):
        if not effect.stats or stat in effect.stats:
            return True
    return False


def prevents_status(ability_id: Optional[str], status: str) -> bool:
    return any(status in e.statuses for e in effects_of(ability_id, PreventStatus))


def priority_bonus(creature: "CreatureInstance", move: "MoveData") -> int:
    bonus = 0
    for effect in effects_for(creature.ability_id, "modify_priority"):
        if not isinstance(effect, ModifyMovePriority):
            continue
        if effect.move_type is not None and move.type != effect.move_type:
            continue
        if effect.condition == "status_move" and not move.is_status:
            continue
        if effect.condition == "full_hp" and creature.current_hp < creature.max_hp:
            continue
        if effect.condition == "poisoned" and creature.status not in ("poison", "bad-poison"):
            continue
        bonus += effect.boost
    return bonus


def speed_multiplier(ability_id: Optional[str], weather: Optional[str], terrain: Optional[str]) -> float:
    mult = 1.0
    for effect in effects_for(ability_id, "modify_speed"):
        if isinstance(effect, MultiplySpeedInWeather) and effect.weather == weather:
            mult *= effect.factor
        elif isinstance(effect, MultiplySpeedInTerrain) and effect.terrain == terrain:
            mult *= effect.factor
    return mult


def accuracy_multiplier(ability_id: Optional[str]) -> float:
    mult = 1.0
    for effect in effects_of(ability_id, ModifyAccuracy):
        mult *= effect.factor
    return mult


def crit_stage_bonus(ability_id: Optional[str]) -> int:
    return sum(e.stages for e in effects_of(ability_id, ModifyCritRate))


def type_immunity(ability_id: Optional[str], move_type: str) -> Optional[TypeImmunity]:
    for effect in effects_of(ability_id, TypeImmunity):
        if effect.move_type == move_type:
            return effect
    return None


# --- Custom handlers ---


def resolve_download(opponents: List["CreatureInstance"]) -> Tuple[str, int]:
    """Raise Attack when the foes' total Defense is lower than their Sp. Def, else Sp. Atk."""
    defense = sum(o.stat("defense") for o in opponents)
    special_defense = sum(o.stat("special_defense") for o in opponents)
    if opponents and defense < special_defense:
        return ("attack", 1)
    return ("special_attack", 1)


MOODY_STATS = ("attack", "defense", "special_attack", "special_defense", "speed")


def roll_moody(creature: "CreatureInstance", rng: "BattleRng") -> List[Tuple[str, int]]:
    changes: List[Tuple[str, int]] = []
    raisable = [s for s in MOODY_STATS if creature.stage(s) < 6]
    raised = None
    if raisable:
        raised = rng.choice(raisable)
        changes.append((raised, 2))
    lowerable = [s for s in MOODY_STATS if s != raised and creature.stage(s) > -6]
    if lowerable:
        changes.append((rng.choice(lowerable), -1))
    return changes
