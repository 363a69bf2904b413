# items.py
from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Dict, List, Literal, Optional, Tuple, Type, TypeVar, Union

ItemTrigger = Literal[
    "before_damage_dealt",
    "after_damage_dealt",
    "on_damage_taken",
    "on_status_applied",
    "on_status_move_attempt",
    "on_hp_threshold",
    "end_of_turn",
    "modify_stat",
]

ItemCondition = Literal["physical", "special", "super_effective", "contact", "poison_type", "not_poison_type"]


@dataclass(frozen=True)
class BoostDamage:
    factor: float


@dataclass(frozen=True)
class LockMove:
    # None locks onto whichever move is used first
    move_id: Optional[str] = None


@dataclass(frozen=True)
class CureStatus:
    pass


@dataclass(frozen=True)
class RestoreHP:
    fraction: Fraction


@dataclass(frozen=True)
class RecoilDamage:
    fraction: Fraction


@dataclass(frozen=True)
class BlockStatusMoves:
    pass


@dataclass(frozen=True)
class BoostStat:
    stat: str
    stages: int


@dataclass(frozen=True)
class MultiplyStat:
    stat: str
    factor: float


@dataclass(frozen=True)
class ModifyCritRate:
    stages: int


@dataclass(frozen=True)
class Consume:
    message: str = ""


ItemEffect = Union[
    BoostDamage,
    LockMove,
    CureStatus,
    RestoreHP,
    RecoilDamage,
    BlockStatusMoves,
    BoostStat,
    MultiplyStat,
    ModifyCritRate,
    Consume,
]


@dataclass(frozen=True)
class ItemHook:
    trigger: ItemTrigger
    effect: ItemEffect
    condition: Optional[ItemCondition] = None
    consumable: bool = False
    hp_threshold: Optional[Fraction] = None


CHOICE_ITEMS = ("choice-band", "choice-specs", "choice-scarf")

ITEM_HOOKS: Dict[str, List[ItemHook]] = {
    "choice-band": [
        ItemHook("modify_stat", MultiplyStat("attack", 1.5)),
        ItemHook("before_damage_dealt", LockMove()),
    ],
    "choice-specs": [
        ItemHook("modify_stat", MultiplyStat("special_attack", 1.5)),
        ItemHook("before_damage_dealt", LockMove()),
    ],
    "choice-scarf": [
        ItemHook("modify_stat", MultiplyStat("speed", 1.5)),
        ItemHook("before_damage_dealt", LockMove()),
    ],
    "life-orb": [
        ItemHook("before_damage_dealt", BoostDamage(1.3)),
        ItemHook("after_damage_dealt", RecoilDamage(Fraction(1, 10))),
    ],
    "assault-vest": [
        ItemHook("modify_stat", MultiplyStat("special_defense", 1.5)),
        ItemHook("on_status_move_attempt", BlockStatusMoves()),
    ],
    "sitrus-berry": [
        ItemHook("on_hp_threshold", RestoreHP(Fraction(1, 4)), consumable=True, hp_threshold=Fraction(1, 2)),
    ],
    "lum-berry": [
        ItemHook("on_status_applied", CureStatus(), consumable=True),
    ],
    "weakness-policy": [
        ItemHook("on_damage_taken", BoostStat("attack", 2), condition="super_effective", consumable=True),
        ItemHook("on_damage_taken", BoostStat("special_attack", 2), condition="super_effective", consumable=True),
    ],
    "leftovers": [
        ItemHook("end_of_turn", RestoreHP(Fraction(1, 16))),
    ],
    "black-sludge": [
        ItemHook("end_of_turn", RestoreHP(Fraction(1, 16)), condition="poison_type"),
        ItemHook("end_of_turn", RecoilDamage(Fraction(1, 16)), condition="not_poison_type"),
    ],
    "rocky-helmet": [
        ItemHook("on_damage_taken", RecoilDamage(Fraction(1, 6)), condition="contact"),
    ],
    "air-balloon": [
        ItemHook("on_damage_taken", Consume("{name}'s Air Balloon popped!"), consumable=True),
    ],
    "scope-lens": [
        ItemHook("before_damage_dealt", ModifyCritRate(1)),
    ],
}

I = TypeVar("I")


def item_hooks(item_id: Optional[str]) -> List[ItemHook]:
    if not item_id:
        return []
    return list(ITEM_HOOKS.get(item_id, ()))


def hooks_for(item_id: Optional[str], trigger: ItemTrigger) -> List[ItemHook]:
    return [h for h in item_hooks(item_id) if h.trigger == trigger]


def effects_of(item_id: Optional[str], effect_type: Type[I]) -> List[I]:
    return [h.effect for h in item_hooks(item_id) if isinstance(h.effect, effect_type)]


def display_item(item_id: str) -> str:
    return item_id.replace("-", " ").title()


def is_choice_item(item_id: Optional[str]) -> bool:
    return bool(effects_of(item_id, LockMove))


def stat_multiplier(item_id: Optional[str], stat: str) -> float:
    mult = 1.0
    for effect in effects_of(item_id, MultiplyStat):
        if effect.stat == stat:
            mult *= effect.factor
    return mult


def damage_multiplier(item_id: Optional[str]) -> float:
    mult = 1.0
    for hook in hooks_for(item_id, "before_damage_dealt"):
        if isinstance(hook.effect, BoostDamage):
            mult *= hook.effect.factor
    return mult


def crit_stage_bonus(item_id: Optional[str]) -> int:
    return sum(e.stages for e in effects_of(item_id, ModifyCritRate))


def blocks_status_moves(item_id: Optional[str]) -> bool:
    return bool(effects_of(item_id, BlockStatusMoves))


def condition_holds(
    condition: Optional[str],
    *,
    damage_class: Optional[str] = None,
    effectiveness: float = 1.0,
    contact: bool = False,
    holder_types: Tuple[str, ...] = (),
) -> bool:
    if condition is None:
        return True
    if condition == "physical":
        return damage_class == "physical"
    if condition == "special":
        return damage_class == "special"
    if condition == "super_effective":
        return effectiveness >= 2.0
    if condition == "contact":
        return contact
    if condition == "poison_type":
        return "Poison" in holder_types
    if condition == "not_poison_type":
        return "Poison" not in holder_types
    return False
