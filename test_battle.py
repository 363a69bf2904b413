# test_battle.py

from dataclasses import replace

import pytest

import scheduler
from data_loader import MoveData, MoveMeta, SpeciesData, Stats
from errors import InvalidInputError
from rng import BattleRng
from scheduler import end_battle, execute_turn, switch_player_active
from state import BattleState, CreatureInstance, LearnedMove, PendingAction, TerrainState, WeatherState


MOVES = {
    "tackle": MoveData("tackle", "Tackle", "Normal", 40, 100, 35, "physical", 0, MoveMeta(makes_contact=True)),
    "quick-attack": MoveData(
        "quick-attack", "Quick Attack", "Normal", 40, 100, 30, "physical", 1, MoveMeta(makes_contact=True)
    ),
    "thunderbolt": MoveData(
        "thunderbolt", "Thunderbolt", "Electric", 90, 100, 15, "special", 0,
        MoveMeta(ailment="paralysis", ailment_chance=10),
    ),
    "flamethrower": MoveData(
        "flamethrower", "Flamethrower", "Fire", 90, 100, 15, "special", 0,
        MoveMeta(ailment="burn", ailment_chance=10),
    ),
    "dragon-tail": MoveData(
        "dragon-tail", "Dragon Tail", "Dragon", 60, None, 10, "physical", -6,
        MoveMeta(makes_contact=True, forces_switch=True),
    ),
    "splash": MoveData("splash", "Splash", "Normal", None, None, 40, "status", 0, target="user"),
    "protect": MoveData("protect", "Protect", "Normal", None, None, 10, "status", 4, target="user"),
    "follow-me": MoveData("follow-me", "Follow Me", "Normal", None, None, 20, "status", 2, target="user"),
    "rage-powder": MoveData("rage-powder", "Rage Powder", "Bug", None, None, 20, "status", 2, target="user"),
    "swords-dance": MoveData(
        "swords-dance", "Swords Dance", "Normal", None, None, 20, "status", 0,
        stat_changes=(("attack", 2),), target="user",
    ),
    "growl": MoveData(
        "growl", "Growl", "Normal", None, 100, 40, "status", 0,
        stat_changes=(("attack", -1),), target="all-opponents",
    ),
    "swift": MoveData("swift", "Swift", "Normal", 60, None, 20, "special", 0, target="all-opponents"),
    "double-kick": MoveData(
        "double-kick", "Double Kick", "Fighting", 30, 100, 30, "physical", 0,
        MoveMeta(min_hits=2, max_hits=2, makes_contact=True),
    ),
    "solar-beam": MoveData("solar-beam", "Solar Beam", "Grass", 120, 100, 10, "special", 0),
    "prismatic-laser": MoveData("prismatic-laser", "Prismatic Laser", "Psychic", 160, 100, 10, "special", 0),
    "substitute": MoveData("substitute", "Substitute", "Normal", None, None, 10, "status", 0, target="user"),
    "rain-dance": MoveData("rain-dance", "Rain Dance", "Water", None, None, 5, "status", 0, target="entire-field"),
    "electric-terrain": MoveData(
        "electric-terrain", "Electric Terrain", "Electric", None, None, 10, "status", 0, target="entire-field"
    ),
    "perish-song": MoveData("perish-song", "Perish Song", "Normal", None, None, 5, "status", 0, target="entire-field"),
    "wide-guard": MoveData("wide-guard", "Wide Guard", "Rock", None, None, 10, "status", 3, target="users-field"),
    "quick-guard": MoveData("quick-guard", "Quick Guard", "Fighting", None, None, 15, "status", 3, target="users-field"),
    "spore": MoveData(
        "spore", "Spore", "Grass", None, 100, 15, "status", 0, MoveMeta(ailment="sleep"),
    ),
}


def make_species(name: str, types=("Normal",), speed: int = 80) -> SpeciesData:
    base = Stats(hp=80, attack=80, defense=80, special_attack=80, special_defense=80, speed=speed)
    return SpeciesData(
        species_id=name.lower(),
        display_name=name,
        primary_type=types[0],
        secondary_type=types[1] if len(types) > 1 else None,
        base_stats=base,
    )


def make_creature(name: str, moves, types=("Normal",), speed: int = 80, ability: str = "none", item=None) -> CreatureInstance:
    learned = [LearnedMove(m, MOVES[m].pp, MOVES[m].pp) for m in moves]
    return CreatureInstance(
        instance_id=name.lower(),
        species=make_species(name, types, speed),
        level=50,
        ability_id=ability,
        held_item_id=item,
        learned_moves=learned,
    )


def run_turn(state: BattleState, team, actions, rng=None, catalog=None):
    state.pending_player_actions = [PendingAction(*a) for a in actions]
    return execute_turn(state, team, rng or BattleRng(42), catalog or MOVES)


def line_index(logs, text: str) -> int:
    return next(i for i, line in enumerate(logs) if line.startswith(text))


def enter_all(state: BattleState, team) -> None:
    """Put every active creature on the field as if turn 1 had already run."""
    for idx in state.player_active_indices:
        team[idx].enter_field()
    for idx in state.opponent_active_indices:
        state.opponent_team[idx].enter_field()
    state.turn_counter = 2


FLAT_DAMAGE = 40


@pytest.fixture
def flat_damage(monkeypatch):
    """Every hit deals exactly FLAT_DAMAGE so HP can be asserted exactly."""
    monkeypatch.setattr(scheduler, "calculate_damage", lambda *args: (FLAT_DAMAGE, "", False))


# --- Ordering ---


def test_faster_creature_moves_first() -> None:
    fast = make_creature("Fast", ["tackle"], speed=100)
    slow = make_creature("Slow", ["tackle"], speed=50)
    state = BattleState.new_wild(0, slow)

    result = run_turn(state, [fast], [(0, "tackle")])

    assert line_index(result.logs, "Fast used Tackle!") < line_index(result.logs, "Slow used Tackle!")
    assert line_index(result.logs, "Slow took") < line_index(result.logs, "Fast took")
    assert fast.current_hp > 0 and slow.current_hp > 0
    assert result.outcome == "continue"
    assert result.player_damage_dealt == slow.max_hp - slow.current_hp
    assert result.enemy_damage_dealt == fast.max_hp - fast.current_hp


def test_priority_overrides_speed() -> None:
    slow = make_creature("Slow", ["quick-attack"], speed=50)
    fast = make_creature("Fast", ["thunderbolt"], speed=100)
    state = BattleState.new_wild(0, fast)

    result = run_turn(state, [slow], [(0, "quick-attack")])

    assert line_index(result.logs, "Slow used Quick Attack!") < line_index(result.logs, "Fast used Thunderbolt!")


def test_pp_drops_by_one_per_use() -> None:
    hero = make_creature("Hero", ["tackle"])
    foe = make_creature("Foe", ["tackle"])
    state = BattleState.new_wild(0, foe)

    run_turn(state, [hero], [(0, "tackle")])

    assert hero.find_learned_move("tackle").current_pp == 34
    assert foe.find_learned_move("tackle").current_pp == 34
    assert state.turn_counter == 2
    assert state.pending_player_actions == []


def test_same_seed_replays_identical_log() -> None:
    def play() -> list:
        hero = make_creature("Hero", ["tackle", "quick-attack"], speed=90)
        foe = make_creature("Foe", ["thunderbolt"], speed=90)
        state = BattleState.new_wild(0, foe)
        rng = BattleRng(7)
        for move in ("tackle", "quick-attack", "tackle"):
            result = run_turn(state, [hero], [(0, move)], rng=rng)
            if result.outcome != "continue":
                break
        return state.log

    assert play() == play()


# --- Gate and special moves ---


def test_struggle_when_out_of_pp() -> None:
    hero = make_creature("Hero", ["tackle"])
    foe = make_creature("Foe", ["splash"])
    hero.find_learned_move("tackle").current_pp = 0
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, [hero], [(0, "tackle")])

    assert "Hero used Struggle!" in result.logs
    assert f"Hero is damaged by recoil! (-{hero.max_hp // 4} HP)" in result.logs
    assert hero.current_hp == hero.max_hp - hero.max_hp // 4
    assert hero.find_learned_move("tackle").current_pp == 0


def test_protect_blocks_attack() -> None:
    guard = make_creature("Guard", ["protect"])
    foe = make_creature("Foe", ["tackle"])
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, [guard], [(0, "protect")])

    assert result.logs.count("Guard protected itself!") == 2
    assert guard.current_hp == guard.max_hp


def test_status_move_stat_targets() -> None:
    hero = make_creature("Hero", ["swords-dance"])
    foe = make_creature("Foe", ["growl"])
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, [hero], [(0, "swords-dance")])

    assert "Hero's Attack rose sharply!" in result.logs
    assert "Hero's Attack fell!" in result.logs
    assert hero.stage("attack") == 1
    assert foe.stage("attack") == 0


def test_choice_item_locks_first_move() -> None:
    hero = make_creature("Hero", ["tackle", "quick-attack"], item="choice-band")
    foe = make_creature("Foe", ["splash"])
    state = BattleState.new_wild(0, foe)
    rng = BattleRng(3)

    run_turn(state, [hero], [(0, "tackle")], rng=rng)
    second = run_turn(state, [hero], [(0, "quick-attack")], rng=rng)

    assert "Hero used Tackle!" in second.logs
    assert hero.find_learned_move("quick-attack").current_pp == 30


def test_assault_vest_blocks_status_moves() -> None:
    hero = make_creature("Hero", ["swords-dance"], item="assault-vest")
    foe = make_creature("Foe", ["splash"])
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, [hero], [(0, "swords-dance")])

    assert "Hero can't use status moves while holding the Assault Vest!" in result.logs
    assert hero.stage("attack") == 0


def test_sheer_force_skips_secondary_ailment() -> None:
    sure_burn = dict(MOVES)
    sure_burn["flamethrower"] = replace(MOVES["flamethrower"], meta=MoveMeta(ailment="burn", ailment_chance=100))

    def burned_after(ability: str) -> bool:
        blazer = make_creature("Blazer", ["flamethrower"], types=("Fire",), ability=ability)
        target = make_creature("Target", ["splash"])
        state = BattleState.new_wild(0, target)
        run_turn(state, [blazer], [(0, "flamethrower")], catalog=sure_burn)
        return target.status == "burn"

    assert burned_after("none")
    assert not burned_after("sheer-force")


def test_forced_switch_drags_in_bench() -> None:
    hero = make_creature("Hero", ["dragon-tail"])
    lead = make_creature("Lead", ["splash"])
    backup = make_creature("Backup", ["splash"])
    state = BattleState.new_trainer_battle(0, [lead, backup], "Rival")

    result = run_turn(state, [hero], [(0, "dragon-tail")])

    assert "Backup was dragged out!" in result.logs
    assert state.opponent_active_indices == [1]
    assert backup.is_on_field and not lead.is_on_field
    assert result.outcome == "continue"


# --- Input errors ---


def test_invalid_actions_leave_state_untouched() -> None:
    hero = make_creature("Hero", ["tackle"])
    foe = make_creature("Foe", ["tackle"])
    state = BattleState.new_wild(0, foe)

    for action in [(0, "thunderbolt"), (3, "tackle"), (0, "tackle", "the-moon"), (0, "tackle", "opponent-right")]:
        with pytest.raises(InvalidInputError):
            run_turn(state, [hero], [action])

    assert state.turn_counter == 1
    assert state.log == []
    assert hero.find_learned_move("tackle").current_pp == 35
    assert hero.current_hp == hero.max_hp


# --- Outcomes ---


def test_knockout_of_last_opponent_wins() -> None:
    hero = make_creature("Hero", ["tackle"], speed=100)
    wild = make_creature("Wild", ["tackle"], speed=50)
    wild.current_hp = 1
    state = BattleState.new_wild(0, wild)

    result = run_turn(state, [hero], [(0, "tackle")])

    assert result.outcome == "player_won"
    assert "Wild fainted!" in result.logs
    assert "Wild used Tackle!" not in result.logs


def test_trainer_sends_out_next_creature() -> None:
    hero = make_creature("Hero", ["tackle"], speed=100)
    lead = make_creature("Lead", ["tackle"], speed=50)
    backup = make_creature("Backup", ["tackle"], speed=50)
    lead.current_hp = 1
    state = BattleState.new_trainer_battle(0, [lead, backup], "Rival")

    result = run_turn(state, [hero], [(0, "tackle")])

    assert result.outcome == "enemy_switched"
    assert "Rival sent out Backup!" in result.logs
    assert state.opponent_active_indices == [1]
    assert backup.current_hp == backup.max_hp


def test_last_player_creature_fainting_loses() -> None:
    hero = make_creature("Hero", ["tackle"], speed=50)
    foe = make_creature("Foe", ["tackle"], speed=100)
    hero.current_hp = 1
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, [hero], [(0, "tackle")])

    assert result.outcome == "player_lost"
    assert "Hero used Tackle!" not in result.logs


def test_player_must_switch_then_switches() -> None:
    hero = make_creature("Hero", ["tackle"], speed=50)
    backup = make_creature("Backup", ["tackle"])
    foe = make_creature("Foe", ["tackle"], speed=100)
    hero.current_hp = 1
    team = [hero, backup]
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, team, [(0, "tackle")])
    assert result.outcome == "player_must_switch"

    logs = switch_player_active(state, team, 0, 1)
    assert logs[0] == "Go! Backup!"
    assert state.player_active_indices == [1]
    assert backup.is_on_field

    with pytest.raises(InvalidInputError):
        switch_player_active(state, team, 0, 0)


def test_end_battle_clears_field_state() -> None:
    hero = make_creature("Hero", ["tackle"])
    foe = make_creature("Foe", ["tackle"])
    state = BattleState.new_wild(0, foe)
    run_turn(state, [hero], [(0, "tackle")])
    state.weather = WeatherState("rain", 3)

    end_battle(state, [hero])

    assert hero.volatile_status is None and hero.battle_stages is None
    assert foe.volatile_status is None
    assert state.weather is None


def test_corrupted_pp_trips_invariant_check() -> None:
    hero = make_creature("Hero", ["splash"])
    hero.learned_moves[0].current_pp = 99
    state = BattleState.new_wild(0, make_creature("Foe", ["splash"]))

    with pytest.raises(AssertionError, match="98/40 PP for splash"):
        run_turn(state, [hero], [(0, "splash")])


# --- Residuals ---


def test_burn_residual_damage() -> None:
    hero = make_creature("Hero", ["splash"])
    foe = make_creature("Foe", ["splash"])
    hero.status = "burn"
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, [hero], [(0, "splash")])

    assert f"Hero is hurt by its burn! (-{hero.max_hp // 16} HP)" in result.logs
    assert hero.current_hp == hero.max_hp - hero.max_hp // 16


def test_bad_poison_escalates_each_turn() -> None:
    hero = make_creature("Hero", ["splash"])
    hero.status = "bad-poison"
    state = BattleState.new_wild(0, make_creature("Foe", ["splash"]))

    first = run_turn(state, [hero], [(0, "splash")])
    second = run_turn(state, [hero], [(0, "splash")])

    one, two = hero.max_hp // 16, hero.max_hp * 2 // 16
    assert f"Hero is hurt by its poison! (-{one} HP)" in first.logs
    assert f"Hero is hurt by its poison! (-{two} HP)" in second.logs
    assert hero.volatile_status.badly_poisoned_turns == 2
    assert hero.current_hp == hero.max_hp - one - two


def test_weather_expires_after_residuals() -> None:
    hero = make_creature("Hero", ["splash"])
    foe = make_creature("Foe", ["splash"], types=("Rock",))
    state = BattleState.new_wild(0, foe)
    state.weather = WeatherState("sandstorm", 1)

    result = run_turn(state, [hero], [(0, "splash")])

    assert hero.current_hp == hero.max_hp - hero.max_hp // 16
    assert foe.current_hp == foe.max_hp
    assert result.logs[-1] == "The weather returned to normal!"
    assert state.weather is None


def test_leech_seed_drains_to_source() -> None:
    hero = make_creature("Hero", ["splash"])
    foe = make_creature("Foe", ["splash"])
    state = BattleState.new_wild(0, foe)
    enter_all(state, [hero])
    foe.volatile_status.leech_seeded = True
    foe.volatile_status.leech_seed_source = hero.instance_id
    hero.current_hp = 100

    run_turn(state, [hero], [(0, "splash")])

    drained = foe.max_hp // 8
    assert foe.current_hp == foe.max_hp - drained
    assert hero.current_hp == 100 + drained


# --- Double battles ---


def make_double(redirector_move: str, attacker_types):
    attacker = make_creature("Attacker", ["tackle"], types=attacker_types, speed=60)
    partner = make_creature("Partner", ["splash"], speed=60)
    pikachu = make_creature("Pikachu", ["splash"], types=("Electric",), speed=90)
    amoonguss = make_creature("Amoonguss", [redirector_move], types=("Grass", "Poison"), speed=30)
    team = [attacker, partner]
    state = BattleState.new_double([0, 1], [pikachu, amoonguss])
    return state, team, pikachu, amoonguss


def test_follow_me_redirects_single_target() -> None:
    state, team, pikachu, amoonguss = make_double("follow-me", ("Fire",))

    result = run_turn(state, team, [(0, "tackle", "opponent-left"), (1, "splash")])

    assert "Amoonguss became the center of attention!" in result.logs
    assert any(line.startswith("Amoonguss took") for line in result.logs)
    assert pikachu.current_hp == pikachu.max_hp


def test_rage_powder_ignores_grass_attacker() -> None:
    state, team, pikachu, amoonguss = make_double("rage-powder", ("Grass",))

    run_turn(state, team, [(0, "tackle", "opponent-left"), (1, "splash")])

    assert pikachu.current_hp < pikachu.max_hp
    assert amoonguss.current_hp == amoonguss.max_hp


def test_single_faint_in_double_does_not_end_turn(flat_damage) -> None:
    hero = make_creature("Hero", ["tackle"], speed=100)
    partner = make_creature("Partner", ["tackle"], speed=90)
    partner.status = "burn"
    lead = make_creature("Lead", ["splash"], speed=50)
    other = make_creature("Other", ["splash"], speed=50)
    backup = make_creature("Backup", ["splash"], speed=50)
    lead.current_hp = 1
    state = BattleState.new_double([0, 1], [lead, other, backup], "Rival")

    result = run_turn(state, [hero, partner], [(0, "tackle", "opponent-left"), (1, "tackle", "opponent-right")])

    assert line_index(result.logs, "Rival sent out Backup!") < line_index(result.logs, "Partner used Tackle!")
    assert other.current_hp == other.max_hp - FLAT_DAMAGE
    assert any(line.startswith("Partner is hurt by its burn!") for line in result.logs)
    assert state.opponent_active_indices == [2, 1]
    assert result.outcome == "enemy_switched"


def test_partner_keeps_fighting_after_player_slot_faints(flat_damage) -> None:
    hero = make_creature("Hero", ["tackle"], speed=40)
    partner = make_creature("Partner", ["tackle"], speed=30)
    bench = make_creature("Bench", ["tackle"])
    hero.current_hp = 1
    foes = [make_creature("Left", ["tackle"], speed=100), make_creature("Right", ["splash"], speed=100)]
    team = [hero, partner, bench]
    state = BattleState.new_double([0, 1], foes)

    result = run_turn(state, team, [(0, "tackle", "opponent-left"), (1, "tackle", "opponent-right")])

    assert "Hero fainted!" in result.logs
    assert line_index(result.logs, "Hero fainted!") < line_index(result.logs, "Partner used Tackle!")
    assert foes[1].current_hp == foes[1].max_hp - FLAT_DAMAGE
    assert result.outcome == "player_must_switch"

    switch_player_active(state, team, 0, 2)
    assert state.player_active_indices == [2, 1]


# --- Move families inside a turn ---


def test_spread_move_hits_each_target_for_three_quarters(flat_damage) -> None:
    hero = make_creature("Hero", ["swift"], speed=100)
    partner = make_creature("Partner", ["splash"])
    left = make_creature("Left", ["splash"])
    right = make_creature("Right", ["splash"])
    state = BattleState.new_double([0, 1], [left, right])

    result = run_turn(state, [hero, partner], [(0, "swift"), (1, "splash")])

    spread = int(FLAT_DAMAGE * 0.75)
    assert f"Left took {spread} damage!" in result.logs
    assert f"Right took {spread} damage!" in result.logs
    assert left.current_hp == left.max_hp - spread
    assert right.current_hp == right.max_hp - spread


def test_single_target_in_double_takes_full_damage(flat_damage) -> None:
    hero = make_creature("Hero", ["tackle"], speed=100)
    partner = make_creature("Partner", ["splash"])
    left = make_creature("Left", ["splash"])
    right = make_creature("Right", ["splash"])
    state = BattleState.new_double([0, 1], [left, right])

    run_turn(state, [hero, partner], [(0, "tackle", "opponent-right"), (1, "splash")])

    assert right.current_hp == right.max_hp - FLAT_DAMAGE
    assert left.current_hp == left.max_hp


def test_substitute_absorbs_hit_then_breaks(flat_damage) -> None:
    hero = make_creature("Hero", ["substitute"], speed=100)
    foe = make_creature("Foe", ["tackle"], speed=50)
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, [hero], [(0, "substitute")])

    assert "Hero put in a substitute!" in result.logs
    assert "The substitute took damage for Hero!" in result.logs
    assert "Hero's substitute faded!" in result.logs
    assert hero.current_hp == hero.max_hp - hero.max_hp // 4
    assert hero.volatile_status.substitute_hp == 0

    second = run_turn(state, [hero], [(0, "substitute")])
    assert "Hero put in a substitute!" in second.logs


def test_substitute_fails_without_enough_hp() -> None:
    hero = make_creature("Hero", ["substitute"], speed=100)
    hero.current_hp = hero.max_hp // 4
    state = BattleState.new_wild(0, make_creature("Foe", ["splash"]))

    result = run_turn(state, [hero], [(0, "substitute")])

    assert result.logs[result.logs.index("Hero used Substitute!") + 1] == "But it failed!"
    assert hero.volatile_status.substitute_hp == 0


def test_multi_hit_move_strikes_each_time(flat_damage) -> None:
    hero = make_creature("Hero", ["double-kick"], speed=100)
    foe = make_creature("Foe", ["splash"])
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, [hero], [(0, "double-kick")])

    assert result.logs.count(f"Foe took {FLAT_DAMAGE} damage!") == 2
    assert "Hit 2 time(s)!" in result.logs
    assert foe.current_hp == foe.max_hp - 2 * FLAT_DAMAGE
    assert result.player_damage_dealt == 2 * FLAT_DAMAGE


def test_charge_move_fires_next_turn(flat_damage) -> None:
    hero = make_creature("Hero", ["solar-beam"], speed=100)
    foe = make_creature("Foe", ["splash"])
    state = BattleState.new_wild(0, foe)

    first = run_turn(state, [hero], [(0, "solar-beam")])
    assert "Hero began charging Solar Beam!" in first.logs
    assert foe.current_hp == foe.max_hp

    second = run_turn(state, [hero], [(0, "solar-beam")])
    assert "Hero used Solar Beam!" in second.logs
    assert foe.current_hp == foe.max_hp - FLAT_DAMAGE
    assert hero.find_learned_move("solar-beam").current_pp == 9
    assert hero.volatile_status.charging_move is None


def test_charge_move_skips_charging_in_sun(flat_damage) -> None:
    hero = make_creature("Hero", ["solar-beam"], speed=100)
    foe = make_creature("Foe", ["splash"])
    state = BattleState.new_wild(0, foe)
    state.weather = WeatherState("sun", 5)

    result = run_turn(state, [hero], [(0, "solar-beam")])

    assert not any(line.startswith("Hero began charging") for line in result.logs)
    assert foe.current_hp == foe.max_hp - FLAT_DAMAGE


def test_recharge_move_costs_next_turn(flat_damage) -> None:
    hero = make_creature("Hero", ["prismatic-laser"], speed=100)
    foe = make_creature("Foe", ["splash"])
    state = BattleState.new_wild(0, foe)

    run_turn(state, [hero], [(0, "prismatic-laser")])
    assert hero.volatile_status.must_recharge

    second = run_turn(state, [hero], [(0, "prismatic-laser")])
    assert "Hero must recharge!" in second.logs
    assert "Hero used Prismatic Laser!" not in second.logs
    assert foe.current_hp == foe.max_hp - FLAT_DAMAGE
    assert hero.find_learned_move("prismatic-laser").current_pp == 9
    assert not hero.volatile_status.must_recharge


# --- Field setters ---


def test_weather_move_sets_then_fails_on_same_weather() -> None:
    hero = make_creature("Hero", ["rain-dance"])
    state = BattleState.new_wild(0, make_creature("Foe", ["splash"]))

    first = run_turn(state, [hero], [(0, "rain-dance")])
    assert "It started to rain!" in first.logs
    assert state.weather.kind == "rain"
    assert state.weather.turns_remaining == 4

    second = run_turn(state, [hero], [(0, "rain-dance")])
    assert second.logs[second.logs.index("Hero used Rain Dance!") + 1] == "But it failed!"
    assert state.weather.turns_remaining == 3


def test_terrain_move_fails_when_terrain_is_up() -> None:
    hero = make_creature("Hero", ["electric-terrain"])
    state = BattleState.new_wild(0, make_creature("Foe", ["splash"]))
    state.terrain = TerrainState("electric", 3)

    result = run_turn(state, [hero], [(0, "electric-terrain")])

    assert "But it failed!" in result.logs
    assert "An electric current ran across the battlefield!" not in result.logs
    assert state.terrain.turns_remaining == 2


# --- Perish count ---


def test_perish_song_counts_down_to_faint() -> None:
    hero = make_creature("Hero", ["perish-song", "splash"], speed=100)
    foe = make_creature("Foe", ["splash"])
    state = BattleState.new_wild(0, foe)

    first = run_turn(state, [hero], [(0, "perish-song")])
    assert "All Pokémon that heard the song will faint in three turns!" in first.logs
    assert hero.volatile_status.perish_count == 3
    assert foe.volatile_status.perish_count == 3

    foe.volatile_status.perish_count = 1
    second = run_turn(state, [hero], [(0, "splash")])

    assert "Foe's perish count fell to 0." in second.logs
    assert "Foe fainted!" in second.logs
    assert foe.current_hp == 0
    assert hero.volatile_status.perish_count == 2
    assert second.outcome == "player_won"


# --- Guards ---


def test_wide_guard_blocks_spread_move() -> None:
    hero = make_creature("Hero", ["wide-guard"], speed=30)
    partner = make_creature("Partner", ["splash"], speed=30)
    foes = [make_creature("Left", ["swift"], speed=100), make_creature("Right", ["splash"], speed=100)]
    state = BattleState.new_double([0, 1], foes)

    result = run_turn(state, [hero, partner], [(0, "wide-guard"), (1, "splash")])

    assert line_index(result.logs, "Hero used Wide Guard!") < line_index(result.logs, "Left used Swift!")
    assert "Wide Guard protected Hero!" in result.logs
    assert "Wide Guard protected Partner!" in result.logs
    assert hero.current_hp == hero.max_hp and partner.current_hp == partner.max_hp


def test_quick_guard_blocks_priority_move() -> None:
    hero = make_creature("Hero", ["quick-guard"], speed=30)
    partner = make_creature("Partner", ["splash"], speed=30)
    foes = [make_creature("Left", ["quick-attack"], speed=100), make_creature("Right", ["splash"], speed=100)]
    state = BattleState.new_double([0, 1], foes)

    result = run_turn(state, [hero, partner], [(0, "quick-guard"), (1, "splash")])

    assert "Quick Guard protected Hero!" in result.logs
    assert hero.current_hp == hero.max_hp
    assert not hero.volatile_status.quick_guard_active


# --- Powder moves ---


def test_spore_fails_against_grass_type() -> None:
    hero = make_creature("Hero", ["spore"], speed=100)
    shroom = make_creature("Shroom", ["splash"], types=("Grass",))
    state = BattleState.new_wild(0, shroom)

    result = run_turn(state, [hero], [(0, "spore")])

    assert shroom.status is None
    assert result.logs[result.logs.index("Hero used Spore!") + 1] == "But it failed!"


def test_spore_puts_other_types_to_sleep() -> None:
    hero = make_creature("Hero", ["spore"], speed=100)
    foe = make_creature("Foe", ["splash"])
    state = BattleState.new_wild(0, foe)

    result = run_turn(state, [hero], [(0, "spore")])

    assert foe.status == "sleep"
    assert "Foe fell asleep!" in result.logs
