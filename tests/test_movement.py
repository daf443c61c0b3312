from conftest import inf
from sim.hexgrid import Hex
from sim.movement import issue_move, step_armies
from sim.war import declare_war


def test_issue_move_sets_path_without_moving(game, ids, hexes):
    ok, _ = issue_move(game, ids["F_ARMY"], Hex(-3, 0))
    assert ok

    army = game.get_army(ids["F_ARMY"])
    assert army.path == [Hex(-1, 0), Hex(-2, 0), Hex(-3, 0)]
    assert army.location == hexes["F_HOME"]


def test_army_moves_one_hex_per_step(game, ids, hexes):
    aid = ids["F_ARMY"]
    issue_move(game, aid, Hex(-3, 0))

    step_armies(game)
    army = game.get_army(aid)
    assert army.location == Hex(-1, 0)
    assert game.index.army_at(Hex(-1, 0)) == aid
    assert game.index.army_at(hexes["F_HOME"]) is None

    step_armies(game)
    events = step_armies(game)
    assert army.location == Hex(-3, 0)
    assert army.path == []
    assert f"{aid} arrived at (-3,0)." in events

    # Nothing left to do
    assert step_armies(game) == []


def test_move_to_current_hex_clears_path(game, ids, hexes):
    aid = ids["F_ARMY"]
    issue_move(game, aid, Hex(-3, 0))

    ok, _ = issue_move(game, aid, hexes["F_HOME"])
    assert ok
    assert game.get_army(aid).path == []


def test_move_rejected_without_path(game, ids):
    ok, _ = issue_move(game, ids["F_ARMY"], Hex(20, 20))
    assert not ok
    assert game.get_army(ids["F_ARMY"]).path == []

    ok, _ = issue_move(game, "NOPE1", Hex(0, 1))
    assert not ok


def test_friendly_armies_merge(game, ids, countries, hexes):
    extra = game.spawn_army(countries["F"], Hex(-1, 0), inf(2000))
    game.select_army(countries["F"], extra.army_id)
    issue_move(game, extra.army_id, hexes["F_HOME"])

    events = step_armies(game)

    assert extra.army_id not in game.armies
    host = game.get_army(ids["F_ARMY"])
    assert host.size == 12000
    assert host.location == hexes["F_HOME"]
    assert game.selected_army[countries["F"]] == ids["F_ARMY"]
    assert game.index.army_at(Hex(-1, 0)) is None
    assert any("merges into" in e for e in events)


def test_halt_when_not_at_war(game, ids, hexes):
    aid = ids["F_ARMY"]
    issue_move(game, aid, hexes["S_HOME"])

    events = step_armies(game)

    army = game.get_army(aid)
    assert army.location == hexes["F_HOME"]
    assert army.path == []
    assert game.battles == {}
    assert any("not at war" in e for e in events)


def test_step_into_enemy_starts_battle(game, ids, countries, hexes):
    declare_war(game, countries["F"], countries["S"])
    issue_move(game, ids["F_ARMY"], hexes["S_HOME"])

    step_armies(game)

    assert len(game.battles) == 1
    battle = next(iter(game.battles.values()))
    assert battle.location == hexes["S_HOME"]
    assert battle.attacker_country == countries["F"]
    assert battle.defender_country == countries["S"]
    assert battle.attackers == [ids["F_ARMY"]]
    assert battle.defenders == [ids["S_ARMY"]]

    fra = game.get_army(ids["F_ARMY"])
    assert fra.location == hexes["S_HOME"]
    assert fra.in_battle and game.get_army(ids["S_ARMY"]).in_battle
    # Fighting armies are not resting anywhere
    assert game.index.army_at(hexes["F_HOME"]) is None
    assert game.index.army_at(hexes["S_HOME"]) is None


def test_fighting_army_cannot_move(game, ids, countries, hexes):
    declare_war(game, countries["F"], countries["S"])
    issue_move(game, ids["F_ARMY"], hexes["S_HOME"])
    step_armies(game)

    ok, _ = issue_move(game, ids["F_ARMY"], hexes["F_HOME"])
    assert not ok


def _start_battle(game, ids, countries, hexes):
    declare_war(game, countries["F"], countries["S"])
    issue_move(game, ids["F_ARMY"], hexes["S_HOME"])
    step_armies(game)
    return game.battle_at(hexes["S_HOME"])


def test_ally_joins_as_attacker(game, ids, countries, hexes):
    battle = _start_battle(game, ids, countries, hexes)
    declare_war(game, countries["L"], countries["S"])

    ally = game.spawn_army(countries["L"], Hex(1, 1), inf(3000))
    issue_move(game, ally.army_id, hexes["S_HOME"])
    events = step_armies(game)

    assert battle.attackers == [ids["F_ARMY"], ally.army_id]
    assert ally.location == hexes["S_HOME"]
    assert ally.battle_id == battle.battle_id
    assert game.index.army_at(Hex(1, 1)) is None
    assert any("as attacker" in e for e in events)


def test_reinforcement_joins_own_side(game, ids, countries, hexes):
    battle = _start_battle(game, ids, countries, hexes)

    reserve = game.spawn_army(countries["S"], Hex(2, 0), inf(3000))
    issue_move(game, reserve.army_id, hexes["S_HOME"])
    step_armies(game)

    assert battle.defenders == [ids["S_ARMY"], reserve.army_id]
    assert reserve.in_battle


def test_neutral_army_halts_before_battle(game, ids, countries, hexes):
    battle = _start_battle(game, ids, countries, hexes)

    bystander = game.spawn_army(countries["L"], Hex(1, 1), inf(3000))
    issue_move(game, bystander.army_id, hexes["S_HOME"])
    step_armies(game)

    assert bystander.location == Hex(1, 1)
    assert bystander.path == []
    assert not bystander.in_battle
    assert bystander.army_id not in battle.attackers + battle.defenders


def test_stale_occupant_does_not_block(game, ids, hexes):
    # The defender vanished without cleaning the index
    del game.armies[ids["S_ARMY"]]

    issue_move(game, ids["F_ARMY"], hexes["S_HOME"])
    events = step_armies(game)

    assert game.get_army(ids["F_ARMY"]).location == hexes["S_HOME"]
    assert game.index.army_at(hexes["S_HOME"]) == ids["F_ARMY"]
    assert game.battles == {}
    assert f"{ids['F_ARMY']} arrived at {hexes['S_HOME']}." in events


def test_army_already_caught_in_a_collision_does_not_step(game, ids, countries, hexes):
    declare_war(game, countries["F"], countries["S"])
    # The defender has its own march queued, but moves after the attacker
    issue_move(game, ids["S_ARMY"], Hex(3, 0))
    issue_move(game, ids["F_ARMY"], hexes["S_HOME"])

    step_armies(game)

    sax = game.get_army(ids["S_ARMY"])
    battle = game.battle_at(hexes["S_HOME"])
    assert sax.location == hexes["S_HOME"]
    assert sax.path == []
    assert battle.defenders == [ids["S_ARMY"]]


def _win_with_two_armies(game, ids, countries, hexes):
    declare_war(game, countries["F"], countries["S"])
    issue_move(game, ids["F_ARMY"], hexes["S_HOME"])
    step_armies(game)
    second = game.spawn_army(countries["F"], Hex(0, 1), inf(5000))
    issue_move(game, second.army_id, hexes["S_HOME"])
    step_armies(game)

    for _ in range(200):
        if not game.battles:
            break
        game.tick()
    assert game.battles == {}
    return second


def test_stacked_winner_takes_over_when_other_leaves(game, ids, countries, hexes):
    second = _win_with_two_armies(game, ids, countries, hexes)
    assert game.index.army_at(hexes["S_HOME"]) == ids["F_ARMY"]

    issue_move(game, ids["F_ARMY"], Hex(2, 0))
    step_armies(game)
    assert game.index.army_at(hexes["S_HOME"]) == second.army_id

    size = second.size
    third = game.spawn_army(countries["F"], hexes["F_HOME"], inf(1000))
    issue_move(game, third.army_id, hexes["S_HOME"])
    step_armies(game)

    assert third.army_id not in game.armies
    assert second.size == size + 1000
    assert [a.army_id for a in game.armies_at(hexes["S_HOME"])] == [second.army_id]


def test_enemy_meets_remaining_stacked_winner(game, ids, countries, hexes):
    second = _win_with_two_armies(game, ids, countries, hexes)
    issue_move(game, ids["F_ARMY"], Hex(2, 0))
    step_armies(game)

    raider = game.spawn_army(countries["S"], Hex(2, -1), inf(1000))
    issue_move(game, raider.army_id, hexes["S_HOME"])
    step_armies(game)

    battle = game.battle_at(hexes["S_HOME"])
    assert battle is not None
    assert battle.attackers == [raider.army_id]
    assert battle.defenders == [second.army_id]
