from sim.hexgrid import Hex
from sim.map import SiegeProgress
from sim.movement import issue_move
from sim.war import (
    accept_peace,
    ai_accepts,
    ai_handle_peace_offers,
    conquer_province,
    declare_war,
    offer_peace,
    process_sieges,
)


def _keep_only(game, country, n):
    """Hand all but the first n provinces of `country` to Francia."""
    owned = sorted(game.game_map.provinces_owned_by(country), key=lambda p: (p.hex.q, p.hex.r))
    for p in owned[n:]:
        p.owner = "Francia"
    return [p.hex for p in owned[:n]]


def _march_onto_saxon_soil(game, ids, hexes):
    game.despawn_army(ids["S_ARMY"])
    issue_move(game, ids["F_ARMY"], hexes["S_HOME"])


# -----------------------------
# Declarations
# -----------------------------
def test_declare_war_is_symmetric(game, countries):
    ok, msg = declare_war(game, countries["F"], countries["S"])
    assert ok
    assert msg == "Francia declares war on Saxonia."
    assert game.diplomacy.at_war(countries["F"], countries["S"])
    assert game.diplomacy.at_war(countries["S"], countries["F"])
    assert not game.diplomacy.at_war(countries["F"], countries["L"])
    assert game.diplomacy.enemies_of(countries["S"]) == {countries["F"]}


def test_declare_war_rejections(game, countries):
    assert not declare_war(game, countries["F"], countries["F"])[0]
    assert not declare_war(game, countries["F"], "Atlantis")[0]

    assert declare_war(game, countries["F"], countries["S"])[0]
    assert not declare_war(game, countries["F"], countries["S"])[0]
    assert not declare_war(game, countries["S"], countries["F"])[0]
    assert len(game.diplomacy.wars) == 1


# -----------------------------
# Sieges
# -----------------------------
def test_siege_occupies_after_three_turns(game, ids, countries, hexes):
    declare_war(game, countries["F"], countries["S"])
    _march_onto_saxon_soil(game, ids, hexes)
    province = game.game_map.province_at(hexes["S_HOME"])

    events = game.end_turn()
    assert "  Francia begins a siege of Province_1_0." in events
    assert province.siege == SiegeProgress(besieger="Francia", progress=1)

    game.end_turn()
    assert province.siege.progress == 2
    assert province.occupier is None

    events = game.end_turn()
    assert "  Province_1_0 occupied by Francia." in events
    assert province.siege is None
    assert province.occupier == countries["F"]
    assert province.owner == countries["S"]


def test_siege_lifted_when_besieger_leaves(game, ids, countries, hexes):
    declare_war(game, countries["F"], countries["S"])
    _march_onto_saxon_soil(game, ids, hexes)
    game.end_turn()

    issue_move(game, ids["F_ARMY"], hexes["F_HOME"])
    events = game.end_turn()

    province = game.game_map.province_at(hexes["S_HOME"])
    assert "  Siege of Province_1_0 by Francia lifted." in events
    assert province.siege is None
    assert province.occupier is None


def test_no_siege_without_war(game, ids, countries, hexes):
    _march_onto_saxon_soil(game, ids, hexes)
    game.end_turn()
    game.end_turn()

    province = game.game_map.province_at(hexes["S_HOME"])
    assert game.get_army(ids["F_ARMY"]).location == hexes["S_HOME"]
    assert province.siege is None


def test_owner_army_liberates_occupied_province(game, ids, countries, hexes):
    province = game.game_map.province_at(hexes["S_HOME"])
    province.occupier = countries["F"]

    events = process_sieges(game)

    assert province.occupier is None
    assert "Province_1_0 liberated from Francia." in events


def test_occupation_ends_running_siege(game, countries):
    province = game.game_map.province_at(Hex(2, 0))
    province.occupier = countries["F"]
    province.siege = SiegeProgress(besieger=countries["L"], progress=2)

    process_sieges(game)

    assert province.siege is None
    assert province.occupier == countries["F"]


def test_conquer_province_transfers_ownership(game, countries):
    province = game.game_map.province_at(Hex(2, 0))
    province.siege = SiegeProgress(besieger=countries["F"], progress=2)

    events = conquer_province(game, Hex(2, 0), countries["F"])

    assert events == ["Province_2_0 conquered by Francia."]
    assert province.owner == countries["F"]
    assert province.siege is None
    assert conquer_province(game, Hex(30, 30), countries["F"]) == []


# -----------------------------
# Peace
# -----------------------------
def test_offer_requires_war_and_target_provinces(game, countries):
    ok, _ = offer_peace(game, countries["F"], countries["S"], [])
    assert not ok

    declare_war(game, countries["F"], countries["S"])
    assert not offer_peace(game, countries["F"], countries["S"], [Hex(0, 0)])[0]
    assert not offer_peace(game, countries["F"], countries["S"], [Hex(30, 30)])[0]
    assert offer_peace(game, countries["F"], countries["S"], [Hex(1, 0)])[0]
    assert list(game.diplomacy.peace_offers) == ["P1"]


def test_ai_accepts_small_demands(game, countries):
    declare_war(game, countries["F"], countries["S"])
    holdings = _keep_only(game, countries["S"], 10)

    offer_peace(game, countries["F"], countries["S"], holdings[:1])
    events = ai_handle_peace_offers(game)

    assert events == ["Peace signed between Francia and Saxonia."]
    assert game.diplomacy.wars == {}
    assert not game.diplomacy.at_war(countries["F"], countries["S"])
    assert game.game_map.province_at(holdings[0]).owner == countries["F"]
    assert game.diplomacy.peace_offers == {}


def test_ai_rejects_large_share(game, countries):
    declare_war(game, countries["F"], countries["S"])
    holdings = _keep_only(game, countries["S"], 10)

    offer_peace(game, countries["F"], countries["S"], holdings[:3])
    events = ai_handle_peace_offers(game)

    assert events == ["Saxonia declines peace with Francia."]
    assert game.diplomacy.at_war(countries["F"], countries["S"])
    assert game.diplomacy.peace_offers == {}
    for h in holdings[:3]:
        assert game.game_map.province_at(h).owner == countries["S"]


def test_ai_evaluation_thresholds(game, countries):
    declare_war(game, countries["F"], countries["S"])
    holdings = _keep_only(game, countries["S"], 20)

    offer_peace(game, countries["F"], countries["S"], holdings[:3])
    offer = game.diplomacy.peace_offers["P1"]
    assert ai_accepts(game, offer)  # 3 of 20

    offer_peace(game, countries["F"], countries["S"], holdings[:6])
    assert not ai_accepts(game, game.diplomacy.peace_offers["P2"])  # 6 of 20

    offer_peace(game, countries["F"], countries["S"], [])
    assert ai_accepts(game, game.diplomacy.peace_offers["P3"])


def test_offers_to_player_wait_for_an_answer(game, countries):
    declare_war(game, countries["S"], countries["F"])
    offer_peace(game, countries["S"], countries["F"], [Hex(-1, 0)])

    assert ai_handle_peace_offers(game) == []
    assert "P1" in game.diplomacy.peace_offers

    ok, _ = game.queue_accept_peace(countries["F"], "p1")
    assert ok
    events = game.submit_orders(countries["F"])

    assert "  1. accept P1 -> Peace signed between Saxonia and Francia." in events
    assert game.game_map.province_at(Hex(-1, 0)).owner == countries["S"]
    assert game.diplomacy.wars == {}


def test_player_can_decline(game, countries):
    declare_war(game, countries["S"], countries["F"])
    offer_peace(game, countries["S"], countries["F"], [])

    assert not game.queue_decline_peace(countries["S"], "P1")[0]
    game.queue_decline_peace(countries["F"], "P1")
    game.submit_orders(countries["F"])

    assert game.diplomacy.peace_offers == {}
    assert game.diplomacy.at_war(countries["F"], countries["S"])


def test_peace_clears_occupations_between_belligerents(game, countries, hexes):
    declare_war(game, countries["F"], countries["S"])
    saxon = game.game_map.province_at(Hex(2, 0))
    saxon.occupier = countries["F"]
    french = game.game_map.province_at(Hex(-1, 0))
    french.siege = SiegeProgress(besieger=countries["S"], progress=2)
    lombard = game.game_map.province_at(hexes["L_HOME"])
    lombard.occupier = countries["S"]

    offer_peace(game, countries["F"], countries["S"], [])
    ok, _ = accept_peace(game, "P1")

    assert ok
    assert saxon.occupier is None
    assert french.siege is None
    # Lombardia was never part of this war
    assert lombard.occupier == countries["S"]


def test_offer_for_finished_war_is_discarded(game, countries):
    declare_war(game, countries["F"], countries["S"])
    offer_peace(game, countries["F"], countries["S"], [])
    game.diplomacy.end_war("W1")

    ok, _ = accept_peace(game, "P1")
    assert not ok
    assert game.diplomacy.peace_offers == {}

    ok, _ = accept_peace(game, "P7")
    assert not ok
