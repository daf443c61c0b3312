import pytest

from scenarios.small_test import build_map
from sim.armies import ArmyComposition
from sim.countries import Country
from sim.hexgrid import Hex
from sim.turn_engine import GameState

FRANCIA = "Francia"
SAXONIA = "Saxonia"
LOMBARDIA = "Lombardia"

F_HOME = Hex(0, 0)
S_HOME = Hex(1, 0)
L_HOME = Hex(-2, 3)


def inf(n: int) -> ArmyComposition:
    return ArmyComposition(infantry=n)


def _build_game():
    game = GameState(game_map=build_map(-4, 4, -4, 4), seed=7)

    game.add_country(Country(FRANCIA, (0.2, 0.3, 0.8)))
    game.add_country(Country(SAXONIA, (0.8, 0.2, 0.2)))
    game.add_country(Country(LOMBARDIA, (0.2, 0.7, 0.3)))

    # West of q=1 is Francia, the rest Saxonia; Lombardia holds one enclave
    for p in game.game_map.provinces.values():
        p.owner = FRANCIA if p.hex.q <= 0 else SAXONIA
    game.game_map.province_at(L_HOME).owner = LOMBARDIA

    f_army = game.spawn_army(FRANCIA, F_HOME, inf(10000))
    s_army = game.spawn_army(SAXONIA, S_HOME, inf(5000))

    ids = {"F_ARMY": f_army.army_id, "S_ARMY": s_army.army_id}
    countries = {"F": FRANCIA, "S": SAXONIA, "L": LOMBARDIA}
    hexes = {"F_HOME": F_HOME, "S_HOME": S_HOME, "L_HOME": L_HOME}

    return game, ids, countries, hexes


@pytest.fixture
def bundle():
    """(game, ids, countries, hexes)"""
    return _build_game()


@pytest.fixture
def game(bundle):
    return bundle[0]


@pytest.fixture
def ids(bundle):
    return bundle[1]


@pytest.fixture
def countries(bundle):
    return bundle[2]


@pytest.fixture
def hexes(bundle):
    return bundle[3]


def dump_log(game):
    print("\n--- GAME LOG ---")
    for e in game.log:
        print(e)
    print("--- END LOG ---\n")
