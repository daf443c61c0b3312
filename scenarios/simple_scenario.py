from sim.armies import ArmyComposition
from sim.countries import Country
from sim.hexgrid import Hex, hex_distance
from sim.map import MAP_RADIUS, generate_world
from sim.turn_engine import GameState

# name -> (map colour, capital)
COUNTRIES = [
    ("Francia", (0.2, 0.3, 0.8), Hex(-3, 1)),
    ("Saxonia", (0.8, 0.2, 0.2), Hex(3, -3)),
    ("Lombardia", (0.2, 0.7, 0.3), Hex(0, 3)),
]

STARTING_ARMY = ArmyComposition(infantry=10000, cavalry=2000, artillery=1000)


def build_game(seed: int = 0, radius: int = MAP_RADIUS) -> GameState:
    game = GameState(game_map=generate_world(radius), seed=seed)

    for name, color, _capital in COUNTRIES:
        game.add_country(Country(name=name, color=color))

    # Every ownable province goes to the nearest capital (first listed wins ties)
    for province in game.game_map.provinces.values():
        if not province.is_ownable:
            continue
        nearest = min(COUNTRIES, key=lambda c: hex_distance(province.hex, c[2]))
        province.owner = nearest[0]

    for name, _color, capital in COUNTRIES:
        army = game.spawn_army(name, capital, STARTING_ARMY.copy())
        game.selected_army[name] = army.army_id

    return game
