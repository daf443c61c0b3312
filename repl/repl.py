import logging

from sim.commands import apply_command
from sim.persistence import game_from_json, game_to_json


def run_repl(game):
    print("Hexwar Simulator")
    print("Type 'help' for commands. Type 'exit' to quit.\n")

    country = game.player_country

    while True:
        prompt = f"[Turn {game.turn_number} | {country}]> "
        try:
            raw = input(prompt).strip()
        except EOFError:
            break
        cmd = raw.lower()

        if cmd in ("quit", "exit"):
            break

        elif cmd.startswith("as "):
            name = game.resolve_country(raw[3:])
            if name is None:
                print(f"Unknown country: {raw[3:].strip()}")
            else:
                country = name

        elif cmd == "log":
            if not game.log:
                print("(no events)")
            else:
                for line in game.log[-20:]:
                    print(" ", line)

        elif cmd.startswith("save "):
            path = raw.split(maxsplit=1)[1]
            with open(path, "w", encoding="utf-8") as f:
                f.write(game_to_json(game))
            print(f"Saved to {path}")

        elif cmd.startswith("load "):
            path = raw.split(maxsplit=1)[1]
            try:
                with open(path, encoding="utf-8") as f:
                    game = game_from_json(f.read())
            except (OSError, ValueError) as e:
                print(f"Could not load {path}: {e}")
                continue
            country = game.player_country
            print(f"Loaded {path}")

        else:
            for line in apply_command(game, country, raw):
                print(line)
            if cmd == "help":
                print("  as <country>                     - issue commands as another country")
                print("  log                              - show recent game log")
                print("  save <file> / load <file>        - write or read a JSON snapshot")


if __name__ == "__main__":
    from scenarios.simple_scenario import build_game

    logging.basicConfig(level=logging.WARNING)
    run_repl(build_game())
