#!/usr/bin/env python3
"""
Simulate one Perpetual World Cup edition and print its report

Usage:
    python simulate_edition.py <edition> [--json <file>]

Example:
    python simulate_edition.py 3
    python simulate_edition.py 3 --json edition_3.json
"""

import sys
import json
import os
from pathlib import Path

# Add engine to path
sys.path.insert(0, str(Path(__file__).parent))

from cup_engine import TournamentSimulator
from cup_engine.draw import GROUP_LETTERS
from cup_engine.match import MatchResult


def _score_line(m: MatchResult) -> str:
    line = f"{m.team_a.name} {m.goals_a}-{m.goals_b} {m.team_b.name}"
    if m.penalties:
        line += f" ({m.penalties.score_a}-{m.penalties.score_b} pens)"
    elif m.extra_time:
        line += " (aet)"
    return line


def simulate_edition(edition: int, json_file: str = None):
    """Simulate an edition and print draw, tables, bracket and awards"""

    sim = TournamentSimulator()
    t = sim.simulate(edition)

    print("=" * 60)
    print(f"PERPETUAL WORLD CUP - EDITION {edition}")
    print("=" * 60)
    print(f"Host: {t.host.name}    Defending champion: {t.defending_champion_code}")
    print()

    for g, table in enumerate(t.group_stage.standings):
        print(f"Group {GROUP_LETTERS[g]}")
        for pos, row in enumerate(table, 1):
            print(f"  {pos}. {row.team.name:<24} {row.played}  {row.won}-{row.drawn}-{row.lost}  "
                  f"{row.goals_for}:{row.goals_against}  {row.points} pts")
    print()

    rounds = [
        ("ROUND OF 16", t.knockout.r16),
        ("QUARTERFINALS", t.knockout.qf),
        ("SEMIFINALS", t.knockout.sf),
        ("THIRD PLACE", [t.knockout.third_place]),
        ("FINAL", [t.knockout.final]),
    ]
    for label, matches in rounds:
        print(label)
        for m in matches:
            print(f"  {_score_line(m)}")
    print()

    print(f"🏆 Champion: {t.champion.name}")
    print(f"   Runner-up: {t.runner_up.name}    Third: {t.third.name}")
    print(f"   {t.total_goals} goals in {t.total_matches} matches")
    if t.golden_boot:
        gb = t.golden_boot
        print(f"   Golden Boot: {gb.player.name} ({gb.player.nation_code}) - {gb.goals} goals")
    if t.best_player:
        print(f"   Best Player: {t.best_player.player.name} ({t.best_player.player.nation_code})")

    if json_file:
        os.makedirs(os.path.dirname(json_file) or ".", exist_ok=True)
        with open(json_file, "w") as f:
            json.dump(t.to_dict(), f, indent=2, ensure_ascii=False)
        print()
        print(f"Tournament saved to: {json_file}")

    return t


if __name__ == "__main__":
    if len(sys.argv) < 2 or not sys.argv[1].isdigit():
        print("Usage: python simulate_edition.py <edition> [--json <file>]")
        print("\nExample: python simulate_edition.py 3")
        sys.exit(1)

    edition = int(sys.argv[1])
    json_file = None
    if "--json" in sys.argv:
        idx = sys.argv.index("--json")
        if idx + 1 >= len(sys.argv):
            print("Error: --json needs a file name")
            sys.exit(1)
        json_file = sys.argv[idx + 1]

    simulate_edition(edition, json_file)
