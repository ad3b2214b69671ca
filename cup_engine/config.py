"""
Perpetual World Cup Configuration

Central constants for the tournament cycle, the match model and the draw.
All schedule times are minutes relative to the start of a cycle and are
multiples of 60, so every match kicks off on the hour.

The epoch doubles as the "world seed": changing CUPSIM_EPOCH produces a
completely different history for the same edition numbers.

Environment:
    CUPSIM_EPOCH      Unix epoch in milliseconds of edition 0 (default 2026-02-17 20:00 UTC)
    CUPSIM_LOG_LEVEL  Logging level used by main.py (default INFO)
"""

import os
from typing import Dict, List, Tuple

DEFAULT_EPOCH = 1771358400000  # 2026-02-17 20:00:00 UTC


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer number of milliseconds, got {raw!r}")


EPOCH: int = _env_int("CUPSIM_EPOCH", DEFAULT_EPOCH)
LOG_LEVEL: str = os.environ.get("CUPSIM_LOG_LEVEL", "INFO").upper()

MS_PER_MINUTE = 60 * 1000

# ═══════════════════════════════════════════════════════════════
# CYCLE
# ═══════════════════════════════════════════════════════════════

CYCLE_DURATION = 10080  # minutes (7 days)

# phase key -> (start, end, label); half-open [start, end)
SCHEDULE: Dict[str, Tuple[int, int, str]] = {
    "DRAW":        (0,    60,    "Draw"),
    "GROUP_STAGE": (60,   5820,  "Group Stage"),
    "REST_1":      (5820, 5940,  "Rest Day"),
    "ROUND_16":    (5940, 6660,  "Round of 16"),
    "REST_2":      (6660, 6780,  "Rest Day"),
    "QUARTER":     (6780, 7380,  "Quarterfinals"),
    "REST_3":      (7380, 7500,  "Rest Day"),
    "SEMI":        (7500, 8100,  "Semifinals"),
    "REST_4":      (8100, 8220,  "Rest Day"),
    "THIRD_PLACE": (8220, 8520,  "Third Place"),
    "REST_5":      (8520, 8640,  "Rest Day"),
    "FINAL":       (8640, 8940,  "Final"),
    "CELEBRATION": (8940, 9000,  "Celebration"),
    "COUNTDOWN":   (9000, 10080, "Next World Cup"),
}

# ═══════════════════════════════════════════════════════════════
# MATCH MODEL
# ═══════════════════════════════════════════════════════════════

REGULAR_MINUTES = 90
EXTRA_TIME_MINUTES = 30
GOAL_PROBABILITY_BASE = 0.025  # ~2.5% per minute between equal sides
FATIGUE_START = 75
FATIGUE_BOOST = 0.005
PENALTY_ROUNDS = 5
PENALTY_SCORE_PROB = 0.75
PENALTY_SUDDEN_DEATH_CAP = 20

# Goal-scoring weight multiplier by position
POSITION_GOAL_WEIGHT: Dict[str, float] = {
    "GK": 0.05,
    "DF": 1,
    "MF": 4,
    "FW": 10,
}

# ═══════════════════════════════════════════════════════════════
# TOURNAMENT FORMAT
# ═══════════════════════════════════════════════════════════════

GROUP_COUNT = 8
TEAMS_PER_GROUP = 4
TOTAL_TEAMS = 32
POT_SIZE = 8
MAX_PER_CONFEDERATION = 2

CONFEDERATIONS: List[str] = ["UEFA", "CONMEBOL", "CONCACAF", "CAF", "AFC", "OFC"]

# Host gets a bonus spot outside these quotas: 31 + 1 = 32
CONFEDERATION_SPOTS: Dict[str, int] = {
    "UEFA": 13,
    "CONMEBOL": 5,
    "CAF": 5,
    "AFC": 4,
    "CONCACAF": 3,
    "OFC": 1,
}

FIRST_HOST_CODE = "us"
FIRST_DEFENDING_CHAMPION = "ar"  # 2022 champions

HOST_ROTATION: List[str] = ["UEFA", "CONMEBOL", "AFC", "CAF", "CONCACAF", "UEFA"]
MIN_HOST_RATING = 50
HOST_EXCLUSION_EDITIONS = 3

# ═══════════════════════════════════════════════════════════════
# SQUADS
# ═══════════════════════════════════════════════════════════════

SQUAD_POSITIONS: List[str] = (
    ["GK"] * 3
    + ["DF"] * 8
    + ["MF"] * 8
    + ["FW"] * 6
)
SQUAD_SIZE = len(SQUAD_POSITIONS)

YEARS_PER_EDITION = 4
MIN_PLAYER_RATING = 25
MAX_PLAYER_RATING = 99
WEAK_NATION_RATING = 62

# Starting XI shape: 1-4-4-2
STARTING_SHAPE: Dict[str, int] = {"GK": 1, "DF": 4, "MF": 4, "FW": 2}
MAX_SUBSTITUTIONS = 5
SUB_WINDOWS: List[Tuple[int, int]] = [(45, 62), (55, 70), (62, 76), (70, 83), (79, 90)]

# ═══════════════════════════════════════════════════════════════
# AWARDS
# ═══════════════════════════════════════════════════════════════

BEST_PLAYER_SHORTLIST = 10
SEMIFINALIST_BONUS = 1.15
