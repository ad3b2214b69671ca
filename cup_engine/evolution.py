"""
Squad evolution, match lineups and per-player match statistics.

Each edition is four real years. Between editions every player ages, may
retire (probability rising sharply after 30), and is otherwise given a small
rating walk. Retirees are replaced in the same slot by a young prospect, so a
squad always keeps its 3/8/8/6 layout.

For a given match a nation fields its best 1-4-4-2 and makes up to five
substitutions; lineups are a pure function of (nation, edition, match id),
which lets the match engine pick scorers from the players actually on the
pitch and the tournament layer recompute minutes afterwards.

Usage:
    from cup_engine.evolution import SquadRegistry, lineup_for, players_on_field

    squads = SquadRegistry()
    squad = squads.squad_for("fr", 3)
    lineup = lineup_for(squad, "fr", 3, "G-B-0-1")
    on_pitch = players_on_field(lineup, 67)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Tuple

from cup_engine import config
from cup_engine.memo import MemoTable
from cup_engine.nations import get_nation
from cup_engine.players import (
    SquadPlayer,
    clamp_rating,
    generate_base_squad,
    generate_replacement,
)
from cup_engine.prng import SeededRNG, combine_seed

_log = logging.getLogger("cupsim.evolution")


# ──────────────────────────────────────────────
# AGING & RETIREMENT
# ──────────────────────────────────────────────

def retirement_probability(age: int) -> float:
    """Chance a player retires, given his age at the new edition."""
    if age >= 38:
        return 1.0
    if age >= 36:
        return 0.85
    if age >= 34:
        return 0.45
    if age >= 32:
        return 0.18
    if age >= 30:
        return 0.06
    return 0.02


def evolve_rating(rng: SeededRNG, rating: int, age: int) -> int:
    if age <= 23:
        delta = rng.next_int(0, 8)
    elif age <= 27:
        delta = rng.next_int(-1, 3)
    elif age <= 30:
        delta = rng.next_int(-2, 1)
    else:
        delta = rng.next_int(-4, 0)
    return clamp_rating(rating + delta)


def evolve_squad(previous: List[SquadPlayer], nation_code: str, edition: int) -> List[SquadPlayer]:
    """Squad for ``edition`` derived from the squad of ``edition - 1``."""
    nation = get_nation(nation_code)
    rng = SeededRNG(combine_seed("evolution", nation_code, edition))

    squad: List[SquadPlayer] = []
    for slot, player in enumerate(previous):
        age = player.age + config.YEARS_PER_EDITION
        if rng.next() < retirement_probability(age):
            squad.append(generate_replacement(rng, nation, player.position, slot, edition))
        else:
            squad.append(replace(player, age=age, rating=evolve_rating(rng, player.rating, age)))
    return squad


class SquadRegistry:
    """Memoized squads per (nation, edition), built by folding upward from edition 0."""

    def __init__(self):
        self._squads: MemoTable[Tuple[str, int], Tuple[SquadPlayer, ...]] = MemoTable("squads")
        self._latest: Dict[str, int] = {}

    def squad_for(self, nation_code: str, edition: int) -> List[SquadPlayer]:
        if edition < 0:
            raise ValueError(f"Edition must be non-negative, got {edition}")
        key = (nation_code, edition)
        cached = self._squads.get(key)
        if cached is not None:
            return list(cached)

        with self._squads.lock:
            latest = self._latest.get(nation_code, -1)
            if latest < 0:
                base = generate_base_squad(get_nation(nation_code))
                self._squads.put_once((nation_code, 0), tuple(base))
                latest = 0
            squad = list(self._squads.get((nation_code, latest)))
            for e in range(latest + 1, edition + 1):
                squad = evolve_squad(squad, nation_code, e)
                self._squads.put_once((nation_code, e), tuple(squad))
            if edition > latest:
                _log.debug(f"Squad {nation_code}: evolved editions {latest + 1}..{edition}")
                self._latest[nation_code] = edition
        return list(self._squads.get(key))

    def find_player(self, nation_code: str, edition: int, player_id: str) -> SquadPlayer:
        for player in self.squad_for(nation_code, edition):
            if player.id == player_id:
                return player
        raise KeyError(f"No player {player_id!r} in {nation_code} squad for edition {edition}")

    def clear(self):
        with self._squads.lock:
            self._squads.clear()
            self._latest.clear()


# ──────────────────────────────────────────────
# LINEUPS
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Substitution:
    player_in: SquadPlayer
    player_out: SquadPlayer
    minute: int  # first minute the substitute is on the pitch

    def to_dict(self) -> dict:
        return {
            "player_in": self.player_in.id,
            "player_out": self.player_out.id,
            "minute": self.minute,
        }


@dataclass(frozen=True)
class MatchLineup:
    starters: Tuple[SquadPlayer, ...]
    substitutions: Tuple[Substitution, ...] = ()

    def to_dict(self) -> dict:
        return {
            "starters": [p.id for p in self.starters],
            "substitutions": [s.to_dict() for s in self.substitutions],
        }


def _by_position(squad: Iterable[SquadPlayer], position: str) -> List[SquadPlayer]:
    return sorted((p for p in squad if p.position == position), key=lambda p: -p.rating)


def lineup_for(squad: List[SquadPlayer], nation_code: str, edition: int, match_id: str) -> MatchLineup:
    """Starting XI plus up to five substitutions for one match."""
    rng = SeededRNG(combine_seed("lineup", nation_code, edition, match_id))

    starters: List[SquadPlayer] = []
    bench: List[SquadPlayer] = []
    for position in ("GK", "DF", "MF", "FW"):
        ranked = _by_position(squad, position)
        count = config.STARTING_SHAPE[position]
        starters.extend(ranked[:count])
        bench.extend(ranked[count:])

    # Bench keepers almost never come on
    weights = [
        p.rating * p.rating * (0.02 if p.position == "GK" else 1.0)
        for p in bench
    ]
    candidates: List[SquadPlayer] = []
    for _ in range(min(config.MAX_SUBSTITUTIONS, len(bench))):
        player = rng.weighted_sample(bench, weights)
        idx = bench.index(player)
        candidates.append(player)
        del bench[idx]
        del weights[idx]

    minutes = sorted(
        rng.next_int(*config.SUB_WINDOWS[i]) if i < len(config.SUB_WINDOWS) else rng.next_int(60, 85)
        for i in range(len(candidates))
    )

    remaining = list(starters)
    substitutions: List[Substitution] = []
    for player_in, minute in zip(candidates, minutes):
        same_position = [s for s in remaining if s.position == player_in.position]
        pool = same_position or remaining
        player_out = min(pool, key=lambda p: p.rating)
        remaining.remove(player_out)
        substitutions.append(Substitution(player_in, player_out, minute))

    return MatchLineup(starters=tuple(starters), substitutions=tuple(substitutions))


def players_on_field(lineup: MatchLineup, minute: int) -> List[SquadPlayer]:
    """Players on the pitch during ``minute``."""
    off = {s.player_out.id for s in lineup.substitutions if minute >= s.minute}
    on_field = [p for p in lineup.starters if p.id not in off]
    on_field.extend(s.player_in for s in lineup.substitutions if minute >= s.minute)
    return on_field


# ──────────────────────────────────────────────
# PLAYER MATCH STATS
# ──────────────────────────────────────────────

@dataclass
class PlayerMatchStats:
    player_id: str
    minutes: int = 0
    started: bool = False
    goals: int = 0

    @property
    def appeared(self) -> bool:
        return self.minutes > 0

    def to_dict(self) -> dict:
        return {
            "player_id": self.player_id,
            "minutes": self.minutes,
            "started": self.started,
            "goals": self.goals,
        }


def player_match_stats(
    lineup: MatchLineup,
    match_minutes: int,
    scorer_ids: Iterable[str] = (),
) -> Dict[str, PlayerMatchStats]:
    """Minutes, starts and goals for every player who took part in one match."""
    stats: Dict[str, PlayerMatchStats] = {}
    subbed_off = {s.player_out.id: s.minute for s in lineup.substitutions}

    for starter in lineup.starters:
        if starter.id in subbed_off:
            played = min(subbed_off[starter.id] - 1, match_minutes)
        else:
            played = match_minutes
        stats[starter.id] = PlayerMatchStats(starter.id, minutes=max(0, played), started=True)

    for sub in lineup.substitutions:
        if sub.minute <= match_minutes:
            stats[sub.player_in.id] = PlayerMatchStats(
                sub.player_in.id, minutes=match_minutes - sub.minute + 1,
            )

    for scorer_id in scorer_ids:
        if scorer_id in stats:
            stats[scorer_id].goals += 1
    return stats
