"""
Tournament orchestrator.

One edition = host -> draw -> group stage -> knockout -> player statistics
and awards. Editions are chained through the defending champion (the
champion of edition N-1 is seeded into pot 1 and group B of edition N), so
they are simulated left to right and cached for the lifetime of the process.

Awards:
    Golden Boot   most goals; ties go to fewer minutes, then higher rating
    Best Player   weighted draw among the ten best tournament scores, where
                  score = goals*2.5 + rating*0.15 + appearances*0.5, boosted
                  15% for players of the four semifinalists

Usage:
    from cup_engine.tournament import TournamentSimulator

    sim = TournamentSimulator()
    t = sim.simulate(5)
    print(t.champion.name, t.total_goals, t.golden_boot.player.name)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from cup_engine import config
from cup_engine.draw import DrawResult, perform_draw
from cup_engine.evolution import SquadRegistry, lineup_for, player_match_stats
from cup_engine.group_stage import (
    GroupQualifiers,
    GroupStageResult,
    group_qualifiers,
    simulate_group_stage,
)
from cup_engine.hosts import HostSelector
from cup_engine.knockout import KnockoutResult, simulate_knockout
from cup_engine.match import MatchResult
from cup_engine.memo import MemoTable
from cup_engine.nations import Nation
from cup_engine.players import SquadPlayer
from cup_engine.prng import SeededRNG, combine_seed

_log = logging.getLogger("cupsim.tournament")


# ──────────────────────────────────────────────
# DATACLASSES
# ──────────────────────────────────────────────

@dataclass
class PlayerTournamentStats:
    player: SquadPlayer
    goals: int = 0
    appearances: int = 0
    starts: int = 0
    minutes: int = 0

    def to_dict(self) -> dict:
        return {
            "player": self.player.to_dict(),
            "goals": self.goals,
            "appearances": self.appearances,
            "starts": self.starts,
            "minutes": self.minutes,
        }


@dataclass
class Tournament:
    """A fully simulated edition. Never mutated once cached."""
    edition: int
    host: Nation
    defending_champion_code: str
    draw: DrawResult
    group_stage: GroupStageResult
    qualifiers: List[GroupQualifiers]
    knockout: KnockoutResult
    player_stats: Dict[str, PlayerTournamentStats] = field(default_factory=dict)
    golden_boot: Optional[PlayerTournamentStats] = None
    best_player: Optional[PlayerTournamentStats] = None

    @property
    def champion(self) -> Nation:
        return self.knockout.champion

    @property
    def runner_up(self) -> Nation:
        return self.knockout.runner_up

    @property
    def third(self) -> Nation:
        return self.knockout.third

    @property
    def fourth(self) -> Nation:
        return self.knockout.fourth

    def all_matches(self) -> List[MatchResult]:
        return [m.result for m in self.group_stage.matches] + self.knockout.all_matches()

    @property
    def total_goals(self) -> int:
        return sum(m.total_goals for m in self.all_matches())

    @property
    def total_matches(self) -> int:
        return len(self.all_matches())

    def find_match(self, match_id: str) -> MatchResult:
        group_match = self.group_stage.find(match_id)
        if group_match is not None:
            return group_match.result
        result = self.knockout.find(match_id)
        if result is None:
            raise KeyError(f"Edition {self.edition} has no match {match_id!r}")
        return result

    def top_scorers(self, limit: int = 10) -> List[PlayerTournamentStats]:
        scorers = [s for s in self.player_stats.values() if s.goals > 0]
        return sorted(scorers, key=_golden_boot_key)[:limit]

    def to_dict(self) -> dict:
        return {
            "edition": self.edition,
            "host": self.host.to_dict(),
            "defending_champion": self.defending_champion_code,
            "draw": self.draw.to_dict(),
            "group_stage": self.group_stage.to_dict(),
            "qualifiers": [q.to_dict() for q in self.qualifiers],
            "knockout": self.knockout.to_dict(),
            "champion": self.champion.to_dict(),
            "runner_up": self.runner_up.to_dict(),
            "third": self.third.to_dict(),
            "fourth": self.fourth.to_dict(),
            "total_goals": self.total_goals,
            "total_matches": self.total_matches,
            "top_scorers": [s.to_dict() for s in self.top_scorers()],
            "golden_boot": self.golden_boot.to_dict() if self.golden_boot else None,
            "best_player": self.best_player.to_dict() if self.best_player else None,
        }


@dataclass
class TournamentSummary:
    """Lightweight record for history lists."""
    edition: int
    host: Nation
    champion: Nation
    runner_up: Nation
    third: Nation
    total_goals: int
    total_matches: int
    golden_boot: Optional[PlayerTournamentStats] = None
    best_player: Optional[PlayerTournamentStats] = None

    def to_dict(self) -> dict:
        return {
            "edition": self.edition,
            "host": self.host.to_dict(),
            "champion": self.champion.to_dict(),
            "runner_up": self.runner_up.to_dict(),
            "third": self.third.to_dict(),
            "total_goals": self.total_goals,
            "total_matches": self.total_matches,
            "golden_boot": self.golden_boot.to_dict() if self.golden_boot else None,
            "best_player": self.best_player.to_dict() if self.best_player else None,
        }


# ──────────────────────────────────────────────
# PLAYER STATS & AWARDS
# ──────────────────────────────────────────────

def _golden_boot_key(s: PlayerTournamentStats):
    return (-s.goals, s.minutes, -s.player.rating, s.player.id)


def compute_player_stats(
    edition: int,
    nations: List[Nation],
    matches: List[MatchResult],
    squads: SquadRegistry,
) -> Dict[str, PlayerTournamentStats]:
    """Aggregate minutes, appearances, starts and goals for every squad player."""
    stats: Dict[str, PlayerTournamentStats] = {}
    for nation in nations:
        squad = squads.squad_for(nation.code, edition)
        for player in squad:
            stats[player.id] = PlayerTournamentStats(player)

        for match in matches:
            if nation.code not in (match.team_a.code, match.team_b.code):
                continue
            side = match.side_of(nation.code)
            lineup = lineup_for(squad, nation.code, edition, match.match_id)
            scorers = [e.scorer_id for e in match.events if e.side == side and e.scorer_id]
            for player_id, pms in player_match_stats(lineup, match.match_minutes, scorers).items():
                row = stats[player_id]
                row.goals += pms.goals
                row.minutes += pms.minutes
                if pms.appeared:
                    row.appearances += 1
                if pms.started:
                    row.starts += 1
    return stats


def golden_boot(stats: Dict[str, PlayerTournamentStats]) -> Optional[PlayerTournamentStats]:
    scorers = [s for s in stats.values() if s.goals > 0]
    if not scorers:
        return None
    return min(scorers, key=_golden_boot_key)


def best_player_score(s: PlayerTournamentStats, semifinalists: set) -> float:
    base = s.goals * 2.5 + s.player.rating * 0.15 + s.appearances * 0.5
    if s.player.nation_code in semifinalists:
        return base * config.SEMIFINALIST_BONUS
    return base


def best_player(
    edition: int,
    stats: Dict[str, PlayerTournamentStats],
    semifinalists: List[Nation],
) -> Optional[PlayerTournamentStats]:
    codes = {n.code for n in semifinalists}
    scored = [(best_player_score(s, codes), s) for s in stats.values() if s.minutes > 0]
    if not scored:
        return None
    scored.sort(key=lambda pair: (-pair[0], pair[1].player.id))
    shortlist = scored[:config.BEST_PLAYER_SHORTLIST]
    rng = SeededRNG(combine_seed("best_player", edition))
    return rng.weighted_sample(
        [s for _, s in shortlist],
        [score * score for score, _ in shortlist],
    )


# ──────────────────────────────────────────────
# SIMULATOR
# ──────────────────────────────────────────────

class TournamentSimulator:
    """Simulates and caches editions, folding forward from the last cached one."""

    def __init__(self, squads: Optional[SquadRegistry] = None, hosts: Optional[HostSelector] = None):
        self.squads = squads or SquadRegistry()
        self.hosts = hosts or HostSelector()
        self._tournaments: MemoTable[int, Tournament] = MemoTable("tournaments")

    def simulate(self, edition: int) -> Tournament:
        if edition < 0:
            raise ValueError(f"Edition must be non-negative, got {edition}")
        cached = self._tournaments.get(edition)
        if cached is not None:
            return cached

        with self._tournaments.lock:
            start = edition
            while start > 0 and start not in self._tournaments:
                start -= 1
            if start in self._tournaments:
                start += 1
            for e in range(start, edition + 1):
                if e == 0:
                    champion_code = config.FIRST_DEFENDING_CHAMPION
                else:
                    champion_code = self._tournaments.get(e - 1).champion.code
                self._tournaments.put_once(e, self._play(e, champion_code))
        return self._tournaments.get(edition)

    def _play(self, edition: int, defending_champion_code: str) -> Tournament:
        host = self.hosts.host_for(edition)
        draw = perform_draw(edition, host, defending_champion_code)
        group_stage = simulate_group_stage(edition, draw.groups, self.squads)
        qualifiers = group_qualifiers(group_stage.standings)
        knockout = simulate_knockout(edition, qualifiers, self.squads)

        t = Tournament(
            edition=edition,
            host=host,
            defending_champion_code=defending_champion_code,
            draw=draw,
            group_stage=group_stage,
            qualifiers=qualifiers,
            knockout=knockout,
        )
        t.player_stats = compute_player_stats(edition, draw.qualified, t.all_matches(), self.squads)
        t.golden_boot = golden_boot(t.player_stats)
        t.best_player = best_player(edition, t.player_stats, knockout.semifinalists)

        _log.info(
            f"Edition {edition} ({host.name}): {t.champion.name} champions, "
            f"{t.total_goals} goals in {t.total_matches} matches"
        )
        return t

    def summary(self, edition: int) -> TournamentSummary:
        t = self.simulate(edition)
        return TournamentSummary(
            edition=edition,
            host=t.host,
            champion=t.champion,
            runner_up=t.runner_up,
            third=t.third,
            total_goals=t.total_goals,
            total_matches=t.total_matches,
            golden_boot=t.golden_boot,
            best_player=t.best_player,
        )

    def is_cached(self, edition: int) -> bool:
        return edition in self._tournaments

    def clear(self):
        """Reset every cache the simulator owns. Test-only."""
        self._tournaments.clear()
        self.squads.clear()
        self.hosts.clear()
