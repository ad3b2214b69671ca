"""
Group stage: 8 groups of 4, three matchdays, 48 matches.

Fixtures inside a group always follow the same pattern over the team slots
the draw produced (slot 0 is the host in group A):

    Matchday 1: 0v1, 2v3
    Matchday 2: 0v2, 1v3
    Matchday 3: 0v3, 1v2

Standings are never stored separately from the matches; they are recomputed
from whichever matches are passed in, which is how the live table during the
group stage is produced.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from cup_engine.draw import GROUP_LETTERS
from cup_engine.evolution import SquadRegistry
from cup_engine.match import MatchResult, simulate_match
from cup_engine.nations import Nation

_log = logging.getLogger("cupsim.group_stage")

FIXTURE_PATTERN = [
    [(0, 1), (2, 3)],
    [(0, 2), (1, 3)],
    [(0, 3), (1, 2)],
]


def group_match_id(group: int, matchday: int, index: int) -> str:
    return f"G-{GROUP_LETTERS[group]}-{matchday}-{index}"


@dataclass(frozen=True)
class GroupFixture:
    """A slot in the fixed group schedule, independent of who fills it."""
    group: int
    matchday: int
    match_index: int
    slot_a: int
    slot_b: int

    @property
    def match_id(self) -> str:
        return group_match_id(self.group, self.matchday, self.match_index)

    @property
    def group_letter(self) -> str:
        return GROUP_LETTERS[self.group]


@dataclass(frozen=True)
class GroupMatch:
    result: MatchResult
    group: int
    matchday: int
    match_index: int

    @property
    def match_id(self) -> str:
        return self.result.match_id

    def to_dict(self) -> dict:
        d = self.result.to_dict()
        d.update({
            "group": self.group,
            "group_letter": GROUP_LETTERS[self.group],
            "matchday": self.matchday,
            "match_index": self.match_index,
        })
        return d


@dataclass
class StandingsRow:
    team: Nation
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    goals_for: int = 0
    goals_against: int = 0
    points: int = 0

    @property
    def goal_difference(self) -> int:
        return self.goals_for - self.goals_against

    def to_dict(self) -> dict:
        return {
            "team": self.team.to_dict(),
            "played": self.played,
            "won": self.won,
            "drawn": self.drawn,
            "lost": self.lost,
            "goals_for": self.goals_for,
            "goals_against": self.goals_against,
            "goal_difference": self.goal_difference,
            "points": self.points,
        }


@dataclass
class GroupQualifiers:
    group: int
    first: Nation
    second: Nation

    def to_dict(self) -> dict:
        return {
            "group": self.group,
            "group_letter": GROUP_LETTERS[self.group],
            "first": self.first.to_dict(),
            "second": self.second.to_dict(),
        }


@dataclass
class GroupStageResult:
    matches: List[GroupMatch] = field(default_factory=list)
    standings: List[List[StandingsRow]] = field(default_factory=list)

    def find(self, match_id: str) -> Optional[GroupMatch]:
        for m in self.matches:
            if m.match_id == match_id:
                return m
        return None

    def to_dict(self) -> dict:
        return {
            "matches": [m.to_dict() for m in self.matches],
            "standings": {
                GROUP_LETTERS[g]: [row.to_dict() for row in table]
                for g, table in enumerate(self.standings)
            },
        }


# ──────────────────────────────────────────────
# SCHEDULE & SIMULATION
# ──────────────────────────────────────────────

def group_match_list(group_count: int = len(GROUP_LETTERS)) -> List[GroupFixture]:
    """Every group fixture in group, matchday, index order."""
    fixtures = []
    for g in range(group_count):
        for day, pairs in enumerate(FIXTURE_PATTERN):
            for idx, (slot_a, slot_b) in enumerate(pairs):
                fixtures.append(GroupFixture(g, day, idx, slot_a, slot_b))
    return fixtures


def simulate_group_stage(
    edition: int,
    groups: List[List[Nation]],
    squads: Optional[SquadRegistry] = None,
) -> GroupStageResult:
    matches = []
    for fx in group_match_list(len(groups)):
        team_a = groups[fx.group][fx.slot_a]
        team_b = groups[fx.group][fx.slot_b]
        result = simulate_match(edition, fx.match_id, team_a, team_b, allow_draw=True, squads=squads)
        matches.append(GroupMatch(result, fx.group, fx.matchday, fx.match_index))
    return GroupStageResult(matches=matches, standings=compute_standings(groups, matches))


# ──────────────────────────────────────────────
# STANDINGS
# ──────────────────────────────────────────────

def _head_to_head(matches: List[GroupMatch], a: StandingsRow, b: StandingsRow) -> int:
    for m in matches:
        r = m.result
        if r.team_a.code == a.team.code and r.team_b.code == b.team.code:
            return r.goals_b - r.goals_a
        if r.team_a.code == b.team.code and r.team_b.code == a.team.code:
            return r.goals_a - r.goals_b
    _log.debug(f"No head-to-head between {a.team.code} and {b.team.code}; order left unresolved")
    return 0


def compute_standings(groups: List[List[Nation]], matches: Iterable[GroupMatch]) -> List[List[StandingsRow]]:
    """Tables per group. Points, goal difference, goals for, then head-to-head."""
    by_group: Dict[int, List[GroupMatch]] = {}
    for m in matches:
        by_group.setdefault(m.group, []).append(m)

    standings = []
    for g, teams in enumerate(groups):
        group_matches = by_group.get(g, [])
        rows = {team.code: StandingsRow(team) for team in teams}

        for m in group_matches:
            r = m.result
            row_a = rows.get(r.team_a.code)
            row_b = rows.get(r.team_b.code)
            if row_a is None or row_b is None:
                continue
            row_a.played += 1
            row_b.played += 1
            row_a.goals_for += r.goals_a
            row_a.goals_against += r.goals_b
            row_b.goals_for += r.goals_b
            row_b.goals_against += r.goals_a
            if r.goals_a > r.goals_b:
                row_a.won += 1
                row_a.points += 3
                row_b.lost += 1
            elif r.goals_a < r.goals_b:
                row_b.won += 1
                row_b.points += 3
                row_a.lost += 1
            else:
                row_a.drawn += 1
                row_b.drawn += 1
                row_a.points += 1
                row_b.points += 1

        def compare(a: StandingsRow, b: StandingsRow) -> int:
            if a.points != b.points:
                return b.points - a.points
            if a.goal_difference != b.goal_difference:
                return b.goal_difference - a.goal_difference
            if a.goals_for != b.goals_for:
                return b.goals_for - a.goals_for
            return _head_to_head(group_matches, a, b)

        standings.append(sorted(rows.values(), key=functools.cmp_to_key(compare)))
    return standings


def group_qualifiers(standings: List[List[StandingsRow]]) -> List[GroupQualifiers]:
    """Winner and runner-up of every group, in group order."""
    return [
        GroupQualifiers(group=g, first=table[0].team, second=table[1].team)
        for g, table in enumerate(standings)
    ]
