"""
Knockout bracket: round of 16 through the final.

Round of 16 pairings are fixed by group position (1A v 2B, 1C v 2D, ...,
1H v 2G); every later match takes the winners of two adjacent matches of the
previous round. The semifinal losers meet in the third-place match. No
knockout match can end level: extra time, then penalties.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional, Tuple

from cup_engine.evolution import SquadRegistry
from cup_engine.group_stage import FIXTURE_PATTERN, GroupQualifiers, group_match_id
from cup_engine.match import MatchResult, simulate_match
from cup_engine.nations import Nation

# (group of the winner, group of the runner-up) per R16 slot
R16_MATCHUPS: List[Tuple[int, int]] = [
    (0, 1), (2, 3), (4, 5), (6, 7),
    (1, 0), (3, 2), (5, 4), (7, 6),
]


class KnockoutRound(enum.Enum):
    R16 = "R16"
    QF = "QF"
    SF = "SF"
    THIRD = "THIRD"
    FINAL = "FINAL"

    @property
    def match_count(self) -> int:
        return _MATCH_COUNTS[self]

    @property
    def label(self) -> str:
        return _LABELS[self]

    def match_id(self, index: int = 0) -> str:
        if not 0 <= index < self.match_count:
            raise IndexError(f"{self.value} has {self.match_count} matches, got index {index}")
        if self in (KnockoutRound.THIRD, KnockoutRound.FINAL):
            return self.value
        return f"{self.value}-{index}"


_MATCH_COUNTS = {
    KnockoutRound.R16: 8,
    KnockoutRound.QF: 4,
    KnockoutRound.SF: 2,
    KnockoutRound.THIRD: 1,
    KnockoutRound.FINAL: 1,
}

_LABELS = {
    KnockoutRound.R16: "Round of 16",
    KnockoutRound.QF: "Quarterfinal",
    KnockoutRound.SF: "Semifinal",
    KnockoutRound.THIRD: "Third Place",
    KnockoutRound.FINAL: "Final",
}


def parse_round(value) -> KnockoutRound:
    if isinstance(value, KnockoutRound):
        return value
    try:
        return KnockoutRound(str(value).upper())
    except ValueError:
        raise ValueError(f"Unknown knockout round: {value!r}") from None


@dataclass(frozen=True)
class KnockoutFixture:
    round: KnockoutRound
    match_index: int

    @property
    def match_id(self) -> str:
        return self.round.match_id(self.match_index)


@dataclass
class KnockoutResult:
    r16: List[MatchResult]
    qf: List[MatchResult]
    sf: List[MatchResult]
    third_place: MatchResult
    final: MatchResult

    @property
    def champion(self) -> Nation:
        return self.final.winner_team

    @property
    def runner_up(self) -> Nation:
        return self.final.loser_team

    @property
    def third(self) -> Nation:
        return self.third_place.winner_team

    @property
    def fourth(self) -> Nation:
        return self.third_place.loser_team

    @property
    def semifinalists(self) -> List[Nation]:
        return [t for m in self.sf for t in (m.team_a, m.team_b)]

    def all_matches(self) -> List[MatchResult]:
        return self.r16 + self.qf + self.sf + [self.third_place, self.final]

    def find(self, match_id: str) -> Optional[MatchResult]:
        for m in self.all_matches():
            if m.match_id == match_id:
                return m
        return None

    def to_dict(self) -> dict:
        return {
            "r16": [m.to_dict() for m in self.r16],
            "qf": [m.to_dict() for m in self.qf],
            "sf": [m.to_dict() for m in self.sf],
            "third_place": self.third_place.to_dict(),
            "final": self.final.to_dict(),
            "champion": self.champion.to_dict(),
            "runner_up": self.runner_up.to_dict(),
            "third": self.third.to_dict(),
            "fourth": self.fourth.to_dict(),
        }


def simulate_knockout(
    edition: int,
    qualifiers: List[GroupQualifiers],
    squads: Optional[SquadRegistry] = None,
) -> KnockoutResult:
    def play(rnd: KnockoutRound, index: int, a: Nation, b: Nation) -> MatchResult:
        return simulate_match(edition, rnd.match_id(index), a, b, allow_draw=False, squads=squads)

    r16 = [
        play(KnockoutRound.R16, i, qualifiers[ga].first, qualifiers[gb].second)
        for i, (ga, gb) in enumerate(R16_MATCHUPS)
    ]
    qf = [
        play(KnockoutRound.QF, i, r16[2 * i].winner_team, r16[2 * i + 1].winner_team)
        for i in range(KnockoutRound.QF.match_count)
    ]
    sf = [
        play(KnockoutRound.SF, i, qf[2 * i].winner_team, qf[2 * i + 1].winner_team)
        for i in range(KnockoutRound.SF.match_count)
    ]
    third_place = play(KnockoutRound.THIRD, 0, sf[0].loser_team, sf[1].loser_team)
    final = play(KnockoutRound.FINAL, 0, sf[0].winner_team, sf[1].winner_team)
    return KnockoutResult(r16=r16, qf=qf, sf=sf, third_place=third_place, final=final)


def find_knockout_match(knockout: KnockoutResult, round, index: int = 0) -> MatchResult:
    """Match by round and index; unknown rounds and bad indices fail fast."""
    rnd = parse_round(round)
    if rnd is KnockoutRound.THIRD:
        matches = [knockout.third_place]
    elif rnd is KnockoutRound.FINAL:
        matches = [knockout.final]
    else:
        matches = {KnockoutRound.R16: knockout.r16, KnockoutRound.QF: knockout.qf, KnockoutRound.SF: knockout.sf}[rnd]
    if not 0 <= index < len(matches):
        raise IndexError(f"{rnd.value} has {len(matches)} matches, got index {index}")
    return matches[index]


def feeder_match_ids(match_id: str) -> List[str]:
    """Matches that must be finished before both teams of ``match_id`` are known."""
    rnd_value, _, index = match_id.partition("-")
    rnd = parse_round(rnd_value)
    i = int(index) if index else 0
    rnd.match_id(i)  # validates the index
    if rnd is KnockoutRound.R16:
        return [
            group_match_id(g, day, idx)
            for g in R16_MATCHUPS[i]
            for day, pairs in enumerate(FIXTURE_PATTERN)
            for idx in range(len(pairs))
        ]
    if rnd in (KnockoutRound.THIRD, KnockoutRound.FINAL):
        return [KnockoutRound.SF.match_id(0), KnockoutRound.SF.match_id(1)]
    previous = KnockoutRound.R16 if rnd is KnockoutRound.QF else KnockoutRound.QF
    return [previous.match_id(2 * i), previous.match_id(2 * i + 1)]


def knockout_match_list() -> List[KnockoutFixture]:
    """All 16 knockout fixtures in play order."""
    return [
        KnockoutFixture(rnd, i)
        for rnd in KnockoutRound
        for i in range(rnd.match_count)
    ]
