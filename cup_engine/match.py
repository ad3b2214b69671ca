"""
Minute-by-minute match engine.

Each minute rolls once for a goal. The chance grows with the rating gap
between the sides and gets a small fatigue boost from the 75th minute; the
scoring side is chosen with weight rating^4, and the scorer is drawn from the
players of that side on the pitch at that minute, weighted by position and
rating^2. Knockout matches level after 90 minutes play 30 minutes of extra
time and then a penalty shoot-out.

A match is a pure function of (epoch, edition, match id, the two nations):
the RNG is consumed strictly in minute order, so the result of a match is the
same whenever and wherever it is computed. The live view only truncates a
finished result; it never re-simulates.

Usage:
    from cup_engine.match import simulate_match, live_view

    result = simulate_match(2, "QF-1", nation_a, nation_b, allow_draw=False, squads=registry)
    state = live_view(result, 63, allow_draw=False)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from cup_engine import config
from cup_engine.evolution import MatchLineup, SquadRegistry, lineup_for, players_on_field
from cup_engine.nations import Nation
from cup_engine.players import SquadPlayer
from cup_engine.prng import SeededRNG, combine_seed

_log = logging.getLogger("cupsim.match")

SIDE_A = "A"
SIDE_B = "B"


# ──────────────────────────────────────────────
# DATACLASSES
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class GoalEvent:
    minute: int
    side: str
    nation_code: str
    scorer_id: Optional[str] = None
    scorer_name: Optional[str] = None
    scorer_position: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "type": "goal",
            "minute": self.minute,
            "side": self.side,
            "nation_code": self.nation_code,
            "scorer_id": self.scorer_id,
            "scorer_name": self.scorer_name,
            "scorer_position": self.scorer_position,
        }


@dataclass(frozen=True)
class PenaltyKick:
    round: int
    side: str
    scored: bool

    def to_dict(self) -> dict:
        return {"round": self.round, "side": self.side, "scored": self.scored}


@dataclass(frozen=True)
class PenaltyShootout:
    kicks: Tuple[PenaltyKick, ...]
    score_a: int
    score_b: int
    winner: str

    def to_dict(self) -> dict:
        return {
            "kicks": [k.to_dict() for k in self.kicks],
            "score_a": self.score_a,
            "score_b": self.score_b,
            "winner": self.winner,
        }


@dataclass(frozen=True)
class MatchResult:
    """Complete, immutable outcome of one match."""
    match_id: str
    team_a: Nation
    team_b: Nation
    goals_a: int
    goals_b: int
    events: Tuple[GoalEvent, ...] = ()
    extra_time: bool = False
    penalties: Optional[PenaltyShootout] = None
    winner: Optional[str] = None  # "A" / "B" / None for a draw

    @property
    def winner_team(self) -> Optional[Nation]:
        if self.winner == SIDE_A:
            return self.team_a
        if self.winner == SIDE_B:
            return self.team_b
        return None

    @property
    def loser_team(self) -> Optional[Nation]:
        if self.winner == SIDE_A:
            return self.team_b
        if self.winner == SIDE_B:
            return self.team_a
        return None

    @property
    def match_minutes(self) -> int:
        if self.extra_time:
            return config.REGULAR_MINUTES + config.EXTRA_TIME_MINUTES
        return config.REGULAR_MINUTES

    @property
    def total_goals(self) -> int:
        return self.goals_a + self.goals_b

    def side_of(self, code: str) -> str:
        if code == self.team_a.code:
            return SIDE_A
        if code == self.team_b.code:
            return SIDE_B
        raise KeyError(f"{code!r} did not play {self.match_id}")

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "team_a": self.team_a.to_dict(),
            "team_b": self.team_b.to_dict(),
            "goals_a": self.goals_a,
            "goals_b": self.goals_b,
            "events": [e.to_dict() for e in self.events],
            "extra_time": self.extra_time,
            "penalties": self.penalties.to_dict() if self.penalties else None,
            "winner": self.winner,
            "winner_code": self.winner_team.code if self.winner_team else None,
        }


@dataclass(frozen=True)
class LiveMatchState:
    """A match result as seen at one observed minute."""
    match_id: str
    team_a: Nation
    team_b: Nation
    minute: int
    goals_a: int
    goals_b: int
    events: Tuple[GoalEvent, ...] = ()
    extra_time: bool = False
    is_live: bool = False
    is_finished: bool = False
    penalties: Optional[PenaltyShootout] = None
    winner: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "team_a": self.team_a.to_dict(),
            "team_b": self.team_b.to_dict(),
            "minute": self.minute,
            "goals_a": self.goals_a,
            "goals_b": self.goals_b,
            "events": [e.to_dict() for e in self.events],
            "extra_time": self.extra_time,
            "is_live": self.is_live,
            "is_finished": self.is_finished,
            "penalties": self.penalties.to_dict() if self.penalties else None,
            "winner": self.winner,
        }


# ──────────────────────────────────────────────
# SIMULATION
# ──────────────────────────────────────────────

def goal_probability(rating_a: int, rating_b: int, minute: int) -> float:
    ratio = max(rating_a, rating_b) / min(rating_a, rating_b)
    boost = config.FATIGUE_BOOST if minute >= config.FATIGUE_START else 0.0
    return config.GOAL_PROBABILITY_BASE * ratio + boost


def pick_scorer(rng: SeededRNG, on_field: List[SquadPlayer]) -> Optional[SquadPlayer]:
    """Weighted by position and rating^2; strikers dominate, keepers almost never score."""
    if not on_field:
        return None
    weights = [
        config.POSITION_GOAL_WEIGHT[p.position] * p.rating * p.rating
        for p in on_field
    ]
    return rng.weighted_sample(on_field, weights)


@dataclass
class _MatchState:
    rng: SeededRNG
    team_a: Nation
    team_b: Nation
    lineup_a: Optional[MatchLineup]
    lineup_b: Optional[MatchLineup]
    goals_a: int = 0
    goals_b: int = 0
    events: List[GoalEvent] = field(default_factory=list)

    def play_minute(self, minute: int):
        ra, rb = self.team_a.rating, self.team_b.rating
        if not self.rng.next_bool(goal_probability(ra, rb, minute)):
            return

        power_a = ra ** 4
        power_b = rb ** 4
        is_a = self.rng.next_bool(power_a / (power_a + power_b))
        lineup = self.lineup_a if is_a else self.lineup_b
        scorer = pick_scorer(self.rng, players_on_field(lineup, minute)) if lineup else None

        self.events.append(GoalEvent(
            minute=minute,
            side=SIDE_A if is_a else SIDE_B,
            nation_code=(self.team_a if is_a else self.team_b).code,
            scorer_id=scorer.id if scorer else None,
            scorer_name=scorer.name if scorer else None,
            scorer_position=scorer.position if scorer else None,
        ))
        if is_a:
            self.goals_a += 1
        else:
            self.goals_b += 1


def simulate_penalties(rng: SeededRNG) -> PenaltyShootout:
    """Best of five, A kicks first, then sudden death up to a fixed round cap."""
    score_a = score_b = 0
    kicks: List[PenaltyKick] = []
    rounds = config.PENALTY_ROUNDS

    for rnd in range(1, rounds + 1):
        scored = rng.next_bool(config.PENALTY_SCORE_PROB)
        score_a += scored
        kicks.append(PenaltyKick(rnd, SIDE_A, scored))
        left_a, left_b = rounds - rnd, rounds - rnd + 1
        if score_a > score_b + left_b or score_b > score_a + left_a:
            break

        scored = rng.next_bool(config.PENALTY_SCORE_PROB)
        score_b += scored
        kicks.append(PenaltyKick(rnd, SIDE_B, scored))
        left = rounds - rnd
        if score_a > score_b + left or score_b > score_a + left:
            break

    rnd = rounds + 1
    while score_a == score_b and rnd <= config.PENALTY_SUDDEN_DEATH_CAP:
        scored = rng.next_bool(config.PENALTY_SCORE_PROB)
        score_a += scored
        kicks.append(PenaltyKick(rnd, SIDE_A, scored))
        scored = rng.next_bool(config.PENALTY_SCORE_PROB)
        score_b += scored
        kicks.append(PenaltyKick(rnd, SIDE_B, scored))
        rnd += 1

    if score_a == score_b:
        _log.debug(f"Shoot-out still level after {config.PENALTY_SUDDEN_DEATH_CAP} rounds, awarded to side A")
        winner = SIDE_A
    else:
        winner = SIDE_A if score_a > score_b else SIDE_B
    return PenaltyShootout(kicks=tuple(kicks), score_a=score_a, score_b=score_b, winner=winner)


def simulate_match(
    edition: int,
    match_id: str,
    team_a: Nation,
    team_b: Nation,
    allow_draw: bool = True,
    squads: Optional[SquadRegistry] = None,
) -> MatchResult:
    """Play one match. Without ``squads`` goals are recorded without a scorer."""
    rng = SeededRNG(combine_seed("match", edition, match_id))

    lineup_a = lineup_b = None
    if squads is not None:
        lineup_a = lineup_for(squads.squad_for(team_a.code, edition), team_a.code, edition, match_id)
        lineup_b = lineup_for(squads.squad_for(team_b.code, edition), team_b.code, edition, match_id)

    state = _MatchState(rng, team_a, team_b, lineup_a, lineup_b)
    for minute in range(1, config.REGULAR_MINUTES + 1):
        state.play_minute(minute)

    extra_time = False
    penalties = None
    if not allow_draw and state.goals_a == state.goals_b:
        extra_time = True
        for minute in range(config.REGULAR_MINUTES + 1, config.REGULAR_MINUTES + config.EXTRA_TIME_MINUTES + 1):
            state.play_minute(minute)
        if state.goals_a == state.goals_b:
            penalties = simulate_penalties(rng)

    if penalties is not None:
        winner = penalties.winner
    elif state.goals_a > state.goals_b:
        winner = SIDE_A
    elif state.goals_b > state.goals_a:
        winner = SIDE_B
    else:
        winner = None

    return MatchResult(
        match_id=match_id,
        team_a=team_a,
        team_b=team_b,
        goals_a=state.goals_a,
        goals_b=state.goals_b,
        events=tuple(state.events),
        extra_time=extra_time,
        penalties=penalties,
        winner=winner,
    )


# ──────────────────────────────────────────────
# LIVE VIEW
# ──────────────────────────────────────────────

def live_view(
    result: MatchResult,
    minute: int,
    allow_draw: bool = True,
    finished: Optional[bool] = None,
) -> LiveMatchState:
    """Truncate a finished result to what had happened by ``minute``.

    ``finished`` comes from the match clock when one is running; the shown
    minute reaches full time a few seconds before the final whistle, so the
    outcome stays hidden until the clock says the match is over. Without it
    the match counts as finished once ``minute`` reaches full time.
    """
    full_time = result.match_minutes if not allow_draw else config.REGULAR_MINUTES
    visible = tuple(e for e in result.events if e.minute <= minute)
    is_finished = minute >= full_time if finished is None else finished
    return LiveMatchState(
        match_id=result.match_id,
        team_a=result.team_a,
        team_b=result.team_b,
        minute=min(int(minute), full_time),
        goals_a=sum(1 for e in visible if e.side == SIDE_A),
        goals_b=sum(1 for e in visible if e.side == SIDE_B),
        events=visible,
        extra_time=result.extra_time and (is_finished or minute > config.REGULAR_MINUTES),
        is_live=not is_finished and minute >= 1,
        is_finished=is_finished,
        penalties=result.penalties if is_finished else None,
        winner=result.winner if is_finished else None,
    )
