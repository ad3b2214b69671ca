"""
Perpetual World Cup: the world as seen from a wall-clock instant.

WorldCupWorld is the composition root. It owns the squad registry, the host
history and the tournament cache, and turns a Unix timestamp (milliseconds)
into a Snapshot: which edition is running, which phase, the matches live
right now (truncated to the minute being shown), what comes next and what
just finished. Nothing is stored between calls beyond the memo tables; two
processes given the same epoch and timestamp produce the same snapshot.

The clock is injectable. SystemClock reads real time plus a debug offset in
minutes, which is how the development time-travel control works.

Usage:
    from cup_engine.simulation import WorldCupWorld

    world = WorldCupWorld()
    snap = world.get_current_state()
    print(snap.edition, snap.phase.label, [m.match_id for m in snap.live_matches])
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from cup_engine import config
from cup_engine.evolution import SquadRegistry
from cup_engine.group_stage import StandingsRow, compute_standings
from cup_engine.hosts import HostSelector
from cup_engine.knockout import feeder_match_ids
from cup_engine.match import LiveMatchState, MatchResult, live_view
from cup_engine.nations import Nation, get_nation
from cup_engine.players import SquadPlayer
from cup_engine.timeline import (
    DISPLAY_FINISHED,
    DisplayState,
    Phase,
    PhaseWindow,
    ScheduledMatch,
    completed_match_ids,
    live_matches,
    phase_at,
    upcoming_matches,
)
from cup_engine.tournament import (
    Tournament,
    TournamentSimulator,
    TournamentSummary,
    compute_player_stats,
)

_log = logging.getLogger("cupsim.simulation")

RECENT_MATCHES = 4
UPCOMING_MATCHES = 4
BIGGEST_WIN_MARGIN = 4
BIGGEST_WINS_LIMIT = 20


# ──────────────────────────────────────────────
# CLOCKS
# ──────────────────────────────────────────────

class Clock:
    def now(self) -> int:
        """Current time as Unix milliseconds."""
        raise NotImplementedError


class SystemClock(Clock):
    """Real time shifted by a debug offset in minutes."""

    def __init__(self, offset_minutes: float = 0):
        self._offset = float(offset_minutes)
        self._lock = threading.Lock()

    @property
    def offset(self) -> float:
        return self._offset

    def set_offset(self, minutes: float):
        if not math.isfinite(minutes):
            raise ValueError(f"Time offset must be finite, got {minutes}")
        with self._lock:
            self._offset = float(minutes)
        _log.info(f"Clock offset set to {minutes} minutes")

    def now(self) -> int:
        return int(time.time() * 1000 + self._offset * config.MS_PER_MINUTE)


class FixedClock(Clock):
    """Clock frozen at a timestamp; handy for scripts and tests."""

    def __init__(self, timestamp: int):
        self.timestamp = int(timestamp)

    def now(self) -> int:
        return self.timestamp


# ──────────────────────────────────────────────
# SNAPSHOT TYPES
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class EditionTime:
    edition: int
    cycle_minute: float
    cycle_start: int


@dataclass
class LiveMatch:
    schedule: ScheduledMatch
    display: DisplayState
    state: LiveMatchState

    @property
    def match_id(self) -> str:
        return self.schedule.match_id

    def to_dict(self) -> dict:
        d = self.state.to_dict()
        d.update({
            "schedule": self.schedule.to_dict(),
            "display": self.display.to_dict(),
        })
        return d


@dataclass
class UpcomingMatch:
    schedule: ScheduledMatch
    team_a: Optional[Nation] = None
    team_b: Optional[Nation] = None

    @property
    def match_id(self) -> str:
        return self.schedule.match_id

    def to_dict(self) -> dict:
        d = self.schedule.to_dict()
        d["team_a"] = self.team_a.to_dict() if self.team_a else None
        d["team_b"] = self.team_b.to_dict() if self.team_b else None
        return d


@dataclass
class Snapshot:
    """Read-only view of the world at one timestamp."""
    edition: int
    cycle_minute: float
    cycle_start: int
    phase: PhaseWindow
    tournament: Tournament
    live_matches: List[LiveMatch]
    upcoming: List[UpcomingMatch]
    recent_matches: List[MatchResult]
    standings: List[List[StandingsRow]]
    next_host: Optional[Nation]
    next_cycle_start: int
    minutes_to_next: float
    timestamp: int

    def to_dict(self) -> dict:
        completed = set(completed_match_ids(self.cycle_minute))
        t = self.tournament
        return {
            "edition": self.edition,
            "cycle_minute": self.cycle_minute,
            "cycle_start": self.cycle_start,
            "phase": self.phase.to_dict(),
            "tournament": {
                "edition": t.edition,
                "host": t.host.to_dict(),
                "defending_champion": t.defending_champion_code,
                "draw": t.draw.to_dict(),
                "completed_matches": [
                    m.to_dict() for m in t.all_matches() if m.match_id in completed
                ],
            },
            "live_matches": [m.to_dict() for m in self.live_matches],
            "upcoming": [m.to_dict() for m in self.upcoming],
            "recent_matches": [m.to_dict() for m in self.recent_matches],
            "standings": [[row.to_dict() for row in table] for table in self.standings],
            "next_host": self.next_host.to_dict() if self.next_host else None,
            "next_cycle_start": self.next_cycle_start,
            "minutes_to_next": self.minutes_to_next,
            "timestamp": self.timestamp,
        }


@dataclass
class HistoryStats:
    total_tournaments: int
    total_goals: int = 0
    titles: Dict[str, int] = field(default_factory=dict)
    participations: Dict[str, int] = field(default_factory=dict)
    highest_scoring: Optional[dict] = None
    biggest_wins: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_tournaments": self.total_tournaments,
            "total_goals": self.total_goals,
            "titles": self.titles,
            "participations": self.participations,
            "highest_scoring": self.highest_scoring,
            "biggest_wins": self.biggest_wins,
        }


@dataclass
class CareerRow:
    edition: int
    age: int
    rating: int
    participated: bool = False
    appearances: int = 0
    starts: int = 0
    minutes: int = 0
    goals: int = 0
    golden_boot: bool = False
    best_player: bool = False

    def to_dict(self) -> dict:
        return {
            "edition": self.edition,
            "age": self.age,
            "rating": self.rating,
            "participated": self.participated,
            "appearances": self.appearances,
            "starts": self.starts,
            "minutes": self.minutes,
            "goals": self.goals,
            "golden_boot": self.golden_boot,
            "best_player": self.best_player,
        }


# ──────────────────────────────────────────────
# TIME MAPPING
# ──────────────────────────────────────────────

def timestamp_to_edition(timestamp: int) -> EditionTime:
    """Edition and (fractional) cycle minute of a Unix-ms timestamp."""
    cycle_ms = config.CYCLE_DURATION * config.MS_PER_MINUTE
    elapsed_ms = timestamp - config.EPOCH
    if elapsed_ms < 0:
        return EditionTime(edition=0, cycle_minute=0.0, cycle_start=config.EPOCH)
    edition = int(elapsed_ms // cycle_ms)
    cycle_minute = (elapsed_ms - edition * cycle_ms) / config.MS_PER_MINUTE
    return EditionTime(
        edition=edition,
        cycle_minute=cycle_minute,
        cycle_start=config.EPOCH + edition * cycle_ms,
    )


# ──────────────────────────────────────────────
# WORLD
# ──────────────────────────────────────────────

class WorldCupWorld:
    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self.squads = SquadRegistry()
        self.hosts = HostSelector()
        self.tournaments = TournamentSimulator(self.squads, self.hosts)

    def _resolve(self, timestamp: Optional[int]) -> int:
        return self.clock.now() if timestamp is None else int(timestamp)

    def current_edition(self, timestamp: Optional[int] = None) -> int:
        return timestamp_to_edition(self._resolve(timestamp)).edition

    def tournament(self, edition: int) -> Tournament:
        return self.tournaments.simulate(edition)

    def squad(self, nation_code: str, edition: int) -> List[SquadPlayer]:
        get_nation(nation_code)
        return self.squads.squad_for(nation_code, edition)

    # ── Snapshot ──

    def get_current_state(self, timestamp: Optional[int] = None) -> Snapshot:
        ts = self._resolve(timestamp)
        when = timestamp_to_edition(ts)
        minute = when.cycle_minute
        phase = phase_at(minute)
        t = self.tournament(when.edition)

        extra_time_ids = {m.match_id for m in t.knockout.all_matches() if m.extra_time}
        live = []
        for slot in live_matches(minute, extra_time_ids):
            result = t.find_match(slot.match_id)
            state = live_view(
                result,
                slot.display.minute,
                allow_draw=slot.match.kind == "group",
                finished=slot.display.state == DISPLAY_FINISHED,
            )
            live.append(LiveMatch(slot.match, slot.display, state))

        completed = completed_match_ids(minute)
        done = set(completed)

        upcoming = []
        for m in upcoming_matches(minute, UPCOMING_MATCHES):
            result = t.find_match(m.match_id)
            # Knockout pairings stay hidden until every feeder match is over
            if m.kind == "group" or done.issuperset(feeder_match_ids(m.match_id)):
                upcoming.append(UpcomingMatch(m, result.team_a, result.team_b))
            else:
                upcoming.append(UpcomingMatch(m))

        recent = [t.find_match(mid) for mid in reversed(completed[-RECENT_MATCHES:])]

        standings = compute_standings(
            t.draw.groups,
            [m for m in t.group_stage.matches if m.match_id in done],
        )

        cycle_ms = config.CYCLE_DURATION * config.MS_PER_MINUTE
        return Snapshot(
            edition=when.edition,
            cycle_minute=minute,
            cycle_start=when.cycle_start,
            phase=phase,
            tournament=t,
            live_matches=live,
            upcoming=upcoming,
            recent_matches=recent,
            standings=standings,
            next_host=self._next_host(when.edition, phase.phase),
            next_cycle_start=when.cycle_start + cycle_ms,
            minutes_to_next=config.CYCLE_DURATION - minute,
            timestamp=ts,
        )

    def _next_host(self, edition: int, phase: Phase) -> Optional[Nation]:
        if phase not in (Phase.CELEBRATION, Phase.COUNTDOWN):
            return None
        try:
            return self.hosts.host_for(edition + 1)
        except (KeyError, ValueError) as exc:
            _log.debug(f"Next host for edition {edition + 1} unavailable: {exc}")
            return None

    # ── History ──

    def get_completed_tournaments(self, timestamp: Optional[int] = None) -> List[TournamentSummary]:
        edition = self.current_edition(timestamp)
        return [self.tournaments.summary(e) for e in range(edition)]

    def get_stats(self, timestamp: Optional[int] = None) -> HistoryStats:
        edition = self.current_edition(timestamp)
        stats = HistoryStats(total_tournaments=edition)
        wins = []
        for e in range(edition):
            t = self.tournament(e)
            champ = t.champion.code
            stats.titles[champ] = stats.titles.get(champ, 0) + 1
            for team in t.draw.qualified:
                stats.participations[team.code] = stats.participations.get(team.code, 0) + 1

            goals = t.total_goals
            stats.total_goals += goals
            if stats.highest_scoring is None or goals > stats.highest_scoring["goals"]:
                stats.highest_scoring = {"edition": e, "goals": goals, "host": t.host.to_dict()}

            for m in t.all_matches():
                margin = abs(m.goals_a - m.goals_b)
                if margin >= BIGGEST_WIN_MARGIN:
                    wins.append({
                        "edition": e,
                        "match_id": m.match_id,
                        "team_a": m.team_a.to_dict(),
                        "team_b": m.team_b.to_dict(),
                        "goals_a": m.goals_a,
                        "goals_b": m.goals_b,
                        "margin": margin,
                    })
        wins.sort(key=lambda w: -w["margin"])
        stats.biggest_wins = wins[:BIGGEST_WINS_LIMIT]
        return stats

    def get_player_career(
        self,
        nation_code: str,
        player_id: str,
        timestamp: Optional[int] = None,
    ) -> List[CareerRow]:
        """Edition-by-edition record of one player, up to and including the running edition."""
        nation = get_nation(nation_code)
        ts = self._resolve(timestamp)
        when = timestamp_to_edition(ts)

        rows: List[CareerRow] = []
        for e in range(when.edition + 1):
            player = next((p for p in self.squads.squad_for(nation.code, e) if p.id == player_id), None)
            if player is None:
                continue
            row = CareerRow(edition=e, age=player.age, rating=player.rating)
            t = self.tournament(e)
            if any(team.code == nation.code for team in t.draw.qualified):
                row.participated = True
                if e < when.edition:
                    s = t.player_stats.get(player_id)
                else:
                    done = set(completed_match_ids(when.cycle_minute))
                    played = [m for m in t.all_matches() if m.match_id in done]
                    s = compute_player_stats(e, [nation], played, self.squads).get(player_id)
                if s is not None:
                    row.appearances = s.appearances
                    row.starts = s.starts
                    row.minutes = s.minutes
                    row.goals = s.goals
                if e < when.edition:
                    row.golden_boot = bool(t.golden_boot and t.golden_boot.player.id == player_id)
                    row.best_player = bool(t.best_player and t.best_player.player.id == player_id)
            rows.append(row)

        if not rows:
            raise KeyError(f"No player {player_id!r} for {nation_code} up to edition {when.edition}")
        return rows

    # ── Debug clock ──

    def set_time_offset(self, minutes: float):
        if not isinstance(self.clock, SystemClock):
            raise ValueError("Time offset needs a SystemClock")
        self.clock.set_offset(minutes)

    def get_time_offset(self) -> float:
        if isinstance(self.clock, SystemClock):
            return self.clock.offset
        return 0.0


# ──────────────────────────────────────────────
# MODULE-LEVEL HELPERS
# ──────────────────────────────────────────────

_default_world: Optional[WorldCupWorld] = None
_default_lock = threading.Lock()


def default_world() -> WorldCupWorld:
    global _default_world
    if _default_world is None:
        with _default_lock:
            if _default_world is None:
                _default_world = WorldCupWorld()
    return _default_world


def get_current_state(timestamp: Optional[int] = None) -> Snapshot:
    return default_world().get_current_state(timestamp)


def get_completed_tournaments(timestamp: Optional[int] = None) -> List[TournamentSummary]:
    return default_world().get_completed_tournaments(timestamp)


def get_stats(timestamp: Optional[int] = None) -> HistoryStats:
    return default_world().get_stats(timestamp)


def get_player_career(nation_code: str, player_id: str, timestamp: Optional[int] = None) -> List[CareerRow]:
    return default_world().get_player_career(nation_code, player_id, timestamp)


def set_time_offset(minutes: float):
    default_world().set_time_offset(minutes)


def get_time_offset() -> float:
    return default_world().get_time_offset()
