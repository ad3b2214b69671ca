"""
Timeline: maps a minute of the weekly cycle onto phases and matches.

Each World Cup cycle lasts 10,080 real minutes (one week). A match takes ten
real minutes of play with a ten-second half-time pause and a ten-second
full-time pause, so one football minute is about 6.7 real seconds. Knockout
match windows also reserve the real time needed for 30 minutes of extra
time, so a match that goes the distance is still inside its window when the
shoot-out ends.

Group matches: both matches of a group kick off together; groups are spaced
240 minutes apart inside a 1,920-minute matchday. Knockout rounds split their
phase window into equal slots (two matches per slot in the round of 16 and
quarterfinals, one otherwise).

Every function here takes a cycle minute, fractional values included, and is
independent of which nations are playing.

Usage:
    from cup_engine.timeline import phase_at, live_matches

    phase_at(6000).phase          # Phase.ROUND_16
    live_matches(60.5)            # both group A matchday-1 fixtures
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import AbstractSet, Dict, List, Optional, Tuple

from cup_engine import config
from cup_engine.group_stage import FIXTURE_PATTERN, group_match_id
from cup_engine.knockout import KnockoutRound, parse_round
from cup_engine.players import js_round

MATCH_DURATION = 10.0
HALFTIME_PAUSE = 10 / 60
FULLTIME_PAUSE = 10 / 60
EXTRA_TIME_DURATION = MATCH_DURATION * config.EXTRA_TIME_MINUTES / config.REGULAR_MINUTES
MATCH_WINDOW = MATCH_DURATION + HALFTIME_PAUSE + FULLTIME_PAUSE
KNOCKOUT_MATCH_WINDOW = MATCH_WINDOW + EXTRA_TIME_DURATION

GROUP_MATCHDAY_DURATION = 1920
GROUP_SLOT_SPACING = 240

DISPLAY_PLAYING = "playing"
DISPLAY_HALFTIME = "halftime"
DISPLAY_EXTRA_TIME = "extra_time"
DISPLAY_FINISHED = "finished"


class Phase(enum.Enum):
    DRAW = "DRAW"
    GROUP_STAGE = "GROUP_STAGE"
    REST_1 = "REST_1"
    ROUND_16 = "ROUND_16"
    REST_2 = "REST_2"
    QUARTER = "QUARTER"
    REST_3 = "REST_3"
    SEMI = "SEMI"
    REST_4 = "REST_4"
    THIRD_PLACE = "THIRD_PLACE"
    REST_5 = "REST_5"
    FINAL = "FINAL"
    CELEBRATION = "CELEBRATION"
    COUNTDOWN = "COUNTDOWN"

    @property
    def start(self) -> int:
        return config.SCHEDULE[self.value][0]

    @property
    def end(self) -> int:
        return config.SCHEDULE[self.value][1]

    @property
    def label(self) -> str:
        return config.SCHEDULE[self.value][2]

    @property
    def is_rest(self) -> bool:
        return self.value.startswith("REST_")


KNOCKOUT_PHASES: Dict[KnockoutRound, Phase] = {
    KnockoutRound.R16: Phase.ROUND_16,
    KnockoutRound.QF: Phase.QUARTER,
    KnockoutRound.SF: Phase.SEMI,
    KnockoutRound.THIRD: Phase.THIRD_PLACE,
    KnockoutRound.FINAL: Phase.FINAL,
}

_MATCHES_PER_SLOT: Dict[KnockoutRound, int] = {
    KnockoutRound.R16: 2,
    KnockoutRound.QF: 2,
    KnockoutRound.SF: 1,
    KnockoutRound.THIRD: 1,
    KnockoutRound.FINAL: 1,
}


@dataclass(frozen=True)
class PhaseWindow:
    phase: Phase
    start: int
    end: int
    minute_in_phase: float
    progress: float

    @property
    def label(self) -> str:
        return self.phase.label

    def to_dict(self) -> dict:
        return {
            "phase": self.phase.value,
            "label": self.label,
            "start": self.start,
            "end": self.end,
            "minute_in_phase": self.minute_in_phase,
            "progress": self.progress,
        }


@dataclass(frozen=True)
class ScheduledMatch:
    """A fixture slot on the timeline."""
    match_id: str
    kind: str  # "group" / "knockout"
    start: float
    end: float
    match_index: int
    group: Optional[int] = None
    matchday: Optional[int] = None
    round: Optional[KnockoutRound] = None

    def to_dict(self) -> dict:
        return {
            "match_id": self.match_id,
            "kind": self.kind,
            "start": self.start,
            "end": self.end,
            "match_index": self.match_index,
            "group": self.group,
            "matchday": self.matchday,
            "round": self.round.value if self.round else None,
        }


@dataclass(frozen=True)
class DisplayState:
    minute: int
    state: str  # playing / halftime / extra_time / finished

    def to_dict(self) -> dict:
        return {"minute": self.minute, "state": self.state}


@dataclass(frozen=True)
class LiveSlot:
    match: ScheduledMatch
    display: DisplayState

    @property
    def match_id(self) -> str:
        return self.match.match_id


# ──────────────────────────────────────────────
# PHASES
# ──────────────────────────────────────────────

def phase_at(cycle_minute: float) -> PhaseWindow:
    """Phase containing ``cycle_minute``; phases tile [0, cycle) without gaps."""
    if not 0 <= cycle_minute < config.CYCLE_DURATION:
        raise ValueError(f"Cycle minute out of range: {cycle_minute}")
    for phase in Phase:
        if phase.start <= cycle_minute < phase.end:
            return PhaseWindow(
                phase=phase,
                start=phase.start,
                end=phase.end,
                minute_in_phase=cycle_minute - phase.start,
                progress=(cycle_minute - phase.start) / (phase.end - phase.start),
            )
    raise ValueError(f"No phase covers minute {cycle_minute}")


# ──────────────────────────────────────────────
# MATCH TIMING
# ──────────────────────────────────────────────

def group_match_timing(matchday: int, group: int, match_index: int = 0) -> Tuple[float, float]:
    """(start, end) of a group match; both matches of a group share the slot."""
    if not 0 <= matchday < len(FIXTURE_PATTERN):
        raise IndexError(f"Matchday out of range: {matchday}")
    if not 0 <= group < config.GROUP_COUNT:
        raise IndexError(f"Group out of range: {group}")
    if not 0 <= match_index < len(FIXTURE_PATTERN[matchday]):
        raise IndexError(f"Match index out of range: {match_index}")
    start = Phase.GROUP_STAGE.start + matchday * GROUP_MATCHDAY_DURATION + group * GROUP_SLOT_SPACING
    return start, start + MATCH_WINDOW


def knockout_match_timing(round, match_index: int = 0) -> Tuple[float, float]:
    rnd = parse_round(round)
    rnd.match_id(match_index)  # validates the index
    phase = KNOCKOUT_PHASES[rnd]
    per_slot = _MATCHES_PER_SLOT[rnd]
    slots = math.ceil(rnd.match_count / per_slot)
    slot_duration = (phase.end - phase.start) / slots
    start = math.floor(phase.start + (match_index // per_slot) * slot_duration)
    return start, start + KNOCKOUT_MATCH_WINDOW


def match_display_state(elapsed: float, extra_time: bool = False) -> DisplayState:
    """Football minute shown ``elapsed`` real minutes after kick-off."""
    half = MATCH_DURATION / 2
    if elapsed < half:
        return DisplayState(max(1, min(45, js_round(elapsed / half * 45))), DISPLAY_PLAYING)
    if elapsed < half + HALFTIME_PAUSE:
        return DisplayState(45, DISPLAY_HALFTIME)
    second_half_end = MATCH_DURATION + HALFTIME_PAUSE
    if elapsed < second_half_end:
        t = elapsed - half - HALFTIME_PAUSE
        return DisplayState(max(46, min(90, 46 + js_round(t / half * 44))), DISPLAY_PLAYING)
    if not extra_time:
        return DisplayState(config.REGULAR_MINUTES, DISPLAY_FINISHED)
    if elapsed < second_half_end + EXTRA_TIME_DURATION:
        t = elapsed - second_half_end
        minute = 91 + js_round(t / EXTRA_TIME_DURATION * (config.EXTRA_TIME_MINUTES - 1))
        return DisplayState(max(91, min(120, minute)), DISPLAY_EXTRA_TIME)
    return DisplayState(config.REGULAR_MINUTES + config.EXTRA_TIME_MINUTES, DISPLAY_FINISHED)


# ──────────────────────────────────────────────
# SCHEDULE QUERIES
# ──────────────────────────────────────────────

_schedule_cache: Optional[List[ScheduledMatch]] = None


def all_scheduled_matches() -> List[ScheduledMatch]:
    """All 64 fixture slots in kick-off order."""
    global _schedule_cache
    if _schedule_cache is None:
        matches = []
        for day, pairs in enumerate(FIXTURE_PATTERN):
            for g in range(config.GROUP_COUNT):
                for idx in range(len(pairs)):
                    start, end = group_match_timing(day, g, idx)
                    matches.append(ScheduledMatch(
                        match_id=group_match_id(g, day, idx),
                        kind="group",
                        start=start,
                        end=end,
                        match_index=idx,
                        group=g,
                        matchday=day,
                    ))
        for rnd in KnockoutRound:
            for i in range(rnd.match_count):
                start, end = knockout_match_timing(rnd, i)
                matches.append(ScheduledMatch(
                    match_id=rnd.match_id(i),
                    kind="knockout",
                    start=start,
                    end=end,
                    match_index=i,
                    round=rnd,
                ))
        _schedule_cache = sorted(matches, key=lambda m: m.start)
    return list(_schedule_cache)


def live_matches(cycle_minute: float, extra_time_ids: AbstractSet[str] = frozenset()) -> List[LiveSlot]:
    """Matches whose window contains ``cycle_minute``, with their display state."""
    return [
        LiveSlot(m, match_display_state(cycle_minute - m.start, m.match_id in extra_time_ids))
        for m in all_scheduled_matches()
        if m.start <= cycle_minute < m.end
    ]


def completed_match_ids(cycle_minute: float) -> List[str]:
    return [m.match_id for m in all_scheduled_matches() if cycle_minute >= m.end]


def upcoming_matches(cycle_minute: float, limit: int = 4) -> List[ScheduledMatch]:
    return [m for m in all_scheduled_matches() if m.start > cycle_minute][:limit]
