"""
Perpetual World Cup Simulation Engine
"""

from .prng import SeededRNG, hash_seed, combine_seed
from .nations import Nation, all_nations, get_nation, nation_list
from .hosts import HostSelector, choose_host
from .players import SquadPlayer, generate_base_squad
from .evolution import SquadRegistry, MatchLineup, lineup_for, players_on_field, player_match_stats
from .draw import DrawResult, DrawStep, perform_draw
from .match import GoalEvent, PenaltyShootout, MatchResult, LiveMatchState, simulate_match, live_view
from .group_stage import StandingsRow, compute_standings, group_qualifiers, group_match_list
from .knockout import KnockoutRound, KnockoutResult, find_knockout_match, knockout_match_list
from .tournament import Tournament, TournamentSummary, PlayerTournamentStats, TournamentSimulator
from .timeline import (
    Phase, PhaseWindow, phase_at,
    group_match_timing, knockout_match_timing, match_display_state,
    live_matches, completed_match_ids, upcoming_matches, all_scheduled_matches,
)
from .simulation import (
    Clock, SystemClock, FixedClock, WorldCupWorld, Snapshot,
    timestamp_to_edition, get_current_state, get_completed_tournaments,
    get_stats, get_player_career, set_time_offset, get_time_offset,
)

__all__ = [
    "SeededRNG",
    "hash_seed",
    "combine_seed",
    "Nation",
    "all_nations",
    "get_nation",
    "nation_list",
    "HostSelector",
    "choose_host",
    "SquadPlayer",
    "generate_base_squad",
    "SquadRegistry",
    "MatchLineup",
    "lineup_for",
    "players_on_field",
    "player_match_stats",
    "DrawResult",
    "DrawStep",
    "perform_draw",
    "GoalEvent",
    "PenaltyShootout",
    "MatchResult",
    "LiveMatchState",
    "simulate_match",
    "live_view",
    "StandingsRow",
    "compute_standings",
    "group_qualifiers",
    "group_match_list",
    "KnockoutRound",
    "KnockoutResult",
    "find_knockout_match",
    "knockout_match_list",
    "Tournament",
    "TournamentSummary",
    "PlayerTournamentStats",
    "TournamentSimulator",
    "Phase",
    "PhaseWindow",
    "phase_at",
    "group_match_timing",
    "knockout_match_timing",
    "match_display_state",
    "live_matches",
    "completed_match_ids",
    "upcoming_matches",
    "all_scheduled_matches",
    "Clock",
    "SystemClock",
    "FixedClock",
    "WorldCupWorld",
    "Snapshot",
    "timestamp_to_edition",
    "get_current_state",
    "get_completed_tournaments",
    "get_stats",
    "get_player_career",
    "set_time_offset",
    "get_time_offset",
]
