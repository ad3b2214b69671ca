#!/usr/bin/env python3
"""
Match Engine Tests
==================

Determinism, draws and knockout resolution, scorer attribution, penalty
shoot-outs and the live view.
"""

import pytest

from cup_engine import config
from cup_engine.evolution import SquadRegistry, lineup_for, players_on_field
from cup_engine.match import (
    SIDE_A,
    SIDE_B,
    goal_probability,
    live_view,
    simulate_match,
    simulate_penalties,
)
from cup_engine.nations import get_nation
from cup_engine.prng import SeededRNG


@pytest.fixture(scope="module")
def squads():
    return SquadRegistry()


def _pairs():
    return [
        (get_nation("es"), get_nation("br")),
        (get_nation("fr"), get_nation("nz")),
        (get_nation("us"), get_nation("mx")),
        (get_nation("ar"), get_nation("jp")),
    ]


# ═══════════════════════════════════════════════════════════════
# SIMULATION
# ═══════════════════════════════════════════════════════════════

class TestSimulateMatch:
    def test_deterministic(self, squads):
        a, b = get_nation("es"), get_nation("de")
        r1 = simulate_match(3, "G-B-1-0", a, b, True, squads)
        r2 = simulate_match(3, "G-B-1-0", a, b, True, squads)
        assert r1 == r2

    def test_match_id_changes_result_stream(self):
        a, b = get_nation("es"), get_nation("de")
        results = {
            tuple(e.minute for e in simulate_match(0, f"G-A-0-{i}", a, b).events)
            for i in range(6)
        }
        assert len(results) > 1

    def test_score_matches_events(self, squads):
        for e in range(5):
            for a, b in _pairs():
                r = simulate_match(e, "G-C-2-1", a, b, True, squads)
                assert r.goals_a == sum(1 for ev in r.events if ev.side == SIDE_A)
                assert r.goals_b == sum(1 for ev in r.events if ev.side == SIDE_B)

    def test_events_in_minute_order(self, squads):
        r = simulate_match(1, "SF-1", get_nation("fr"), get_nation("nz"), False, squads)
        minutes = [e.minute for e in r.events]
        assert minutes == sorted(minutes)
        assert all(1 <= m <= 120 for m in minutes)

    def test_group_draws_happen(self):
        a, b = get_nation("es"), get_nation("pt")
        draws = [
            simulate_match(0, f"G-A-{d}-{i}-{n}", a, b, True)
            for d in range(3) for i in range(2) for n in range(20)
        ]
        assert any(r.winner is None for r in draws)
        assert all(r.extra_time is False for r in draws)

    def test_knockout_always_has_a_winner(self):
        a, b = get_nation("es"), get_nation("pt")
        for n in range(150):
            r = simulate_match(n, "R16-0", a, b, False)
            assert r.winner in (SIDE_A, SIDE_B)
            assert r.winner_team is not None and r.loser_team is not None
            assert r.winner_team != r.loser_team

    def test_extra_time_and_penalties(self):
        a, b = get_nation("es"), get_nation("pt")
        results = [simulate_match(n, "QF-0", a, b, False) for n in range(300)]
        extra = [r for r in results if r.extra_time]
        assert extra
        for r in extra:
            regular = [e for e in r.events if e.minute <= 90]
            assert sum(1 for e in regular if e.side == SIDE_A) == sum(1 for e in regular if e.side == SIDE_B)
        shootouts = [r for r in results if r.penalties]
        assert shootouts
        for r in shootouts:
            assert r.goals_a == r.goals_b
            assert r.extra_time
            assert r.winner == r.penalties.winner
        for r in results:
            if not r.extra_time:
                assert r.goals_a != r.goals_b
                assert r.penalties is None

    def test_scorers_are_on_the_pitch(self, squads):
        for a, b in _pairs():
            r = simulate_match(2, "G-E-0-0", a, b, True, squads)
            lineups = {
                SIDE_A: lineup_for(squads.squad_for(a.code, 2), a.code, 2, r.match_id),
                SIDE_B: lineup_for(squads.squad_for(b.code, 2), b.code, 2, r.match_id),
            }
            for ev in r.events:
                on_field = {p.id for p in players_on_field(lineups[ev.side], ev.minute)}
                assert ev.scorer_id in on_field
                assert ev.nation_code == (a.code if ev.side == SIDE_A else b.code)

    def test_no_scorer_without_squads(self):
        r = simulate_match(0, "G-A-0-0", get_nation("fr"), get_nation("nz"))
        for ev in r.events:
            assert ev.scorer_id is None

    def test_first_goal_minute_independent_of_squads(self, squads):
        a, b = get_nation("ar"), get_nation("jp")
        with_squads = simulate_match(4, "G-H-1-1", a, b, True, squads)
        without = simulate_match(4, "G-H-1-1", a, b, True)
        assert [e.minute for e in with_squads.events][:1] == [e.minute for e in without.events][:1]

    def test_stronger_side_wins_more(self):
        a, b = get_nation("br"), get_nation("nz")
        wins = sum(
            1 for n in range(100)
            if simulate_match(n, "G-A-0-0", a, b).winner == SIDE_A
        )
        assert wins > 60

    def test_goal_probability(self):
        assert goal_probability(80, 80, 10) == pytest.approx(config.GOAL_PROBABILITY_BASE)
        assert goal_probability(80, 80, 80) == pytest.approx(config.GOAL_PROBABILITY_BASE + config.FATIGUE_BOOST)
        assert goal_probability(90, 60, 10) == goal_probability(60, 90, 10)


# ═══════════════════════════════════════════════════════════════
# PENALTIES
# ═══════════════════════════════════════════════════════════════

class TestPenalties:
    def test_shootouts_are_decided(self):
        for seed in range(300):
            p = simulate_penalties(SeededRNG(seed))
            assert p.winner in (SIDE_A, SIDE_B)
            if p.score_a != p.score_b:
                assert p.winner == (SIDE_A if p.score_a > p.score_b else SIDE_B)

    def test_kick_counts_add_up(self):
        for seed in range(100):
            p = simulate_penalties(SeededRNG(seed))
            assert sum(1 for k in p.kicks if k.side == SIDE_A and k.scored) == p.score_a
            assert sum(1 for k in p.kicks if k.side == SIDE_B and k.scored) == p.score_b
            assert p.kicks[0].side == SIDE_A

    def test_early_finish(self):
        # Some shoot-outs end before all ten regulation kicks
        lengths = [len(simulate_penalties(SeededRNG(s)).kicks) for s in range(300)]
        assert min(lengths) < 2 * config.PENALTY_ROUNDS

    def test_never_beyond_cap(self):
        for seed in range(300):
            p = simulate_penalties(SeededRNG(seed))
            assert max(k.round for k in p.kicks) <= config.PENALTY_SUDDEN_DEATH_CAP


# ═══════════════════════════════════════════════════════════════
# LIVE VIEW
# ═══════════════════════════════════════════════════════════════

@pytest.fixture(scope="module")
def extra_time_result(squads):
    """First seeded es-pt semi-final that reaches extra time with goals."""
    a, b = get_nation("es"), get_nation("pt")
    for n in range(500):
        r = simulate_match(n, "SF-0", a, b, False, squads)
        if r.extra_time and r.events:
            return r
    pytest.fail("no es-pt semi-final with goals went to extra time in 500 editions")


class TestLiveView:

    def test_monotone_score(self, squads):
        r = simulate_match(1, "G-A-1-1", get_nation("fr"), get_nation("nz"), True, squads)
        prev = (0, 0)
        for minute in range(0, 91):
            v = live_view(r, minute)
            assert v.goals_a >= prev[0] and v.goals_b >= prev[1]
            prev = (v.goals_a, v.goals_b)
        assert prev == (r.goals_a, r.goals_b)

    def test_prefix_consistency(self, extra_time_result):
        r = extra_time_result
        for minute in (10, 45, 89, 95, 119):
            v = live_view(r, minute, allow_draw=False)
            assert v.events == tuple(e for e in r.events if e.minute <= minute)

    def test_finish_points(self, extra_time_result):
        r = extra_time_result
        assert not live_view(r, 90, allow_draw=False).is_finished
        assert live_view(r, 100, allow_draw=False).is_live
        done = live_view(r, 120, allow_draw=False)
        assert done.is_finished and not done.is_live
        assert done.winner == r.winner
        assert done.penalties == r.penalties

    def test_hidden_until_finished(self, extra_time_result):
        r = extra_time_result
        v = live_view(r, 60, allow_draw=False)
        assert v.winner is None
        assert v.penalties is None
        assert v.extra_time is False

    def test_clock_decides_final_whistle(self, extra_time_result):
        r = extra_time_result
        running = live_view(r, 120, allow_draw=False, finished=False)
        assert running.minute == 120
        assert running.is_live and not running.is_finished
        assert running.winner is None and running.penalties is None
        assert running.extra_time
        done = live_view(r, 120, allow_draw=False, finished=True)
        assert done.is_finished and done.winner == r.winner
        assert done.penalties == r.penalties

    def test_extra_time_match_reaches_120(self, extra_time_result):
        assert extra_time_result.match_minutes == 120
        assert extra_time_result.winner is not None

    def test_group_match_finishes_at_90(self):
        r = simulate_match(0, "G-A-0-0", get_nation("us"), get_nation("mx"))
        assert live_view(r, 90).is_finished
        assert live_view(r, 89).is_live
        assert not live_view(r, 0).is_live
