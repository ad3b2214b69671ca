#!/usr/bin/env python3
"""
Roster Tests
============

Base squads, naming rules, cross-edition evolution, lineups and per-match
player statistics.
"""

import pytest

from cup_engine import config
from cup_engine.evolution import (
    SquadRegistry,
    evolve_squad,
    lineup_for,
    player_match_stats,
    players_on_field,
    retirement_probability,
)
from cup_engine.nations import get_nation, nation_list
from cup_engine.players import (
    culture_pool,
    generate_base_squad,
    generate_name,
    js_round,
    naming_rules,
    position_group,
)
from cup_engine.prng import SeededRNG


@pytest.fixture(scope="module")
def registry():
    return SquadRegistry()


# ═══════════════════════════════════════════════════════════════
# BASE SQUADS
# ═══════════════════════════════════════════════════════════════

class TestBaseSquad:
    def test_every_nation_has_25_players(self):
        for nation in nation_list():
            squad = generate_base_squad(nation)
            assert len(squad) == config.SQUAD_SIZE, nation.code

    def test_position_layout(self):
        squad = generate_base_squad(get_nation("es"))
        assert [p.position for p in squad] == config.SQUAD_POSITIONS
        assert squad[0].position == "GK"
        assert squad[3].position == "DF"
        assert squad[11].position == "MF"
        assert squad[19].position == "FW"

    def test_ratings_and_ages_in_bounds(self):
        for nation in nation_list():
            for p in generate_base_squad(nation):
                assert config.MIN_PLAYER_RATING <= p.rating <= config.MAX_PLAYER_RATING
                assert 18 <= p.age <= 33

    def test_ids_follow_slot_order(self):
        squad = generate_base_squad(get_nation("br"))
        assert [p.id for p in squad] == [f"br-{i}" for i in range(25)]
        assert not any(p.is_replacement for p in squad)

    def test_deterministic(self):
        a = generate_base_squad(get_nation("fr"))
        b = generate_base_squad(get_nation("fr"))
        assert a == b

    def test_names_mostly_unique(self):
        squad = generate_base_squad(get_nation("de"))
        assert len({p.name for p in squad}) >= 23

    def test_first_keeper_stronger_than_third(self):
        for code in ("es", "br", "ar", "us"):
            squad = generate_base_squad(get_nation(code))
            assert squad[0].rating > squad[2].rating

    def test_strong_nation_outrates_weak_nation(self):
        strong = generate_base_squad(get_nation("br"))
        weak = generate_base_squad(get_nation("nz"))
        avg = lambda s: sum(p.rating for p in s) / len(s)
        assert avg(strong) > avg(weak) + 10


class TestNaming:
    def test_unknown_code_falls_back_to_default_pool(self):
        assert culture_pool("zz-unknown").key == "british"

    def test_every_nation_has_a_pool(self):
        for nation in nation_list():
            pool = culture_pool(nation.code)
            assert pool.first and pool.last

    def test_iceland_patronymics(self):
        rng = SeededRNG(2024)
        names = [generate_name(rng, "is") for _ in range(200)]
        patronymic = [n for n in names if n.endswith("son")]
        assert len(patronymic) > 100

    def test_brazil_single_names_and_nicknames(self):
        rng = SeededRNG(77)
        names = [generate_name(rng, "br") for _ in range(300)]
        assert any(" " not in n for n in names)
        assert any(" " in n for n in names)

    def test_rules_absent_for_plain_nations(self):
        rules = naming_rules("gb-eng")
        assert rules.patronymic == 0 and rules.single_name == 0 and rules.nickname == 0

    def test_spanish_compound_surnames(self):
        rng = SeededRNG(5)
        names = [generate_name(rng, "es") for _ in range(300)]
        assert any(len(n.split(" ")) >= 3 for n in names)


class TestHelpers:
    def test_js_round_half_up(self):
        assert js_round(2.5) == 3
        assert js_round(3.5) == 4
        assert js_round(-2.5) == -2
        assert js_round(79.4) == 79

    def test_position_group(self):
        assert position_group(0) == (0, 3)
        assert position_group(10) == (7, 8)
        assert position_group(11) == (0, 8)
        assert position_group(24) == (5, 6)
        with pytest.raises(IndexError):
            position_group(25)


# ═══════════════════════════════════════════════════════════════
# EVOLUTION
# ═══════════════════════════════════════════════════════════════

class TestEvolution:
    def test_retirement_curve(self):
        assert retirement_probability(38) == 1.0
        assert retirement_probability(40) == 1.0
        assert retirement_probability(37) == 0.85
        assert retirement_probability(35) == 0.45
        assert retirement_probability(33) == 0.18
        assert retirement_probability(31) == 0.06
        assert retirement_probability(25) == 0.02

    def test_edition_zero_is_base_squad(self, registry):
        assert registry.squad_for("es", 0) == generate_base_squad(get_nation("es"))

    def test_layout_survives_evolution(self, registry):
        for edition in range(6):
            squad = registry.squad_for("ar", edition)
            assert [p.position for p in squad] == config.SQUAD_POSITIONS

    def test_survivors_age_four_years(self, registry):
        before = {p.id: p for p in registry.squad_for("it", 0)}
        after = registry.squad_for("it", 1)
        survivors = [p for p in after if p.id in before]
        assert survivors
        for p in survivors:
            assert p.age == before[p.id].age + 4

    def test_replacements_are_young_prospects(self, registry):
        replacements = [
            p for e in range(1, 5) for p in registry.squad_for("pt", e)
            if p.is_replacement
        ]
        assert replacements
        for p in replacements:
            assert "-slot" in p.id and "-gen" in p.id
            assert 18 <= p.age <= 23 + 4 * 3

    def test_nobody_older_than_37(self, registry):
        for e in range(8):
            for p in registry.squad_for("de", e):
                assert p.age <= 37

    def test_memoized_and_stable(self, registry):
        a = registry.squad_for("jp", 4)
        b = registry.squad_for("jp", 4)
        assert a == b
        fresh = SquadRegistry()
        assert fresh.squad_for("jp", 4) == a

    def test_fold_matches_manual_evolution(self):
        reg = SquadRegistry()
        squad = generate_base_squad(get_nation("mx"))
        for e in range(1, 4):
            squad = evolve_squad(squad, "mx", e)
        assert reg.squad_for("mx", 3) == squad

    def test_negative_edition_rejected(self, registry):
        with pytest.raises(ValueError):
            registry.squad_for("es", -1)

    def test_unknown_nation_rejected(self):
        with pytest.raises(KeyError):
            SquadRegistry().squad_for("zz", 0)

    def test_find_player(self, registry):
        assert registry.find_player("es", 0, "es-0").id == "es-0"
        with pytest.raises(KeyError):
            registry.find_player("es", 0, "es-99")


# ═══════════════════════════════════════════════════════════════
# LINEUPS & MATCH STATS
# ═══════════════════════════════════════════════════════════════

class TestLineups:
    def test_starting_shape(self, registry):
        squad = registry.squad_for("fr", 2)
        lineup = lineup_for(squad, "fr", 2, "G-C-1-0")
        positions = [p.position for p in lineup.starters]
        assert len(lineup.starters) == 11
        for pos, count in config.STARTING_SHAPE.items():
            assert positions.count(pos) == count

    def test_starters_are_best_in_position(self, registry):
        squad = registry.squad_for("fr", 2)
        lineup = lineup_for(squad, "fr", 2, "R16-3")
        starting_ids = {p.id for p in lineup.starters}
        for pos, count in config.STARTING_SHAPE.items():
            group = [p for p in squad if p.position == pos]
            worst_starter = min(p.rating for p in lineup.starters if p.position == pos)
            best_bench = max((p.rating for p in group if p.id not in starting_ids), default=0)
            assert worst_starter >= best_bench

    def test_five_substitutions_sorted(self, registry):
        squad = registry.squad_for("gb-eng", 1)
        lineup = lineup_for(squad, "gb-eng", 1, "QF-2")
        minutes = [s.minute for s in lineup.substitutions]
        assert len(lineup.substitutions) == config.MAX_SUBSTITUTIONS
        assert minutes == sorted(minutes)
        assert all(45 <= m <= 90 for m in minutes)
        assert len({s.player_out.id for s in lineup.substitutions}) == 5
        assert len({s.player_in.id for s in lineup.substitutions}) == 5

    def test_always_eleven_on_the_pitch(self, registry):
        squad = registry.squad_for("nl", 3)
        lineup = lineup_for(squad, "nl", 3, "FINAL")
        for minute in range(1, 121):
            assert len(players_on_field(lineup, minute)) == 11

    def test_substitute_enters_at_entry_minute(self, registry):
        squad = registry.squad_for("nl", 3)
        lineup = lineup_for(squad, "nl", 3, "FINAL")
        sub = lineup.substitutions[0]
        before = {p.id for p in players_on_field(lineup, sub.minute - 1)}
        at = {p.id for p in players_on_field(lineup, sub.minute)}
        assert sub.player_out.id in before and sub.player_in.id not in before
        assert sub.player_in.id in at and sub.player_out.id not in at

    def test_deterministic_per_match(self, registry):
        squad = registry.squad_for("be", 1)
        assert lineup_for(squad, "be", 1, "SF-0") == lineup_for(squad, "be", 1, "SF-0")

    def test_match_stats_minutes(self, registry):
        squad = registry.squad_for("hr", 0)
        lineup = lineup_for(squad, "hr", 0, "G-D-2-1")
        stats = player_match_stats(lineup, 90, [lineup.starters[-1].id])
        assert len(stats) == 16
        for sub in lineup.substitutions:
            assert stats[sub.player_out.id].minutes == sub.minute - 1
            assert stats[sub.player_out.id].started
            assert stats[sub.player_in.id].minutes == 90 - sub.minute + 1
            assert not stats[sub.player_in.id].started
        assert stats[lineup.starters[-1].id].goals == 1

    def test_match_stats_extra_time(self, registry):
        squad = registry.squad_for("hr", 0)
        lineup = lineup_for(squad, "hr", 0, "R16-1")
        stats = player_match_stats(lineup, 120)
        keeper = lineup.starters[0]
        subbed_off = {s.player_out.id for s in lineup.substitutions}
        if keeper.id not in subbed_off:
            assert stats[keeper.id].minutes == 120
