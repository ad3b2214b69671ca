"""
World Cup draw: qualification, pots and group assignment.

32 nations qualify per edition. The host takes a bonus spot, the defending
champion qualifies automatically (counting against its confederation's
quota) and the remaining quota places go by weighted sampling without
replacement, weight rating^10, so the giants nearly always make it while a
near-miss occasionally sneaks through.

Pots are filled by rating (host and champion forced into pot 1) and shuffled.
The host opens group A, the champion group B, the rest of pot 1 fills the
remaining groups in order, and pots 2-4 are drawn one nation at a time into a
random group that still has room and fewer than two nations of its
confederation.

Usage:
    from cup_engine.draw import perform_draw
    from cup_engine.nations import get_nation

    result = perform_draw(1, get_nation("es"), "ar")
    result.groups[0]      # group A, host first
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from cup_engine import config
from cup_engine.nations import Nation, find_nation, nation_list
from cup_engine.prng import SeededRNG, combine_seed

_log = logging.getLogger("cupsim.draw")

GROUP_LETTERS = "ABCDEFGH"

REASON_HOST = "host"
REASON_CHAMPION = "champion"
REASON_DRAW = "draw"


@dataclass(frozen=True)
class DrawStep:
    """One reveal in the draw ceremony."""
    team: Nation
    group: int
    pot: int
    reason: str  # host / champion / draw

    def to_dict(self) -> dict:
        return {
            "team": self.team.to_dict(),
            "group": self.group,
            "group_letter": GROUP_LETTERS[self.group],
            "pot": self.pot,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class DrawResult:
    pots: List[List[Nation]]
    groups: List[List[Nation]]
    sequence: List[DrawStep]

    @property
    def qualified(self) -> List[Nation]:
        return [team for group in self.groups for team in group]

    def group_of(self, code: str) -> int:
        for index, group in enumerate(self.groups):
            if any(team.code == code for team in group):
                return index
        raise KeyError(f"{code!r} is not in this draw")

    def to_dict(self) -> dict:
        return {
            "pots": [[t.to_dict() for t in pot] for pot in self.pots],
            "groups": {
                GROUP_LETTERS[i]: [t.to_dict() for t in group]
                for i, group in enumerate(self.groups)
            },
            "sequence": [step.to_dict() for step in self.sequence],
        }


# ──────────────────────────────────────────────
# QUALIFICATION
# ──────────────────────────────────────────────

def _weighted_pick_n(rng: SeededRNG, items: Sequence[Nation], weights: Sequence[float], count: int) -> List[Nation]:
    """Weighted sampling without replacement."""
    pool = list(zip(items, weights))
    picked: List[Nation] = []
    for _ in range(min(count, len(pool))):
        r = rng.next() * sum(w for _, w in pool)
        idx = len(pool) - 1
        for j, (_, w) in enumerate(pool):
            r -= w
            if r <= 0:
                idx = j
                break
        picked.append(pool.pop(idx)[0])
    return picked


def select_qualified(rng: SeededRNG, host: Nation, defending_champion_code: Optional[str]) -> List[Nation]:
    selected = {host.code}
    result = [host]

    champion = find_nation(defending_champion_code) if defending_champion_code else None
    if champion is not None and champion.code not in selected:
        selected.add(champion.code)
        result.append(champion)

    for confederation, spots in config.CONFEDERATION_SPOTS.items():
        reserved = sum(
            1 for t in result
            if t.confederation == confederation and t.code != host.code
        )
        open_spots = spots - reserved
        if open_spots <= 0:
            continue
        candidates = [
            n for n in nation_list()
            if n.confederation == confederation and n.code not in selected
        ]
        if not candidates:
            continue
        weights = [float(n.rating) ** 10 for n in candidates]
        for team in _weighted_pick_n(rng, candidates, weights, open_spots):
            selected.add(team.code)
            result.append(team)

    if len(result) != config.TOTAL_TEAMS:
        raise ValueError(f"Qualification produced {len(result)} teams, expected {config.TOTAL_TEAMS}")
    return result


# ──────────────────────────────────────────────
# POTS & GROUPS
# ──────────────────────────────────────────────

def valid_groups(groups: List[List[Nation]], team: Nation) -> List[int]:
    """Groups with room that stay within the confederation limit."""
    valid = [
        g for g, group in enumerate(groups)
        if len(group) < config.TEAMS_PER_GROUP
        and sum(1 for t in group if t.confederation == team.confederation) < config.MAX_PER_CONFEDERATION
    ]
    if valid:
        return valid
    _log.debug(f"Confederation limit relaxed for {team.code} ({team.confederation})")
    return [g for g, group in enumerate(groups) if len(group) < config.TEAMS_PER_GROUP]


def perform_draw(edition: int, host: Nation, defending_champion_code: Optional[str]) -> DrawResult:
    rng = SeededRNG(combine_seed("draw", edition))

    qualified = select_qualified(rng, host, defending_champion_code)
    ranked = sorted(qualified, key=lambda t: -t.rating)

    pots: List[List[Nation]] = [[] for _ in range(config.TOTAL_TEAMS // config.POT_SIZE)]
    pots[0].append(host)
    remaining = [t for t in ranked if t.code != host.code]

    champion = next((t for t in remaining if t.code == defending_champion_code), None)
    if champion is not None:
        pots[0].append(champion)
        remaining.remove(champion)

    while len(pots[0]) < config.POT_SIZE:
        pots[0].append(remaining.pop(0))
    for i, team in enumerate(remaining):
        pots[min(len(pots) - 1, i // config.POT_SIZE + 1)].append(team)

    pots = [rng.shuffle(pot) for pot in pots]

    groups: List[List[Nation]] = [[] for _ in range(config.GROUP_COUNT)]
    sequence: List[DrawStep] = []

    groups[0].append(host)
    sequence.append(DrawStep(host, 0, 0, REASON_HOST))
    if champion is not None:
        groups[1].append(champion)
        sequence.append(DrawStep(champion, 1, 0, REASON_CHAMPION))

    forced = {host.code, champion.code if champion else None}
    open_groups = [g for g, group in enumerate(groups) if not group]
    for g, team in zip(open_groups, (t for t in pots[0] if t.code not in forced)):
        groups[g].append(team)
        sequence.append(DrawStep(team, g, 0, REASON_DRAW))

    for p in range(1, len(pots)):
        for team in pots[p]:
            g = rng.pick(valid_groups(groups, team))
            groups[g].append(team)
            sequence.append(DrawStep(team, g, p, REASON_DRAW))

    return DrawResult(pots=pots, groups=groups, sequence=sequence)
