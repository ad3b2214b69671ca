"""
Perpetual World Cup Squad Generation

Fictional 25-man squads for every nation: 3 GK, 8 DF, 8 MF, 6 FW, always in
that slot order. Names are culturally coherent per nation, ratings are banded
by the nation's strength and the player's rank inside his position group,
and ages follow the usual shape of an international squad (experienced first
keeper, prospects on the bench).

Name pools live in data/name_pools.json. A few nations get special naming
rules, each gated by its own probability:

  compound_surname   Iberian pools: "García Pérez"
  patronymic         Iceland: surname built from the father's first name
  single_name        Brazil: "Pedro"
  nickname           Lusophone nations: "Juninho", "Dudu"

Edition-0 squads are a pure function of the nation code; later editions are
evolved from them in evolution.py.

Usage:
    from cup_engine.players import generate_base_squad
    from cup_engine.nations import get_nation

    squad = generate_base_squad(get_nation("br"))
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from cup_engine import config
from cup_engine.nations import DATA_DIR, Nation
from cup_engine.prng import SeededRNG, combine_seed

_NAME_POOLS_PATH = DATA_DIR / "name_pools.json"
_pools_cache: Optional[dict] = None


def _load_pools() -> dict:
    global _pools_cache
    if _pools_cache is None:
        with open(_NAME_POOLS_PATH, encoding="utf-8") as f:
            _pools_cache = json.load(f)
    return _pools_cache


def js_round(value: float) -> int:
    """Round half up, as the reference platform does (not banker's rounding)."""
    return math.floor(value + 0.5)


# ──────────────────────────────────────────────
# DATACLASSES
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class SquadPlayer:
    """One squad member for one edition."""
    id: str
    name: str
    nation_code: str
    position: str   # GK / DF / MF / FW
    rating: int
    age: int
    is_replacement: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "nation_code": self.nation_code,
            "position": self.position,
            "rating": self.rating,
            "age": self.age,
            "is_replacement": self.is_replacement,
        }


@dataclass(frozen=True)
class CulturePool:
    key: str
    first: Tuple[str, ...]
    last: Tuple[str, ...]
    compound_surname: float = 0.0
    nicknames: Tuple[str, ...] = ()


@dataclass(frozen=True)
class NamingRules:
    """Per-nation naming quirks; zero probability means the rule never fires."""
    patronymic: float = 0.0
    patronymic_suffix: str = "sson"
    single_name: float = 0.0
    nickname: float = 0.0


# ──────────────────────────────────────────────
# NAME POOLS
# ──────────────────────────────────────────────

_culture_pools: Dict[str, CulturePool] = {}


def _build_pool(key: str, data: dict) -> CulturePool:
    return CulturePool(
        key=key,
        first=tuple(data["first"]),
        last=tuple(data["last"]),
        compound_surname=float(data.get("compound_surname", 0.0)),
        nicknames=tuple(data.get("nicknames", ())),
    )


def culture_pool(nation_code: str) -> CulturePool:
    """Name pool for a nation; unmapped nations use the default pool."""
    cfg = _load_pools()
    key = cfg["culture_map"].get(nation_code, cfg["default_pool"])
    if key not in cfg["pools"]:
        key = cfg["default_pool"]
    if key not in _culture_pools:
        _culture_pools[key] = _build_pool(key, cfg["pools"][key])
    return _culture_pools[key]


def naming_rules(nation_code: str) -> NamingRules:
    rules = _load_pools().get("nation_rules", {}).get(nation_code)
    if not rules:
        return NamingRules()
    return NamingRules(**rules)


def _pick(rng: SeededRNG, items: Tuple[str, ...]) -> str:
    return items[math.floor(rng.next() * len(items))]


def generate_name(rng: SeededRNG, nation_code: str) -> str:
    """Draw a culturally coherent player name for a nation."""
    pool = culture_pool(nation_code)
    rules = naming_rules(nation_code)

    first = _pick(rng, pool.first)
    last = _pick(rng, pool.last)

    if pool.compound_surname > 0 and rng.next() < pool.compound_surname:
        second = _pick(rng, pool.last)
        if second != last:
            last = f"{last} {second}"

    if rules.patronymic > 0 and rng.next() < rules.patronymic:
        father = _pick(rng, pool.first)
        suffix = rules.patronymic_suffix
        if father.endswith("s") and suffix.startswith("s"):
            suffix = suffix[1:]
        last = f"{father}{suffix}"

    if rules.nickname > 0 and pool.nicknames and rng.next() < rules.nickname:
        return _pick(rng, pool.nicknames)

    if rules.single_name > 0 and rng.next() < rules.single_name:
        return first

    return f"{first} {last}"


# ──────────────────────────────────────────────
# RATINGS & AGES
# ──────────────────────────────────────────────

def position_group(slot_index: int) -> Tuple[int, int]:
    """(rank inside position group, group size) for a squad slot."""
    if not 0 <= slot_index < config.SQUAD_SIZE:
        raise IndexError(f"Squad slot out of range: {slot_index}")
    if slot_index < 3:
        return slot_index, 3
    if slot_index < 11:
        return slot_index - 3, 8
    if slot_index < 19:
        return slot_index - 11, 8
    return slot_index - 19, 6


def clamp_rating(rating: int) -> int:
    return max(config.MIN_PLAYER_RATING, min(config.MAX_PLAYER_RATING, rating))


def generate_rating(
    rng: SeededRNG,
    nation_rating: int,
    slot_index: int,
    exception_slot: int = -1,
) -> int:
    """Rating for a squad slot; earlier slots in a position group are stronger."""
    tr = nation_rating

    if slot_index == exception_slot:
        # Rare standout in a weak nation
        return js_round(min(72, tr + rng.next_int(12, 22)))

    pos_index, group_size = position_group(slot_index)
    depth = pos_index / (group_size - 1)  # 0 = best in group, 1 = worst

    if tr >= 85:
        base, variance = js_round(tr - 5 - depth * 22), 4
    elif tr >= 75:
        base, variance = js_round(tr - 8 - depth * 20), 4
    elif tr >= 65:
        base, variance = js_round(tr - 10 - depth * 20), 3
    elif tr >= 55:
        base, variance = js_round(tr - 8 - depth * 18), 3
    else:
        base, variance = js_round(tr - 5 - depth * 15), 2

    return clamp_rating(base + rng.next_int(-variance, variance))


_GK_AGE_RANGES = [(26, 33), (23, 31), (18, 24)]


def generate_age(rng: SeededRNG, position: str, slot_index: int) -> int:
    if position == "GK":
        lo, hi = _GK_AGE_RANGES[slot_index] if slot_index < 3 else (20, 28)
        return rng.next_int(lo, hi)

    pos_index, _ = position_group(slot_index)
    if pos_index == 0:
        return rng.next_int(24, 32)   # undisputed starter
    if pos_index <= 2:
        return rng.next_int(22, 31)   # regular starter
    if pos_index <= 4:
        return rng.next_int(20, 29)   # rotation
    return rng.next_int(18, 27)       # bench


# ──────────────────────────────────────────────
# BASE SQUADS
# ──────────────────────────────────────────────

def _unique_name(rng: SeededRNG, nation_code: str, used: set) -> str:
    name = generate_name(rng, nation_code)
    attempts = 1
    while name in used and attempts < 10:
        name = generate_name(rng, nation_code)
        attempts += 1
    used.add(name)
    return name


def generate_base_squad(nation: Nation) -> List[SquadPlayer]:
    """Edition-0 squad. Same nation, same squad, on every machine."""
    rng = SeededRNG(combine_seed("squad", nation.code, "base"))

    has_exception = nation.rating < config.WEAK_NATION_RATING and rng.next() < 0.55
    exception_slot = rng.next_int(3, config.SQUAD_SIZE - 1) if has_exception else -1

    used_names: set = set()
    squad: List[SquadPlayer] = []
    for index, position in enumerate(config.SQUAD_POSITIONS):
        name = _unique_name(rng, nation.code, used_names)
        rating = generate_rating(rng, nation.rating, index, exception_slot)
        age = generate_age(rng, position, index)
        squad.append(SquadPlayer(
            id=f"{nation.code}-{index}",
            name=name,
            nation_code=nation.code,
            position=position,
            rating=rating,
            age=age,
        ))
    return squad


def generate_replacement(
    rng: SeededRNG,
    nation: Nation,
    position: str,
    slot_index: int,
    edition: int,
) -> SquadPlayer:
    """Young prospect (18-23) filling a retired player's slot, rated below the nation."""
    name = generate_name(rng, nation.code)
    min_rating = max(config.MIN_PLAYER_RATING, nation.rating - 30)
    max_rating = max(min_rating + 5, nation.rating - 8)
    rating = rng.next_int(min_rating, max_rating)
    age = rng.next_int(18, 23)
    return SquadPlayer(
        id=f"{nation.code}-slot{slot_index}-gen{edition}",
        name=name,
        nation_code=nation.code,
        position=position,
        rating=clamp_rating(rating),
        age=age,
        is_replacement=True,
    )
