"""
Nation reference data.

Loaded once from data/nations.json. Nations are immutable and shared by value
across every edition; ratings are the only strength proxy the engine uses.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

DATA_DIR = Path(__file__).parent / "data"
_NATIONS_PATH = DATA_DIR / "nations.json"

_config_cache: Optional[dict] = None
_nations_cache: Optional[Dict[str, "Nation"]] = None


def _load_config() -> dict:
    global _config_cache
    if _config_cache is None:
        with open(_NATIONS_PATH, encoding="utf-8") as f:
            _config_cache = json.load(f)
    return _config_cache


@dataclass(frozen=True)
class Nation:
    """Static metadata for a national team."""
    code: str
    name: str
    confederation: str
    rating: int

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "confederation": self.confederation,
            "rating": self.rating,
        }


def all_nations() -> Dict[str, Nation]:
    """Every nation keyed by code, in data-file order."""
    global _nations_cache
    if _nations_cache is None:
        cfg = _load_config()
        nations: Dict[str, Nation] = {}
        for conf_id, conf_data in cfg["confederations"].items():
            for n in conf_data["nations"]:
                nations[n["code"]] = Nation(
                    code=n["code"],
                    name=n["name"],
                    confederation=conf_id,
                    rating=int(n["rating"]),
                )
        _nations_cache = nations
    return _nations_cache


def nation_list() -> List[Nation]:
    return list(all_nations().values())


def get_nation(code: str) -> Nation:
    """Look up a nation; unknown codes are a programming error."""
    try:
        return all_nations()[code]
    except KeyError:
        raise KeyError(f"Unknown nation code: {code!r}") from None


def find_nation(code: str) -> Optional[Nation]:
    return all_nations().get(code)


def nations_in(confederation: str) -> List[Nation]:
    return [n for n in all_nations().values() if n.confederation == confederation]


def confederation_name(confederation: str) -> str:
    return _load_config()["confederations"][confederation]["full_name"]
