"""
Host selection.

Hosting rotates through confederations; within the chosen confederation a
host is drawn with probability proportional to rating. Nations that hosted in
the previous three editions are excluded, so the history has to be built left
to right. HostSelector keeps that history and only ever extends it.

Usage:
    from cup_engine.hosts import HostSelector

    hosts = HostSelector()
    hosts.host_for(7).name
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping

from cup_engine import config
from cup_engine.memo import MemoTable
from cup_engine.nations import Nation, get_nation, nation_list
from cup_engine.prng import SeededRNG, combine_seed

_log = logging.getLogger("cupsim.hosts")


def choose_host(edition: int, previous_hosts: Mapping[int, str]) -> Nation:
    """Pick the host for ``edition`` given the hosts of earlier editions."""
    if edition < 0:
        raise ValueError(f"Edition must be non-negative, got {edition}")
    if edition == 0:
        return get_nation(config.FIRST_HOST_CODE)

    rng = SeededRNG(combine_seed("host", edition))
    confederation = config.HOST_ROTATION[edition % len(config.HOST_ROTATION)]

    recent = {
        previous_hosts[i]
        for i in range(max(0, edition - config.HOST_EXCLUSION_EDITIONS), edition)
        if i in previous_hosts
    }

    eligible = [
        n for n in nation_list()
        if n.confederation == confederation
        and n.rating >= config.MIN_HOST_RATING
        and n.code not in recent
    ]
    if not eligible:
        _log.debug(f"Edition {edition}: no eligible {confederation} host, opening to all confederations")
        eligible = [
            n for n in nation_list()
            if n.rating >= config.MIN_HOST_RATING and n.code not in recent
        ]

    return rng.weighted_sample(eligible, [n.rating for n in eligible])


class HostSelector:
    """Incrementally built host history: edition -> nation code."""

    def __init__(self):
        self._hosts: MemoTable[int, str] = MemoTable("hosts")

    def host_for(self, edition: int) -> Nation:
        if edition < 0:
            raise ValueError(f"Edition must be non-negative, got {edition}")
        if edition not in self._hosts:
            with self._hosts.lock:
                start = len(self._hosts)
                history: Dict[int, str] = {e: self._hosts.get(e) for e in range(start)}
                for e in range(start, edition + 1):
                    code = choose_host(e, history).code
                    history[e] = code
                    self._hosts.put_once(e, code)
        return get_nation(self._hosts.get(edition))

    def history(self, up_to: int) -> List[Nation]:
        """Hosts of editions 0..up_to inclusive."""
        self.host_for(up_to)
        return [get_nation(self._hosts.get(e)) for e in range(up_to + 1)]

    def clear(self):
        self._hosts.clear()
