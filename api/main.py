"""
Perpetual World Cup API
FastAPI wrapper around the cup_engine simulation
"""

import sys
import os
from typing import Optional
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
from cup_engine import config
from cup_engine.nations import all_nations, confederation_name, find_nation
from cup_engine.simulation import WorldCupWorld, timestamp_to_edition


app = FastAPI(title="Perpetual World Cup API", version="1.0.0")

world = WorldCupWorld()


class TimeOffsetRequest(BaseModel):
    minutes: float = 0


def _resolve_timestamp(timestamp: Optional[int]) -> int:
    return world.clock.now() if timestamp is None else timestamp


def _require_nation(code: str):
    nation = find_nation(code)
    if nation is None:
        raise HTTPException(status_code=404, detail=f"Nation '{code}' not found")
    return nation


def _require_past_or_current(edition: int, timestamp: Optional[int]) -> int:
    current = timestamp_to_edition(_resolve_timestamp(timestamp)).edition
    if edition < 0:
        raise HTTPException(status_code=400, detail="Edition must be non-negative")
    if edition > current:
        raise HTTPException(status_code=404, detail=f"Edition {edition} has not started yet")
    return current


@app.get("/api/health")
def health_check():
    """Health check endpoint for deployment monitoring."""
    when = timestamp_to_edition(world.clock.now())
    return {
        "status": "ok",
        "nations": len(all_nations()),
        "edition": when.edition,
        "epoch": config.EPOCH,
    }


@app.get("/state")
def get_state(timestamp: Optional[int] = Query(None, description="Unix time in milliseconds")):
    return world.get_current_state(timestamp).to_dict()


@app.get("/tournaments/{edition}")
def get_tournament(edition: int, timestamp: Optional[int] = Query(None)):
    current = _require_past_or_current(edition, timestamp)
    if edition == current:
        # Results of the running edition are only revealed through /state
        snap = world.get_current_state(_resolve_timestamp(timestamp))
        return {
            "edition": edition,
            "completed": False,
            "tournament": snap.to_dict()["tournament"],
        }
    return {
        "edition": edition,
        "completed": True,
        "tournament": world.tournament(edition).to_dict(),
    }


@app.get("/history")
def get_history(timestamp: Optional[int] = Query(None)):
    summaries = world.get_completed_tournaments(timestamp)
    return {"count": len(summaries), "tournaments": [s.to_dict() for s in summaries]}


@app.get("/stats")
def get_stats(timestamp: Optional[int] = Query(None)):
    return world.get_stats(timestamp).to_dict()


@app.get("/nations")
def list_nations():
    grouped = {}
    for nation in all_nations().values():
        grouped.setdefault(nation.confederation, []).append(nation.to_dict())
    return {
        "count": len(all_nations()),
        "confederations": {
            conf: {"name": confederation_name(conf), "nations": nations}
            for conf, nations in grouped.items()
        },
    }


@app.get("/nations/{code}/squad")
def get_squad(code: str, edition: Optional[int] = Query(None), timestamp: Optional[int] = Query(None)):
    nation = _require_nation(code)
    current = timestamp_to_edition(_resolve_timestamp(timestamp)).edition
    if edition is None:
        edition = current
    else:
        _require_past_or_current(edition, timestamp)
    squad = world.squad(nation.code, edition)
    return {
        "nation": nation.to_dict(),
        "edition": edition,
        "players": [p.to_dict() for p in squad],
    }


@app.get("/players/{code}/{player_id}")
def get_player(code: str, player_id: str, timestamp: Optional[int] = Query(None)):
    nation = _require_nation(code)
    try:
        career = world.get_player_career(nation.code, player_id, timestamp)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Player '{player_id}' not found for {nation.name}")
    latest = career[-1]
    player = world.squads.find_player(nation.code, latest.edition, player_id)
    return {
        "player": player.to_dict(),
        "nation": nation.to_dict(),
        "career": [row.to_dict() for row in career],
        "totals": {
            "appearances": sum(r.appearances for r in career),
            "starts": sum(r.starts for r in career),
            "minutes": sum(r.minutes for r in career),
            "goals": sum(r.goals for r in career),
            "golden_boots": sum(1 for r in career if r.golden_boot),
            "best_player_awards": sum(1 for r in career if r.best_player),
        },
    }


@app.get("/debug/time-offset")
def get_time_offset():
    return {"minutes": world.get_time_offset(), "now": world.clock.now()}


@app.post("/debug/time-offset")
def set_time_offset(req: TimeOffsetRequest):
    try:
        world.set_time_offset(req.minutes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"minutes": world.get_time_offset(), "now": world.clock.now()}
