"""Derived metrics over stored match data.

Everything here is a read over ``valorant_matches`` and
``valorant_player_stats``; nothing calls the upstream API. A selection that
matches no stored rows yields ``NoStoredData`` rather than zeroed figures.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import func, select

from valtracker.db import MatchStore, PlayerMatchStats, ValorantMatch, player_filter
from valtracker.player_context import PlayerIdentity

MAX_WINDOW = 100
MAX_LIST_LIMIT = 50


@dataclass(frozen=True)
class NoStoredData:
    """No stored matches fit the requested player/map window."""

    riot_id: str
    map: Optional[str] = None
    matches_considered: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "no_data": True,
            "riot_id": self.riot_id,
            "map": self.map or "all",
            "matches_considered": 0,
            "message": "No stored matches yet. Try ingesting first.",
        }


@dataclass
class KdrResult:
    matches_considered: int
    average_kdr: float
    map: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "matches_considered": self.matches_considered,
            "map": self.map or "all",
            "average_kdr": render_ratio(self.average_kdr),
        }


@dataclass
class PerformanceSummary:
    matches_considered: int
    map: Optional[str] = None
    averages: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": True,
            "matches_considered": self.matches_considered,
            "map": self.map or "all",
            "averages": {k: render_ratio(v) for k, v in self.averages.items()},
        }


def render_ratio(value: float) -> Union[float, str]:
    return "Infinity" if math.isinf(value) else value


def kill_death_ratio(kills: int, deaths: int) -> float:
    """Kills over deaths, rounded to 2 decimals.

    No deaths gives infinity when there were kills and 0 when there were none.
    """
    if deaths == 0:
        return math.inf if kills > 0 else 0.0
    return round(kills / deaths, 2)


def _check_window(value: int, upper: int, label: str) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label} must be an integer between 1 and {upper}") from exc
    if value < 1 or value > upper:
        raise ValueError(f"{label} must be between 1 and {upper}")
    return value


def _check_map(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValueError("map must be a map name")
    return value


def _total(rows: List[Any], attr: str) -> float:
    return sum((getattr(r, attr) or 0) for r in rows)


def _recent_match_rows(store: MatchStore, identity: PlayerIdentity, map_name: Optional[str], last_n: int):
    stmt = (
        select(ValorantMatch)
        .where(player_filter(ValorantMatch, identity), ValorantMatch.player_kills.is_not(None))
    )
    if map_name:
        stmt = stmt.where(func.lower(ValorantMatch.map) == map_name.lower())
    stmt = stmt.order_by(ValorantMatch.started_at.is_(None), ValorantMatch.started_at.desc()).limit(last_n)
    with store.SessionLocal() as session:
        return session.execute(stmt).scalars().all()


def _recent_stat_rows(store: MatchStore, identity: PlayerIdentity, map_name: Optional[str], last_n: int):
    stmt = (
        select(PlayerMatchStats)
        .join(
            ValorantMatch,
            (ValorantMatch.id == PlayerMatchStats.match_id)
            & (ValorantMatch.player_key == PlayerMatchStats.player_key),
        )
        .where(player_filter(PlayerMatchStats, identity), PlayerMatchStats.kills.is_not(None))
    )
    if map_name:
        stmt = stmt.where(func.lower(ValorantMatch.map) == map_name.lower())
    stmt = stmt.order_by(ValorantMatch.started_at.is_(None), ValorantMatch.started_at.desc()).limit(last_n)
    with store.SessionLocal() as session:
        return session.execute(stmt).scalars().all()


def average_kdr(
    store: MatchStore, identity: PlayerIdentity, map: Optional[str] = None, last_n: int = 20
) -> Union[KdrResult, NoStoredData]:
    """Aggregate K/D ratio over the player's ``last_n`` most recent matches.

    Matches stored without stats (player missing from the roster) are left
    out of the window.
    """
    last_n = _check_window(last_n, MAX_WINDOW, "last_n")
    map = _check_map(map)
    rows = _recent_match_rows(store, identity, map, last_n)
    if not rows:
        return NoStoredData(riot_id=identity.riot_id, map=map)
    kills = int(_total(rows, "player_kills"))
    deaths = int(_total(rows, "player_deaths"))
    return KdrResult(matches_considered=len(rows), average_kdr=kill_death_ratio(kills, deaths), map=map)


def summarize(
    store: MatchStore, identity: PlayerIdentity, map: Optional[str] = None, last_n: int = 10
) -> Union[PerformanceSummary, NoStoredData]:
    """Per-match averages over the player's ``last_n`` most recent matches."""
    last_n = _check_window(last_n, MAX_WINDOW, "last_n")
    map = _check_map(map)
    rows = _recent_stat_rows(store, identity, map, last_n)
    if not rows:
        return NoStoredData(riot_id=identity.riot_id, map=map)

    n = len(rows)

    def avg(attr: str) -> float:
        return round(_total(rows, attr) / n, 2)

    kills = _total(rows, "kills")
    deaths = _total(rows, "deaths")
    headshots = _total(rows, "headshots")
    shots = headshots + _total(rows, "bodyshots") + _total(rows, "legshots")
    hs_rate = round(headshots / shots * 100, 2) if shots > 0 else 0.0

    averages = {
        "kills": avg("kills"),
        "deaths": avg("deaths"),
        "assists": avg("assists"),
        "kdr": kill_death_ratio(int(kills), int(deaths)),
        "score": avg("score"),
        "damage_made": avg("damage_made"),
        "damage_received": avg("damage_received"),
        "headshot_rate_pct": hs_rate,
        "spent_overall": avg("spent_overall"),
        "spent_avg_per_round": avg("spent_avg"),
        "loadout_overall": avg("loadout_overall"),
        "loadout_avg_per_round": avg("loadout_avg"),
    }
    return PerformanceSummary(matches_considered=n, map=map, averages=averages)


def list_recent_matches(store: MatchStore, identity: PlayerIdentity, limit: int = 10) -> List[Dict]:
    limit = _check_window(limit, MAX_LIST_LIMIT, "limit")
    return store.recent_matches(identity, limit=limit)
