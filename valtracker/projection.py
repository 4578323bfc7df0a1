"""Fixed projection applied to HenrikDev v3 match payloads on receipt.

A single match payload carries every round, kill event and economy snapshot
for ten players and easily runs to tens of thousands of lines. Only the
fields listed here are kept; the rest of the payload is discarded as soon as
the projection has been taken.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from valtracker.player_context import PlayerIdentity

# projected column -> path inside the player's roster entry
PLAYER_FIELDS: Dict[str, Tuple[str, ...]] = {
    "character": ("character",),
    "rank": ("currenttier_patched",),
    "kills": ("stats", "kills"),
    "deaths": ("stats", "deaths"),
    "assists": ("stats", "assists"),
    "score": ("stats", "score"),
    "headshots": ("stats", "headshots"),
    "bodyshots": ("stats", "bodyshots"),
    "legshots": ("stats", "legshots"),
    "spent_overall": ("economy", "spent", "overall"),
    "spent_avg": ("economy", "spent", "average"),
    "loadout_overall": ("economy", "loadout_value", "overall"),
    "loadout_avg": ("economy", "loadout_value", "average"),
    "damage_made": ("damage_made",),
    "damage_received": ("damage_received",),
}

_PATCHED_START_FORMAT = "%A, %B %d, %Y %I:%M %p"


def _dig(obj: Any, path: Tuple[str, ...]) -> Any:
    for key in path:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


@dataclass
class MatchProjection:
    match_id: str
    started_at: Optional[str]
    mode: Optional[str]
    map: Optional[str]
    player_found: bool
    stats: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def match_id_of(payload: Dict[str, Any]) -> Optional[str]:
    meta = payload.get("metadata") or {}
    mid = meta.get("matchid") or payload.get("matchid")
    return str(mid) if mid else None


def started_at_of(payload: Dict[str, Any]) -> Optional[str]:
    """Match start as an ISO-8601 UTC string, or None when the payload has none.

    ``game_start`` (unix seconds) is preferred; ``game_start_patched`` is the
    human-readable fallback.
    """
    meta = payload.get("metadata") or {}
    ts = meta.get("game_start")
    if isinstance(ts, (int, float)) and not isinstance(ts, bool):
        return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
    patched = meta.get("game_start_patched")
    if isinstance(patched, str) and patched.strip():
        try:
            parsed = datetime.strptime(patched.strip(), _PATCHED_START_FORMAT)
        except ValueError:
            return None
        return parsed.replace(tzinfo=timezone.utc).isoformat()
    return None


def find_player(payload: Dict[str, Any], identity: PlayerIdentity) -> Optional[Dict[str, Any]]:
    """Return the roster entry for ``identity`` (case-insensitive), if present."""
    roster: List[Any] = _dig(payload, ("players", "all_players")) or []
    name, tag = identity.name.lower(), identity.tag.lower()
    for entry in roster:
        if not isinstance(entry, dict):
            continue
        if str(entry.get("name") or "").lower() == name and str(entry.get("tag") or "").lower() == tag:
            return entry
    return None


def project_match(payload: Dict[str, Any], identity: PlayerIdentity) -> Optional[MatchProjection]:
    """Project one raw match payload for ``identity``.

    Returns None when the payload has no match id. When the player is missing
    from the roster the projection still describes the match, with every stat
    set to None.
    """
    match_id = match_id_of(payload)
    if not match_id:
        return None
    meta = payload.get("metadata") or {}
    entry = find_player(payload, identity)
    stats = {col: (_dig(entry, path) if entry is not None else None) for col, path in PLAYER_FIELDS.items()}
    return MatchProjection(
        match_id=match_id,
        started_at=started_at_of(payload),
        mode=meta.get("mode"),
        map=meta.get("map"),
        player_found=entry is not None,
        stats=stats,
    )
