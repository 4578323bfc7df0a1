"""Tool surface handed to the chat agent.

One ``ValorantAgentTools`` instance is created per conversation. It owns that
conversation's ``ActivePlayerContext`` and shares the store and sync engine
with every other session. Each tool returns a JSON-ready dict with an ``ok``
flag so the agent can phrase the answer itself.

Expected calling pattern for the agent:
- a message containing a Riot ID -> set_active_player, then ingest_or_refresh_matches
- before answering any performance question -> ingest_or_refresh_matches
  (cheap when nothing is new)
- "I"/"me"/"my" refer to the active player; with none set, ask for a Riot ID
"""
from __future__ import annotations

import inspect
from typing import Any, Dict, List, Optional

from valtracker import analytics
from valtracker.config import REGIONS
from valtracker.db import MatchStore
from valtracker.errors import MalformedIdentity
from valtracker.player_context import ActivePlayerContext, parse_riot_id
from valtracker.sync_engine import IncrementalSyncEngine

NO_ACTIVE_PLAYER = "No active player set. Ask the user for their Riot ID (format: name#tag)."


TOOL_SPECS: List[Dict[str, Any]] = [
    {
        "name": "set_active_player",
        "description": (
            "Set the active Valorant player. Accepts riot_id='name#tag' (optional region) "
            "or explicit name+tag (optional region)."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "riot_id": {"type": "string", "minLength": 3},
                "name": {"type": "string", "minLength": 1},
                "tag": {"type": "string", "minLength": 1},
                "region": {"type": "string", "enum": list(REGIONS)},
            },
        },
    },
    {
        "name": "ingest_or_refresh_matches",
        "description": (
            "Fetch newest matches for the active player and store only new ones; "
            "resolves region if missing and updates a cursor. Safe to call repeatedly."
        ),
        "parameters": {"type": "object", "properties": {}},
    },
    {
        "name": "query_kdr",
        "description": "Compute average KDR for the active player; supports optional map filter and last_n limit.",
        "parameters": {
            "type": "object",
            "properties": {
                "map": {"type": "string"},
                "last_n": {"type": "integer", "minimum": 1, "maximum": analytics.MAX_WINDOW, "default": 20},
            },
        },
    },
    {
        "name": "summarize_recent_performance",
        "description": (
            "Summarize recent performance (averages) for the active player. "
            "Optional map filter and last_n window."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "map": {"type": "string"},
                "last_n": {"type": "integer", "minimum": 1, "maximum": analytics.MAX_WINDOW, "default": 10},
            },
        },
    },
    {
        "name": "list_recent_matches",
        "description": "List recent stored matches for the active player.",
        "parameters": {
            "type": "object",
            "properties": {
                "limit": {"type": "integer", "minimum": 1, "maximum": analytics.MAX_LIST_LIMIT, "default": 10},
            },
        },
    },
]


class ValorantAgentTools:
    def __init__(
        self,
        store: MatchStore,
        engine: IncrementalSyncEngine,
        context: Optional[ActivePlayerContext] = None,
    ):
        self.store = store
        self.engine = engine
        self.context = context or ActivePlayerContext()

    def set_active_player(
        self,
        riot_id: Optional[str] = None,
        name: Optional[str] = None,
        tag: Optional[str] = None,
        region: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            if riot_id:
                identity = parse_riot_id(riot_id, region=region)
            elif name and tag:
                identity = parse_riot_id(f"{name}#{tag}", region=region)
            else:
                return {"ok": False, "error": "Please provide a riot_id like name#tag, or both name and tag."}
        except MalformedIdentity as exc:
            return {"ok": False, "error": str(exc), "reason": exc.reason}

        self.context.set_active(identity)
        suffix = f" ({identity.region})" if identity.region else ""
        return {
            "ok": True,
            "player": identity.to_dict(),
            "message": f"Active player is now {identity.riot_id}{suffix}.",
        }

    def ingest_or_refresh_matches(self) -> Dict[str, Any]:
        active = self.context.get_active()
        if active is None:
            return {"ok": False, "error": NO_ACTIVE_PLAYER}
        result = self.engine.sync(active)
        out = result.to_dict()
        if result.ok:
            out["message"] = (
                f"Refreshed {active.riot_id} ({result.resolved_region}). "
                f"New matches stored: {result.inserted_count}."
            )
        return out

    def query_kdr(self, map: Optional[str] = None, last_n: int = 20) -> Dict[str, Any]:
        active = self.context.get_active()
        if active is None:
            return {"ok": False, "error": NO_ACTIVE_PLAYER}
        try:
            return analytics.average_kdr(self.store, active, map=map, last_n=last_n).to_dict()
        except ValueError as exc:
            return {"ok": False, "error": str(exc)}

    def summarize_recent_performance(self, map: Optional[str] = None, last_n: int = 10) -> Dict[str, Any]:
        active = self.context.get_active()
        if active is None:
            return {"ok": False, "error": NO_ACTIVE_PLAYER}
        try:
            return analytics.summarize(self.store, active, map=map, last_n=last_n).to_dict()
        except ValueError as exc:
            return {"ok": False, "error": str(exc)}

    def list_recent_matches(self, limit: int = 10) -> Dict[str, Any]:
        active = self.context.get_active()
        if active is None:
            return {"ok": False, "error": NO_ACTIVE_PLAYER}
        try:
            rows = analytics.list_recent_matches(self.store, active, limit=limit)
        except ValueError as exc:
            return {"ok": False, "error": str(exc)}
        if not rows:
            return {"ok": True, "no_data": True, "matches": [], "message": "No stored matches. Ingest first."}
        return {
            "ok": True,
            "matches": [
                {k: r[k] for k in ("match_id", "started_at", "mode", "map")} for r in rows
            ],
        }

    def call(self, tool_name: str, arguments: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Dispatch a tool call by name, as emitted by the agent runtime."""
        if tool_name not in {spec["name"] for spec in TOOL_SPECS}:
            return {"ok": False, "error": f"Unknown tool {tool_name!r}"}
        if arguments is not None and not isinstance(arguments, dict):
            return {"ok": False, "error": f"Arguments for {tool_name} must be an object"}
        method = getattr(self, tool_name)
        try:
            bound = inspect.signature(method).bind(**(arguments or {}))
        except TypeError as exc:
            return {"ok": False, "error": f"Bad arguments for {tool_name}: {exc}"}
        return method(*bound.args, **bound.kwargs)
