"""Command-line helper to sync and query a player's stored matches.

Settings come from the environment (or a ``.env`` file); see
``valtracker.config``. Every command prints one JSON object.

Usage:
    python -m valtracker.cli sync ollie#chaos
    python -m valtracker.cli kdr ollie#chaos --map Ascent --last 20
    python -m valtracker.cli summary ollie#chaos --region na
    python -m valtracker.cli matches ollie#chaos --limit 5
    python -m valtracker.cli reset-cursor ollie#chaos --region na

"""
from __future__ import annotations

import argparse
import json
import logging
from typing import Any, Dict, Optional

from valtracker import analytics
from valtracker.config import REGIONS, Settings, load_settings
from valtracker.connectors.henrik_connector import HenrikDevConnector
from valtracker.db import MatchStore
from valtracker.errors import ValtrackerError
from valtracker.player_context import parse_riot_id
from valtracker.sync_engine import IncrementalSyncEngine


def run_command(args: argparse.Namespace, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Execute a parsed CLI command and return its JSON-ready result."""
    settings = settings or load_settings()
    store = MatchStore(settings.database_url)
    store.init_db()
    identity = parse_riot_id(args.riot_id, region=args.region)

    if args.command == "sync":
        connector = HenrikDevConnector(
            token=settings.henrik_api_key,
            base_url=settings.henrik_base_url,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
        )
        try:
            engine = IncrementalSyncEngine.from_settings(settings, connector, store)
            return engine.sync(identity).to_dict()
        finally:
            connector.close()
    if args.command == "kdr":
        return analytics.average_kdr(store, identity, map=args.map, last_n=args.last).to_dict()
    if args.command == "summary":
        return analytics.summarize(store, identity, map=args.map, last_n=args.last).to_dict()
    if args.command == "matches":
        return {"ok": True, "matches": analytics.list_recent_matches(store, identity, limit=args.limit)}
    if args.command == "reset-cursor":
        if not identity.region:
            raise ValueError("reset-cursor needs --region")
        return {"ok": True, "reset": store.reset_cursor(identity)}
    raise ValueError(f"Unknown command {args.command!r}")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="valtracker", description="Sync and query Valorant match history")
    sub = p.add_subparsers(dest="command", required=True)

    def add_player(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("riot_id", help="Riot ID as name#tag")
        sp.add_argument("--region", choices=REGIONS, help="Region shard; probed when omitted")

    add_player(sub.add_parser("sync", help="Fetch and store new matches"))
    for cmd, default_last in (("kdr", 20), ("summary", 10)):
        sp = sub.add_parser(cmd, help=f"Compute {cmd} over stored matches")
        add_player(sp)
        sp.add_argument("--map", help="Only matches on this map")
        sp.add_argument("--last", type=int, default=default_last, help="Window of most recent matches")
    sp = sub.add_parser("matches", help="List stored matches")
    add_player(sp)
    sp.add_argument("--limit", type=int, default=10)
    add_player(sub.add_parser("reset-cursor", help="Forget the sync cursor for a player"))
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings()
        logging.basicConfig(
            level=getattr(logging, settings.log_level, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        res = run_command(args, settings)
    except (ValtrackerError, ValueError, RuntimeError) as exc:
        print(json.dumps({"ok": False, "error": str(exc)}))
        return 2

    print(json.dumps(res))
    return 0 if res.get("ok", True) else 2


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
