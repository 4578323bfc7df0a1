# tests/helpers.py

from typing import Any, Dict, List, Optional

from valtracker.db import MatchStore
from valtracker.errors import UpstreamError

BASE_START = 1760000000  # 2025-10-09T08:53:20Z


def create_test_store(tmp_path) -> MatchStore:
    """Create a fresh SQLite file store under pytest's tmp_path."""
    store = MatchStore(f"sqlite:///{tmp_path / 'valtracker_test.db'}")
    store.init_db()
    return store


def make_player(name: str, tag: str, kills: int = 15, deaths: int = 10, assists: int = 5,
                headshots: int = 10, bodyshots: int = 30, legshots: int = 2,
                character: str = "Jett", rank: str = "Gold 2") -> Dict[str, Any]:
    """Roster entry shaped like HenrikDev's players.all_players items."""
    return {
        "puuid": f"puuid-{name}-{tag}",
        "name": name,
        "tag": tag,
        "team": "Red",
        "character": character,
        "currenttier_patched": rank,
        "stats": {
            "score": kills * 200,
            "kills": kills,
            "deaths": deaths,
            "assists": assists,
            "bodyshots": bodyshots,
            "headshots": headshots,
            "legshots": legshots,
        },
        "economy": {
            "spent": {"overall": 60000, "average": 3000},
            "loadout_value": {"overall": 70000, "average": 3500},
        },
        "damage_made": kills * 150,
        "damage_received": deaths * 140,
        # bulk the upstream sends but nobody stores
        "ability_casts": {"c_cast": 12, "q_cast": 20, "e_cast": 18, "x_cast": 2},
        "assets": {"card": {"small": "https://media.valorant-api.com/card.png"}},
    }


def make_match(match_id: str, players: List[Dict[str, Any]], offset: int = 0,
               map_name: str = "Ascent", mode: str = "Competitive",
               game_start: Optional[int] = None) -> Dict[str, Any]:
    """Raw v3 match payload. ``offset`` minutes after BASE_START."""
    start = BASE_START + offset * 60 if game_start is None else game_start
    return {
        "metadata": {
            "map": map_name,
            "game_version": "release-11.08",
            "game_length": 2100,
            "game_start": start,
            "game_start_patched": "Thursday, October 9, 2025 8:53 AM",
            "rounds_played": 24,
            "mode": mode,
            "queue": "Standard",
            "matchid": match_id,
            "region": "na",
            "cluster": "US East",
        },
        "players": {"all_players": players},
        "rounds": [{"winning_team": "Red", "player_stats": [{"kills": 1}] * 10} for _ in range(24)],
        "kills": [{"kill_time_in_round": 1000 * i} for i in range(40)],
    }


def make_history(name: str, tag: str, ids: List[str], **player_kwargs) -> List[Dict[str, Any]]:
    """Newest-first page: ids[0] is the most recent match."""
    n = len(ids)
    return [
        make_match(mid, [make_player(name, tag, **player_kwargs), make_player("other", "0000")], offset=(n - i) * 60)
        for i, mid in enumerate(ids)
    ]


class FakeSource:
    """In-memory MatchSource.

    ``pages`` maps region (or (region, lowercase name)) -> list of payloads,
    or an exception to raise.
    Every call is recorded in ``calls`` as (region, name, tag, size, mode).
    """

    def __init__(self, pages: Optional[Dict[str, Any]] = None):
        self.pages: Dict[str, Any] = dict(pages or {})
        self.calls: List[tuple] = []

    def get_matches(self, region, name, tag, size=10, mode="competitive"):
        self.calls.append((region, name, tag, size, mode))
        page = self.pages.get((region, name.lower()), self.pages.get(region, []))
        if isinstance(page, Exception):
            raise page
        return list(page)[:size]

    @property
    def regions_called(self) -> List[str]:
        return [c[0] for c in self.calls]


def upstream_down(status: int = 503) -> UpstreamError:
    return UpstreamError(status, "service unavailable")
