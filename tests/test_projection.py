from tests.helpers import make_match, make_player

from valtracker.player_context import PlayerIdentity
from valtracker.projection import PLAYER_FIELDS, find_player, match_id_of, project_match, started_at_of


def test_project_match_extracts_only_projection_fields():
    payload = make_match("m1", [make_player("Ollie", "Chaos", kills=20, deaths=8, assists=4), make_player("x", "y")])
    proj = project_match(payload, PlayerIdentity("ollie", "chaos"))

    assert proj.match_id == "m1"
    assert proj.map == "Ascent"
    assert proj.mode == "Competitive"
    assert proj.player_found is True
    assert set(proj.stats) == set(PLAYER_FIELDS)
    assert proj.stats["kills"] == 20
    assert proj.stats["deaths"] == 8
    assert proj.stats["character"] == "Jett"
    assert proj.stats["rank"] == "Gold 2"
    assert proj.stats["spent_avg"] == 3000
    assert proj.stats["loadout_overall"] == 70000
    assert proj.stats["damage_made"] == 3000
    # round detail and other players never make it into the projection
    flat = repr(proj.to_dict())
    assert "rounds" not in flat
    assert "ability_casts" not in flat


def test_project_match_missing_player_keeps_shell():
    payload = make_match("m2", [make_player("someone", "else")])
    proj = project_match(payload, PlayerIdentity("ollie", "chaos"))
    assert proj.match_id == "m2"
    assert proj.player_found is False
    assert all(v is None for v in proj.stats.values())
    assert proj.map == "Ascent"


def test_project_match_without_id_is_none():
    payload = make_match("", [])
    assert project_match(payload, PlayerIdentity("a", "b")) is None


def test_match_id_top_level_fallback():
    assert match_id_of({"matchid": "abc"}) == "abc"
    assert match_id_of({"metadata": {}}) is None


def test_started_at_prefers_unix_start():
    payload = make_match("m3", [], game_start=1760000000)
    assert started_at_of(payload) == "2025-10-09T08:53:20+00:00"


def test_started_at_falls_back_to_patched_string():
    payload = {"metadata": {"game_start_patched": "Friday, October 3, 2025 8:15 PM"}}
    assert started_at_of(payload) == "2025-10-03T20:15:00+00:00"


def test_started_at_unparseable_is_none():
    assert started_at_of({"metadata": {"game_start_patched": "yesterday"}}) is None
    assert started_at_of({}) is None


def test_find_player_skips_junk_roster_entries():
    payload = {"players": {"all_players": [None, "x", make_player("OLLIE", "chaos")]}}
    assert find_player(payload, PlayerIdentity("ollie", "CHAOS"))["name"] == "OLLIE"
