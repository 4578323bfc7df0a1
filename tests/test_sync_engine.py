import pytest

from tests.helpers import FakeSource, create_test_store, make_history, make_match, make_player, upstream_down

from valtracker.errors import RegionUnresolved, UpstreamError
from valtracker.player_context import PlayerIdentity
from valtracker.sync_engine import IncrementalSyncEngine


def _engine(tmp_path, pages):
    store = create_test_store(tmp_path)
    source = FakeSource(pages)
    return IncrementalSyncEngine(source, store), source, store


def test_first_sync_stores_page_and_sets_cursor(tmp_path):
    ids = [f"m{i}" for i in range(10, 0, -1)]
    engine, source, store = _engine(tmp_path, {"na": make_history("ollie", "chaos", ids)})
    ident = PlayerIdentity("ollie", "chaos", region="na")

    res = engine.sync(ident)
    assert res.ok
    assert res.inserted_count == 10
    assert res.resolved_region == "na"
    assert store.count_matches(ident) == 10
    assert store.get_player_stats(ident, "m10")["kills"] == 15
    assert store.get_cursor(ident)["last_match_id"] == "m10"
    assert source.calls == [("na", "ollie", "chaos", 10, "competitive")]


def test_resync_without_new_matches_is_noop(tmp_path):
    ids = ["m3", "m2", "m1"]
    engine, source, store = _engine(tmp_path, {"na": make_history("ollie", "chaos", ids)})
    ident = PlayerIdentity("ollie", "chaos", region="na")

    engine.sync(ident)
    cursor_before = store.get_cursor(ident)
    res = engine.sync(ident)

    assert res.ok
    assert res.inserted_count == 0
    assert res.observed_count == 0  # newest match is the cursor itself
    assert store.get_cursor(ident) == cursor_before
    assert store.count_matches(ident) == 3


def test_stop_on_known_match_bounds_work(tmp_path):
    ident = PlayerIdentity("ollie", "chaos", region="na")
    page = make_history("ollie", "chaos", ["M8", "M7", "M6", "M5", "M4"])
    engine, source, store = _engine(tmp_path, {"na": page})
    store.set_cursor(ident, "M5", None)

    res = engine.sync(ident)

    assert res.inserted_count == 3
    assert res.observed_count == 3
    assert store.get_match(ident, "M8") is not None
    assert store.get_match(ident, "M6") is not None
    assert store.get_match(ident, "M5") is None
    assert store.get_match(ident, "M4") is None
    assert store.get_player_stats(ident, "M4") is None
    assert store.get_cursor(ident)["last_match_id"] == "M8"


def test_cursor_advances_even_when_everything_already_stored(tmp_path):
    ident = PlayerIdentity("ollie", "chaos", region="na")
    page = make_history("ollie", "chaos", ["m2", "m1"])
    engine, source, store = _engine(tmp_path, {"na": page})
    # rows exist but the cursor was reset
    engine.sync(ident)
    store.reset_cursor(ident)

    res = engine.sync(ident)
    assert res.inserted_count == 0
    assert store.get_cursor(ident)["last_match_id"] == "m2"


def test_stats_upserted_for_already_stored_match(tmp_path):
    ident = PlayerIdentity("ollie", "chaos", region="na")
    engine, source, store = _engine(tmp_path, {"na": make_history("ollie", "chaos", ["m1"], kills=10)})
    engine.sync(ident)
    store.reset_cursor(ident)

    source.pages["na"] = make_history("ollie", "chaos", ["m1"], kills=11)
    engine.sync(ident)
    assert store.get_player_stats(ident, "m1")["kills"] == 11
    assert store.count_matches(ident) == 1


def test_region_probe_stops_at_first_hit(tmp_path):
    page = make_history("ollie", "chaos", ["m2", "m1"])
    engine, source, store = _engine(tmp_path, {"eu": page, "ap": page})
    ident = PlayerIdentity("ollie", "chaos")

    res = engine.sync(ident)

    assert res.ok
    assert res.resolved_region == "eu"
    assert ident.region == "eu"
    assert source.regions_called == ["na", "eu"]
    assert res.inserted_count == 2
    assert store.get_cursor(ident)["pk"] == "eu:ollie:chaos"


def test_region_probe_skips_failing_regions(tmp_path):
    page = make_history("ollie", "chaos", ["m1"])
    engine, source, store = _engine(tmp_path, {"na": upstream_down(), "eu": [], "ap": page})
    ident = PlayerIdentity("ollie", "chaos")

    res = engine.sync(ident)
    assert res.resolved_region == "ap"
    assert source.regions_called == ["na", "eu", "ap"]


def test_region_unresolved_is_error_result(tmp_path):
    engine, source, store = _engine(tmp_path, {"na": upstream_down(500)})
    ident = PlayerIdentity("ollie", "chaos")

    res = engine.sync(ident)

    assert not res.ok
    assert isinstance(res.error, RegionUnresolved)
    assert res.inserted_count == 0
    assert ident.region is None
    assert source.regions_called == ["na", "eu", "ap", "kr", "latam", "br"]
    assert "Could not resolve region" in res.to_dict()["error"]


def test_custom_region_candidates(tmp_path):
    store = create_test_store(tmp_path)
    source = FakeSource({"kr": make_history("a", "b", ["m1"])})
    engine = IncrementalSyncEngine(source, store, region_candidates=("kr", "na"))
    res = engine.sync(PlayerIdentity("a", "b"))
    assert res.resolved_region == "kr"
    assert source.regions_called == ["kr"]


def test_upstream_error_leaves_cursor_alone(tmp_path):
    ident = PlayerIdentity("ollie", "chaos", region="na")
    engine, source, store = _engine(tmp_path, {"na": make_history("ollie", "chaos", ["m1"])})
    engine.sync(ident)

    source.pages["na"] = UpstreamError(None, "timeout")
    res = engine.sync(ident)

    assert not res.ok
    assert isinstance(res.error, UpstreamError)
    assert res.to_dict()["ok"] is False
    assert store.get_cursor(ident)["last_match_id"] == "m1"


def test_player_missing_from_roster_stores_shell(tmp_path):
    ident = PlayerIdentity("ollie", "chaos", region="na")
    page = [make_match("ghost", [make_player("someone", "else")])]
    engine, source, store = _engine(tmp_path, {"na": page})

    res = engine.sync(ident)

    assert res.inserted_count == 1
    row = store.get_match(ident, "ghost")
    assert row is not None
    assert row["kills"] is None
    assert store.get_player_stats(ident, "ghost")["kills"] is None


def test_payloads_without_ids_are_skipped(tmp_path):
    ident = PlayerIdentity("ollie", "chaos", region="na")
    page = [make_match("", []), "garbage"] + make_history("ollie", "chaos", ["m1"])
    engine, source, store = _engine(tmp_path, {"na": page})

    res = engine.sync(ident)
    assert res.inserted_count == 1
    assert store.get_cursor(ident)["last_match_id"] == "m1"


def test_empty_page_leaves_cursor_unset(tmp_path):
    ident = PlayerIdentity("ollie", "chaos", region="na")
    engine, source, store = _engine(tmp_path, {"na": []})
    res = engine.sync(ident)
    assert res.ok
    assert res.inserted_count == 0
    assert store.get_cursor(ident) is None


def test_failure_midway_keeps_prefix_and_cursor(tmp_path, monkeypatch):
    ident = PlayerIdentity("ollie", "chaos", region="na")
    engine, source, store = _engine(tmp_path, {"na": make_history("ollie", "chaos", ["m3", "m2", "m1"])})

    real_upsert = store.upsert_player_stats
    calls = {"n": 0}

    def flaky(identity, proj):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("disk full")
        return real_upsert(identity, proj)

    monkeypatch.setattr(store, "upsert_player_stats", flaky)
    with pytest.raises(RuntimeError):
        engine.sync(ident)
    monkeypatch.setattr(store, "upsert_player_stats", real_upsert)

    assert store.get_cursor(ident) is None
    assert store.count_matches(ident) == 2  # m3 fully, m2 shell written before the failure

    res = engine.sync(ident)
    assert res.inserted_count == 1
    assert store.count_matches(ident) == 3
    assert store.get_player_stats(ident, "m2") is not None
    assert store.get_cursor(ident)["last_match_id"] == "m3"


def test_two_players_same_store_no_bleed(tmp_path):
    a = PlayerIdentity("ollie", "chaos", region="na")
    b = PlayerIdentity("zed", "1234", region="na")
    shared = make_match("shared", [make_player("ollie", "chaos", kills=30), make_player("zed", "1234", kills=3)])
    engine, source, store = _engine(tmp_path, {"na": [shared]})

    engine.sync(a)
    engine.sync(b)

    assert store.count_matches(a) == 1
    assert store.count_matches(b) == 1
    assert store.get_player_stats(a, "shared")["kills"] == 30
    assert store.get_player_stats(b, "shared")["kills"] == 3
