"""Incremental match sync for one player at a time.

Each call fetches the newest page of the player's match history, walks it
newest first and stops at the first match the player's cursor already
knows. New matches are projected and written row by row; the cursor is only
moved once the whole page has been handled, so a failure midway leaves a
stored prefix and an unmoved cursor and the next call simply picks up again.

The engine is safe to call as often as the caller likes: with nothing new
upstream it writes nothing and leaves the cursor where it was.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from valtracker.config import MAX_PAGE_SIZE, REGIONS, Settings
from valtracker.db import MatchStore
from valtracker.errors import RegionUnresolved, UpstreamError, ValtrackerError
from valtracker.player_context import PlayerIdentity
from valtracker.projection import match_id_of, project_match, started_at_of

logger = logging.getLogger(__name__)


class MatchSource(Protocol):
    def get_matches(
        self, region: str, name: str, tag: str, size: int = MAX_PAGE_SIZE, mode: Optional[str] = "competitive"
    ) -> List[Dict[str, Any]]:
        ...


@dataclass
class SyncResult:
    identity: PlayerIdentity
    inserted_count: int = 0
    observed_count: int = 0  # matches walked before reaching the cursor
    resolved_region: Optional[str] = None
    cursor_match_id: Optional[str] = None
    error: Optional[ValtrackerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "ok": self.ok,
            "riot_id": self.identity.riot_id,
            "region": self.resolved_region,
            "inserted": self.inserted_count,
            "observed": self.observed_count,
            "cursor": self.cursor_match_id,
        }
        if self.error is not None:
            out["error"] = str(self.error)
        return out


class IncrementalSyncEngine:
    def __init__(
        self,
        source: MatchSource,
        store: MatchStore,
        page_size: int = MAX_PAGE_SIZE,
        mode: Optional[str] = "competitive",
        region_candidates: Sequence[str] = REGIONS,
    ):
        self.source = source
        self.store = store
        self.page_size = page_size
        self.mode = mode
        self.region_candidates = tuple(region_candidates)

    @classmethod
    def from_settings(cls, settings: Settings, source: MatchSource, store: MatchStore) -> "IncrementalSyncEngine":
        return cls(
            source,
            store,
            page_size=settings.page_size,
            mode=settings.match_mode,
            region_candidates=settings.region_candidates,
        )

    def _fetch(self, region: str, identity: PlayerIdentity) -> List[Dict[str, Any]]:
        return self.source.get_matches(region, identity.name, identity.tag, size=self.page_size, mode=self.mode)

    def resolve_region(self, identity: PlayerIdentity) -> Tuple[str, List[Dict[str, Any]]]:
        """Probe candidate regions in order until one has match history.

        The winning region is written onto ``identity``. Returns it together
        with the page the probe fetched so the sync can reuse it.
        """
        for region in self.region_candidates:
            try:
                page = self._fetch(region, identity)
            except UpstreamError as exc:
                logger.debug("region probe %s for %s failed: %s", region, identity.riot_id, exc)
                continue
            if page:
                identity.region = region
                logger.info("resolved %s to region %s", identity.riot_id, region)
                return region, page
            logger.debug("region probe %s for %s returned no matches", region, identity.riot_id)
        raise RegionUnresolved(identity.riot_id, self.region_candidates)

    def sync(self, identity: PlayerIdentity) -> SyncResult:
        """Fetch and store matches newer than the player's cursor."""
        result = SyncResult(identity=identity, resolved_region=identity.region)
        try:
            if identity.region:
                page = self._fetch(identity.region, identity)
            else:
                _, page = self.resolve_region(identity)
                result.resolved_region = identity.region
        except (RegionUnresolved, UpstreamError) as exc:
            logger.warning("sync of %s failed: %s", identity.riot_id, exc)
            result.error = exc
            return result

        cursor = self.store.get_cursor(identity)
        last_known = cursor["last_match_id"] if cursor else None
        result.cursor_match_id = last_known

        newest_id: Optional[str] = None
        newest_started: Optional[str] = None
        for payload in page:
            if not isinstance(payload, dict):
                continue
            match_id = match_id_of(payload)
            if not match_id:
                continue
            if newest_id is None:
                newest_id, newest_started = match_id, started_at_of(payload)
            if last_known and match_id == last_known:
                break
            result.observed_count += 1

            proj = project_match(payload, identity)
            if not proj.player_found:
                logger.warning("%s not in roster of match %s; storing match without stats", identity.riot_id, match_id)
            if self.store.insert_match_if_absent(identity, proj):
                result.inserted_count += 1
            self.store.upsert_player_stats(identity, proj)

        if newest_id is not None:
            if newest_id != last_known:
                self.store.set_cursor(identity, newest_id, newest_started)
            result.cursor_match_id = newest_id

        logger.info(
            "synced %s (%s): %d new of %d observed",
            identity.riot_id,
            identity.region,
            result.inserted_count,
            result.observed_count,
        )
        return result
