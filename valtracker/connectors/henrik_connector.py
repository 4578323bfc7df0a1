from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from valtracker.config import MAX_PAGE_SIZE
from valtracker.errors import UpstreamError

logger = logging.getLogger(__name__)


class HenrikDevConnector:
    """Connector for the unofficial HenrikDev Valorant API.

    Match history lives under ``/valorant/v3/matches/{region}/{name}/{tag}``
    and is partitioned by region. The endpoint returns at most 10 matches per
    call, each with the full round-by-round detail of all ten players, so a
    single page is large; callers are expected to project what they need and
    drop the rest.

    Reference: https://docs.henrikdev.xyz/valorant.html
    """

    BASE_URL = "https://api.henrikdev.xyz"

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        max_retries: int = 2,
    ):
        """Initialize the HenrikDev connector.

        Args:
            token: API key (or use HENRIK_API_KEY env var); sent as Authorization
            base_url: Override the API host, mainly for proxies and tests
            timeout: Request timeout in seconds
            max_retries: Retry attempts for 429, 5xx and transport errors
        """
        self.token = token or os.getenv("HENRIK_API_KEY")
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        self.max_retries = max_retries
        self._client: Optional[httpx.Client] = None

    def _client_instance(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "*/*"}
        if self.token:
            headers["Authorization"] = self.token
        return headers

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def get_matches(
        self,
        region: str,
        name: str,
        tag: str,
        size: int = MAX_PAGE_SIZE,
        mode: Optional[str] = "competitive",
    ) -> List[Dict[str, Any]]:
        """Fetch the newest raw match payloads for a Riot ID, newest first.

        Args:
            region: Region shard (na, eu, ap, kr, latam, br)
            name: Riot ID name
            tag: Riot ID tag
            size: Page size, clamped to 1..10
            mode: Optional game mode filter

        Returns:
            List of raw match payloads as returned by the API

        Raises:
            UpstreamError: on a non-success status after retries, or on timeout
        """
        size = max(1, min(MAX_PAGE_SIZE, int(size)))
        url = f"{self.base_url}/valorant/v3/matches/{region}/{quote(name, safe='')}/{quote(tag, safe='')}"
        params: Dict[str, Any] = {"size": size}
        if mode:
            params["mode"] = mode

        for attempt in range(self.max_retries + 1):
            try:
                client = self._client_instance()
                resp = client.get(url, headers=self._headers(), params=params)
            except httpx.TimeoutException as exc:
                logger.warning("HenrikDev timeout for %s/%s#%s (attempt %d)", region, name, tag, attempt + 1)
                if attempt < self.max_retries:
                    time.sleep(0.5 * (attempt + 1))
                    continue
                raise UpstreamError(None, f"timeout: {exc}") from exc
            except httpx.HTTPError as exc:
                logger.warning("HenrikDev transport error for %s/%s#%s: %s", region, name, tag, exc)
                if attempt < self.max_retries:
                    time.sleep(0.5 * (attempt + 1))
                    continue
                raise UpstreamError(None, str(exc)) from exc

            status = resp.status_code
            # Handle rate limiting
            if status == 429:
                try:
                    retry_after = int(resp.headers.get("Retry-After") or 0)
                except ValueError:
                    retry_after = 0
                if attempt < self.max_retries:
                    time.sleep(retry_after or 0.5 * (attempt + 1))
                    continue
                raise UpstreamError(status, "rate limited")
            if status >= 500 and attempt < self.max_retries:
                time.sleep(0.5 * (attempt + 1))
                continue
            if status < 200 or status >= 300:
                raise UpstreamError(status, _error_message(resp))

            try:
                body = resp.json()
            except ValueError as exc:
                raise UpstreamError(status, "response was not JSON") from exc
            data = body.get("data") if isinstance(body, dict) else None
            return data if isinstance(data, list) else []

        raise UpstreamError(None, "no attempt made")


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return ""
    errors = body.get("errors") if isinstance(body, dict) else None
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return str(errors[0].get("message") or "")
    return ""
