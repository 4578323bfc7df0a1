"""Error kinds raised by the player-context and sync layers."""
from __future__ import annotations

from typing import Optional


class ValtrackerError(Exception):
    """Base class for all valtracker errors."""


class MalformedIdentity(ValtrackerError):
    """A Riot ID mention could not be parsed into a full identity."""

    def __init__(self, value: str, reason: str):
        super().__init__(f"Invalid Riot ID {value!r}: {reason}")
        self.value = value
        self.reason = reason


class RegionUnresolved(ValtrackerError):
    """No candidate region returned match history for a player."""

    def __init__(self, riot_id: str, candidates):
        self.riot_id = riot_id
        self.candidates = tuple(candidates)
        super().__init__(
            f"Could not resolve region for {riot_id} (tried {', '.join(self.candidates)})"
        )


class UpstreamError(ValtrackerError):
    """The match-history API answered with a non-success status or not at all.

    ``status`` is the HTTP status code, or None for timeouts and transport
    failures.
    """

    def __init__(self, status: Optional[int], message: str = ""):
        self.status = status
        self.message = message
        label = f"HTTP {status}" if status is not None else "no response"
        super().__init__(f"HenrikDev error ({label}){': ' + message if message else ''}")
