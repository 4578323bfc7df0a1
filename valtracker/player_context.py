"""Conversation-scoped tracking of which Riot ID a session is about.

A session owns exactly one ``ActivePlayerContext``. The context holds a single
pointer that is either unset or a ``PlayerIdentity``; every new mention
replaces it wholesale. Stored match data is keyed by identity in the database
and is never touched when the pointer moves.
"""
from __future__ import annotations

import re
from typing import Optional

from valtracker.config import REGIONS
from valtracker.errors import MalformedIdentity

_REGION_TOKEN = "|".join(REGIONS)

# name#tag with an optional region written as "eu/name#tag" or "name#tag (eu)"
_MENTION_RE = re.compile(
    rf"(?:(?<![A-Za-z0-9])(?P<prefix>(?i:{_REGION_TOKEN}))/)?"
    r"(?P<name>[^\s#/()\[\],;]*)#(?P<tag>[A-Za-z0-9]*)"
    rf"(?:\s*[(\[](?P<suffix>(?i:{_REGION_TOKEN}))[)\]])?"
)


class PlayerIdentity:
    """A player referenced by Riot ID, plus the region once it is known.

    Equality ignores case on name and tag and does not consider the region.
    """

    __slots__ = ("name", "tag", "region")

    def __init__(self, name: str, tag: str, region: Optional[str] = None):
        self.name = name
        self.tag = tag
        self.region = region

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlayerIdentity):
            return NotImplemented
        return self.name.lower() == other.name.lower() and self.tag.lower() == other.tag.lower()

    __hash__ = None

    def __repr__(self) -> str:
        return f"PlayerIdentity(name={self.name!r}, tag={self.tag!r}, region={self.region!r})"

    @property
    def riot_id(self) -> str:
        return f"{self.name}#{self.tag}"

    @property
    def partition_key(self) -> str:
        """Cursor/row partition key. Only meaningful once the region is resolved."""
        return f"{self.region or ''}:{self.name.lower()}:{self.tag.lower()}"

    def to_dict(self) -> dict:
        return {"name": self.name, "tag": self.tag, "region": self.region, "riot_id": self.riot_id}


def _check_region(value: str, region: Optional[str]) -> Optional[str]:
    if region is None:
        return None
    region = region.strip().lower()
    if not region:
        return None
    if region not in REGIONS:
        raise MalformedIdentity(value, f"unknown region {region!r} (expected one of {', '.join(REGIONS)})")
    return region


def parse_riot_id(riot_id: str, region: Optional[str] = None) -> PlayerIdentity:
    """Parse an explicit ``name#tag`` Riot ID.

    Unlike ``resolve_mention`` the name may contain spaces. Raises
    ``MalformedIdentity`` when the delimiter is missing or either side is empty.
    """
    s = (riot_id or "").strip()
    i = s.find("#")
    if i == -1:
        raise MalformedIdentity(s, "expected format name#tag")
    name, tag = s[:i].strip(), s[i + 1:].strip()
    if not name:
        raise MalformedIdentity(s, "name is empty")
    if not tag:
        raise MalformedIdentity(s, "tag is empty")
    if "#" in tag:
        raise MalformedIdentity(s, "more than one '#' delimiter")
    return PlayerIdentity(name=name, tag=tag, region=_check_region(s, region))


def _is_fragment(name: str, tag: str) -> bool:
    """True for a half-written Riot ID such as ``ollie#`` or ``#chaos``.

    A lone ``#`` or ``#`` followed only by digits (``#1``) is ordinary prose.
    """
    if name:
        return True
    return bool(tag) and not tag.isdigit()


def resolve_mention(text: str) -> Optional[PlayerIdentity]:
    """Find the first Riot ID mentioned in free text.

    Returns None when the text mentions no Riot ID at all. Half-written
    mentions (``ollie#``, ``#chaos``) raise ``MalformedIdentity``, but only
    when no complete Riot ID appears anywhere in the text. Region tokens are
    only recognised for known regions.
    """
    if not text or "#" not in text:
        return None
    fragment = None
    for m in _MENTION_RE.finditer(text):
        name, tag = m.group("name"), m.group("tag")
        if name and tag:
            mention = m.group(0).strip()
            region_token = m.group("prefix") or m.group("suffix")
            return PlayerIdentity(name=name, tag=tag, region=_check_region(mention, region_token))
        if fragment is None and _is_fragment(name, tag):
            fragment = m
    if fragment is None:
        return None
    mention = fragment.group(0).strip()
    if not fragment.group("name"):
        raise MalformedIdentity(mention, "name is empty")
    raise MalformedIdentity(mention, "tag is empty")


class ActivePlayerContext:
    """Holds the active player pointer for one conversation session."""

    def __init__(self) -> None:
        self._active: Optional[PlayerIdentity] = None

    def set_active(self, identity: PlayerIdentity) -> PlayerIdentity:
        if not isinstance(identity, PlayerIdentity):
            raise TypeError("set_active expects a PlayerIdentity")
        self._active = identity
        return identity

    def get_active(self) -> Optional[PlayerIdentity]:
        return self._active

    @property
    def is_active(self) -> bool:
        return self._active is not None

    def observe(self, text: str) -> Optional[PlayerIdentity]:
        """Parse a user turn and switch the pointer if it names a player.

        Returns the newly active identity, or None when the turn mentions no
        Riot ID (the pointer is left as it was).
        """
        identity = resolve_mention(text)
        if identity is not None:
            self.set_active(identity)
        return identity
