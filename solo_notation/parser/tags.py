"""Bracketed entity tags → unmerged mention records.

Forward tags:
  [N:Name|tag|tag]         npc
  [L:Name|tag]             location
  [PC:Name|tag]            player character
  [Thread:Name|State]      thread (state required)
  [Clock:Name 3/6]         clock   (also [Clock:Name|3/6])
  [Track:Name 2/4]         track
  [E:Name 1/8]             event
  [Timer:Name 5]           timer   (also [Timer:Name|5])

Back-references:
  [#N:Name]  [#L:Name]

Kind keywords are case-sensitive. A tag with an empty name, a thread without
a state, or a progress tag without numbers is skipped silently.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, Field

from solo_notation.models import EntityMention, Location, ReferenceType

# One scanner for every tag keeps mentions in left-to-right order.
_TAG = re.compile(r"\[(?P<ref>#?)(?P<kind>N|L|PC|Thread|Clock|Track|Timer|E):(?P<body>[^\[\]]*)\]")
_COUNTER = re.compile(r"^(?P<name>.*?)[\s|]+(?P<current>\d+)\s*/\s*(?P<total>\d+)\s*$")
_COUNTDOWN = re.compile(r"^(?P<name>.*?)[\s|]+(?P<value>-?\d+)\s*$")
_REFERENCE_ONLY = re.compile(r"^\[#(N|L):([^\[\]|]*)\]$")

KIND_PREFIXES: dict[str, str] = {
    "N": "npc",
    "L": "location",
    "PC": "pc",
    "Thread": "thread",
    "Clock": "clock",
    "Track": "track",
    "E": "event",
    "Timer": "timer",
}

_REFERENCE_TYPES: dict[str, ReferenceType] = {"N": "npc", "L": "location"}


def identity_key(prefix: str, name: str) -> str:
    """`npc:grim`, `location:dark woods`, case-insensitive and trimmed."""
    return f"{prefix}:{name.strip().lower()}"


def _split_body(body: str) -> tuple[str, list[str]]:
    parts = [p.strip() for p in body.split("|")]
    return parts[0], [p for p in parts[1:] if p]


def _mention_from_tag(kind: str, body: str, location: Location) -> EntityMention | None:
    prefix = KIND_PREFIXES[kind]

    if kind in ("N", "L", "PC"):
        name, tags = _split_body(body)
        if not name:
            return None
        return EntityMention(
            kind=prefix, key=identity_key(prefix, name), name=name,
            tags=tuple(tags), location=location,
        )

    if kind == "Thread":
        name, rest = _split_body(body)
        if not name or not rest:
            return None
        return EntityMention(
            kind="thread", key=identity_key(prefix, name), name=name,
            state=rest[0], location=location,
        )

    if kind == "Timer":
        m = _COUNTDOWN.match(body.strip())
        if not m or not m.group("name").strip(" |"):
            return None
        name = m.group("name").strip(" |")
        return EntityMention(
            kind="timer", key=identity_key(prefix, name), name=name,
            value=int(m.group("value")), location=location,
        )

    # Clock, Track, E
    m = _COUNTER.match(body.strip())
    if not m or not m.group("name").strip(" |"):
        return None
    name = m.group("name").strip(" |")
    return EntityMention(
        kind=prefix, key=identity_key(prefix, name), name=name,
        current=int(m.group("current")), total=int(m.group("total")),
        location=location,
    )


def _reference_from_tag(kind: str, body: str, location: Location) -> EntityMention | None:
    ref_type = _REFERENCE_TYPES.get(kind)
    name = body.split("|")[0].strip()
    if ref_type is None or not name:
        return None
    return EntityMention(
        kind="reference", key=identity_key(ref_type, name), name=name,
        ref_type=ref_type, location=location,
    )


def scan_mentions(text: str, location: Location) -> list[EntityMention]:
    """Every forward tag and back-reference in `text`, in order of appearance."""
    mentions: list[EntityMention] = []
    for match in _TAG.finditer(text):
        kind, body = match.group("kind"), match.group("body")
        if match.group("ref"):
            mention = _reference_from_tag(kind, body, location)
        else:
            mention = _mention_from_tag(kind, body, location)
        if mention is not None:
            mentions.append(mention)
    return mentions


class ExtractedTags(BaseModel):
    """Mentions from one text block, grouped by kind."""

    npcs: list[EntityMention] = Field(default_factory=list)
    locations: list[EntityMention] = Field(default_factory=list)
    threads: list[EntityMention] = Field(default_factory=list)
    clocks: list[EntityMention] = Field(default_factory=list)
    tracks: list[EntityMention] = Field(default_factory=list)
    timers: list[EntityMention] = Field(default_factory=list)
    events: list[EntityMention] = Field(default_factory=list)
    player_characters: list[EntityMention] = Field(default_factory=list)
    references: list[EntityMention] = Field(default_factory=list)


_GROUPS = {
    "npc": "npcs",
    "location": "locations",
    "thread": "threads",
    "clock": "clocks",
    "track": "tracks",
    "timer": "timers",
    "event": "events",
    "pc": "player_characters",
    "reference": "references",
}


def extract_tags(text: str, location: Location) -> ExtractedTags:
    grouped = ExtractedTags()
    for mention in scan_mentions(text, location):
        getattr(grouped, _GROUPS[mention.kind]).append(mention)
    return grouped


def extract_references(text: str, location: Location) -> list[EntityMention]:
    return [m for m in scan_mentions(text, location) if m.kind == "reference"]


def is_reference(text: str) -> bool:
    """True iff `text` is exactly one back-reference tag, e.g. ``[#N:Grim]``."""
    m = _REFERENCE_ONLY.match(text.strip())
    return bool(m and m.group(2).strip())
