"""Fold document-ordered entity mentions into one canonical record per entity.

Merge rules, applied strictly in mention order:
  npc / location / pc     tag diff:  "-tag" removes tag,
                                     "key=value" replaces any tag with that key,
                                     anything else is added once
  thread                  state is last-write-wins
  clock / track / event   current/total are last-write-wins
  timer                   value is last-write-wins
  reference               mentions accumulate; each one also counts as a
                          zero-tag npc/location mention

Every merge appends the mention's location; first mentions never change.
"""

from __future__ import annotations

from typing import Any

from solo_notation.models import (
    EntityMention,
    Location,
    NotationElement,
    ProgressEntity,
    Reference,
    Session,
    TaggedEntity,
    Thread,
    Timer,
)

from .tags import scan_mentions

# Payload fields scanned for tags, per element type. Meta notes are
# out-of-character and never scanned.
SCANNED_FIELDS: dict[str, tuple[str, ...]] = {
    "action": ("content",),
    "oracle_question": ("question",),
    "mechanics_roll": ("roll", "outcome"),
    "oracle_result": ("answer",),
    "consequence": ("description",),
    "table_lookup": ("result",),
    "generator": ("result",),
    "meta_note": (),
    "text": ("content",),
}

_TAGGED_GROUPS = {"npc": "npcs", "location": "locations", "pc": "player_characters"}
_PROGRESS_GROUPS = {"clock": "clocks", "track": "tracks", "event": "events"}


def scannable_text(element: NotationElement) -> str:
    """The text of an element that may carry entity tags."""
    fields = SCANNED_FIELDS[element.type]
    return " ".join(getattr(element, f) for f in fields if getattr(element, f))


def collect_mentions(sessions: list[Session], file: str) -> list[EntityMention]:
    """Scan every element of every scene, in document order."""
    mentions: list[EntityMention] = []
    for session in sessions:
        source = session.linked_file or file
        for scene in session.scenes:
            for element in scene.elements:
                text = scannable_text(element)
                if not text:
                    continue
                location = Location(
                    file=source,
                    line_number=element.line_number,
                    session=session.label,
                    scene=scene.id,
                )
                mentions.extend(scan_mentions(text, location))
    return mentions


def _tag_key(tag: str) -> str:
    return tag.split("=", 1)[0] if "=" in tag else tag


def apply_tag_diff(existing: list[str], changes: tuple[str, ...] | list[str]) -> list[str]:
    """Apply one mention's tags to an entity's tag list. Returns a new list."""
    tags = list(existing)
    for tag in changes:
        if tag.startswith("-"):
            removed = tag[1:]
            tags = [t for t in tags if t != removed]
            continue
        if "=" in tag:
            key = _tag_key(tag)
            tags = [t for t in tags if _tag_key(t) != key]
        if tag not in tags:
            tags.append(tag)
    return tags


def _merge_tagged(
    merged: dict[str, TaggedEntity], mention: EntityMention, tags: tuple[str, ...]
) -> None:
    existing = merged.get(mention.key)
    if existing is None:
        merged[mention.key] = TaggedEntity(
            id=mention.key,
            name=mention.name,
            tags=apply_tag_diff([], tags),
            first_mention=mention.location,
            mentions=[mention.location],
        )
        return
    merged[mention.key] = existing.model_copy(update={
        "tags": apply_tag_diff(existing.tags, tags),
        "mentions": [*existing.mentions, mention.location],
    })


def _merge_thread(merged: dict[str, Thread], mention: EntityMention) -> None:
    existing = merged.get(mention.key)
    if existing is None:
        merged[mention.key] = Thread(
            id=mention.key,
            name=mention.name,
            state=mention.state,
            first_mention=mention.location,
            mentions=[mention.location],
        )
        return
    merged[mention.key] = existing.model_copy(update={
        "state": mention.state,
        "mentions": [*existing.mentions, mention.location],
    })


def _merge_progress(merged: dict[str, ProgressEntity], mention: EntityMention) -> None:
    existing = merged.get(mention.key)
    locations = [*existing.locations, mention.location] if existing else [mention.location]
    merged[mention.key] = ProgressEntity(
        id=mention.key,
        name=existing.name if existing else mention.name,
        current=mention.current,
        total=mention.total,
        locations=locations,
    )


def _merge_timer(merged: dict[str, Timer], mention: EntityMention) -> None:
    existing = merged.get(mention.key)
    locations = [*existing.locations, mention.location] if existing else [mention.location]
    merged[mention.key] = Timer(
        id=mention.key,
        name=existing.name if existing else mention.name,
        value=mention.value,
        locations=locations,
    )


def _merge_reference(merged: dict[str, Reference], mention: EntityMention) -> None:
    existing = merged.get(mention.key)
    if existing is None:
        merged[mention.key] = Reference(
            id=mention.key.split(":", 1)[1],
            name=mention.name,
            type=mention.ref_type,
            first_mention=mention.location,
            mentions=[mention.location],
        )
        return
    merged[mention.key] = existing.model_copy(update={
        "mentions": [*existing.mentions, mention.location],
    })


def merge_mentions(mentions: list[EntityMention]) -> dict[str, dict[str, Any]]:
    """Fold mentions into per-kind mappings keyed by identity key.

    The returned keys match the entity fields of `Campaign`.
    """
    result: dict[str, dict[str, Any]] = {
        "npcs": {},
        "locations": {},
        "threads": {},
        "clocks": {},
        "tracks": {},
        "timers": {},
        "events": {},
        "player_characters": {},
        "references": {},
    }

    for mention in mentions:
        kind = mention.kind
        if kind in _TAGGED_GROUPS:
            _merge_tagged(result[_TAGGED_GROUPS[kind]], mention, mention.tags)
        elif kind == "thread":
            _merge_thread(result["threads"], mention)
        elif kind in _PROGRESS_GROUPS:
            _merge_progress(result[_PROGRESS_GROUPS[kind]], mention)
        elif kind == "timer":
            _merge_timer(result["timers"], mention)
        elif kind == "reference":
            _merge_reference(result["references"], mention)
            _merge_tagged(result[_TAGGED_GROUPS[mention.ref_type]], mention, ())

    return result
