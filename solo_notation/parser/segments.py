"""Campaign document → sessions → scenes → fenced notation blocks.

Document shape:

    ---
    title: Ashen Road          ← YAML front matter (optional)
    ---
    # Ashen Road               ← title fallback
    ## Session 2               ← inline session (also "Sessione", "Sesión", "Sessão")
    *Date: 2025-03-01 | Duration: 2h*
    ### S1 *At the gate*       ← scene; S3a and T2-S5 are valid ids too
    ```
    > I knock on the gate      ← notation, classified line by line
    ```
    ## Linked sessions         ← another level-1/2 heading closes the session
                               unless a scene heading follows it
    - [[Session 1]]            ← linked session, body read from another document

Linked sessions are fetched one at a time, in the order their links appear.
A link that cannot be resolved or read is logged and skipped. Sessions are
sorted by number once every session is collected.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import yaml
from pydantic import BaseModel

from solo_notation.models import NotationElement, Scene, Session
from solo_notation.storage import DocumentNotFound, DocumentStore

from .classifier import parse_code_block

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Campaign"

_SESSION_WORD = r"(?:Session|Sessione|Sesión|Sessão)"
_SESSION_HEADING = re.compile(rf"^##\s+{_SESSION_WORD}\s+(\d+)", re.IGNORECASE)
_SECTION_HEADING = re.compile(r"^#{1,2}\s")
_SCENE_HEADING = re.compile(r"^###\s+((?:\w+-)?S\d+[\w.-]*)(?=[\s*:]|$)(.*)$")
_TITLE_HEADING = re.compile(r"^#\s+(.+)$")
_WIKILINK = re.compile(r"\[\[([^\]]+)\]\]")
_SESSION_LINK = re.compile(rf"(?:^|/){_SESSION_WORD}\s+(\d+)", re.IGNORECASE)
_META_LINE = re.compile(r"^\*([^*]+)\*$")
_RECAP = re.compile(r"^\*\*Recap:\*\*\s*(.+)$", re.IGNORECASE)
_GOALS = re.compile(r"^\*\*Goals:\*\*\s*(.+)$", re.IGNORECASE)
_FENCE_OPEN = re.compile(r"^```[\w-]*$")
_FENCE_CLOSE = "```"


# ---------------------------------------------------------------------------
# Front matter and title
# ---------------------------------------------------------------------------

def split_front_matter(text: str) -> tuple[dict[str, Any], int]:
    """Return (front matter mapping, index of the first body line).

    Unparseable or non-mapping YAML is treated as empty front matter.
    """
    lines = text.split("\n")
    if not lines or lines[0].strip() != "---":
        return {}, 0
    for end in range(1, len(lines)):
        if lines[end].strip() == "---":
            break
    else:
        return {}, 0

    raw = "\n".join(lines[1:end])
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        logger.warning("Front matter is not valid YAML: %s", e)
        return {}, end + 1
    if data is None:
        return {}, end + 1
    if not isinstance(data, dict):
        logger.warning("Front matter is not a mapping (got %s)", type(data).__name__)
        return {}, end + 1
    return {str(k): v for k, v in data.items()}, end + 1


def extract_front_matter(text: str) -> dict[str, Any]:
    return split_front_matter(text)[0]


def extract_title(text: str, front_matter: dict[str, Any] | None = None) -> str:
    """Front matter title, else the first `# ` heading, else a default."""
    if front_matter is None:
        front_matter, body_start = split_front_matter(text)
    else:
        body_start = split_front_matter(text)[1]
    title = front_matter.get("title")
    if title is not None and str(title).strip():
        return str(title).strip()
    for line in text.split("\n")[body_start:]:
        m = _TITLE_HEADING.match(line)
        if m and m.group(1).strip():
            return m.group(1).strip()
    return DEFAULT_TITLE


# ---------------------------------------------------------------------------
# Session metadata and links
# ---------------------------------------------------------------------------

def parse_session_metadata(line: str) -> dict[str, str]:
    """`*Date: 2025-03-01 | Duration: 2h*` → {"Date": ..., "Duration": ...}."""
    metadata: dict[str, str] = {}
    m = _META_LINE.match(line.strip())
    if not m:
        return metadata
    for pair in m.group(1).split("|"):
        key, sep, value = pair.partition(":")
        key, value = key.strip(), value.strip()
        if sep and key and value:
            metadata[key] = value
    return metadata


class SessionLink(BaseModel):
    line_number: int
    session_number: int
    link_text: str  # "[[Session 3|The Dungeon]]"
    target: str  # "Session 3"
    alias: str | None = None


def find_session_links(line: str, line_number: int) -> list[SessionLink]:
    """Wiki links on one line that point at a "Session N" document."""
    links: list[SessionLink] = []
    for match in _WIKILINK.finditer(line):
        target, _, alias = match.group(1).partition("|")
        target = target.strip()
        alias = alias.strip() or None
        session = _SESSION_LINK.search(target.split("#", 1)[0])
        if session is None and alias:
            session = _SESSION_LINK.search(alias)
        if session is None:
            continue
        links.append(SessionLink(
            line_number=line_number,
            session_number=int(session.group(1)),
            link_text=match.group(0),
            target=target,
            alias=alias,
        ))
    return links


def extract_session_links(text: str) -> list[SessionLink]:
    links: list[SessionLink] = []
    for index, line in enumerate(text.split("\n")):
        links.extend(find_session_links(line, index))
    return links


# ---------------------------------------------------------------------------
# Scenes and fenced blocks
# ---------------------------------------------------------------------------

def parse_scene_content(content: str, base_line: int) -> list[NotationElement]:
    """Classify the lines inside every fenced block of one scene.

    Prose outside fences is ignored. An unterminated block runs to the end
    of the scene.
    """
    elements: list[NotationElement] = []
    lines = content.split("\n")
    block_start: int | None = None

    for i, line in enumerate(lines):
        stripped = line.strip()
        if block_start is None:
            if _FENCE_OPEN.match(stripped):
                block_start = i + 1
        elif stripped == _FENCE_CLOSE:
            elements.extend(parse_code_block("\n".join(lines[block_start:i]), base_line + block_start))
            block_start = None

    if block_start is not None:
        logger.debug("Unterminated code block at line %d", base_line + block_start - 1)
        elements.extend(parse_code_block("\n".join(lines[block_start:]), base_line + block_start))

    return elements


def parse_scenes(content: str, base_line: int) -> list[Scene]:
    """Split a session body into scenes. `base_line` is the body's first line."""
    scenes: list[Scene] = []
    lines = content.split("\n")

    current: tuple[str, str | None, int] | None = None  # (id, context, heading index)
    in_fence = False

    def _close(end: int) -> None:
        scene_id, context, start = current
        body = "\n".join(lines[start + 1:end + 1])
        scenes.append(Scene(
            id=scene_id,
            context=context,
            elements=parse_scene_content(body, base_line + start + 1),
            start_line=base_line + start,
            end_line=base_line + end,
        ))

    for i, line in enumerate(lines):
        stripped = line.strip()
        if in_fence:
            if stripped == _FENCE_CLOSE:
                in_fence = False
            continue
        if _FENCE_OPEN.match(stripped):
            in_fence = True
            continue

        m = _SCENE_HEADING.match(line)
        if not m:
            continue
        if current is not None:
            _close(i - 1)
        context = m.group(2).strip(" \t*:-") or None
        current = (m.group(1), context, i)

    if current is not None:
        _close(len(lines) - 1)

    return scenes


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

async def parse_linked_session(
    store: DocumentStore, path: str, session_number: int
) -> Session | None:
    """Read and parse a session whose body lives in its own document."""
    try:
        text = await store.read(path)
    except DocumentNotFound:
        logger.warning("Linked session document not found: %s", path)
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Could not read linked session %s: %s", path, e)
        return None

    lines = text.split("\n")
    body_start = split_front_matter(text)[1]
    first_line = lines[body_start] if body_start < len(lines) else ""
    metadata = parse_session_metadata(first_line)

    # Explicit labelled fields anywhere in the document win
    for line in lines[body_start:]:
        m = _RECAP.match(line.strip())
        if m:
            metadata["Recap"] = m.group(1).strip()
        m = _GOALS.match(line.strip())
        if m:
            metadata["Goals"] = m.group(1).strip()

    return Session(
        number=session_number,
        metadata=metadata,
        scenes=parse_scenes(text, 0),
        start_line=0,
        end_line=len(lines) - 1,
        linked_file=path,
    )


async def _resolve_linked_session(
    link: SessionLink, path: str, store: DocumentStore | None, included: set[str]
) -> Session | None:
    if store is None:
        logger.warning("No document store available, cannot follow %s", link.link_text)
        return None

    linked_path = store.resolve_link(link.target, path)
    if linked_path is None:
        logger.warning("Could not resolve session link %s in %s", link.link_text, path)
        return None
    if linked_path == path or linked_path in included:
        return None

    session = await parse_linked_session(store, linked_path, link.session_number)
    if session is None:
        logger.warning("Could not parse linked session %s in %s", link.link_text, path)
        return None

    included.add(linked_path)
    return session.model_copy(update={
        "start_line": link.line_number,
        "end_line": link.line_number,
    })


def _inline_session(
    number: int, lines: list[str], start: int, end: int
) -> Session:
    metadata_line = lines[start + 1] if start + 1 <= end else ""
    body = "\n".join(lines[start + 1:end + 1])
    return Session(
        number=number,
        metadata=parse_session_metadata(metadata_line),
        scenes=parse_scenes(body, start + 1),
        start_line=start,
        end_line=end,
    )


def _scene_follows(lines: list[str], start: int) -> bool:
    """True if a scene heading comes before the next session heading."""
    in_fence = False
    for line in lines[start:]:
        stripped = line.strip()
        if in_fence:
            if stripped == _FENCE_CLOSE:
                in_fence = False
            continue
        if _FENCE_OPEN.match(stripped):
            in_fence = True
        elif _SESSION_HEADING.match(line):
            return False
        elif _SCENE_HEADING.match(line):
            return True
    return False


async def parse_sessions(
    text: str, path: str, store: DocumentStore | None = None
) -> list[Session]:
    """Collect inline and linked sessions, sorted by session number."""
    lines = text.split("\n")
    body_start = split_front_matter(text)[1]

    sessions: list[Session] = []
    included: set[str] = set()
    open_session: tuple[int, int] | None = None  # (number, heading index)
    in_fence = False

    for index in range(body_start, len(lines)):
        line = lines[index]
        stripped = line.strip()

        if in_fence:
            if stripped == _FENCE_CLOSE:
                in_fence = False
            continue
        if open_session is not None and _FENCE_OPEN.match(stripped):
            in_fence = True
            continue

        heading = _SESSION_HEADING.match(line)
        if heading:
            if open_session is not None:
                sessions.append(_inline_session(open_session[0], lines, open_session[1], index - 1))
            open_session = (int(heading.group(1)), index)
            continue

        if open_session is not None:
            if not _SECTION_HEADING.match(line):
                continue
            if _scene_follows(lines, index + 1):
                logger.debug("Heading at line %d is inside Session %d", index, open_session[0])
                continue
            sessions.append(_inline_session(open_session[0], lines, open_session[1], index - 1))
            open_session = None

        # Links only count outside an inline session
        for link in find_session_links(line, index):
            session = await _resolve_linked_session(link, path, store, included)
            if session is not None:
                sessions.append(session)

    if open_session is not None:
        sessions.append(_inline_session(open_session[0], lines, open_session[1], len(lines) - 1))

    sessions.sort(key=lambda s: s.number)
    return sessions


def looks_like_campaign(text: str) -> bool:
    """A campaign declares itself in front matter or holds sessions."""
    front_matter, body_start = split_front_matter(text)
    if "campaign" in front_matter:
        return True
    lines = text.split("\n")[body_start:]
    if any(_SESSION_HEADING.match(line) for line in lines):
        return True
    return any(find_session_links(line, i) for i, line in enumerate(lines))
