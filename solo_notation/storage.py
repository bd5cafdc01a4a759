"""Document store: read access to the markdown documents being indexed.

The parser and indexer take any object matching the protocol:

    async def read(self, path: str) -> str: ...
    async def list_documents(self) -> list[str]: ...
    def resolve_link(self, target: str, from_path: str) -> str | None: ...
    def invalidate(self) -> None: ...

Paths are POSIX-style and relative to the store root, e.g.
"Campaigns/Ashen Road/Session 3.md".

Two implementations are provided:

    VaultStorage   a directory of markdown files on disk.
    MemoryStorage  a dict of path → text. Useful for embedding the parser
                   and for tests.
"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Iterable, Protocol

MARKDOWN_SUFFIX = ".md"


# ---------------------------------------------------------------------------
# Protocol: every store implementation must match these signatures
# ---------------------------------------------------------------------------

class DocumentStore(Protocol):
    async def read(self, path: str) -> str: ...

    async def list_documents(self) -> list[str]: ...

    def resolve_link(self, target: str, from_path: str) -> str | None: ...

    def invalidate(self) -> None: ...


# ---------------------------------------------------------------------------
# Link resolution shared by both stores
# ---------------------------------------------------------------------------

def resolve_link_target(target: str, from_path: str, known: Iterable[str]) -> str | None:
    """Resolve a wiki-link target against the known document paths.

    Order: relative to the linking document's folder, then the store root,
    then a basename match anywhere (shortest path wins).
    """
    target = target.split("#", 1)[0].split("^", 1)[0].strip()
    if not target:
        return None
    if not target.lower().endswith(MARKDOWN_SUFFIX):
        target += MARKDOWN_SUFFIX

    known_paths = list(known)
    by_lower = {p.lower(): p for p in known_paths}

    folder = posixpath.dirname(from_path)
    candidates = [
        posixpath.normpath(posixpath.join(folder, target)) if folder else target,
        posixpath.normpath(target.lstrip("/")),
    ]
    for candidate in candidates:
        found = by_lower.get(candidate.lower())
        if found:
            return found

    basename = posixpath.basename(target).lower()
    matches = sorted(
        (p for p in known_paths if posixpath.basename(p).lower() == basename),
        key=lambda p: (p.count("/"), p),
    )
    return matches[0] if matches else None


# ---------------------------------------------------------------------------
# DocumentNotFound: raised by read() for a missing document
# ---------------------------------------------------------------------------

class DocumentNotFound(LookupError):
    """Raised when a document does not exist in the store."""


# ---------------------------------------------------------------------------
# VaultStorage: markdown files under a directory
# ---------------------------------------------------------------------------

class VaultStorage:
    """Known paths for link resolution are scanned once and reused until
    `invalidate()` or `list_documents()` rescans them.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._known: list[str] | None = None

    def _file(self, path: str) -> Path:
        return self._base / Path(*path.split("/"))

    def _scan(self) -> list[str]:
        if not self._base.is_dir():
            return []
        paths = []
        for p in self._base.rglob(f"*{MARKDOWN_SUFFIX}"):
            relative = p.relative_to(self._base)
            if p.is_file() and not any(part.startswith(".") for part in relative.parts):
                paths.append(relative.as_posix())
        return sorted(paths)

    def invalidate(self) -> None:
        self._known = None

    async def read(self, path: str) -> str:
        file = self._file(path)
        if not file.is_file():
            raise DocumentNotFound(path)
        return file.read_text(encoding="utf-8")

    async def list_documents(self) -> list[str]:
        self._known = self._scan()
        return list(self._known)

    def resolve_link(self, target: str, from_path: str) -> str | None:
        if self._known is None:
            self._known = self._scan()
        return resolve_link_target(target, from_path, self._known)


# ---------------------------------------------------------------------------
# MemoryStorage: path → text dict
# ---------------------------------------------------------------------------

class MemoryStorage:
    def __init__(self, documents: dict[str, str] | None = None) -> None:
        self._docs: dict[str, str] = dict(documents or {})

    def write(self, path: str, text: str) -> None:
        self._docs[path] = text

    def delete(self, path: str) -> None:
        self._docs.pop(path, None)

    async def read(self, path: str) -> str:
        try:
            return self._docs[path]
        except KeyError:
            raise DocumentNotFound(path) from None

    async def list_documents(self) -> list[str]:
        return sorted(p for p in self._docs if p.lower().endswith(MARKDOWN_SUFFIX))

    def invalidate(self) -> None:
        pass

    def resolve_link(self, target: str, from_path: str) -> str | None:
        return resolve_link_target(target, from_path, self._docs)
