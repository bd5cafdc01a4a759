"""Single entry point: campaign document text → Campaign."""

from __future__ import annotations

import logging

from solo_notation.models import Campaign
from solo_notation.storage import DocumentStore

from .merge import collect_mentions, merge_mentions
from .segments import extract_title, parse_sessions, split_front_matter

logger = logging.getLogger(__name__)


async def parse_campaign_document(
    text: str, path: str, store: DocumentStore | None = None
) -> Campaign:
    """Parse one campaign document, following linked sessions through `store`.

    Never raises on malformed notation; the worst case is an empty Campaign.
    """
    front_matter, _ = split_front_matter(text)
    title = extract_title(text, front_matter)
    sessions = await parse_sessions(text, path, store)
    mentions = collect_mentions(sessions, path)
    merged = merge_mentions(mentions)

    logger.debug(
        "parsed %s: %d sessions, %d mentions", path, len(sessions), len(mentions)
    )
    return Campaign(
        file=path,
        title=title,
        front_matter=front_matter,
        sessions=sessions,
        **merged,
    )
