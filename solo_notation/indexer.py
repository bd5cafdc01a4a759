"""Campaign index: path → Campaign, rebuilt per document.

Every (re)index of a path parses the whole document again and replaces the
entry in one assignment; nothing is patched in place, so a reader sees either
the old Campaign or the new one.

Change notifications (created / modified / deleted / renamed) re-index the
affected campaign and every campaign whose session links point at the
changed document.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from solo_notation.config import default_config
from solo_notation.models import (
    Campaign,
    CampaignStats,
    ChangeEvent,
    ProgressEntity,
    TaggedEntity,
    Thread,
    Timer,
)
from solo_notation.parser import (
    calculate_progress,
    extract_session_links,
    is_complete,
    is_near_complete,
    is_timer_urgent,
    looks_like_campaign,
    parse_campaign_document,
    progress_status,
)
from solo_notation.storage import DocumentNotFound, DocumentStore

logger = logging.getLogger(__name__)


def is_active_thread(thread: Thread) -> bool:
    return thread.state.strip().lower() == "open"


class CampaignIndexer:
    def __init__(self, store: DocumentStore, config: dict[str, Any] | None = None) -> None:
        self._store = store
        self._config = default_config()
        self._config.update(config or {})
        self._campaigns: dict[str, Campaign] = {}
        self._link_targets: dict[str, list[str]] = {}

    @property
    def config(self) -> dict[str, Any]:
        return dict(self._config)

    def configure(self, config: dict[str, Any]) -> None:
        """Replace settings. Takes effect on the next (re)index or query."""
        self._config = default_config()
        self._config.update(config)

    # ------------------------------------------------------------------
    # Parsing and indexing
    # ------------------------------------------------------------------

    async def parse(self, text: str, path: str) -> Campaign:
        """Parse without storing."""
        return await parse_campaign_document(text, path, self._store)

    def _in_campaign_folder(self, path: str) -> bool:
        folder = self._config.get("campaign_folder") or ""
        return not folder or path == folder or path.startswith(folder.rstrip("/") + "/")

    async def _build(self, path: str, text: str) -> Campaign:
        started = time.perf_counter()
        campaign = await self.parse(text, path)
        self._link_targets[path] = [link.target for link in extract_session_links(text)]
        logger.debug(
            "indexed %s in %.1fms (%d sessions, %d npcs)",
            path, (time.perf_counter() - started) * 1000,
            len(campaign.sessions), len(campaign.npcs),
        )
        return campaign

    async def index_one(self, path: str) -> Campaign | None:
        """Re-parse one document and replace its entry."""
        self._store.invalidate()
        return await self._index(path)

    async def _index(self, path: str) -> Campaign | None:
        try:
            text = await self._store.read(path)
        except DocumentNotFound:
            logger.warning("Cannot index %s: document not found", path)
            self.remove(path)
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot index %s: %s", path, e)
            return None

        campaign = await self._build(path, text)
        self._campaigns[path] = campaign
        return campaign

    async def index_all(self) -> list[Campaign]:
        """Rebuild the whole index from every campaign document in the store."""
        fresh: dict[str, Campaign] = {}
        self._link_targets = {}
        for path in await self._store.list_documents():
            if not self._in_campaign_folder(path):
                continue
            try:
                text = await self._store.read(path)
            except (DocumentNotFound, OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping %s: %s", path, e)
                continue
            if not looks_like_campaign(text):
                logger.debug("Skipping %s: not a campaign document", path)
                continue
            fresh[path] = await self._build(path, text)

        self._campaigns = fresh
        logger.info("Indexed %d campaigns", len(fresh))
        return list(fresh.values())

    def remove(self, path: str) -> bool:
        self._link_targets.pop(path, None)
        return self._campaigns.pop(path, None) is not None

    # ------------------------------------------------------------------
    # Change notifications
    # ------------------------------------------------------------------

    def campaigns_linking(self, path: str) -> list[str]:
        """Indexed campaigns whose sessions live in (or link to) `path`."""
        dependents = []
        for campaign_path, campaign in self._campaigns.items():
            if campaign_path == path:
                continue
            if path in campaign.linked_files or any(
                self._store.resolve_link(target, campaign_path) == path
                for target in self._link_targets.get(campaign_path, [])
            ):
                dependents.append(campaign_path)
        return dependents

    async def _refresh(self, path: str) -> None:
        if not self._in_campaign_folder(path):
            return
        try:
            text = await self._store.read(path)
        except DocumentNotFound:
            self.remove(path)
            return
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot re-index %s: %s", path, e)
            return
        if path in self._campaigns or looks_like_campaign(text):
            self._campaigns[path] = await self._build(path, text)

    async def handle_change(self, event: ChangeEvent) -> None:
        logger.debug("change %s %s", event.kind, event.path)
        self._store.invalidate()
        affected: list[str] = []

        if event.kind == "deleted":
            affected = self.campaigns_linking(event.path)
            self.remove(event.path)

        elif event.kind == "renamed":
            if event.old_path:
                affected = self.campaigns_linking(event.old_path)
                self.remove(event.old_path)
            await self._refresh(event.path)

        else:  # created / modified
            await self._refresh(event.path)

        affected.extend(self.campaigns_linking(event.path))
        for path in dict.fromkeys(affected):
            if path != event.path and path in self._campaigns:
                await self._index(path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_campaign(self, path: str) -> Campaign | None:
        return self._campaigns.get(path)

    def get_all_campaigns(self) -> list[Campaign]:
        return list(self._campaigns.values())

    def get_all_npcs(self) -> list[TaggedEntity]:
        return [npc for c in self._campaigns.values() for npc in c.npcs.values()]

    def get_all_locations(self) -> list[TaggedEntity]:
        return [loc for c in self._campaigns.values() for loc in c.locations.values()]

    def get_all_threads(self) -> list[Thread]:
        return [t for c in self._campaigns.values() for t in c.threads.values()]

    def get_active_threads(self) -> list[Thread]:
        return [t for t in self.get_all_threads() if is_active_thread(t)]

    def get_all_progress_elements(self) -> list[ProgressEntity | Timer]:
        elements: list[ProgressEntity | Timer] = []
        for c in self._campaigns.values():
            elements.extend(c.clocks.values())
            elements.extend(c.tracks.values())
            elements.extend(c.timers.values())
            elements.extend(c.events.values())
        return elements

    def describe_progress(self, element: ProgressEntity | Timer) -> dict[str, Any]:
        """Element plus completion flags, using the configured thresholds."""
        data = element.model_dump()
        data["kind"] = element.id.split(":", 1)[0]
        if isinstance(element, Timer):
            data["urgent"] = is_timer_urgent(
                element.value, self._config["timer_urgent_threshold"]
            )
            return data
        threshold = self._config["near_complete_threshold"]
        data["percent"] = calculate_progress(element.current, element.total)
        data["complete"] = is_complete(element.current, element.total)
        data["near_complete"] = is_near_complete(element.current, element.total, threshold)
        data["status"] = progress_status(element.current, element.total, threshold)
        return data

    def get_campaign_stats(self, path: str) -> CampaignStats | None:
        campaign = self._campaigns.get(path)
        if campaign is None:
            return None
        scenes = [scene for s in campaign.sessions for scene in s.scenes]
        element_types = [e.type for scene in scenes for e in scene.elements]
        return CampaignStats(
            sessions=len(campaign.sessions),
            scenes=len(scenes),
            npcs=len(campaign.npcs),
            locations=len(campaign.locations),
            active_threads=sum(1 for t in campaign.threads.values() if is_active_thread(t)),
            progress_elements=(
                len(campaign.clocks) + len(campaign.tracks)
                + len(campaign.timers) + len(campaign.events)
            ),
            table_lookups=element_types.count("table_lookup"),
            generators=element_types.count("generator"),
            meta_notes=element_types.count("meta_note"),
        )
