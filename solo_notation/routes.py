"""FastAPI query endpoints under /api.

Read-only views over the campaign index plus two write-side hooks: a manual
re-index and change notifications from the host application. Campaigns are
addressed by their vault-relative path in the `path` query parameter.
"""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

from solo_notation import config as vault_config
from solo_notation.indexer import CampaignIndexer
from solo_notation.models import ChangeEvent

router = APIRouter()


class ReindexBody(BaseModel):
    path: str | None = None


class UpdateSettings(BaseModel):
    enable_indexing: bool | None = None
    campaign_folder: str | None = None
    near_complete_threshold: float | None = None
    timer_urgent_threshold: int | None = None


def _indexer(request: Request) -> CampaignIndexer:
    return request.app.state.indexer


def _summary(campaign) -> dict:
    return {
        "file": campaign.file,
        "title": campaign.title,
        "sessions": [s.number for s in campaign.sessions],
        "npcs": len(campaign.npcs),
        "locations": len(campaign.locations),
        "threads": len(campaign.threads),
    }


@router.get("/health")
async def health():
    """Health check."""
    return {"status": "ok"}


@router.get("/settings")
async def get_settings(request: Request):
    """Current indexing settings."""
    return _indexer(request).config


@router.patch("/settings")
async def update_settings(request: Request, body: UpdateSettings):
    """Update indexing settings (partial merge) and persist them in the vault."""
    fields = body.model_dump(exclude_none=True)
    updated = vault_config.update_config(request.app.state.vault_dir, fields)
    _indexer(request).configure(updated)
    return updated


@router.get("/campaigns")
async def list_campaigns(request: Request):
    """List every indexed campaign."""
    return [_summary(c) for c in _indexer(request).get_all_campaigns()]


@router.get("/campaign")
async def get_campaign(request: Request, path: str):
    """Full parsed campaign: sessions, scenes, elements and merged entities."""
    campaign = _indexer(request).get_campaign(path)
    if not campaign:
        raise HTTPException(404, "Campaign not found")
    return campaign


@router.get("/campaign/stats")
async def get_campaign_stats(request: Request, path: str):
    """Element and entity counts for one campaign."""
    stats = _indexer(request).get_campaign_stats(path)
    if not stats:
        raise HTTPException(404, "Campaign not found")
    return stats


@router.get("/npcs")
async def list_npcs(request: Request):
    return _indexer(request).get_all_npcs()


@router.get("/locations")
async def list_locations(request: Request):
    return _indexer(request).get_all_locations()


@router.get("/threads")
async def list_threads(request: Request, active: bool = False):
    """All threads, or only those still Open with ?active=true."""
    indexer = _indexer(request)
    return indexer.get_active_threads() if active else indexer.get_all_threads()


@router.get("/progress")
async def list_progress(request: Request):
    """Clocks, tracks, timers and events with completion flags."""
    indexer = _indexer(request)
    return [indexer.describe_progress(e) for e in indexer.get_all_progress_elements()]


@router.post("/reindex")
async def reindex(request: Request, body: ReindexBody | None = None):
    """Re-index one campaign document, or the whole vault when no path is given."""
    indexer = _indexer(request)
    if body is None or body.path is None:
        campaigns = await indexer.index_all()
        return {"indexed": [c.file for c in campaigns]}
    campaign = await indexer.index_one(body.path)
    if not campaign:
        raise HTTPException(404, "Document not found")
    return {"indexed": [campaign.file]}


@router.post("/events")
async def change_event(request: Request, event: ChangeEvent):
    """File-change notification: re-index the document and its dependents."""
    await _indexer(request).handle_change(event)
    return {"ok": True}
