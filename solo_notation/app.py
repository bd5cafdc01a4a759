import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from solo_notation.config import get_config
from solo_notation.indexer import CampaignIndexer
from solo_notation.routes import router
from solo_notation.storage import VaultStorage

load_dotenv(Path(__file__).parent.parent / ".env")

logger = logging.getLogger(__name__)

DEFAULT_VAULT_DIR = Path(__file__).parent.parent / "vault"


def create_app(vault_dir: Path | None = None) -> FastAPI:
    resolved = vault_dir or Path(os.getenv("VAULT_DIR", str(DEFAULT_VAULT_DIR)))
    indexer = CampaignIndexer(VaultStorage(resolved), get_config(resolved))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if indexer.config["enable_indexing"]:
            await indexer.index_all()
        else:
            logger.info("Indexing disabled for %s", resolved)
        yield

    app = FastAPI(title="Solo Notation", lifespan=lifespan)
    app.state.vault_dir = resolved
    app.state.indexer = indexer
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses VAULT_DIR env var or default)
app = create_app()
