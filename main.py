"""Solo Notation launcher. Serves the query API, or prints campaign stats."""

import argparse
import asyncio
import logging
import os
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "127.0.0.1")
PORT = os.getenv("PORT", "13015")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


async def print_stats(vault_dir: Path) -> None:
    from solo_notation.config import get_config
    from solo_notation.indexer import CampaignIndexer
    from solo_notation.storage import VaultStorage

    indexer = CampaignIndexer(VaultStorage(vault_dir), get_config(vault_dir))
    campaigns = await indexer.index_all()
    if not campaigns:
        print(f"No campaigns found in {vault_dir}")
        return
    for campaign in campaigns:
        stats = indexer.get_campaign_stats(campaign.file)
        print(f"{campaign.title}  ({campaign.file})")
        for field, count in stats.model_dump().items():
            print(f"  {field.replace('_', ' '):<18} {count}")


def main():
    parser = argparse.ArgumentParser(description="Solo RPG notation indexer")
    parser.add_argument("--vault", type=Path, default=None,
                        help="Vault directory (default: $VAULT_DIR or ./vault)")
    parser.add_argument("--stats", action="store_true",
                        help="Index the vault, print per-campaign stats and exit")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=int(PORT))
    args = parser.parse_args()

    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # The app module reads VAULT_DIR at import time
    if args.vault:
        os.environ["VAULT_DIR"] = str(args.vault.resolve())
    vault_dir = Path(os.getenv("VAULT_DIR", str(ROOT / "vault")))

    if args.stats:
        asyncio.run(print_stats(vault_dir))
        return

    import uvicorn

    print(f"Serving {vault_dir} on http://{args.host}:{args.port} ...")
    uvicorn.run("solo_notation.app:app", host=args.host, port=args.port)


if __name__ == "__main__":
    main()
