#!/usr/bin/env python3
"""Delete every stored article (users and preferences are kept)."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from ainews.config import DB_PATH
from ainews.storage.store import NewsStore

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)


async def _clear() -> int:
    store = NewsStore(DB_PATH)
    try:
        return await store.clear_articles()
    finally:
        await store.close()


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()

    if not args.yes:
        answer = input(f"Delete all articles in {DB_PATH}? [y/N] ")
        if answer.strip().lower() != "y":
            logger.info("Aborted")
            return

    count = asyncio.run(_clear())
    logger.info("Deleted %d articles", count)


if __name__ == "__main__":
    main()
