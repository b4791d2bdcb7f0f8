#!/usr/bin/env python3
"""Create the SQLite schema (idempotent)."""

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


async def _init() -> None:
    store = NewsStore(DB_PATH)
    try:
        await store.init()
    finally:
        await store.close()


def main() -> None:
    asyncio.run(_init())
    logger.info("Database initialised at %s", DB_PATH)


if __name__ == "__main__":
    main()
