#!/usr/bin/env python3
"""Run one news pipeline batch.

Invoked by the external scheduler at 08:00 and 18:00 (UTC+8):

    0 8,18 * * *  cd /app && uv run python scripts/run_pipeline.py

Usage:
    uv run python scripts/run_pipeline.py                    # scheduled run (sends digests)
    uv run python scripts/run_pipeline.py --trigger manual   # ingest only
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Ensure project root is importable
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from ainews.news.pipeline import build_pipeline

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)


async def _run(trigger: str) -> dict:
    pipeline = build_pipeline()
    try:
        result = await pipeline.run(trigger)
    finally:
        await pipeline.store.close()
    return result.to_dict()


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--trigger", choices=["scheduler", "manual"], default="scheduler",
        help="scheduler = send digests for new articles; manual = ingest only",
    )
    args = parser.parse_args()

    try:
        result = asyncio.run(_run(args.trigger))
    except Exception:
        logger.error("Pipeline run failed")
        sys.exit(1)

    logger.info(
        "Run complete: batch %s, %d articles added",
        result["batchId"],
        result["articlesAdded"],
    )


if __name__ == "__main__":
    main()
