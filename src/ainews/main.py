"""Serve the manual-refresh API.

Scheduled runs are triggered externally (cron at 08:00 and 18:00 UTC+8)
through ``scripts/run_pipeline.py``.
"""

import logging

import uvicorn

from ainews.api import app
from ainews.config import API_PORT

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)
logger = logging.getLogger(__name__)


def main() -> None:
    logger.info("API starting on port %d...", API_PORT)
    uvicorn.run(app, host="0.0.0.0", port=API_PORT, log_level="info")


if __name__ == "__main__":
    main()
