"""HTTP surface for the manual refresh trigger.

Failures are reported with a generic message; the cause is only logged.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from ainews.news.pipeline import run_news_pipeline

logger = logging.getLogger(__name__)

app = FastAPI(title="Your AI News")


@app.post("/api/news/refresh")
async def manual_refresh() -> JSONResponse:
    try:
        result = await run_news_pipeline("manual")
    except Exception:
        logger.exception("Manual refresh failed")
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Refresh failed. Please try again."},
        )

    added = result["articlesAdded"]
    if added > 0:
        message = f"{added} new article{'s' if added > 1 else ''} added."
    else:
        message = "No new articles found. Check back later."
    return JSONResponse(
        content={
            "success": True,
            "batchId": result["batchId"],
            "articlesAdded": added,
            "message": message,
        }
    )
