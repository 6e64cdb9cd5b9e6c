"""FastAPI application exposing the dashboard content and insight APIs."""

import logging
import os
from typing import Dict

from fastapi import FastAPI

from app.api.routes.businesses import router as businesses_router
from app.api.routes.content import router as content_router
from app.api.routes.events import router as events_router
from app.api.routes.insights import router as insights_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Allii Business Dashboard")
logger = logging.getLogger(__name__)

# Include Routers
app.include_router(businesses_router, prefix="/api", tags=["Businesses"])
app.include_router(content_router, prefix="/api", tags=["Content"])
app.include_router(insights_router, prefix="/api", tags=["Insights"])
app.include_router(events_router, tags=["Events"])


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="127.0.0.1", port=8000, reload=True)
