"""FastAPI entrypoint for the portal analytics service."""

from fastapi import FastAPI

from portal_analytics.config import settings
from portal_analytics.logging_config import configure_logging
from portal_analytics.routers import reports as reports_router_module

logger = configure_logging()

app = FastAPI(title=settings.PROJECT_NAME)

app.include_router(reports_router_module.router, prefix="/reports", tags=["reports"])


@app.get("/health")
def health():
    return {"status": "ok"}


logger.info("%s ready", settings.PROJECT_NAME)
