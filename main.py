import logging

from fastapi import FastAPI

from api.v1.api_router import api_router
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


app = FastAPI(
    title=settings.APP_NAME,
    description="Campaigns, starter pack orders and donations for the Coffee Morning Challenge",
    version="1.0.0"
)

register_exception_handlers(app)
app.include_router(api_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    logger.info(f"☕ {settings.APP_NAME} started")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(f"👋 {settings.APP_NAME} stopped")


# ✅ liveness check
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "message": f"{settings.APP_NAME} is running ✅",
        "version": "1.0.0"
    }
