"""
FastAPI Main Application
SIP execution API with the daily scheduler
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import FastAPI

from sip_engine.config import settings
from sip_engine.core.logging import setup_logging
from sip_engine.infrastructure.db.database import init_db, close_db
from sip_engine.api.routes import health, holdings, sip
from sip_engine.scheduler.scheduler import start_scheduler, shutdown_scheduler

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown of the database and scheduler
    """
    # ===================
    # STARTUP
    # ===================
    logger.info("🚀 Starting SIP Execution Engine")

    await init_db()
    logger.info("✅ Database initialized")

    if settings.SCHEDULER_ENABLED:
        try:
            start_scheduler()
        except Exception as e:
            logger.error(f"❌ Failed to start scheduler: {e}")
    else:
        logger.info("⏰ Scheduler disabled")

    logger.info(f"   ✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")

    yield

    # ===================
    # SHUTDOWN
    # ===================
    logger.info("🛑 Shutting down SIP Execution Engine...")
    shutdown_scheduler()
    await close_db()
    logger.info("✅ Shutdown complete")


app = FastAPI(
    title="SIP Execution Engine",
    description="Scheduled mutual fund SIP execution with cost-basis accounting",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["Health"])
app.include_router(sip.router, prefix="/api/v1/sip", tags=["SIP"])
app.include_router(holdings.router, prefix="/api/v1/holdings", tags=["Holdings"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sip_engine.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )
