"""EstagioPro - Internship lifecycle and expiration alert API."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from estagiopro.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: create tables and start the recurring alert scan
    from estagiopro.database import init_db
    from estagiopro.services.scheduler import AlertScanScheduler

    init_db()

    scheduler = None
    if settings.alert_scan_enabled:
        scheduler = AlertScanScheduler(
            interval_seconds=settings.alert_scan_interval_hours * 60 * 60,
            initial_delay_seconds=settings.alert_scan_initial_delay_seconds,
        )
        scheduler.start()
    else:
        logger.info("Automatic alert scan disabled")

    yield

    # Shutdown
    if scheduler:
        await scheduler.stop()


app = FastAPI(
    title=settings.app_name,
    description="Track internship progress and get warned before internships expire",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "app": settings.app_name}


# Import and include routers
from estagiopro.api import alerts, internships  # noqa: E402

app.include_router(internships.router, prefix="/api")
app.include_router(alerts.router, prefix="/api")
