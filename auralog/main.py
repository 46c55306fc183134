from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from auralog.api.admin import require_admin_key
from auralog.api.router import api_router
from auralog.config import get_settings
from auralog.db.database import init_db
from auralog.notifications.fcm import FcmSender
from auralog.quotes.generator import QuoteGenerator
from auralog.scheduler.runner import start_scheduler

settings = get_settings()
scheduler: Optional[object] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global scheduler
    logger.info("Starting up...")
    await init_db()

    # Start the reminder scheduler
    scheduler = start_scheduler()

    yield

    # Stop the reminder scheduler
    if scheduler:
        scheduler.shutdown()
    logger.info("Shutting down...")


# Disable interactive docs in production
docs_url = None if settings.is_production else "/docs"
redoc_url = None if settings.is_production else "/redoc"

app = FastAPI(
    title="Aura Log Reminder Service",
    description="Daily check-in reminders with rotating motivational quotes",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=docs_url,
    redoc_url=redoc_url,
)

# Configure CORS origins
default_origins = ["http://localhost:3000", "http://127.0.0.1:3000"]
if settings.cors_origins:
    cors_origins = [origin.strip() for origin in settings.cors_origins.split(",")]
else:
    cors_origins = default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
)

app.include_router(api_router)


@app.get("/health")
async def health_check():
    return {"status": "ok"}


@app.get("/api/admin/status", dependencies=[Depends(require_admin_key)])
async def admin_status():
    jobs = []
    if scheduler:
        jobs = [
            {
                "id": job.id,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in scheduler.get_jobs()
        ]

    return {
        "scheduler_running": scheduler is not None and scheduler.running,
        "interval_minutes": settings.scheduler_interval_minutes,
        "notifications_enabled": settings.notification_enabled,
        "push_configured": FcmSender.is_configured(),
        "ai_quotes_configured": QuoteGenerator.is_configured(),
        "jobs": jobs,
    }
