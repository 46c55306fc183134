from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.concurrency import run_in_threadpool

from auralog.config import get_settings
from auralog.scheduler.jobs import run_daily_reminders


async def require_admin_key(x_admin_key: str = Header(None)):
    # Require admin key in production
    settings = get_settings()
    if settings.is_production:
        if not settings.admin_api_key:
            raise HTTPException(status_code=503, detail="Admin API not configured")
        if x_admin_key != settings.admin_api_key:
            raise HTTPException(status_code=401, detail="Invalid admin key")


router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin_key)])


@router.post("/send-now")
async def send_now():
    """Send a test reminder to every opted-in user with a push token."""
    attempted = await run_in_threadpool(run_daily_reminders, test_mode=True)
    return {"attempted": attempted}
