from fastapi import APIRouter

from auralog.api.admin import router as admin_router
from auralog.api.quotes import router as quotes_router

api_router = APIRouter()
api_router.include_router(admin_router)
api_router.include_router(quotes_router)
