from fastapi import APIRouter

from voltline.api.v1.monitoring import router as monitoring_router
from voltline.api.v1.notifications import router as notifications_router

api_router = APIRouter()
api_router.include_router(notifications_router)
api_router.include_router(monitoring_router)
