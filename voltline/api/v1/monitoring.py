from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from voltline.db.session import get_db
from voltline.schemas.common import ApiResponse
from voltline.schemas.monitoring import ErrorBatchIn, ErrorBatchOut, ErrorStatsOut
from voltline.services.auth import AuthUser, get_current_admin
from voltline.services.monitoring import error_stats, store_error_batch

router = APIRouter(prefix="/monitoring", tags=["monitoring"])


@router.post("/errors", response_model=ApiResponse[ErrorBatchOut])
async def receive_client_errors(
    payload: ErrorBatchIn,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[ErrorBatchOut]:
    received = await store_error_batch(db, payload)
    return ApiResponse(data=ErrorBatchOut(received=received))


@router.get("/errors/stats", response_model=ApiResponse[ErrorStatsOut])
async def get_client_error_stats(
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(get_current_admin),
) -> ApiResponse[ErrorStatsOut]:
    return ApiResponse(data=await error_stats(db))
