"""Metrics router - host resource snapshot"""

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ..deps import get_manager
from ..models.schemas import SystemInfo
from ..services.manager import TunnelManager

router = APIRouter(prefix="/api", tags=["metrics"])


@router.get("/system", response_model=SystemInfo)
async def get_system_info(manager: TunnelManager = Depends(get_manager)):
    """CPU, memory and disk utilization plus daemon and auth state"""
    return await run_in_threadpool(manager.system_info)
