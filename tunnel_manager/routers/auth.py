"""Authentication router"""

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

from ..deps import get_manager
from ..models.schemas import AuthStartResult, AuthStatus
from ..services.manager import TunnelManager
from ..config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/authenticate", response_model=AuthStartResult)
@router.post("/auth", response_model=AuthStartResult, include_in_schema=False)
async def authenticate(manager: TunnelManager = Depends(get_manager)):
    """Start the cloudflared login flow"""
    try:
        result = await run_in_threadpool(manager.start_authentication)
    except Exception as e:
        logger.error(f"Authentication error: {e}")
        return AuthStartResult(success=False, started=False, message=str(e), auth_url=None)

    logger.info(f"Authentication request result: {result.message}")
    return result


@router.get("/auth-status", response_model=AuthStatus)
async def auth_status(manager: TunnelManager = Depends(get_manager)):
    """Check authentication status against the daemon"""
    try:
        return await run_in_threadpool(manager.auth_status)
    except Exception as e:
        logger.error(f"Auth status error: {e}")
        return AuthStatus(authenticated=False, in_progress=False)
