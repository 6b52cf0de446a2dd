"""Tunnels router"""

import json
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError as ModelValidationError

from ..deps import get_manager
from ..models.schemas import ActionRequest, OperationResult, Tunnel
from ..services.manager import TunnelManager
from ..config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["tunnels"])


async def _read_body(request: Request) -> Dict[str, Any]:
    """Decode a form-encoded or JSON request body into a flat dict"""
    body = await request.body()
    if not body:
        return {}

    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        data = json.loads(body)
        return data if isinstance(data, dict) else {}

    payload = parse_qs(body.decode("utf-8"))
    return {key: values[0] for key, values in payload.items()}


async def _perform(request: Request, manager: TunnelManager, action: Optional[str] = None) -> OperationResult:
    try:
        data = await _read_body(request)
        if action is not None:
            data["action"] = action
        action_request = ActionRequest.model_validate(data)
    except (ValueError, ModelValidationError) as e:
        logger.warning(f"Malformed action request: {e}")
        return OperationResult(success=False, message="Malformed request", error="validation")

    try:
        return await run_in_threadpool(manager.perform, action_request)
    except Exception as e:
        logger.error(f"API action error: {e}")
        return OperationResult(success=False, message=str(e), error="provider")


@router.get("/tunnels", response_model=List[Tunnel])
async def list_tunnels(manager: TunnelManager = Depends(get_manager)):
    """Get all tunnels; an empty list whenever they cannot be fetched"""
    try:
        return await run_in_threadpool(manager.list_tunnels)
    except Exception as e:
        logger.error(f"Error fetching tunnels: {e}")
        return []


@router.post("/action", response_model=OperationResult)
async def tunnel_action(request: Request, manager: TunnelManager = Depends(get_manager)):
    """Run the create, delete or route action named in the body"""
    return await _perform(request, manager)


@router.post("/create", response_model=OperationResult)
async def create_tunnel(request: Request, manager: TunnelManager = Depends(get_manager)):
    """Create a new tunnel"""
    return await _perform(request, manager, "create")


@router.post("/delete", response_model=OperationResult)
async def delete_tunnel(request: Request, manager: TunnelManager = Depends(get_manager)):
    """Delete a tunnel"""
    return await _perform(request, manager, "delete")


@router.post("/route", response_model=OperationResult)
async def route_dns(request: Request, manager: TunnelManager = Depends(get_manager)):
    """Route a hostname to a tunnel"""
    return await _perform(request, manager, "route")
