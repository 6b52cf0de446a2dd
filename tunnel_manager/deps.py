"""FastAPI dependencies"""

from fastapi import Request

from .services.manager import TunnelManager


def get_manager(request: Request) -> TunnelManager:
    """The TunnelManager the app was created with"""
    return request.app.state.manager
