#!/usr/bin/env python3
"""
Tunnel Manager - Web UI for managing Cloudflare tunnels
Main entry point
"""

import argparse
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends
from fastapi.responses import HTMLResponse
from fastapi.concurrency import run_in_threadpool

from .config import get_logger
from .dashboard import get_server_ip, render_dashboard
from .deps import get_manager
from .routers import auth_router, tunnels_router, metrics_router
from .services.manager import TunnelManager

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    logger.info("Starting Tunnel Manager...")
    manager: TunnelManager = app.state.manager
    await run_in_threadpool(manager.initialize)
    authenticated = await run_in_threadpool(manager.is_authenticated)
    logger.info(f"Authentication: {'ready' if authenticated else 'required'}")

    yield

    # Shutdown
    logger.info("Shutting down Tunnel Manager")
    await run_in_threadpool(manager.shutdown)


def create_app(manager: Optional[TunnelManager] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(title="Tunnel Manager", lifespan=lifespan)
    app.state.manager = manager or TunnelManager()

    # Include routers
    app.include_router(auth_router)
    app.include_router(tunnels_router)
    app.include_router(metrics_router)

    @app.get("/", response_class=HTMLResponse)
    async def root(manager: TunnelManager = Depends(get_manager)):
        """Main dashboard page"""
        info = await run_in_threadpool(manager.system_info)
        return render_dashboard(info, get_server_ip())

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def main():
    """CLI entry point"""
    import uvicorn

    parser = argparse.ArgumentParser(description="Tunnel Manager - Web UI for managing Cloudflare tunnels")
    parser.add_argument('--host', type=str, default='0.0.0.0',
                        help='Host to bind to (default: 0.0.0.0)')
    parser.add_argument('--port', type=int, default=5000,
                        help='Port to listen on (default: 5000)')
    args = parser.parse_args()

    logger.info(f"Starting Tunnel Manager on {args.host}:{args.port}")
    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
