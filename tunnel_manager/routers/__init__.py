from .auth import router as auth_router
from .tunnels import router as tunnels_router
from .metrics import router as metrics_router

__all__ = ["auth_router", "tunnels_router", "metrics_router"]
