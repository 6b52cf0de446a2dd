from .errors import (
    TunnelManagerError,
    ValidationError,
    AuthRequiredError,
    ProviderError,
    ExecutorError,
)
from .executor import CommandExecutor
from .state import StateStore
from .auth import AuthStateTracker
from .tunnels import TunnelRegistry
from .metrics import SystemMetricsCollector
from .manager import TunnelManager

__all__ = [
    "TunnelManagerError",
    "ValidationError",
    "AuthRequiredError",
    "ProviderError",
    "ExecutorError",
    "CommandExecutor",
    "StateStore",
    "AuthStateTracker",
    "TunnelRegistry",
    "SystemMetricsCollector",
    "TunnelManager",
]
