"""Tunnel manager - the one object the web layer talks to"""

from typing import List, Optional

from .. import config
from ..config import get_logger
from ..models.schemas import (
    ActionRequest,
    AuthStartResult,
    AuthStatus,
    OperationResult,
    SystemInfo,
    Tunnel,
)
from .auth import AuthStateTracker
from .executor import CommandExecutor
from .metrics import SystemMetricsCollector
from .state import StateStore
from .tunnels import TunnelRegistry

logger = get_logger(__name__)


class TunnelManager:
    """Owns the executor, auth state, registry and metrics collector

    Built once at startup and handed to the app; nothing here is global.
    """

    def __init__(
        self,
        executor: Optional[CommandExecutor] = None,
        state: Optional[StateStore] = None,
        binary: str = config.CLOUDFLARED_BIN,
        cert_path: str = config.CLOUDFLARED_CERT,
        fallback_url: str = config.AUTH_FALLBACK_URL,
        command_timeout: float = config.COMMAND_TIMEOUT,
        check_timeout: float = config.AUTH_CHECK_TIMEOUT,
        login_timeout: float = config.LOGIN_TIMEOUT,
        grace_period: float = config.LOGIN_GRACE_PERIOD,
        metrics: Optional[SystemMetricsCollector] = None,
    ):
        self.executor = executor or CommandExecutor(default_timeout=command_timeout)
        self.state = state or StateStore()
        self.auth = AuthStateTracker(
            self.executor,
            self.state,
            binary=binary,
            cert_path=cert_path,
            fallback_url=fallback_url,
            check_timeout=check_timeout,
            login_timeout=login_timeout,
            grace_period=grace_period
        )
        self.registry = TunnelRegistry(self.executor, self.auth, binary=binary, timeout=command_timeout)
        self.metrics = metrics or SystemMetricsCollector(process_name=binary)

    def initialize(self) -> None:
        """Prepare the advisory state file"""
        if not self.state.ensure_exists():
            logger.warning(f"State file {self.state.path} is not writable - continuing without it")

    def is_authenticated(self) -> bool:
        return self.auth.is_authenticated()

    def auth_status(self) -> AuthStatus:
        return self.auth.status()

    def start_authentication(self) -> AuthStartResult:
        return self.auth.start_authentication()

    def list_tunnels(self) -> List[Tunnel]:
        return self.registry.list_tunnels()

    def create_tunnel(self, name: Optional[str]) -> OperationResult:
        return self.registry.create_tunnel(name)

    def delete_tunnel(self, name: Optional[str]) -> OperationResult:
        return self.registry.delete_tunnel(name)

    def route_dns(self, tunnel_name: Optional[str], hostname: Optional[str]) -> OperationResult:
        return self.registry.route_dns(tunnel_name, hostname)

    def perform(self, request: ActionRequest) -> OperationResult:
        return self.registry.perform(request)

    def system_info(self) -> SystemInfo:
        """Metrics snapshot with the current authentication state"""
        return self.metrics.snapshot(
            authenticated=self.auth.is_authenticated(),
            auth_in_progress=self.auth.in_progress
        )

    def shutdown(self, timeout: float = 1.0) -> None:
        """Give an in-flight login a moment to finish"""
        if self.auth.in_progress and not self.auth.wait(timeout):
            logger.info("Login still running at shutdown - abandoning it")
