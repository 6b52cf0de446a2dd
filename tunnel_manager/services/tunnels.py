"""Tunnel registry client - tunnel management through the cloudflared CLI"""

import json
import re
from typing import List, Optional

from pydantic import ValidationError as ModelValidationError

from ..config import CLOUDFLARED_BIN, COMMAND_TIMEOUT, get_logger
from ..models.schemas import ActionRequest, CommandOutcome, OperationResult, Tunnel
from .auth import AuthStateTracker
from .errors import (
    AuthRequiredError,
    ExecutorError,
    ProviderError,
    TunnelManagerError,
    ValidationError,
)
from .executor import SYNTHETIC_EXIT_CODE, CommandExecutor

logger = get_logger(__name__)

TUNNEL_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
HOSTNAME_LABEL_PATTERN = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$")

AUTH_REQUIRED_MESSAGE = "Please authenticate with Cloudflare first"


def normalize_tunnel_name(name: Optional[str]) -> str:
    """Trim, lowercase and hyphenate a tunnel name for creation"""
    return (name or "").strip().lower().replace(" ", "-")


def validate_tunnel_name(name: str) -> str:
    if not name:
        raise ValidationError("Tunnel name is required")
    if not TUNNEL_NAME_PATTERN.match(name):
        raise ValidationError(
            f'Invalid tunnel name "{name}": use letters, digits, hyphens and underscores only'
        )
    return name


def validate_hostname(hostname: str) -> str:
    """Check hostname is a DNS name, optionally with a leading wildcard"""
    labels = hostname.split(".")
    if labels[0] == "*":
        labels = labels[1:]
    if len(hostname) > 253 or len(labels) < 2 or not all(HOSTNAME_LABEL_PATTERN.match(l) for l in labels):
        raise ValidationError(f'Invalid hostname "{hostname}"')
    return hostname


def parse_tunnels(output: str) -> List[Tunnel]:
    """Parse `tunnel list --output json`, skipping malformed records"""
    data = json.loads(output)
    if not isinstance(data, list):
        logger.error("Tunnel list JSON is not a list")
        return []

    tunnels = []
    for item in data:
        try:
            tunnels.append(Tunnel.model_validate(item))
        except ModelValidationError as e:
            logger.warning(f"Skipping malformed tunnel record: {e}")
    return tunnels


class TunnelRegistry:
    """Create, delete, route and list tunnels

    Mutating operations validate locally, then require a fresh
    authentication check, then run exactly the daemon commands they need.
    They never raise; failures come back as OperationResult.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        auth: AuthStateTracker,
        binary: str = CLOUDFLARED_BIN,
        timeout: float = COMMAND_TIMEOUT,
    ):
        self.executor = executor
        self.auth = auth
        self.binary = binary
        self.timeout = timeout

    def list_tunnels(self) -> List[Tunnel]:
        """List all tunnels; [] whenever they cannot be determined"""
        if not self.auth.is_authenticated():
            return []

        result = self._run("list", "--output", "json")

        if result.success and result.stdout:
            try:
                return parse_tunnels(result.stdout)
            except json.JSONDecodeError:
                logger.error("Failed to parse tunnel list JSON")
                return []

        return []

    def create_tunnel(self, name: Optional[str]) -> OperationResult:
        """Create a new tunnel"""
        try:
            name = validate_tunnel_name(normalize_tunnel_name(name))
            self._require_auth()
            self._check(self._run("create", name), "Failed to create tunnel")
        except TunnelManagerError as e:
            return _failure(e)

        logger.info(f"Tunnel '{name}' created successfully")
        return OperationResult(success=True, message=f'Tunnel "{name}" created successfully')

    def delete_tunnel(self, name: Optional[str]) -> OperationResult:
        """Delete a tunnel, cleaning up its stale connections first"""
        try:
            name = validate_tunnel_name((name or "").strip())
            self._require_auth()

            cleanup = self._run("cleanup", name)
            if not cleanup.success:
                logger.warning(f"Cleanup of tunnel '{name}' failed, deleting anyway")

            self._check(self._run("delete", name, "--force"), "Failed to delete tunnel")
        except TunnelManagerError as e:
            return _failure(e)

        logger.info(f"Tunnel '{name}' deleted successfully")
        return OperationResult(success=True, message=f'Tunnel "{name}" deleted successfully')

    def route_dns(self, tunnel_name: Optional[str], hostname: Optional[str]) -> OperationResult:
        """Route DNS for a tunnel"""
        try:
            tunnel_name = (tunnel_name or "").strip()
            hostname = (hostname or "").strip().lower()
            if not tunnel_name or not hostname:
                raise ValidationError("Tunnel name and hostname are required")
            validate_tunnel_name(tunnel_name)
            validate_hostname(hostname)
            self._require_auth()
            self._check(self._run("route", "dns", tunnel_name, hostname), "Failed to create DNS route")
        except TunnelManagerError as e:
            return _failure(e)

        logger.info(f"DNS route created: {hostname} -> {tunnel_name}")
        return OperationResult(success=True, message=f"DNS route created: {hostname} -> {tunnel_name}")

    def perform(self, request: ActionRequest) -> OperationResult:
        """Dispatch a control panel action"""
        action = request.action.strip().lower()
        if action == "create":
            return self.create_tunnel(request.tunnel_name)
        if action == "delete":
            return self.delete_tunnel(request.tunnel_name)
        if action == "route":
            return self.route_dns(request.tunnel_name, request.hostname)
        return _failure(ValidationError("Invalid action"))

    def _require_auth(self) -> None:
        if not self.auth.is_authenticated():
            raise AuthRequiredError(AUTH_REQUIRED_MESSAGE)

    def _run(self, *args: str) -> CommandOutcome:
        return self.executor.run([self.binary, "tunnel", *args], timeout=self.timeout)

    @staticmethod
    def _check(result: CommandOutcome, fallback: str) -> None:
        if result.success:
            return
        message = result.stderr or fallback
        if result.exit_code == SYNTHETIC_EXIT_CODE:
            raise ExecutorError(message)
        raise ProviderError(message)


def _failure(error: TunnelManagerError) -> OperationResult:
    return OperationResult(success=False, message=error.message, error=error.code)
