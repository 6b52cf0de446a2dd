"""Pydantic request/response models"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional, Literal


class CommandOutcome(BaseModel):
    """Result of one external command invocation"""
    model_config = ConfigDict(frozen=True)

    success: bool
    stdout: str = ""
    stderr: str = ""
    exit_code: int = -1


class Tunnel(BaseModel):
    """One entry of the daemon's tunnel inventory"""
    id: str
    name: str
    created_at: Optional[datetime] = None
    connections: Optional[int] = None

    @field_validator("created_at", mode="before")
    @classmethod
    def _blank_timestamp(cls, value: Any) -> Any:
        # cloudflared reports unset timestamps as the zero time
        if value in ("", None) or (isinstance(value, str) and value.startswith("0001-01-01")):
            return None
        return value

    @field_validator("connections", mode="before")
    @classmethod
    def _count_connections(cls, value: Any) -> Any:
        if isinstance(value, list):
            return len(value)
        return value


class ActionRequest(BaseModel):
    """Tunnel action submitted from the control panel"""
    model_config = ConfigDict(populate_by_name=True)

    action: str = ""
    tunnel_name: str = Field("", alias="name")
    hostname: str = ""

    @field_validator("action", "tunnel_name", "hostname", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class OperationResult(BaseModel):
    """Uniform result of a mutating tunnel operation"""
    success: bool
    message: str
    error: Optional[Literal["validation", "auth_required", "provider", "executor"]] = None


class AuthStartResult(BaseModel):
    """Response to a request to start the login flow"""
    success: bool
    started: bool
    message: str
    auth_url: Optional[str] = None


class AuthStatus(BaseModel):
    """Derived authentication state"""
    authenticated: bool
    in_progress: bool = False


class UsageStats(BaseModel):
    """Utilization of one host resource, sizes in GB"""
    percent: float
    used: float
    total: float


class SystemInfo(BaseModel):
    """Host metrics snapshot shown on the dashboard"""
    cpu_percent: Optional[float] = None
    memory: Optional[UsageStats] = None
    disk: Optional[UsageStats] = None
    daemon_running: bool = False
    authenticated: bool = False
    auth_in_progress: bool = False
