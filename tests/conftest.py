"""Shared test fixtures for tunnel manager tests."""

import os
import threading
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pytest
from fastapi.testclient import TestClient

from tunnel_manager.main import create_app
from tunnel_manager.models.schemas import CommandOutcome, SystemInfo
from tunnel_manager.services.manager import TunnelManager
from tunnel_manager.services.state import StateStore

OK = CommandOutcome(success=True, stdout="", stderr="", exit_code=0)


class FakeExecutor:
    """Records every command and answers from a table keyed on its subcommand

    Keys are the words after `cloudflared tunnel`, e.g. ("create",) or
    ("route", "dns"). Unknown commands succeed with empty output.
    """

    def __init__(self):
        self.calls: List[Tuple[str, ...]] = []
        self.responses: Dict[Tuple[str, ...], CommandOutcome] = {}
        self.login_lines: List[str] = []
        self.login_outcome = OK
        self.login_release = threading.Event()
        self.login_release.set()
        self._lock = threading.Lock()

    def respond(self, key: Sequence[str], success=True, stdout="", stderr="", exit_code=None):
        if exit_code is None:
            exit_code = 0 if success else 1
        self.responses[tuple(key)] = CommandOutcome(
            success=success, stdout=stdout, stderr=stderr, exit_code=exit_code
        )

    def _record(self, args) -> Tuple[str, ...]:
        with self._lock:
            self.calls.append(tuple(args))
        return tuple(args[2:])

    def _lookup(self, sub: Tuple[str, ...]) -> CommandOutcome:
        for size in range(len(sub), 0, -1):
            if sub[:size] in self.responses:
                return self.responses[sub[:size]]
        return OK

    def run(self, args, timeout=None) -> CommandOutcome:
        return self._lookup(self._record(args))

    def stream(self, args, timeout=None, on_line: Optional[Callable[[str], None]] = None) -> CommandOutcome:
        self._record(args)
        for line in self.login_lines:
            if on_line is not None:
                on_line(line)
        self.login_release.wait(5)
        return self.login_outcome

    def subcommands(self) -> List[Tuple[str, ...]]:
        return [call[2:] for call in self.calls]


class FakeMetrics:
    def snapshot(self, authenticated=False, auth_in_progress=False):
        return SystemInfo(
            cpu_percent=12.5,
            daemon_running=True,
            authenticated=authenticated,
            auth_in_progress=auth_in_progress
        )


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def cert_path(tmp_path):
    """Path of the credential artifact; absent until a test creates it"""
    return str(tmp_path / "cloudflared" / "cert.pem")


@pytest.fixture
def authenticated(cert_path):
    """Create the credential artifact so auth checks reach the daemon"""
    os.makedirs(os.path.dirname(cert_path), exist_ok=True)
    with open(cert_path, "w") as f:
        f.write("-----BEGIN CERTIFICATE-----\n")
    return cert_path


@pytest.fixture
def state_store(tmp_path):
    return StateStore(str(tmp_path / "state" / "config.json"))


@pytest.fixture
def manager(executor, state_store, cert_path):
    return TunnelManager(
        executor=executor,
        state=state_store,
        binary="cloudflared",
        cert_path=cert_path,
        fallback_url="https://dash.cloudflare.com/profile/api-tokens",
        grace_period=0.5,
        metrics=FakeMetrics()
    )


@pytest.fixture
def client(manager):
    with TestClient(create_app(manager)) as test_client:
        yield test_client
