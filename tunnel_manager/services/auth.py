"""Authentication state tracking and the background login flow"""

import os
import re
import threading
from typing import Optional

from ..config import (
    AUTH_CHECK_TIMEOUT,
    AUTH_FALLBACK_URL,
    CLOUDFLARED_BIN,
    CLOUDFLARED_CERT,
    LOGIN_GRACE_PERIOD,
    LOGIN_TIMEOUT,
    get_logger,
)
from ..models.schemas import AuthStartResult, AuthStatus
from .executor import CommandExecutor
from .state import StateStore

logger = get_logger(__name__)

URL_PATTERN = re.compile(r"https://\S+")


def extract_auth_url(line: str) -> Optional[str]:
    """Return the first https URL printed on a line of login output"""
    match = URL_PATTERN.search(line)
    return match.group(0) if match else None


class AuthStateTracker:
    """Knows whether the daemon is logged in and owns the login flow

    At most one login command runs at a time. The in-progress flag is
    checked and set under a lock, and the background thread clears it on
    every exit path.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        state: StateStore,
        binary: str = CLOUDFLARED_BIN,
        cert_path: str = CLOUDFLARED_CERT,
        fallback_url: str = AUTH_FALLBACK_URL,
        check_timeout: float = AUTH_CHECK_TIMEOUT,
        login_timeout: float = LOGIN_TIMEOUT,
        grace_period: float = LOGIN_GRACE_PERIOD,
    ):
        self.executor = executor
        self.state = state
        self.binary = binary
        self.cert_path = cert_path
        self.fallback_url = fallback_url
        self.check_timeout = check_timeout
        self.login_timeout = login_timeout
        self.grace_period = grace_period

        self._lock = threading.Lock()
        self._in_progress = False
        self._auth_url: Optional[str] = None
        self._ready = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def in_progress(self) -> bool:
        return self._in_progress

    @property
    def auth_url(self) -> Optional[str]:
        return self._auth_url

    def is_authenticated(self) -> bool:
        """Check if the daemon is authenticated with the provider

        The certificate's presence is necessary but not sufficient; when it
        exists a cheap `tunnel list` confirms it is still accepted.
        """
        try:
            if not os.path.exists(self.cert_path):
                return False
            result = self.executor.run([self.binary, "tunnel", "list"], timeout=self.check_timeout)
            return result.success
        except Exception as e:
            logger.warning(f"Authentication check failed: {e}")
            return False

    def status(self) -> AuthStatus:
        return AuthStatus(authenticated=self.is_authenticated(), in_progress=self._in_progress)

    def start_authentication(self) -> AuthStartResult:
        """Start the login flow in the background

        Returns once the flow has settled for up to the grace period; the
        login command itself keeps running until it finishes or times out.
        """
        with self._lock:
            started = not self._in_progress
            if started:
                self._in_progress = True
                self._auth_url = None
                self._ready.clear()

                try:
                    thread = threading.Thread(target=self._authenticate_background, name="cloudflared-login")
                    thread.daemon = True
                    thread.start()
                except RuntimeError as e:
                    logger.error(f"Failed to start authentication: {e}")
                    self._in_progress = False
                    return AuthStartResult(
                        success=False,
                        started=False,
                        message=f"Failed to start authentication: {e}",
                        auth_url=None
                    )
                self._thread = thread

        # Give the login command a moment to print its authorization URL.
        # Callers joining a running flow wait too so everyone sees one URL;
        # once a URL is settled the event is set and joiners return at once.
        self._ready.wait(self.grace_period)

        with self._lock:
            if self._auth_url is None:
                self._auth_url = self.fallback_url
            auth_url = self._auth_url
            self._ready.set()

        if not started:
            return AuthStartResult(
                success=True,
                started=False,
                message="Authentication already in progress. Please complete in your browser.",
                auth_url=auth_url
            )

        return AuthStartResult(
            success=True,
            started=True,
            message="Authentication process started. Please complete in your browser.",
            auth_url=auth_url
        )

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Wait for a running login thread; True when none is left running"""
        thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _on_login_output(self, line: str) -> None:
        url = extract_auth_url(line)
        if url is None:
            return
        with self._lock:
            if self._auth_url is None:
                self._auth_url = url
                logger.info(f"Login URL issued by cloudflared: {url}")
        self._ready.set()

    def _authenticate_background(self) -> None:
        """Background authentication process"""
        try:
            logger.info("Starting background authentication process...")
            result = self.executor.stream(
                [self.binary, "tunnel", "login"],
                timeout=self.login_timeout,
                on_line=self._on_login_output
            )

            if result.success:
                self.state.record_auth(True)
                logger.info("Authentication completed successfully")
            else:
                logger.error(f"Authentication failed: {result.stderr}")

        except Exception as e:
            logger.error(f"Background authentication error: {e}")
        finally:
            with self._lock:
                self._in_progress = False
            self._ready.set()
