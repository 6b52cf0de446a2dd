"""Tests for AuthStateTracker and the background login flow."""

import threading
import time

import pytest

from tunnel_manager.services.auth import AuthStateTracker, extract_auth_url

FALLBACK = "https://dash.cloudflare.com/profile/api-tokens"
LOGIN = ("login",)


@pytest.fixture
def tracker(executor, state_store, cert_path):
    return AuthStateTracker(
        executor,
        state_store,
        binary="cloudflared",
        cert_path=cert_path,
        fallback_url=FALLBACK,
        grace_period=0.5
    )


class TestIsAuthenticated:
    """Test cases for the authentication probe"""

    def test_missing_certificate_short_circuits(self, tracker, executor):
        assert tracker.is_authenticated() is False
        assert executor.calls == []

    def test_certificate_confirmed_by_tunnel_list(self, tracker, executor, authenticated):
        assert tracker.is_authenticated() is True
        assert executor.calls == [("cloudflared", "tunnel", "list")]

    def test_rejected_certificate(self, tracker, executor, authenticated):
        executor.respond(["list"], success=False, stderr="Unauthorized")

        assert tracker.is_authenticated() is False

    def test_probe_errors_mean_unauthenticated(self, tracker, executor, authenticated):
        def broken(args, timeout=None):
            raise RuntimeError("executor exploded")
        executor.run = broken

        assert tracker.is_authenticated() is False


class TestStartAuthentication:
    """Test cases for the single-flight login flow"""

    def test_starts_login_in_background(self, tracker, executor):
        result = tracker.start_authentication()
        assert tracker.wait(5)

        assert result.success is True
        assert result.started is True
        assert result.auth_url == FALLBACK
        assert executor.subcommands() == [LOGIN]
        assert tracker.in_progress is False

    def test_returns_url_printed_by_login(self, tracker, executor):
        url = "https://dash.cloudflare.com/argotunnel?aud=&callback=https%3A%2F%2Flogin.cloudflareaccess.org%2Fabc"
        executor.login_lines = [
            "Please open the following URL and log in with your Cloudflare account:",
            "",
            url,
        ]

        result = tracker.start_authentication()
        tracker.wait(5)

        assert result.auth_url == url

    def test_concurrent_calls_spawn_one_login(self, tracker, executor):
        executor.login_release.clear()
        results = []
        barrier = threading.Barrier(2)

        def start():
            barrier.wait()
            results.append(tracker.start_authentication())

        threads = [threading.Thread(target=start) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(10)

        assert executor.subcommands() == [LOGIN]
        assert sorted(r.started for r in results) == [False, True]
        joined = next(r for r in results if not r.started)
        assert "already in progress" in joined.message
        assert results[0].auth_url == results[1].auth_url == FALLBACK
        assert tracker.in_progress is True

        executor.login_release.set()
        assert tracker.wait(5)
        assert tracker.in_progress is False

    def test_joining_after_fallback_returns_immediately(self, tracker, executor):
        executor.login_release.clear()
        first = tracker.start_authentication()

        start = time.monotonic()
        second = tracker.start_authentication()
        elapsed = time.monotonic() - start

        executor.login_release.set()
        tracker.wait(5)

        assert first.auth_url == FALLBACK
        assert second.started is False
        assert second.auth_url == FALLBACK
        assert elapsed < tracker.grace_period / 2

    def test_call_while_running_reuses_url(self, tracker, executor):
        executor.login_release.clear()
        executor.login_lines = ["https://dash.cloudflare.com/argotunnel?token=one"]

        first = tracker.start_authentication()
        second = tracker.start_authentication()
        executor.login_release.set()
        tracker.wait(5)

        assert second.started is False
        assert second.auth_url == first.auth_url == "https://dash.cloudflare.com/argotunnel?token=one"
        assert executor.subcommands() == [LOGIN]

    def test_successful_login_authenticates(self, tracker, executor, state_store, authenticated):
        tracker.start_authentication()
        tracker.wait(5)

        assert tracker.is_authenticated() is True
        assert executor.subcommands().count(LOGIN) == 1
        assert state_store.load()["authenticated"] is True
        assert state_store.load()["last_auth_check"]

    def test_failed_login_clears_flag_and_cache_untouched(self, tracker, executor, state_store):
        executor.respond(["login"], success=False)
        executor.login_outcome = executor.responses[LOGIN]

        tracker.start_authentication()
        tracker.wait(5)

        assert tracker.in_progress is False
        assert state_store.load() == {}

    def test_unexpected_error_still_clears_flag(self, tracker, executor):
        def broken(args, timeout=None, on_line=None):
            raise RuntimeError("login crashed")
        executor.stream = broken

        result = tracker.start_authentication()
        tracker.wait(5)

        assert result.started is True
        assert tracker.in_progress is False

    def test_new_flow_after_previous_finished(self, tracker, executor):
        tracker.start_authentication()
        tracker.wait(5)
        second = tracker.start_authentication()
        tracker.wait(5)

        assert second.started is True
        assert executor.subcommands() == [LOGIN, LOGIN]

    def test_status(self, tracker, executor):
        executor.login_release.clear()
        tracker.start_authentication()

        status = tracker.status()
        assert status.authenticated is False
        assert status.in_progress is True

        executor.login_release.set()
        tracker.wait(5)


class TestExtractAuthUrl:
    """Test cases for spotting the login URL in command output"""

    def test_url_in_log_line(self):
        line = "2024-01-01T00:00:00Z INF https://dash.cloudflare.com/argotunnel?aud=x&callback=y"
        assert extract_auth_url(line) == "https://dash.cloudflare.com/argotunnel?aud=x&callback=y"

    def test_no_url(self):
        assert extract_auth_url("Waiting for login...") is None
