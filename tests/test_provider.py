"""
Unit tests for the GitHub data provider.

HTTP is replaced by a fake session; no network access happens.
"""

from datetime import datetime, timezone

import pytest
import requests

from gh_auditor.core.exceptions import (
    AuthenticationFailure, DataProviderTransientError, OrganisationNotFound,
    RateLimitExceeded
)
from gh_auditor.core.models import MemberRole
from gh_auditor.providers import GitHubDataProvider
from gh_auditor.providers.base import StaticDataProvider

from conftest import API_URL, NOW, make_response


@pytest.fixture
def provider_factory(settings, fake_session_factory):
    def factory(routes, fetch_installations=False):
        session = fake_session_factory(routes)
        provider = GitHubDataProvider(
            settings=settings, session=session, activity_window_days=90,
            fetch_installations=fetch_installations, clock=lambda: NOW,
        )
        return provider, session
    return factory


class TestFetchSnapshot:
    """Test snapshot assembly from API responses."""

    def test_snapshot(self, provider_factory, github_routes):
        """Test settings, members, activity and branches are combined."""
        provider, _ = provider_factory(github_routes)

        snapshot = provider.fetch_snapshot("acme", "token")

        assert snapshot.organisation == "acme"
        assert snapshot.requires_two_factor is True
        assert [(m.login, m.role, m.has_recent_push_activity) for m in snapshot.members] == [
            ("alice", MemberRole.ADMIN, False),
            ("Bob", MemberRole.MEMBER, False),
            ("carol", MemberRole.ADMIN, True),
        ]
        assert [(r.name, r.default_branch, r.default_branch_protected)
                for r in snapshot.repositories] == [
            ("api", "main", True),
            ("web", "master", False),
        ]

    def test_token_sent_per_request(self, provider_factory, github_routes):
        """Test bearer auth on every call and page size on list calls."""
        provider, session = provider_factory(github_routes)
        provider.fetch_snapshot("acme", "secret")

        assert all(h["Authorization"] == "Bearer secret" for _, _, h in session.calls)
        assert "Authorization" not in session.headers
        assert session.headers["Accept"] == "application/vnd.github+json"
        first_repo_call = [c for c in session.calls if c[0].endswith("/orgs/acme/repos")][0]
        assert first_repo_call[1] == {"type": "all", "per_page": 2}

    def test_member_events_only_for_admins(self, provider_factory, github_routes):
        """Test push activity is only looked up for admins."""
        provider, session = provider_factory(github_routes)
        provider.fetch_snapshot("acme", "token")

        event_calls = [url for url, _, _ in session.calls if "/events" in url]
        assert sorted(event_calls) == [
            f"{API_URL}/users/alice/events", f"{API_URL}/users/carol/events"
        ]

    def test_missing_two_factor_field(self, provider_factory, github_routes):
        """Test an absent 2FA field reads as not required."""
        github_routes["/orgs/acme"] = make_response(200, {"login": "acme"})
        provider, _ = provider_factory(github_routes)

        assert provider.fetch_snapshot("acme", "token").requires_two_factor is False

    def test_empty_repository_branch(self, provider_factory, github_routes):
        """Test a 404 branch lookup marks the branch unprotected."""
        del github_routes["/repos/acme/api/branches/main"]
        provider, _ = provider_factory(github_routes)

        snapshot = provider.fetch_snapshot("acme", "token")
        assert snapshot.repositories[0].default_branch_protected is False

    def test_order_independent_of_response_order(self, provider_factory, github_routes):
        """Test the snapshot is sorted regardless of API ordering."""
        github_routes["/orgs/acme/repos"] = make_response(200, [
            {"name": "api", "default_branch": "main"},
            {"name": "web", "default_branch": "master"},
        ])
        provider, _ = provider_factory(github_routes)
        first = provider.fetch_snapshot("acme", "token")

        github_routes["/orgs/acme/repos"] = make_response(200, [
            {"name": "web", "default_branch": "master"},
            {"name": "api", "default_branch": "main"},
        ])
        provider, _ = provider_factory(github_routes)
        second = provider.fetch_snapshot("acme", "token")

        assert first == second

    def test_branch_name_is_quoted(self, provider_factory, github_routes):
        """Test reserved characters in a branch name stay in the path."""
        github_routes["/orgs/acme/repos"] = make_response(200, [
            {"name": "web", "default_branch": "release#1"},
        ])
        github_routes["/repos/acme/web/branches/release%231"] = make_response(
            200, {"protected": True}
        )
        provider, session = provider_factory(github_routes)

        snapshot = provider.fetch_snapshot("acme", "token")

        assert snapshot.repositories[0].default_branch == "release#1"
        assert snapshot.repositories[0].default_branch_protected is True
        assert f"{API_URL}/repos/acme/web/branches/release%231" in [
            url for url, _, _ in session.calls
        ]

    def test_installed_apps(self, provider_factory, github_routes):
        """Test app installations are read from the wrapped list."""
        github_routes["/orgs/acme/installations"] = make_response(200, {
            "total_count": 3,
            "installations": [
                {"app_slug": "renovate"}, {"app_slug": "Dependabot"}, {"id": 7},
            ],
        })
        provider, _ = provider_factory(github_routes, fetch_installations=True)

        snapshot = provider.fetch_snapshot("acme", "token")

        assert snapshot.installed_apps == ("Dependabot", "renovate")

    def test_installations_not_fetched_by_default(self, provider_factory, github_routes):
        """Test the installations endpoint is skipped unless requested."""
        provider, session = provider_factory(github_routes)

        snapshot = provider.fetch_snapshot("acme", "token")

        assert snapshot.installed_apps == ()
        assert not [url for url, _, _ in session.calls if "installations" in url]

    def test_session_returns_registered_response(self, fake_session_factory):
        """Test canned responses are handed back as registered, not called."""
        response = make_response(200, {"login": "acme"})
        session = fake_session_factory({"/orgs/acme": response})

        assert session.get(f"{API_URL}/orgs/acme") is response
        assert session.get(f"{API_URL}/orgs/acme").json() == {"login": "acme"}

    def test_static_provider(self, compliant_snapshot):
        """Test the static provider returns its snapshot."""
        provider = StaticDataProvider(compliant_snapshot)
        assert provider.fetch_snapshot("anything", "token") is compliant_snapshot


class TestErrorMapping:
    """Test HTTP failures map onto the boundary errors."""

    def test_unauthorized(self, provider_factory):
        provider, _ = provider_factory({"/orgs/acme": make_response(401, {})})
        with pytest.raises(AuthenticationFailure):
            provider.fetch_snapshot("acme", "bad")

    def test_not_found(self, provider_factory):
        provider, _ = provider_factory({})
        with pytest.raises(OrganisationNotFound, match="acme"):
            provider.fetch_snapshot("acme", "token")

    def test_forbidden_scope(self, provider_factory):
        """Test a plain 403 means the token cannot see the organisation."""
        provider, _ = provider_factory({"/orgs/acme": make_response(403, {})})
        with pytest.raises(OrganisationNotFound, match="denied"):
            provider.fetch_snapshot("acme", "token")

    def test_rate_limited(self, provider_factory):
        """Test exhausted rate limit with reset time."""
        provider, _ = provider_factory({"/orgs/acme": make_response(403, {}, headers={
            "X-RateLimit-Remaining": "0",
            "X-RateLimit-Reset": "1717243200",
        })})

        with pytest.raises(RateLimitExceeded) as exc_info:
            provider.fetch_snapshot("acme", "token")

        assert exc_info.value.reset_at == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert "2024-06-01 12:00:00 UTC" in exc_info.value.hint
        assert isinstance(exc_info.value, DataProviderTransientError)

    def test_secondary_rate_limit(self, provider_factory):
        """Test 429 with Retry-After."""
        provider, _ = provider_factory({
            "/orgs/acme": make_response(429, {}, headers={"Retry-After": "60"})
        })
        with pytest.raises(RateLimitExceeded) as exc_info:
            provider.fetch_snapshot("acme", "token")
        assert exc_info.value.reset_at == datetime(2024, 6, 1, 12, 1, tzinfo=timezone.utc)

    def test_server_error(self, provider_factory):
        provider, _ = provider_factory({"/orgs/acme": make_response(502, {})})
        with pytest.raises(DataProviderTransientError, match="502"):
            provider.fetch_snapshot("acme", "token")

    def test_connection_error(self, provider_factory):
        provider, _ = provider_factory({"/orgs/acme": requests.ConnectionError("reset")})
        with pytest.raises(DataProviderTransientError, match="HTTP client"):
            provider.fetch_snapshot("acme", "token")

    def test_timeout(self, provider_factory):
        provider, _ = provider_factory({"/orgs/acme": requests.Timeout()})
        with pytest.raises(DataProviderTransientError, match="timed out"):
            provider.fetch_snapshot("acme", "token")

    def test_failure_later_in_fetch(self, provider_factory, github_routes):
        """Test a failure on a later call aborts the whole snapshot."""
        github_routes["/orgs/acme/repos"] = make_response(500, {})
        provider, _ = provider_factory(github_routes)
        with pytest.raises(DataProviderTransientError):
            provider.fetch_snapshot("acme", "token")
