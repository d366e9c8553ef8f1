"""
Test fixtures and utilities for the auditor test suite.

Provides snapshot fixtures and a fake HTTP session that routes GitHub API
paths to canned responses.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from unittest.mock import NonCallableMock

import pytest

from gh_auditor.config import Settings, reset_settings
from gh_auditor.core.models import Member, MemberRole, OrganisationSnapshot, Repository


API_URL = "https://api.github.test"
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep host tokens and cached settings out of every test."""
    for name in ("GITHUB_AUTH_KEY", "GITHUB_API_URL", "LOG_LEVEL", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    """Settings pointing at a fake API host."""
    return Settings(github_api_url=API_URL, github_auth_key=None, per_page=2)


@pytest.fixture
def compliant_snapshot():
    """Snapshot that passes every built-in rule."""
    return OrganisationSnapshot(
        organisation="acme",
        requires_two_factor=True,
        members=[
            Member(login="alice", role=MemberRole.ADMIN, has_recent_push_activity=False),
            Member(login="bob", role=MemberRole.MEMBER, has_recent_push_activity=True),
        ],
        repositories=[
            Repository(name="api", default_branch="main", default_branch_protected=True),
            Repository(name="web", default_branch="master", default_branch_protected=True),
        ],
    )


@pytest.fixture
def failing_snapshot():
    """Snapshot that violates every built-in rule."""
    return OrganisationSnapshot(
        organisation="acme",
        requires_two_factor=False,
        members=[
            Member(login="zed", role=MemberRole.ADMIN, has_recent_push_activity=True),
            Member(login="bob", role=MemberRole.MEMBER, has_recent_push_activity=True),
            Member(login="amy", role=MemberRole.ADMIN, has_recent_push_activity=True),
        ],
        repositories=[
            Repository(name="zeta", default_branch="main", default_branch_protected=False),
            Repository(name="alpha", default_branch="main", default_branch_protected=True),
            Repository(name="beta", default_branch="main", default_branch_protected=False),
        ],
    )


def make_response(status_code: int = 200, json_data: Any = None,
                  headers: Optional[Dict[str, str]] = None,
                  next_url: Optional[str] = None) -> NonCallableMock:
    """Create a mock requests.Response."""
    response = NonCallableMock()
    response.status_code = status_code
    response.json.return_value = json_data
    response.headers = headers or {}
    response.links = {"next": {"url": next_url}} if next_url else {}
    return response


class FakeSession:
    """requests.Session stand-in routing by path (and role param)."""

    def __init__(self, routes: Dict[str, Any]):
        self.routes = routes
        self.headers: Dict[str, str] = {}
        self.calls = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.calls.append((url, dict(params or {}), dict(headers or {})))
        path = url.replace(API_URL, "")
        if params and params.get("role"):
            path = f"{path}#role={params['role']}"
        route = self.routes.get(path)
        if route is None:
            return make_response(404, {"message": "Not Found"})
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route()
        return route


@pytest.fixture
def fake_session_factory() -> Callable[[Dict[str, Any]], FakeSession]:
    return FakeSession


@pytest.fixture
def github_routes():
    """Canned responses for a small organisation named acme."""
    return {
        "/orgs/acme": make_response(200, {
            "login": "acme",
            "two_factor_requirement_enabled": True,
        }),
        "/orgs/acme/members#role=admin": make_response(200, [
            {"login": "carol"}, {"login": "alice"},
        ]),
        "/orgs/acme/members": make_response(200, [
            {"login": "carol"}, {"login": "Bob"},
        ], next_url=f"{API_URL}/orgs/acme/members?page=2"),
        "/orgs/acme/members?page=2": make_response(200, [
            {"login": "alice"},
        ]),
        "/users/carol/events": make_response(200, [
            {"type": "IssuesEvent", "created_at": "2024-05-30T10:00:00Z"},
            {"type": "PushEvent", "created_at": "2024-05-20T10:00:00Z"},
        ]),
        "/users/alice/events": make_response(200, [
            {"type": "WatchEvent", "created_at": "2024-05-30T10:00:00Z"},
            {"type": "PushEvent", "created_at": "2023-01-01T10:00:00Z"},
        ]),
        "/orgs/acme/repos": make_response(200, [
            {"name": "web", "default_branch": "master"},
            {"name": "api", "default_branch": "main"},
        ]),
        "/repos/acme/web/branches/master": make_response(200, {"protected": False}),
        "/repos/acme/api/branches/main": make_response(200, {"protected": True}),
    }
