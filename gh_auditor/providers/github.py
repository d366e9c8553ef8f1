"""
GitHub REST API data provider.

Reads organisation settings, members with their roles, admin push activity,
default branch protection and, on request, installed GitHub Apps, and
assembles an OrganisationSnapshot.

Push activity comes from the user events feed, which only lists public
events unless the token belongs to that user. Pushes to private
repositories are therefore not seen.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Set
from urllib.parse import quote

import requests

from .. import __version__
from ..config import Settings, get_settings
from ..core.exceptions import (
    AuthenticationFailure,
    DataProviderTransientError,
    OrganisationNotFound,
    RateLimitExceeded,
)
from ..core.models import Member, MemberRole, OrganisationSnapshot, Repository
from ..logging import get_logger, log_request
from .base import DataProvider

logger = get_logger(__name__)

HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
    "User-Agent": f"gh-auditor/{__version__}",
}


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse GitHub's ISO-8601 timestamps ("2024-05-01T12:00:00Z")."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class GitHubDataProvider(DataProvider):
    """
    Snapshot provider backed by the GitHub REST API.

    One provider can serve several runs; the token is passed per call and
    never stored on the session.
    """

    def __init__(self, settings: Optional[Settings] = None,
                 session: Optional[requests.Session] = None,
                 activity_window_days: int = 90,
                 fetch_installations: bool = False,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize the provider.

        Args:
            settings: Environment settings (global settings if None)
            session: HTTP session (a new requests.Session if None)
            activity_window_days: How far back push events count as recent
            fetch_installations: Also list installed GitHub Apps (owner token)
            clock: Returns the current UTC time (overridable for tests)
        """
        self.settings = settings or get_settings()
        self.api_url = self.settings.github_api_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update(HEADERS)
        self.activity_window = timedelta(days=activity_window_days)
        self.fetch_installations = fetch_installations
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def fetch_snapshot(self, organisation: str, token: str) -> OrganisationSnapshot:
        headers = {"Authorization": f"Bearer {token}"}

        org = self._get_json(f"/orgs/{organisation}", headers, organisation)
        org_login = org.get("login") or organisation

        members = self._fetch_members(org_login, headers)
        repositories = self._fetch_repositories(org_login, headers)
        installed_apps = (
            self._fetch_installed_apps(org_login, headers)
            if self.fetch_installations else []
        )

        logger.info(
            "github.snapshot",
            organisation=org_login,
            members=len(members),
            repositories=len(repositories),
        )
        return OrganisationSnapshot(
            organisation=org_login,
            requires_two_factor=bool(org.get("two_factor_requirement_enabled")),
            members=members,
            repositories=repositories,
            installed_apps=installed_apps,
        )

    def _fetch_members(self, organisation: str, headers: Dict[str, str]) -> List[Member]:
        admin_logins: Set[str] = {
            m["login"] for m in self._paginate(
                f"/orgs/{organisation}/members", headers, organisation, {"role": "admin"}
            ) if m.get("login")
        }

        members = []
        for entry in self._paginate(f"/orgs/{organisation}/members", headers, organisation):
            login = entry.get("login")
            if not login:
                continue
            if login in admin_logins:
                members.append(Member(
                    login=login,
                    role=MemberRole.ADMIN,
                    has_recent_push_activity=self._has_recent_push(login, headers, organisation),
                ))
            else:
                members.append(Member(login=login, role=MemberRole.MEMBER))

        return sorted(members, key=lambda m: m.login.lower())

    def _has_recent_push(self, login: str, headers: Dict[str, str], organisation: str) -> bool:
        """Whether the user has a PushEvent inside the activity window."""
        cutoff = self.clock() - self.activity_window
        for event in self._paginate(f"/users/{login}/events", headers, organisation):
            created_at = _parse_timestamp(event.get("created_at"))
            if created_at is None:
                continue
            if created_at < cutoff:
                # events are returned newest first
                return False
            if event.get("type") == "PushEvent":
                return True
        return False

    def _fetch_repositories(self, organisation: str,
                            headers: Dict[str, str]) -> List[Repository]:
        repositories = []
        for repo in self._paginate(
            f"/orgs/{organisation}/repos", headers, organisation, {"type": "all"}
        ):
            name = repo.get("name")
            if not name:
                continue
            branch = repo.get("default_branch") or "main"
            repositories.append(Repository(
                name=name,
                default_branch=branch,
                default_branch_protected=self._branch_protected(
                    organisation, name, branch, headers
                ),
            ))
        return sorted(repositories, key=lambda r: r.name.lower())

    def _fetch_installed_apps(self, organisation: str, headers: Dict[str, str]) -> List[str]:
        slugs = [
            installation["app_slug"] for installation in self._paginate(
                f"/orgs/{organisation}/installations", headers, organisation,
                items_key="installations",
            ) if installation.get("app_slug")
        ]
        return sorted(slugs, key=str.lower)

    def _branch_protected(self, organisation: str, repo: str, branch: str,
                          headers: Dict[str, str]) -> bool:
        # branch names may contain "#", "?" or "%"
        url = (
            f"{self.api_url}/repos/{quote(organisation, safe='')}/{quote(repo, safe='')}"
            f"/branches/{quote(branch, safe='')}"
        )
        response = self._request(url, headers)
        if response.status_code == 404:
            # empty repositories have no default branch yet
            return False
        self._raise_for_status(response, organisation)
        return bool(response.json().get("protected"))

    def _get_json(self, path: str, headers: Dict[str, str], organisation: str) -> Dict[str, Any]:
        response = self._request(f"{self.api_url}{path}", headers)
        self._raise_for_status(response, organisation)
        return response.json() or {}

    def _paginate(self, path: str, headers: Dict[str, str], organisation: str,
                  params: Optional[Dict[str, Any]] = None,
                  items_key: Optional[str] = None) -> Iterator[Dict[str, Any]]:
        """Yield items from a list endpoint, following Link: rel="next".

        Some endpoints wrap the list in an object; `items_key` names it.
        """
        url: Optional[str] = f"{self.api_url}{path}"
        query = dict(params or {})
        query["per_page"] = self.settings.per_page

        while url:
            response = self._request(url, headers, query)
            self._raise_for_status(response, organisation)
            payload = response.json() or []
            if items_key is not None:
                payload = payload.get(items_key) or []
            for item in payload:
                yield item
            url = response.links.get("next", {}).get("url")
            # the next link already carries the query string
            query = None

    def _request(self, url: str, headers: Dict[str, str],
                 params: Optional[Dict[str, Any]] = None) -> requests.Response:
        try:
            response = self.session.get(
                url, headers=headers, params=params, timeout=self.settings.request_timeout
            )
        except requests.Timeout as e:
            raise DataProviderTransientError(f"GitHub request timed out: {url}") from e
        except requests.RequestException as e:
            raise DataProviderTransientError(f"Error from HTTP client: {e}") from e

        log_request(logger, "GET", url, response.status_code)
        return response

    def _raise_for_status(self, response: requests.Response, organisation: str) -> None:
        """Map GitHub error statuses onto the boundary error taxonomy."""
        status = response.status_code
        if status < 400:
            return

        if status == 401:
            raise AuthenticationFailure("GitHub rejected the authentication token.")

        if status == 429 or (status == 403 and self._is_rate_limited(response)):
            raise RateLimitExceeded(
                "GitHub API rate limit reached.", reset_at=self._rate_limit_reset(response)
            )

        if status == 403:
            raise OrganisationNotFound(
                f"Access to organisation '{organisation}' was denied "
                "(the token lacks the required scope)."
            )

        if status == 404:
            raise OrganisationNotFound(f"Organisation '{organisation}' was not found.")

        if status >= 500:
            raise DataProviderTransientError(f"GitHub returned server error {status}.")

        raise DataProviderTransientError(f"Unexpected response {status} from GitHub.")

    @staticmethod
    def _is_rate_limited(response: requests.Response) -> bool:
        return (
            response.headers.get("X-RateLimit-Remaining") == "0"
            or "Retry-After" in response.headers
        )

    def _rate_limit_reset(self, response: requests.Response) -> Optional[datetime]:
        retry_after = response.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            return self.clock() + timedelta(seconds=int(retry_after))
        reset = response.headers.get("X-RateLimit-Reset")
        if reset and reset.isdigit():
            return datetime.fromtimestamp(int(reset), tz=timezone.utc)
        return None
