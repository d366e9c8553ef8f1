"""
Error taxonomy for the auditor.

Errors originate at the boundary (configuration, authentication and the
data provider). Rule evaluation itself is total and never raises for the
built-in rule set.
"""

from datetime import datetime
from typing import Optional


class GhAuditorError(Exception):
    """Base class for all auditor errors."""

    hint = ""

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        if hint is not None:
            self.hint = hint


class ConfigurationError(GhAuditorError):
    """Configuration file could not be read or holds invalid values."""

    hint = "Check the configuration file against the documented keys."


class AuthenticationFailure(GhAuditorError):
    """No authentication token, or the token was rejected by GitHub."""

    hint = "Pass a token with --token or set GITHUB_AUTH_KEY. It needs read:org access."


class OrganisationNotFound(GhAuditorError):
    """Organisation does not exist or the token cannot see it."""

    hint = "Check the organisation name and that the token has admin:org read scope."


class DataProviderTransientError(GhAuditorError):
    """Network failure or server error while fetching the snapshot."""

    hint = "This is usually temporary. Try the audit again in a few minutes."


class RateLimitExceeded(DataProviderTransientError):
    """GitHub API rate limit reached."""

    def __init__(self, message: str, reset_at: Optional[datetime] = None):
        self.reset_at = reset_at
        hint = None
        if reset_at is not None:
            hint = f"Try again after {reset_at.strftime('%Y-%m-%d %H:%M:%S UTC')}."
        super().__init__(message, hint)


class RuleEvaluationError(GhAuditorError):
    """A registered rule raised while evaluating a snapshot."""

    def __init__(self, rule_id: str, cause: Exception):
        self.rule_id = rule_id
        super().__init__(
            f"Rule {rule_id} failed: {cause}",
            "Rules must not raise. Fix or unregister the custom rule.",
        )
