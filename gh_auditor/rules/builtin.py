"""
Built-in organisation audit rules.

Every rule here is a pure function of the snapshot. Evidence lists keep the
order in which the offending entities appear in the snapshot.
"""

from typing import Iterable, List, Optional

from ..core.models import (
    MemberRole, OrganisationSnapshot, RuleResult, RuleScope, RuleSeverity
)
from .base import BaseRule


class TwoFactorRule(BaseRule):
    """Organisation must require two-factor authentication for all members."""

    rule_id = "two_factor_required"
    title = "2 Factor Authentication"
    description = "Checks that the organisation requires 2FA for all of its members."
    warning = "2 Factor Authentication is not required for members of the organisation."
    recommendation = "Enable 2 Factor as a requirement for members."
    severity = RuleSeverity.CRITICAL
    scope = RuleScope.ORGANISATION

    def evaluate(self, snapshot: OrganisationSnapshot) -> RuleResult:
        if snapshot.requires_two_factor:
            return self.passed()
        return self.violated()


class AdminSeparationRule(BaseRule):
    """Admin accounts should be used for administration only."""

    rule_id = "admin_separation"
    title = "Admin Commit Activity"
    description = (
        "Checks that admin accounts have no recent push activity. GitHub only "
        "exposes public push events for other users, so pushes to private "
        "repositories are not counted."
    )
    warning = (
        "Admins have commit activity. This is usually an indication that admin "
        "members are using their accounts for purposes other than administration."
    )
    recommendation = "Create separate accounts for administration access to the organisation."
    severity = RuleSeverity.HIGH

    def evaluate(self, snapshot: OrganisationSnapshot) -> RuleResult:
        offenders = [
            m.login for m in snapshot.members
            if m.role == MemberRole.ADMIN and m.has_recent_push_activity
        ]
        if offenders:
            return self.violated(offenders)
        return self.passed()


class BranchProtectionRule(BaseRule):
    """Every repository's default branch must be protected."""

    rule_id = "branch_protection"
    title = "Default Branch Protection"
    description = "Checks that every repository protects its default branch."
    warning = "Repositories have unprotected default branches."
    recommendation = (
        "Protect default branches and require pull requests before merging."
    )
    severity = RuleSeverity.HIGH

    def evaluate(self, snapshot: OrganisationSnapshot) -> RuleResult:
        offenders = [
            r.name for r in snapshot.repositories if not r.default_branch_protected
        ]
        if offenders:
            return self.violated(offenders)
        return self.passed()


def _allowlist_diff(logins: Iterable[str], allowlist: Iterable[str]) -> List[str]:
    """
    Compare actual logins with the expected set, case-insensitively.

    Unexpected names come first in snapshot order, then missing names in
    allow-list order.
    """
    logins = list(logins)
    allowlist = list(allowlist)
    expected = {login.lower() for login in allowlist}
    actual = {login.lower() for login in logins}

    evidence = [f"unexpected:{login}" for login in logins if login.lower() not in expected]
    evidence.extend(
        f"missing:{login}" for login in allowlist if login.lower() not in actual
    )
    return evidence


class AdminAllowlistRule(BaseRule):
    """Organisation administrators must match the configured allow-list."""

    rule_id = "admin_allowlist"
    title = "Admin Allow-list"
    description = "Checks owners and admins against the configured allow-list."
    warning = "Organisation administrators do not match the admin allow-list."
    recommendation = (
        "Review administrator access and update either the organisation or the allow-list."
    )
    severity = RuleSeverity.HIGH

    def __init__(self, allowlist: Optional[Iterable[str]] = None):
        self.allowlist = tuple(allowlist or ())

    def evaluate(self, snapshot: OrganisationSnapshot) -> RuleResult:
        evidence = _allowlist_diff(
            (m.login for m in snapshot.administrators), self.allowlist
        )
        if evidence:
            return self.violated(evidence)
        return self.passed()


class MemberAllowlistRule(BaseRule):
    """Organisation membership must match the configured allow-list."""

    rule_id = "member_allowlist"
    title = "Member Allow-list"
    description = "Checks all organisation members against the configured allow-list."
    warning = "Organisation members do not match the member allow-list."
    recommendation = (
        "Remove unexpected members or add them to the allow-list after review."
    )
    severity = RuleSeverity.MEDIUM

    def __init__(self, allowlist: Optional[Iterable[str]] = None):
        self.allowlist = tuple(allowlist or ())

    def evaluate(self, snapshot: OrganisationSnapshot) -> RuleResult:
        evidence = _allowlist_diff((m.login for m in snapshot.members), self.allowlist)
        if evidence:
            return self.violated(evidence)
        return self.passed()


class InstalledAppAllowlistRule(BaseRule):
    """Installed GitHub Apps must match the configured allow-list."""

    rule_id = "installed_app_allowlist"
    title = "Installed App Allow-list"
    description = "Checks GitHub App installations against the configured allow-list of app slugs."
    warning = "Installed GitHub Apps do not match the app allow-list."
    recommendation = (
        "Uninstall unexpected apps, or review them and add them to the allow-list."
    )
    severity = RuleSeverity.HIGH

    def __init__(self, allowlist: Optional[Iterable[str]] = None):
        self.allowlist = tuple(allowlist or ())

    def evaluate(self, snapshot: OrganisationSnapshot) -> RuleResult:
        evidence = _allowlist_diff(snapshot.installed_apps, self.allowlist)
        if evidence:
            return self.violated(evidence)
        return self.passed()
