"""
Rule loader for assembling the audit rule set.

Builds the ordered list of rule instances enabled by an AuditConfig and
provides filtering and lookup over it.
"""

from typing import List, Optional

from ..config import AuditConfig
from ..core.models import RuleSeverity
from .base import BaseRule
from .builtin import (
    AdminAllowlistRule,
    AdminSeparationRule,
    BranchProtectionRule,
    InstalledAppAllowlistRule,
    MemberAllowlistRule,
    TwoFactorRule,
)
from .registry import RuleRegistry


class RuleLoader:
    """
    Manages the rule set for an audit run.

    Toggles in the configuration decide which built-in rules are active;
    allow-list rules are active only when their list is configured.
    Additional registered rule classes with no-argument constructors are
    appended after the built-in ones.
    """

    def __init__(self, config: Optional[AuditConfig] = None):
        """
        Initialize rule loader.

        Args:
            config: Audit configuration (uses defaults if None)
        """
        self.config = config or AuditConfig()
        self._rules_cache: Optional[List[BaseRule]] = None

    def get_rules(self, severity: Optional[RuleSeverity] = None) -> List[BaseRule]:
        """
        Get the enabled rules in registration order.

        Args:
            severity: Filter by severity level

        Returns:
            List[BaseRule]: Filtered list of rules
        """
        rules = self._load_all_rules()

        if severity:
            rules = [r for r in rules if r.severity == severity]

        return list(rules)

    def get_rule_by_id(self, rule_id: str) -> Optional[BaseRule]:
        """Get an enabled rule by its id, or None."""
        for rule in self._load_all_rules():
            if rule.rule_id == rule_id:
                return rule
        return None

    def _load_all_rules(self) -> List[BaseRule]:
        if self._rules_cache is not None:
            return self._rules_cache

        rules: List[BaseRule] = []
        for rule_id in RuleRegistry.get_rule_ids():
            rule = self._build_rule(rule_id)
            if rule is not None:
                rules.append(rule)

        self._rules_cache = rules
        return rules

    def _build_rule(self, rule_id: str) -> Optional[BaseRule]:
        config = self.config
        if rule_id == TwoFactorRule.rule_id:
            return TwoFactorRule() if config.enforces_2fa else None
        if rule_id == AdminSeparationRule.rule_id:
            return AdminSeparationRule() if config.admins_have_no_commit_activity else None
        if rule_id == BranchProtectionRule.rule_id:
            return BranchProtectionRule() if config.all_repos_default_branch_protected else None
        if rule_id == AdminAllowlistRule.rule_id:
            if config.admin_allowlist is None:
                return None
            return AdminAllowlistRule(config.admin_allowlist)
        if rule_id == MemberAllowlistRule.rule_id:
            if config.member_allowlist is None:
                return None
            return MemberAllowlistRule(config.member_allowlist)
        if rule_id == InstalledAppAllowlistRule.rule_id:
            if config.installed_app_allowlist is None:
                return None
            return InstalledAppAllowlistRule(config.installed_app_allowlist)
        return RuleRegistry.get_rule_class(rule_id)()
