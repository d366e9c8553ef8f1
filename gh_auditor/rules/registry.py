"""
Rule registry mapping rule ids to rule classes.

Provides a single place to look up the built-in rule classes and to
register additional ones.
"""

from typing import Dict, List, Type

from .base import BaseRule
from .builtin import (
    AdminAllowlistRule,
    AdminSeparationRule,
    BranchProtectionRule,
    InstalledAppAllowlistRule,
    MemberAllowlistRule,
    TwoFactorRule,
)


class RuleRegistry:
    """
    Registry of available rule classes, in registration order.

    The order here is the order the loader assembles the default rule set,
    and therefore the order of results in every report.
    """

    _rules: Dict[str, Type[BaseRule]] = {
        TwoFactorRule.rule_id: TwoFactorRule,
        AdminSeparationRule.rule_id: AdminSeparationRule,
        BranchProtectionRule.rule_id: BranchProtectionRule,
        AdminAllowlistRule.rule_id: AdminAllowlistRule,
        MemberAllowlistRule.rule_id: MemberAllowlistRule,
        InstalledAppAllowlistRule.rule_id: InstalledAppAllowlistRule,
    }

    @classmethod
    def get_rule_class(cls, rule_id: str) -> Type[BaseRule]:
        """
        Get the rule class registered under an id.

        Raises:
            ValueError: If no rule is registered under that id
        """
        if rule_id not in cls._rules:
            raise ValueError(f"Unknown rule: {rule_id}")
        return cls._rules[rule_id]

    @classmethod
    def get_rule_ids(cls) -> List[str]:
        """Get registered rule ids in registration order."""
        return list(cls._rules.keys())

    @classmethod
    def register_rule(cls, rule_class: Type[BaseRule]) -> None:
        """
        Register an additional rule class.

        Args:
            rule_class: Subclass of BaseRule with a non-empty rule_id

        Raises:
            ValueError: If the class has no rule_id or the id is taken
        """
        if not rule_class.rule_id:
            raise ValueError(f"{rule_class.__name__} has no rule_id")
        existing = cls._rules.get(rule_class.rule_id)
        if existing is not None and existing is not rule_class:
            raise ValueError(f"Rule id already registered: {rule_class.rule_id}")
        cls._rules[rule_class.rule_id] = rule_class

    @classmethod
    def unregister_rule(cls, rule_id: str) -> None:
        """Remove a rule class from the registry, if present."""
        cls._rules.pop(rule_id, None)
