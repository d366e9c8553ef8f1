"""
Base rule interface for audit checks.

Defines the common interface that every audit rule must implement.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from ..core.models import (
    OrganisationSnapshot, RuleResult, RuleScope, RuleSeverity, RuleStatus
)


class BaseRule(ABC):
    """
    Abstract base class for audit rules.

    A rule is a pure check: it reads a snapshot and returns a verdict. It must
    not perform I/O, mutate the snapshot, or raise for well-formed input.
    Subclasses set the class attributes and implement `evaluate`.
    """

    rule_id: str = ""
    title: str = ""
    description: str = ""
    warning: str = ""
    recommendation: str = ""
    severity: RuleSeverity = RuleSeverity.MEDIUM
    scope: RuleScope = RuleScope.ENTITY

    @abstractmethod
    def evaluate(self, snapshot: OrganisationSnapshot) -> RuleResult:
        """
        Evaluate the rule against an organisation snapshot.

        Args:
            snapshot: Read-only organisation data

        Returns:
            RuleResult: Pass, or Violation with evidence
        """

    def passed(self) -> RuleResult:
        """Build a passing result for this rule."""
        return RuleResult(
            rule_id=self.rule_id,
            rule_name=self.title,
            status=RuleStatus.PASS,
            severity=self.severity,
            scope=self.scope,
        )

    def violated(self, evidence: Iterable[str] = ()) -> RuleResult:
        """Build a violation carrying the offending entities in input order."""
        return RuleResult(
            rule_id=self.rule_id,
            rule_name=self.title,
            status=RuleStatus.VIOLATION,
            severity=self.severity,
            scope=self.scope,
            evidence=tuple(evidence),
            message=self.warning,
            recommendation=self.recommendation,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.rule_id!r})"
