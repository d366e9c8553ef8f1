"""
Data models for the auditor using Pydantic for validation.

The snapshot models are read-only views of an organisation captured once
per audit run. Results and reports are produced by the audit engine and are
never mutated after construction.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class MemberRole(str, Enum):
    """Role of a member inside the organisation."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


class RuleStatus(str, Enum):
    """Verdict produced by a rule."""
    PASS = "pass"
    VIOLATION = "violation"


class RuleSeverity(str, Enum):
    """Rule severity levels based on security impact."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class RuleScope(str, Enum):
    """What a rule's verdict is about."""
    ORGANISATION = "organisation"
    ENTITY = "entity"


class Member(BaseModel):
    """A member of the organisation."""
    model_config = ConfigDict(frozen=True)

    login: str = Field(..., min_length=1, description="GitHub account name")
    role: MemberRole = MemberRole.MEMBER
    has_recent_push_activity: bool = False

    @property
    def is_administrator(self) -> bool:
        """Owners and admins both hold administrative access."""
        return self.role in (MemberRole.OWNER, MemberRole.ADMIN)


class Repository(BaseModel):
    """A repository and the protection state of its default branch."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    default_branch: str = "main"
    default_branch_protected: bool = False


class OrganisationSnapshot(BaseModel):
    """Immutable point-in-time read of an organisation."""
    model_config = ConfigDict(frozen=True)

    organisation: str = ""
    requires_two_factor: bool = False
    members: Tuple[Member, ...] = ()
    repositories: Tuple[Repository, ...] = ()
    installed_apps: Tuple[str, ...] = ()

    @field_validator("members", "repositories", "installed_apps", mode="before")
    @classmethod
    def missing_sequence_is_empty(cls, v):
        """A missing sequence degrades to an empty one instead of failing."""
        if v is None:
            return ()
        return tuple(v)

    @field_validator("requires_two_factor", mode="before")
    @classmethod
    def missing_flag_is_false(cls, v):
        """GitHub omits the 2FA flag when the token cannot see it."""
        return False if v is None else v

    @property
    def administrators(self) -> List[Member]:
        return [m for m in self.members if m.is_administrator]


class RuleResult(BaseModel):
    """Verdict of a single rule against a snapshot."""
    model_config = ConfigDict(frozen=True)

    rule_id: str
    rule_name: str
    status: RuleStatus
    severity: RuleSeverity = RuleSeverity.MEDIUM
    scope: RuleScope = RuleScope.ENTITY
    evidence: Tuple[str, ...] = ()
    message: str = ""
    recommendation: str = ""

    @model_validator(mode="after")
    def check_evidence(self) -> "RuleResult":
        """Pass carries nothing; entity violations must name the offenders."""
        if self.status == RuleStatus.PASS:
            if self.evidence or self.recommendation:
                raise ValueError("A passing result carries no evidence or recommendation")
        elif self.scope == RuleScope.ENTITY and not self.evidence:
            raise ValueError(f"Violation of {self.rule_id} must carry evidence")
        return self

    @property
    def passed(self) -> bool:
        return self.status == RuleStatus.PASS


class AuditReport(BaseModel):
    """Ordered verdicts of one audit run, in rule registration order."""
    model_config = ConfigDict(frozen=True)

    organisation: str = ""
    results: Tuple[RuleResult, ...] = ()

    @property
    def is_compliant(self) -> bool:
        """Whether every rule passed. An empty report is compliant."""
        return all(r.passed for r in self.results)

    @property
    def violations(self) -> List[RuleResult]:
        """List of rules that were violated."""
        return [r for r in self.results if r.status == RuleStatus.VIOLATION]

    @property
    def passed(self) -> List[RuleResult]:
        return [r for r in self.results if r.passed]

    @property
    def critical_violations(self) -> List[RuleResult]:
        """List of critical severity violations."""
        return [r for r in self.violations if r.severity == RuleSeverity.CRITICAL]

    def get(self, rule_id: str) -> Optional[RuleResult]:
        """Get the result produced by a rule, if it ran."""
        for result in self.results:
            if result.rule_id == rule_id:
                return result
        return None

    def summary(self) -> Dict[str, Any]:
        """Calculate summary statistics from rule results."""
        total = len(self.results)
        passed = len(self.passed)
        return {
            "total_rules": total,
            "passed_rules": passed,
            "violated_rules": total - passed,
            "compliant": self.is_compliant,
            "score": (passed / total) * 100.0 if total else 100.0,
        }
