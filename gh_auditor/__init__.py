"""
GitHub Organisation Auditor

Audits a GitHub organisation's security posture: two-factor enforcement,
administrator account hygiene and default branch protection.
"""

__version__ = "0.1.0"

from .core.engine import AuditEngine
from .core.models import AuditReport, OrganisationSnapshot, RuleResult
from .core.orchestrator import Auditor

__all__ = ["Auditor", "AuditEngine", "AuditReport", "OrganisationSnapshot", "RuleResult"]
