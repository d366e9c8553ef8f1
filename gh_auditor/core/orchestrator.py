"""
Core orchestrator for the GitHub organisation auditor.

The Auditor class wires configuration, the data provider, the rule set and
the audit engine together for a single organisation.
"""

from typing import List, Optional

from ..config import AuditConfig, Settings, get_settings, resolve_token
from ..logging import get_logger
from ..providers.base import DataProvider
from ..providers.github import GitHubDataProvider
from ..rules.base import BaseRule
from ..rules.loader import RuleLoader
from .engine import AuditEngine
from .models import AuditReport, OrganisationSnapshot, RuleSeverity

logger = get_logger(__name__)


class Auditor:
    """
    Main orchestrator class for organisation audits.

    Fetches a snapshot through the data provider, then hands it to the
    audit engine together with the configured rule set. Provider errors
    propagate unchanged; no partial report is produced.
    """

    def __init__(self, organisation: str,
                 token: Optional[str] = None,
                 config: Optional[AuditConfig] = None,
                 provider: Optional[DataProvider] = None,
                 settings: Optional[Settings] = None):
        """
        Initialize the auditor.

        Args:
            organisation: GitHub organisation login
            token: Authentication token (falls back to GITHUB_AUTH_KEY)
            config: Audit configuration (defaults if None)
            provider: Data provider (GitHub REST provider if None)
            settings: Environment settings (global settings if None)

        Raises:
            AuthenticationFailure: If no token can be resolved
        """
        if not organisation:
            raise ValueError("Organisation name is required")

        self.organisation = organisation
        self.settings = settings or get_settings()
        self.config = config or AuditConfig()
        self.token = resolve_token(token, self.settings)
        self.provider = provider or GitHubDataProvider(
            settings=self.settings,
            activity_window_days=self.config.activity_window_days,
            fetch_installations=self.config.installed_app_allowlist is not None,
        )
        self.rule_loader = RuleLoader(self.config)
        self.engine = AuditEngine(parallel=self.config.parallel)

    def fetch_snapshot(self) -> OrganisationSnapshot:
        """Read the organisation state through the data provider."""
        logger.info("audit.fetch", organisation=self.organisation)
        return self.provider.fetch_snapshot(self.organisation, self.token)

    def audit(self, snapshot: Optional[OrganisationSnapshot] = None) -> AuditReport:
        """
        Perform the audit.

        Args:
            snapshot: Pre-fetched snapshot (fetched from the provider if None)

        Returns:
            AuditReport: Verdicts in rule registration order
        """
        if snapshot is None:
            snapshot = self.fetch_snapshot()
        return self.engine.run(snapshot, self.rule_loader.get_rules())

    def get_available_rules(self, severity: Optional[RuleSeverity] = None) -> List[BaseRule]:
        """Get the rules enabled by the current configuration."""
        return self.rule_loader.get_rules(severity=severity)
