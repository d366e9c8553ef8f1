"""
Unit tests for the Auditor orchestrator.
"""

from unittest.mock import Mock, patch

import pytest

from gh_auditor import Auditor
from gh_auditor.config import AuditConfig, Settings
from gh_auditor.core.exceptions import AuthenticationFailure, OrganisationNotFound
from gh_auditor.core.models import RuleSeverity
from gh_auditor.providers.base import StaticDataProvider


@pytest.fixture
def token_settings():
    return Settings(github_auth_key="env-token")


class TestAuditor:
    """Test end-to-end orchestration with a static provider."""

    def test_audit(self, failing_snapshot, token_settings):
        """Test the provider snapshot flows through the default rules."""
        auditor = Auditor(
            "acme", provider=StaticDataProvider(failing_snapshot), settings=token_settings
        )

        report = auditor.audit()

        assert report.organisation == "acme"
        assert [r.rule_id for r in report.violations] == [
            "two_factor_required", "admin_separation", "branch_protection"
        ]

    def test_token_passed_to_provider(self, compliant_snapshot, token_settings):
        """Test the resolved token reaches the provider call."""
        provider = Mock()
        provider.fetch_snapshot.return_value = compliant_snapshot

        Auditor("acme", token="flag-token", provider=provider,
                settings=token_settings).audit()

        provider.fetch_snapshot.assert_called_once_with("acme", "flag-token")

    def test_prefetched_snapshot(self, compliant_snapshot, token_settings):
        """Test auditing a snapshot without calling the provider."""
        provider = Mock()
        report = Auditor("acme", provider=provider, settings=token_settings).audit(
            compliant_snapshot
        )

        assert report.is_compliant
        provider.fetch_snapshot.assert_not_called()

    def test_config_toggles(self, failing_snapshot, token_settings):
        """Test the configuration controls which rules run."""
        config = AuditConfig(enforces_2fa=False, parallel=False)
        auditor = Auditor("acme", config=config,
                          provider=StaticDataProvider(failing_snapshot),
                          settings=token_settings)

        assert [r.rule_id for r in auditor.audit().results] == [
            "admin_separation", "branch_protection"
        ]
        assert auditor.engine.parallel is False

    def test_available_rules(self, token_settings):
        """Test rule listing with severity filter."""
        auditor = Auditor("acme", provider=Mock(), settings=token_settings)
        rules = auditor.get_available_rules(severity=RuleSeverity.HIGH)

        assert [r.rule_id for r in rules] == ["admin_separation", "branch_protection"]

    def test_missing_token(self):
        """Test construction fails without any token."""
        with pytest.raises(AuthenticationFailure):
            Auditor("acme", provider=Mock(), settings=Settings(github_auth_key=None))

    def test_missing_organisation(self, token_settings):
        with pytest.raises(ValueError):
            Auditor("", provider=Mock(), settings=token_settings)

    def test_provider_errors_propagate(self, token_settings):
        """Test provider failures abort without a report."""
        provider = Mock()
        provider.fetch_snapshot.side_effect = OrganisationNotFound("gone")

        with pytest.raises(OrganisationNotFound):
            Auditor("acme", provider=provider, settings=token_settings).audit()

    def test_default_provider(self, token_settings):
        """Test the GitHub provider is built from settings and config."""
        with patch("gh_auditor.core.orchestrator.GitHubDataProvider") as provider_cls:
            Auditor("acme", config=AuditConfig(activity_window_days=7),
                    settings=token_settings)

        provider_cls.assert_called_once_with(
            settings=token_settings, activity_window_days=7, fetch_installations=False
        )

    def test_app_allowlist_fetches_installations(self, token_settings):
        """Test installations are requested only when an app allow-list is set."""
        config = AuditConfig(installed_app_allowlist=["dependabot"])
        with patch("gh_auditor.core.orchestrator.GitHubDataProvider") as provider_cls:
            Auditor("acme", config=config, settings=token_settings)

        _, kwargs = provider_cls.call_args
        assert kwargs["fetch_installations"] is True
