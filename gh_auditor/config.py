"""
Configuration management for the auditor.

Two layers: environment `Settings` (token, API endpoint, logging) read with
pydantic-settings, and the `AuditConfig` rule toggles read from an optional
YAML file and merged over the defaults.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import AuthenticationFailure, ConfigurationError


class Settings(BaseSettings):
    """Environment configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    github_auth_key: Optional[str] = Field(
        default=None,
        description="GitHub token, needs read access to the organisation"
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL (override for GitHub Enterprise)"
    )
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    per_page: int = Field(default=100, ge=1, le=100, description="Page size for list calls")

    log_level: str = Field(default="WARNING", description="Logging level")
    log_format: str = Field(default="console", description="Log format: json, console")


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (for testing)."""
    global _settings
    _settings = None


def resolve_token(token: Optional[str], settings: Optional[Settings] = None) -> str:
    """
    Pick the token for this run: explicit value first, then GITHUB_AUTH_KEY.

    Raises:
        AuthenticationFailure: If no token is available
    """
    if token:
        return token
    settings = settings or get_settings()
    if settings.github_auth_key:
        return settings.github_auth_key
    raise AuthenticationFailure("No authentication key for GitHub provided.")


class AuditConfig(BaseModel):
    """Which audits to run and with which allow-lists."""

    # Toggles
    enforces_2fa: bool = Field(True, description="Warn if 2FA is not required for members")
    admins_have_no_commit_activity: bool = Field(
        True, description="Warn if admin accounts have recent push activity"
    )
    all_repos_default_branch_protected: bool = Field(
        True, description="Warn if any repository's default branch is unprotected"
    )

    # Allow-lists
    admin_allowlist: Optional[List[str]] = Field(
        None, description="Exact set of expected admin logins"
    )
    member_allowlist: Optional[List[str]] = Field(
        None, description="Exact set of expected member logins"
    )
    installed_app_allowlist: Optional[List[str]] = Field(
        None, description="Exact set of expected GitHub App slugs"
    )

    activity_window_days: int = Field(90, ge=1, description="Push activity look-back window")
    parallel: bool = Field(True, description="Evaluate rules concurrently")

    @field_validator("admin_allowlist", "member_allowlist", "installed_app_allowlist")
    @classmethod
    def strip_logins(cls, v):
        """Drop blank entries and surrounding whitespace."""
        if v is None:
            return v
        return [login.strip() for login in v if login and login.strip()]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: Optional[Union[str, Path]] = None) -> AuditConfig:
    """
    Load audit configuration from a YAML file or use defaults.

    The file may hold the keys at top level or under an `audit:` section.

    Args:
        config_path: Path to configuration file (optional)

    Returns:
        AuditConfig: Validated configuration

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    defaults = AuditConfig().model_dump()
    if not config_path:
        return AuditConfig()

    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    try:
        with open(path, 'r', encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read configuration {path}: {e}") from e

    if not isinstance(user_config, dict):
        raise ConfigurationError(f"Configuration {path} must be a mapping")

    user_config = user_config.get("audit", user_config)
    if not isinstance(user_config, dict):
        raise ConfigurationError(f"'audit' section of {path} must be a mapping")

    try:
        return AuditConfig(**_deep_merge(defaults, user_config))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}: {e}") from e
