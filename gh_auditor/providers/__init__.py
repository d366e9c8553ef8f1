"""Data providers supplying organisation snapshots to the audit engine."""

from .base import DataProvider
from .github import GitHubDataProvider

__all__ = ["DataProvider", "GitHubDataProvider"]
