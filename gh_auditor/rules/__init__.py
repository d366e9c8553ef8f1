"""Built-in audit rules and the machinery to assemble them."""

from .base import BaseRule
from .builtin import (
    AdminAllowlistRule,
    AdminSeparationRule,
    BranchProtectionRule,
    InstalledAppAllowlistRule,
    MemberAllowlistRule,
    TwoFactorRule,
)
from .loader import RuleLoader
from .registry import RuleRegistry

__all__ = [
    "BaseRule",
    "TwoFactorRule",
    "AdminSeparationRule",
    "BranchProtectionRule",
    "AdminAllowlistRule",
    "MemberAllowlistRule",
    "InstalledAppAllowlistRule",
    "RuleLoader",
    "RuleRegistry",
]
