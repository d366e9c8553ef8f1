"""Report rendering for audit results."""

from .generator import ReportGenerator, exit_code

__all__ = ["ReportGenerator", "exit_code"]
