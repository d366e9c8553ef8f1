"""
Report generator for audit results.

Renders an AuditReport as console text, JSON, or HTML, and maps the
report onto a process exit code.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Template

from .. import __version__
from ..core.models import AuditReport, RuleResult

EXIT_COMPLIANT = 0
EXIT_VIOLATIONS = 1
EXIT_ERROR = 2

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="utf-8">
    <title>GitHub Organisation Audit - {{ organisation }}</title>
    <style>
        body { font-family: sans-serif; margin: 2em; color: #24292f; }
        table { border-collapse: collapse; width: 100%; }
        th, td { border: 1px solid #d0d7de; padding: 6px 10px; text-align: left; vertical-align: top; }
        .pass { color: #1a7f37; font-weight: bold; }
        .violation { color: #cf222e; font-weight: bold; }
        .summary { margin-bottom: 1.5em; }
    </style>
</head>
<body>
    <h1>GitHub Organisation Audit: {{ organisation }}</h1>
    <div class="summary">
        <p>Generated: {{ generated_at }}</p>
        <p>Score: {{ "%.1f"|format(summary.score) }}% ({{ summary.passed_rules }}/{{ summary.total_rules }} rules passed)</p>
        <p>Status:
        {% if summary.compliant %}<span class="pass">COMPLIANT</span>{% else %}<span class="violation">NON-COMPLIANT</span>{% endif %}
        </p>
    </div>
    {% if results %}
    <table>
        <tr><th>Rule</th><th>Severity</th><th>Status</th><th>Evidence</th><th>Recommendation</th></tr>
        {% for result in results %}
        <tr>
            <td>{{ result.rule_name }}</td>
            <td>{{ result.severity.value|upper }}</td>
            <td class="{{ result.status.value }}">{{ result.status.value|upper }}</td>
            <td>{% if result.evidence %}<ul>{% for item in result.evidence %}<li>{{ item }}</li>{% endfor %}</ul>{% endif %}</td>
            <td>{{ result.recommendation }}</td>
        </tr>
        {% endfor %}
    </table>
    {% else %}
    <p>No audits were performed.</p>
    {% endif %}
</body>
</html>
"""


def exit_code(report: AuditReport) -> int:
    """0 when every rule passed, 1 when at least one rule was violated."""
    return EXIT_COMPLIANT if report.is_compliant else EXIT_VIOLATIONS


class ReportGenerator:
    """
    Generates audit reports in multiple formats.

    Text output follows the warning/recommendation layout of the console
    tool; JSON is meant for machines; HTML is a standalone page.
    """

    def __init__(self, template_path: Optional[str] = None):
        """
        Initialize report generator.

        Args:
            template_path: Custom jinja2 HTML template (built-in if None)
        """
        if template_path:
            with open(template_path, 'r', encoding="utf-8") as f:
                self.html_template = Template(f.read(), autoescape=True)
        else:
            self.html_template = Template(HTML_TEMPLATE, autoescape=True)

    def render(self, report: AuditReport, format: str = "text") -> str:
        """
        Render a report to a string.

        Args:
            report: Audit report to render
            format: One of text, json, html

        Returns:
            str: Rendered report
        """
        format = format.lower()
        if format == "text":
            return self._render_text(report)
        elif format == "json":
            return json.dumps(self.to_dict(report), indent=2)
        elif format == "html":
            return self._render_html(report)
        else:
            raise ValueError(f"Unsupported report format: {format}")

    def write(self, report: AuditReport, format: str, output_path: str) -> str:
        """
        Render a report and save it to a file.

        Returns:
            str: Path to generated report file
        """
        content = self.render(report, format)
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        with open(output_file, 'w', encoding="utf-8") as f:
            f.write(content)
        return str(output_file)

    def to_dict(self, report: AuditReport) -> Dict[str, Any]:
        """Machine-readable report structure."""
        return {
            "report_metadata": {
                "generated_at": datetime.now(timezone.utc).isoformat(),
                "report_type": "github_organisation_audit",
                "tool_version": __version__,
            },
            "organisation": report.organisation,
            "compliance_summary": report.summary(),
            "rule_results": [result.model_dump(mode="json") for result in report.results],
        }

    def _render_text(self, report: AuditReport) -> str:
        if not report.results:
            return "❗️ Warning:\nNo audits were performed.\n\n💡 Recommendation:\n" \
                   "Adjust your configuration to enable some of audit procedures.\n"

        blocks = [self._format_result(result) for result in report.results]
        return "\n".join(blocks)

    @staticmethod
    def _format_result(result: RuleResult) -> str:
        if result.passed:
            return f"✅ {result.rule_name}\n"

        lines = [f"❌ {result.rule_name}", "❗️ Warning:", result.message or result.rule_name]
        if result.evidence:
            lines.extend(f"  - {item}" for item in result.evidence)
        lines.extend(["", "💡 Recommendation:", result.recommendation])
        return "\n".join(lines) + "\n"

    def _render_html(self, report: AuditReport) -> str:
        return self.html_template.render(
            organisation=report.organisation,
            generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
            summary=report.summary(),
            results=report.results,
        )
