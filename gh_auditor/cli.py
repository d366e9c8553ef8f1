"""
Command Line Interface for the GitHub organisation auditor.

Resolves the token and organisation, runs the audit, renders the verdicts
and exits with a code reflecting compliance.
"""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import get_settings, load_config
from .core.exceptions import GhAuditorError
from .core.models import AuditReport, RuleSeverity
from .core.orchestrator import Auditor
from .logging import setup_logging
from .reporting.generator import EXIT_ERROR, ReportGenerator, exit_code
from .rules.loader import RuleLoader


console = Console()

STATUS_COLORS = {
    "pass": "green",
    "violation": "red",
}

SEVERITY_COLORS = {
    "critical": "red bold",
    "high": "red",
    "medium": "yellow",
    "low": "blue",
    "info": "dim"
}


def _fail(error: GhAuditorError):
    """Print a boundary error with its hint and exit."""
    console.print(f"[red]Error: {error}[/red]")
    if error.hint:
        console.print(f"[yellow]{error.hint}[/yellow]")
    sys.exit(EXIT_ERROR)


def _build_auditor(organisation: str, token: Optional[str],
                   config_path: Optional[str], sequential: bool = False) -> Auditor:
    config = load_config(config_path)
    if sequential:
        config = config.model_copy(update={"parallel": False})
    return Auditor(organisation, token=token, config=config)


def _run_audit(auditor: Auditor) -> AuditReport:
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True
    ) as progress:
        progress.add_task(f"Auditing {auditor.organisation}...", total=None)
        return auditor.audit()


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help="Enable verbose logging")
@click.pass_context
def cli(ctx, verbose: bool):
    """
    GitHub Organisation Auditor

    Audits two-factor enforcement, admin account hygiene and default
    branch protection for a GitHub organisation.
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    settings = get_settings()
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_format)


@cli.command()
@click.argument('organisation')
@click.option('--token', '-t', help="GitHub token (default: $GITHUB_AUTH_KEY)")
@click.option('--config', '-c', 'config_path', help="Path to YAML audit configuration")
@click.option('--format', type=click.Choice(['table', 'summary', 'text', 'json']),
              default='table', help="Output format")
@click.option('--output', '-o', help="Also save JSON results to this file")
@click.option('--sequential', is_flag=True, help="Evaluate rules one at a time")
def audit(organisation: str, token: Optional[str], config_path: Optional[str],
          format: str, output: Optional[str], sequential: bool):
    """
    Audit ORGANISATION against the configured rule set.

    Exits 0 when compliant, 1 when any rule is violated and 2 on errors.
    """
    generator = ReportGenerator()
    try:
        auditor = _build_auditor(organisation, token, config_path, sequential)
        report = _run_audit(auditor)
    except GhAuditorError as e:
        _fail(e)

    if format == 'json':
        click.echo(generator.render(report, 'json'))
    elif format == 'text':
        click.echo(generator.render(report, 'text'))
    elif format == 'summary':
        _display_summary(report)
    else:
        _display_table(report)

    if output:
        generator.write(report, 'json', output)
        console.print(f"\n[green]Results saved to: {output}[/green]")

    sys.exit(exit_code(report))


@cli.command()
@click.argument('organisation')
@click.option('--token', '-t', help="GitHub token (default: $GITHUB_AUTH_KEY)")
@click.option('--config', '-c', 'config_path', help="Path to YAML audit configuration")
@click.option('--format', type=click.Choice(['json', 'html', 'text']),
              default='html', help="Report format")
@click.option('--output', '-o', required=True, help="Output file path")
@click.option('--template', help="Custom jinja2 HTML template")
def report(organisation: str, token: Optional[str], config_path: Optional[str],
           format: str, output: str, template: Optional[str]):
    """Audit ORGANISATION and write a report file."""
    try:
        auditor = _build_auditor(organisation, token, config_path)
        result = _run_audit(auditor)
    except GhAuditorError as e:
        _fail(e)

    report_path = ReportGenerator(template_path=template).write(result, format, output)
    console.print(f"[green]Report generated: {report_path}[/green]")
    sys.exit(exit_code(result))


@cli.group()
def rules():
    """Inspect the audit rules."""
    pass


@rules.command('list')
@click.option('--config', '-c', 'config_path', help="Path to YAML audit configuration")
@click.option('--severity', type=click.Choice([s.value for s in RuleSeverity]),
              help="Filter by severity")
def list_rules(config_path: Optional[str], severity: Optional[str]):
    """List the rules enabled by the configuration."""
    try:
        loader = RuleLoader(load_config(config_path))
    except GhAuditorError as e:
        _fail(e)

    enabled = loader.get_rules(severity=RuleSeverity(severity) if severity else None)
    if not enabled:
        console.print("[yellow]No rules enabled by this configuration[/yellow]")
        return
    _display_rules_table(enabled)


@rules.command('show')
@click.argument('rule_id')
@click.option('--config', '-c', 'config_path', help="Path to YAML audit configuration")
def show_rule(rule_id: str, config_path: Optional[str]):
    """Show details of an enabled rule."""
    try:
        loader = RuleLoader(load_config(config_path))
    except GhAuditorError as e:
        _fail(e)

    rule = loader.get_rule_by_id(rule_id)
    if rule is None:
        console.print(f"[red]Rule not found or not enabled: {rule_id}[/red]")
        sys.exit(EXIT_ERROR)
    _display_rule_details(rule)


def _display_summary(report: AuditReport):
    """Display a summary of audit results."""
    summary = report.summary()

    table = Table(title=f"Audit Summary - {report.organisation}")
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Score", f"{summary['score']:.1f}%")
    table.add_row("Total Rules", str(summary['total_rules']))
    table.add_row("Passed", f"[green]{summary['passed_rules']}[/green]")
    table.add_row(
        "Violations",
        f"[red]{summary['violated_rules']}[/red]" if summary['violated_rules'] else "0"
    )

    console.print(table)

    if not report.results:
        console.print(
            "\n[yellow]No audits were performed. "
            "Adjust your configuration to enable some of audit procedures.[/yellow]"
        )
        return

    for violation in report.violations:
        console.print(Panel(
            f"[bold]Warning:[/bold] {violation.message}\n"
            + "".join(f"  • {item}\n" for item in violation.evidence)
            + f"\n[bold]Recommendation:[/bold] {violation.recommendation}",
            title=violation.rule_name,
            border_style="red"
        ))

    if report.is_compliant:
        console.print("\n[green]✓ Organisation is compliant[/green]")


def _display_table(report: AuditReport):
    """Display detailed results in table format."""
    table = Table(title=f"Audit Results - {report.organisation}")
    table.add_column("Rule ID", style="dim")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Severity")
    table.add_column("Evidence", max_width=40)

    for result in report.results:
        status_color = STATUS_COLORS.get(result.status.value, "white")
        severity_color = SEVERITY_COLORS.get(result.severity.value, "white")

        table.add_row(
            result.rule_id,
            result.rule_name,
            f"[{status_color}]{result.status.value.upper()}[/{status_color}]",
            f"[{severity_color}]{result.severity.value.upper()}[/{severity_color}]",
            ", ".join(result.evidence)
        )

    console.print(table)
    _display_summary(report)


def _display_rules_table(enabled):
    """Display enabled rules in table format."""
    table = Table(title="Enabled Audit Rules")
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Severity")
    table.add_column("Description")

    for rule in enabled:
        severity_color = SEVERITY_COLORS.get(rule.severity.value, "white")
        table.add_row(
            rule.rule_id,
            rule.title,
            f"[{severity_color}]{rule.severity.value.upper()}[/{severity_color}]",
            rule.description
        )

    console.print(table)


def _display_rule_details(rule):
    """Display detailed information about a specific rule."""
    console.print(Panel(
        f"[bold]{rule.title}[/bold]\n\n"
        f"[dim]ID:[/dim] {rule.rule_id}\n"
        f"[dim]Severity:[/dim] {rule.severity.value.upper()}\n"
        f"[dim]Scope:[/dim] {rule.scope.value}\n\n"
        f"[dim]Description:[/dim]\n{rule.description}\n\n"
        f"[dim]Recommendation:[/dim]\n{rule.recommendation}",
        title="Rule Details"
    ))


def main():
    """Main CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
