"""
    Console reporter: renders run events with rich and mirrors them to the log.
"""
import logging

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from core.models import CheckResult, CheckSpec, Finding, RemediationRequest, RunSummary
from reports.logfile import TOOL_NAME, level_for

logger = logging.getLogger(__name__)

_STYLES = {
    "PASS": "green",
    "WARN": "yellow",
    "FAIL": "red",
    "SKIPPED": "dim",
}

_NOTICE_LEVELS = {"WARN": logging.WARNING, "ERROR": logging.ERROR}


def outcome_label(outcome: str) -> str:
    style = _STYLES.get(outcome, "white")
    return f"[{style}]{outcome}[/{style}]"


def describe_requests(requests) -> str:
    return ", ".join(r.category.value for r in requests)


class ConsoleReporter:
    def __init__(self, console: Console | None = None, log_path=None):
        self.console = console or Console()
        self.log_path = log_path

    def run_started(self, requirements, auto_fix, non_interactive):
        self.console.rule(f"[bold cyan]{TOOL_NAME}[/bold cyan]")
        self.console.print(f"Node type: [bold]{requirements.node_type.value}[/bold]")
        if auto_fix:
            mode = "non-interactive" if non_interactive else "interactive"
            self.console.print(f"Auto-fix: [bold green]enabled[/bold green] ({mode})")
        else:
            self.console.print("Auto-fix: disabled")
        self.console.print()

    def show_config(self, requirements):
        for group, values in requirements.as_display_groups().items():
            table = Table(title=group, show_header=True, header_style="bold magenta")
            table.add_column("Property", style="cyan")
            table.add_column("Value")
            for key, value in values.items():
                table.add_row(key, "" if value is None else str(value))
            self.console.print(table)
        self.console.print()

    def notice(self, level, message):
        style = {"WARN": "yellow", "ERROR": "bold red"}.get(level, "cyan")
        self.console.print(f"[{style}]{message}[/{style}]")
        logger.log(_NOTICE_LEVELS.get(level, logging.INFO), "%s", message)

    def check_started(self, index, total, spec):
        self.console.rule(f"[{index}/{total}] {spec.description}", style="cyan")

    def finding(self, spec, finding: Finding):
        self.console.print(f"{outcome_label(finding.outcome)} {finding.message}")
        for suggestion in finding.suggestions:
            self.console.print(f"  [dim]{suggestion}[/dim]")
        logger.log(level_for(finding.outcome), "%s", finding.message)
        if finding.evidence:
            logger.debug("%s evidence: %s", finding.name, finding.evidence)

    def remediation_started(self, spec, requests):
        self.console.print(f"[bold yellow]{spec.name} checks failed. Attempting auto-fix ({describe_requests(requests)})...[/bold yellow]")

    def remediation_step(self, spec, request: RemediationRequest, succeeded):
        if succeeded:
            self.console.print(f"  [green]Auto-fix for {request.category.value} applied.[/green]")
        else:
            self.console.print(f"  [red]Auto-fix for {request.category.value} failed.[/red]")

    def remediation_finished(self, spec, result: CheckResult):
        if result.remediation_succeeded:
            self.console.print(f"[green]Auto-fix successful! {spec.name} checks now pass.[/green]")
            logger.log(level_for("PASS"), "Auto-fix successful for %s checks", spec.name)
        elif result.passed:
            self.console.print(f"[yellow]Auto-fix applied; {spec.name} checks pass with warnings. A new session may be needed.[/yellow]")
            logger.warning("Auto-fix applied for %s checks; re-check returned %s", spec.name, result.outcome)
        else:
            self.console.print(f"[red]Auto-fix attempted but {spec.name} checks still fail. Manual intervention required.[/red]")
            logger.log(level_for("FAIL"), "Auto-fix failed for %s checks", spec.name)

    def manual_intervention(self, spec, reason):
        self.console.print(f"[yellow]{spec.name} checks failed. Manual intervention required ({reason}).[/yellow]")

    def confirm(self, spec, requests) -> bool:
        question = f"Attempt to automatically fix {spec.name} issues ({describe_requests(requests)})?"
        try:
            return Confirm.ask(question, default=True, console=self.console)
        except EOFError:
            # no terminal to answer on
            return False

    def check_finished(self, spec, result: CheckResult):
        self.console.print(f"{spec.name}: {outcome_label(result.outcome)}")
        self.console.print()

    def summary(self, summary: RunSummary, auto_fix):
        table = Table(title="Readiness Summary", show_header=True, header_style="bold magenta")
        table.add_column("Check", style="cyan")
        table.add_column("Status")
        table.add_column("Auto-fix")
        table.add_column("Detail")
        for check_id, result in summary.results.items():
            if result.remediation_attempted:
                if result.remediation_succeeded:
                    fix = "[green]fixed[/green]"
                elif result.passed:
                    fix = "[yellow]applied[/yellow]"
                else:
                    fix = "[red]failed[/red]"
            elif result.manual_intervention:
                fix = "[yellow]manual[/yellow]"
            else:
                fix = ""
            table.add_row(check_id.label, outcome_label(result.outcome), fix, result.detail)
        self.console.print(table)

        if summary.overall_passed:
            self.console.print("[bold green]All checks passed. The system is ready for installation.[/bold green]")
            logger.log(level_for("PASS"), "All checks passed")
        else:
            self.console.print("[bold red]Some checks failed. Please address the issues above.[/bold red]")
            logger.log(level_for("FAIL"), "Some checks failed")

        if auto_fix:
            if summary.fixes_attempted:
                status = "some fixes succeeded" if summary.fixes_succeeded else "no fix succeeded"
                self.console.print(f"Auto-fix: attempted, {status}.")
            else:
                self.console.print("Auto-fix: enabled, no fixes were attempted.")
        else:
            self.console.print("Auto-fix: disabled. Re-run with --auto-fix to attempt automatic remediation.")

        if summary.reboot_required:
            self.console.print("[bold yellow]A reboot (or new login session) is required for some changes to take effect.[/bold yellow]")
            logger.warning("Reboot required for some changes to take effect")

        if self.log_path:
            self.console.print(f"Detailed log: {self.log_path}")
