"""
    Events the runner and orchestrator emit while a run is in progress.

    Presentation lives in reports/; this module only fixes the contract so
    the core never imports a console or a log handler.
"""
from __future__ import annotations

from typing import Protocol

from core.config import Requirements
from core.models import CheckResult, CheckSpec, Finding, RemediationRequest, RunSummary


class Reporter(Protocol):
    def run_started(self, requirements: Requirements, auto_fix: bool, non_interactive: bool) -> None: ...

    def show_config(self, requirements: Requirements) -> None: ...

    def notice(self, level: str, message: str) -> None: ...

    def check_started(self, index: int, total: int, spec: CheckSpec) -> None: ...

    def finding(self, spec: CheckSpec, finding: Finding) -> None: ...

    def remediation_started(self, spec: CheckSpec, requests: list[RemediationRequest]) -> None: ...

    def remediation_step(self, spec: CheckSpec, request: RemediationRequest, succeeded: bool) -> None: ...

    def remediation_finished(self, spec: CheckSpec, result: CheckResult) -> None: ...

    def manual_intervention(self, spec: CheckSpec, reason: str) -> None: ...

    def confirm(self, spec: CheckSpec, requests: list[RemediationRequest]) -> bool: ...

    def check_finished(self, spec: CheckSpec, result: CheckResult) -> None: ...

    def summary(self, summary: RunSummary, auto_fix: bool) -> None: ...


class NullReporter:
    """Reporter that drops every event and approves every remediation."""

    def run_started(self, requirements, auto_fix, non_interactive):
        pass

    def show_config(self, requirements):
        pass

    def notice(self, level, message):
        pass

    def check_started(self, index, total, spec):
        pass

    def finding(self, spec, finding):
        pass

    def remediation_started(self, spec, requests):
        pass

    def remediation_step(self, spec, request, succeeded):
        pass

    def remediation_finished(self, spec, result):
        pass

    def manual_intervention(self, spec, reason):
        pass

    def confirm(self, spec, requests):
        return True

    def check_finished(self, spec, result):
        pass

    def summary(self, summary, auto_fix):
        pass
