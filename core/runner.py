"""
    Check runner: executes one CheckSpec and owns the retry-after-fix protocol.

    States per check:

        NOT_RUN -> RUNNING -> PASSED | WARNED | SKIPPED | FAILED
        FAILED  -> REMEDIATING -> RERUNNING -> PASSED | WARNED | FAILED

    The second FAILED is terminal: one remediation cycle per check per run.
    remediation_succeeded means the re-run returned PASS.
    Every failure is recovered here; nothing a probe or a fix does can stop
    the orchestrator.
"""
from __future__ import annotations

import importlib
import logging
from enum import Enum

from core.dispatcher import RemediationDispatcher
from core.errors import ProbeLoadError
from core.models import CheckId, CheckResult, CheckSpec, Finding, Probe, ProbeResult, is_passing
from core.reporting import NullReporter, Reporter

logger = logging.getLogger(__name__)


class CheckState(str, Enum):
    NOT_RUN = "not_run"
    RUNNING = "running"
    PASSED = "passed"
    WARNED = "warned"
    SKIPPED = "skipped"
    FAILED = "failed"
    REMEDIATING = "remediating"
    RERUNNING = "rerunning"


_STATE_FOR_OUTCOME = {
    "PASS": CheckState.PASSED,
    "WARN": CheckState.WARNED,
    "SKIPPED": CheckState.SKIPPED,
    "FAIL": CheckState.FAILED,
}


def resolve_probe(probe) -> Probe:
    """Return the probe callable, importing "package.module:function" references."""
    if callable(probe):
        return probe

    module_name, _, attr = str(probe).partition(":")
    if not module_name or not attr:
        raise ProbeLoadError(str(probe), "expected 'module:function'")
    try:
        module = importlib.import_module(module_name)
    except (ImportError, SyntaxError) as e:
        raise ProbeLoadError(str(probe), f"{type(e).__name__}: {e}") from e

    func = getattr(module, attr, None)
    if not callable(func):
        raise ProbeLoadError(str(probe), f"{module_name} has no function {attr}")
    return func


class CheckRunner:
    def __init__(
        self,
        dispatcher: RemediationDispatcher | None = None,
        reporter: Reporter | None = None,
        auto_fix: bool = False,
        interactive: bool = False,
    ):
        self.dispatcher = dispatcher or RemediationDispatcher()
        self.reporter = reporter or NullReporter()
        self.auto_fix = auto_fix
        self.interactive = interactive
        self.states: dict[CheckId, CheckState] = {}

    def _transition(self, spec: CheckSpec, state: CheckState) -> None:
        previous = self.states.get(spec.check_id, CheckState.NOT_RUN)
        self.states[spec.check_id] = state
        logger.debug("%s: %s -> %s", spec.name, previous.value, state.value)

    def _invoke(self, spec: CheckSpec, probe: Probe) -> ProbeResult:
        try:
            result = probe(*spec.parameters)
            if not isinstance(result, ProbeResult):
                raise TypeError(f"expected ProbeResult, got {type(result).__name__}")
        except Exception as e:
            logger.exception("%s probe raised an unexpected error", spec.name)
            finding = Finding(
                name="probe_error",
                outcome="FAIL",
                message=f"{spec.name} probe error: {type(e).__name__}: {e}",
            )
            self.reporter.finding(spec, finding)
            return ProbeResult.from_findings([finding])

        for finding in result.findings:
            self.reporter.finding(spec, finding)
        return result

    def run(self, spec: CheckSpec) -> CheckResult:
        self._transition(spec, CheckState.RUNNING)
        logger.info("Running %s checks", spec.name)

        try:
            probe = resolve_probe(spec.probe)
        except ProbeLoadError as e:
            logger.error("%s check module not found: %s", spec.name, e.reason)
            finding = Finding(name="module", outcome="FAIL", message=f"{spec.name} check module not found at {e.reference}")
            self.reporter.finding(spec, finding)
            self._transition(spec, CheckState.FAILED)
            return CheckResult(
                check_id=spec.check_id,
                outcome="FAIL",
                detail=f"module not found: {e.reference}",
                findings=(finding,),
            )

        first = self._invoke(spec, probe)
        self._transition(spec, _STATE_FOR_OUTCOME[first.outcome])

        result = CheckResult(
            check_id=spec.check_id,
            outcome=first.outcome,
            detail=first.detail,
            findings=first.findings,
        )
        if first.outcome != "FAIL" or not self.auto_fix:
            return result

        if spec.remediation is None:
            return self._manual(spec, result, "no automatic fix is available for this check")

        requests = self.dispatcher.plan(spec.remediation, first.diagnosis)
        if not requests:
            return self._manual(spec, result, "none of the detected issues can be fixed automatically")

        if self.interactive and not self.reporter.confirm(spec, requests):
            return self._manual(spec, result, "auto-fix declined")

        self._transition(spec, CheckState.REMEDIATING)
        logger.info("%s checks failed. Attempting auto-fix...", spec.name)
        self.reporter.remediation_started(spec, requests)

        requires_reboot = False
        for request in requests:
            try:
                succeeded = self.dispatcher.dispatch(request)
            except Exception:
                logger.exception("%s remediation raised an unexpected error", request.category.value)
                succeeded = False
            self.reporter.remediation_step(spec, request, succeeded)
            if succeeded and request.category.requires_reboot:
                requires_reboot = True

        self._transition(spec, CheckState.RERUNNING)
        second = self._invoke(spec, probe)
        self._transition(spec, _STATE_FOR_OUTCOME[second.outcome])

        # A WARN re-run passes the run but does not confirm the fix.
        fixed = second.outcome == "PASS"
        result = CheckResult(
            check_id=spec.check_id,
            outcome=second.outcome,
            detail=second.detail,
            findings=second.findings,
            remediation_attempted=True,
            remediation_succeeded=fixed,
            requires_reboot=requires_reboot,
            manual_intervention=not is_passing(second.outcome),
        )
        self.reporter.remediation_finished(spec, result)
        return result

    def _manual(self, spec: CheckSpec, result: CheckResult, reason: str) -> CheckResult:
        logger.info("%s checks failed. Manual intervention required: %s", spec.name, reason)
        self.reporter.manual_intervention(spec, reason)
        return CheckResult(
            check_id=result.check_id,
            outcome=result.outcome,
            detail=result.detail,
            findings=result.findings,
            manual_intervention=True,
        )
