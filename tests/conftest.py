import pytest

from core.models import CheckId, CheckSpec, Diagnosis, Finding, ProbeResult, RemediationCategory
from core.reporting import NullReporter


class RecordingReporter(NullReporter):
    """NullReporter that keeps every event for assertions."""

    def __init__(self, answer: bool = True):
        self.events = []
        self.answer = answer

    def finding(self, spec, finding):
        self.events.append(("finding", spec.check_id, finding.outcome))

    def remediation_started(self, spec, requests):
        self.events.append(("remediation_started", spec.check_id, [r.category for r in requests]))

    def remediation_step(self, spec, request, succeeded):
        self.events.append(("remediation_step", request.category, succeeded))

    def remediation_finished(self, spec, result):
        self.events.append(("remediation_finished", spec.check_id, result.remediation_succeeded))

    def manual_intervention(self, spec, reason):
        self.events.append(("manual_intervention", spec.check_id, reason))

    def confirm(self, spec, requests):
        self.events.append(("confirm", spec.check_id))
        return self.answer

    def check_started(self, index, total, spec):
        self.events.append(("check_started", index, total))

    def check_finished(self, spec, result):
        self.events.append(("check_finished", spec.check_id, result.outcome))

    def summary(self, summary, auto_fix):
        self.events.append(("summary", summary.total_checks))

    def kinds(self):
        return [event[0] for event in self.events]


class SequenceProbe:
    """Returns the queued results in order, repeating the last one."""

    def __init__(self, *results: ProbeResult):
        self.results = list(results)
        self.calls = 0

    def __call__(self, *params):
        result = self.results[min(self.calls, len(self.results) - 1)]
        self.calls += 1
        return result


def probe_result(outcome, message="detail", diagnosis=None) -> ProbeResult:
    return ProbeResult.from_findings([Finding(name="item", outcome=outcome, message=message)], diagnosis)


def make_spec(probe, check_id=CheckId.LIMITS, remediation=RemediationCategory.ULIMITS, parameters=()):
    return CheckSpec(
        check_id=check_id,
        probe=probe,
        remediation=remediation,
        parameters=parameters,
        description=f"{check_id.label} Checks",
    )


@pytest.fixture
def reporter():
    return RecordingReporter()


@pytest.fixture
def ulimits_diagnosis():
    return Diagnosis(ulimits=(65536, 65536))
