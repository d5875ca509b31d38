# core/models.py
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Literal, Union

Outcome = Literal["PASS", "WARN", "FAIL", "SKIPPED"]

# A check takes the highest-ranked outcome among its findings.
_OUTCOME_RANK: dict[str, int] = {"FAIL": 3, "WARN": 2, "PASS": 1, "SKIPPED": 0}


def is_passing(outcome: Outcome) -> bool:
    """WARN and SKIPPED never fail a run."""
    return outcome != "FAIL"


def worst_outcome(outcomes) -> Outcome:
    worst: Outcome = "SKIPPED"
    for outcome in outcomes:
        if _OUTCOME_RANK[outcome] > _OUTCOME_RANK[worst]:
            worst = outcome
    return worst


class CheckId(str, Enum):
    OS = "os"
    HARDWARE = "hardware"
    FILESYSTEM = "filesystem"
    LIMITS = "limits"
    NETWORK = "network"
    SOFTWARE = "software"

    @property
    def label(self) -> str:
        return _CHECK_LABELS[self]


_CHECK_LABELS = {
    CheckId.OS: "OS",
    CheckId.HARDWARE: "Hardware",
    CheckId.FILESYSTEM: "Filesystem",
    CheckId.LIMITS: "System Limits",
    CheckId.NETWORK: "Network",
    CheckId.SOFTWARE: "Software",
}


class RemediationCategory(str, Enum):
    LOCALE = "locale"
    ULIMITS = "ulimits"
    PACKAGES = "packages"
    REPOSITORIES = "repositories"
    JAVA = "java"
    TIME_SYNC = "time_sync"
    # Check-level composite: packages -> repositories -> java.
    SOFTWARE = "software"
    UNKNOWN = "unknown"

    @property
    def requires_reboot(self) -> bool:
        return self in (RemediationCategory.LOCALE, RemediationCategory.ULIMITS)


@dataclass(frozen=True)
class Finding:
    name: str
    outcome: Outcome
    message: str
    suggestions: tuple[str, ...] = ()
    evidence: dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Diagnosis:
    """
    Structured description of what a remediation would have to change.

    Probes fill in only the parts they found broken, so an empty Diagnosis
    means "nothing the dispatcher knows how to fix".
    """
    locale: str | None = None
    ulimits: tuple[int, int] | None = None
    time_sync: bool = False
    missing_packages: tuple[str, ...] = ()
    missing_repos: tuple[str, ...] = ()
    java_versions: tuple[str, ...] = ()

    def merge(self, other: "Diagnosis") -> "Diagnosis":
        return Diagnosis(
            locale=other.locale or self.locale,
            ulimits=other.ulimits or self.ulimits,
            time_sync=self.time_sync or other.time_sync,
            missing_packages=self.missing_packages + other.missing_packages,
            missing_repos=self.missing_repos + other.missing_repos,
            java_versions=self.java_versions or other.java_versions,
        )

    @property
    def empty(self) -> bool:
        return self == Diagnosis()


@dataclass(frozen=True)
class ProbeResult:
    outcome: Outcome
    detail: str
    findings: tuple[Finding, ...] = ()
    diagnosis: Diagnosis = field(default_factory=Diagnosis)

    @classmethod
    def from_findings(cls, findings, diagnosis: Diagnosis | None = None) -> "ProbeResult":
        findings = tuple(findings)
        outcome = worst_outcome(f.outcome for f in findings)

        if outcome in ("FAIL", "WARN"):
            detail = " ".join(f.message for f in findings if f.outcome == outcome)
        elif outcome == "PASS":
            detail = f"{sum(1 for f in findings if f.outcome == 'PASS')} requirement(s) met."
        else:
            detail = "No requirements configured."

        return cls(outcome=outcome, detail=detail, findings=findings, diagnosis=diagnosis or Diagnosis())


Probe = Callable[..., ProbeResult]


@dataclass(frozen=True)
class CheckSpec:
    check_id: CheckId
    # Either the probe itself or a "package.module:function" reference
    # resolved when the check runs.
    probe: Union[Probe, str]
    remediation: RemediationCategory | None
    parameters: tuple[Any, ...]
    description: str

    @property
    def name(self) -> str:
        return self.check_id.label


@dataclass(frozen=True)
class CheckResult:
    check_id: CheckId
    outcome: Outcome
    detail: str
    findings: tuple[Finding, ...] = ()
    remediation_attempted: bool = False
    remediation_succeeded: bool = False
    requires_reboot: bool = False
    manual_intervention: bool = False

    @property
    def passed(self) -> bool:
        return is_passing(self.outcome)


@dataclass(frozen=True)
class RemediationRequest:
    category: RemediationCategory
    parameters: tuple[Any, ...] = ()


@dataclass
class RunSummary:
    results: dict[CheckId, CheckResult] = field(default_factory=dict)
    total_checks: int = 0
    finalized: bool = False

    def record(self, result: CheckResult) -> None:
        if self.finalized:
            raise RuntimeError("RunSummary is finalized; no further results can be recorded")
        self.total_checks += 1
        self.results[result.check_id] = result

    def finalize(self) -> "RunSummary":
        self.finalized = True
        return self

    @property
    def fixes_attempted(self) -> bool:
        return any(r.remediation_attempted for r in self.results.values())

    @property
    def fixes_succeeded(self) -> bool:
        return any(r.remediation_succeeded for r in self.results.values())

    @property
    def reboot_required(self) -> bool:
        return any(r.requires_reboot for r in self.results.values())

    @property
    def overall_passed(self) -> bool:
        return all(r.passed for r in self.results.values())

    @property
    def exit_code(self) -> int:
        return 0 if self.overall_passed else 1

    def counts(self) -> dict[str, int]:
        counts = {"PASS": 0, "WARN": 0, "FAIL": 0, "SKIPPED": 0}
        for r in self.results.values():
            counts[r.outcome] += 1
        return counts
