"""
    Run orchestrator: the fixed check order and the run's RunSummary.

    Order: OS -> Hardware -> Filesystem -> System Limits -> Network -> Software

    Hardware measures disk sizes only; mount point and filesystem type are
    validated once, by the filesystem check that follows it.

    Checks run one at a time. Remediations mutate shared host state (package
    database, locale, limits files) and assume exclusive access, so running
    two instances of the tool at once is not supported.
"""
from __future__ import annotations

import logging

from core.config import Requirements
from core.models import CheckId, CheckSpec, RemediationCategory, RunSummary
from core.reporting import NullReporter, Reporter
from core.runner import CheckRunner

logger = logging.getLogger(__name__)

CHECK_ORDER = (
    CheckId.OS,
    CheckId.HARDWARE,
    CheckId.FILESYSTEM,
    CheckId.LIMITS,
    CheckId.NETWORK,
    CheckId.SOFTWARE,
)


def build_check_specs(req: Requirements) -> list[CheckSpec]:
    specs = {
        CheckId.OS: CheckSpec(
            check_id=CheckId.OS,
            probe="probes.os_checks:run_os_checks",
            remediation=RemediationCategory.LOCALE,
            parameters=(req.allowed_os_distros, req.allowed_os_versions, req.min_kernel_version, req.locale_required),
            description="Operating System and System Checks",
        ),
        CheckId.HARDWARE: CheckSpec(
            check_id=CheckId.HARDWARE,
            probe="probes.hardware:run_hardware_checks",
            remediation=None,
            parameters=(req.vcpus, req.memory_gb, req.min_root_disk_gb, req.data_disk_mount, req.min_data_disk_gb),
            description="Hardware Checks",
        ),
        CheckId.FILESYSTEM: CheckSpec(
            check_id=CheckId.FILESYSTEM,
            probe="probes.filesystem:run_filesystem_checks",
            remediation=None,
            parameters=("/", req.data_disk_mount, req.filesystem),
            description="Filesystem Checks",
        ),
        CheckId.LIMITS: CheckSpec(
            check_id=CheckId.LIMITS,
            probe="probes.limits:run_limits_checks",
            remediation=RemediationCategory.ULIMITS,
            parameters=(req.ulimit_files, req.ulimit_processes),
            description="System Settings and Limits Checks",
        ),
        CheckId.NETWORK: CheckSpec(
            check_id=CheckId.NETWORK,
            probe="probes.network:run_network_checks",
            remediation=None,
            parameters=(req.port_range,),
            description="Network and Connectivity Checks",
        ),
        CheckId.SOFTWARE: CheckSpec(
            check_id=CheckId.SOFTWARE,
            probe="probes.software:run_software_checks",
            remediation=RemediationCategory.SOFTWARE,
            parameters=(req.java_versions, req.python_versions, req.required_packages, req.required_repos),
            description="Software and Dependency Checks",
        ),
    }
    return [specs[check_id] for check_id in CHECK_ORDER]


class RunOrchestrator:
    def __init__(
        self,
        specs: list[CheckSpec],
        runner: CheckRunner,
        reporter: Reporter | None = None,
    ):
        self.specs = list(specs)
        self.runner = runner
        self.reporter = reporter or NullReporter()

    def run(self) -> RunSummary:
        summary = RunSummary()
        total = len(self.specs)

        for index, spec in enumerate(self.specs, start=1):
            self.reporter.check_started(index, total, spec)
            result = self.runner.run(spec)
            summary.record(result)
            self.reporter.check_finished(spec, result)
            logger.info("%s check finished: %s", spec.name, result.outcome)

        summary.finalize()
        logger.info(
            "Run finished: %s/%s checks passing, fixes attempted=%s, reboot required=%s",
            sum(1 for r in summary.results.values() if r.passed),
            summary.total_checks,
            summary.fixes_attempted,
            summary.reboot_required,
        )
        self.reporter.summary(summary, self.runner.auto_fix)
        return summary
