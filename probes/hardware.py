import logging
import os

import psutil

from core.models import Finding, ProbeResult

logger = logging.getLogger(__name__)

GIB = 1024 ** 3


def get_cpu_info():
    """
        CPU and memory facts used by the hardware checks.
    """
    cpu_info = {
        "total_cores": psutil.cpu_count(logical=True) or os.cpu_count() or 0,
        "physical_cores": psutil.cpu_count(logical=False),
        "memory_gb": round(psutil.virtual_memory().total / GIB, 1),
    }
    return cpu_info


def get_disk_size_gb(path: str) -> float:
    return round(psutil.disk_usage(path).total / GIB, 1)


def _skipped(name: str, what: str) -> Finding:
    return Finding(name=name, outcome="SKIPPED", message=f"No {what} specified. Skipping check.")


def check_cpu_count(required_cpus, cpu_info) -> Finding:
    cpu_count = cpu_info["total_cores"]
    logger.info("Detected CPUs: %s", cpu_count)
    if required_cpus is None:
        return _skipped("cpu_count", "required CPU count")

    if cpu_count >= required_cpus:
        return Finding(
            name="cpu_count",
            outcome="PASS",
            message=f"CPU count check passed ({cpu_count} >= {required_cpus}).",
            evidence={"cpu_count": cpu_count},
        )
    return Finding(
        name="cpu_count",
        outcome="FAIL",
        message=f"CPU count check failed. Found {cpu_count}, required {required_cpus}.",
        evidence={"cpu_count": cpu_count},
    )


def check_memory(required_memory_gb, cpu_info) -> Finding:
    mem_gb = cpu_info["memory_gb"]
    logger.info("Detected memory: %s GB", mem_gb)
    if required_memory_gb is None:
        return _skipped("memory", "required memory size")

    if mem_gb >= required_memory_gb:
        return Finding(
            name="memory",
            outcome="PASS",
            message=f"Memory size check passed ({mem_gb} GB >= {required_memory_gb} GB).",
            evidence={"memory_gb": mem_gb},
        )
    return Finding(
        name="memory",
        outcome="FAIL",
        message=f"Memory size check failed. Found {mem_gb} GB, required {required_memory_gb} GB.",
        evidence={"memory_gb": mem_gb},
    )


def check_disk_size(name: str, label: str, path, min_gb) -> Finding:
    if not path:
        return _skipped(name, f"{label} mount point")
    if min_gb is None:
        return _skipped(name, f"minimum {label} space")
    if not os.path.isdir(path):
        return Finding(
            name=name,
            outcome="FAIL",
            message=f"{label.capitalize()} mount point {path} does not exist.",
        )

    size_gb = get_disk_size_gb(path)
    logger.info("Detected %s space: %s GB", label, size_gb)
    if size_gb >= min_gb:
        return Finding(
            name=name,
            outcome="PASS",
            message=f"{label.capitalize()} space check passed ({size_gb} GB >= {min_gb} GB).",
            evidence={"path": path, "size_gb": size_gb},
        )
    return Finding(
        name=name,
        outcome="FAIL",
        message=f"{label.capitalize()} space check failed. Found {size_gb} GB, required {min_gb} GB.",
        evidence={"path": path, "size_gb": size_gb},
    )


def run_hardware_checks(required_cpus=None, required_memory_gb=None, min_root_disk_gb=None,
                        data_disk_mount=None, min_data_disk_gb=None) -> ProbeResult:
    cpu_info = get_cpu_info()
    findings = [
        check_cpu_count(required_cpus, cpu_info),
        check_memory(required_memory_gb, cpu_info),
        check_disk_size("root_disk", "root disk", "/", min_root_disk_gb),
        check_disk_size("data_disk", "data disk", data_disk_mount, min_data_disk_gb),
    ]
    return ProbeResult.from_findings(findings)
