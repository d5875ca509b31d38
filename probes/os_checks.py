"""
    OS probes: distribution, kernel, architecture and locale.
"""
import logging
import platform

from core.models import Diagnosis, Finding, ProbeResult
from helpers.unix import command_exists, get_evidence, run_cmd, value_in_list, version_gte, version_in_list

logger = logging.getLogger(__name__)

REQUIRED_ARCH = "x86_64"


def get_os_release() -> dict[str, str] | None:
    """Parsed /etc/os-release, or None when it cannot be read."""
    try:
        return platform.freedesktop_os_release()
    except OSError:
        return None


def is_debian_family(os_release: dict[str, str] | None) -> bool:
    if not os_release:
        return False
    ids = f"{os_release.get('ID', '')} {os_release.get('ID_LIKE', '')}".lower()
    return "debian" in ids or "ubuntu" in ids


def check_os_distribution(allowed_distros, allowed_versions) -> Finding:
    os_release = get_os_release()
    if os_release is None:
        return Finding(
            name="os_distribution",
            outcome="FAIL",
            message="Cannot determine OS distribution (/etc/os-release not found).",
        )

    os_name = os_release.get("NAME", "")
    os_version = os_release.get("VERSION_ID", "")
    evidence = {"name": os_name, "version_id": os_version}
    logger.info("Detected OS: %s %s", os_name, os_version)

    if allowed_distros and not value_in_list(os_name, allowed_distros):
        return Finding(
            name="os_distribution",
            outcome="FAIL",
            message=f"OS distribution {os_name} is not supported.",
            suggestions=(f"Supported distributions: {','.join(allowed_distros)}",),
            evidence=evidence,
        )

    if allowed_versions and not version_in_list(os_version, allowed_versions):
        return Finding(
            name="os_distribution",
            outcome="FAIL",
            message=f"OS version {os_version} is not supported.",
            suggestions=(f"Supported versions: {','.join(allowed_versions)}",),
            evidence=evidence,
        )

    return Finding(
        name="os_distribution",
        outcome="PASS",
        message=f"OS distribution and version check passed ({os_name} {os_version}).",
        evidence=evidence,
    )


def check_kernel_version(min_kernel_version) -> Finding:
    kernel_version = platform.release()
    kernel_arch = platform.machine()
    evidence = {"kernel": kernel_version, "arch": kernel_arch}
    logger.info("Detected kernel: %s (%s)", kernel_version, kernel_arch)

    if kernel_arch != REQUIRED_ARCH:
        return Finding(
            name="kernel",
            outcome="FAIL",
            message=f"CPU architecture {kernel_arch} is not supported. Required: {REQUIRED_ARCH}",
            evidence=evidence,
        )

    if not min_kernel_version:
        return Finding(name="kernel", outcome="PASS", message=f"Kernel architecture check passed ({REQUIRED_ARCH}).", evidence=evidence)

    if version_gte(kernel_version, min_kernel_version):
        return Finding(
            name="kernel",
            outcome="PASS",
            message=f"Kernel version check passed ({kernel_version} >= {min_kernel_version}).",
            evidence=evidence,
        )
    return Finding(
        name="kernel",
        outcome="FAIL",
        message=f"Kernel version {kernel_version} is older than required minimum {min_kernel_version}.",
        evidence=evidence,
    )


def normalize_locale(value: str) -> str:
    return value.strip().strip('"').lower().replace("utf-8", "utf8")


def locale_matches(current: str, required: str) -> bool:
    current, required = normalize_locale(current), normalize_locale(required)
    if not current or not required:
        return False
    return required in current or current in required


def get_current_locale() -> tuple[str | None, dict]:
    """LC_CTYPE as reported by `locale`."""
    cmd = ["locale"]
    rc, stdout, stderr = run_cmd(cmd)
    evidence = get_evidence(cmd, rc, stdout, stderr)
    if rc != 0:
        return None, evidence
    for line in stdout.splitlines():
        if line.startswith("LC_CTYPE="):
            return line.split("=", 1)[1].strip().strip('"'), evidence
    return None, evidence


def get_installed_locales() -> list[str]:
    rc, stdout, _ = run_cmd(["locale", "-a"])
    if rc != 0:
        return []
    return [line.strip() for line in stdout.splitlines() if line.strip()]


def check_locale(required_locale) -> tuple[Finding, Diagnosis]:
    required_locale = required_locale or "en_US.utf8"

    if not command_exists("locale"):
        return Finding(
            name="locale",
            outcome="WARN",
            message="Cannot check locale settings (locale command not found).",
            suggestions=("Install glibc locale utilities (locales / glibc-common) to enable this check.",),
        ), Diagnosis()

    current_locale, evidence = get_current_locale()
    current_locale = current_locale or ""
    installed = get_installed_locales()
    logger.info("Current locale: %s", current_locale)
    debian = is_debian_family(get_os_release())

    if any(normalize_locale(loc) == normalize_locale(required_locale) for loc in installed):
        if locale_matches(current_locale, required_locale):
            return Finding(
                name="locale",
                outcome="PASS",
                message=f"Locale check passed. Current locale ({current_locale}) matches required ({required_locale}).",
                evidence=evidence,
            ), Diagnosis()

        if debian:
            suggestions = (
                f"Required locale is installed but not active. Consider updating with: sudo update-locale LANG={required_locale}",
            )
        else:
            suggestions = (
                "Required locale is installed but not active. Consider updating with either:",
                f"  - sudo localectl set-locale LANG={required_locale}",
                f"  - Or manually edit /etc/locale.conf and set LANG={required_locale}",
            )
        return Finding(
            name="locale",
            outcome="WARN",
            message=f"Current locale ({current_locale}) does not match required locale ({required_locale}).",
            suggestions=suggestions,
            evidence=evidence,
        ), Diagnosis()

    if debian:
        suggestions = (f"Install with: sudo locale-gen {required_locale}",)
    else:
        suggestions = (
            "Install with:",
            "  - sudo dnf install glibc-langpack-en   # For RHEL 8/AlmaLinux/Rocky",
            "  - sudo yum install glibc-langpack-en   # For older RHEL/CentOS",
        )
    return Finding(
        name="locale",
        outcome="FAIL",
        message=f"Required locale ({required_locale}) is not installed.",
        suggestions=suggestions,
        evidence=evidence,
    ), Diagnosis(locale=required_locale)


def run_os_checks(allowed_distros=(), allowed_versions=(), min_kernel_version=None, required_locale="en_US.utf8") -> ProbeResult:
    locale_finding, diagnosis = check_locale(required_locale)
    findings = [
        check_os_distribution(allowed_distros, allowed_versions),
        check_kernel_version(min_kernel_version),
        locale_finding,
    ]
    return ProbeResult.from_findings(findings, diagnosis)
