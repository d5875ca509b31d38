"""
    Software probes: Java, Python, required packages and repositories.
"""
import logging
import re

from core.models import Diagnosis, Finding, ProbeResult
from helpers.unix import command_exists, detect_package_manager, get_evidence, run_cmd

logger = logging.getLogger(__name__)


# -----------------------------
# Java
# -----------------------------
def parse_java_version(output: str) -> tuple[str, int] | None:
    """
    Vendor and major version from `java -version` output (printed on stderr).

      openjdk version "17.0.9" 2023-10-17      -> ("OpenJDK", 17)
      java version "1.8.0_381"                 -> ("Java", 8)
    """
    m = re.search(r'version "([^"]+)"', output)
    if not m:
        return None
    parts = re.findall(r"\d+", m.group(1))
    if not parts:
        return None
    major = int(parts[1]) if parts[0] == "1" and len(parts) > 1 else int(parts[0])
    vendor = "OpenJDK" if "openjdk" in output.lower() else "Java"
    return vendor, major


def parse_accepted_java(entry: str) -> tuple[str, int | None]:
    """("OpenJDK", 17) for "OpenJDK 17"; a bare vendor accepts any major."""
    m = re.match(r"^\s*([A-Za-z][A-Za-z-]*)?\s*(\d+)?\s*$", entry)
    if not m:
        return entry.strip(), None
    return (m.group(1) or ""), (int(m.group(2)) if m.group(2) else None)


def java_accepted(vendor: str, major: int, accepted) -> bool:
    for entry in accepted:
        want_vendor, want_major = parse_accepted_java(entry)
        if want_vendor and want_vendor.lower() != vendor.lower():
            continue
        if want_major is None or want_major == major:
            return True
    return False


def check_java(required_versions) -> tuple[Finding, Diagnosis]:
    required_versions = tuple(required_versions or ())
    accepted = ",".join(required_versions)
    missing = Diagnosis(java_versions=required_versions)

    if not command_exists("java"):
        return Finding(
            name="java",
            outcome="FAIL",
            message="Java is not installed.",
            suggestions=(f"Please install one of: {accepted}",),
        ), missing

    cmd = ["java", "-version"]
    rc, stdout, stderr = run_cmd(cmd)
    evidence = get_evidence(cmd, rc, stdout, stderr)
    parsed = parse_java_version(stderr or stdout)
    if parsed is None:
        return Finding(
            name="java",
            outcome="FAIL",
            message="Could not determine the installed Java version.",
            suggestions=(f"Please install one of: {accepted}",),
            evidence=evidence,
        ), missing

    vendor, major = parsed
    detected = f"{vendor} {major}"
    logger.info("Detected Java: %s", detected)

    if not required_versions or java_accepted(vendor, major, required_versions):
        return Finding(name="java", outcome="PASS", message=f"Java version check passed ({detected}).", evidence=evidence), Diagnosis()
    return Finding(
        name="java",
        outcome="FAIL",
        message=f"Java version check failed. Found {detected}.",
        suggestions=(f"Required Java versions: {accepted}",),
        evidence=evidence,
    ), missing


# -----------------------------
# Python
# -----------------------------
def python_accepted(version: str, accepted) -> bool:
    """A "3.9" entry accepts 3.9.x only; a bare "3" accepts any 3.x."""
    major, _, rest = version.partition(".")
    minor = rest.split(".", 1)[0]
    for entry in accepted:
        entry = entry.strip()
        if "." in entry:
            want_major, want_minor = entry.split(".", 1)
            if major == want_major and minor == want_minor.split(".", 1)[0]:
                return True
        elif major == entry:
            return True
    return False


def check_python(required_versions) -> Finding:
    accepted = ",".join(required_versions or ())
    if not command_exists("python3"):
        return Finding(
            name="python",
            outcome="FAIL",
            message="Python 3 is not installed.",
            suggestions=(f"Please install one of these Python versions: {accepted}",),
        )

    cmd = ["python3", "--version"]
    rc, stdout, stderr = run_cmd(cmd)
    evidence = get_evidence(cmd, rc, stdout, stderr)
    m = re.search(r"(\d+\.\d+(?:\.\d+)?)", stdout or stderr)
    if rc != 0 or not m:
        return Finding(name="python", outcome="FAIL", message="Could not determine the installed Python version.", evidence=evidence)

    version = m.group(1)
    logger.info("Detected Python: %s", version)
    if not required_versions or python_accepted(version, required_versions):
        return Finding(name="python", outcome="PASS", message=f"Python version check passed ({version}).", evidence=evidence)
    return Finding(
        name="python",
        outcome="FAIL",
        message=f"Python version check failed. Found {version}.",
        suggestions=(f"Required Python versions: {accepted}",),
        evidence=evidence,
    )


# -----------------------------
# Packages
# -----------------------------
def is_package_installed(package: str, package_manager: str) -> bool:
    if package_manager == "apt":
        rc, stdout, _ = run_cmd(["dpkg-query", "-W", "-f=${Status}", package])
        return rc == 0 and stdout.endswith("install ok installed")
    rc, _, _ = run_cmd(["rpm", "-q", package])
    return rc == 0


def check_packages(required_packages) -> tuple[Finding, Diagnosis]:
    required_packages = tuple(required_packages or ())
    if not required_packages:
        return Finding(name="packages", outcome="SKIPPED", message="No required packages specified. Skipping check."), Diagnosis()

    package_manager = detect_package_manager()
    if package_manager is None:
        return Finding(
            name="packages",
            outcome="WARN",
            message="Could not determine package manager. Skipping detailed package check.",
        ), Diagnosis()

    logger.info("Using %s package manager", package_manager)
    missing = tuple(pkg for pkg in required_packages if not is_package_installed(pkg, package_manager))
    evidence = {"package_manager": package_manager, "missing": list(missing)}

    if not missing:
        return Finding(name="packages", outcome="PASS", message="All required packages are installed.", evidence=evidence), Diagnosis()

    installer = "apt-get" if package_manager == "apt" else package_manager
    return Finding(
        name="packages",
        outcome="FAIL",
        message=f"The following packages are missing: {' '.join(missing)}",
        suggestions=(f"Install with: sudo {installer} install {' '.join(missing)}",),
        evidence=evidence,
    ), Diagnosis(missing_packages=missing)


# -----------------------------
# Repositories
# -----------------------------
def enabled_repositories(package_manager: str) -> str | None:
    """Lower-cased repolist text, or None when the listing failed."""
    if package_manager == "apt":
        cmd = ["apt-cache", "policy"]
    else:
        cmd = [package_manager, "repolist", "--enabled"]
    rc, stdout, stderr = run_cmd(cmd, timeout_s=60)
    logger.debug("Repository listing: %s", get_evidence(cmd, rc, stdout, stderr))
    return stdout.lower() if rc == 0 else None


def check_repositories(required_repos) -> tuple[Finding, Diagnosis]:
    required_repos = tuple(required_repos or ())
    if not required_repos:
        return Finding(name="repositories", outcome="SKIPPED", message="No required repositories specified. Skipping check."), Diagnosis()

    package_manager = detect_package_manager()
    if package_manager is None:
        return Finding(
            name="repositories",
            outcome="WARN",
            message="Could not determine package manager. Skipping repository check.",
        ), Diagnosis()

    if package_manager == "apt":
        # EPEL only exists for RHEL-family systems.
        for repo in required_repos:
            if repo.upper() == "EPEL":
                logger.info("EPEL is not required for Debian/Ubuntu-based systems.")
        required_repos = tuple(r for r in required_repos if r.upper() != "EPEL")
        if not required_repos:
            return Finding(name="repositories", outcome="PASS", message="All required repositories are configured."), Diagnosis()

    listing = enabled_repositories(package_manager)
    if listing is None:
        return Finding(
            name="repositories",
            outcome="FAIL",
            message="Repository connectivity check failed.",
            suggestions=(f"Check the {package_manager} repository configuration and network access.",),
        ), Diagnosis()

    missing = tuple(repo for repo in required_repos if repo.lower() not in listing)
    if not missing:
        return Finding(name="repositories", outcome="PASS", message="All required repositories are configured."), Diagnosis()

    suggestions = []
    if any(repo.upper() == "EPEL" for repo in missing):
        suggestions.append(f"Install EPEL with: sudo {package_manager} install epel-release")
    return Finding(
        name="repositories",
        outcome="FAIL",
        message=f"The following repositories are missing: {' '.join(missing)}",
        suggestions=tuple(suggestions),
        evidence={"package_manager": package_manager, "missing": list(missing)},
    ), Diagnosis(missing_repos=missing)


def run_software_checks(java_versions=("OpenJDK 11", "OpenJDK 17"), python_versions=("3.6", "3.7", "3.9", "3.10"),
                        required_packages=("git", "nginx", "zip", "unzip", "acl"), required_repos=("EPEL",)) -> ProbeResult:
    java_finding, diagnosis = check_java(java_versions)
    package_finding, package_diagnosis = check_packages(required_packages)
    repo_finding, repo_diagnosis = check_repositories(required_repos)

    findings = [java_finding, check_python(python_versions), package_finding, repo_finding]
    diagnosis = diagnosis.merge(package_diagnosis).merge(repo_diagnosis)
    return ProbeResult.from_findings(findings, diagnosis)
