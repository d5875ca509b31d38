"""
    Package manager remediations: missing packages, repositories and Java.

    All three go through the detected package manager (apt-get, dnf or yum)
    and install non-interactively.
"""
import logging

from helpers.unix import command_exists, detect_package_manager, has_privilege, run_privileged
from probes.software import parse_accepted_java

logger = logging.getLogger(__name__)

INSTALL_TIMEOUT_S = 1800


def _install_cmd(package_manager: str, packages) -> list[str]:
    tool = "apt-get" if package_manager == "apt" else package_manager
    return [tool, "install", "-y", *packages]


def install_packages(packages, package_manager: str | None = None) -> bool:
    package_manager = package_manager or detect_package_manager()
    if package_manager is None:
        logger.warning("No supported package manager found. Cannot install %s", " ".join(packages))
        return False

    if package_manager == "apt":
        rc, _, stderr = run_privileged(["apt-get", "update"], timeout_s=INSTALL_TIMEOUT_S)
        if rc != 0:
            logger.error("apt-get update failed: %s", stderr)
            return False

    rc, _, stderr = run_privileged(_install_cmd(package_manager, packages), timeout_s=INSTALL_TIMEOUT_S)
    if rc != 0:
        logger.error("Failed to install %s with %s: %s", " ".join(packages), package_manager, stderr)
        return False
    return True


def fix_packages(missing_packages) -> bool:
    missing_packages = list(missing_packages or [])
    if not missing_packages:
        logger.warning("No missing packages specified for auto-fix")
        return False
    if not has_privilege():
        logger.error("Cannot install packages: elevated privileges are not available")
        return False

    logger.info("Attempting to install missing packages: %s", " ".join(missing_packages))
    if not install_packages(missing_packages):
        return False
    logger.info("Successfully installed missing packages: %s", " ".join(missing_packages))
    return True


def _enable_repo(package_manager: str, repo: str) -> bool:
    if package_manager == "dnf":
        cmd = ["dnf", "config-manager", "--set-enabled", repo]
    elif command_exists("yum-config-manager"):
        cmd = ["yum-config-manager", "--enable", repo]
    else:
        logger.warning("yum-config-manager not found; cannot enable repository %s", repo)
        return False
    rc, _, stderr = run_privileged(cmd)
    if rc != 0:
        logger.error("Failed to enable repository %s: %s", repo, stderr)
    return rc == 0


def fix_repositories(missing_repos) -> bool:
    missing_repos = list(missing_repos or [])
    if not missing_repos:
        logger.warning("No missing repositories specified for auto-fix")
        return False
    if not has_privilege():
        logger.error("Cannot configure repositories: elevated privileges are not available")
        return False

    package_manager = detect_package_manager()
    if package_manager not in ("dnf", "yum"):
        logger.warning("Repository auto-fix needs dnf or yum; found %s", package_manager)
        return False

    logger.info("Attempting to configure missing repositories: %s", " ".join(missing_repos))
    ok = True
    for repo in missing_repos:
        if repo.upper() == "EPEL":
            ok = install_packages(["epel-release"], package_manager) and ok
        else:
            ok = _enable_repo(package_manager, repo) and ok
    return ok


def java_package(package_manager: str, major: int) -> str:
    if package_manager == "apt":
        return f"openjdk-{major}-jdk"
    return f"java-{major}-openjdk"


def fix_java(accepted_versions) -> bool:
    """Install the first accepted OpenJDK release the package manager can provide."""
    majors = []
    for entry in accepted_versions or []:
        vendor, major = parse_accepted_java(entry)
        if major is not None and vendor.lower() in ("", "openjdk") and major not in majors:
            majors.append(major)
    if not majors:
        logger.warning("No installable OpenJDK version in %s", accepted_versions)
        return False
    if not has_privilege():
        logger.error("Cannot install Java: elevated privileges are not available")
        return False

    package_manager = detect_package_manager()
    if package_manager is None:
        logger.warning("No supported package manager found. Cannot install Java.")
        return False

    for major in majors:
        package = java_package(package_manager, major)
        logger.info("Attempting to install %s", package)
        if install_packages([package], package_manager):
            logger.info("Successfully installed %s", package)
            return True
    return False
