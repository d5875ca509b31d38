import logging

from helpers.unix import command_exists, detect_package_manager, has_privilege, run_privileged
from remediation.packages import install_packages

logger = logging.getLogger(__name__)


def chrony_service() -> str:
    # Debian and Ubuntu ship the unit as chrony.service.
    return "chrony" if detect_package_manager() == "apt" else "chronyd"


def enable_service(service: str) -> bool:
    rc, _, stderr = run_privileged(["systemctl", "enable", "--now", service])
    if rc != 0:
        logger.error("Failed to enable and start %s: %s", service, stderr)
        return False
    logger.info("Successfully enabled and started %s service", service)
    return True


def fix_time_sync() -> bool:
    """Enable an installed time daemon, installing chrony when there is none."""
    if not command_exists("systemctl"):
        logger.warning("systemctl not available. Manual intervention required for time sync.")
        return False
    if not has_privilege():
        logger.error("Cannot fix time sync: elevated privileges are not available")
        return False

    if command_exists("chronyc") or command_exists("chronyd"):
        return enable_service(chrony_service())
    if command_exists("ntpd"):
        return enable_service("ntpd")

    logger.info("No time synchronization service detected, attempting to install chrony")
    if not install_packages(["chrony"]):
        return False
    return enable_service(chrony_service())
