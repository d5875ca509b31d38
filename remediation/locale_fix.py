import logging

from helpers.unix import command_exists, detect_package_manager, has_privilege, run_privileged, write_privileged
from probes.os_checks import get_installed_locales, get_os_release, is_debian_family, normalize_locale

logger = logging.getLogger(__name__)

LOCALE_CONF = "/etc/locale.conf"


def _is_installed(required_locale: str) -> bool:
    wanted = normalize_locale(required_locale)
    return any(normalize_locale(loc) == wanted for loc in get_installed_locales())


def _fix_debian(required_locale: str) -> bool:
    if not _is_installed(required_locale):
        if not command_exists("locale-gen"):
            logger.error("locale-gen command not found")
            return False
        rc, _, stderr = run_privileged(["locale-gen", required_locale])
        if rc != 0:
            logger.error("Failed to generate locale %s: %s", required_locale, stderr)
            return False
        logger.info("Generated locale: %s", required_locale)

    rc, _, stderr = run_privileged(["update-locale", f"LANG={required_locale}"])
    if rc != 0:
        logger.error("Failed to update system locale setting: %s", stderr)
        return False
    return True


def _fix_rhel(required_locale: str) -> bool:
    if "en_us" in normalize_locale(required_locale) and not _is_installed(required_locale):
        package_manager = detect_package_manager()
        if package_manager in ("dnf", "yum"):
            rc, _, stderr = run_privileged([package_manager, "install", "-y", "glibc-langpack-en"])
            if rc == 0:
                logger.info("English language pack installed successfully")
            else:
                # non-fatal: localectl can still select an existing locale
                logger.warning("Failed to install English language pack: %s", stderr)

    if command_exists("localectl"):
        rc, _, stderr = run_privileged(["localectl", "set-locale", f"LANG={required_locale}"])
        if rc != 0:
            logger.error("Failed to set locale using localectl: %s", stderr)
            return False
        return True

    logger.info("localectl not found, updating %s directly", LOCALE_CONF)
    return write_privileged(LOCALE_CONF, f"LANG={required_locale}\n")


def fix_locale(required_locale: str) -> bool:
    """
    Install (if needed) and activate required_locale system-wide.

    Takes effect for new sessions only; the caller reports a reboot.
    """
    if not required_locale:
        logger.warning("No locale specified for auto-fix")
        return False
    if not has_privilege():
        logger.error("Cannot fix locale: elevated privileges are not available")
        return False

    logger.info("Attempting to auto-fix locale to %s", required_locale)
    if is_debian_family(get_os_release()):
        ok = _fix_debian(required_locale)
    else:
        ok = _fix_rhel(required_locale)

    if ok:
        logger.info("Successfully set system locale to %s", required_locale)
    return ok
