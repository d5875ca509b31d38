import logging

from helpers.unix import has_privilege, write_privileged

logger = logging.getLogger(__name__)

# Sorts after distribution drop-ins so its values win.
DROP_IN = "/etc/security/limits.d/99-readiness.conf"


def render_limits(open_files: int, processes: int) -> str:
    lines = ["# Managed by readiness-check; rewritten on every auto-fix."]
    if open_files:
        lines += [f"*    soft    nofile    {open_files}", f"*    hard    nofile    {open_files}"]
    if processes:
        lines += [f"*    soft    nproc     {processes}", f"*    hard    nproc     {processes}"]
    return "\n".join(lines) + "\n"


def fix_ulimits(open_files: int, processes: int) -> bool:
    """
    Rewrite the managed limits.d drop-in with the required values.

    Rewriting the whole file keeps repeated runs idempotent. New values
    apply to new login sessions.
    """
    if not open_files and not processes:
        logger.warning("No ulimit values specified for auto-fix")
        return False
    if not has_privilege():
        logger.error("Cannot fix ulimits: elevated privileges are not available")
        return False

    logger.info("Writing %s (nofile=%s, nproc=%s)", DROP_IN, open_files, processes)
    if not write_privileged(DROP_IN, render_limits(open_files, processes)):
        return False
    logger.info("Ulimit settings updated. They apply to new sessions.")
    return True
