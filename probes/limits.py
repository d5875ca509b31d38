"""
    System limits probes: open files / process ulimits and time synchronization.

    The live limit is the soft rlimit of this process. When the session limit
    is low but limits.conf (or a limits.d drop-in) already grants the required
    value, the check only warns: a fresh login picks the value up.
"""
import getpass
import glob
import logging
import re
import resource

from core.models import Diagnosis, Finding, ProbeResult
from helpers.unix import command_exists, get_evidence, run_cmd

logger = logging.getLogger(__name__)

LIMITS_CONF = "/etc/security/limits.conf"
LIMITS_DIR = "/etc/security/limits.d"

UNLIMITED = float("inf")

# (limits.conf item, resource constant, label)
_LIMITS = {
    "nofile": (resource.RLIMIT_NOFILE, "open files"),
    "nproc": (resource.RLIMIT_NPROC, "max user processes"),
}

TIME_SYNC_SERVICES = ("chronyd", "ntpd", "systemd-timesyncd")


def get_soft_limit(item: str) -> float:
    soft, _ = resource.getrlimit(_LIMITS[item][0])
    return UNLIMITED if soft == resource.RLIM_INFINITY else soft


def _parse_value(value: str) -> float | None:
    value = value.strip().lower()
    if value in ("unlimited", "infinity", "-1"):
        return UNLIMITED
    try:
        return int(value)
    except ValueError:
        return None


def limits_files() -> list[str]:
    return [LIMITS_CONF] + sorted(glob.glob(f"{LIMITS_DIR}/*.conf"))


def read_configured_limits(paths=None, user: str | None = None) -> dict[str, float]:
    """
    Soft values for nofile/nproc granted to "*" or the current user.

    Later files override earlier ones, like pam_limits; a user-specific entry
    beats the wildcard.
    """
    user = user or getpass.getuser()
    wildcard: dict[str, float] = {}
    specific: dict[str, float] = {}

    for path in paths if paths is not None else limits_files():
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except OSError:
            continue

        for line in lines:
            line = line.split("#", 1)[0].strip()
            parts = line.split()
            if len(parts) != 4:
                continue
            domain, kind, item, raw = parts
            if item not in _LIMITS or kind not in ("soft", "-"):
                continue
            value = _parse_value(raw)
            if value is None:
                continue
            if domain == "*":
                wildcard[item] = value
            elif domain == user:
                specific[item] = value

    return {**wildcard, **specific}


def _fmt(value: float) -> str:
    return "unlimited" if value == UNLIMITED else str(int(value))


def check_ulimits(required_open_files, required_processes) -> tuple[list[Finding], Diagnosis]:
    required = {"nofile": required_open_files, "nproc": required_processes}
    configured = read_configured_limits()
    findings = []
    needs_fix = False

    for item, minimum in required.items():
        label = _LIMITS[item][1]
        name = f"ulimit_{item}"
        if minimum is None:
            findings.append(Finding(name=name, outcome="SKIPPED", message=f"No required {label} limit specified. Skipping check."))
            continue

        current = get_soft_limit(item)
        evidence = {"current": _fmt(current), "required": minimum, "configured": _fmt(configured[item]) if item in configured else None}
        logger.info("Current %s limit: %s", label, _fmt(current))

        if current >= minimum:
            findings.append(Finding(
                name=name,
                outcome="PASS",
                message=f"{label.capitalize()} limit check passed ({_fmt(current)} >= {minimum}).",
                evidence=evidence,
            ))
        elif configured.get(item, 0) >= minimum:
            findings.append(Finding(
                name=name,
                outcome="WARN",
                message=f"{label.capitalize()} limit is {_fmt(current)} in this session but {_fmt(configured[item])} is configured.",
                suggestions=("Log out and back in (or reboot) for the configured limit to take effect.",),
                evidence=evidence,
            ))
        else:
            needs_fix = True
            findings.append(Finding(
                name=name,
                outcome="FAIL",
                message=f"{label.capitalize()} limit ({_fmt(current)}) is lower than required ({minimum}).",
                suggestions=(
                    f"Add to {LIMITS_CONF}:",
                    f"  * soft {item} {minimum}",
                    f"  * hard {item} {minimum}",
                ),
                evidence=evidence,
            ))

    diagnosis = Diagnosis(ulimits=(required_open_files or 0, required_processes or 0)) if needs_fix else Diagnosis()
    return findings, diagnosis


def is_service_active(service: str) -> bool:
    rc, stdout, _ = run_cmd(["systemctl", "is-active", service])
    return rc == 0 and stdout == "active"


def is_clock_synchronized(service: str) -> tuple[bool, dict]:
    """Ask the active time daemon whether the clock is in sync."""
    if service == "chronyd":
        cmd = ["chronyc", "tracking"]
        rc, stdout, stderr = run_cmd(cmd)
        synced = rc == 0 and re.search(r"Leap status\s*:\s*Normal", stdout) is not None
    elif service == "ntpd":
        cmd = ["ntpq", "-p"]
        rc, stdout, stderr = run_cmd(cmd)
        synced = rc == 0 and any(line.startswith("*") for line in stdout.splitlines())
    else:
        cmd = ["timedatectl", "show", "--property=NTPSynchronized", "--value"]
        rc, stdout, stderr = run_cmd(cmd)
        synced = rc == 0 and stdout.strip() == "yes"
    return synced, get_evidence(cmd, rc, stdout, stderr)


def check_time_sync() -> tuple[Finding, Diagnosis]:
    if not command_exists("systemctl"):
        return Finding(
            name="time_sync",
            outcome="WARN",
            message="Cannot check time synchronization service (systemctl not found).",
        ), Diagnosis()

    active = next((svc for svc in TIME_SYNC_SERVICES if is_service_active(svc)), None)
    if active is None:
        return Finding(
            name="time_sync",
            outcome="FAIL",
            message="No time synchronization service (chronyd, ntpd or systemd-timesyncd) is running.",
            suggestions=(
                "Install and enable chrony:",
                "  - sudo yum install chrony && sudo systemctl enable --now chronyd   # RHEL/CentOS",
                "  - sudo apt-get install chrony && sudo systemctl enable --now chrony   # Ubuntu/Debian",
            ),
        ), Diagnosis(time_sync=True)

    synced, evidence = is_clock_synchronized(active)
    logger.info("Time sync service %s active, synchronized=%s", active, synced)
    if synced:
        return Finding(
            name="time_sync",
            outcome="PASS",
            message=f"Time synchronization is active ({active}) and the clock is synchronized.",
            evidence=evidence,
        ), Diagnosis()
    return Finding(
        name="time_sync",
        outcome="WARN",
        message=f"Time synchronization service {active} is running but the clock is not synchronized yet.",
        suggestions=("Check the configured time servers are reachable.",),
        evidence=evidence,
    ), Diagnosis()


def run_limits_checks(required_open_files=65536, required_processes=65536) -> ProbeResult:
    findings, diagnosis = check_ulimits(required_open_files, required_processes)
    time_finding, time_diagnosis = check_time_sync()
    findings.append(time_finding)
    return ProbeResult.from_findings(findings, diagnosis.merge(time_diagnosis))
