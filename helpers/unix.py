import logging
import os
import re
import shutil
import subprocess

logger = logging.getLogger(__name__)

# Shell conventions, so callers can treat every failure as a plain rc.
RC_NOT_FOUND = 127
RC_TIMEOUT = 124


def run_cmd(cmd: list[str], timeout_s: int = 10, input_text: str | None = None) -> tuple[int, str, str]:
    """
    Run a command and return:
      - return code (rc)
      - stdout (string)
      - stderr (string)

    A missing binary comes back as rc 127 and a timeout as rc 124 instead of
    raising, so a hung tool never blocks the run past timeout_s.
    """
    try:
        p = subprocess.run(
            cmd,
            text=True,              # decode output to str instead of bytes
            errors="replace",       # locale names and package output are not always UTF-8
            capture_output=True,    # capture stdout/stderr
            timeout=timeout_s,
            input=input_text,
        )
    except FileNotFoundError as e:
        return RC_NOT_FOUND, "", str(e)
    except subprocess.TimeoutExpired:
        return RC_TIMEOUT, "", f"Command timed out after {timeout_s}s: {' '.join(cmd)}"

    # Normalise None → "" and strip whitespace
    return p.returncode, (p.stdout or "").strip(), (p.stderr or "").strip()


def get_evidence(cmd, rc, stdout, stderr):

    return {
        "cmd": cmd,
        "rc": rc,
        "stdout": stdout,
        "stderr": stderr
    }


def command_exists(name: str) -> bool:
    return shutil.which(name) is not None


def detect_package_manager() -> str | None:
    """apt-get wins over dnf, dnf over yum."""
    for name, label in (("apt-get", "apt"), ("dnf", "dnf"), ("yum", "yum")):
        if command_exists(name):
            return label
    return None


# -----------------------------
# Privilege
# -----------------------------
def privilege_prefix() -> list[str] | None:
    """
    Return the prefix needed to run a mutating command, or None.

      - []                when already running as root
      - ["sudo", "-n"]    when password-less sudo works
      - None              when no elevation is possible

    "-n" keeps sudo from ever prompting, so a remediation fails fast instead
    of hanging on a password.
    """
    if os.geteuid() == 0:
        return []
    if not command_exists("sudo"):
        return None
    rc, _, _ = run_cmd(["sudo", "-n", "true"], timeout_s=5)
    return ["sudo", "-n"] if rc == 0 else None


def has_privilege() -> bool:
    return privilege_prefix() is not None


def run_privileged(cmd: list[str], timeout_s: int = 600) -> tuple[int, str, str]:
    """Run cmd with elevation; rc 126 when no elevation is available."""
    prefix = privilege_prefix()
    if prefix is None:
        return 126, "", "Elevated privileges (root or password-less sudo) are not available"
    rc, stdout, stderr = run_cmd(prefix + cmd, timeout_s=timeout_s)
    logger.debug("Privileged command %s -> rc=%s", cmd, rc)
    return rc, stdout, stderr


def write_privileged(path: str, content: str) -> bool:
    """Replace path with content, through `tee` when not root."""
    prefix = privilege_prefix()
    if prefix is None:
        return False
    rc, _, stderr = run_cmd(prefix + ["tee", path], timeout_s=30, input_text=content)
    if rc != 0:
        logger.error("Failed to write %s: %s", path, stderr)
    return rc == 0


# -----------------------------
# Comparisons
# -----------------------------
def version_key(version: str) -> tuple[int, ...]:
    """
    Numeric components of a version string, in order.

      "5.15.0-91-generic" -> (5, 15, 0, 91)
      "4.18"              -> (4, 18)
    """
    return tuple(int(part) for part in re.findall(r"\d+", version))


def version_gte(version: str, minimum: str) -> bool:
    current, required = version_key(version), version_key(minimum)
    width = max(len(current), len(required))
    return current + (0,) * (width - len(current)) >= required + (0,) * (width - len(required))


def value_in_list(value: str, items) -> bool:
    """Case-insensitive containment in either direction ("Red Hat Enterprise Linux" ~ "Red Hat")."""
    value = value.strip().lower()
    if not value:
        return False
    for item in items:
        item = item.strip().lower()
        if item and (item in value or value in item):
            return True
    return False


def version_in_list(version: str, allowed) -> bool:
    """
    Exact or dotted-prefix match: 9.2 matches 9, 22.04 matches 22.04,
    18.04 does not match 8.
    """
    version = version.strip()
    for item in allowed:
        item = item.strip()
        if version == item or version.startswith(item + "."):
            return True
    return False
