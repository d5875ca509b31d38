"""
    Network probes: hostname resolution, internet connectivity and port availability.

    Connectivity is informational only. Sites that cannot be reached produce
    a WARN, since air-gapped installs are legitimate.
"""
import logging
import re
import socket
from typing import Any

import httpx
import psutil

from core.models import Finding, ProbeResult
from helpers.unix import command_exists, get_evidence, run_cmd

logger = logging.getLogger(__name__)

TEST_SITES = ("google.com", "github.com", "pypi.org")
HTTPS_TEST_URL = "https://www.google.com"
SOCKET_TIMEOUT_S = 3
HTTPS_TIMEOUT_S = 5

HOSTS_FILE = "/etc/hosts"


# -----------------------------
# 1) Hostname resolution
# -----------------------------
def lookup_hosts_file(hostname: str, path: str = HOSTS_FILE) -> str | None:
    """
    First address mapped to hostname in an /etc/hosts style file.

    Lines look like:
      127.0.1.1   myhost.example.com myhost
    """
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError:
        return None

    for line in text.splitlines():
        s = line.split("#", 1)[0].strip()
        if not s:
            continue
        parts = s.split()
        if len(parts) >= 2 and hostname in parts[1:]:
            return parts[0]
    return None


def resolve_hostname(hostname: str) -> str | None:
    try:
        return socket.gethostbyname(hostname)
    except (socket.gaierror, UnicodeError):
        return lookup_hosts_file(hostname)


def check_hostname_resolution() -> Finding:
    hostname = socket.gethostname()
    logger.info("System hostname: %s", hostname)

    address = resolve_hostname(hostname)
    evidence = {"hostname": hostname, "address": address}
    if address:
        return Finding(
            name="hostname",
            outcome="PASS",
            message=f"Hostname {hostname} resolves to IP: {address}",
            evidence=evidence,
        )
    return Finding(
        name="hostname",
        outcome="FAIL",
        message=f"Hostname {hostname} does not resolve to an IP address.",
        suggestions=("Consider adding an entry to /etc/hosts or configuring DNS properly.",),
        evidence=evidence,
    )


# -----------------------------
# 2) Internet connectivity
# -----------------------------
def can_connect(host: str, port: int = 443, timeout: float = SOCKET_TIMEOUT_S) -> bool:
    try:
        with socket.create_connection((host, port), timeout=timeout):
            return True
    except OSError:
        return False


def https_reachable(url: str = HTTPS_TEST_URL, timeout: float = HTTPS_TIMEOUT_S) -> bool:
    try:
        httpx.head(url, timeout=timeout, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.debug("HTTPS request to %s failed: %s", url, e)
        return False
    return True


def check_internet_connectivity() -> Finding:
    unreachable = [site for site in TEST_SITES if not can_connect(site)]
    for site in TEST_SITES:
        logger.info("Connection to %s: %s", site, "failed" if site in unreachable else "working")

    https_ok = https_reachable()
    evidence = {"unreachable": unreachable, "https": https_ok}

    if not unreachable and https_ok:
        return Finding(name="connectivity", outcome="PASS", message="Network connectivity checks passed.", evidence=evidence)

    problems = [f"Cannot connect to {site}." for site in unreachable]
    if not https_ok:
        problems.append("HTTPS connectivity not working.")
    return Finding(
        name="connectivity",
        outcome="WARN",
        message=" ".join(problems),
        suggestions=("The installation may require internet access; ignore if connectivity is intentionally restricted.",),
        evidence=evidence,
    )


# -----------------------------
# 3) Port availability
# -----------------------------
_RANGE_RE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")


def parse_port_range(port_range: str) -> tuple[int, int] | None:
    m = _RANGE_RE.match(port_range)
    if not m:
        return None
    start, end = int(m.group(1)), int(m.group(2))
    if start > end or end > 65535:
        return None
    return start, end


def listening_ports_psutil() -> set[int]:
    """TCP listeners and bound UDP sockets; raises psutil.AccessDenied without privileges."""
    ports = set()
    for c in psutil.net_connections(kind="inet"):
        if not c.laddr:
            continue
        if c.type == socket.SOCK_STREAM and c.status != psutil.CONN_LISTEN:
            continue
        ports.add(c.laddr.port)
    return ports


def listening_ports_ss() -> tuple[set[int] | None, dict[str, Any]]:
    """
    Local ports from `ss -tuln`.

    Typical line:
      tcp   LISTEN 0  128  0.0.0.0:22  0.0.0.0:*
    """
    cmd = ["ss", "-tuln"]
    rc, stdout, stderr = run_cmd(cmd)
    evidence = get_evidence(cmd, rc, stdout, stderr)
    if rc != 0:
        return None, evidence

    ports = set()
    for line in stdout.splitlines()[1:]:
        parts = line.split()
        if len(parts) < 5:
            continue
        _, _, port = parts[4].rpartition(":")
        if port.isdigit():
            ports.add(int(port))
    return ports, evidence


def get_listening_ports() -> tuple[set[int] | None, str]:
    try:
        return listening_ports_psutil(), "psutil"
    except (psutil.AccessDenied, PermissionError, OSError) as e:
        logger.debug("psutil.net_connections unavailable (%s); falling back to ss", e)

    if command_exists("ss"):
        ports, _ = listening_ports_ss()
        if ports is not None:
            return ports, "ss"
    return None, ""


def check_ports(port_range) -> Finding:
    if not port_range:
        return Finding(name="ports", outcome="SKIPPED", message="No port range specified for checking. Skipping port check.")

    bounds = parse_port_range(port_range)
    if bounds is None:
        return Finding(
            name="ports",
            outcome="FAIL",
            message=f"Invalid port range format: {port_range}. Expected format: START-END (e.g., 10000-10010)",
        )
    start, end = bounds

    in_use, source = get_listening_ports()
    if in_use is None:
        return Finding(
            name="ports",
            outcome="WARN",
            message="Cannot check port availability (socket table not readable and ss not found).",
            suggestions=("Run with elevated privileges or install iproute2.",),
        )

    used = sorted(p for p in in_use if start <= p <= end)
    evidence = {"range": [start, end], "used": used, "source": source}
    if not used:
        return Finding(name="ports", outcome="PASS", message=f"All ports in range {port_range} are available.", evidence=evidence)
    return Finding(
        name="ports",
        outcome="FAIL",
        message=f"Some ports in range {port_range} are already in use: {' '.join(str(p) for p in used)}",
        suggestions=("Free up these ports or configure the installation to use a different port range.",),
        evidence=evidence,
    )


def run_network_checks(port_range=None) -> ProbeResult:
    findings = [
        check_hostname_resolution(),
        check_internet_connectivity(),
        check_ports(port_range),
    ]
    return ProbeResult.from_findings(findings)
