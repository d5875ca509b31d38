"""
    Filesystem probes for the root and data mounts.

    The data mount gets the full feature set the installer relies on:
      - filesystem type in the allowed list
      - POSIX ACLs (setfacl/getfacl)
      - advisory file locking (flock)
      - symbolic links
      - case sensitivity

    Feature tests work inside a throw-away directory on the mount and remove
    it afterwards.
"""
import fcntl
import getpass
import logging
import os
import tempfile
from contextlib import contextmanager

import psutil

from core.models import Finding, ProbeResult
from helpers.unix import command_exists, get_evidence, run_cmd

logger = logging.getLogger(__name__)


def find_mount(path: str):
    """The psutil partition mounted exactly at path, or None."""
    target = os.path.realpath(path)
    match = None
    for part in psutil.disk_partitions(all=True):
        if part.mountpoint == target:
            match = part  # later entries shadow earlier ones
    return match


def check_filesystem_type(mount_point, allowed_filesystems) -> Finding:
    name = f"filesystem_type:{mount_point}"
    if not mount_point:
        return Finding(name=name, outcome="SKIPPED", message="No mount point specified. Skipping check.")
    if not os.path.isdir(mount_point):
        return Finding(name=name, outcome="FAIL", message=f"Mount point {mount_point} does not exist.")

    part = find_mount(mount_point)
    if part is None:
        return Finding(name=name, outcome="FAIL", message=f"No filesystem mounted at {mount_point}.")

    fs_type = part.fstype
    evidence = {"device": part.device, "mountpoint": part.mountpoint, "fstype": fs_type, "opts": part.opts}
    logger.info("Detected filesystem type for %s: %s", mount_point, fs_type)

    if not allowed_filesystems:
        return Finding(name=name, outcome="WARN", message="No allowed filesystem types specified. Skipping validation.", evidence=evidence)

    if fs_type.lower() in (fs.lower() for fs in allowed_filesystems):
        return Finding(name=name, outcome="PASS", message=f"Filesystem type check passed for {mount_point} ({fs_type}).", evidence=evidence)
    return Finding(
        name=name,
        outcome="FAIL",
        message=f"Filesystem type {fs_type} is not supported for {mount_point}.",
        suggestions=(f"Supported filesystems: {','.join(allowed_filesystems)}",),
        evidence=evidence,
    )


@contextmanager
def scratch_dir(mount_point: str):
    with tempfile.TemporaryDirectory(prefix=".readiness_check_", dir=mount_point) as path:
        yield path


def _cannot_write(name: str, mount_point: str, error: OSError) -> Finding:
    return Finding(
        name=name,
        outcome="FAIL",
        message=f"Unable to create test file on {mount_point}: {error.strerror or error}.",
        suggestions=("Check permissions on the mount point.",),
    )


def check_acl_support(mount_point: str) -> Finding:
    if not (command_exists("setfacl") and command_exists("getfacl")):
        return Finding(
            name="acl",
            outcome="FAIL",
            message="ACL commands (setfacl/getfacl) not found. Please install acl package.",
            suggestions=("Install ACL package: yum install acl (RHEL/CentOS) or apt-get install acl (Ubuntu/Debian)",),
        )

    user = getpass.getuser()
    try:
        with scratch_dir(mount_point) as tmp:
            test_file = os.path.join(tmp, "acl_test")
            open(test_file, "w").close()

            cmd = ["setfacl", "-m", f"u:{user}:r", test_file]
            rc, stdout, stderr = run_cmd(cmd)
            if rc != 0:
                return Finding(
                    name="acl",
                    outcome="FAIL",
                    message="Failed to set ACL on test file. ACL support may not be enabled.",
                    suggestions=("Ensure the filesystem is mounted with the 'acl' option.",),
                    evidence=get_evidence(cmd, rc, stdout, stderr),
                )

            cmd = ["getfacl", test_file]
            rc, stdout, stderr = run_cmd(cmd)
            if rc != 0 or f"user:{user}:r" not in stdout:
                return Finding(
                    name="acl",
                    outcome="FAIL",
                    message="ACL was not correctly applied. ACL support may not be functioning correctly.",
                    suggestions=("Check if the filesystem supports ACLs and is mounted correctly.",),
                    evidence=get_evidence(cmd, rc, stdout, stderr),
                )
    except OSError as e:
        return _cannot_write("acl", mount_point, e)

    return Finding(name="acl", outcome="PASS", message=f"ACL support is enabled and functioning correctly on {mount_point}.")


def check_file_locking(mount_point: str) -> Finding:
    """Two independent opens of one file; the second exclusive flock must block."""
    try:
        with scratch_dir(mount_point) as tmp:
            lock_path = os.path.join(tmp, "lock_test")
            with open(lock_path, "w") as first, open(lock_path, "r") as second:
                try:
                    fcntl.flock(first, fcntl.LOCK_EX | fcntl.LOCK_NB)
                except OSError as e:
                    return Finding(
                        name="file_locking",
                        outcome="FAIL",
                        message=f"Failed to acquire first lock. File locking may not be supported ({e.strerror}).",
                    )
                try:
                    fcntl.flock(second, fcntl.LOCK_EX | fcntl.LOCK_NB)
                except BlockingIOError:
                    blocked = True
                else:
                    blocked = False
                    fcntl.flock(second, fcntl.LOCK_UN)
                fcntl.flock(first, fcntl.LOCK_UN)
    except OSError as e:
        return _cannot_write("file_locking", mount_point, e)

    if blocked:
        return Finding(
            name="file_locking",
            outcome="PASS",
            message=f"File locking is supported on {mount_point} (locks are blocking correctly).",
        )
    return Finding(
        name="file_locking",
        outcome="FAIL",
        message="Second lock was not blocked as expected. File locking behavior may not be reliable.",
        suggestions=("Verify that the filesystem supports proper file locking.",),
    )


def check_symlink_support(mount_point: str) -> Finding:
    try:
        with scratch_dir(mount_point) as tmp:
            target = os.path.join(tmp, "symlink_target")
            link = os.path.join(tmp, "symlink_link")
            open(target, "w").close()
            try:
                os.symlink(target, link)
            except OSError:
                return Finding(
                    name="symlink",
                    outcome="FAIL",
                    message="Failed to create symbolic link. Symlink support may not be enabled.",
                    suggestions=("Ensure the filesystem supports symbolic links.",),
                )
            if not (os.path.islink(link) and os.path.exists(link)):
                return Finding(
                    name="symlink",
                    outcome="FAIL",
                    message="Symbolic link was not created correctly or doesn't point to the target file.",
                    suggestions=("Check if the filesystem supports symbolic links properly.",),
                )
    except OSError as e:
        return _cannot_write("symlink", mount_point, e)

    return Finding(name="symlink", outcome="PASS", message=f"Symbolic link support is functioning correctly on {mount_point}.")


def check_case_sensitivity(mount_point: str) -> Finding:
    insensitive = Finding(
        name="case_sensitivity",
        outcome="FAIL",
        message=f"Filesystem on {mount_point} is case-insensitive.",
        suggestions=("The installation requires a case-sensitive filesystem.",),
    )
    try:
        with scratch_dir(mount_point) as tmp:
            upper = os.path.join(tmp, "CASE_TEST")
            lower = os.path.join(tmp, "case_test")
            open(upper, "w").close()
            try:
                fd = os.open(lower, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                return insensitive
            os.close(fd)
            if os.stat(upper).st_ino == os.stat(lower).st_ino:
                return insensitive
    except OSError as e:
        return _cannot_write("case_sensitivity", mount_point, e)

    return Finding(name="case_sensitivity", outcome="PASS", message=f"Filesystem is case-sensitive on {mount_point}.")


def run_filesystem_checks(root_mount="/", data_mount=None, allowed_filesystems=("ext4", "xfs")) -> ProbeResult:
    findings = [check_filesystem_type(root_mount, allowed_filesystems)]

    if not data_mount:
        findings.append(Finding(
            name="data_mount",
            outcome="WARN",
            message="No data mount point specified. Only checking root filesystem type.",
            suggestions=("Specify a data mount point to run complete filesystem checks.",),
        ))
        return ProbeResult.from_findings(findings)

    data_type = check_filesystem_type(data_mount, allowed_filesystems)
    findings.append(data_type)
    if not os.path.isdir(data_mount):
        # Feature tests need a directory to write into.
        return ProbeResult.from_findings(findings)

    findings.extend([
        check_acl_support(data_mount),
        check_file_locking(data_mount),
        check_symlink_support(data_mount),
        check_case_sensitivity(data_mount),
    ])
    return ProbeResult.from_findings(findings)
