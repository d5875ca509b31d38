"""
Probe tests. Host facts are patched so results do not depend on the machine
running the suite; filesystem feature tests use tmp_path for real.
"""
from collections import namedtuple
from unittest.mock import patch

import pytest

from probes import filesystem, hardware, limits, network, os_checks, software

Partition = namedtuple("Partition", "device mountpoint fstype opts")


# -----------------------------
# Hardware
# -----------------------------
class TestHardware:

    def _cpu(self, cores):
        return {"total_cores": cores, "physical_cores": cores, "memory_gb": 64.0}

    def test_too_few_cpus_fails(self):
        with patch.object(hardware, "get_cpu_info", return_value=self._cpu(8)):
            result = hardware.run_hardware_checks(required_cpus=16)
        assert result.outcome == "FAIL"
        assert "CPU count check failed. Found 8, required 16." in result.detail

    def test_enough_cpus_passes(self):
        with patch.object(hardware, "get_cpu_info", return_value=self._cpu(8)):
            result = hardware.run_hardware_checks(required_cpus=8)
        assert result.outcome == "PASS"

    def test_unset_requirements_are_skipped(self):
        with patch.object(hardware, "get_cpu_info", return_value=self._cpu(2)):
            result = hardware.run_hardware_checks()
        assert result.outcome == "SKIPPED"
        assert {f.outcome for f in result.findings} == {"SKIPPED"}

    def test_missing_data_mount_fails(self, tmp_path):
        finding = hardware.check_disk_size("data_disk", "data disk", str(tmp_path / "missing"), 100)
        assert finding.outcome == "FAIL"

    def test_disk_size_compared_in_gb(self, tmp_path):
        with patch.object(hardware, "get_disk_size_gb", return_value=49.5):
            finding = hardware.check_disk_size("root_disk", "root disk", str(tmp_path), 50)
        assert finding.outcome == "FAIL"
        assert "Found 49.5 GB, required 50 GB" in finding.message


# -----------------------------
# OS
# -----------------------------
class TestLocale:

    def _patched(self, current, installed, os_id="rhel"):
        return [
            patch.object(os_checks, "command_exists", return_value=True),
            patch.object(os_checks, "get_current_locale", return_value=(current, {})),
            patch.object(os_checks, "get_installed_locales", return_value=installed),
            patch.object(os_checks, "get_os_release", return_value={"ID": os_id}),
        ]

    def _check(self, current, installed, os_id="rhel", required="en_US.utf8"):
        patches = self._patched(current, installed, os_id)
        for p in patches:
            p.start()
        try:
            return os_checks.check_locale(required)
        finally:
            for p in patches:
                p.stop()

    def test_installed_and_active_passes(self):
        finding, diagnosis = self._check("en_US.UTF-8", ["C", "en_US.utf8"])
        assert finding.outcome == "PASS"
        assert diagnosis.empty

    def test_installed_but_inactive_warns_with_manual_suggestion(self):
        finding, diagnosis = self._check("C.UTF-8", ["C.utf8", "en_US.utf8"])
        assert finding.outcome == "WARN"
        assert any("localectl set-locale" in s for s in finding.suggestions)
        assert diagnosis.empty

    def test_debian_suggestion_uses_update_locale(self):
        finding, _ = self._check("C.UTF-8", ["en_US.utf8"], os_id="ubuntu")
        assert "update-locale" in finding.suggestions[0]

    def test_not_installed_fails_with_diagnosis(self):
        finding, diagnosis = self._check("C.UTF-8", ["C.utf8", "POSIX"])
        assert finding.outcome == "FAIL"
        assert diagnosis.locale == "en_US.utf8"

    def test_missing_locale_tool_warns(self):
        with patch.object(os_checks, "command_exists", return_value=False):
            finding, diagnosis = os_checks.check_locale("en_US.utf8")
        assert finding.outcome == "WARN"
        assert diagnosis.empty


class TestOsRelease:

    @pytest.fixture
    def rhel9(self):
        with patch.object(os_checks, "get_os_release", return_value={"NAME": "Red Hat Enterprise Linux", "VERSION_ID": "9.2"}):
            yield

    def test_distribution_and_prefix_version_pass(self, rhel9):
        assert os_checks.check_os_distribution(("RHEL", "Red Hat"), ("8", "9")).outcome == "PASS"

    def test_version_is_not_substring_matched(self, rhel9):
        assert os_checks.check_os_distribution((), ("19",)).outcome == "FAIL"

    def test_unsupported_distribution(self, rhel9):
        assert os_checks.check_os_distribution(("Ubuntu",), ()).outcome == "FAIL"

    def test_missing_os_release(self):
        with patch.object(os_checks, "get_os_release", return_value=None):
            assert os_checks.check_os_distribution((), ()).outcome == "FAIL"

    def test_kernel_version(self):
        with patch.object(os_checks.platform, "release", return_value="5.14.0-362.el9.x86_64"), \
                patch.object(os_checks.platform, "machine", return_value="x86_64"):
            assert os_checks.check_kernel_version("4.18").outcome == "PASS"
            assert os_checks.check_kernel_version("6.1").outcome == "FAIL"

    def test_architecture(self):
        with patch.object(os_checks.platform, "machine", return_value="aarch64"):
            assert os_checks.check_kernel_version(None).outcome == "FAIL"


# -----------------------------
# Filesystem
# -----------------------------
class TestFilesystem:

    def test_type_in_allowed_list(self, tmp_path):
        part = Partition("/dev/sdb1", str(tmp_path), "xfs", "rw")
        with patch.object(filesystem, "find_mount", return_value=part):
            assert filesystem.check_filesystem_type(str(tmp_path), ("ext4", "xfs")).outcome == "PASS"
            assert filesystem.check_filesystem_type(str(tmp_path), ("ext4",)).outcome == "FAIL"

    def test_directory_that_is_not_a_mount_point(self, tmp_path):
        with patch.object(filesystem, "find_mount", return_value=None):
            finding = filesystem.check_filesystem_type(str(tmp_path), ("xfs",))
        assert finding.outcome == "FAIL"
        assert "No filesystem mounted" in finding.message

    def test_symlink_locking_and_case_on_real_directory(self, tmp_path):
        assert filesystem.check_symlink_support(str(tmp_path)).outcome == "PASS"
        assert filesystem.check_file_locking(str(tmp_path)).outcome == "PASS"
        assert filesystem.check_case_sensitivity(str(tmp_path)).outcome == "PASS"
        # scratch directories are removed afterwards
        assert list(tmp_path.iterdir()) == []

    def test_missing_acl_tools(self, tmp_path):
        with patch.object(filesystem, "command_exists", return_value=False):
            finding = filesystem.check_acl_support(str(tmp_path))
        assert finding.outcome == "FAIL"
        assert "install acl" in finding.message.lower()

    def test_no_data_mount_warns(self):
        root = Partition("/dev/sda1", "/", "xfs", "rw")
        with patch.object(filesystem, "find_mount", return_value=root):
            result = filesystem.run_filesystem_checks("/", None, ("xfs",))
        assert result.outcome == "WARN"
        assert len(result.findings) == 2


# -----------------------------
# Limits
# -----------------------------
class TestLimits:

    def test_read_configured_limits(self, tmp_path):
        conf = tmp_path / "limits.conf"
        conf.write_text(
            "# comment\n"
            "*      soft   nofile   1024\n"
            "*      hard   nofile   4096\n"
            "dss    soft   nofile   65536   # user wins\n"
            "*      -      nproc    unlimited\n",
            encoding="utf-8",
        )
        drop_in = tmp_path / "99.conf"
        drop_in.write_text("*  soft  nofile  2048\n", encoding="utf-8")

        assert limits.read_configured_limits([str(conf), str(drop_in)], user="other") == {
            "nofile": 2048, "nproc": limits.UNLIMITED,
        }
        assert limits.read_configured_limits([str(conf)], user="dss")["nofile"] == 65536

    def test_low_limit_fails_with_diagnosis(self):
        with patch.object(limits, "get_soft_limit", return_value=1024), \
                patch.object(limits, "read_configured_limits", return_value={}):
            findings, diagnosis = limits.check_ulimits(65536, 65536)
        assert [f.outcome for f in findings] == ["FAIL", "FAIL"]
        assert diagnosis.ulimits == (65536, 65536)
        assert "  * soft nofile 65536" in findings[0].suggestions

    def test_configured_but_not_active_warns(self):
        with patch.object(limits, "get_soft_limit", return_value=1024), \
                patch.object(limits, "read_configured_limits", return_value={"nofile": 65536, "nproc": 65536}):
            findings, diagnosis = limits.check_ulimits(65536, 65536)
        assert [f.outcome for f in findings] == ["WARN", "WARN"]
        assert diagnosis.empty

    def test_unlimited_passes(self):
        with patch.object(limits, "get_soft_limit", return_value=limits.UNLIMITED), \
                patch.object(limits, "read_configured_limits", return_value={}):
            findings, _ = limits.check_ulimits(65536, 65536)
        assert [f.outcome for f in findings] == ["PASS", "PASS"]

    def test_no_time_service_fails_with_diagnosis(self):
        with patch.object(limits, "command_exists", return_value=True), \
                patch.object(limits, "is_service_active", return_value=False):
            finding, diagnosis = limits.check_time_sync()
        assert finding.outcome == "FAIL"
        assert diagnosis.time_sync

    def test_chrony_synchronized(self):
        tracking = "Reference ID    : A9FEA97B\nLeap status     : Normal\n"
        with patch.object(limits, "command_exists", return_value=True), \
                patch.object(limits, "is_service_active", side_effect=lambda svc: svc == "chronyd"), \
                patch.object(limits, "run_cmd", return_value=(0, tracking, "")):
            finding, _ = limits.check_time_sync()
        assert finding.outcome == "PASS"

    def test_without_systemctl_warns(self):
        with patch.object(limits, "command_exists", return_value=False):
            finding, diagnosis = limits.check_time_sync()
        assert finding.outcome == "WARN"
        assert diagnosis.empty


# -----------------------------
# Network
# -----------------------------
class TestNetwork:

    def test_parse_port_range(self):
        assert network.parse_port_range("10000-10010") == (10000, 10010)
        assert network.parse_port_range(" 1 - 2 ") == (1, 2)
        assert network.parse_port_range("10010-10000") is None
        assert network.parse_port_range("abc") is None

    def test_malformed_range_fails(self):
        assert network.check_ports("10000:10010").outcome == "FAIL"

    def test_port_in_use(self):
        with patch.object(network, "get_listening_ports", return_value=({22, 10005}, "psutil")):
            finding = network.check_ports("10000-10010")
        assert finding.outcome == "FAIL"
        assert "10005" in finding.message

    def test_ports_free(self):
        with patch.object(network, "get_listening_ports", return_value=({22, 443}, "ss")):
            assert network.check_ports("10000-10010").outcome == "PASS"

    def test_no_socket_table_warns(self):
        with patch.object(network, "get_listening_ports", return_value=(None, "")):
            assert network.check_ports("10000-10010").outcome == "WARN"

    def test_no_range_is_skipped(self):
        assert network.check_ports(None).outcome == "SKIPPED"

    def test_ss_parsing(self):
        output = (
            "Netid State  Recv-Q Send-Q Local Address:Port Peer Address:Port\n"
            "tcp   LISTEN 0      128    0.0.0.0:22         0.0.0.0:*\n"
            "tcp   LISTEN 0      128    [::]:10001         [::]:*\n"
            "udp   UNCONN 0      0      127.0.0.53%lo:53   0.0.0.0:*\n"
        )
        with patch.object(network, "run_cmd", return_value=(0, output, "")):
            ports, _ = network.listening_ports_ss()
        assert ports == {22, 10001, 53}

    def test_connectivity_never_fails(self):
        with patch.object(network, "can_connect", return_value=False), \
                patch.object(network, "https_reachable", return_value=False):
            finding = network.check_internet_connectivity()
        assert finding.outcome == "WARN"

    def test_hosts_file_fallback(self, tmp_path):
        hosts = tmp_path / "hosts"
        hosts.write_text("127.0.0.1 localhost\n10.0.0.5 node1.example.com node1  # app\n", encoding="utf-8")
        assert network.lookup_hosts_file("node1", str(hosts)) == "10.0.0.5"
        assert network.lookup_hosts_file("node", str(hosts)) is None


# -----------------------------
# Software
# -----------------------------
class TestSoftware:

    @pytest.mark.parametrize("output, expected", [
        ('openjdk version "17.0.9" 2023-10-17\nOpenJDK Runtime Environment', ("OpenJDK", 17)),
        ('openjdk version "11.0.21" 2023-10-17 LTS', ("OpenJDK", 11)),
        ('java version "1.8.0_381"\nJava(TM) SE Runtime Environment', ("Java", 8)),
        ("garbage", None),
    ])
    def test_parse_java_version(self, output, expected):
        assert software.parse_java_version(output) == expected

    def test_java_accepted(self):
        accepted = ("OpenJDK 11", "OpenJDK 17")
        assert software.java_accepted("OpenJDK", 17, accepted)
        assert not software.java_accepted("OpenJDK", 21, accepted)
        assert not software.java_accepted("Java", 17, accepted)
        assert software.java_accepted("OpenJDK", 21, ("OpenJDK",))

    def test_python_accepted(self):
        accepted = ("3.6", "3.9", "3.10")
        assert software.python_accepted("3.10.12", accepted)
        assert not software.python_accepted("3.1.4", accepted)
        assert not software.python_accepted("3.11.2", accepted)
        assert software.python_accepted("3.12.0", ("3",))

    def test_missing_java_has_diagnosis(self):
        with patch.object(software, "command_exists", return_value=False):
            finding, diagnosis = software.check_java(("OpenJDK 17",))
        assert finding.outcome == "FAIL"
        assert diagnosis.java_versions == ("OpenJDK 17",)

    def test_missing_packages(self):
        with patch.object(software, "detect_package_manager", return_value="dnf"), \
                patch.object(software, "is_package_installed", side_effect=lambda pkg, pm: pkg != "nginx"):
            finding, diagnosis = software.check_packages(("git", "nginx"))
        assert finding.outcome == "FAIL"
        assert diagnosis.missing_packages == ("nginx",)
        assert finding.suggestions == ("Install with: sudo dnf install nginx",)

    def test_no_package_manager_warns(self):
        with patch.object(software, "detect_package_manager", return_value=None):
            finding, diagnosis = software.check_packages(("git",))
        assert finding.outcome == "WARN"
        assert diagnosis.empty

    def test_epel_not_applicable_on_apt(self):
        with patch.object(software, "detect_package_manager", return_value="apt"):
            finding, diagnosis = software.check_repositories(("EPEL",))
        assert finding.outcome == "PASS"
        assert diagnosis.empty

    def test_missing_epel(self):
        with patch.object(software, "detect_package_manager", return_value="dnf"), \
                patch.object(software, "enabled_repositories", return_value="repo id  repo name\nbaseos  base\n"):
            finding, diagnosis = software.check_repositories(("EPEL",))
        assert finding.outcome == "FAIL"
        assert diagnosis.missing_repos == ("EPEL",)
        assert "epel-release" in finding.suggestions[0]
