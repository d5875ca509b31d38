import pytest

from core.config import NodeType, Requirements, load_config, split_list
from core.errors import ConfigError

CONFIG = """\
[DEFAULT]
allowed_os_distros = RHEL, Ubuntu
min_kernel_version = 4.18
ulimit_files = 65536
memory_gb = 32   # inline comment
filesystem = xfs

[DESIGN]
vcpus = 16
data_disk_mount = /mnt/data

[AUTO]
vcpus = 8
port_range = 11000-11010
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text(CONFIG, encoding="utf-8")
    return path


def test_profile_overrides_default(config_file):
    req = load_config(config_file, "DESIGN")
    assert req.node_type is NodeType.DESIGN
    assert req.vcpus == 16
    assert req.memory_gb == 32.0
    assert req.allowed_os_distros == ("RHEL", "Ubuntu")
    assert req.filesystem == ("xfs",)


def test_node_type_is_case_insensitive(config_file):
    assert load_config(config_file, "design").node_type is NodeType.DESIGN


def test_auto_section_serves_automation(config_file):
    req = load_config(config_file, "AUTOMATION")
    assert req.vcpus == 8
    assert req.port_range == "11000-11010"
    assert req.data_disk_mount is None


def test_missing_profile_falls_back_to_default(config_file):
    req = load_config(config_file, "GOVERN")
    assert req.vcpus is None
    assert req.min_kernel_version == "4.18"
    assert req.java_versions == Requirements(node_type=NodeType.GOVERN).java_versions


def test_default_node_is_design(config_file):
    assert load_config(config_file).node_type is NodeType.DESIGN


def test_node_type_pinned_in_config(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[DEFAULT]\nnode_type = api\n[API]\nvcpus = 4\n", encoding="utf-8")
    assert load_config(path).vcpus == 4
    # the CLI flag wins over the file
    assert load_config(path, "DESIGN").node_type is NodeType.DESIGN


def test_invalid_node_type(config_file):
    with pytest.raises(ConfigError, match="Invalid node type: BOGUS"):
        load_config(config_file, "BOGUS")


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.ini")


def test_bad_number(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[DEFAULT]\nvcpus = many\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="vcpus"):
        load_config(path)


def test_split_list():
    assert split_list(" a, b ,,c ") == ("a", "b", "c")
    assert split_list("") == ()
