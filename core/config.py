"""
    Requirement definitions loaded from an INI file.

    Layout:
      [DEFAULT]          common requirement values
      [DESIGN], [AUTO]   one section per node profile, overriding DEFAULT

    configparser already falls back from a section to [DEFAULT], which is
    exactly the profile lookup rule.
"""
from __future__ import annotations

import configparser
import logging
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

from core.errors import ConfigError

logger = logging.getLogger(__name__)


class NodeType(str, Enum):
    DESIGN = "DESIGN"
    AUTOMATION = "AUTOMATION"
    API = "API"
    GOVERN = "GOVERN"
    DEPLOYER = "DEPLOYER"

    @classmethod
    def parse(cls, value: str) -> "NodeType":
        try:
            return cls(value.strip().upper())
        except ValueError:
            allowed = ", ".join(n.value for n in cls)
            raise ConfigError(f"Invalid node type: {value}. Must be one of: {allowed}") from None

    @property
    def section_names(self) -> tuple[str, ...]:
        # Older config files name the automation profile [AUTO].
        if self is NodeType.AUTOMATION:
            return ("AUTOMATION", "AUTO")
        return (self.value,)


DEFAULT_NODE_TYPE = NodeType.DESIGN


@dataclass(frozen=True)
class Requirements:
    node_type: NodeType
    allowed_os_distros: tuple[str, ...] = ()
    allowed_os_versions: tuple[str, ...] = ()
    min_kernel_version: str | None = None
    locale_required: str = "en_US.utf8"
    vcpus: int | None = None
    memory_gb: float | None = None
    min_root_disk_gb: float | None = None
    data_disk_mount: str | None = None
    min_data_disk_gb: float | None = None
    filesystem: tuple[str, ...] = ("ext4", "xfs")
    ulimit_files: int = 65536
    ulimit_processes: int = 65536
    port_range: str | None = None
    java_versions: tuple[str, ...] = ("OpenJDK 11", "OpenJDK 17")
    python_versions: tuple[str, ...] = ("3.6", "3.7", "3.9", "3.10")
    required_packages: tuple[str, ...] = ("git", "nginx", "zip", "unzip", "acl")
    required_repos: tuple[str, ...] = ("EPEL",)

    def as_display_groups(self) -> dict[str, dict[str, Any]]:
        """Resolved values grouped the way --verbose prints them."""
        return {
            "Operating System Requirements": {
                "Allowed OS Distros": ",".join(self.allowed_os_distros),
                "Allowed OS Versions": ",".join(self.allowed_os_versions),
                "Min Kernel Version": self.min_kernel_version,
                "Required Locale": self.locale_required,
            },
            "Hardware Requirements": {
                "Required vCPUs": self.vcpus,
                "Required Memory (GB)": self.memory_gb,
                "Min Root Disk (GB)": self.min_root_disk_gb,
                "Data Disk Mount": self.data_disk_mount,
                "Min Data Disk (GB)": self.min_data_disk_gb,
                "Allowed Filesystem": ",".join(self.filesystem),
            },
            "System Limits": {
                "Required Open Files Limit": self.ulimit_files,
                "Required User Processes Limit": self.ulimit_processes,
                "Port Range to Check": self.port_range,
            },
            "Software Requirements": {
                "Required Java Versions": ",".join(self.java_versions),
                "Required Python Versions": ",".join(self.python_versions),
                "Required Packages": ",".join(self.required_packages),
                "Required Repositories": ",".join(self.required_repos),
            },
        }


def split_list(raw: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in raw.split(",") if item.strip())


_LIST_KEYS = {
    "allowed_os_distros", "allowed_os_versions", "filesystem",
    "java_versions", "python_versions", "required_packages", "required_repos",
}
_INT_KEYS = {"vcpus", "ulimit_files", "ulimit_processes"}
_FLOAT_KEYS = {"memory_gb", "min_root_disk_gb", "min_data_disk_gb"}


def _convert(key: str, raw: str) -> Any:
    if key in _LIST_KEYS:
        return split_list(raw)
    try:
        if key in _INT_KEYS:
            return int(raw)
        if key in _FLOAT_KEYS:
            return float(raw)
    except ValueError:
        raise ConfigError(f"Invalid value for {key}: {raw!r}") from None
    return raw


def read_config(config_path: str | Path) -> configparser.ConfigParser:
    path = Path(config_path)
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    parser = configparser.ConfigParser(inline_comment_prefixes=("#", ";"), interpolation=None)
    try:
        with path.open("r", encoding="utf-8") as f:
            parser.read_file(f)
    except (configparser.Error, OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e
    return parser


def configured_node_type(parser: configparser.ConfigParser) -> str | None:
    """node_type may be pinned in [DEFAULT]; the CLI flag still wins."""
    value = parser.defaults().get("node_type", "").strip()
    return value or None


def load_requirements(parser: configparser.ConfigParser, node_type: NodeType) -> Requirements:
    section = next((s for s in node_type.section_names if parser.has_section(s)), None)
    if section is None:
        logger.info("No [%s] section in config; using [DEFAULT] values only", node_type.value)
        values = dict(parser.defaults())
    else:
        values = dict(parser.items(section))

    kwargs: dict[str, Any] = {"node_type": node_type}
    known = {f.name for f in fields(Requirements)} - {"node_type"}
    for key, raw in values.items():
        if key not in known:
            continue
        raw = raw.strip()
        if not raw:
            continue
        kwargs[key] = _convert(key, raw)

    return Requirements(**kwargs)


def load_config(config_path: str | Path, node: str | None = None) -> Requirements:
    """
    Read config_path and resolve requirements for one node profile.

    node comes from --node; when it is None the config's own node_type (or
    DESIGN) is used. Raises ConfigError for anything that should stop the
    run before a single check executes.
    """
    parser = read_config(config_path)
    raw_node = node or configured_node_type(parser) or DEFAULT_NODE_TYPE.value
    node_type = NodeType.parse(raw_node)
    return load_requirements(parser, node_type)
