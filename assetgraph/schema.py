"""
Versioning for the resolver tables.

The handle rename table and the category/slot tables change together with
the asset schema. Serialized graphs are stamped with the table version they
were produced under so that a graph saved by an older editor can be checked
before its port names are migrated forward.

VERSIONING RULES
----------------
- Major version: Breaking changes (incompatible)
- Minor version: Port renames; older minors are migrated forward
- Patch version: Table additions that rename nothing
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import logging
import re

logger = logging.getLogger(__name__)


TABLE_NAME = "assetgraph_handles"
TABLE_VERSION = "1.1.0"

SUPPORTED_VERSIONS: Dict[str, Dict[str, Any]] = {
    "1.0.0": {
        "compatible_with": ["1.0.x"],
        "deprecated": True,
    },
    "1.1.0": {
        "compatible_with": ["1.1.x", "1.0.x"],
        "deprecated": False,
    },
}


class SchemaValidationError(Exception):
    """Raised when a table version cannot be read by this release."""
    pass


def parse_version(version_str: str) -> tuple:
    """
    Parse a version string into (major, minor, patch) tuple.

    Parameters
    ----------
    version_str : str
        Version string like "1.0.0" or "1.0.x"

    Returns
    -------
    tuple
        (major, minor, patch) where patch may be None for wildcards
    """
    match = re.match(r"^(\d+)\.(\d+)\.([\dx]+)$", version_str)
    if not match:
        raise ValueError(f"Invalid version format: {version_str}")

    major = int(match.group(1))
    minor = int(match.group(2))
    patch_str = match.group(3)
    patch = None if patch_str == "x" else int(patch_str)

    return (major, minor, patch)


def is_table_compatible(version: str, target_version: str = TABLE_VERSION) -> bool:
    """
    Check if graphs stamped with `version` can be read under `target_version`.

    Parameters
    ----------
    version : str
        Version stamped on the graph
    target_version : str
        Version to check against (default: current)

    Returns
    -------
    bool
        True if the version matches one of the target's compatible_with
        patterns
    """
    try:
        major, minor, patch = parse_version(version)
    except ValueError:
        return False

    if version == target_version:
        return True

    target_info = SUPPORTED_VERSIONS.get(target_version, {})
    for pattern in target_info.get("compatible_with", []):
        p_major, p_minor, p_patch = parse_version(pattern)
        if major == p_major and minor == p_minor:
            if p_patch is None or p_patch == patch:
                return True

    return False


def is_table_deprecated(version: str) -> bool:
    """
    True if `version` belongs to a release line marked deprecated.

    A stamp matches the SUPPORTED_VERSIONS entry with the same major and
    minor version; unlisted or unparseable stamps are not deprecated.
    """
    try:
        major, minor, _ = parse_version(version)
    except ValueError:
        return False

    for listed, info in SUPPORTED_VERSIONS.items():
        l_major, l_minor, _ = parse_version(listed)
        if (major, minor) == (l_major, l_minor):
            return bool(info.get("deprecated", False))
    return False


def check_table_version(version: Optional[str]) -> List[str]:
    """
    Validate a stamped table version.

    A missing stamp is accepted (graphs built in memory are never stamped).
    A readable stamp from a deprecated release line is accepted with a
    warning, since its legacy ports are migrated on load.

    Returns
    -------
    list of str
        Validation messages (empty if readable)
    """
    if version is None:
        return []
    if not isinstance(version, str):
        return [f"table version must be a string, got {type(version).__name__}"]
    if not is_table_compatible(version):
        return [
            f"table version '{version}' is not compatible with "
            f"supported version '{TABLE_VERSION}'"
        ]
    if is_table_deprecated(version):
        logger.warning(
            f"Table version '{version}' is deprecated; legacy ports will be "
            f"migrated to '{TABLE_VERSION}'"
        )
    return []


@dataclass
class TableInfo:
    """Table stamp as written next to a serialized graph."""
    name: str = TABLE_NAME
    version: str = TABLE_VERSION
    compatible_with: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TableInfo":
        return cls(
            name=d.get("name", TABLE_NAME),
            version=d.get("version", TABLE_VERSION),
            compatible_with=d.get("compatible_with", []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "compatible_with": self.compatible_with,
        }


__all__ = [
    "TABLE_NAME",
    "TABLE_VERSION",
    "SUPPORTED_VERSIONS",
    "SchemaValidationError",
    "parse_version",
    "is_table_compatible",
    "is_table_deprecated",
    "check_table_version",
    "TableInfo",
]
