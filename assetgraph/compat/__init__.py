"""
Compatibility layer for assetgraph.

This module provides backward-compatible mappings for port names renamed by
schema changes.
"""

from .handle_aliases import (
    HANDLE_TABLE_VERSION,
    HANDLE_MIGRATIONS,
    migrate_handle,
    migrate_ports,
)

__all__ = [
    "HANDLE_TABLE_VERSION",
    "HANDLE_MIGRATIONS",
    "migrate_handle",
    "migrate_ports",
]
