"""
Legacy port-name migrations.

Ports that were renamed by a schema change are mapped from their legacy name
to the current one, keyed by resolved node type. Lowering, raising and both
interpreters resolve ports through this table so that a legacy name and its
replacement never both appear live on the same node.

MIGRATION HISTORY
-----------------
1.1.0: compound inputs. Binary InputA/InputB handles on variadic nodes became
       slots of the Inputs array.
"""

from typing import Dict, List, Tuple
import logging

from ..schema import TABLE_VERSION

logger = logging.getLogger(__name__)


HANDLE_TABLE_VERSION = TABLE_VERSION


HANDLE_MIGRATIONS: Dict[str, Dict[str, str]] = {
    "Sum": {
        "InputA": "Inputs[0]",
        "InputB": "Inputs[1]",
    },
    "Curve:Blend": {
        "InputA": "Inputs[0]",
        "InputB": "Inputs[1]",
    },
    "Material:NoiseSelectorMaterial": {
        "InputA": "Inputs[0]",
        "InputB": "Inputs[1]",
    },
    "Material:NoiseSelector": {
        "InputA": "Inputs[0]",
        "InputB": "Inputs[1]",
    },
}


def migrate_handle(node_type: str, port: str) -> str:
    """
    Map a legacy port name to its current name.

    Unknown node types and ports pass through unchanged.
    """
    return HANDLE_MIGRATIONS.get(node_type, {}).get(port, port)


def migrate_ports(
    node_type: str,
    ports: Dict[str, str],
    context: str = "",
) -> Tuple[Dict[str, str], List[str]]:
    """
    Migrate the keys of a port -> source mapping.

    Parameters
    ----------
    node_type : str
        Resolved node type
    ports : dict
        Mapping of port name -> source node id
    context : str
        Context string for warning messages (e.g., a node id)

    Returns
    -------
    result : dict
        Mapping keyed by current port names
    warnings : list of str
        One message per migrated port

    Notes
    -----
    When both a legacy port and its replacement are present, the current
    name wins and the legacy entry is dropped.
    """
    migrations = HANDLE_MIGRATIONS.get(node_type)
    if not migrations:
        return dict(ports), []

    result: Dict[str, str] = {}
    warnings = []

    for port, source in ports.items():
        if port not in migrations:
            result[port] = source

    for port, source in ports.items():
        current = migrations.get(port)
        if current is None:
            continue
        if current in result:
            warnings.append(
                f"Legacy port '{port}' on {context or node_type} dropped: "
                f"'{current}' already connected"
            )
            continue
        result[current] = source
        warnings.append(f"Port migrated on {context or node_type}: '{port}' -> '{current}'")

    for message in warnings:
        logger.debug(message)

    return result, warnings


__all__ = [
    "HANDLE_TABLE_VERSION",
    "HANDLE_MIGRATIONS",
    "migrate_handle",
    "migrate_ports",
]
