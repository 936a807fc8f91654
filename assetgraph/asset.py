"""
Asset tree model.

An asset is a nested, discriminant-tagged mapping as persisted by the world
generator. Each asset carries a "Type" key naming its kind; every other key is
a field whose value is one of:

Scalar:        {"Frequency": 0.01}, {"Skip": true}, {"ExportAs": "noise"}
Vector:        {"Offset": {"x": 1, "y": 0, "z": 2}}
Nested asset:  {"Input": {"Type": "Constant", "Value": 1}}
Scalar array:  {"Weights": [0.5, 0.25]}
Asset array:   {"Inputs": [{"Type": "Constant", ...}, {"Type": "Constant", ...}]}

The reserved key "$DisconnectedTrees" holds a list of assets that are not
referenced by the primary tree but are kept alongside it.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union
import json


TYPE_KEY = "Type"
DISCONNECTED_KEY = "$DisconnectedTrees"

Asset = Dict[str, Any]


class AssetValidationError(Exception):
    """Raised when a value cannot be treated as an asset at all."""
    pass


class ValueKind(Enum):
    """Shape of a field value inside an asset."""
    SCALAR = "scalar"
    VECTOR = "vector"
    ASSET = "asset"
    ASSET_ARRAY = "asset_array"
    SCALAR_ARRAY = "scalar_array"


def is_asset(value: Any) -> bool:
    """Return True if value is a mapping carrying a discriminant."""
    return isinstance(value, Mapping) and TYPE_KEY in value


def classify_value(value: Any) -> ValueKind:
    """
    Classify a field value by shape.

    A list only counts as an asset array when it is non-empty and every
    element is an asset; anything else is kept verbatim as a scalar array.

    Parameters
    ----------
    value : Any
        The field value to classify

    Returns
    -------
    ValueKind
        The value's shape
    """
    if isinstance(value, Mapping):
        return ValueKind.ASSET if TYPE_KEY in value else ValueKind.VECTOR
    if isinstance(value, (list, tuple)):
        if value and all(is_asset(item) for item in value):
            return ValueKind.ASSET_ARRAY
        return ValueKind.SCALAR_ARRAY
    return ValueKind.SCALAR


def _validate_asset(asset: Any, path: str) -> List[str]:
    errors = []

    if not isinstance(asset, Mapping):
        errors.append(f"{path}: asset must be a mapping, got {type(asset).__name__}")
        return errors

    asset_type = asset.get(TYPE_KEY)
    if asset_type is None:
        errors.append(f"{path}: asset missing '{TYPE_KEY}' field")
    elif not isinstance(asset_type, str):
        errors.append(
            f"{path}: '{TYPE_KEY}' must be a string, got {type(asset_type).__name__}"
        )

    for key, value in asset.items():
        if key == TYPE_KEY:
            continue

        if key == DISCONNECTED_KEY:
            if not isinstance(value, list):
                errors.append(f"{path}.{key}: must be a list of assets")
                continue
            for i, tree in enumerate(value):
                if not is_asset(tree):
                    errors.append(f"{path}.{key}[{i}]: disconnected tree is not an asset")
                else:
                    errors.extend(_validate_asset(tree, f"{path}.{key}[{i}]"))
            continue

        kind = classify_value(value)
        if kind == ValueKind.ASSET:
            errors.extend(_validate_asset(value, f"{path}.{key}"))
        elif kind == ValueKind.ASSET_ARRAY:
            for i, item in enumerate(value):
                errors.extend(_validate_asset(item, f"{path}.{key}[{i}]"))
        elif kind == ValueKind.SCALAR_ARRAY and any(is_asset(item) for item in value):
            errors.append(
                f"{path}.{key}: array mixes assets and plain values; kept verbatim"
            )

    return errors


def validate_asset(asset: Mapping[str, Any]) -> List[str]:
    """
    Validate an asset tree.

    Malformed domain data is reported, not rejected: the transformation
    passes still accept a tree that produces messages here.

    Parameters
    ----------
    asset : mapping
        Root asset

    Returns
    -------
    list of str
        Validation messages (empty if valid)

    Raises
    ------
    AssetValidationError
        If the argument is not a mapping at all
    """
    if not isinstance(asset, Mapping):
        raise AssetValidationError(f"Asset must be a mapping, got {type(asset).__name__}")

    return _validate_asset(asset, "root")


def _normalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _normalize(v) for k, v in sorted(value.items())}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def assets_equal(a: Any, b: Any) -> bool:
    """Structural equality ignoring mapping key order."""
    return _normalize(a) == _normalize(b)


def load_asset(path: Union[str, Path]) -> Asset:
    """Load an asset tree from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def dump_asset(asset: Mapping[str, Any], path: Union[str, Path], indent: int = 2) -> None:
    """Write an asset tree to a JSON file."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asset, f, indent=indent)
        f.write("\n")


__all__ = [
    "TYPE_KEY",
    "DISCONNECTED_KEY",
    "Asset",
    "AssetValidationError",
    "ValueKind",
    "is_asset",
    "classify_value",
    "validate_asset",
    "assets_equal",
    "load_asset",
    "dump_asset",
]
