"""
Type and handle resolution shared by lowering, raising and the interpreters.

Two static tables drive the mapping between tree field names and graph ports:

FIELD_CATEGORY_PREFIX
    Field name -> category prefix applied to a nested asset's type label.
    A density function nested under "Input" keeps its bare type; a curve
    nested under "Curve" becomes "Curve:<Type>". An empty prefix means the
    field is known but carries no category.

NAMED_ARRAY_HANDLES
    (asset type, array field) -> slot names. Array fields whose positions
    have fixed meaning are exposed as named ports instead of "Field[i]"
    slots. Only uncategorized (density-function) nodes use these names.

Port renames live in compat.handle_aliases. Unknown fields and types always
resolve to the identity mapping so that schema additions pass through.
"""

from dataclasses import dataclass
from typing import Any, Collection, Dict, List, Mapping, Optional, Tuple

from .asset import TYPE_KEY, ValueKind, classify_value
from .compat.handle_aliases import migrate_handle
from .graph import parse_port, slot_port


CATEGORY_SEPARATOR = ":"
VECTOR_CONSTANT_TYPE = "Vector:Constant"


FIELD_CATEGORY_PREFIX: Dict[str, str] = {
    "Curve": "Curve",
    "Pattern": "Pattern",
    "SubPattern": "Pattern",
    "PositionProvider": "Position",
    "Positions": "Position",
    "Providers": "Position",
    "VectorProvider": "Vector",
    "NewYAxis": "Vector",
    "MaterialProvider": "Material",
    "Solid": "Material",
    "Empty": "Material",
    "Low": "Material",
    "High": "Material",
    "Layers": "Material",
    "Material": "Material",
    "Scanner": "Scanner",
    "ChildScanner": "Scanner",
    "Prop": "Prop",
    "Floor": "Pattern",
    "Ceiling": "Pattern",
    "Surface": "Pattern",
    "Top": "Assignment",
    "Bottom": "Assignment",
    "Assignments": "Assignment",
    "ThicknessFunctionXZ": "",
}


NAMED_ARRAY_HANDLES: Dict[Tuple[str, str], List[str]] = {
    # single input
    ("Negate", "Inputs"): ["Input"],
    ("CurveFunction", "Inputs"): ["Input"],
    ("CacheOnce", "Inputs"): ["Input"],
    ("Abs", "Inputs"): ["Input"],
    ("SquareRoot", "Inputs"): ["Input"],
    ("CubeMath", "Inputs"): ["Input"],
    ("CubeRoot", "Inputs"): ["Input"],
    ("Inverse", "Inputs"): ["Input"],
    ("Modulo", "Inputs"): ["Input"],
    ("Clamp", "Inputs"): ["Input"],
    ("SmoothClamp", "Inputs"): ["Input"],
    ("Normalizer", "Inputs"): ["Input"],
    ("LinearTransform", "Inputs"): ["Input"],
    ("FlatCache", "Inputs"): ["Input"],
    ("DomainWarp2D", "Inputs"): ["Input"],
    ("DomainWarp3D", "Inputs"): ["Input"],
    ("ScaledPosition", "Inputs"): ["Input"],
    ("TranslatedPosition", "Inputs"): ["Input"],
    ("RotatedPosition", "Inputs"): ["Input"],
    ("MirroredPosition", "Inputs"): ["Input"],
    ("QuantizedPosition", "Inputs"): ["Input"],
    ("SurfaceDensity", "Inputs"): ["Input"],
    ("TerrainMask", "Inputs"): ["Input"],
    ("BeardDensity", "Inputs"): ["Input"],
    ("ColumnDensity", "Inputs"): ["Input"],
    ("CaveDensity", "Inputs"): ["Input"],
    ("Debug", "Inputs"): ["Input"],
    ("Passthrough", "Inputs"): ["Input"],
    ("Wrap", "Inputs"): ["Input"],
    ("SplineFunction", "Inputs"): ["Input"],
    ("Square", "Inputs"): ["Input"],
    ("SumSelf", "Inputs"): ["Input"],
    ("Exported", "Inputs"): ["Input"],
    ("ImportedValue", "Inputs"): ["Input"],
    ("YOverride", "Inputs"): ["Input"],
    ("XOverride", "Inputs"): ["Input"],
    ("ZOverride", "Inputs"): ["Input"],
    ("Floor", "Inputs"): ["Input"],
    ("Ceiling", "Inputs"): ["Input"],
    ("AmplitudeConstant", "Inputs"): ["Input"],
    ("Pow", "Inputs"): ["Input"],
    ("SmoothCeiling", "Inputs"): ["Input"],
    ("SmoothFloor", "Inputs"): ["Input"],
    ("Anchor", "Inputs"): ["Input"],
    ("PositionsPinch", "Inputs"): ["Input"],
    ("PositionsTwist", "Inputs"): ["Input"],
    ("GradientDensity", "Inputs"): ["Input"],
    ("Gradient", "Inputs"): ["Input"],
    ("YGradient", "Inputs"): ["Input"],
    ("ClampToIndex", "Inputs"): ["Input"],
    ("DoubleNormalizer", "Inputs"): ["Input"],
    ("OffsetConstant", "Inputs"): ["Input"],
    ("Cache2D", "Inputs"): ["Input"],
    # two inputs; "Offset" is omitted, the position provider of that name
    # carries a plain Offset field
    ("GradientWarp", "Inputs"): ["Input", "WarpSource"],
    ("VectorWarp", "Inputs"): ["Input", "WarpVector"],
    ("Amplitude", "Inputs"): ["Input", "Amplitude"],
    ("YSampled", "Inputs"): ["Input", "YProvider"],
    # three inputs
    ("Blend", "Inputs"): ["InputA", "InputB", "Factor"],
    ("BlendCurve", "Inputs"): ["InputA", "InputB", "Factor"],
    ("Interpolate", "Inputs"): ["InputA", "InputB", "Factor"],
    ("Conditional", "Inputs"): ["Condition", "TrueInput", "FalseInput"],
    ("RangeChoice", "Inputs"): ["Condition", "TrueInput", "FalseInput"],
}


@dataclass(frozen=True)
class NodeClassification:
    """Result of classifying an asset once, when its node is materialized."""
    type_label: str
    asset_type: Optional[str]
    is_vector_constant: bool = False


def resolve_node_type(asset_type: str, parent_field: Optional[str] = None) -> str:
    """
    Resolve the type label for an asset nested under parent_field.

    Top-level assets and assets under unknown fields keep their bare type.
    """
    if not parent_field:
        return asset_type
    prefix = FIELD_CATEGORY_PREFIX.get(parent_field)
    if prefix:
        return f"{prefix}{CATEGORY_SEPARATOR}{asset_type}"
    return asset_type


def strip_category(type_label: str) -> str:
    """'Position:Offset' -> 'Offset'; bare labels pass through."""
    if CATEGORY_SEPARATOR in type_label:
        return type_label.split(CATEGORY_SEPARATOR, 1)[1]
    return type_label


def category_of(type_label: str) -> str:
    """'Position:Offset' -> 'Position'; bare labels have category ''."""
    if CATEGORY_SEPARATOR in type_label:
        return type_label.split(CATEGORY_SEPARATOR, 1)[0]
    return ""


def is_vector_constant(asset: Mapping[str, Any]) -> bool:
    """
    True for a generic Constant whose Value is vector-shaped.

    Density constants carry a number; vector constants carry an {x, y, z}
    mapping that is neither an array nor a nested asset.
    """
    if asset.get(TYPE_KEY) != "Constant":
        return False
    value = asset.get("Value")
    return classify_value(value) == ValueKind.VECTOR and "x" in value


def classify_asset(
    asset: Mapping[str, Any],
    parent_field: Optional[str] = None,
) -> NodeClassification:
    """
    Classify an asset into the type label of its graph node.

    Parameters
    ----------
    asset : mapping
        The asset being materialized
    parent_field : str, optional
        Field of the containing asset the asset was found under

    Returns
    -------
    NodeClassification
        Resolved label plus the raw discriminant
    """
    asset_type = asset.get(TYPE_KEY)
    raw = asset_type if isinstance(asset_type, str) else "unknown"

    if is_vector_constant(asset):
        return NodeClassification(VECTOR_CONSTANT_TYPE, asset_type, is_vector_constant=True)

    return NodeClassification(resolve_node_type(raw, parent_field), asset_type)


def canonical_port(node_type: str, port: str) -> str:
    """Apply any rename migration to a port on a node of node_type."""
    return migrate_handle(node_type, port)


def named_handles(
    asset_type: Optional[str],
    field_name: str,
    node_type: Optional[str] = None,
) -> Optional[List[str]]:
    """Slot names of an asset-array field, or None if its slots are indexed."""
    if asset_type is None:
        return None
    if node_type is not None and category_of(node_type):
        return None
    return NAMED_ARRAY_HANDLES.get((asset_type, field_name))


def array_slot_port(
    asset_type: Optional[str],
    field_name: str,
    index: int,
    node_type: Optional[str] = None,
) -> str:
    """
    Port id for element `index` of an asset-array field.

    Named overrides are used positionally; elements beyond the named slots
    fall back to "Field[i]".
    """
    names = named_handles(asset_type, field_name, node_type)
    if names and index < len(names):
        return names[index]
    return slot_port(field_name, index)


def port_to_slot(
    asset_type: Optional[str],
    port: str,
    node_type: Optional[str] = None,
    array_fields: Optional[Collection[str]] = None,
) -> Tuple[str, Optional[int]]:
    """
    Resolve a port on a node back to a tree field.

    Parameters
    ----------
    asset_type : str or None
        Raw discriminant of the node owning the port
    port : str
        Port id as stored on the edge
    node_type : str, optional
        Resolved type label, used to apply rename migrations
    array_fields : collection of str, optional
        Fields recorded as asset arrays when the node was lowered. A named
        port maps back into an array only if that array is listed here;
        None (no record) lets every named port map back.

    Returns
    -------
    tuple
        (field, index) where index is None for plain nested-asset fields
    """
    if node_type is not None:
        port = canonical_port(node_type, port)

    field_name, index = parse_port(port)
    if index is not None:
        return field_name, index

    if asset_type is None or (node_type is not None and category_of(node_type)):
        return port, None

    for (owner, array_field), names in NAMED_ARRAY_HANDLES.items():
        if owner != asset_type or port not in names:
            continue
        if array_fields is None or array_field in array_fields:
            return array_field, names.index(port)

    return port, None


__all__ = [
    "CATEGORY_SEPARATOR",
    "VECTOR_CONSTANT_TYPE",
    "FIELD_CATEGORY_PREFIX",
    "NAMED_ARRAY_HANDLES",
    "NodeClassification",
    "resolve_node_type",
    "strip_category",
    "category_of",
    "is_vector_constant",
    "classify_asset",
    "canonical_port",
    "named_handles",
    "array_slot_port",
    "port_to_slot",
]
