"""Closed set of node kinds with a formula, and the type-name lookup into it."""

from enum import StrEnum, auto

from dgeval._graph import CURVE_TYPE_PREFIX

ANIM_BLEND_PREFIX = "animblendnode"


class NodeKind(StrEnum):
    """How a node's requested attribute is computed."""

    LITERAL = auto()  # no formula: read the authored value
    ANIM_CURVE = auto()  # time curve or driven key, evaluated by a collaborator
    ANIM_BLEND = auto()
    ANIM_BLEND_ADDITIVE = auto()
    BLEND_TWO_ATTR = auto()
    UNIT_CONVERSION = auto()
    ADD_DOUBLE_LINEAR = auto()
    MULT_DOUBLE_LINEAR = auto()
    PLUS_MINUS_AVERAGE = auto()
    MULTIPLY_DIVIDE = auto()
    CONDITION = auto()
    CLAMP = auto()
    SET_RANGE = auto()
    BLEND_COLORS = auto()
    REVERSE = auto()
    REMAP_VALUE = auto()
    CHOICE = auto()
    BLEND_WEIGHTED = auto()
    PAIR_BLEND = auto()
    SIN = auto()
    COS = auto()
    TAN = auto()
    ASIN = auto()
    ACOS = auto()
    ATAN = auto()
    ATAN2 = auto()
    EXPRESSION = auto()

    @property
    def has_formula(self) -> bool:
        return self not in (NodeKind.LITERAL, NodeKind.ANIM_CURVE)


_KIND_BY_TYPE: dict[str, NodeKind] = {
    "blendTwoAttr": NodeKind.BLEND_TWO_ATTR,
    "unitConversion": NodeKind.UNIT_CONVERSION,
    "addDoubleLinear": NodeKind.ADD_DOUBLE_LINEAR,
    "multDoubleLinear": NodeKind.MULT_DOUBLE_LINEAR,
    "plusMinusAverage": NodeKind.PLUS_MINUS_AVERAGE,
    "multiplyDivide": NodeKind.MULTIPLY_DIVIDE,
    "condition": NodeKind.CONDITION,
    "clamp": NodeKind.CLAMP,
    "setRange": NodeKind.SET_RANGE,
    "blendColors": NodeKind.BLEND_COLORS,
    "reverse": NodeKind.REVERSE,
    "remapValue": NodeKind.REMAP_VALUE,
    "choice": NodeKind.CHOICE,
    "blendWeighted": NodeKind.BLEND_WEIGHTED,
    "pairBlend": NodeKind.PAIR_BLEND,
    "expression": NodeKind.EXPRESSION,
}

# Trigonometry nodes and their driven-key ("DL") aliases.
for _name, _kind in (
    ("sin", NodeKind.SIN),
    ("cos", NodeKind.COS),
    ("tan", NodeKind.TAN),
    ("asin", NodeKind.ASIN),
    ("acos", NodeKind.ACOS),
    ("atan", NodeKind.ATAN),
    ("atan2", NodeKind.ATAN2),
):
    _KIND_BY_TYPE[_name] = _kind
    _KIND_BY_TYPE[f"{_name}DL"] = _kind


def node_kind_for_type(node_type: str | None) -> NodeKind:
    """Map a node type name to its kind.

    Matching is exact except for the ``animBlendNode*`` family, which is
    matched by case-insensitive prefix; a name containing ``Additive`` selects
    the additive blend.

    Example:
        >>> node_kind_for_type("animBlendNodeAdditiveRotation")
        <NodeKind.ANIM_BLEND_ADDITIVE: 'anim_blend_additive'>
        >>> node_kind_for_type("transform")
        <NodeKind.LITERAL: 'literal'>

    """
    if not node_type:
        return NodeKind.LITERAL
    kind = _KIND_BY_TYPE.get(node_type)
    if kind is not None:
        return kind
    lowered = node_type.lower()
    if lowered.startswith(ANIM_BLEND_PREFIX):
        return NodeKind.ANIM_BLEND_ADDITIVE if "additive" in lowered else NodeKind.ANIM_BLEND
    if node_type.startswith(CURVE_TYPE_PREFIX):
        return NodeKind.ANIM_CURVE
    return NodeKind.LITERAL


def is_supported_compute_node_type(node_type: str | None) -> bool:
    """Report whether a node type has a formula (used by coverage reporting).

    Curve nodes are evaluated by a collaborator and do not count.
    """
    return node_kind_for_type(node_type).has_formula
