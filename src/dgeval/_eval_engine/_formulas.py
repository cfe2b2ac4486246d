"""Per-kind node formulas.

Each formula receives the node's inputs and the requested attribute path and
returns the attribute's value. Angles on rotation inputs are degrees; they are
converted to radians only where a trig function needs them.
"""

import math
from collections.abc import Callable

from dgeval._numeric import approximately, clamp
from dgeval._plug import array_base, extract_index
from dgeval._rotation import RotateOrder

from ._inputs import NodeInputs
from ._kinds import NodeKind

type Formula = Callable[[NodeInputs, str], float]

ZERO_EPSILON = 1e-8
_SHORT_OUTPUTS = frozenset({"o", "ox", "oy", "oz", "or", "og", "ob", "oa"})


# --------------------------------------------------------------------------- helpers


def clamp01(v: float) -> float:
    return clamp(v, 0.0, 1.0)


def lerp(a: float, b: float, t: float) -> float:
    """Interpolate with ``t`` clamped to [0, 1]; exact at both ends."""
    t = clamp01(t)
    return a * (1.0 - t) + b * t


def looks_like_output(attr: str) -> bool:
    """Whether ``attr`` names an output (``outputX``, ``outColorR``, ``ox``...)."""
    lowered = attr.lower()
    return "out" in lowered or lowered in _SHORT_OUTPUTS


def extract_axis(attr: str) -> str:
    """Trailing X/Y/Z of an attribute name, upper-cased, or ``""``."""
    last = attr[-1:].upper()
    return last if last in ("X", "Y", "Z") else ""


def extract_rgb(attr: str) -> str:
    last = attr[-1:].upper()
    return last if last in ("R", "G", "B") else ""


def _remap(value: float, old_min: float, old_max: float, new_min: float, new_max: float) -> float:
    span = old_max - old_min
    t = 0.0 if abs(span) < ZERO_EPSILON else (value - old_min) / span
    return lerp(new_min, new_max, t)


def _channel_names(long: str, short: str, channel: str) -> tuple[str, ...]:
    if not channel:
        return (long, short)
    return (f"{long}{channel}", f"{short}{channel.lower()}", long)


# --------------------------------------------------------------------------- blends


def anim_blend(inputs: NodeInputs, _attr: str) -> float:
    a = inputs.value("inputA", "ia", "input[0]")
    b = inputs.value("inputB", "ib", "input[1]")
    w = clamp01(inputs.value("weight", "w", "weightA"))
    return lerp(a, b, w)


def anim_blend_additive(inputs: NodeInputs, _attr: str) -> float:
    a = inputs.value("inputA", "ia", "input[0]")
    b = inputs.value("inputB", "ib", "input[1]")
    w = clamp01(inputs.value("weight", "w", "weightA"))
    return a + b * w


def blend_two_attr(inputs: NodeInputs, _attr: str) -> float:
    a = inputs.value("input[0]", "input1", "i[0]", "i1")
    b = inputs.value("input[1]", "input2", "i[1]", "i2")
    w = clamp01(inputs.value("attributesBlender", "ab", "weight", "w"))
    return lerp(a, b, w)


def blend_colors(inputs: NodeInputs, attr: str) -> float:
    channel = extract_rgb(attr)
    blender = clamp01(inputs.value("blender", "b"))
    c1 = inputs.value(*_channel_names("color1", "c1", channel))
    c2 = inputs.value(*_channel_names("color2", "c2", channel))
    return lerp(c1, c2, blender)


# --------------------------------------------------------------------------- arithmetic


def unit_conversion(inputs: NodeInputs, _attr: str) -> float:
    value = inputs.value("input", "i", "inputValue")
    factor = inputs.option("cf", "conversionFactor", "factor", default=1.0)
    return value * factor


def add_double_linear(inputs: NodeInputs, _attr: str) -> float:
    return inputs.value("input1", "i1") + inputs.value("input2", "i2")


def mult_double_linear(inputs: NodeInputs, _attr: str) -> float:
    return inputs.value("input1", "i1") * inputs.value("input2", "i2")


def plus_minus_average(inputs: NodeInputs, attr: str) -> float:
    """Sum (1), subtract (2) or average (3) the elements of a sparse array.

    Elements are visited in ascending index order. ``output3Dx`` style
    requests read the matching child of ``input3D[i]``.
    """
    op = round(inputs.option("operation", "op", default=1.0))

    axis = extract_axis(attr).lower()
    if axis and "3" in attr:
        indices = inputs.indices("input3D", "i3")
        keys = [(f"input3D[{i}].input3D{axis}", f"i3[{i}].i3{axis}") for i in indices]
    else:
        indices = inputs.indices("input1D", "i1")
        keys = [(f"input1D[{i}]", f"i1[{i}]") for i in indices]

    values: list[float] = []
    for names in keys:
        connected = inputs.connected(*names)
        if connected is not None:
            values.append(connected)
            continue
        literal = inputs.literal(*names)
        if literal is not None:
            values.append(literal)

    if not values:
        return 0.0
    if op == 2:  # noqa: PLR2004
        return values[0] - sum(values[1:])
    if op == 3:  # noqa: PLR2004
        return sum(values) / len(values)
    return sum(values)


def multiply_divide(inputs: NodeInputs, attr: str) -> float:
    op = round(inputs.option("operation", "op", default=1.0))
    axis = extract_axis(attr)
    a = inputs.value(*_channel_names("input1", "i1", axis))
    b = inputs.value(*_channel_names("input2", "i2", axis))
    match op:
        case 2:
            return 0.0 if abs(b) < ZERO_EPSILON else a / b
        case 3:
            return math.pow(a, b)
        case _:
            return a * b


def reverse(inputs: NodeInputs, attr: str) -> float:
    axis = extract_axis(attr)
    return 1.0 - inputs.value(*_channel_names("input", "i", axis))


# --------------------------------------------------------------------------- selection


_COMPARISONS: dict[int, Callable[[float, float], bool]] = {
    0: approximately,
    1: lambda a, b: not approximately(a, b),
    2: lambda a, b: a > b,
    3: lambda a, b: a >= b,
    4: lambda a, b: a < b,
    5: lambda a, b: a <= b,
}


def condition(inputs: NodeInputs, attr: str) -> float:
    """Compare two terms (``== != > >= < <=``) and pick the true or false color."""
    first = inputs.value("firstTerm", "ft")
    second = inputs.value("secondTerm", "st")
    op = round(inputs.option("operation", "op", default=0.0))
    compare = _COMPARISONS.get(op)
    result = compare(first, second) if compare is not None else False

    if attr.lower() in ("outalpha", "oa"):
        when_true = inputs.value("colorIfTrueA", "cta")
        when_false = inputs.value("colorIfFalseA", "cfa")
    else:
        channel = extract_rgb(attr)
        when_true = inputs.value(*_channel_names("colorIfTrue", "ct", channel))
        when_false = inputs.value(*_channel_names("colorIfFalse", "cf", channel))
    return when_true if result else when_false


def choice(inputs: NodeInputs, _attr: str) -> float:
    """Pick ``input[round(selector)]``, clamped into the indices that exist."""
    selector = max(0, round(inputs.value("selector", "sel", "index")))

    if inputs.has_element("input", selector):
        return inputs.element("input", selector)

    indices = inputs.indices("input")
    if not indices:
        return 0.0
    chosen = indices[clamp(selector, 0, len(indices) - 1)]
    return inputs.element("input", chosen)


def blend_weighted(inputs: NodeInputs, attr: str) -> float:
    """``sum(input[i] * weight[i])``; ``weightSum`` reports ``sum(weight[i])``."""
    indices = inputs.indices("input", "weight")
    total = 0.0
    weight_sum = 0.0
    for i in indices:
        w = inputs.element("weight", i, default=1.0)
        total += inputs.element("input", i) * w
        weight_sum += w

    if attr.lower() in ("weightsum", "ws"):
        return weight_sum

    normalize = inputs.option("normalizeWeights", "normalize", default=0.0) >= 0.5  # noqa: PLR2004
    if normalize and abs(weight_sum) > ZERO_EPSILON:
        total /= weight_sum
    return total


# --------------------------------------------------------------------------- ranges


def clamp_node(inputs: NodeInputs, attr: str) -> float:
    channel = extract_rgb(attr)
    value = inputs.value(*_channel_names("input", "ip", channel))
    lo = inputs.value(*_channel_names("min", "mn", channel))
    hi = inputs.value(*_channel_names("max", "mx", channel))
    return clamp(value, lo, hi)


def set_range(inputs: NodeInputs, attr: str) -> float:
    axis = extract_axis(attr)
    value = inputs.value(*_channel_names("value", "v", axis))
    old_min = inputs.value(*_channel_names("oldMin", "on", axis))
    old_max = inputs.value(*_channel_names("oldMax", "om", axis))
    new_min = inputs.value(*_channel_names("min", "n", axis))
    new_max = inputs.value(*_channel_names("max", "m", axis))
    return _remap(value, old_min, old_max, new_min, new_max)


def remap_value(inputs: NodeInputs, _attr: str) -> float:
    return _remap(
        inputs.value("inputValue", "i", "iv"),
        inputs.value("inputMin", "imn"),
        inputs.value("inputMax", "imx"),
        inputs.value("outputMin", "omn"),
        inputs.value("outputMax", "omx"),
    )


# --------------------------------------------------------------------------- pair blend


def _triple(inputs: NodeInputs, long: str, short: str, n: int) -> tuple[float, float, float]:
    # Children are written both as inTranslate1X and as inTranslateX1.
    def names(axis: str) -> tuple[str, ...]:
        return (f"{long}{n}{axis}", f"{short}{n}{axis.lower()}", f"{long}{axis}{n}", f"{short}{axis.lower()}{n}")

    return inputs.vector3(packed=(f"{long}{n}", f"{short}{n}"), xs=names("X"), ys=names("Y"), zs=names("Z"))


def pair_blend(inputs: NodeInputs, attr: str) -> float:
    """Blend two translate and two rotate triples.

    Rotations blend linearly, or spherically through quaternions when
    ``rotInterpolation`` is non-zero. The requested channel picks the result;
    anything that is neither translate nor rotate reports the weight.
    """
    w = clamp01(inputs.value("weight", "w", "blend"))
    rot_interp = round(inputs.option("rotInterpolation", "rotationInterpolation", "ri", default=0.0))
    order = RotateOrder.from_code(inputs.option("rotateOrder", "ro", default=0.0))

    lowered = attr.lower()
    axis = extract_axis(attr)
    axis_index = "XYZ".index(axis) if axis else 0

    if "translate" in lowered or lowered.startswith("ot"):
        t1 = _triple(inputs, "inTranslate", "it", 1)
        t2 = _triple(inputs, "inTranslate", "it", 2)
        return lerp(t1[axis_index], t2[axis_index], w)

    if "rotate" in lowered or lowered.startswith("or"):
        r1 = _triple(inputs, "inRotate", "ir", 1)
        r2 = _triple(inputs, "inRotate", "ir", 2)
        if rot_interp != 0:
            blended = inputs.evaluator.rotation(r1, r2, w, order)
            return blended[axis_index]
        return lerp(r1[axis_index], r2[axis_index], w)

    return w


# --------------------------------------------------------------------------- trigonometry


def _angle_input(inputs: NodeInputs) -> float:
    return inputs.value("input", "in", "angle", "a", "input1", "i1", "x")


def sin_node(inputs: NodeInputs, _attr: str) -> float:
    return math.sin(math.radians(_angle_input(inputs)))


def cos_node(inputs: NodeInputs, _attr: str) -> float:
    return math.cos(math.radians(_angle_input(inputs)))


def tan_node(inputs: NodeInputs, _attr: str) -> float:
    return math.tan(math.radians(_angle_input(inputs)))


def asin_node(inputs: NodeInputs, _attr: str) -> float:
    return math.degrees(math.asin(clamp(_angle_input(inputs), -1.0, 1.0)))


def acos_node(inputs: NodeInputs, _attr: str) -> float:
    return math.degrees(math.acos(clamp(_angle_input(inputs), -1.0, 1.0)))


def atan_node(inputs: NodeInputs, _attr: str) -> float:
    return math.degrees(math.atan(_angle_input(inputs)))


def atan2_node(inputs: NodeInputs, _attr: str) -> float:
    y = inputs.value("input1", "i1", "y")
    x = inputs.value("input2", "i2", "x")
    return math.degrees(math.atan2(y, x))


# --------------------------------------------------------------------------- expression


_EXPRESSION_OUTPUTS = frozenset({"output", "out", "o"})


def expression(inputs: NodeInputs, attr: str) -> float:
    """Evaluate the right-hand side wired to ``output[i]`` of an expression node."""
    base = array_base(attr)
    index = extract_index(attr)
    if base is None or base.lower() not in _EXPRESSION_OUTPUTS or index is None:
        return inputs.literal(attr) or 0.0
    program = inputs.evaluator.expression_program(inputs.node)
    return program.output(inputs.evaluator.interpreter, index, inputs.frame)


# --------------------------------------------------------------------------- table


FORMULAS: dict[NodeKind, Formula] = {
    NodeKind.ANIM_BLEND: anim_blend,
    NodeKind.ANIM_BLEND_ADDITIVE: anim_blend_additive,
    NodeKind.BLEND_TWO_ATTR: blend_two_attr,
    NodeKind.UNIT_CONVERSION: unit_conversion,
    NodeKind.ADD_DOUBLE_LINEAR: add_double_linear,
    NodeKind.MULT_DOUBLE_LINEAR: mult_double_linear,
    NodeKind.PLUS_MINUS_AVERAGE: plus_minus_average,
    NodeKind.MULTIPLY_DIVIDE: multiply_divide,
    NodeKind.CONDITION: condition,
    NodeKind.CLAMP: clamp_node,
    NodeKind.SET_RANGE: set_range,
    NodeKind.BLEND_COLORS: blend_colors,
    NodeKind.REVERSE: reverse,
    NodeKind.REMAP_VALUE: remap_value,
    NodeKind.CHOICE: choice,
    NodeKind.BLEND_WEIGHTED: blend_weighted,
    NodeKind.PAIR_BLEND: pair_blend,
    NodeKind.SIN: sin_node,
    NodeKind.COS: cos_node,
    NodeKind.TAN: tan_node,
    NodeKind.ASIN: asin_node,
    NodeKind.ACOS: acos_node,
    NodeKind.ATAN: atan_node,
    NodeKind.ATAN2: atan2_node,
    NodeKind.EXPRESSION: expression,
}

# Kinds that only compute for output attributes; other attributes read their literal.
OUTPUT_GATED = frozenset(
    {
        NodeKind.MULTIPLY_DIVIDE,
        NodeKind.CONDITION,
        NodeKind.CLAMP,
        NodeKind.SET_RANGE,
        NodeKind.BLEND_COLORS,
        NodeKind.REVERSE,
        NodeKind.REMAP_VALUE,
        NodeKind.CHOICE,
        NodeKind.SIN,
        NodeKind.COS,
        NodeKind.TAN,
        NodeKind.ASIN,
        NodeKind.ACOS,
        NodeKind.ATAN,
        NodeKind.ATAN2,
    },
)
