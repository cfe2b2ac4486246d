"""Built-in scalar functions and pseudo-variables of the expression language."""

import math
from collections.abc import Callable
from dataclasses import dataclass

from dgeval._numeric import clamp

ZERO_EPSILON = 1e-8


@dataclass(frozen=True, slots=True)
class BuiltinFunction:
    """A fixed-arity scalar function; arguments arrive in source order."""

    name: str
    arity: int
    fn: Callable[..., float]


def _unit(x: float) -> float:
    return clamp(x, -1.0, 1.0)


_BUILTINS = (
    BuiltinFunction("sin", 1, math.sin),
    BuiltinFunction("cos", 1, math.cos),
    BuiltinFunction("tan", 1, math.tan),
    BuiltinFunction("asin", 1, lambda x: math.asin(_unit(x))),
    BuiltinFunction("acos", 1, lambda x: math.acos(_unit(x))),
    BuiltinFunction("atan", 1, math.atan),
    BuiltinFunction("atan2", 2, math.atan2),
    BuiltinFunction("abs", 1, abs),
    BuiltinFunction("sqrt", 1, lambda x: math.sqrt(max(0.0, x))),
    BuiltinFunction("pow", 2, math.pow),
    BuiltinFunction("min", 2, min),
    BuiltinFunction("max", 2, max),
    BuiltinFunction("clamp", 3, clamp),
    BuiltinFunction("floor", 1, lambda x: float(math.floor(x))),
    BuiltinFunction("ceil", 1, lambda x: float(math.ceil(x))),
    BuiltinFunction("exp", 1, math.exp),
    BuiltinFunction("log", 1, lambda x: math.log(max(ZERO_EPSILON, x))),
)

FUNCTIONS: dict[str, BuiltinFunction] = {f.name: f for f in _BUILTINS}


def lookup_function(name: str) -> BuiltinFunction | None:
    """Find a built-in function by name, ignoring case."""
    return FUNCTIONS.get(name.lower())


def lookup_constant(name: str, frame: float) -> float | None:
    """Resolve the pseudo-variables ``time``, ``frame``, ``pi`` and ``e`` (case-insensitive)."""
    match name.lower():
        case "time" | "frame":
            return frame
        case "pi":
            return math.pi
        case "e":
            return math.e
        case _:
            return None
