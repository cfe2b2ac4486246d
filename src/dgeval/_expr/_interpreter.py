"""Postfix evaluation and the public expression interpreter."""

import logging
import math
from collections.abc import Callable, Mapping

from dgeval._numeric import to_single

from ._functions import ZERO_EPSILON, lookup_constant, lookup_function
from ._parser import NEGATE, Instruction, OpCode, to_postfix
from ._tokens import tokenize

logger = logging.getLogger(__name__)

type Resolver = Callable[[str, float], float]

_ARITHMETIC_FAULTS = (ArithmeticError, ValueError)


class DeferEvaluation(Exception):  # noqa: N818
    """Raised by a resolver to abandon the current evaluation so it can be retried later.

    The interpreter lets it propagate instead of degrading to ``0.0``.
    """


def _binary(op: str, a: float, b: float) -> float:
    match op:
        case "+":
            return a + b
        case "-":
            return a - b
        case "*":
            return a * b
        case "/":
            return 0.0 if abs(b) < ZERO_EPSILON else a / b
        case "^":
            return math.pow(a, b)
        case _:
            return 0.0


def _guarded(fn: Callable[[], float]) -> float:
    """Run one arithmetic step; domain and overflow faults become ``0.0``."""
    try:
        return float(fn())
    except _ARITHMETIC_FAULTS:
        logger.debug("Arithmetic fault in expression", exc_info=True)
        return 0.0


def evaluate_postfix(
    program: list[Instruction],
    frame: float,
    resolve: Resolver | None = None,
    variables: Mapping[str, float] | None = None,
) -> float:
    """Evaluate postfix instructions on a numeric stack.

    Popping from an empty stack yields ``0.0``. Names found in ``variables``
    read from it; names that are neither variables nor pseudo-variables are
    passed to ``resolve``.

    Args:
        program: Instructions produced by :func:`to_postfix`.
        frame: Value of the ``time``/``frame`` pseudo-variables.
        resolve: Callback for plug references.
        variables: Script-local values such as ``$s``.

    Returns:
        The value left on top of the stack, or ``0.0`` if it is empty.

    """
    stack: list[float] = []

    def pop() -> float:
        return stack.pop() if stack else 0.0

    for ins in program:
        match ins.op:
            case OpCode.PUSH:
                stack.append(ins.number)
            case OpCode.LOAD if variables is not None and ins.text in variables:
                stack.append(variables[ins.text])
            case OpCode.LOAD:
                constant = lookup_constant(ins.text, frame)
                if constant is not None:
                    stack.append(constant)
                elif resolve is not None:
                    stack.append(float(resolve(ins.text, frame)))
                else:
                    stack.append(0.0)
            case OpCode.UNARY if ins.text == NEGATE:
                stack.append(-pop())
            case OpCode.BINARY:
                b = pop()
                a = pop()
                stack.append(_guarded(lambda op=ins.text, a=a, b=b: _binary(op, a, b)))
            case OpCode.CALL:
                builtin = lookup_function(ins.text)
                if builtin is None:
                    continue
                args = [pop() for _ in range(builtin.arity)]
                args.reverse()
                stack.append(_guarded(lambda fn=builtin.fn, args=args: fn(*args)))

    return stack[-1] if stack else 0.0


class Interpreter:
    """Evaluate arithmetic expression text against a variable resolver.

    The resolver is shared with the plug evaluator: identifiers such as
    ``ctrl.tx`` are handed to it unchanged, together with the frame.

    Example:
        >>> Interpreter(lambda name, frame: 0.0).evaluate("clamp(5, 0, 3)", 1.0)
        3.0

    """

    def __init__(self, resolve: Resolver | None = None) -> None:
        self._resolve = resolve

    def compile(self, text: str) -> list[Instruction]:
        return to_postfix(tokenize(text))

    def evaluate(self, text: str, frame: float, variables: Mapping[str, float] | None = None) -> float:
        """Evaluate ``text`` at ``frame``.

        The result is rounded to single precision and is always finite.
        Failures yield ``0.0``; only :class:`DeferEvaluation` raised by the
        resolver propagates.
        """
        if not text or not text.strip():
            return 0.0
        try:
            value = to_single(evaluate_postfix(self.compile(text), frame, self._resolve, variables))
        except DeferEvaluation:
            raise
        except Exception:  # noqa: BLE001
            logger.debug("Expression %r failed at frame %s", text, frame, exc_info=True)
            return 0.0
        if not math.isfinite(value):
            logger.debug("Expression %r produced non-finite %r at frame %s", text, value, frame)
            return 0.0
        return value
