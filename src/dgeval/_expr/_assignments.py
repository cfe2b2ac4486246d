"""Assignment statements inside expression-node source text."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Self

from dgeval._plug import PlugRef

if TYPE_CHECKING:
    from ._interpreter import Interpreter

_ASSIGN_RE = re.compile(r"(?P<lhs>[^=;\r\n]+?)\s*=\s*(?P<rhs>[^;\r\n]+)\s*;")
_DECLARATION_PREFIXES = ("float ", "int ")

TRANSFORM_CHANNELS = frozenset({"tx", "ty", "tz", "rx", "ry", "rz", "sx", "sy", "sz"})


@dataclass(frozen=True, slots=True)
class Assignment:
    """One ``lhs = rhs;`` statement.

    Attributes:
        target: Left-hand side with any ``float``/``int`` declaration removed.
        rhs: Right-hand side expression text.

    """

    target: str
    rhs: str

    @property
    def target_plug(self) -> PlugRef | None:
        """The assigned plug when the target has the ``node.attr`` form."""
        return PlugRef.parse_last(self.target)

    @property
    def is_local(self) -> bool:
        """Whether the target is a script variable (``$s``) rather than a plug."""
        return bool(self.target) and self.target_plug is None


def parse_assignments(text: str) -> list[Assignment]:
    """Extract ``lhs = rhs;`` statements in source order.

    A missing trailing ``;`` is tolerated.

    Example:
        >>> [(a.target, a.rhs) for a in parse_assignments("float $x = 2; ball.ty = sin(time)")]
        [('$x', '2'), ('ball.ty', 'sin(time)')]

    """
    if not text:
        return []
    if not text.rstrip().endswith(";"):
        text = text.rstrip() + ";"

    result: list[Assignment] = []
    for m in _ASSIGN_RE.finditer(text):
        lhs = m.group("lhs").strip()
        rhs = m.group("rhs").strip()
        for prefix in _DECLARATION_PREFIXES:
            if lhs.lower().startswith(prefix):
                lhs = lhs[len(prefix) :].strip()
        if lhs and rhs:
            result.append(Assignment(target=lhs, rhs=rhs))
    return result


@dataclass(frozen=True, slots=True)
class ExpressionProgram:
    """The executable view of one expression node's source.

    Statements run in source order. Assignments to script variables (``$s``)
    only update the local scope; every other assignment feeds the next slot
    of the node's ``output[]`` array.

    Attributes:
        source: Full expression text.
        assignments: Parsed statements, in source order. When the source holds
            no statement at all, the whole text is one anonymous right-hand side.

    """

    source: str
    assignments: tuple[Assignment, ...] = field(default_factory=tuple)

    @classmethod
    def from_text(cls, text: str) -> Self:
        statements = parse_assignments(text)
        if not statements and text.strip():
            statements = [Assignment(target="", rhs=text.strip().rstrip(";").strip())]
        return cls(source=text, assignments=tuple(statements))

    @property
    def outputs(self) -> tuple[Assignment, ...]:
        """The statements feeding ``output[0]``, ``output[1]``... in slot order."""
        return tuple(a for a in self.assignments if not a.is_local)

    def output(self, interpreter: Interpreter, index: int, frame: float) -> float:
        """Evaluate the right-hand side feeding output slot ``index``; ``0.0`` if there is none.

        Script variables assigned before that statement are in scope.
        """
        if index < 0:
            return 0.0
        variables: dict[str, float] = {}
        slot = 0
        for assignment in self.assignments:
            if assignment.is_local:
                variables[assignment.target] = interpreter.evaluate(assignment.rhs, frame, variables)
            elif slot == index:
                return interpreter.evaluate(assignment.rhs, frame, variables)
            else:
                slot += 1
        return 0.0

    def values(self, interpreter: Interpreter, frame: float) -> list[tuple[Assignment, float]]:
        """Run every statement in order, returning each one with its value."""
        variables: dict[str, float] = {}
        results: list[tuple[Assignment, float]] = []
        for assignment in self.assignments:
            value = interpreter.evaluate(assignment.rhs, frame, variables)
            if assignment.is_local:
                variables[assignment.target] = value
            results.append((assignment, value))
        return results

    def run(self, interpreter: Interpreter, frame: float) -> list[tuple[str, str, float]]:
        """Evaluate every transform-channel assignment.

        Returns:
            ``(node, channel, value)`` triples in source order, ready to be
            pushed onto the host's transforms.

        """
        writes: list[tuple[str, str, float]] = []
        for assignment, value in self.values(interpreter, frame):
            ref = assignment.target_plug
            if ref is None or ref.attr.lower() not in TRANSFORM_CHANNELS:
                continue
            writes.append((ref.node, ref.attr.lower(), value))
        return writes
