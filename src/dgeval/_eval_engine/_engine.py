"""Demand-driven, memoized plug evaluator."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from dgeval._expr import DeferEvaluation, ExpressionProgram, Interpreter
from dgeval._numeric import approximately, to_single
from dgeval._plug import PlugRef, make_plug, normalize_plug
from dgeval._rotation import slerp_euler

from ._diagnostics import Diagnostic, DiagnosticKind, DiagnosticSink
from ._formulas import FORMULAS, OUTPUT_GATED, looks_like_output
from ._inputs import NodeInputs
from ._kinds import NodeKind, node_kind_for_type

if TYPE_CHECKING:
    from collections.abc import Mapping

    from dgeval._curves import AnimCurve
    from dgeval._graph import Node, SceneGraph
    from dgeval._rotation import RotationBlender

logger = logging.getLogger(__name__)

_CURVE_INPUTS = ("input", "i")
_EXPRESSION_TEXT_KEYS = ("ixp", "internalExpression", "s", "expression", "expr", "e")


class _InputPending(DeferEvaluation):
    """A formula needs a plug that has not been computed for this frame yet."""

    def __init__(self, plug: str) -> None:
        super().__init__(plug)
        self.plug = plug


class Evaluator:
    """Answer "what is the value of plug P at frame F?" for one imported scene.

    The evaluator owns a per-frame value cache and a recursion guard. Asking
    for a different frame (beyond single-precision tolerance) clears both.
    A plug that is requested again while it is still being resolved
    evaluates to ``0.0``, which is how cycles terminate.

    Plugs are resolved on an explicit stack rather than the Python call stack,
    so graph depth is bounded only by memory. A formula that reads an input
    not yet in the cache is abandoned, the input is pushed and computed, and
    the formula runs again. Formulas are pure, so the retry sees the same
    inputs in the same order as a depth-first walk would.

    The public entry point never raises and always returns a finite float
    rounded to single precision; every fallback is reported to the optional
    diagnostic sink.

    Not thread-safe: use one instance per thread.

    Example:
        >>> graph = SceneGraph.from_records(
        ...     [Node("add", "addDoubleLinear", (Attribute("i1", ("2",)), Attribute("i2", ("3",))))],
        ... )
        >>> Evaluator(graph).evaluate_plug("add.output", 1.0)
        5.0

    """

    def __init__(
        self,
        graph: SceneGraph,
        curves: Mapping[str, AnimCurve] | None = None,
        *,
        rotation: RotationBlender | None = None,
        on_diagnostic: DiagnosticSink | None = None,
    ) -> None:
        self.graph = graph
        self.rotation: RotationBlender = rotation or slerp_euler
        self.interpreter = Interpreter(self.resolve_token)
        self._curves: dict[str, AnimCurve] = dict(curves or {})
        self._sink = on_diagnostic
        self._kinds: dict[str, NodeKind] = {name: node_kind_for_type(node.type) for name, node in graph.nodes.items()}
        self._programs: dict[str, ExpressionProgram] = {}

        self._frame: float | None = None
        self._cache: dict[str, float] = {}
        self._guard: set[str] = set()
        self._current: str | None = None
        self._cycles_seen: set[tuple[str, str]] = set()

    @property
    def frame(self) -> float | None:
        """The frame the cache currently holds values for."""
        return self._frame

    def kind_of(self, node_name: str) -> NodeKind:
        return self._kinds.get(node_name, NodeKind.LITERAL)

    def reset(self) -> None:
        """Drop cached values and forget the current frame."""
        self._frame = None
        self._cache.clear()
        self._guard.clear()

    def evaluate_plug(self, plug: str, frame: float) -> float:
        """Return the value of ``plug`` at ``frame``.

        Called from inside a formula (through :class:`NodeInputs` or the
        expression resolver), this reads a dependency of the plug currently
        being computed instead of starting a new query.

        Args:
            plug: ``node.attr``; surrounding quotes and whitespace are ignored.
            frame: Time to evaluate at.

        Returns:
            The value, or ``0.0`` when it cannot be computed.

        """
        if not isinstance(plug, str) or not plug.strip():
            return 0.0
        if self._current is not None:
            return self._read(plug)
        return self._run(plug, frame)

    def resolve_token(self, token: str, frame: float) -> float:
        """Resolve a ``node.attr`` identifier from expression text.

        The identifier is split on its last ``.``. A hierarchical node path
        (``|grp|ball``) falls back to its leaf name when the full path is unknown.
        """
        ref = PlugRef.parse_last(token)
        if ref is None:
            return 0.0
        node = ref.node
        if node not in self.graph and node not in self._curves and "|" in node:
            node = node.rsplit("|", 1)[-1]
        return self.evaluate_plug(make_plug(node, ref.attr), frame)

    def expression_program(self, node: Node) -> ExpressionProgram:
        """Parse (once) the source text of an expression node."""
        program = self._programs.get(node.name)
        if program is None:
            text = ""
            for key in _EXPRESSION_TEXT_KEYS:
                attr = node.attribute(key)
                if attr is not None:
                    text = attr.text_value()
                    break
            program = ExpressionProgram.from_text(text)
            self._programs[node.name] = program
            logger.debug("Parsed %d assignment(s) for expression %s", len(program.assignments), node.name)
        return program

    # ------------------------------------------------------------------ internals

    def _report(self, kind: DiagnosticKind, plug: str, message: str = "") -> None:
        diagnostic = Diagnostic(kind=kind, plug=plug, message=message)
        logger.debug("%s", diagnostic)
        if self._sink is not None:
            self._sink(diagnostic)

    def _run(self, plug: str, frame: float) -> float:
        if self._frame is None or not approximately(self._frame, frame):
            self._frame = frame
            self._cache.clear()
            self._guard.clear()

        root = normalize_plug(plug)
        cached = self._cache.get(root)
        if cached is not None:
            return cached

        self._cycles_seen.clear()
        stack = [root]
        self._guard.add(root)
        try:
            while stack:
                current = stack[-1]
                self._current = current
                try:
                    value = self._compute(current, frame)
                except _InputPending as pending:
                    stack.append(pending.plug)
                    self._guard.add(pending.plug)
                    continue
                except Exception as e:  # noqa: BLE001
                    self._report(DiagnosticKind.FORMULA_ERROR, current, f"{type(e).__name__}: {e}")
                    value = 0.0
                finally:
                    self._current = None

                stack.pop()
                self._guard.discard(current)
                self._cache[current] = self._finish(current, value)
        finally:
            self._guard.difference_update(stack)

        return self._cache[root]

    def _read(self, plug: str) -> float:
        """Value of a dependency of the plug being computed."""
        plug = normalize_plug(plug)
        cached = self._cache.get(plug)
        if cached is not None:
            return cached
        if plug in self._guard:
            # A retried formula reads the same cyclic input again; report it once.
            edge = (self._current or plug, plug)
            if edge not in self._cycles_seen:
                self._cycles_seen.add(edge)
                self._report(DiagnosticKind.CYCLE, plug, "already being resolved")
            return 0.0
        raise _InputPending(plug)

    def _finish(self, plug: str, value: float) -> float:
        value = to_single(value)
        if not math.isfinite(value):
            self._report(DiagnosticKind.NON_FINITE, plug, repr(value))
            return 0.0
        return value

    def _compute(self, plug: str, frame: float) -> float:
        src = self.graph.incoming(plug)
        if src is not None:
            return self._read(src)

        ref = PlugRef.parse(plug)
        if ref is None:
            self._report(DiagnosticKind.MISSING_NODE, plug, "not a node.attr plug")
            return 0.0

        curve = self._curves.get(ref.node)
        if curve is not None:
            return self._evaluate_curve(ref.node, curve, frame)

        node = self.graph.node(ref.node)
        if node is None:
            self._report(DiagnosticKind.MISSING_NODE, plug)
            return 0.0

        kind = self.kind_of(node.name)
        formula = FORMULAS.get(kind)
        if formula is None:
            if kind == NodeKind.ANIM_CURVE:
                self._report(DiagnosticKind.UNSUPPORTED_NODE, plug, "curve node without a curve")
            else:
                self._report(DiagnosticKind.UNSUPPORTED_NODE, plug, f"type {node.type!r} read as literal")
            return node.literal(ref.attr, 0.0) or 0.0

        if kind in OUTPUT_GATED and not looks_like_output(ref.attr):
            return node.literal(ref.attr, 0.0) or 0.0

        return float(formula(NodeInputs(self, node, frame), ref.attr))

    def _evaluate_curve(self, name: str, curve: AnimCurve, frame: float) -> float:
        # Driven key: a connected input replaces time as the curve parameter.
        for attr in _CURVE_INPUTS:
            src = self.graph.incoming(make_plug(name, attr))
            if src is not None:
                return float(curve.evaluate(self._read(src)))
        return float(curve.evaluate(frame))
