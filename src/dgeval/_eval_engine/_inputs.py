"""Input resolution for node formulas.

Every formula input is looked up the same way: an incoming connection on any
of the candidate attribute names wins, then the first authored literal among
them, then a default.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from dgeval._numeric import to_single
from dgeval._plug import make_plug

if TYPE_CHECKING:
    from dgeval._graph import Node

    from ._engine import Evaluator


@dataclass(frozen=True, slots=True)
class NodeInputs:
    """Read access to one node's inputs at one frame.

    Attributes:
        evaluator: The evaluator that owns the cache and recursion guard.
        node: The node whose formula is running.
        frame: The frame being evaluated.

    """

    evaluator: Evaluator
    node: Node
    frame: float

    def plug(self, attr: str) -> str:
        return make_plug(self.node.name, attr)

    def connected(self, *names: str) -> float | None:
        """Evaluate the source connected to the first candidate that has one."""
        graph = self.evaluator.graph
        for name in names:
            src = graph.incoming(self.plug(name))
            if src is not None:
                return self.evaluator.evaluate_plug(src, self.frame)
        return None

    def literal(self, *names: str) -> float | None:
        """Return the first authored literal among the candidates, in single precision."""
        for name in names:
            value = self.node.literal(name, None)
            if value is not None:
                return to_single(value)
        return None

    def value(self, *names: str, default: float = 0.0) -> float:
        """Connected source first, then literal, then ``default``."""
        connected = self.connected(*names)
        if connected is not None:
            return connected
        literal = self.literal(*names)
        return default if literal is None else literal

    def option(self, *keys: str, default: float) -> float:
        """Read a literal-only setting such as ``operation``."""
        return self.node.literal_any(keys, default)

    def element(self, array: str, index: int, default: float = 0.0) -> float:
        """Value of ``array[index]``: connection, then literal, then ``default``."""
        return self.value(f"{array}[{index}]", default=default)

    def has_element(self, array: str, index: int) -> bool:
        key = f"{array}[{index}]"
        return self.evaluator.graph.incoming(self.plug(key)) is not None or self.node.literal(key, None) is not None

    def indices(self, *arrays: str) -> list[int]:
        """Sorted union of the indices that exist for any of ``arrays``."""
        graph = self.evaluator.graph
        found: set[int] = set()
        for array in arrays:
            found.update(graph.array_indices(self.node.name, array))
        return sorted(found)

    def vector3(
        self,
        packed: tuple[str, ...],
        xs: tuple[str, ...],
        ys: tuple[str, ...],
        zs: tuple[str, ...],
    ) -> tuple[float, float, float]:
        """Read a triple such as ``inTranslate1``.

        Connected axis children win; otherwise a packed literal (three values on
        the parent attribute); otherwise per-axis literals.
        """
        x = self.connected(*xs)
        y = self.connected(*ys)
        z = self.connected(*zs)
        if x is not None or y is not None or z is not None:
            return (x or 0.0, y or 0.0, z or 0.0)

        for key in packed:
            attr = self.node.attribute(key)
            if attr is not None:
                vec = attr.vector3()
                if vec is not None:
                    return (to_single(vec[0]), to_single(vec[1]), to_single(vec[2]))

        return (
            self.literal(*xs) or 0.0,
            self.literal(*ys) or 0.0,
            self.literal(*zs) or 0.0,
        )
