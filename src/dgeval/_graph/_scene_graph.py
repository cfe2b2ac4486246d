"""Immutable node/attribute/connection model of an imported scene."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from dgeval._plug import PlugRef, array_base, extract_index, normalize_plug, parse_float, strip_attr_prefix

from ._algorithms import find_blocked_nodes

logger = logging.getLogger(__name__)

CURVE_TYPE_PREFIX = "animCurve"


@dataclass(frozen=True, slots=True)
class Attribute:
    """One authored attribute: its key and the raw tokens written after it.

    Attributes:
        key: Attribute name as written in the file, possibly with a leading
            ``.`` and an array index (``.input[3]``).
        tokens: Raw value tokens in file order. Typed headers such as
            ``-type "double3"`` may precede the values.

    """

    key: str
    tokens: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        """Key without the leading ``.``."""
        return strip_attr_prefix(self.key)

    def float_value(self, default: float | None = 0.0) -> float | None:
        """Return the last token that parses as a float, scanning from the end.

        Example:
            >>> Attribute(".w", ("-type", '"double"', "0.25")).float_value()
            0.25
            >>> Attribute(".name", ('"abc"',)).float_value(default=-1.0)
            -1.0

        """
        for token in reversed(self.tokens):
            value = parse_float(token)
            if value is not None:
                return value
        return default

    def vector3(self) -> tuple[float, float, float] | None:
        """Return the first three float tokens (packed ``double3``), or None."""
        found: list[float] = []
        for token in self.tokens:
            value = parse_float(token)
            if value is None:
                continue
            found.append(value)
            if len(found) == 3:  # noqa: PLR2004
                return (found[0], found[1], found[2])
        return None

    def text_value(self) -> str:
        """Return the last token with its surrounding quotes removed (string payloads)."""
        if not self.tokens:
            return ""
        token = self.tokens[-1].strip()
        if len(token) >= 2 and token[0] == token[-1] == '"':  # noqa: PLR2004
            token = token[1:-1]
        return token.replace('\\"', '"')


@dataclass(frozen=True, slots=True)
class Node:
    """A named dependency-graph node.

    Attributes:
        name: Unique node name.
        type: Type tag used for formula dispatch (e.g. ``multiplyDivide``).
        attributes: Authored attributes in declaration order.

    """

    name: str
    type: str
    attributes: tuple[Attribute, ...] = ()

    def attribute(self, key: str) -> Attribute | None:
        """Find an attribute by key, accepting keys with or without a leading ``.``.

        The first declaration wins when a key repeats.
        """
        key = strip_attr_prefix(key)
        for attr in self.attributes:
            if attr.name == key:
                return attr
        return None

    def literal(self, key: str, default: float | None = 0.0) -> float | None:
        """Read the literal float value of ``key``, or ``default`` when absent/unparseable."""
        attr = self.attribute(key)
        if attr is None:
            return default
        return attr.float_value(default)

    def literal_any(self, keys: Iterable[str], default: float) -> float:
        """Read the first attribute among ``keys`` that is declared on the node.

        Attribute declaration order decides, not key order; this mirrors how
        option flags such as ``operation``/``op`` are looked up.
        """
        wanted = {strip_attr_prefix(k) for k in keys}
        for attr in self.attributes:
            if attr.name in wanted:
                value = attr.float_value(default)
                return default if value is None else value
        return default

    @property
    def is_curve(self) -> bool:
        return self.type.startswith(CURVE_TYPE_PREFIX)


@dataclass(frozen=True, slots=True)
class Connection:
    """A directed attribute-to-attribute edge: ``dst`` is driven by ``src``."""

    src: str
    dst: str
    force: bool = False


@dataclass(frozen=True, slots=True)
class SceneGraph:
    """Read-only indices over nodes, attributes and connections.

    Built once per imported scene with :meth:`from_records`; evaluation state
    (cache, recursion guard) lives on the evaluator, never here.

    Attributes:
        nodes: Node by exact name.
        connections: All connections in declaration order.
        _incoming: Destination plug to its sources, in declaration order.
        _array_indices: ``(node, array attr)`` to the sorted indices that exist
            either as a connected destination or as an authored attribute.

    """

    nodes: dict[str, Node] = field(default_factory=dict)
    connections: tuple[Connection, ...] = ()
    _incoming: dict[str, tuple[str, ...]] = field(default_factory=dict)
    _array_indices: dict[tuple[str, str], tuple[int, ...]] = field(default_factory=dict)

    @classmethod
    def from_records(
        cls,
        nodes: Iterable[Node] | Mapping[str, Node],
        connections: Iterable[Connection] = (),
    ) -> SceneGraph:
        """Index node and connection records handed over by a file parser.

        Args:
            nodes: Node records, either as an iterable or a name-keyed mapping.
                On duplicate names the first record wins.
            connections: Connections in file declaration order.

        Returns:
            A new SceneGraph.

        Example:
            >>> graph = SceneGraph.from_records(
            ...     [Node("a", "transform"), Node("b", "transform")],
            ...     [Connection("a.tx", "b.tx"), Connection("a.ty", "b.tx")],
            ... )
            >>> graph.incoming("b.tx")
            'a.ty'

        """
        node_iter = nodes.values() if isinstance(nodes, Mapping) else nodes
        by_name: dict[str, Node] = {}
        for node in node_iter:
            if not node.name:
                continue
            if node.name in by_name:
                logger.debug("Ignoring duplicate node definition %r", node.name)
                continue
            by_name[node.name] = node

        kept: list[Connection] = []
        incoming: defaultdict[str, list[str]] = defaultdict(list)
        indices: defaultdict[tuple[str, str], set[int]] = defaultdict(set)

        for con in connections:
            src = normalize_plug(con.src)
            dst = normalize_plug(con.dst)
            if not src or not dst:
                continue
            kept.append(Connection(src=src, dst=dst, force=con.force))
            incoming[dst].append(src)

            ref = PlugRef.parse(dst)
            if ref is not None:
                _add_index(indices, ref.node, ref.attr)

        for node in by_name.values():
            for attr in node.attributes:
                _add_index(indices, node.name, attr.name)

        logger.debug("Indexed %d nodes and %d connections", len(by_name), len(kept))

        return cls(
            nodes=by_name,
            connections=tuple(kept),
            _incoming={k: tuple(v) for k, v in incoming.items()},
            _array_indices={k: tuple(sorted(v)) for k, v in indices.items()},
        )

    def node(self, name: str) -> Node | None:
        return self.nodes.get(name)

    def incoming(self, dst: str) -> str | None:
        """Return the source driving ``dst``.

        When several connections target the same destination the most
        recently declared one wins.
        """
        sources = self._incoming.get(normalize_plug(dst))
        if not sources:
            return None
        return sources[-1]

    def incoming_all(self, dst: str) -> tuple[str, ...]:
        """Return every source recorded for ``dst`` in declaration order."""
        return self._incoming.get(normalize_plug(dst), ())

    def array_indices(self, node: str, attr: str) -> tuple[int, ...]:
        """Sorted, deduplicated indices of array attribute ``attr`` on ``node``.

        Both connected destinations (``node.attr[i]``) and authored literal
        elements count.
        """
        return self._array_indices.get((node, strip_attr_prefix(attr)), ())

    def driven_plugs(self) -> frozenset[str]:
        return frozenset(self._incoming)

    def cyclic_plugs(self) -> frozenset[str]:
        """Plugs on a connection cycle or downstream of one.

        Only explicit connections are considered; formula dependencies inside a
        node (``output`` reading ``input``) are bridged by treating every plug
        on a node as feeding every other plug on the same node.
        """
        successors: defaultdict[str, set[str]] = defaultdict(set)
        plugs_by_node: defaultdict[str, set[str]] = defaultdict(set)
        for con in self.connections:
            successors[con.src].add(con.dst)
            successors.setdefault(con.dst, set())
            for plug in (con.src, con.dst):
                ref = PlugRef.parse(plug)
                if ref is not None:
                    plugs_by_node[ref.node].add(plug)

        # Inputs of a node reach its outputs through the node's formula.
        for plugs in plugs_by_node.values():
            inputs = [p for p in plugs if p in self._incoming]
            outputs = [p for p in plugs if p not in self._incoming]
            for i in inputs:
                successors[i].update(outputs)

        return find_blocked_nodes(successors)

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self.nodes)

    def __contains__(self, name: str) -> bool:
        """Check if a node with the given name exists."""
        return name in self.nodes


def _add_index(indices: defaultdict[tuple[str, str], set[int]], node: str, attr: str) -> None:
    base = array_base(attr)
    if base is None:
        return
    idx = extract_index(attr)
    if idx is not None:
        indices[(node, base)].add(idx)
