"""Tests for plug addressing, the scene graph model and its graph algorithms."""

import pytest

from dgeval._graph import Attribute, Connection, Node, SceneGraph, find_blocked_nodes
from dgeval._plug import PlugRef, array_base, extract_index, make_plug, normalize_plug, parse_float


class TestPlugHelpers:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("ball.tx", "ball.tx"), ('  "ball.tx" ', "ball.tx"), ('"', '"'), ("", "")],
    )
    def test_normalize_plug(self, raw: str, expected: str) -> None:
        assert normalize_plug(raw) == expected

    def test_parse_splits_on_first_dot(self) -> None:
        assert PlugRef.parse("pCube1.translate.translateX") == PlugRef("pCube1", "translate.translateX")

    @pytest.mark.parametrize("plug", ["noattr", ".tx", "ball.", ""])
    def test_parse_rejects_malformed(self, plug: str) -> None:
        assert PlugRef.parse(plug) is None

    def test_parse_last_splits_on_last_dot(self) -> None:
        ref = PlugRef.parse_last("|grp|ns:ball.tx")
        assert ref == PlugRef("|grp|ns:ball", "tx")
        assert str(ref) == "|grp|ns:ball.tx"

    def test_make_plug_strips_attr_prefix(self) -> None:
        assert make_plug("ball", ".tx") == "ball.tx"

    @pytest.mark.parametrize(
        ("key", "index"),
        [("input[3]", 3), (".weight[2:5]", 2), ("input", None), ("input[]", None), ("input[x]", None)],
    )
    def test_extract_index(self, key: str, index: int | None) -> None:
        assert extract_index(key) == index

    def test_array_base(self) -> None:
        assert array_base(".input3D[1].input3Dx") == "input3D"
        assert array_base("output") is None

    @pytest.mark.parametrize(
        ("token", "value"),
        [("1.5", 1.5), ('"2"', 2.0), (" -3e2 ", -300.0), ("abc", None), ("nan", None), ("inf", None), ("", None)],
    )
    def test_parse_float(self, token: str, value: float | None) -> None:
        assert parse_float(token) == value


class TestAttribute:
    def test_float_value_scans_from_end(self) -> None:
        attr = Attribute(".w", ("-type", '"double"', "0.25"))
        assert attr.name == "w"
        assert attr.float_value() == 0.25

    def test_float_value_default(self) -> None:
        assert Attribute("name", ('"abc"',)).float_value(default=-1.0) == -1.0
        assert Attribute("name", ()).float_value(default=None) is None

    def test_vector3(self) -> None:
        assert Attribute("t", ("-type", '"double3"', "1", "2", "3")).vector3() == (1.0, 2.0, 3.0)
        assert Attribute("t", ("1", "2")).vector3() is None

    def test_text_value_unquotes(self) -> None:
        assert Attribute("s", ("-type", '"string"', '"a = \\"b\\";"')).text_value() == 'a = "b";'
        assert Attribute("s", ()).text_value() == ""


class TestNode:
    @pytest.fixture
    def node(self) -> Node:
        return Node(
            "md",
            "multiplyDivide",
            (Attribute(".op", ("2",)), Attribute("operation", ("3",)), Attribute(".op", ("1",))),
        )

    def test_attribute_first_declaration_wins(self, node: Node) -> None:
        attr = node.attribute("op")
        assert attr is not None
        assert attr.tokens == ("2",)

    def test_literal(self, node: Node) -> None:
        assert node.literal(".operation") == 3.0
        assert node.literal("missing", None) is None

    def test_literal_any_uses_declaration_order(self, node: Node) -> None:
        assert node.literal_any(("operation", "op"), default=1.0) == 2.0

    def test_is_curve(self) -> None:
        assert Node("c", "animCurveTL").is_curve
        assert not Node("t", "transform").is_curve


class TestSceneGraph:
    def test_first_duplicate_node_wins(self) -> None:
        graph = SceneGraph.from_records([Node("a", "transform"), Node("a", "joint"), Node("", "transform")])
        assert len(graph) == 1
        assert graph.nodes["a"].type == "transform"
        assert "a" in graph

    def test_accepts_mapping(self) -> None:
        graph = SceneGraph.from_records({"a": Node("a", "transform")})
        assert graph.node("a") is not None
        assert graph.node("b") is None

    def test_connections_are_normalized(self) -> None:
        graph = SceneGraph.from_records([], [Connection(' "a.tx" ', "b.tx "), Connection("", "c.tx")])
        assert graph.connections == (Connection("a.tx", "b.tx"),)
        assert graph.incoming('"b.tx"') == "a.tx"

    def test_incoming_last_wins(self) -> None:
        graph = SceneGraph.from_records([], [Connection("a.tx", "c.tx"), Connection("b.tx", "c.tx")])
        assert graph.incoming("c.tx") == "b.tx"
        assert graph.incoming_all("c.tx") == ("a.tx", "b.tx")
        assert graph.incoming("a.tx") is None

    def test_array_indices_merge_connections_and_literals(self) -> None:
        graph = SceneGraph.from_records(
            [Node("bw", "blendWeighted", (Attribute(".input[0]", ("3",)), Attribute("weight[0:1]", ("1", "1"))))],
            [Connection("a.tx", "bw.input[5]"), Connection("b.tx", "bw.input[2]")],
        )
        assert graph.array_indices("bw", "input") == (0, 2, 5)
        assert graph.array_indices("bw", ".weight") == (0,)
        assert graph.array_indices("bw", "output") == ()

    def test_driven_plugs(self) -> None:
        graph = SceneGraph.from_records([], [Connection("a.tx", "b.tx")])
        assert graph.driven_plugs() == frozenset({"b.tx"})

    def test_cyclic_plugs_direct(self) -> None:
        graph = SceneGraph.from_records(
            [],
            [Connection("a.tx", "b.tx"), Connection("b.tx", "a.tx"), Connection("c.tx", "d.tx")],
        )
        assert graph.cyclic_plugs() == frozenset({"a.tx", "b.tx"})

    def test_cyclic_plugs_through_nodes(self) -> None:
        graph = SceneGraph.from_records(
            [],
            [Connection("add2.output", "add1.i1"), Connection("add1.output", "add2.i1")],
        )
        assert graph.cyclic_plugs() == frozenset({"add1.i1", "add1.output", "add2.i1", "add2.output"})

    def test_acyclic_graph_has_no_cyclic_plugs(self) -> None:
        graph = SceneGraph.from_records([], [Connection("a.tx", "md.i1x"), Connection("md.ox", "b.tx")])
        assert graph.cyclic_plugs() == frozenset()


class TestAlgorithms:
    def test_find_blocked_nodes(self) -> None:
        blocked = find_blocked_nodes({"a": ["b"], "b": ["a", "c"], "c": [], "d": ["c"]})
        assert blocked == frozenset({"a", "b", "c"})

    def test_acyclic_graph_has_no_blocked_nodes(self) -> None:
        assert find_blocked_nodes({"a": ["b"], "b": ["c"], "c": []}) == frozenset()
