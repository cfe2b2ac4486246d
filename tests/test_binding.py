"""Tests for transform bindings and range sampling."""

import pytest

from dgeval import Attribute, Connection, Node, SceneGraph
from dgeval._binding import (
    bindings_from_graph,
    channel_for_attr,
    driven_transform_plugs,
    frame_range,
    sample_bindings,
    sample_range,
)
from dgeval._curves import LinearCurve
from dgeval._eval_engine import Evaluator


@pytest.fixture
def graph() -> SceneGraph:
    return SceneGraph.from_records(
        [
            Node("ctrl", "transform", (Attribute("tx", ("2",)),)),
            Node("md", "multiplyDivide", (Attribute("i2x", ("3",)),)),
            Node("ball", "transform"),
            Node("curve1", "animCurveTL"),
        ],
        [
            Connection("ctrl.tx", "md.i1x"),
            Connection("md.outputX", "ball.translateX"),
            Connection("curve1.output", "ball.ty"),
            Connection("ctrl.tx", "ball.visibility"),
            Connection("ctrl.tx", "ball.ty"),
        ],
    )


@pytest.fixture
def evaluator(graph: SceneGraph) -> Evaluator:
    return Evaluator(graph, {"curve1": LinearCurve.from_keys([(0.0, 0.0), (10.0, 10.0)])})


class TestChannels:
    @pytest.mark.parametrize(
        ("attr", "channel"),
        [("translateX", "tx"), ("rz", "rz"), ("scaleY", "sy"), ("visibility", None), ("translate", None)],
    )
    def test_channel_for_attr(self, attr: str, channel: str | None) -> None:
        assert channel_for_attr(attr) == channel


class TestBindings:
    def test_bindings_from_graph(self, graph: SceneGraph) -> None:
        (binding,) = bindings_from_graph(graph)
        assert binding.node == "ball"
        # the later ball.ty connection replaces the curve
        assert binding.channels == {"tx": "md.outputX", "ty": "ctrl.tx"}

    def test_driven_transform_plugs(self, graph: SceneGraph) -> None:
        assert driven_transform_plugs(graph) == ["ball.translateX", "ball.ty"]

    def test_sample_bindings(self, graph: SceneGraph, evaluator: Evaluator) -> None:
        assert sample_bindings(evaluator, bindings_from_graph(graph), 4.0) == {"ball": {"tx": 6.0, "ty": 2.0}}


class TestSampling:
    def test_frame_range_is_inclusive(self) -> None:
        assert frame_range(1.0, 2.0, 0.5) == [1.0, 1.5, 2.0]
        assert frame_range(0.0, 0.3, 0.1) == pytest.approx([0.0, 0.1, 0.2, 0.3])

    def test_frame_range_empty_when_reversed(self) -> None:
        assert frame_range(5.0, 1.0, 1.0) == []

    @pytest.mark.parametrize("step", [0.0, -1.0, float("nan")])
    def test_frame_range_rejects_bad_step(self, step: float) -> None:
        with pytest.raises(ValueError, match="step"):
            frame_range(0.0, 1.0, step)

    def test_sample_range(self, evaluator: Evaluator) -> None:
        samples = sample_range(evaluator, ["curve1.output", "ball.translateX", "curve1.output"], 0.0, 10.0, 5.0)
        assert samples.frames == (0.0, 5.0, 10.0)
        assert samples.values == {"curve1.output": [0.0, 5.0, 10.0], "ball.translateX": [6.0, 6.0, 6.0]}
        assert samples.to_dict()["frames"] == [0.0, 5.0, 10.0]
