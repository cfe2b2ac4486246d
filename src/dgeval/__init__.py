"""Demand-driven value evaluation for imported dependency-graph scenes."""

__all__ = [
    "AnimCurve",
    "Attribute",
    "Connection",
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticKind",
    "Evaluator",
    "ExpressionProgram",
    "Interpreter",
    "LinearCurve",
    "LoadedScene",
    "Node",
    "NodeKind",
    "PlugRef",
    "RotateOrder",
    "SampleSet",
    "SceneError",
    "SceneGraph",
    "TransformBinding",
    "bindings_from_graph",
    "export_samples",
    "is_supported_compute_node_type",
    "load_scene",
    "normalize_plug",
    "sample_bindings",
    "sample_range",
    "slerp_euler",
]

from ._binding import SampleSet, TransformBinding, bindings_from_graph, sample_bindings, sample_range
from ._curves import AnimCurve, LinearCurve
from ._eval_engine import (
    Diagnostic,
    DiagnosticCollector,
    DiagnosticKind,
    Evaluator,
    NodeKind,
    is_supported_compute_node_type,
)
from ._expr import ExpressionProgram, Interpreter
from ._graph import Attribute, Connection, Node, SceneGraph
from ._io import LoadedScene, SceneError, export_samples, load_scene
from ._plug import PlugRef, normalize_plug
from ._rotation import RotateOrder, slerp_euler
