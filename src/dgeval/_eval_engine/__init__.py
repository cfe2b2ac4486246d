"""Evaluation engine module for dgeval.

This module answers plug-value queries against an imported scene graph.
Values are pulled on demand and memoized per frame; nothing is pushed.

Key types:
- Evaluator: per-scene evaluator with per-frame cache and recursion guard
- NodeKind: closed set of node kinds with a formula
- Diagnostic / DiagnosticCollector: optional reporting of default-zero fallbacks
- is_supported_compute_node_type: coverage query for node type names
"""

from ._diagnostics import Diagnostic, DiagnosticCollector, DiagnosticKind, DiagnosticSink
from ._engine import Evaluator
from ._formulas import FORMULAS, OUTPUT_GATED, Formula, looks_like_output
from ._inputs import NodeInputs
from ._kinds import NodeKind, is_supported_compute_node_type, node_kind_for_type

__all__ = [
    "FORMULAS",
    "OUTPUT_GATED",
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticKind",
    "DiagnosticSink",
    "Evaluator",
    "Formula",
    "NodeInputs",
    "NodeKind",
    "is_supported_compute_node_type",
    "looks_like_output",
    "node_kind_for_type",
]
