"""Graph module providing the imported scene model.

This module contains:
- Attribute, Node, Connection: records handed over by a file parser
- SceneGraph: immutable indices over those records
- find_blocked_nodes: cycle detection used for diagnostics
"""

from ._algorithms import find_blocked_nodes
from ._scene_graph import CURVE_TYPE_PREFIX, Attribute, Connection, Node, SceneGraph

__all__ = [
    "CURVE_TYPE_PREFIX",
    "Attribute",
    "Connection",
    "Node",
    "SceneGraph",
    "find_blocked_nodes",
]
