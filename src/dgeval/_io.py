"""Scene file loading and sample export.

The scene format is a small TOML/JSON rendition of the node, attribute and
connection records a scene parser produces:

.. code-block:: toml

    [nodes.md1]
    type = "multiplyDivide"
    attributes = { operation = 2, "i1x" = 10, "i2x" = 4 }

    [[connections]]
    src = "md1.outputX"
    dst = "ball.tx"

    [curves.ball_ty]
    keys = [[0, 0], [24, 10]]
"""

from __future__ import annotations

import json
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ._curves import AnimCurve, LinearCurve
from ._graph import Attribute, Connection, Node, SceneGraph

if TYPE_CHECKING:
    from ._binding import SampleSet

logger = logging.getLogger(__name__)


class SceneError(Exception):
    """Error reading or validating a scene file."""


# =============================================================================
# File Schema
# =============================================================================

type AttributeValue = bool | int | float | str | list[bool | int | float | str]


class NodeModel(BaseModel):
    """One node record: its type tag and authored attributes in declaration order."""

    model_config = ConfigDict(extra="forbid")

    type: str
    attributes: dict[str, AttributeValue] = Field(default_factory=dict)


class ConnectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    src: str
    dst: str
    force: bool = False


class CurveModel(BaseModel):
    """Keys of a stand-in curve as ``[time, value]`` pairs."""

    model_config = ConfigDict(extra="forbid")

    keys: list[tuple[float, float]] = Field(default_factory=list)


class SceneFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nodes: dict[str, NodeModel] = Field(default_factory=dict)
    connections: list[ConnectionModel] = Field(default_factory=list)
    curves: dict[str, CurveModel] = Field(default_factory=dict)


# =============================================================================
# Conversion
# =============================================================================


@dataclass(frozen=True, slots=True)
class LoadedScene:
    """A scene graph together with the curves that evaluate its curve nodes."""

    graph: SceneGraph
    curves: dict[str, AnimCurve] = field(default_factory=dict)


def _token(value: bool | float | str) -> str:  # noqa: FBT001
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def _to_tokens(value: AttributeValue) -> tuple[str, ...]:
    if isinstance(value, list):
        return tuple(_token(v) for v in value)
    return (_token(value),)


def scene_from_model(scene: SceneFile) -> LoadedScene:
    """Convert a validated scene file into graph records and curves.

    This is a pure function: no file access happens here.
    """
    nodes = [
        Node(
            name=name,
            type=model.type,
            attributes=tuple(Attribute(key=key, tokens=_to_tokens(value)) for key, value in model.attributes.items()),
        )
        for name, model in scene.nodes.items()
    ]
    connections = [Connection(src=c.src, dst=c.dst, force=c.force) for c in scene.connections]
    curves: dict[str, AnimCurve] = {name: LinearCurve.from_keys(c.keys) for name, c in scene.curves.items()}
    return LoadedScene(graph=SceneGraph.from_records(nodes, connections), curves=curves)


def scene_from_dict(data: dict[str, Any]) -> LoadedScene:
    """Validate raw scene data and convert it.

    Raises:
        SceneError: If the data does not match the scene schema.

    """
    try:
        scene = SceneFile.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid scene data:\n{e}"
        raise SceneError(msg) from e
    return scene_from_model(scene)


def load_scene(path: Path | str) -> LoadedScene:
    """Load a scene from a ``.toml`` or ``.json`` file.

    Args:
        path: Scene file; the format is chosen by suffix.

    Returns:
        The loaded scene.

    Raises:
        SceneError: If the file cannot be read, parsed or validated.

    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in (".toml", ".json"):
        msg = f"Unsupported scene file type '{path.suffix}' (expected .toml or .json): {path}"
        raise SceneError(msg)

    try:
        with path.open("rb") as f:
            data = tomllib.load(f) if suffix == ".toml" else json.load(f)
    except OSError as e:
        msg = f"Cannot read scene file {path}: {e}"
        raise SceneError(msg) from e
    except (tomllib.TOMLDecodeError, json.JSONDecodeError, UnicodeDecodeError) as e:
        msg = f"Invalid {suffix[1:].upper()} in {path}: {e}"
        raise SceneError(msg) from e

    if not isinstance(data, dict):
        msg = f"Scene file {path} must contain a table/object at the top level"
        raise SceneError(msg)

    loaded = scene_from_dict(data)
    logger.debug(f"Loaded scene from {path}: {len(loaded.graph)} nodes, {len(loaded.curves)} curves")
    return loaded


def export_samples(samples: SampleSet, output_path: Path | str) -> None:
    """Write sampled values to TOML (or JSON when the path ends in ``.json``).

    The document has a ``frames`` array and a ``plugs`` table mapping each
    plug to one value per frame.
    """
    output_path = Path(output_path)
    data = samples.to_dict()
    if output_path.suffix.lower() == ".json":
        output_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    else:
        with output_path.open("wb") as f:
            tomli_w.dump(data, f)

    logger.debug(f"Exported samples to {output_path}")
