"""Host-side sampling: bind driven transform channels and pull their values per frame."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ._plug import PlugRef

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._eval_engine import Evaluator
    from ._graph import SceneGraph

logger = logging.getLogger(__name__)

# Long and short transform attribute names, keyed to the short channel name.
CHANNEL_ALIASES: dict[str, str] = {
    f"{long}{axis.upper()}": f"{short}{axis}"
    for long, short in (("translate", "t"), ("rotate", "r"), ("scale", "s"))
    for axis in "xyz"
} | {f"{short}{axis}": f"{short}{axis}" for short in "trs" for axis in "xyz"}


@dataclass(slots=True)
class TransformBinding:
    """Transform channels of one node that are driven by graph plugs.

    Attributes:
        node: Name of the driven transform node.
        channels: Short channel name (``tx`` ... ``sz``) to the source plug.

    """

    node: str
    channels: dict[str, str] = field(default_factory=dict)


def channel_for_attr(attr: str) -> str | None:
    """Map ``translateX``/``tx`` style attribute names to the short channel name."""
    return CHANNEL_ALIASES.get(attr)


def bindings_from_graph(graph: SceneGraph) -> list[TransformBinding]:
    """Collect one binding per node whose transform channels are connection destinations.

    Bindings come out in order of first appearance. A channel driven by several
    connections keeps the most recently declared source.
    """
    bindings: dict[str, TransformBinding] = {}
    for con in graph.connections:
        ref = PlugRef.parse(con.dst)
        if ref is None:
            continue
        channel = channel_for_attr(ref.attr)
        if channel is None:
            continue
        binding = bindings.setdefault(ref.node, TransformBinding(node=ref.node))
        binding.channels[channel] = con.src

    logger.debug("Bound %d transform node(s)", len(bindings))
    return list(bindings.values())


def driven_transform_plugs(graph: SceneGraph) -> list[str]:
    """Destination plugs of every connection that drives a transform channel, deduplicated."""
    plugs: dict[str, None] = {}
    for con in graph.connections:
        ref = PlugRef.parse(con.dst)
        if ref is not None and channel_for_attr(ref.attr) is not None:
            plugs[con.dst] = None
    return list(plugs)


def sample_bindings(
    evaluator: Evaluator,
    bindings: Iterable[TransformBinding],
    frame: float,
) -> dict[str, dict[str, float]]:
    """Pull every bound channel at ``frame``.

    Returns:
        Node name to ``{channel: value}``.

    """
    return {
        binding.node: {channel: evaluator.evaluate_plug(src, frame) for channel, src in binding.channels.items()}
        for binding in bindings
    }


@dataclass(frozen=True, slots=True)
class SampleSet:
    """Values of several plugs sampled over a frame range.

    Attributes:
        frames: Sampled frames in ascending order.
        values: Plug to one value per frame.

    """

    frames: tuple[float, ...]
    values: dict[str, list[float]]

    def to_dict(self) -> dict[str, object]:
        return {"frames": list(self.frames), "plugs": {plug: list(v) for plug, v in self.values.items()}}


def frame_range(start: float, end: float, step: float) -> list[float]:
    """Frames from ``start`` to ``end`` inclusive, ``step`` apart.

    Raises:
        ValueError: If ``step`` is not a positive finite number.

    Example:
        >>> frame_range(1.0, 2.0, 0.5)
        [1.0, 1.5, 2.0]

    """
    if not math.isfinite(step) or step <= 0:
        msg = f"step must be a positive number, got {step}"
        raise ValueError(msg)
    if end < start:
        return []
    count = math.floor((end - start) / step + 1e-9) + 1
    return [start + i * step for i in range(count)]


def sample_range(
    evaluator: Evaluator,
    plugs: Iterable[str],
    start: float,
    end: float,
    step: float = 1.0,
) -> SampleSet:
    """Evaluate ``plugs`` once per frame over ``[start, end]``.

    Frames are visited in order and every plug is pulled for a frame before
    moving on, so the evaluator's per-frame cache is shared across plugs.
    """
    plug_list = list(dict.fromkeys(plugs))
    frames = frame_range(start, end, step)
    values: dict[str, list[float]] = {plug: [] for plug in plug_list}
    for frame in frames:
        for plug in plug_list:
            values[plug].append(evaluator.evaluate_plug(plug, frame))
    logger.debug("Sampled %d plug(s) over %d frame(s)", len(plug_list), len(frames))
    return SampleSet(frames=tuple(frames), values=values)
