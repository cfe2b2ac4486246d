"""Plug addressing helpers.

A plug is the string ``node.attr`` that names one attribute on one node.
Plugs are compared by exact (ordinal, case-sensitive) string equality after
normalization, so ``input[3]`` and ``input`` are distinct plugs.
"""

import math
from dataclasses import dataclass
from typing import Self


def normalize_plug(plug: str) -> str:
    """Trim surrounding whitespace and one pair of surrounding double quotes."""
    s = plug.strip()
    if len(s) >= 2 and s[0] == '"' and s[-1] == '"':  # noqa: PLR2004
        s = s[1:-1]
    return s


def strip_attr_prefix(attr: str) -> str:
    """Drop the leading ``.`` that authoring files put in front of attribute names."""
    return attr.removeprefix(".")


@dataclass(slots=True, frozen=True)
class PlugRef:
    """A plug split into its node name and attribute path."""

    node: str
    attr: str

    def __str__(self) -> str:
        return f"{self.node}.{self.attr}"

    @classmethod
    def parse(cls, plug: str) -> Self | None:
        """Split on the first ``.``.

        Returns None when the plug has no node part or no attribute part.

        Example:
            >>> PlugRef.parse("blend1.output")
            PlugRef(node='blend1', attr='output')
            >>> PlugRef.parse("pCube1.translate.translateX").attr
            'translate.translateX'

        """
        s = normalize_plug(plug)
        node, sep, attr = s.partition(".")
        if not sep or not node or not attr:
            return None
        return cls(node=node, attr=attr)

    @classmethod
    def parse_last(cls, token: str) -> Self | None:
        """Split on the last ``.``.

        Expression text refers to hierarchical paths such as ``|grp|ctrl.tx``
        where only the final segment is the attribute.
        """
        s = normalize_plug(token)
        node, sep, attr = s.rpartition(".")
        if not sep or not node or not attr:
            return None
        return cls(node=node, attr=strip_attr_prefix(attr))


def make_plug(node: str, attr: str) -> str:
    return f"{node}.{strip_attr_prefix(attr)}"


def extract_index(key: str) -> int | None:
    """Extract the first array index from an attribute key.

    Ranged keys written as ``input[0:7]`` report their first index.

    Example:
        >>> extract_index("input[3]")
        3
        >>> extract_index("weight[2:5]")
        2
        >>> extract_index("input") is None
        True

    """
    lb = key.find("[")
    if lb < 0:
        return None
    rb = key.find("]", lb + 1)
    if rb <= lb + 1:
        return None
    inner = key[lb + 1 : rb].partition(":")[0].strip()
    try:
        return int(inner)
    except ValueError:
        return None


def array_base(key: str) -> str | None:
    """Return the attribute name in front of the first ``[``, or None for scalar keys."""
    key = strip_attr_prefix(key)
    lb = key.find("[")
    if lb <= 0:
        return None
    return key[:lb]


def parse_float(token: str) -> float | None:
    """Parse one raw token as a float, tolerating quotes and whitespace."""
    t = token.strip().strip('"')
    if not t:
        return None
    try:
        value = float(t)
    except ValueError:
        return None
    return value if math.isfinite(value) else None
