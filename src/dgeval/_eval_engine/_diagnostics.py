"""Diagnostics reported alongside the default-zero evaluation results."""

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum, auto


class DiagnosticKind(StrEnum):
    """Why an evaluation fell back to a default value."""

    CYCLE = auto()  # plug was already being resolved on the evaluation stack
    MISSING_NODE = auto()  # plug names no known node, or is not ``node.attr``
    UNSUPPORTED_NODE = auto()  # node type has no formula; literal value used
    FORMULA_ERROR = auto()  # a formula raised
    NON_FINITE = auto()  # a formula produced NaN or infinity


@dataclass(frozen=True, slots=True)
class Diagnostic:
    kind: DiagnosticKind
    plug: str
    message: str = ""

    def __str__(self) -> str:
        text = f"[{self.kind}] {self.plug}"
        return f"{text}: {self.message}" if self.message else text


type DiagnosticSink = Callable[[Diagnostic], None]


@dataclass(slots=True)
class DiagnosticCollector:
    """A sink that keeps every diagnostic it receives.

    Example:
        >>> collector = DiagnosticCollector()
        >>> evaluator = Evaluator(graph, on_diagnostic=collector)  # doctest: +SKIP
        >>> collector.counts()[DiagnosticKind.CYCLE]  # doctest: +SKIP
        1

    """

    diagnostics: list[Diagnostic] = field(default_factory=list)

    def __call__(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def counts(self) -> Counter[DiagnosticKind]:
        return Counter(d.kind for d in self.diagnostics)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]

    def clear(self) -> None:
        self.diagnostics.clear()

    def __len__(self) -> int:
        return len(self.diagnostics)
