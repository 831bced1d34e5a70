"""Core data models shared across shimcheck components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Tuple


class DeclarationKind(str, Enum):
    """Closed set of declaration kinds produced by the stub parser."""

    TYPE_SCOPE = "type_scope"
    METHOD = "method"
    ATTRIBUTE = "attribute"
    OTHER = "other"


class ParameterKind(str, Enum):
    POSITIONAL_ONLY = "positional_only"
    POSITIONAL = "positional"
    VAR_POSITIONAL = "var_positional"
    KEYWORD_ONLY = "keyword_only"
    VAR_KEYWORD = "var_keyword"


_PARAMETER_PREFIX = {
    ParameterKind.VAR_POSITIONAL: "*",
    ParameterKind.VAR_KEYWORD: "**",
}


@dataclass(frozen=True)
class SourceLocation:
    """Span of a declaration inside a stub file (lines 1-based, columns 0-based)."""

    file: str
    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def __str__(self) -> str:
        return f"{self.file}:{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


@dataclass(frozen=True)
class Parameter:
    """One parameter of a callable signature."""

    name: str
    annotation: Optional[str] = None
    kind: ParameterKind = ParameterKind.POSITIONAL
    has_default: bool = False

    def __str__(self) -> str:
        text = _PARAMETER_PREFIX.get(self.kind, "") + self.name
        if self.annotation is not None:
            text += f": {self.annotation}"
        if self.has_default:
            text += " = ..." if self.annotation is not None else "=..."
        return text


@dataclass(frozen=True)
class Signature:
    """Structural description of a callable or attribute type.

    Equality is structural: same parameters (names, annotations, kinds and
    defaults) in the same order and the same return annotation.
    """

    parameters: Tuple[Parameter, ...] = ()
    returns: Optional[str] = None

    def __str__(self) -> str:
        params = ", ".join(str(param) for param in self.parameters)
        if self.returns is None:
            return f"({params})"
        return f"({params}) -> {self.returns}"


@dataclass(frozen=True)
class DeclarationNode:
    """A single declared symbol occurrence. Never mutated once created."""

    kind: DeclarationKind
    qualified_name: str
    location: SourceLocation
    signatures: Tuple[Signature, ...] = ()
    children: Tuple["DeclarationNode", ...] = ()

    def walk(self) -> Iterator["DeclarationNode"]:
        """Yield this node followed by all nested declarations in document order."""
        yield self
        for child in self.children:
            yield from child.walk()


@dataclass(frozen=True)
class DeclarationTree:
    """Parsed contents of one stub file."""

    file: str
    module: str
    nodes: Tuple[DeclarationNode, ...] = field(default_factory=tuple)

    def walk(self) -> Iterator[DeclarationNode]:
        for node in self.nodes:
            yield from node.walk()


@dataclass(frozen=True)
class ParseFailure:
    """A recoverable per-file parse failure reported alongside results."""

    message: str
    location: SourceLocation

    def __str__(self) -> str:
        return f"{self.message} ({self.location})"


__all__ = [
    "DeclarationKind",
    "DeclarationNode",
    "DeclarationTree",
    "Parameter",
    "ParameterKind",
    "ParseFailure",
    "Signature",
    "SourceLocation",
]
