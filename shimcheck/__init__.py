"""Detect shim stubs that duplicate declarations from base or generated layers."""

from .duplicates import find_duplicates
from .index import SymbolIndex, index_trees
from .loader import DeclarationLoader, LoadResult
from .locations import resolve_location
from .models import DeclarationKind, DeclarationNode, DeclarationTree, Signature, SourceLocation
from .orchestrator import CheckReport, PreconditionError, ShimChecker
from .parser import DeclarationParser, ParseError

__version__ = "0.1.0"

__all__ = [
    "CheckReport",
    "DeclarationKind",
    "DeclarationLoader",
    "DeclarationNode",
    "DeclarationParser",
    "DeclarationTree",
    "LoadResult",
    "ParseError",
    "PreconditionError",
    "ShimChecker",
    "Signature",
    "SourceLocation",
    "SymbolIndex",
    "find_duplicates",
    "index_trees",
    "resolve_location",
]
