"""Signature-aware detection of redundant shim declarations."""

from __future__ import annotations

from typing import Dict, List, Sequence

from .index import SymbolIndex
from .logging import get_logger
from .models import DeclarationKind, DeclarationNode

_logger = get_logger("duplicates")

# Every kind is listed so a new DeclarationKind fails loudly here.
_ELIGIBLE_KINDS: Dict[DeclarationKind, bool] = {
    DeclarationKind.TYPE_SCOPE: False,
    DeclarationKind.METHOD: True,
    DeclarationKind.ATTRIBUTE: True,
    DeclarationKind.OTHER: False,
}


def find_duplicates(
    index: SymbolIndex, override_prefix: str
) -> Dict[str, List[DeclarationNode]]:
    """Return the keys whose shim declarations duplicate another declaration.

    Each reported key maps to its full node list in index order.
    """
    _logger.info("Looking for duplicates...")
    duplicates: Dict[str, List[DeclarationNode]] = {}
    for key, nodes in index.items():
        if shims_have_duplicates(nodes, override_prefix):
            duplicates[key] = list(nodes)
    _logger.debug("Found %d duplicated symbols among %d", len(duplicates), len(index))
    return duplicates


def shims_have_duplicates(nodes: Sequence[DeclarationNode], override_prefix: str) -> bool:
    """Decide whether the shim declarations among ``nodes`` are redundant.

    Only the first shim carrying a signature is compared: if it matches no
    other declaration the key is clean, whatever later signed shims contain.
    Shims without any signature always count as duplicates.
    """
    if len(nodes) < 2:
        return False

    shims = [node for node in nodes if is_override(node, override_prefix)]
    if not shims:
        return False

    eligible_shims = eligible_nodes(shims)
    if not eligible_shims:
        return False

    signed_shims = [node for node in eligible_shims if node.signatures]
    if not signed_shims:
        return True

    shim = signed_shims[0]
    for node in eligible_nodes(nodes):
        if node is shim:
            continue
        if all(signature in node.signatures for signature in shim.signatures):
            return True
    return False


def is_override(node: DeclarationNode, override_prefix: str) -> bool:
    return node.location.file.startswith(override_prefix)


def eligible_nodes(nodes: Sequence[DeclarationNode]) -> List[DeclarationNode]:
    """Keep methods and attributes; type scopes and aliases are never compared."""
    return [node for node in nodes if _ELIGIBLE_KINDS[node.kind]]


__all__ = ["eligible_nodes", "find_duplicates", "is_override", "shims_have_duplicates"]
