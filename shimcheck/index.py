"""Symbol index merging declaration trees from every loaded layer."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Tuple

from .models import DeclarationNode, DeclarationTree


class SymbolIndex:
    """Maps qualified names to every declaration found for them.

    Entries are append-only: nodes keep the order in which they were added and
    are never replaced or removed.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, List[DeclarationNode]] = {}

    def add(self, node: DeclarationNode) -> None:
        self._entries.setdefault(node.qualified_name, []).append(node)

    def keys(self) -> List[str]:
        return list(self._entries)

    def nodes(self, key: str) -> Tuple[DeclarationNode, ...]:
        return tuple(self._entries.get(key, ()))

    def items(self) -> Iterator[Tuple[str, Tuple[DeclarationNode, ...]]]:
        for key, nodes in self._entries.items():
            yield key, tuple(nodes)

    def __getitem__(self, key: str) -> Tuple[DeclarationNode, ...]:
        if key not in self._entries:
            raise KeyError(key)
        return tuple(self._entries[key])

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def index_trees(index: SymbolIndex, trees: Iterable[DeclarationTree]) -> None:
    """Append every declaration of ``trees`` (nested ones included) to ``index``."""
    for tree in trees:
        for node in tree.walk():
            index.add(node)


__all__ = ["SymbolIndex", "index_trees"]
