from __future__ import annotations

from translation_import.models.tree import Container


def sort_tree(tree: Container) -> Container:
    """Return a copy of ``tree`` with keys in ascending order at every level."""
    ordered = Container()
    for key in sorted(tree):
        node = tree[key]
        ordered[key] = sort_tree(node) if isinstance(node, Container) else node
    return ordered
