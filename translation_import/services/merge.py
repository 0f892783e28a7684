from __future__ import annotations

from translation_import.models.tree import (
    ConflictPolicy,
    Container,
    StructuralConflict,
)
from translation_import.services.paths import resolve_conflict


def merge(
    base: Container,
    incoming: Container,
    *,
    policy: ConflictPolicy = ConflictPolicy.OVERWRITE,
    conflicts: list[StructuralConflict] | None = None,
) -> Container:
    """Deep-merge ``incoming`` over ``base`` into a new tree.

    Leaves on both sides resolve to the incoming value. A container meeting a
    leaf is a structural conflict handled by ``policy``; under ``OVERWRITE``
    the incoming node replaces the base node as a whole.
    """
    return _merge(base, incoming, (), policy, conflicts)


def _merge(
    base: Container,
    incoming: Container,
    prefix: tuple[str, ...],
    policy: ConflictPolicy,
    conflicts: list[StructuralConflict] | None,
) -> Container:
    merged = base.copy()
    for key, node in incoming.items():
        current = merged.get(key)
        replacement = node.copy() if isinstance(node, Container) else node
        if current is None:
            merged[key] = replacement
            continue

        current_is_container = isinstance(current, Container)
        if current_is_container and isinstance(node, Container):
            merged[key] = _merge(current, node, prefix + (key,), policy, conflicts)
        elif current_is_container == isinstance(node, Container):
            merged[key] = replacement
        elif resolve_conflict(
            prefix + (key,),
            current,
            "container" if isinstance(node, Container) else "leaf",
            policy,
            conflicts,
        ):
            merged[key] = replacement
    return merged
