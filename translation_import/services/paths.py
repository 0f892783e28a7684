"""Translation key paths: splitting, joining and assignment into trees."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from translation_import.core.errors import InvalidKeyError, StructuralConflictError
from translation_import.models.tree import (
    ConflictPolicy,
    Container,
    Leaf,
    Node,
    StructuralConflict,
    node_kind,
)


logger = logging.getLogger(__name__)

DEFAULT_DELIMITER = "."
DEFAULT_ESCAPE = "\\"


def split_key(
    key: str,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    escape: str = DEFAULT_ESCAPE,
) -> list[str]:
    """Split ``key`` on ``delimiter``.

    ``escape`` makes the next character literal, so ``a\\.b.c`` yields
    ``["a.b", "c"]``. A trailing escape is kept as-is.
    """
    segments: list[str] = []
    current: list[str] = []
    chars = iter(key)
    for char in chars:
        if char == escape:
            current.append(next(chars, escape))
        elif char == delimiter:
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    segments.append("".join(current))

    if any(segment == "" for segment in segments):
        raise InvalidKeyError(f"Translation key {key!r} contains an empty segment.")
    return segments


def join_key(
    segments: Sequence[str],
    *,
    delimiter: str = DEFAULT_DELIMITER,
    escape: str = DEFAULT_ESCAPE,
) -> str:
    """Inverse of :func:`split_key`."""
    escaped = (
        segment.replace(escape, escape + escape).replace(delimiter, escape + delimiter)
        for segment in segments
    )
    return delimiter.join(escaped)


def canonical_key(
    key: str,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    escape: str = DEFAULT_ESCAPE,
) -> str:
    return join_key(
        split_key(key, delimiter=delimiter, escape=escape),
        delimiter=delimiter,
        escape=escape,
    )


def assign(
    tree: Container,
    path: str | Sequence[str],
    value: str,
    *,
    policy: ConflictPolicy = ConflictPolicy.OVERWRITE,
    conflicts: list[StructuralConflict] | None = None,
) -> None:
    """Store ``value`` as a leaf at ``path``, creating containers on the way."""
    segments = split_key(path) if isinstance(path, str) else list(path)
    if not segments:
        raise InvalidKeyError("Translation key path must contain at least one segment.")

    node = tree
    for depth, segment in enumerate(segments[:-1]):
        child = node.get(segment)
        if child is None:
            child = Container()
            node[segment] = child
        elif isinstance(child, Leaf):
            if not resolve_conflict(segments[: depth + 1], child, "container", policy, conflicts):
                return
            child = Container()
            node[segment] = child
        node = child

    last = segments[-1]
    existing = node.get(last)
    if isinstance(existing, Container):
        if not resolve_conflict(segments, existing, "leaf", policy, conflicts):
            return
    node[last] = Leaf(value)


def resolve_conflict(
    segments: Sequence[str],
    existing: Node,
    incoming: str,
    policy: ConflictPolicy,
    conflicts: list[StructuralConflict] | None,
) -> bool:
    """Apply ``policy`` to a collision; return whether the incoming node wins."""
    conflict = StructuralConflict(
        path=tuple(segments),
        existing=node_kind(existing),
        incoming=incoming,
        resolution=policy,
    )
    if policy is ConflictPolicy.ERROR:
        raise StructuralConflictError(conflict)

    logger.warning("Structural conflict at %s", conflict.describe())
    if conflicts is not None:
        conflicts.append(conflict)
    return policy is ConflictPolicy.OVERWRITE
