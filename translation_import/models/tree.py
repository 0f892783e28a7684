from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union


class ConflictPolicy(str, Enum):
    """How a container/leaf collision at the same path is resolved."""

    OVERWRITE = "overwrite"
    KEEP = "keep"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Leaf:
    """Terminal translation string."""

    value: str


@dataclass(slots=True)
class Container:
    """Named children of a translation tree node."""

    children: dict[str, Node] = field(default_factory=dict)

    def __contains__(self, key: object) -> bool:
        return key in self.children

    def __getitem__(self, key: str) -> Node:
        return self.children[key]

    def __setitem__(self, key: str, node: Node) -> None:
        self.children[key] = node

    def __iter__(self) -> Iterator[str]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)

    def get(self, key: str) -> Node | None:
        return self.children.get(key)

    def items(self) -> Iterator[tuple[str, Node]]:
        return iter(self.children.items())

    def copy(self) -> Container:
        """Return a deep copy; leaves are immutable and shared."""
        return Container(
            {
                key: node.copy() if isinstance(node, Container) else node
                for key, node in self.children.items()
            }
        )

    def to_dict(self) -> dict[str, Any]:
        """Return plain nested dicts suitable for a serializer."""
        plain: dict[str, Any] = {}
        for key, node in self.children.items():
            plain[key] = node.to_dict() if isinstance(node, Container) else node.value
        return plain

    @classmethod
    def from_mapping(cls, data: Mapping[Any, Any]) -> Container:
        """Build a tree from loaded document data.

        Keys are stringified, ``None`` becomes an empty string and sequences
        become containers keyed by position.
        """
        container = cls()
        for key, value in data.items():
            container.children[str(key)] = _to_node(value)
        return container


Node = Union[Leaf, Container]


def _to_node(value: Any) -> Node:
    if isinstance(value, Mapping):
        return Container.from_mapping(value)
    if isinstance(value, (list, tuple)):
        return Container.from_mapping({str(index): item for index, item in enumerate(value)})
    if value is None:
        return Leaf("")
    if isinstance(value, bool):
        return Leaf("true" if value else "false")
    return Leaf(str(value))


def node_kind(node: Node | None) -> str:
    if node is None:
        return "missing"
    return "container" if isinstance(node, Container) else "leaf"


@dataclass(frozen=True, slots=True)
class StructuralConflict:
    """A path that holds a container on one side and a leaf on the other."""

    path: tuple[str, ...]
    existing: str
    incoming: str
    resolution: ConflictPolicy

    def describe(self, delimiter: str = ".") -> str:
        return (
            f"{delimiter.join(self.path)}: {self.existing} vs incoming {self.incoming} "
            f"({self.resolution.value})"
        )
