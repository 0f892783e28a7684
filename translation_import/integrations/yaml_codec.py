from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

import yaml

from translation_import.core.errors import DocumentLoadError
from translation_import.models.tree import Container


class Serializer(Protocol):
    def serialize(self, tree: Container) -> bytes:
        ...

    def deserialize(self, content: bytes) -> Container:
        ...


class YamlSerializer:
    """Block-style YAML documents that keep the tree's key order."""

    def __init__(self, *, indent: int = 2) -> None:
        self._indent = indent

    def serialize(self, tree: Container) -> bytes:
        return yaml.safe_dump(
            tree.to_dict(),
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
            indent=self._indent,
            width=4096,
            encoding="utf-8",
        )

    def deserialize(self, content: bytes) -> Container:
        # BaseLoader keeps every scalar as its source text (no bool/int/null coercion).
        try:
            payload = yaml.load(content, Loader=yaml.BaseLoader)
        except yaml.YAMLError as exc:
            raise DocumentLoadError(f"Invalid YAML document: {exc}") from exc

        if payload is None:
            return Container()
        if not isinstance(payload, Mapping):
            raise DocumentLoadError(
                f"Expected a mapping at the document root, got {type(payload).__name__}."
            )
        return Container.from_mapping(payload)
