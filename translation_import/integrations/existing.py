from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path

from translation_import.core.errors import DocumentLoadError
from translation_import.integrations.filesystem import Filesystem
from translation_import.integrations.yaml_codec import Serializer
from translation_import.models.tree import Container, Leaf
from translation_import.schemas.records import ImportFilters
from translation_import.services.paths import DEFAULT_DELIMITER, DEFAULT_ESCAPE, join_key


logger = logging.getLogger(__name__)

UnitKey = tuple[str, str]


class ExistingTranslationLoader:
    """Read persisted ``<domain>.<locale>.<ext>`` documents into locale-keyed units.

    Each unit maps canonical flat keys to a container of ``locale -> Leaf``.
    """

    def __init__(
        self,
        filesystem: Filesystem,
        serializer: Serializer,
        *,
        extension: str = "yml",
        delimiter: str = DEFAULT_DELIMITER,
        escape: str = DEFAULT_ESCAPE,
    ) -> None:
        self._filesystem = filesystem
        self._serializer = serializer
        self._extension = extension
        self._delimiter = delimiter
        self._escape = escape

    def load(
        self,
        directories: Mapping[str, Path],
        filters: ImportFilters,
    ) -> dict[UnitKey, Container]:
        units: dict[UnitKey, Container] = {}
        for bundle, directory in directories.items():
            for path in self._filesystem.list_files(directory, f"*.*.{self._extension}"):
                parsed = self._parse_filename(path.name)
                if parsed is None:
                    continue
                domain, locale = parsed
                if not filters.accepts_domain(domain) or not filters.accepts_locale(locale):
                    continue

                try:
                    content = self._filesystem.read(path)
                except OSError as exc:
                    raise DocumentLoadError(f"{path}: unable to read: {exc}") from exc
                try:
                    document = self._serializer.deserialize(content)
                except DocumentLoadError as exc:
                    raise DocumentLoadError(f"{path}: {exc}") from exc

                unit = units.setdefault((bundle, domain), Container())
                count = self._fold(unit, document, locale, ())
                logger.debug("Loaded %s keys for %s from %s", count, locale, path)
        return units

    def _parse_filename(self, filename: str) -> tuple[str, str] | None:
        stem = filename[: -(len(self._extension) + 1)]
        domain, _, locale = stem.rpartition(".")
        if not domain or not locale:
            return None
        return domain, locale

    def _fold(
        self,
        unit: Container,
        document: Container,
        locale: str,
        prefix: tuple[str, ...],
    ) -> int:
        count = 0
        for segment, node in document.items():
            path = prefix + (segment,)
            if isinstance(node, Container):
                count += self._fold(unit, node, locale, path)
                continue
            key = join_key(path, delimiter=self._delimiter, escape=self._escape)
            entry = unit.get(key)
            if not isinstance(entry, Container):
                entry = Container()
                unit[key] = entry
            entry[locale] = Leaf(node.value)
            count += 1
        return count
