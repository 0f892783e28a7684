from __future__ import annotations

import csv
import logging
import pathlib
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol

from translation_import.core.errors import ConfigurationError
from translation_import.schemas.records import APP_BUNDLE, ImportFilters, TranslationRecord


logger = logging.getLogger(__name__)

_BUNDLE_COLUMN = "bundle"
_DOMAIN_COLUMN = "domain"
_KEY_COLUMN = "key"


class RecordSource(Protocol):
    """Interface describing a translation record source."""

    name: str

    def load(self, filters: ImportFilters, *, merge: bool = False) -> list[TranslationRecord]:
        """Return records matching ``filters``."""


@dataclass(slots=True)
class CsvRecordSource:
    """Load translation rows from a delimited file.

    The header names ``Bundle``, ``Domain`` and ``Key`` columns (any case);
    every other column is a locale. Empty cells mean the key has no value for
    that locale.
    """

    path: pathlib.Path
    delimiter: str = "\t"
    name: str = field(default="csv")

    def load(self, filters: ImportFilters, *, merge: bool = False) -> list[TranslationRecord]:
        if not self.path.exists():
            raise ConfigurationError(f"Translation source {self.path} not found.")

        try:
            with self.path.open("r", encoding="utf-8-sig", newline="") as handle:
                records = self._read(csv.reader(handle, delimiter=self.delimiter), filters, merge=merge)
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise ConfigurationError(f"Unable to read translation source {self.path}: {exc}") from exc

        logger.info("Loaded %s translation records from %s", len(records), self.path)
        return records

    def _read(
        self,
        reader: Iterator[list[str]],
        filters: ImportFilters,
        *,
        merge: bool,
    ) -> list[TranslationRecord]:
        header = next(reader, None)
        if header is None:
            logger.info("Translation source %s is empty", self.path)
            return []
        columns = self._map_columns(header)

        records: list[TranslationRecord] = []
        for line_number, row in enumerate(reader, start=2):
            if not any(cell.strip() for cell in row):
                continue
            record = self._build_record(row, columns, filters, merge=merge)
            if record is None:
                continue
            if not record.key:
                logger.warning("Skipping row %s of %s without a key", line_number, self.path)
                continue
            records.append(record)
        return records

    def _map_columns(self, header: list[str]) -> dict[str, int]:
        columns: dict[str, int] = {}
        for index, raw_name in enumerate(header):
            name = raw_name.strip()
            lowered = name.lower()
            if lowered in {_BUNDLE_COLUMN, _DOMAIN_COLUMN, _KEY_COLUMN}:
                columns[lowered] = index
            elif name:
                columns[name] = index

        missing = [
            column
            for column in (_BUNDLE_COLUMN, _DOMAIN_COLUMN, _KEY_COLUMN)
            if column not in columns
        ]
        if missing:
            raise ConfigurationError(
                f"Translation source {self.path} is missing columns: {', '.join(missing)}."
            )
        return columns

    def _build_record(
        self,
        row: list[str],
        columns: dict[str, int],
        filters: ImportFilters,
        *,
        merge: bool,
    ) -> TranslationRecord | None:
        def cell(column: str) -> str:
            index = columns[column]
            return row[index] if index < len(row) else ""

        bundle = cell(_BUNDLE_COLUMN).strip()
        domain = cell(_DOMAIN_COLUMN).strip()
        if not bundle or not domain:
            return None
        if not filters.accepts_bundle(bundle) or not filters.accepts_domain(domain):
            return None

        values: dict[str, str] = {}
        for column in columns:
            if column in {_BUNDLE_COLUMN, _DOMAIN_COLUMN, _KEY_COLUMN}:
                continue
            if not filters.accepts_locale(column):
                continue
            value = cell(column)
            if value != "":
                values[column] = value

        return TranslationRecord(
            bundle=APP_BUNDLE if merge else bundle,
            domain=domain,
            key=cell(_KEY_COLUMN).strip(),
            values=values,
        )
