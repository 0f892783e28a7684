from __future__ import annotations

import argparse
import logging
import pathlib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from translation_import.core.config import ImportSettings, get_settings
from translation_import.core.errors import (
    ConfigurationError,
    InvalidKeyError,
    StructuralConflictError,
    TranslationImportError,
)
from translation_import.integrations.bundles import BundleRegistry, build_bundle_registry
from translation_import.integrations.csv_source import CsvRecordSource, RecordSource
from translation_import.integrations.existing import ExistingTranslationLoader, UnitKey
from translation_import.integrations.filesystem import Filesystem, LocalFilesystem
from translation_import.integrations.yaml_codec import Serializer, YamlSerializer
from translation_import.models.tree import ConflictPolicy, Container, Leaf, StructuralConflict
from translation_import.schemas.records import (
    APP_BUNDLE,
    DocumentKey,
    ImportFilters,
    TranslationRecord,
)
from translation_import.services.change_detection import ChangeDetector
from translation_import.services.merge import merge
from translation_import.services.paths import assign, canonical_key, split_key
from translation_import.services.sorting import sort_tree


logger = logging.getLogger("translation_import.agent")


class DocumentStatus(str, Enum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    FAILED = "failed"


@dataclass(slots=True)
class DocumentOutcome:
    key: DocumentKey
    path: pathlib.Path
    status: DocumentStatus
    error: str | None = None
    conflicts: list[StructuralConflict] = field(default_factory=list)


@dataclass(slots=True)
class ImportResult:
    records: int = 0
    skipped: int = 0
    dry_run: bool = False
    documents: list[DocumentOutcome] = field(default_factory=list)

    @property
    def conflicts(self) -> list[StructuralConflict]:
        return [conflict for outcome in self.documents for conflict in outcome.conflicts]

    def _with_status(self, status: DocumentStatus) -> list[DocumentOutcome]:
        return [outcome for outcome in self.documents if outcome.status is status]

    @property
    def updated(self) -> list[DocumentOutcome]:
        return self._with_status(DocumentStatus.UPDATED)

    @property
    def unchanged(self) -> list[DocumentOutcome]:
        return self._with_status(DocumentStatus.UNCHANGED)

    @property
    def failed(self) -> list[DocumentOutcome]:
        return self._with_status(DocumentStatus.FAILED)


class TranslationImportAgent:
    """Merge imported translation records into per-locale YAML documents."""

    def __init__(
        self,
        settings: ImportSettings,
        *,
        registry: BundleRegistry,
        filesystem: Filesystem | None = None,
        serializer: Serializer | None = None,
        existing_loader: ExistingTranslationLoader | None = None,
        change_detector: ChangeDetector | None = None,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._filesystem = filesystem or LocalFilesystem()
        self._serializer = serializer or YamlSerializer(indent=settings.yaml_indent)
        self._existing_loader = existing_loader or ExistingTranslationLoader(
            self._filesystem,
            self._serializer,
            extension=settings.file_extension,
            delimiter=settings.key_delimiter,
            escape=settings.key_escape,
        )
        self._change_detector = change_detector or ChangeDetector(
            self._filesystem,
            algorithm=settings.fingerprint_algorithm,
        )

    def run(
        self,
        source: RecordSource,
        *,
        filters: ImportFilters | None = None,
        force: bool = False,
        merge_into_app: bool = False,
        dry_run: bool = False,
        policy: ConflictPolicy | None = None,
    ) -> ImportResult:
        filters = filters or ImportFilters()
        policy = policy or self._settings.conflict_policy
        result = ImportResult(dry_run=dry_run)

        records = source.load(filters, merge=merge_into_app)
        result.records = len(records)
        imported = self._collect(records, result)

        directories = self._resolve_directories({bundle for bundle, _ in imported})

        existing: dict[UnitKey, Container] = {}
        if not force:
            existing = self._existing_loader.load(directories, filters)

        locales = self._target_locales([*existing.values(), *imported.values()], filters)
        for bundle, domain in sorted(set(existing) | set(imported)):
            for locale in locales:
                outcome = self._write_document(
                    DocumentKey(bundle=bundle, domain=domain, locale=locale),
                    existing.get((bundle, domain), Container()),
                    imported.get((bundle, domain), Container()),
                    directories[bundle],
                    policy=policy,
                    dry_run=dry_run,
                )
                result.documents.append(outcome)

        logger.info(
            "Import finished: %s records (skipped=%s) -> %s updated, %s unchanged, %s failed%s.",
            result.records,
            result.skipped,
            len(result.updated),
            len(result.unchanged),
            len(result.failed),
            " (dry-run)" if dry_run else "",
        )
        return result

    def _collect(
        self,
        records: Iterable[TranslationRecord],
        result: ImportResult,
    ) -> dict[UnitKey, Container]:
        units: dict[UnitKey, Container] = {}
        for record in records:
            try:
                key = canonical_key(
                    record.key,
                    delimiter=self._settings.key_delimiter,
                    escape=self._settings.key_escape,
                )
            except InvalidKeyError as exc:
                logger.warning("Skipping record in %s/%s: %s", record.bundle, record.domain, exc)
                result.skipped += 1
                continue

            unit = units.setdefault((record.bundle, record.domain), Container())
            entry = unit.get(key)
            if not isinstance(entry, Container):
                entry = Container()
                unit[key] = entry
            for locale, value in record.values.items():
                entry[locale] = Leaf(value)
        return units

    def _resolve_directories(self, bundles: Iterable[str]) -> dict[str, pathlib.Path]:
        directories: dict[str, pathlib.Path] = {}
        for bundle in sorted(bundles):
            if bundle == APP_BUNDLE:
                directories[bundle] = pathlib.Path(self._settings.app_translations_path).expanduser()
            else:
                root = self._registry.resolve(bundle)
                directories[bundle] = root / self._settings.bundle_translations_subdir
        return directories

    def _target_locales(
        self,
        units: Iterable[Container],
        filters: ImportFilters,
    ) -> list[str]:
        if filters.locales is not None:
            return sorted(filters.locales)
        seen: set[str] = set()
        for unit in units:
            for _, entry in unit.items():
                if isinstance(entry, Container):
                    seen.update(entry)
        return sorted(seen)

    def _project(
        self,
        unit: Container,
        locale: str,
        *,
        policy: ConflictPolicy,
        conflicts: list[StructuralConflict],
    ) -> Container:
        tree = Container()
        for key, entry in sorted(unit.items()):
            leaf = entry.get(locale) if isinstance(entry, Container) else None
            if not isinstance(leaf, Leaf):
                continue
            path = split_key(
                key,
                delimiter=self._settings.key_delimiter,
                escape=self._settings.key_escape,
            )
            assign(tree, path, leaf.value, policy=policy, conflicts=conflicts)
        return tree

    def _build_document(
        self,
        existing: Container,
        imported: Container,
        locale: str,
        *,
        policy: ConflictPolicy,
        conflicts: list[StructuralConflict],
    ) -> Container:
        """Merge the imported locale tree over the existing one.

        Both sides are nested before merging so a key that is a leaf on one
        side and a container on the other resolves in favour of the import.
        """
        current = self._project(existing, locale, policy=policy, conflicts=conflicts)
        incoming = self._project(imported, locale, policy=policy, conflicts=conflicts)
        return sort_tree(merge(current, incoming, policy=policy, conflicts=conflicts))

    def _write_document(
        self,
        key: DocumentKey,
        existing: Container,
        imported: Container,
        directory: pathlib.Path,
        *,
        policy: ConflictPolicy,
        dry_run: bool,
    ) -> DocumentOutcome:
        path = directory / key.filename(self._settings.file_extension)
        conflicts: list[StructuralConflict] = []

        try:
            tree = self._build_document(
                existing, imported, key.locale, policy=policy, conflicts=conflicts
            )
        except StructuralConflictError as exc:
            logger.error("Skipping %s: %s", path, exc)
            return DocumentOutcome(
                key=key,
                path=path,
                status=DocumentStatus.FAILED,
                error=str(exc),
                conflicts=[exc.conflict],
            )

        content = self._serializer.serialize(tree)
        if not self._change_detector.has_changed(path, content):
            logger.debug("%s unchanged", path)
            return DocumentOutcome(key=key, path=path, status=DocumentStatus.UNCHANGED, conflicts=conflicts)

        if dry_run:
            logger.debug("%s would be updated", path)
            return DocumentOutcome(key=key, path=path, status=DocumentStatus.UPDATED, conflicts=conflicts)

        try:
            if not self._filesystem.exists(directory):
                self._filesystem.mkdir(directory)
            self._filesystem.write(path, content)
        except OSError as exc:
            logger.exception("Failed to write %s", path)
            return DocumentOutcome(
                key=key,
                path=path,
                status=DocumentStatus.FAILED,
                error=str(exc),
                conflicts=conflicts,
            )

        logger.debug("%s updated", path)
        return DocumentOutcome(key=key, path=path, status=DocumentStatus.UPDATED, conflicts=conflicts)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bundle-translation-import",
        description="Import translations from a CSV file into bundle YAML translation files.",
    )
    parser.add_argument(
        "locales",
        help="Comma separated locales to import (or 'all').",
    )
    parser.add_argument(
        "csv",
        help="Path to the tab separated translation file.",
    )
    parser.add_argument(
        "--domains",
        default="all",
        help="Comma separated domains to import (default: all).",
    )
    parser.add_argument(
        "--bundles",
        default="all",
        help="Comma separated bundles to import (default: all).",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite files without merging existing translations.",
    )
    parser.add_argument(
        "--merge",
        action="store_true",
        help="Write every bundle's translations into the application translations directory.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report files that would change without writing them.",
    )
    parser.add_argument(
        "--bundle",
        action="append",
        default=[],
        help="Bundle location in the form NAME=PATH. May be provided multiple times.",
    )
    parser.add_argument(
        "--app-translations",
        default=None,
        help="Override the application translations directory (APP_TRANSLATIONS_PATH).",
    )
    parser.add_argument(
        "--conflict-policy",
        choices=[policy.value for policy in ConflictPolicy],
        default=None,
        help="How to resolve a key that is both a leaf and a container (default: CONFLICT_POLICY).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity (default: LOG_LEVEL).",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.app_translations:
        settings = settings.model_copy(update={"app_translations_path": args.app_translations})

    level_name = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    try:
        filters = ImportFilters.parse(
            bundles=args.bundles,
            domains=args.domains,
            locales=args.locales,
        )
        agent = TranslationImportAgent(
            settings,
            registry=build_bundle_registry(settings, args.bundle),
        )
        source_path = pathlib.Path(args.csv).expanduser()
        result = agent.run(
            CsvRecordSource(path=source_path, delimiter=settings.csv_delimiter, name=source_path.name),
            filters=filters,
            force=args.force,
            merge_into_app=args.merge,
            dry_run=args.dry_run,
            policy=ConflictPolicy(args.conflict_policy) if args.conflict_policy else None,
        )
    except ConfigurationError as exc:
        logger.error("Import aborted: %s", exc)
        raise SystemExit(2) from exc
    except TranslationImportError as exc:
        logger.error("Import aborted: %s", exc)
        raise SystemExit(1) from exc

    for outcome in result.updated:
        print(f"{outcome.path} updated")
    for outcome in result.failed:
        logger.error("Import failed for %s: %s", outcome.path, outcome.error)

    raise SystemExit(1 if result.failed else 0)


if __name__ == "__main__":  # pragma: no cover - script entry point
    main()
