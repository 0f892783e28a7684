from __future__ import annotations

from translation_import.models.tree import StructuralConflict


class TranslationImportError(Exception):
    """Base class for import failures."""


class ConfigurationError(TranslationImportError, ValueError):
    """Invalid run configuration; raised before anything is written."""


class BundleNotFoundError(ConfigurationError, LookupError):
    def __init__(self, bundle: str) -> None:
        super().__init__(f"Bundle {bundle!r} is not registered.")
        self.bundle = bundle


class InvalidKeyError(TranslationImportError, ValueError):
    """A translation key cannot be split into non-empty segments."""


class DocumentLoadError(TranslationImportError):
    """An existing translation document could not be parsed."""


class StructuralConflictError(TranslationImportError):
    def __init__(self, conflict: StructuralConflict) -> None:
        super().__init__(f"Structural conflict at {conflict.describe()}")
        self.conflict = conflict
