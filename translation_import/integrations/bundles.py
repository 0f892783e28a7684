from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Protocol

from translation_import.core.config import ImportSettings
from translation_import.core.errors import BundleNotFoundError, ConfigurationError


logger = logging.getLogger(__name__)


class BundleRegistry(Protocol):
    def resolve(self, name: str) -> Path:
        """Return the root directory of bundle ``name``."""


class StaticBundleRegistry:
    """Registry backed by a fixed name to directory mapping."""

    def __init__(self, bundles: Mapping[str, str | Path] | None = None) -> None:
        self._bundles: dict[str, Path] = {
            name: Path(path).expanduser() for name, path in (bundles or {}).items()
        }

    @property
    def names(self) -> list[str]:
        return sorted(self._bundles)

    def resolve(self, name: str) -> Path:
        try:
            return self._bundles[name]
        except KeyError:
            raise BundleNotFoundError(name) from None


def parse_bundle_spec(spec: str) -> tuple[str, str]:
    if "=" not in spec:
        raise ConfigurationError("Bundle must be provided as NAME=PATH.")
    name, path = spec.split("=", 1)
    name = name.strip()
    path = path.strip()
    if not name or not path:
        raise ConfigurationError("Bundle entries must include both NAME and PATH.")
    return name, path


def build_bundle_registry(
    settings: ImportSettings,
    overrides: Iterable[str] = (),
) -> StaticBundleRegistry:
    """Combine bundles found under BUNDLES_ROOT, BUNDLE_PATHS and CLI overrides.

    Later sources win when a name appears more than once.
    """
    bundles: dict[str, str | Path] = {}

    if settings.bundles_root:
        root = Path(settings.bundles_root).expanduser()
        if not root.is_dir():
            raise ConfigurationError(f"BUNDLES_ROOT {root} is not a directory.")
        for candidate in sorted(root.iterdir()):
            if candidate.is_dir():
                bundles[candidate.name] = candidate

    bundles.update(settings.bundle_paths)

    for spec in overrides:
        name, path = parse_bundle_spec(spec)
        bundles[name] = path

    logger.debug("Registered %s bundles", len(bundles))
    return StaticBundleRegistry(bundles)
