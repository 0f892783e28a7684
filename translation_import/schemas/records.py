from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from translation_import.core.errors import ConfigurationError


APP_BUNDLE = "app"
ALL = "all"


class TranslationRecord(BaseModel):
    """One imported row: a key and its value per locale."""

    model_config = ConfigDict(frozen=True)

    bundle: str = Field(..., min_length=1, description="Bundle owning the translation.")
    domain: str = Field(..., min_length=1, description="Domain the key belongs to.")
    key: str = Field(..., description="Delimited key path.")
    values: dict[str, str] = Field(
        default_factory=dict,
        description="Mapping of locale codes to translated text.",
    )


@dataclass(frozen=True, slots=True)
class DocumentKey:
    bundle: str
    domain: str
    locale: str

    def filename(self, extension: str) -> str:
        return f"{self.domain}.{self.locale}.{extension}"


def parse_filter(raw: Optional[str], *, label: str) -> frozenset[str] | None:
    """Parse a comma separated option; ``None`` means every value matches."""
    if raw is None:
        return None
    items = [item.strip() for item in raw.split(",")]
    if any(not item for item in items):
        raise ConfigurationError(f"Malformed {label} filter {raw!r}.")
    if ALL in items:
        if len(items) > 1:
            raise ConfigurationError(f"{label} filter cannot combine {ALL!r} with other values.")
        return None
    return frozenset(items)


@dataclass(frozen=True, slots=True)
class ImportFilters:
    bundles: frozenset[str] | None = None
    domains: frozenset[str] | None = None
    locales: frozenset[str] | None = None

    @classmethod
    def parse(
        cls,
        *,
        bundles: str = ALL,
        domains: str = ALL,
        locales: str = ALL,
    ) -> ImportFilters:
        return cls(
            bundles=parse_filter(bundles, label="bundles"),
            domains=parse_filter(domains, label="domains"),
            locales=parse_filter(locales, label="locales"),
        )

    def accepts_bundle(self, bundle: str) -> bool:
        return self.bundles is None or bundle in self.bundles

    def accepts_domain(self, domain: str) -> bool:
        return self.domains is None or domain in self.domains

    def accepts_locale(self, locale: str) -> bool:
        return self.locales is None or locale in self.locales
