import hashlib
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from translation_import.models.tree import ConflictPolicy


class ImportSettings(BaseSettings):
    """Import configuration loaded from environment or .env."""

    app_translations_path: str = Field(default="translations", alias="APP_TRANSLATIONS_PATH")
    bundles_root: Optional[str] = Field(default=None, alias="BUNDLES_ROOT")
    bundle_paths: dict[str, str] = Field(default_factory=dict, alias="BUNDLE_PATHS")
    bundle_translations_subdir: str = Field(
        default="Resources/translations", alias="BUNDLE_TRANSLATIONS_SUBDIR"
    )

    key_delimiter: str = Field(default=".", alias="KEY_DELIMITER")
    key_escape: str = Field(default="\\", alias="KEY_ESCAPE")
    file_extension: str = Field(default="yml", alias="TRANSLATION_FILE_EXTENSION")
    yaml_indent: int = Field(default=2, ge=2, le=9, alias="YAML_INDENT")
    csv_delimiter: str = Field(default="\t", alias="CSV_DELIMITER")
    fingerprint_algorithm: str = Field(default="sha1", alias="FINGERPRINT_ALGORITHM")
    conflict_policy: ConflictPolicy = Field(
        default=ConflictPolicy.OVERWRITE, alias="CONFLICT_POLICY"
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("key_delimiter", "key_escape", "csv_delimiter")
    @classmethod
    def _single_character(cls, value: str) -> str:
        if len(value) != 1:
            raise ValueError("must be exactly one character")
        return value

    @field_validator("file_extension")
    @classmethod
    def _strip_extension_dot(cls, value: str) -> str:
        cleaned = value.strip().lstrip(".")
        if not cleaned:
            raise ValueError("file extension must not be empty")
        return cleaned

    @field_validator("fingerprint_algorithm")
    @classmethod
    def _known_algorithm(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in hashlib.algorithms_guaranteed or normalized.startswith("shake_"):
            raise ValueError(f"unsupported hash algorithm {value!r}")
        return normalized

    @model_validator(mode="after")
    def _distinct_key_markers(self) -> "ImportSettings":
        if self.key_delimiter == self.key_escape:
            raise ValueError("KEY_DELIMITER and KEY_ESCAPE must differ")
        return self


@lru_cache
def get_settings() -> ImportSettings:
    """Return cached import settings."""
    return ImportSettings()  # type: ignore[call-arg]
