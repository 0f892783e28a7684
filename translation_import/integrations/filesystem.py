from __future__ import annotations

from pathlib import Path
from typing import Protocol


class Filesystem(Protocol):
    """File operations the importer relies on."""

    def exists(self, path: Path) -> bool:
        ...

    def mkdir(self, path: Path) -> None:
        ...

    def read(self, path: Path) -> bytes:
        ...

    def write(self, path: Path, content: bytes) -> None:
        ...

    def list_files(self, directory: Path, pattern: str) -> list[Path]:
        ...


class LocalFilesystem:
    """Filesystem backed by the local disk."""

    def exists(self, path: Path) -> bool:
        return path.exists()

    def mkdir(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def read(self, path: Path) -> bytes:
        return path.read_bytes()

    def write(self, path: Path, content: bytes) -> None:
        path.write_bytes(content)

    def list_files(self, directory: Path, pattern: str) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(candidate for candidate in directory.glob(pattern) if candidate.is_file())
