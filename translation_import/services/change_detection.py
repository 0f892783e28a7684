from __future__ import annotations

import hashlib
import logging
from pathlib import Path

from translation_import.integrations.filesystem import Filesystem


logger = logging.getLogger(__name__)


class ChangeDetector:
    """Decide whether a regenerated document differs from the one on disk."""

    def __init__(self, filesystem: Filesystem, *, algorithm: str = "sha1") -> None:
        self._filesystem = filesystem
        self._algorithm = algorithm

    def fingerprint(self, content: bytes) -> str:
        return hashlib.new(self._algorithm, content).hexdigest()

    def has_changed(self, path: Path, content: bytes) -> bool:
        if not self._filesystem.exists(path):
            return True

        try:
            current = self._filesystem.read(path)
        except OSError as exc:
            logger.warning("Unable to fingerprint %s; treating it as changed", path, exc_info=exc)
            return True

        return self.fingerprint(current) != self.fingerprint(content)
