"""Persistent, atomically replaced documentation.json artifact."""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

from ..logging import get_logger
from ..models import GeneratedDocumentation

ARTIFACT_NAME = "documentation.json"

logger = get_logger("store")


class DocumentationStoreError(RuntimeError):
    """Raised when the documentation artifact cannot be written."""


class DocumentationStore:
    """Owns the persisted documentation and the in-memory current reference."""

    def __init__(self, output_dir: Path | str) -> None:
        self.output_dir = Path(output_dir)
        self._current: Optional[GeneratedDocumentation] = None
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self.output_dir / ARTIFACT_NAME

    def current(self) -> Optional[GeneratedDocumentation]:
        with self._lock:
            return self._current

    def load(self) -> Optional[GeneratedDocumentation]:
        """Read the artifact from disk; a missing or corrupt file counts as absent."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug("No documentation artifact at %s", self.path)
            return None
        except OSError as exc:
            logger.warning("Failed to read %s: %s", self.path, exc)
            return None

        try:
            payload = json.loads(text)
            if not isinstance(payload, dict):
                raise ValueError("artifact root is not an object")
            documentation = GeneratedDocumentation.from_dict(payload)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring unreadable documentation artifact %s: %s", self.path, exc)
            return None

        with self._lock:
            self._current = documentation
        return documentation

    def save(self, documentation: GeneratedDocumentation) -> Path:
        """Replace the artifact in one step; on failure the previous one is untouched."""
        with self._lock:
            try:
                self.output_dir.mkdir(parents=True, exist_ok=True)
                payload = json.dumps(documentation.to_dict(), indent=2, sort_keys=True)
                fd, tmp_name = tempfile.mkstemp(prefix=f"{ARTIFACT_NAME}.tmp-", dir=self.output_dir)
            except (OSError, TypeError, ValueError) as exc:
                raise DocumentationStoreError(f"Failed to prepare {self.path}: {exc}") from exc

            tmp_path = Path(tmp_name)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(payload)
                    handle.write("\n")
                    handle.flush()
                    os.fsync(handle.fileno())
                os.replace(tmp_path, self.path)
            except OSError as exc:
                tmp_path.unlink(missing_ok=True)
                raise DocumentationStoreError(f"Failed to write {self.path}: {exc}") from exc

            self._current = documentation
        logger.info("Wrote %s", self.path)
        return self.path


__all__ = ["ARTIFACT_NAME", "DocumentationStore", "DocumentationStoreError"]
