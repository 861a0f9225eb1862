"""
Permission stores — where the ``PermissionMatrix`` lives between requests.

Two implementations of the same load/save contract:

    JsonPermissionStore    one JSON file, created with an empty matrix when
                           missing; re-read on every load so edits made by
                           another process apply to the next request
    MemoryPermissionStore  in-process only, for tests and embedding

Both hand out deep copies so a caller mutating the matrix it loaded changes
nothing until it calls ``save``.  File I/O errors propagate unchanged;
unparseable content raises ``ConfigError``.

Example file::

    {
      "admin_ids": ["1001"],
      "user_start_grants": {"2002": ["web"]},
      "user_stop_grants": {},
      "role_start_grants": {},
      "role_stop_grants": {"ops": ["web", "db"]}
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from dockhand.core.errors import ConfigError
from dockhand.core.logging import get_logger
from dockhand.permissions.matrix import PermissionMatrix

logger = get_logger(__name__)


class PermissionStore(Protocol):
    """Load/save contract consumed by the orchestrator."""

    def load(self) -> PermissionMatrix: ...

    def save(self, matrix: PermissionMatrix) -> None: ...


class JsonPermissionStore:
    """File-backed permission store.

    Parameters
    ----------
    path
        JSON file location; parent directories are created on first save.
    """

    def __init__(self, path: Path | str):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> PermissionMatrix:
        if not self._path.exists():
            logger.info("permissions.default_created", path=str(self._path))
            matrix = PermissionMatrix()
            self.save(matrix)
            return matrix
        matrix = self._read()
        logger.debug("permissions.loaded", path=str(self._path))
        return matrix

    def save(self, matrix: PermissionMatrix) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = matrix.model_dump(mode="json")
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        tmp.replace(self._path)
        logger.info("permissions.saved", path=str(self._path))

    def _read(self) -> PermissionMatrix:
        text = self._path.read_text(encoding="utf-8")
        try:
            return PermissionMatrix.model_validate(json.loads(text))
        except json.JSONDecodeError as exc:
            raise ConfigError(
                f"Permission file {self._path} is not valid JSON: {exc}", cause=exc
            ) from exc
        except ValidationError as exc:
            raise ConfigError(
                f"Permission file {self._path} has an invalid layout: {exc}", cause=exc
            ) from exc


class MemoryPermissionStore:
    """In-memory permission store."""

    def __init__(self, matrix: PermissionMatrix | None = None):
        self._matrix = (matrix or PermissionMatrix()).model_copy(deep=True)
        self.save_count = 0

    def load(self) -> PermissionMatrix:
        return self._matrix.model_copy(deep=True)

    def save(self, matrix: PermissionMatrix) -> None:
        self._matrix = matrix.model_copy(deep=True)
        self.save_count += 1


__all__ = ["JsonPermissionStore", "MemoryPermissionStore", "PermissionStore"]
