"""Local filesystem hierarchical store."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

from ..errors import RepositoryError
from .base import RepositoryFile, UnifiedRepository, normalize_path


logger = logging.getLogger(__name__)

# Sidecar directory (under the root). Metadata JSON lives under "files",
# in-flight writes under "staging", so neither can shadow a stored name.
METADATA_DIR = ".metadata"
METADATA_FILES = "files"
STAGING_DIR = "staging"


class FileSystemRepository(UnifiedRepository):
    """
    Hierarchical store backed by a directory.

    Repository paths map onto paths under ``root``; file IDs are the
    normalized repository paths. Writes go through a temporary file in the
    staging area that is renamed into place, so a failed write never leaves a partial file.
    Metadata lives in a hidden sidecar directory that is never listed.
    """

    def __init__(self, root: str | Path | None = None):
        if root is None:
            root = tempfile.mkdtemp(prefix="metadata-repo-")
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _local(self, path: str) -> Path:
        return self.root.joinpath(*normalize_path(path).strip("/").split("/"))

    def _metadata_file(self, file_id: str) -> Path:
        relative = normalize_path(file_id).strip("/") or "_root"
        return self.root / METADATA_DIR / METADATA_FILES / f"{relative}.json"

    def _handle(self, local: Path) -> RepositoryFile:
        if local == self.root:
            return RepositoryFile(id="/", path="/", name="", folder=True)
        path = normalize_path(local.relative_to(self.root).as_posix())
        return RepositoryFile(id=path, path=path, name=local.name, folder=local.is_dir())

    def get_file(self, path: str) -> RepositoryFile | None:
        local = self._local(path)
        if not local.exists() or self._hidden(local):
            return None
        return self._handle(local)

    def get_folder(self, path: str, create: bool = False) -> RepositoryFile | None:
        local = self._local(path)
        if self._hidden(local):
            raise RepositoryError(f"Reserved path: {path}")
        if local.exists():
            if not local.is_dir():
                raise RepositoryError(f"Not a folder: {path}")
            return self._handle(local)
        if not create:
            return None
        try:
            local.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RepositoryError(f"Unable to create folder {path}: {e}") from e
        logger.debug(f"Created folder {local}")
        return self._handle(local)

    def create_file(self, folder: RepositoryFile, name: str, content: bytes) -> RepositoryFile:
        if not name or "/" in name or "\\" in name or name == METADATA_DIR:
            raise RepositoryError(f"Invalid file name: {name!r}")
        local = self._local(folder.path) / name
        if local.exists():
            raise RepositoryError(f"File already exists: {folder.path}/{name}")
        self._write(local, content)
        return self._handle(local)

    def update_file(self, file: RepositoryFile, content: bytes) -> RepositoryFile:
        local = self._local(file.path)
        if not local.is_file():
            raise RepositoryError(f"File not found: {file.path}")
        self._write(local, content)
        return self._handle(local)

    def get_content(self, file: RepositoryFile) -> bytes:
        try:
            return self._local(file.path).read_bytes()
        except OSError as e:
            raise RepositoryError(f"Unable to read {file.path}: {e}") from e

    def delete_file(self, file: RepositoryFile) -> None:
        local = self._local(file.path)
        meta = self._metadata_file(file.id)
        try:
            if local.is_dir():
                shutil.rmtree(local)
                shutil.rmtree(meta.with_suffix(""), ignore_errors=True)
            else:
                local.unlink()
            meta.unlink(missing_ok=True)
        except FileNotFoundError as e:
            raise RepositoryError(f"File not found: {file.path}") from e
        except OSError as e:
            raise RepositoryError(f"Unable to delete {file.path}: {e}") from e

    def get_children(self, folder: RepositoryFile) -> list[RepositoryFile]:
        local = self._local(folder.path)
        if not local.is_dir():
            raise RepositoryError(f"Folder not found: {folder.path}")
        return sorted(
            (self._handle(child) for child in local.iterdir() if not self._hidden(child)),
            key=lambda f: f.name,
        )

    def get_file_metadata(self, file_id: str) -> dict[str, Any]:
        if self.get_file(file_id) is None:
            raise RepositoryError(f"File not found: {file_id}")
        meta = self._metadata_file(file_id)
        if not meta.exists():
            return {}
        try:
            with open(meta, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            raise RepositoryError(f"Unable to read metadata of {file_id}: {e}") from e

    def set_file_metadata(self, file_id: str, metadata: dict[str, Any]) -> None:
        if self.get_file(file_id) is None:
            raise RepositoryError(f"File not found: {file_id}")
        try:
            self._write(self._metadata_file(file_id), json.dumps(metadata, sort_keys=True).encode("utf-8"))
        except TypeError as e:
            raise RepositoryError(f"Metadata of {file_id} is not serializable: {e}") from e

    def _hidden(self, local: Path) -> bool:
        return local.parent == self.root and local.name == METADATA_DIR

    def _write(self, local: Path, content: bytes) -> None:
        """Write atomically: temp file in the staging area, then rename."""
        staging = self.root / METADATA_DIR / STAGING_DIR
        try:
            local.parent.mkdir(parents=True, exist_ok=True)
            staging.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix="write-", dir=staging)
        except OSError as e:
            raise RepositoryError(f"Unable to write {local}: {e}") from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(content)
            os.replace(tmp_path, local)
        except OSError as e:
            Path(tmp_path).unlink(missing_ok=True)
            raise RepositoryError(f"Unable to write {local}: {e}") from e
