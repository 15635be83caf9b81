"""In-memory hierarchical store."""

from __future__ import annotations

import logging
import threading
from typing import Any

from ..errors import RepositoryError
from .base import RepositoryFile, UnifiedRepository, normalize_path, parent_path


logger = logging.getLogger(__name__)


class InMemoryRepository(UnifiedRepository):
    """
    Thread-safe, dict-backed hierarchical store.

    File IDs are the normalized paths. Used for tests and for running the
    metadata repository without a backing directory.
    """

    def __init__(self) -> None:
        self._files: dict[str, RepositoryFile] = {}
        self._content: dict[str, bytes] = {}
        self._metadata: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()
        self._files["/"] = RepositoryFile(id="/", path="/", name="", folder=True)

    def get_file(self, path: str) -> RepositoryFile | None:
        with self._lock:
            return self._files.get(normalize_path(path))

    def get_folder(self, path: str, create: bool = False) -> RepositoryFile | None:
        path = normalize_path(path)
        with self._lock:
            existing = self._files.get(path)
            if existing is not None:
                if not existing.folder:
                    raise RepositoryError(f"Not a folder: {path}")
                return existing
            if not create:
                return None

            self.get_folder(parent_path(path), create=True)
            folder = RepositoryFile(id=path, path=path, name=path.rsplit("/", 1)[-1], folder=True)
            self._files[path] = folder
            logger.debug(f"Created folder {path}")
            return folder

    def create_file(self, folder: RepositoryFile, name: str, content: bytes) -> RepositoryFile:
        if not name or "/" in name:
            raise RepositoryError(f"Invalid file name: {name!r}")
        path = normalize_path(f"{folder.path}/{name}")
        with self._lock:
            if folder.path not in self._files:
                raise RepositoryError(f"Folder not found: {folder.path}")
            if path in self._files:
                raise RepositoryError(f"File already exists: {path}")
            file = RepositoryFile(id=path, path=path, name=name)
            self._files[path] = file
            self._content[path] = bytes(content)
            return file

    def update_file(self, file: RepositoryFile, content: bytes) -> RepositoryFile:
        with self._lock:
            if file.id not in self._content:
                raise RepositoryError(f"File not found: {file.path}")
            self._content[file.id] = bytes(content)
            return self._files[file.id]

    def get_content(self, file: RepositoryFile) -> bytes:
        with self._lock:
            if file.id not in self._content:
                raise RepositoryError(f"File not found: {file.path}")
            return self._content[file.id]

    def delete_file(self, file: RepositoryFile) -> None:
        with self._lock:
            if file.id not in self._files:
                raise RepositoryError(f"File not found: {file.path}")
            prefix = file.id.rstrip("/") + "/"
            doomed = [fid for fid in self._files if fid == file.id or fid.startswith(prefix)]
            for fid in doomed:
                self._files.pop(fid, None)
                self._content.pop(fid, None)
                self._metadata.pop(fid, None)

    def get_children(self, folder: RepositoryFile) -> list[RepositoryFile]:
        with self._lock:
            return sorted(
                (f for fid, f in self._files.items() if fid != "/" and parent_path(fid) == folder.path),
                key=lambda f: f.name,
            )

    def get_file_metadata(self, file_id: str) -> dict[str, Any]:
        with self._lock:
            if file_id not in self._files:
                raise RepositoryError(f"File not found: {file_id}")
            return dict(self._metadata.get(file_id, {}))

    def set_file_metadata(self, file_id: str, metadata: dict[str, Any]) -> None:
        with self._lock:
            if file_id not in self._files:
                raise RepositoryError(f"File not found: {file_id}")
            self._metadata[file_id] = dict(metadata)
