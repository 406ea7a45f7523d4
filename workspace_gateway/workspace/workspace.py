# Workspace - one agent's sandboxed directory tree and the operations on it

import logging
import os
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional

from .errors import PathForbiddenError, WorkspaceIOError
from .lister import list_directory
from .models import DownloadHandle, FileEntry
from .multipart import ingest_multipart
from .paths import resolve_path, resolve_within
from .transfer import delete_path, open_download, read_text, write_text

logger = logging.getLogger(__name__)


class Workspace:
    """
    Workspace - file operations confined to a single root directory

    Every operation takes caller-relative paths: `directory` is the folder
    the caller is looking at (the `path` query parameter) and `name` is a
    path relative to it. Both go through the path resolver before any
    filesystem access.

    Instances are cheap and meant to live for a single request.
    """

    def __init__(self, root: Path):
        self.root = Path(os.path.normpath(os.path.abspath(root)))

    def ensure_root(self):
        """Create the root directory on first access"""
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Failed to create workspace root %s: %s", self.root, e)
            raise WorkspaceIOError(
                f"mkdir {self.root}: {e}",
                public_message="Failed to prepare workspace",
            ) from e

    # Path resolution

    def resolve_directory(self, directory: str = '') -> Path:
        return resolve_path(self.root, directory)

    def resolve_name(self, name: str, directory: str = '') -> Path:
        base = self.resolve_directory(directory)
        return resolve_within(self.root, base, name)

    # Operations

    def list(self, directory: str = '') -> List[FileEntry]:
        """List the visible children of `directory`"""
        return list_directory(self.resolve_directory(directory))

    def open_download(self, name: str, directory: str = '') -> DownloadHandle:
        return open_download(self.resolve_name(name, directory))

    def read_text(self, name: str, directory: str = '') -> str:
        return read_text(self.resolve_name(name, directory))

    def write_text(
        self,
        name: str,
        chunks: Iterable[bytes],
        directory: str = '',
        expected_size: Optional[int] = None,
    ) -> int:
        """Overwrite `name` with a UTF-8 body. Last concurrent writer wins."""
        return write_text(self.resolve_name(name, directory), chunks, expected_size)

    def delete(self, name: str, directory: str = '') -> bool:
        """
        Delete a file or directory tree

        Missing targets are not an error. The root itself can't be deleted.
        """
        target = self.resolve_name(name, directory)
        if target == self.root:
            raise PathForbiddenError("refusing to delete workspace root")
        return delete_path(target)

    def upload(self, stream: BinaryIO, boundary: bytes, directory: str = '') -> List[Path]:
        """Store every file part of a multipart body under `directory`"""
        target_dir = self.resolve_directory(directory)
        stored = ingest_multipart(stream, boundary, target_dir)
        logger.info("Upload into %s stored %d file(s)", target_dir, len(stored))
        return stored
