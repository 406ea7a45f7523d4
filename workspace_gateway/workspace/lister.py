# Directory Lister - immediate children of a workspace directory

import logging
import os
from pathlib import Path
from typing import List

from .errors import NotFoundError, WorkspaceIOError
from .models import FileEntry

logger = logging.getLogger(__name__)


def _stat_entry(entry: os.DirEntry) -> os.stat_result:
    try:
        return entry.stat()
    except FileNotFoundError:
        # Dangling symlink: report the link itself
        return entry.stat(follow_symlinks=False)


def sort_entries(entries: List[FileEntry]) -> List[FileEntry]:
    """Directories first, then name ascending (case-sensitive)"""
    return sorted(entries, key=lambda e: (not e.is_directory, e.name))


def list_directory(directory: Path) -> List[FileEntry]:
    """
    List the visible immediate children of a directory

    Names starting with '.' are hidden and never returned.

    Args:
        directory: Absolute path already checked by the path resolver

    Returns:
        FileEntry list, directories first then by name

    Raises:
        NotFoundError: directory missing or not a directory
        WorkspaceIOError: directory unreadable
    """
    entries: List[FileEntry] = []
    try:
        with os.scandir(directory) as it:
            for entry in it:
                if entry.name.startswith('.'):
                    continue
                st = _stat_entry(entry)
                entries.append(FileEntry(
                    name=entry.name,
                    size=st.st_size,
                    mtime=st.st_mtime_ns // 1_000_000,
                    is_directory=entry.is_dir(),
                ))
    except (FileNotFoundError, NotADirectoryError) as e:
        raise NotFoundError(f"Directory not found: {directory}") from e
    except OSError as e:
        logger.error("Failed to list workspace directory %s: %s", directory, e)
        raise WorkspaceIOError(
            f"list {directory}: {e}",
            public_message="Failed to list workspace",
        ) from e

    return sort_entries(entries)
