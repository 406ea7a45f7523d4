# Workspace Data Models

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO


@dataclass
class FileEntry:
    """One immediate child of a listed directory"""
    name: str
    size: int  # bytes
    mtime: int  # epoch milliseconds
    is_directory: bool


@dataclass
class DownloadHandle:
    """An opened file ready to be streamed to the caller"""
    path: Path
    file: BinaryIO
    size: int
    download_name: str  # basename sent in Content-Disposition

    def close(self):
        self.file.close()
