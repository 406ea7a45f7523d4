# Content Transfer - download, text read/write and delete for single paths

import codecs
import logging
import os
import shutil
import uuid
from pathlib import Path
from typing import Iterable, Optional

from .errors import BadRequestError, NotFoundError, WorkspaceIOError
from .models import DownloadHandle

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class AtomicFileWriter:
    """
    Temp-file-then-rename writer for a single destination

    Bytes go to a hidden file beside the destination; the destination is
    only replaced by `commit()`. `abort()` is safe to call after `commit()`.
    """

    def __init__(self, destination: Path, public_message: str, prefix: str = '.write'):
        self.destination = destination
        self.public_message = public_message
        self.size = 0
        self._done = False
        self.tmp_path = destination.parent / f"{prefix}-{uuid.uuid4().hex}.part"
        try:
            self._file = open(self.tmp_path, 'xb')
        except OSError as e:
            logger.error("Failed to open temp file for %s: %s", destination, e)
            raise WorkspaceIOError(f"open {destination}: {e}", public_message=public_message) from e

    def write(self, data: bytes):
        try:
            self._file.write(data)
        except OSError as e:
            logger.error("Failed to write %s: %s", self.destination, e)
            raise WorkspaceIOError(f"write {self.destination}: {e}", public_message=self.public_message) from e
        self.size += len(data)

    def commit(self) -> Path:
        try:
            self._file.close()
            os.replace(self.tmp_path, self.destination)
        except OSError as e:
            logger.error("Failed to replace %s: %s", self.destination, e)
            raise WorkspaceIOError(f"rename {self.destination}: {e}", public_message=self.public_message) from e
        self._done = True
        return self.destination

    def abort(self):
        if self._done:
            return
        self._done = True
        self._file.close()
        try:
            self.tmp_path.unlink()
        except FileNotFoundError:
            pass


def open_download(path: Path) -> DownloadHandle:
    """
    Open a file for streaming to the caller

    The caller owns the returned handle and must close it (the WSGI file
    wrapper does this once the response is consumed or aborted).

    Raises:
        NotFoundError: path missing or a directory
        WorkspaceIOError: file exists but cannot be opened
    """
    if not path.is_file():
        raise NotFoundError(f"Download target not found: {path}")
    try:
        f = open(path, 'rb')
        size = os.fstat(f.fileno()).st_size
    except FileNotFoundError as e:
        raise NotFoundError(f"Download target vanished: {path}") from e
    except OSError as e:
        logger.error("Failed to open %s for download: %s", path, e)
        raise WorkspaceIOError(f"open {path}: {e}", public_message="Failed to read file") from e
    return DownloadHandle(path=path, file=f, size=size, download_name=path.name)


def read_text(path: Path) -> str:
    """
    Read a whole file as UTF-8 text

    Raises:
        NotFoundError: path missing or a directory
        WorkspaceIOError: read or decode failure
    """
    if not path.is_file():
        raise NotFoundError(f"Text file not found: {path}")
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()
    except FileNotFoundError as e:
        raise NotFoundError(f"Text file vanished: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        logger.error("Failed to read text file %s: %s", path, e)
        raise WorkspaceIOError(f"read {path}: {e}", public_message="Failed to read text file") from e


def write_text(path: Path, chunks: Iterable[bytes], expected_size: Optional[int] = None) -> int:
    """
    Overwrite a file with a UTF-8 text body

    The body is consumed chunk by chunk into a temporary file that replaces
    `path` only once the whole body has arrived; a short or aborted body
    leaves the previous content in place. Multi-byte sequences split across
    chunks are reassembled, invalid sequences become U+FFFD. Parent
    directories are never created. There is no locking: concurrent writers
    to the same path race and the last one to finish wins.

    Args:
        path: Target file (resolved)
        chunks: Raw body chunks
        expected_size: Declared body length (Content-Length), if any

    Returns:
        Number of bytes written

    Raises:
        BadRequestError: fewer or more bytes received than declared
        WorkspaceIOError: parent missing, target is a directory, permission
    """
    decoder = codecs.getincrementaldecoder('utf-8')(errors='replace')
    writer = AtomicFileWriter(path, public_message="Failed to write text file")
    received = 0
    try:
        for chunk in chunks:
            received += len(chunk)
            text = decoder.decode(chunk)
            if text:
                writer.write(text.encode('utf-8'))
        tail = decoder.decode(b'', final=True)
        if tail:
            writer.write(tail.encode('utf-8'))

        if expected_size is not None and received != expected_size:
            logger.warning("Text body for %s ended at %d of %d bytes", path, received, expected_size)
            raise BadRequestError("Incomplete request body")
        writer.commit()
    finally:
        writer.abort()

    logger.info("Wrote %d bytes to %s", writer.size, path)
    return writer.size


def delete_path(path: Path) -> bool:
    """
    Remove a file, symlink or directory tree

    Returns:
        True if something was removed, False if nothing existed

    Raises:
        WorkspaceIOError: removal failed
    """
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.error("Failed to delete %s: %s", path, e)
        raise WorkspaceIOError(f"delete {path}: {e}", public_message="Failed to delete") from e

    logger.info("Deleted %s", path)
    return True
