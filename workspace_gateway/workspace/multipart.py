"""Streaming multipart ingest.

The request body is fed to werkzeug's sans-IO `MultipartDecoder` in fixed
size chunks, so header blocks and boundaries are found incrementally and
no part is ever held in memory as a whole. Each file part is streamed into
a hidden temporary file next to its destination and renamed into place
once the decoder reports the end of the part.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional

from werkzeug.http import parse_options_header
from werkzeug.sansio.multipart import (
    Data,
    Epilogue,
    Field,
    File,
    MultipartDecoder,
    NeedData,
)

from .errors import BadRequestError, WorkspaceIOError
from .paths import resolve_path
from .transfer import CHUNK_SIZE, AtomicFileWriter

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_NAME = "uploaded_file"


def boundary_from_content_type(content_type: Optional[str]) -> bytes:
    """Extract the multipart boundary token, or raise BadRequestError."""
    _, options = parse_options_header(content_type or "")
    boundary = options.get("boundary")
    if not boundary:
        raise BadRequestError("Missing boundary")
    try:
        return boundary.encode("latin-1")
    except UnicodeEncodeError as e:
        raise BadRequestError("Invalid boundary") from e


def _read_chunks(stream: BinaryIO, size: int) -> Iterator[Optional[bytes]]:
    while True:
        data = stream.read(size)
        if not data:
            break
        yield data
    # Tells the decoder the body is complete
    yield None


def _open_part(destination: Path) -> AtomicFileWriter:
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error("Failed to create upload directory %s: %s", destination.parent, e)
        raise WorkspaceIOError(f"mkdir {destination.parent}: {e}", public_message="Upload failed") from e
    return AtomicFileWriter(destination, public_message="Upload failed", prefix=".upload")


def _destination(target_dir: Path, filename: str) -> Path:
    # File names are opaque; they may address nested paths but must stay
    # inside the directory being uploaded to.
    destination = resolve_path(target_dir, filename or DEFAULT_UPLOAD_NAME)
    if destination == target_dir:
        raise BadRequestError("Invalid file name")
    return destination


def ingest_multipart(
    stream: BinaryIO,
    boundary: bytes,
    target_dir: Path,
    chunk_size: int = CHUNK_SIZE,
) -> List[Path]:
    """
    Decode a multipart body and persist every file part under `target_dir`

    Parts without a filename (plain form fields) are skipped.

    Args:
        stream: Raw request body
        boundary: Boundary token from the Content-Type header
        target_dir: Resolved directory uploads land in
        chunk_size: Bytes read from the stream per decoder step

    Returns:
        Paths written, in body order

    Raises:
        BadRequestError: malformed or truncated framing, invalid file name
        PathForbiddenError: a file name escapes `target_dir`
        WorkspaceIOError: disk failure
    """
    decoder = MultipartDecoder(boundary)
    stored: List[Path] = []
    writer: Optional[AtomicFileWriter] = None
    complete = False

    try:
        for data in _read_chunks(stream, chunk_size):
            decoder.receive_data(data)
            event = decoder.next_event()
            while not isinstance(event, NeedData):
                if isinstance(event, File):
                    writer = _open_part(_destination(target_dir, event.filename))
                elif isinstance(event, Field):
                    logger.debug("Skipping non-file form field %s", event.name)
                elif isinstance(event, Data):
                    if writer is not None:
                        writer.write(event.data)
                        if not event.more_data:
                            stored.append(writer.commit())
                            logger.info("Uploaded file: %s (%d bytes)", writer.destination, writer.size)
                            writer = None
                elif isinstance(event, Epilogue):
                    complete = True
                    break
                event = decoder.next_event()
            if complete:
                break
    except ValueError as e:
        logger.warning("Malformed multipart body for %s: %s", target_dir, e)
        raise BadRequestError("Malformed multipart body") from e
    finally:
        if writer is not None:
            writer.abort()

    if not complete:
        logger.warning("Truncated multipart body for %s", target_dir)
        raise BadRequestError("Incomplete multipart body")
    return stored
