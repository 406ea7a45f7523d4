"""Serialization helpers for workspace HTTP responses.

Keeps route handlers focused on request validation and dispatch.
"""

from __future__ import annotations

import unicodedata
from typing import Any
from urllib.parse import quote

from .workspace.models import FileEntry


def file_entry_to_dict(entry: FileEntry) -> dict[str, Any]:
    return {
        "name": entry.name,
        "size": entry.size,
        "mtime": entry.mtime,
        "isDirectory": entry.is_directory,
    }


def content_disposition(filename: str) -> str:
    """Attachment header value carrying the quoted original file name.

    Non-ASCII names get an ASCII fallback plus an RFC 5987 `filename*`.
    """
    filename = filename.replace("\r", "").replace("\n", "")
    extra = ""
    try:
        filename.encode("ascii")
        simple = filename
    except UnicodeEncodeError:
        simple = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
        simple = simple or "download"
        extra = f"; filename*=UTF-8''{quote(filename, safe='')}"
    simple = simple.replace("\\", "\\\\").replace('"', '\\"')
    return f'attachment; filename="{simple}"{extra}'
