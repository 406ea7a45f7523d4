"""Workspace module boundary.

`Workspace` is the facade; the components below each own one concern:
- `paths`: containment of caller-relative paths
- `lister`: directory listings
- `transfer`: download, text read/write, delete
- `multipart`: streaming multipart ingest
"""

from .errors import (
    BadRequestError,
    NotFoundError,
    PathForbiddenError,
    UnauthorizedError,
    WorkspaceError,
    WorkspaceIOError,
)
from .models import DownloadHandle, FileEntry
from .paths import resolve_path, resolve_within
from .workspace import Workspace

__all__ = [
    'Workspace',
    'FileEntry',
    'DownloadHandle',
    'resolve_path',
    'resolve_within',
    'WorkspaceError',
    'UnauthorizedError',
    'PathForbiddenError',
    'NotFoundError',
    'BadRequestError',
    'WorkspaceIOError',
]
