"""Path containment for workspace roots.

Every caller-supplied path goes through `resolve_path` or `resolve_within`
before the filesystem is touched. Containment is decided on normalized
path segments (root itself, or root + separator prefix), and again on the
real paths so a symlink inside the root cannot point the caller outside it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

from .errors import PathForbiddenError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def is_within(root: PathLike, candidate: PathLike) -> bool:
    """Return True if `candidate` is `root` or one of its descendants.

    Both arguments are expected to be absolute and normalized.
    """
    root_str = os.path.normpath(str(root))
    candidate_str = os.path.normpath(str(candidate))
    if candidate_str == root_str:
        return True
    prefix = root_str if root_str.endswith(os.sep) else root_str + os.sep
    return candidate_str.startswith(prefix)


def _join_normalized(base: str, relative: str) -> str:
    if "\x00" in relative:
        raise PathForbiddenError("NUL byte in relative path")
    # A leading separator never replaces the base
    relative = relative.lstrip("/")
    if not relative:
        return base
    return os.path.normpath(os.path.join(base, relative))


def _check_real_path(root: str, candidate: str) -> None:
    real_root = os.path.realpath(root)
    real_candidate = os.path.realpath(candidate)
    if not is_within(real_root, real_candidate):
        logger.warning("Symlink escape rejected: %s -> %s", candidate, real_candidate)
        raise PathForbiddenError(f"symlink escape: {candidate}")


def resolve_within(root: PathLike, base: PathLike, relative: str) -> Path:
    """
    Resolve `relative` under `base`, requiring the result to stay under `root`

    Args:
        root: Workspace root (absolute)
        base: Directory the relative path is interpreted against; normally
              `root` or a directory previously returned by this module
        relative: Caller-supplied, already percent-decoded path

    Returns:
        Absolute, normalized path (symlinks are not expanded in the result)

    Raises:
        PathForbiddenError: the path leaves `root` lexically or via a symlink
    """
    root_str = os.path.normpath(os.path.abspath(str(root)))
    base_str = os.path.normpath(os.path.abspath(str(base)))
    if not is_within(root_str, base_str):
        raise PathForbiddenError(f"base {base_str} outside root {root_str}")

    candidate = _join_normalized(base_str, relative or "")
    if not is_within(root_str, candidate):
        logger.warning("Path traversal rejected under %s", root_str)
        raise PathForbiddenError(f"traversal: {relative!r}")

    _check_real_path(root_str, candidate)
    return Path(candidate)


def resolve_path(root: PathLike, relative: str) -> Path:
    """Resolve a caller-relative path against the workspace root."""
    return resolve_within(root, root, relative)
