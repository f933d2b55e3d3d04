"""
Workspace path utilities.

Every path handled by coffeewatch is normalized to an absolute form that uses
``/`` as its only separator, so containment checks and glob matching behave the
same on every platform:

    /home/me/project            (workspace root)
    /home/me/project/src/a.coffee
        -> relative path "src/a.coffee"

Case is preserved here; case folding is the matcher's job.
"""

import os
from typing import Optional


def normalize_path(path: str) -> str:
    """
    Normalize a path to an absolute, ``/``-separated form.

    Relative paths are resolved against the current working directory.
    Symlinks are not followed.

    Args:
        path: Absolute or relative file system path

    Returns:
        Normalized absolute path with forward slashes
    """
    normalized = os.path.abspath(os.fspath(path))
    if os.sep != "/":
        normalized = normalized.replace(os.sep, "/")
    return normalized


def to_relative_path(root: str, path: str) -> Optional[str]:
    """
    Resolve ``path`` relative to the workspace ``root``.

    Args:
        root: Workspace root directory
        path: File path to resolve (absolute or relative to the cwd)

    Returns:
        The root-relative path without leading or trailing slashes
        ("" for the root itself), or None when ``path`` lies outside ``root``.
        None means "not my workspace", never an error.
    """
    workspace_dir = normalize_path(root).rstrip("/")
    full_path = normalize_path(path)

    if full_path != workspace_dir and not full_path.startswith(workspace_dir + "/"):
        return None

    return full_path[len(workspace_dir):].strip("/")


def to_full_path(root: str, relative_path: str) -> str:
    """
    Inverse of to_relative_path: join a root-relative path onto the root.

    Args:
        root: Workspace root directory
        relative_path: Path relative to ``root`` (Unix-style)

    Returns:
        Normalized absolute path
    """
    return normalize_path(os.path.join(normalize_path(root), relative_path.lstrip("/")))


def is_path_of(root: str, path: str) -> bool:
    """Check whether ``path`` lies inside the workspace ``root``."""
    return to_relative_path(root, path) is not None
