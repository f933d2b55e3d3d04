"""
Include/exclude glob matching for workspace-relative paths.

Uses wcmatch's glob dialect, which follows minimatch: ``**`` globstar,
``{a,b}`` brace expansion and ``@(...)`` style extglobs. Every pattern is
anchored at the workspace root by prefixing it with ``/`` (so ``src/**`` means
the top-level ``src`` directory, not any directory called ``src``), wildcards
match dot-files, and matching ignores case. A pattern matches whole paths
only: ``src`` matches the path ``src`` and nothing below it.

An empty pattern list matches nothing. The "compile everything" default is
DEFAULT_INCLUDE, which callers inject when a workspace lists no files.
"""

import logging
from typing import Iterable, Optional

from wcmatch import glob

logger = logging.getLogger(__name__)

# Source files compiled when the workspace does not list any
DEFAULT_INCLUDE = "**/*.coffee"


def to_anchored_pattern(pattern: str) -> str:
    """Prefix a pattern (or path) with ``/`` unless it is already rooted."""
    pattern = pattern.strip()
    if not pattern.startswith("/"):
        pattern = "/" + pattern
    return pattern


def clean_patterns(patterns: Optional[Iterable[object]]) -> list[str]:
    """
    Turn raw configuration values into a list of usable patterns.

    Args:
        patterns: Pattern values as read from settings (may contain None,
                  non-strings or blank entries)

    Returns:
        Patterns as stripped strings, blank entries dropped, order kept
    """
    if not patterns:
        return []

    cleaned = []
    for pattern in patterns:
        text = "" if pattern is None else str(pattern).strip()
        if text:
            cleaned.append(text)
    return cleaned


# dot: true, nocase: true; FORCEUNIX keeps "/" the only separator on Windows too
GLOB_FLAGS = (
    glob.GLOBSTAR
    | glob.BRACE
    | glob.EXTGLOB
    | glob.DOTGLOB
    | glob.IGNORECASE
    | glob.FORCEUNIX
)


def _matches_pattern(candidate: str, pattern: str) -> bool:
    """Match one pattern; leading ``!`` negates it, as in minimatch."""
    negated = False
    while pattern.startswith("!") and not pattern.startswith("!("):
        negated = not negated
        pattern = pattern[1:]
    return glob.globmatch(candidate, to_anchored_pattern(pattern), flags=GLOB_FLAGS) != negated


def matches_any(relative_path: str, patterns: Iterable[str]) -> bool:
    """
    Check a workspace-relative path against a list of glob patterns.

    Args:
        relative_path: Path relative to the workspace root (Unix-style)
        patterns: Glob patterns; an empty list never matches

    Returns:
        True if at least one pattern matches
    """
    candidate = to_anchored_pattern(relative_path)
    return any(_matches_pattern(candidate, pattern.strip()) for pattern in patterns)


def matches(
    relative_path: str,
    include_patterns: Iterable[str],
    exclude_patterns: Iterable[str],
) -> bool:
    """
    Decide whether a workspace-relative path should be compiled.

    Exclude patterns are checked first and always win: a path matching any
    exclude pattern is rejected even if an include pattern matches it too.
    Otherwise the path must match at least one include pattern.

    Args:
        relative_path: Path relative to the workspace root (Unix-style)
        include_patterns: Glob patterns selecting files to compile
        exclude_patterns: Glob patterns rejecting files

    Returns:
        True if the file should be compiled
    """
    if matches_any(relative_path, exclude_patterns):
        logger.debug(f"Excluded: {relative_path}")
        return False

    if not matches_any(relative_path, include_patterns):
        logger.debug(f"Not included: {relative_path}")
        return False

    return True
