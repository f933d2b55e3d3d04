"""
Workspace compile configuration.

Each workspace keeps its settings in ``.vscode/settings.json`` under the
``coffeescript.compile`` section:

    {
        "coffeescript.compile": {
            "files": ["src/**/*.coffee"],
            "exclude": ["src/vendor/**"],
            "bare": true,
            "options": {"transpile": {"presets": ["@babel/env"]}}
        }
    }

The section is parsed into a CompileConfig snapshot. Snapshots are immutable:
a reload produces a new one and replaces the old one wholesale.
"""

import copy
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional

from coffeewatch.exceptions import ConfigLoadError
from coffeewatch.matching import DEFAULT_INCLUDE, clean_patterns

logger = logging.getLogger(__name__)

CONFIG_RELATIVE_PATH = Path(".vscode") / "settings.json"
CONFIG_SECTION = "coffeescript.compile"

# Keys that must never be copied by deep_merge
_UNSAFE_KEYS = frozenset({"__proto__", "constructor", "prototype"})

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})

# Strings, line comments, block comments (in that order, so comment markers
# inside strings are left alone)
_JSONC_TOKENS = re.compile(r'("(?:\\.|[^"\\])*")|(//[^\n]*)|(/\*.*?\*/)', re.DOTALL)
_TRAILING_COMMA = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])', re.DOTALL)


def to_bool_safe(value: Any, default: bool = False) -> bool:
    """
    Coerce a settings value to bool.

    Args:
        value: Raw value (None, bool, number or string)
        default: Returned for None and unrecognized strings

    Returns:
        The coerced boolean
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        return default
    return bool(value)


def as_list(value: Any) -> list:
    """Wrap a scalar in a list; None becomes an empty list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def deep_merge(left: Mapping[str, Any], right: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """
    Deep-merge two mappings; the right-hand side wins.

    Nested mappings are merged recursively, two lists are unioned (left
    items first, duplicates dropped), and any other right-hand value replaces
    the left one. Neither input is modified.

    Args:
        left: Base values
        right: Overrides (None is treated as empty)

    Returns:
        A new dict holding the merged values
    """
    merged = copy.deepcopy(dict(left))
    if not right:
        return merged

    for key, value in right.items():
        if key in _UNSAFE_KEYS:
            continue

        existing = merged.get(key)
        if isinstance(existing, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(existing, value)
        elif isinstance(existing, list) and isinstance(value, list):
            union = list(existing)
            for item in value:
                if item not in union:
                    union.append(copy.deepcopy(item))
            merged[key] = union
        else:
            merged[key] = copy.deepcopy(value)

    return merged


@dataclass(frozen=True)
class CompileConfig:
    """
    Immutable configuration snapshot for one workspace.

    The four named flags are the fixed layer of compiler options; ``options``
    is the free-form layer merged on top of them (see compiler_options).
    """

    is_active: bool = True
    files: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    bare: bool = False
    header: bool = False
    inline_map: bool = False
    source_map: bool = True
    options: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def include_patterns(self) -> tuple[str, ...]:
        """Include patterns, falling back to every CoffeeScript file."""
        return self.files or (DEFAULT_INCLUDE,)

    def exclude_patterns(self) -> tuple[str, ...]:
        return self.exclude

    def named_flags(self) -> dict[str, bool]:
        """The fixed compiler flags, keyed by their compiler option names."""
        return {
            "bare": self.bare,
            "header": self.header,
            "inlineMap": self.inline_map,
            "sourceMap": self.source_map,
        }

    def compiler_options(self) -> dict[str, Any]:
        """
        Options handed to the compiler.

        The user's ``options`` mapping is deep-merged over the named flags, so
        an explicit ``options.bare`` overrides ``bare``.
        """
        return deep_merge(self.named_flags(), self.options)


def parse_config(section: Optional[Mapping[str, Any]]) -> CompileConfig:
    """
    Build a CompileConfig from a raw settings section.

    Args:
        section: The ``coffeescript.compile`` mapping (None means all defaults)

    Returns:
        CompileConfig snapshot
    """
    section = section or {}

    options = section.get("options")
    if options is None:
        options = {}
    elif not isinstance(options, Mapping):
        logger.warning(f"Ignoring non-object 'options' setting: {options!r}")
        options = {}

    return CompileConfig(
        is_active=to_bool_safe(section.get("isActive"), True),
        files=tuple(clean_patterns(as_list(section.get("files")))),
        exclude=tuple(clean_patterns(as_list(section.get("exclude")))),
        bare=to_bool_safe(section.get("bare")),
        header=to_bool_safe(section.get("header")),
        inline_map=to_bool_safe(section.get("inlineMap")),
        source_map=to_bool_safe(section.get("sourceMap"), True),
        options=MappingProxyType(copy.deepcopy(dict(options))),
    )


def strip_jsonc(text: str) -> str:
    """Remove comments and trailing commas from JSON-with-comments text."""

    def _drop_comment(match: re.Match) -> str:
        return match.group(1) or ""

    def _drop_comma(match: re.Match) -> str:
        return match.group(1) or match.group(2)

    text = _JSONC_TOKENS.sub(_drop_comment, text)
    return _TRAILING_COMMA.sub(_drop_comma, text)


def read_section(settings: Mapping[str, Any], section: str) -> dict[str, Any]:
    """
    Extract a dotted section from a settings document.

    The section may be stored nested (``{"a.b": {...}}`` or
    ``{"a": {"b": {...}}}``) or as flat dotted keys (``{"a.b.key": ...}``).
    Flat keys take precedence.

    Raises:
        ConfigLoadError: If the section exists but is not an object
    """
    result: dict[str, Any] = {}

    nested: Any = settings
    for part in section.split("."):
        nested = nested.get(part) if isinstance(nested, Mapping) else None
    for candidate in (nested, settings.get(section)):
        if candidate is None:
            continue
        if not isinstance(candidate, Mapping):
            raise ConfigLoadError(f"Setting '{section}' must be an object")
        result.update(candidate)

    prefix = section + "."
    for key, value in settings.items():
        if key.startswith(prefix):
            result[key[len(prefix):]] = value

    return result


class ConfigSource:
    """
    Reads a workspace's settings file.

    Args:
        root_path: Workspace root directory
        section: Settings section holding the compile configuration
    """

    def __init__(self, root_path: str, section: str = CONFIG_SECTION) -> None:
        self.path = Path(root_path) / CONFIG_RELATIVE_PATH
        self.section = section

    def load_section(self) -> dict[str, Any]:
        """
        Read the raw configuration section.

        Returns:
            The section as a dict; empty when the settings file does not exist

        Raises:
            ConfigLoadError: If the file cannot be read or parsed
        """
        if not self.path.exists():
            return {}

        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigLoadError(f"Could not read {self.path}: {e}") from e

        if not text.strip():
            return {}

        try:
            settings = json.loads(strip_jsonc(text))
        except ValueError as e:
            raise ConfigLoadError(f"Invalid JSON in {self.path}: {e}") from e

        if not isinstance(settings, Mapping):
            raise ConfigLoadError(f"{self.path} must contain a JSON object")

        return read_section(settings, self.section)

    def load(self) -> CompileConfig:
        """Read and parse the configuration into a snapshot."""
        return parse_config(self.load_section())

    def is_config_file(self, path: str) -> bool:
        """Check whether ``path`` is this source's settings file."""
        try:
            return Path(path).resolve() == self.path.resolve()
        except OSError:
            return False
