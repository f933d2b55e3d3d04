"""
coffeewatch - compile-on-save for CoffeeScript workspaces.

Watches one or more workspace roots and, whenever a matching source file is
saved, recompiles it into a sibling ``.js`` file (plus an optional source map),
following the include/exclude rules and compiler options each workspace keeps
in ``.vscode/settings.json`` under ``coffeescript.compile``.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
