"""
Workspace fixtures shared by pipeline, registry and watcher tests.

FakeCoffeeCompiler stands in for Node + coffeescript. It understands
"name = value" lines only and behaves like the real compiler where the
pipeline can tell the difference:
- returns a plain string unless sourceMap is set
- returns a CompilerResult with a raw source map when sourceMap is set
- appends an inline data: URL when inlineMap is set
- raises CompileError for any other line
"""

import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from coffeewatch.compiler import CompilerResult
from coffeewatch.exceptions import CompileError


class FakeSourceMap:
    """Raw source map that records how it was generated."""

    def __init__(self, mappings: str) -> None:
        self.mappings = mappings
        self.generate_calls = []

    def generate(self, generated_file, source_files):
        self.generate_calls.append((generated_file, list(source_files)))
        return {
            "version": 3,
            "file": generated_file,
            "sourceRoot": "",
            "sources": list(source_files),
            "names": [],
            "mappings": self.mappings,
        }


class FakeCoffeeCompiler:
    """Tiny "name = value" compiler with CoffeeScript-shaped results."""

    def __init__(self) -> None:
        self.calls = []

    def compile(self, source, options):
        self.calls.append((source, dict(options)))

        statements = []
        for lineno, line in enumerate(source.splitlines(), start=1):
            if not line.strip():
                continue
            if "=" not in line:
                raise CompileError(f"[stdin]:{lineno}:1: error: unexpected {line.strip()}")
            name, value = (part.strip() for part in line.split("=", 1))
            statements.append(f"{name} = {value};")

        body = "\n".join(statements)
        if options.get("bare"):
            js = body + "\n"
        else:
            js = f"(function() {{\n{body}\n}}).call(this);\n"
        if options.get("header"):
            js = "// Generated by FakeCoffeeScript\n" + js
        if options.get("inlineMap"):
            js += "\n//# sourceMappingURL=data:application/json;base64,e30=\n"

        if options.get("sourceMap"):
            return CompilerResult(code=js, raw_source_map=FakeSourceMap("AAAA;AACA"))
        return js


def write_settings(root: Path, section: dict, nested: bool = False) -> Path:
    """Write ``section`` as the workspace's coffeescript.compile settings."""
    settings_dir = root / ".vscode"
    settings_dir.mkdir(parents=True, exist_ok=True)
    if nested:
        document = {"coffeescript": {"compile": section}}
    else:
        document = {"coffeescript.compile": section}
    settings_file = settings_dir / "settings.json"
    settings_file.write_text(json.dumps(document, indent=4), encoding="utf-8")
    return settings_file


@pytest.fixture
def workspace_root(tmp_path):
    """Empty workspace root directory."""
    root = tmp_path / "ws"
    root.mkdir()
    return root


@pytest.fixture
def fake_compiler():
    return FakeCoffeeCompiler()


@pytest.fixture
def notifier():
    """Mock notification channel."""
    return Mock()


@pytest.fixture
def settings(workspace_root):
    """Write settings into the workspace root: settings({"bare": True})."""

    def _write(section: dict, nested: bool = False) -> Path:
        return write_settings(workspace_root, section, nested=nested)

    return _write
