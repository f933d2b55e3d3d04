"""
Compiler seam.

The pipeline talks to the compiler through CompilerProtocol only. A compiler
returns either the generated code as a plain string or a CompilerResult that
also carries a raw source map; normalize_result folds both into a
CompilerResult.

CoffeeCompiler is the production implementation: it runs the ``coffeescript``
npm package through Node in a subprocess.
"""

import copy
import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol, Union

from coffeewatch.exceptions import CompileError

logger = logging.getLogger(__name__)

# Name the generated code is attributed to in its sourceURL comment
COMPILER_NAME = "coffeescript"

# Reads {"source", "options"} from stdin, writes {"js", "v3SourceMap"} to stdout
_NODE_BRIDGE = r"""
const chunks = [];
process.stdin.on('data', (chunk) => chunks.push(chunk));
process.stdin.on('end', () => {
    let CoffeeScript;
    try {
        CoffeeScript = require('coffeescript');
    } catch (e) {
        process.stderr.write('Cannot load the coffeescript package: ' + e.message);
        process.exit(2);
    }
    try {
        const request = JSON.parse(Buffer.concat(chunks).toString('utf8'));
        const result = CoffeeScript.compile(request.source, request.options);
        const response = ('string' === typeof result)
            ? { js: result }
            : { js: result.js, v3SourceMap: result.v3SourceMap ? JSON.parse(result.v3SourceMap) : null };
        process.stdout.write(JSON.stringify(response));
    } catch (e) {
        process.stderr.write(String(e));
        process.exit(1);
    }
});
"""


class RawSourceMap(Protocol):
    """A source map as returned by the compiler, not yet bound to file names."""

    def generate(self, generated_file: str, source_files: list[str]) -> Optional[dict]:
        """Produce the map document for the given output and source names."""
        ...


class CompilerProtocol(Protocol):
    """Turns source text plus options into generated code."""

    def compile(self, source: str, options: dict[str, Any]) -> Union[str, "CompilerResult"]:
        ...


@dataclass(frozen=True)
class CompilerResult:
    """Generated code plus an optional raw source map."""

    code: str
    raw_source_map: Optional[RawSourceMap] = None


class V3SourceMap:
    """
    A version 3 source map document as produced by CoffeeScript.

    generate() returns a copy with ``file`` and ``sources`` set to the names
    the map is written for.
    """

    def __init__(self, document: Mapping[str, Any]) -> None:
        self.document = dict(document)

    def generate(self, generated_file: str, source_files: list[str]) -> Optional[dict]:
        if not self.document:
            return None

        generated = copy.deepcopy(self.document)
        generated["version"] = generated.get("version", 3)
        generated["file"] = generated_file
        generated.setdefault("sourceRoot", "")
        generated["sources"] = list(source_files)
        return generated


def normalize_result(result: Any) -> CompilerResult:
    """
    Fold any supported compiler return value into a CompilerResult.

    Accepts a plain string, a CompilerResult, or a mapping with ``js``/``code``
    and ``sourceMap``/``v3SourceMap`` keys (a mapping-valued map is wrapped
    in V3SourceMap).
    """
    if isinstance(result, CompilerResult):
        return result
    if isinstance(result, str):
        return CompilerResult(code=result)
    if isinstance(result, Mapping):
        code = result.get("js", result.get("code"))
        raw_map = result.get("sourceMap") or result.get("v3SourceMap")
        if isinstance(raw_map, Mapping):
            raw_map = V3SourceMap(raw_map)
        return CompilerResult(code="" if code is None else str(code), raw_source_map=raw_map)
    if result is None:
        return CompilerResult(code="")
    return CompilerResult(code=str(result))


class CoffeeCompiler:
    """
    CoffeeScript compiler backed by Node and the ``coffeescript`` npm package.

    Args:
        node: Node executable to run
        cwd: Working directory for Node (where ``coffeescript`` is resolved
             from, through its node_modules); None uses the current directory
        env: Environment for the subprocess (e.g. to set NODE_PATH)
    """

    def __init__(
        self,
        node: str = "node",
        cwd: Optional[str] = None,
        env: Optional[dict[str, str]] = None,
    ) -> None:
        self.node = node
        self.cwd = cwd
        self.env = env

    def compile(self, source: str, options: dict[str, Any]) -> Union[str, CompilerResult]:
        """
        Compile CoffeeScript source.

        Raises:
            CompileError: On syntax errors, or when Node cannot be run
        """
        request = json.dumps({"source": source, "options": options})

        try:
            completed = subprocess.run(
                [self.node, "-e", _NODE_BRIDGE],
                input=request.encode("utf-8"),
                capture_output=True,
                cwd=self.cwd,
                env=self.env,
                check=False,
            )
        except OSError as e:
            raise CompileError(f"Could not run {self.node}: {e}") from e

        if completed.returncode != 0:
            message = completed.stderr.decode("utf-8", errors="replace").strip()
            first_line = message.splitlines()[0] if message else ""
            raise CompileError(first_line or f"{self.node} exited with status {completed.returncode}")

        try:
            response = json.loads(completed.stdout.decode("utf-8"))
        except ValueError as e:
            raise CompileError(f"Unreadable compiler output: {e}") from e

        js = response.get("js") or ""
        v3_map = response.get("v3SourceMap")
        if v3_map is None:
            return js
        return CompilerResult(code=js, raw_source_map=V3SourceMap(v3_map))
